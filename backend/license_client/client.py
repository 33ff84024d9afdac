"""
License Verification Client

REST client for the license verification endpoint.
The call sits on the critical path of every encrypted send, so it never
raises for network or protocol failures; the outcome is classified instead.
"""

import logging
from typing import Optional

import httpx

from .models import LicenseState, LicenseStatus

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class LicenseVerifier:
    """
    Verifies that a license key is active for the sending domain.

    Stateless per call: nothing is cached between verifications.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self._endpoint = endpoint
        self._timeout = timeout
        self._http_client = client

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client used for verification."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.Client(timeout=self._timeout)
        return self._http_client

    def verify(self, key: str, domain: str) -> LicenseState:
        """
        Verify a license key.

        Args:
            key: License (API) key, sent as a bearer token
            domain: Sending domain, used by the provider for correlation

        Returns:
            LicenseState classified as valid, invalid, unreachable or malformed
        """
        client = self._get_client()

        try:
            response = client.post(
                self._endpoint,
                json={"domain": domain},
                headers={
                    "Authorization": f"Bearer {key}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("License verification timed out for %s: %s", domain, e)
            return LicenseState(key, LicenseStatus.UNREACHABLE, error="License server request timed out")
        except httpx.HTTPError as e:
            logger.error("Cannot reach license server for %s: %s", domain, e)
            return LicenseState(key, LicenseStatus.UNREACHABLE, error=f"License server not reachable: {e}")
        except (UnicodeEncodeError, httpx.InvalidURL) as e:
            # raised while building the request, before anything is sent
            logger.error("Cannot build license request for %s: %s", domain, type(e).__name__)
            return LicenseState(key, LicenseStatus.UNREACHABLE, error="License request could not be built")

        if response.status_code != 200:
            logger.error("License verification failed for %s: HTTP %d", domain, response.status_code)
            return LicenseState(
                key,
                LicenseStatus.UNREACHABLE,
                error=f"API request failed (HTTP {response.status_code})",
            )

        try:
            data = response.json()
        except ValueError:
            logger.error("License server returned a non-JSON body for %s", domain)
            return LicenseState(key, LicenseStatus.MALFORMED, error="Malformed response from license server")

        if not isinstance(data, dict) or not isinstance(data.get("valid"), bool):
            logger.error("License server response for %s has no boolean 'valid' field", domain)
            return LicenseState(key, LicenseStatus.MALFORMED, error="Malformed response from license server")

        plan = data.get("plan") if isinstance(data.get("plan"), str) else None

        if not data["valid"]:
            error = data.get("error") if isinstance(data.get("error"), str) else None
            logger.warning("License key rejected for %s", domain)
            return LicenseState(key, LicenseStatus.INVALID, plan=plan, error=error or "Invalid API key")

        logger.debug("License verified for %s (plan=%s)", domain, plan)
        return LicenseState(key, LicenseStatus.VALID, plan=plan)

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
