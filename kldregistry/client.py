"""
Registry API client.

Thin wrapper over a ``requests.Session`` for the two calls made during
registration: fetching a nonce and submitting the signed identity.
"""

import logging
from typing import Any, Dict, Optional, Type

import requests
from pydantic import ValidationError

from . import config
from .errors import NonceFetchError, RegistryHTTPError, SubmissionError
from .models import ServiceTargets, SignedRequest, VerifiedOrganization

logger = logging.getLogger(__name__)


def validate_create_response(
    response: requests.Response,
    resource: str,
    error_cls: Type[RegistryHTTPError],
) -> Dict[str, Any]:
    """
    Check a create-style response and return its JSON body.

    Raises:
        error_cls: non-2xx status or a body that is not a JSON object
    """
    if not 200 <= response.status_code < 300:
        raise error_cls(
            f"could not create {resource}. status code: {response.status_code}. "
            f"response: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )
    try:
        body = response.json()
    except ValueError as e:
        raise error_cls(
            f"could not create {resource}: response is not JSON",
            status_code=response.status_code,
            body=response.text,
        ) from e
    if not isinstance(body, dict):
        raise error_cls(
            f"could not create {resource}: unexpected response body",
            status_code=response.status_code,
            body=response.text,
        )
    return body


class RegistryClient:
    """Client for the registry's identity endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = config.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if api_key:
            self._session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _post(self, path: str, body: Dict[str, Any], resource: str, error_cls: Type[RegistryHTTPError]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug("POST %s", url)
        try:
            response = self._session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise error_cls(f"could not create {resource}: {e}") from e
        return validate_create_response(response, resource, error_cls)

    def fetch_nonce(self, targets: ServiceTargets) -> str:
        """
        Ask the registry for a single-use nonce.

        Raises:
            NonceFetchError: transport failure, error status or missing nonce
        """
        body = self._post("/nonce", targets.model_dump(exclude_none=True), "nonce", NonceFetchError)
        nonce = body.get("nonce")
        if not isinstance(nonce, str) or not nonce:
            raise NonceFetchError("registry response did not include a nonce", body=str(body))
        return nonce

    def submit_identity(self, request: SignedRequest) -> VerifiedOrganization:
        """
        Submit a signed registration request.

        Raises:
            SubmissionError: transport failure, error status or bad body
        """
        body = self._post("/identity", request.model_dump(), "identity", SubmissionError)
        try:
            return VerifiedOrganization.model_validate(body)
        except ValidationError as e:
            raise SubmissionError(f"could not create identity: unexpected response body: {e}", body=str(body)) from e

    def close(self) -> None:
        self._session.close()


def get_registry_client(
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
) -> RegistryClient:
    """
    Factory function building a client from configuration.

    Explicit arguments take precedence over KLD_REGISTRY_URL and KLD_API_KEY.
    """
    return RegistryClient(
        base_url=base_url or config.REGISTRY_URL,
        api_key=api_key or config.API_KEY or None,
    )
