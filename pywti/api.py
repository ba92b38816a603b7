"""API client for WebTranslateIt."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from . import __version__
from .config import config
from .exceptions import (
    WtiAPIError,
    WtiConfigError,
    WtiInvalidResponseError,
    WtiNetworkError,
)
from .utils import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Kinds of transport failure."""

    TIMEOUT = "timeout"
    """The connect or read timeout of the transport expired"""

    OTHER = "other"
    """Any other transport or protocol error"""


@dataclass(frozen=True)
class TransportResult:
    """Outcome of sending one request.

    Exactly one of ``response`` and ``error_kind`` is set.
    """

    response: httpx.Response | None = None
    error_kind: ErrorKind | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        """Whether the request round-tripped."""
        return self.response is not None


class WtiClient:
    """Client for interacting with the WebTranslateIt API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the API client.

        Args:
            api_key: Optional project API key (uses config if not provided)
            api_url: Optional API host URL (uses config if not provided)
            timeout: Transport timeout in seconds (default: 30.0)
            transport: Optional httpx transport, mainly for testing
        """
        self.api_key = api_key or config.api_key
        self.api_url = api_url or config.api_url
        self.timeout = timeout
        self._transport = transport

        if not self.api_key:
            raise WtiConfigError(
                "API key not configured. Please set WTI_API_KEY environment "
                "variable or run 'pywti init'."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.api_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> WtiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def decorate(self, request: httpx.Request) -> httpx.Request:
        """Attach the client identification headers to a request.

        The project key travels in the URL path, so no credential header
        is needed.

        Args:
            request: Request to decorate

        Returns:
            The same request
        """
        request.headers["X-Client-Name"] = "pywti"
        request.headers["X-Client-Version"] = __version__
        return request

    def send(
        self,
        method: str,
        path: str,
        files: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
    ) -> TransportResult:
        """Send one request without retrying.

        Transport failures are returned, not raised, so the caller can
        decide what to retry.

        Args:
            method: HTTP method
            path: URL path, e.g. ``/api/projects/KEY/files``
            files: Optional multipart file parts
            data: Optional multipart form fields

        Returns:
            TransportResult with either the response or the error kind
        """
        client = self._get_client()
        request = self.decorate(
            client.build_request(method, path, files=files, data=data)
        )
        logger.debug(f"{method} {path}")
        try:
            response = client.send(request)
        except httpx.TimeoutException as e:
            logger.debug(f"{method} {path} timed out: {e}")
            return TransportResult(error_kind=ErrorKind.TIMEOUT, error=str(e))
        except httpx.HTTPError as e:
            logger.debug(f"{method} {path} failed: {e}")
            return TransportResult(error_kind=ErrorKind.OTHER, error=str(e))
        logger.debug(f"{method} {path} -> {response.status_code}")
        return TransportResult(response=response)

    # =========================
    # Project Operations
    # =========================

    def get_project(self) -> dict[str, Any]:
        """Fetch the project description, including its file listing.

        Returns:
            The ``project`` object of the API response

        Raises:
            WtiNetworkError: If the request could not be completed
            WtiAPIError: If the API answers with an error status
            WtiInvalidResponseError: If the response is not the expected JSON
        """
        result = self.send("GET", f"/api/projects/{self.api_key}.json")
        if result.response is None:
            raise WtiNetworkError(f"Network error: {result.error}")

        response = result.response
        if response.status_code == 401 or response.status_code == 404:
            raise WtiAPIError("Invalid API key or project not found")
        if response.status_code >= 400:
            raise WtiAPIError(
                f"API request failed with status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise WtiInvalidResponseError(
                "Invalid JSON response from server - "
                "check your API key and network connection"
            ) from e

        if not isinstance(payload, dict) or not isinstance(
            payload.get("project"), dict
        ):
            raise WtiInvalidResponseError("Response has no project description")
        return payload["project"]
