"""
Sink API Client - Low-level HTTP client shared by the sink adapters.

This handles the raw HTTP communication: token auth, per-call timeouts,
and translating vendor HTTP statuses into SinkError subclasses.
"""

import logging
from typing import Any, Optional

import requests

from ...core.domain.enums import SinkKind
from ...core.exceptions import (
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
    RemoteNotFoundError,
    SinkError,
)


class SinkApiClient:
    """
    Low-level REST client for one sink.

    Handles authentication, request/response, and error handling.
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        base_url: str,
        token: str,
        sink_kind: SinkKind,
        auth_scheme: Optional[str] = "Bearer",
        timeout: float = DEFAULT_TIMEOUT,
        headers: Optional[dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root (e.g., https://api.github.com)
            token: API token
            sink_kind: Which sink errors are attributed to
            auth_scheme: Authorization prefix; None sends the bare token
            timeout: Per-request timeout in seconds
            headers: Extra default headers
            session: Optional pre-built session (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.sink_kind = sink_kind
        self.timeout = timeout
        self.logger = logging.getLogger(f"SinkApiClient[{sink_kind.value}]")

        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if token:
            self.headers["Authorization"] = f"{auth_scheme} {token}" if auth_scheme else token
        if headers:
            self.headers.update(headers)

        self._session = session or requests.Session()
        self._session.headers.update(self.headers)

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make an authenticated request.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            endpoint: Path below base_url, or an absolute URL
            **kwargs: Additional arguments for requests

        Returns:
            Decoded JSON body, the raw text for non-JSON bodies, or {} when empty

        Raises:
            SinkError: On transport or API errors
        """
        url = endpoint if endpoint.startswith("http") else f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault("timeout", self.timeout)

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise SinkError(
                f"Request timed out: {e}",
                sink_kind=self.sink_kind, retryable=True, cause=e,
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise SinkError(
                f"Connection failed: {e}",
                sink_kind=self.sink_kind, retryable=True, cause=e,
            ) from e
        except requests.exceptions.RequestException as e:
            raise SinkError(f"Request failed: {e}", sink_kind=self.sink_kind, cause=e) from e

        return self._handle_response(response, endpoint)

    def get(self, endpoint: str, **kwargs) -> Any:
        return self.request("GET", endpoint, **kwargs)

    def post(self, endpoint: str, json: Any = None, **kwargs) -> Any:
        return self.request("POST", endpoint, json=json, **kwargs)

    def put(self, endpoint: str, json: Any = None, **kwargs) -> Any:
        return self.request("PUT", endpoint, json=json, **kwargs)

    def patch(self, endpoint: str, json: Any = None, **kwargs) -> Any:
        return self.request("PATCH", endpoint, json=json, **kwargs)

    # -------------------------------------------------------------------------
    # Response Handling
    # -------------------------------------------------------------------------

    def _handle_response(
        self,
        response: requests.Response,
        endpoint: str
    ) -> Any:
        """Handle API response and errors."""
        if response.ok:
            if not response.text:
                return {}
            try:
                return response.json()
            except ValueError:
                return response.text

        status = response.status_code
        error_body = response.text[:500] if response.text else ""
        context = {"sink_kind": self.sink_kind, "status_code": status}

        if status == 401:
            raise AuthenticationError(
                f"{self.sink_kind.value} authentication failed. Check the API token.",
                **context,
            )

        if status == 403:
            raise PermissionDeniedError(f"Permission denied for {endpoint}", **context)

        if status == 404:
            raise RemoteNotFoundError(f"Not found: {endpoint}", **context)

        if status == 429:
            raise RateLimitError(
                f"Rate limited on {endpoint}",
                retry_after=self._retry_after(response),
                **context,
            )

        raise SinkError(
            f"API error {status}: {error_body}",
            retryable=status >= 500,
            **context,
        )

    @staticmethod
    def _retry_after(response: requests.Response) -> Optional[float]:
        raw = response.headers.get("Retry-After")
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            return None
