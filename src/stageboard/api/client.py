"""Project REST API client."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    """Base exception for API client errors.

    `message` is the server's own error text when the response carried one,
    so callers can show it to the user verbatim.
    """

    def __init__(
        self,
        description: str,
        status_code: int | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(description)
        self.status_code = status_code
        self.message = message


class ApiAuthError(ApiClientError):
    """Authentication failed."""

    pass


class ApiForbiddenError(ApiClientError):
    """Permission denied."""

    pass


class ApiNotFoundError(ApiClientError):
    """Resource not found."""

    pass


class ApiRejectedError(ApiClientError):
    """Server refused the request (validation or server-side failure)."""

    pass


def _error_message(response: httpx.Response) -> str | None:
    """Extract the `error` field of a JSON error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error:
            return error
    return None


class ProjectApiClient:
    """Client for the project endpoints of the backend.

    Provides a thin wrapper around the JSON API with:
    - Optional bearer token authentication
    - Paths relative to `/api/projects/{project_id}`
    - Error mapping and request timing logs
    """

    def __init__(
        self,
        base_url: str,
        project_id: str,
        token: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Backend root URL, e.g. https://erp.example.com
            project_id: Project whose board is being shown
            token: Optional bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.project_id = project_id
        self._project_url = f"{self.base_url}/api/projects/{project_id}"
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(headers=headers, timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> ProjectApiClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def url_for(self, path: str) -> str:
        """Absolute URL of a project-relative path."""
        return f"{self._project_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, json: Any | None = None) -> dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path relative to the project URL, e.g. "stages/reorder"
            json: Optional JSON body

        Returns:
            Decoded response body

        Raises:
            ApiAuthError: 401
            ApiForbiddenError: 403
            ApiNotFoundError: 404
            ApiRejectedError: any other non-success status
            ApiClientError: transport failure or invalid JSON
        """
        url = self.url_for(path)
        logger.debug("%s %s: body=%s", method, path, json)

        start_time = time.monotonic()
        try:
            response = self._client.request(method, url, json=json)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s %s failed after %.0fms: %s", method, path, elapsed_ms, e)
            raise ApiClientError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code

        if status >= 400:
            message = _error_message(response)
            logger.error(
                "%s %s: HTTP %d %s (%.0fms)", method, path, status, message or "", elapsed_ms
            )
            if status == 401:
                raise ApiAuthError(
                    "Authentication failed. Check your API token.", status, message
                )
            if status == 403:
                raise ApiForbiddenError(message or "Permission denied", status, message)
            if status == 404:
                raise ApiNotFoundError(message or "Resource not found", status, message)
            raise ApiRejectedError(message or f"HTTP {status}", status, message)

        try:
            result = response.json()
        except ValueError as e:
            logger.error("%s %s: Invalid JSON response (%.0fms)", method, path, elapsed_ms)
            raise ApiClientError(f"Invalid JSON response: {e}", status) from e

        if not isinstance(result, dict):
            raise ApiClientError("Unexpected response shape: expected a JSON object", status)

        logger.info("%s %s: %d (%.0fms)", method, path, status, elapsed_ms)
        return result

    def get(self, path: str) -> dict[str, Any]:
        """GET a project-relative path."""
        return self.request("GET", path)

    def post(self, path: str, json: Any | None = None) -> dict[str, Any]:
        """POST a JSON body to a project-relative path."""
        return self.request("POST", path, json=json)
