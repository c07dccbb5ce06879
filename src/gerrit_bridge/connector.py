"""HTTP connector for the Gerrit REST API.

This module provides a synchronous httpx client for the two Gerrit
endpoints the facade needs: listing the files of a revision and posting a
review onto it. Requests go to the authenticated ``/a/`` namespace using
either HTTP basic or digest authentication.

Example usage:
    >>> from gerrit_bridge.config import GerritConfig
    >>> config = GerritConfig(host="review.example.org", username="bot", password="pw")
    >>> with GerritConnector(config) as connector:
    ...     body = connector.list_files("tools/sonar", "master", "I8473b95", "3")
"""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import quote

import httpx

from gerrit_bridge.config import GerritConfig
from gerrit_bridge.logging import get_logger

JSON_CONTENT_TYPE = "application/json; charset=UTF-8"


class GerritConnectorError(OSError):
    """Raised when a request to Gerrit fails at the network or HTTP level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ReviewConnector(Protocol):
    """Transport contract the facade depends on.

    Implementations signal transport failures with ``OSError``;
    GerritConnectorError is one.
    """

    def list_files(
        self, project: str, branch: str, change_id: str, revision_id: str
    ) -> str: ...

    def set_review(
        self,
        project: str,
        branch: str,
        change_id: str,
        revision_id: str,
        json_body: str,
    ) -> None: ...


def change_path(project: str, branch: str, change_id: str) -> str:
    """Build the ``project~branch~change_id`` change identifier.

    Each part is percent-encoded on its own so that slashes in project or
    branch names become ``%2F`` as Gerrit requires.
    """
    return "~".join(quote(part, safe="") for part in (project, branch, change_id))


def revision_path(project: str, branch: str, change_id: str, revision_id: str) -> str:
    """Build the authenticated REST path of one revision."""
    return (
        f"/a/changes/{change_path(project, branch, change_id)}"
        f"/revisions/{quote(revision_id, safe='')}"
    )


class GerritConnector:
    """Synchronous client for the Gerrit revision endpoints.

    The underlying ``httpx.Client`` is created on first use and reused for
    every request until ``close`` is called.

    Attributes:
        config: Gerrit connection settings
    """

    def __init__(self, config: GerritConfig) -> None:
        """Initialize Gerrit connector.

        Args:
            config: GerritConfig instance with connection settings
        """
        self.config = config
        self._client: httpx.Client | None = None
        self.logger = get_logger(__name__)
        self.logger.info(
            "gerrit_connector_initialized",
            base_url=config.base_url,
            auth_scheme=config.auth_scheme,
            username=config.username,
        )

    def __enter__(self) -> GerritConnector:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def auth(self) -> httpx.Auth:
        """Authentication flow matching the configured scheme."""
        if self.config.auth_scheme == "basic":
            return httpx.BasicAuth(self.config.username, self.config.password)
        return httpx.DigestAuth(self.config.username, self.config.password)

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.base_url,
                auth=self.auth,
                timeout=httpx.Timeout(self.config.timeout_seconds),
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def list_files(
        self, project: str, branch: str, change_id: str, revision_id: str
    ) -> str:
        """Fetch the raw file list body of a revision.

        Returns:
            Response body as sent by Gerrit, XSSI prefix included

        Raises:
            GerritConnectorError: On network failure or non-2xx response
        """
        path = revision_path(project, branch, change_id, revision_id) + "/files/"
        response = self._send("GET", path)
        return response.text

    def set_review(
        self,
        project: str,
        branch: str,
        change_id: str,
        revision_id: str,
        json_body: str,
    ) -> None:
        """Post a review onto a revision.

        Args:
            json_body: Serialized ReviewInput

        Raises:
            GerritConnectorError: On network failure or non-2xx response
        """
        path = revision_path(project, branch, change_id, revision_id) + "/review"
        self._send(
            "POST",
            path,
            content=json_body.encode("utf-8"),
            headers={"Content-Type": JSON_CONTENT_TYPE},
        )

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = self._get_client()
        self.logger.debug("gerrit_request", method=method, path=path)

        try:
            response = client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            self.logger.error("gerrit_request_error", method=method, path=path, error=str(e))
            raise GerritConnectorError(
                f"{method} {path} failed: {e}"
            ) from e

        if not response.is_success:
            self.logger.warning(
                "gerrit_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise GerritConnectorError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        self.logger.debug(
            "gerrit_request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return response
