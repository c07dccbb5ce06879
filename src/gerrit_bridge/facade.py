"""Facade over the Gerrit revision endpoints used by analysis tools.

The facade hides Gerrit's response framing and path conventions:

- response bodies lose their ``)]}'`` XSSI guard before parsing
- the ``/COMMIT_MSG`` pseudo-file never reaches callers
- server paths are keyed by their ``src/``-rooted form so that paths
  reported by a build tool (``module-a/src/main/Foo.java``) can be looked
  up directly

File lists are fetched at most once per revision for the lifetime of a
facade instance.

Example usage:
    >>> facade = GerritFacade.from_config(load_config().gerrit)
    >>> files = facade.list_files("tools/sonar", "master", "I8473b95", "3")
    >>> server_path = files["src/main/java/Foo.java"]
    >>> review = ReviewInput(message="2 issues found")
    >>> review.add_comment(server_path, "Unused import", line=3)
    >>> facade.set_review("tools/sonar", "master", "I8473b95", "3", review)
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import structlog

from gerrit_bridge.codec import JsonCodec, JsonCodecError
from gerrit_bridge.config import GerritConfig
from gerrit_bridge.connector import GerritConnector, ReviewConnector
from gerrit_bridge.logging import get_logger

RESPONSE_PREFIX = ")]}'"
COMMIT_MSG = "/COMMIT_MSG"
SOURCE_ROOT = "src/"

ERROR_LISTING = "Error listing files"
ERROR_SETTING = "Error setting review"


class GerritBridgeError(Exception):
    """Base exception for facade errors.

    Attributes:
        cause: The underlying transport or codec error
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ListingFailedError(GerritBridgeError):
    """Raised when the file list of a revision cannot be fetched or parsed."""

    pass


class ReviewSubmissionError(GerritBridgeError):
    """Raised when a review cannot be encoded or posted."""

    pass


@dataclass(frozen=True)
class RevisionKey:
    """Identity of one revision of one change."""

    project: str
    branch: str
    change_id: str
    revision_id: str

    def __post_init__(self) -> None:
        for name in ("project", "branch", "change_id", "revision_id"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")


def trim_response(response: str) -> str:
    """Remove the first occurrence of the XSSI guard from a response body."""
    return response.replace(RESPONSE_PREFIX, "", 1)


def parse_file_name(file_name: str) -> str:
    """Re-root a path at its first ``src/`` segment.

    Everything up to and including the first ``src/`` is replaced by
    ``src/``; paths without one are returned unchanged.

    >>> parse_file_name("module-a/src/main/foo/Bar.java")
    'src/main/foo/Bar.java'
    >>> parse_file_name("a/src/b/src/c.java")
    'src/b/src/c.java'
    """
    index = file_name.find(SOURCE_ROOT)
    if index < 0:
        return file_name
    return SOURCE_ROOT + file_name[index + len(SOURCE_ROOT):]


class GerritFacade:
    """List revision files and publish reviews through a Gerrit connector.

    Attributes:
        connector: Transport performing the HTTP calls
        codec: JSON codec for response bodies and review payloads
    """

    def __init__(
        self,
        connector: ReviewConnector,
        codec: JsonCodec | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.connector = connector
        self.codec = codec if codec is not None else JsonCodec()
        self.logger = logger if logger is not None else get_logger(__name__)
        self._file_lists: dict[RevisionKey, Mapping[str, str]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: GerritConfig) -> GerritFacade:
        """Create a facade backed by a GerritConnector."""
        return cls(GerritConnector(config))

    def list_files(
        self, project: str, branch: str, change_id: str, revision_id: str
    ) -> Mapping[str, str]:
        """Return the files touched by a revision.

        The result maps each normalized local path to the path exactly as
        Gerrit reports it. The first successful call for a revision is
        cached; later calls return the same read-only mapping without
        contacting the server.

        Args:
            project: Gerrit project name
            branch: Target branch of the change
            change_id: Change identifier
            revision_id: Revision (patch set) identifier

        Returns:
            Read-only mapping of normalized path to server path

        Raises:
            ValueError: If an identity field is empty
            ListingFailedError: If the request fails or the body is not a JSON object
        """
        key = RevisionKey(project, branch, change_id, revision_id)

        # One lock per facade; fetches of different revisions run one at a time
        with self._lock:
            cached = self._file_lists.get(key)
            if cached is not None:
                self.logger.debug(
                    "file_list_cache_hit",
                    change_id=change_id,
                    revision_id=revision_id,
                    file_count=len(cached),
                )
                return cached

            try:
                response = self.connector.list_files(
                    project, branch, change_id, revision_id
                )
                files = self._parse_file_list(response)
            except (OSError, JsonCodecError) as e:
                self.logger.error(
                    "file_list_failed",
                    change_id=change_id,
                    revision_id=revision_id,
                    error=str(e),
                )
                raise ListingFailedError(ERROR_LISTING, cause=e) from e

            file_list = MappingProxyType(files)
            self._file_lists[key] = file_list

        self.logger.info(
            "file_list_fetched",
            change_id=change_id,
            revision_id=revision_id,
            file_count=len(file_list),
        )
        return file_list

    def set_review(
        self,
        project: str,
        branch: str,
        change_id: str,
        revision_id: str,
        review: Any,
    ) -> None:
        """Publish a review onto a revision.

        Args:
            project: Gerrit project name
            branch: Target branch of the change
            change_id: Change identifier
            revision_id: Revision (patch set) identifier
            review: ReviewInput or any JSON-encodable review structure

        Raises:
            ValueError: If an identity field is empty
            ReviewSubmissionError: If the review cannot be encoded or posted
        """
        # Raises ValueError on an empty identity field
        RevisionKey(project, branch, change_id, revision_id)

        try:
            json_body = self.codec.encode(review)
            self.connector.set_review(
                project, branch, change_id, revision_id, json_body
            )
        except (OSError, JsonCodecError) as e:
            self.logger.error(
                "review_submission_failed",
                change_id=change_id,
                revision_id=revision_id,
                error=str(e),
            )
            raise ReviewSubmissionError(ERROR_SETTING, cause=e) from e

        self.logger.info(
            "review_submitted",
            change_id=change_id,
            revision_id=revision_id,
            body_size=len(json_body),
        )

    def _parse_file_list(self, response: str) -> dict[str, str]:
        document = self.codec.decode(trim_response(response))
        if not isinstance(document, dict):
            raise JsonCodecError(
                f"Expected a JSON object of files, got {type(document).__name__}"
            )

        files: dict[str, str] = {}
        for server_path in document:
            if server_path == COMMIT_MSG:
                continue
            files[parse_file_name(server_path)] = server_path
        return files
