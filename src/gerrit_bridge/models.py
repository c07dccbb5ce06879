"""Review payload models for the Gerrit set-review endpoint.

These Pydantic models mirror Gerrit's ``ReviewInput`` and ``CommentInput``
entities, restricted to the fields an analysis tool publishes: a summary
message, label votes and inline file comments.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ReviewFileComment(BaseModel):
    """Inline comment attached to one file of a revision.

    Attributes:
        message: Comment text
        line: 1-based line number, or None for a file-level comment
    """

    message: str = Field(..., min_length=1, description="Comment text")
    line: int | None = Field(None, ge=1, description="1-based line number")


class ReviewInput(BaseModel):
    """Review submitted onto a revision.

    Attributes:
        message: Optional summary message shown on the change
        labels: Label votes, e.g. ``{"Code-Review": -1}``
        comments: Inline comments keyed by server-side file path
        notify: Optional notification scope (NONE, OWNER, OWNER_REVIEWERS, ALL)
    """

    message: str | None = Field(None, description="Summary message")
    labels: dict[str, int] = Field(default_factory=dict)
    comments: dict[str, list[ReviewFileComment]] = Field(default_factory=dict)
    notify: str | None = Field(None, description="Notification scope")

    @field_validator("notify")
    @classmethod
    def validate_notify(cls, v: str | None) -> str | None:
        """Validate notify scope is recognized.

        Args:
            v: Notify scope to validate

        Returns:
            Uppercase notify scope

        Raises:
            ValueError: If scope is not recognized
        """
        if v is None:
            return None
        valid_scopes = {"NONE", "OWNER", "OWNER_REVIEWERS", "ALL"}
        v_upper = v.upper()
        if v_upper not in valid_scopes:
            raise ValueError(f"Invalid notify scope: {v}. Must be one of {valid_scopes}")
        return v_upper

    def add_comment(self, path: str, message: str, line: int | None = None) -> None:
        """Append an inline comment for ``path``."""
        comment = ReviewFileComment(message=message, line=line)
        self.comments.setdefault(path, []).append(comment)

    def set_label(self, name: str, value: int) -> None:
        """Set the vote for label ``name``."""
        self.labels[name] = value

    @property
    def comment_count(self) -> int:
        """Total number of inline comments across all files."""
        return sum(len(file_comments) for file_comments in self.comments.values())

    def is_empty(self) -> bool:
        """Return True if the review carries no message, vote or comment."""
        return not self.message and not self.labels and not self.comments
