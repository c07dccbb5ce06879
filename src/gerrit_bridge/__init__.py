"""Gerrit Bridge - review publishing facade for Gerrit Code Review.

This package lets analysis tools list the files touched by a Gerrit
revision and publish review comments and label scores back onto it.
"""

from __future__ import annotations

from gerrit_bridge.facade import (
    GerritBridgeError,
    GerritFacade,
    ListingFailedError,
    ReviewSubmissionError,
)
from gerrit_bridge.models import ReviewFileComment, ReviewInput

__version__ = "0.1.0"

__all__ = [
    "GerritBridgeError",
    "GerritFacade",
    "ListingFailedError",
    "ReviewFileComment",
    "ReviewInput",
    "ReviewSubmissionError",
]
