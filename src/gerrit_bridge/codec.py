"""JSON codec used to talk to the Gerrit REST API."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel


class JsonCodecError(ValueError):
    """Raised when a value cannot be encoded or a document cannot be decoded."""

    pass


class JsonCodec:
    """Encode review payloads and decode Gerrit response bodies.

    Pydantic models are dumped in JSON mode with ``None`` fields dropped,
    which matches the way Gerrit expects optional review fields to be
    omitted rather than sent as ``null``.
    """

    def __init__(self, sort_keys: bool = False) -> None:
        self.sort_keys = sort_keys

    def encode(self, value: Any) -> str:
        """Serialize a value to a JSON string.

        Args:
            value: Pydantic model or plain JSON-compatible structure

        Returns:
            JSON text

        Raises:
            JsonCodecError: If the value is cyclic or holds unencodable objects
        """
        try:
            if isinstance(value, BaseModel):
                value = value.model_dump(mode="json", exclude_none=True)
            return json.dumps(value, default=self._default, sort_keys=self.sort_keys)
        except (TypeError, ValueError) as e:
            raise JsonCodecError(f"Cannot encode {type(value).__name__}: {e}") from e

    def decode(self, text: str) -> Any:
        """Parse JSON text.

        Raises:
            JsonCodecError: If the text is not valid JSON
        """
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise JsonCodecError(f"Invalid JSON document: {e}") from e

    @staticmethod
    def _default(obj: Any) -> Any:
        # Nested models inside plain dicts
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json", exclude_none=True)
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
