"""
regioncache - Value Serialization

Values are stored as UTF-8 JSON text. Serialization goes through pydantic so
models, dataclasses, datetimes, UUIDs and the usual containers are accepted;
anything pydantic cannot serialize is rejected with NotSerializableError.

Typed reads validate the stored JSON text strictly against the requested type
with a pydantic TypeAdapter, so ``get_as(key, User)`` rebuilds a ``User`` model and a
type mismatch raises DeserializationError instead of returning None.
"""

import json
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from ..errors import DeserializationError, NotSerializableError

logger = logging.getLogger(__name__)


class ValueCodec:
    """JSON value codec with pydantic-backed typed decoding."""

    def __init__(self) -> None:
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def encode(self, value: Any) -> str:
        """
        Serialize a value to JSON text.

        Raises:
            NotSerializableError: If the value has no JSON representation
        """
        try:
            return to_json(value).decode("utf-8")
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise NotSerializableError(value, str(e)) from e

    def decode(self, content: str | bytes) -> Any:
        """
        Deserialize JSON text.

        Raises:
            DeserializationError: If the content is not valid JSON
        """
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")
        try:
            return json.loads(content)
        except ValueError as e:
            logger.warning(
                f"Failed to decode cached content: {e}",
                extra={"data_preview": content[:100], "error": str(e)},
            )
            raise DeserializationError(
                f"Stored content is not valid JSON: {e}",
                details={"data_preview": content[:100]},
            ) from e

    def decode_as(self, content: str | bytes, as_type: Any) -> Any:
        """
        Deserialize JSON text as ``as_type``.

        Validation is strict: no coercion between JSON types, so a stored
        ``"123"`` is not an ``int`` and a stored ``1`` is not a ``bool``.
        ISO 8601 strings still validate as dates and datetimes.

        Raises:
            DeserializationError: If the content does not validate against the type
        """
        adapter = self._adapter(as_type)
        try:
            return adapter.validate_json(content, strict=True)
        except ValidationError as e:
            raise DeserializationError(
                f"Cached value cannot be interpreted as {getattr(as_type, '__name__', as_type)}",
                details={"requested_type": str(as_type), "errors": e.errors(include_url=False)},
            ) from e

    def _adapter(self, as_type: Any) -> TypeAdapter[Any]:
        try:
            adapter = self._adapters.get(as_type)
        except TypeError:
            # Unhashable type expression, build an adapter every time
            return TypeAdapter(as_type)
        if adapter is None:
            adapter = TypeAdapter(as_type)
            self._adapters[as_type] = adapter
        return adapter
