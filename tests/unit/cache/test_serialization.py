"""
regioncache - Value Serialization Tests

JSON encoding through pydantic and typed decoding with TypeAdapter.
"""

from datetime import UTC, datetime
from typing import Any

import pytest
from pydantic import BaseModel

from regioncache.cache.serialization import ValueCodec
from regioncache.errors import DeserializationError, NotSerializableError


class User(BaseModel):
    id: int
    name: str


class TestValueCodec:
    """Test suite for ValueCodec."""

    @pytest.fixture
    def codec(self) -> ValueCodec:
        return ValueCodec()

    def test_encode_decode_plain_values(self, codec: ValueCodec, sample_cache_data: dict[str, Any]) -> None:
        for value in sample_cache_data.values():
            assert codec.decode(codec.encode(value)) == value

    def test_encode_model(self, codec: ValueCodec) -> None:
        content = codec.encode(User(id=1, name="ada"))
        assert codec.decode(content) == {"id": 1, "name": "ada"}

    def test_encode_datetime(self, codec: ValueCodec) -> None:
        content = codec.encode({"at": datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)})
        assert codec.decode(content)["at"].startswith("2024-01-02T03:04:05")

    def test_encode_unserializable(self, codec: ValueCodec) -> None:
        with pytest.raises(NotSerializableError) as exc_info:
            codec.encode(object())

        assert exc_info.value.details["value_type"] == "object"

    def test_decode_invalid_json(self, codec: ValueCodec) -> None:
        with pytest.raises(DeserializationError):
            codec.decode("{not json")

    def test_decode_bytes(self, codec: ValueCodec) -> None:
        assert codec.decode(b'{"a": 1}') == {"a": 1}

    def test_decode_as_model(self, codec: ValueCodec) -> None:
        user = codec.decode_as('{"id": 7, "name": "grace"}', User)
        assert isinstance(user, User)
        assert user.name == "grace"

    def test_decode_as_generic_type(self, codec: ValueCodec) -> None:
        assert codec.decode_as("[1, 2, 3]", list[int]) == [1, 2, 3]

    def test_decode_as_mismatch(self, codec: ValueCodec) -> None:
        with pytest.raises(DeserializationError) as exc_info:
            codec.decode_as('{"name": "no id"}', User)

        assert "User" in exc_info.value.message

    @pytest.mark.parametrize(
        ("content", "as_type"),
        [
            ('"123"', int),
            ("1", bool),
            ("1.5", int),
            ("123", str),
            ('{"id": "7", "name": "grace"}', User),
        ],
    )
    def test_decode_as_does_not_coerce(self, codec: ValueCodec, content: str, as_type: Any) -> None:
        with pytest.raises(DeserializationError):
            codec.decode_as(content, as_type)

    def test_decode_as_datetime_from_iso_string(self, codec: ValueCodec) -> None:
        at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)

        assert codec.decode_as(codec.encode(at), datetime) == at

    def test_decode_as_reuses_adapters(self, codec: ValueCodec) -> None:
        codec.decode_as("1", int)
        codec.decode_as("2", int)
        assert list(codec._adapters) == [int]
