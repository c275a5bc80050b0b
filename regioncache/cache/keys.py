"""
regioncache - Key Codec

Storage keys have the shape ``PREFIX DELIM region DELIM key``. An unnamed
region still produces both delimiters (``cache::key``), so the enumeration
prefix of one region never matches a region whose name merely starts with it.
"""

from typing import Any


class KeyCodec:
    """Maps (region, application key) to storage keys and back."""

    def __init__(self, prefix: str = "cache", delimiter: str = ":"):
        if not prefix:
            raise ValueError("key prefix must not be empty")
        if not delimiter:
            raise ValueError("key delimiter must not be empty")
        if delimiter in prefix:
            raise ValueError(f"key prefix {prefix!r} must not contain the delimiter {delimiter!r}")
        self.prefix = prefix
        self.delimiter = delimiter

    @staticmethod
    def normalize_region(region: str | None) -> str:
        """Blank or missing region names map to the unnamed region ``""``."""
        if region is None or not region.strip():
            return ""
        return region

    def validate_region(self, region: str | None) -> str:
        """Normalize ``region`` and reject names that would make storage keys ambiguous."""
        name = self.normalize_region(region)
        if self.delimiter in name:
            raise ValueError(f"region name {name!r} must not contain the key delimiter {self.delimiter!r}")
        return name

    def region_prefix(self, region: str | None) -> str:
        """Prefix shared by every storage key of ``region``."""
        d = self.delimiter
        return f"{self.prefix}{d}{self.normalize_region(region)}{d}"

    def encode(self, region: str | None, key: Any) -> str:
        """Build the storage key for ``key`` in ``region``."""
        return f"{self.region_prefix(region)}{key}"

    def decode(self, storage_key: str) -> str | None:
        """
        Recover the region name from a storage key.

        Returns:
            The region name, or None if ``storage_key`` is not a cache key
        """
        tokens = storage_key.split(self.delimiter, 2)
        if len(tokens) > 2 and tokens[0] == self.prefix:
            return tokens[1]
        return None

    def __repr__(self) -> str:
        return f"KeyCodec(prefix={self.prefix!r}, delimiter={self.delimiter!r})"
