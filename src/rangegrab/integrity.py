"""
Integrity checking for streamed content.

The digest is computed inline: a HashingReader feeds every chunk it hands to
the caller into a DigestAccumulator, so the digest always covers exactly the
delivered bytes, across any number of reconnects.
"""
from __future__ import annotations

import hashlib
import re
from typing import Callable, Mapping, Optional, Protocol

__all__ = ["DigestAccumulator", "HashingReader", "parse_expected_digest", "Readable"]


class Readable(Protocol):
    """Anything with ``read(size)`` and ``close()``."""

    def read(self, size: int) -> bytes: ...

    def close(self) -> None: ...


class DigestAccumulator:
    """Running hash over delivered bytes that can be reset to empty."""

    def __init__(self, factory: Callable = hashlib.md5) -> None:
        self._factory = factory
        self._hash = factory()

    @property
    def hex_length(self) -> int:
        """Length of the hex digest, e.g. 32 for MD5."""
        return self._hash.digest_size * 2

    def update(self, data: bytes) -> None:
        self._hash.update(data)

    def reset(self) -> None:
        self._hash = self._factory()

    def digest(self) -> bytes:
        return self._hash.digest()

    def hexdigest(self) -> str:
        return self._hash.hexdigest()


class HashingReader:
    """Forwards reads from ``body`` and feeds each delivered chunk to ``accumulator``."""

    def __init__(self, body: Readable, accumulator: DigestAccumulator) -> None:
        self.body = body
        self.accumulator = accumulator

    def read(self, size: int) -> bytes:
        chunk = self.body.read(size)
        if chunk:
            self.accumulator.update(chunk)
        return chunk

    def close(self) -> None:
        self.body.close()


def parse_expected_digest(
    headers: Mapping[str, str],
    hex_length: int = 32,
    header: str = "ETag",
) -> Optional[str]:
    """
    Extract a whole-object digest from a response header.

    Object stores only use the content MD5 as ETag for single-part uploads.
    Multi-part ETags (``"<hex>-<parts>"``) and weak validators are not
    digests of the content and are ignored.

    Args:
        headers: Response headers
        hex_length: Expected number of hex characters
        header: Header carrying the digest

    Returns:
        Lowercase hex digest, or None if absent or not a plain digest
    """
    value = headers.get(header)
    if not value:
        return None

    value = value.strip()
    if value.startswith("W/"):
        return None
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1]

    if len(value) != hex_length or not re.fullmatch(r"[0-9a-fA-F]+", value):
        return None
    return value.lower()
