"""Sized reads over a streamed httpx response."""
from __future__ import annotations

import httpx

__all__ = ["ResponseBody"]


class ResponseBody:
    """
    Adapts ``response.iter_raw()`` to ``read(size)``.

    Holds at most one pending chunk. ``read`` returns ``b""`` once the
    underlying body has ended; transport errors propagate unchanged.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._chunks = response.iter_raw()
        self._pending = b""

    def read(self, size: int) -> bytes:
        if not self._pending:
            self._pending = next(self._chunks, b"")
        chunk, self._pending = self._pending[:size], self._pending[size:]
        return chunk

    def close(self) -> None:
        self._response.close()
