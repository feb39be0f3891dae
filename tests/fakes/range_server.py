"""
In-process object store that serves byte ranges over httpx.MockTransport.

Knobs on FakeRangeServer reproduce the failure modes the stream must
survive: connections that break mid-body, bodies that end early, servers
that ignore Range, transient error responses and redirects.
"""
from __future__ import annotations

import hashlib
import re
from typing import Dict, List, Optional

import httpx

__all__ = ["FakeRangeServer", "ScriptedBody", "OBJECT_URL"]

OBJECT_URL = "http://objects.test/bucket/object.bin"

_RANGE = re.compile(r"^bytes=(\d+)-$")

ERROR_BODY = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b"<Error><Code>%s</Code><Message>%s</Message>"
    b"<Resource>%s</Resource><RequestId>%s</RequestId></Error>"
)


class ScriptedBody(httpx.SyncByteStream):
    """
    Response body that yields ``data`` in small chunks.

    Stops after ``limit`` bytes; if ``error`` is set it is raised at that
    point, otherwise the body just ends.
    """

    def __init__(
        self,
        data: bytes,
        *,
        limit: Optional[int] = None,
        error: Optional[Exception] = None,
        chunk_size: int = 64,
    ) -> None:
        self.data = data
        self.limit = len(data) if limit is None else min(limit, len(data))
        self.error = error
        self.chunk_size = chunk_size
        self.closed = False

    def __iter__(self):
        sent = 0
        while sent < self.limit:
            piece = self.data[sent:min(sent + self.chunk_size, self.limit)]
            sent += len(piece)
            yield piece
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        self.closed = True


class FakeRangeServer:
    """
    In-memory single object store for testing.

    This is a test double; not for production use. Every request it sees is
    appended to ``requests``.

    Attributes:
        content: Object bytes served at ``path``
        etag: ETag header value; defaults to the quoted MD5 of content, None omits it
        break_after: Each connection delivers at most this many bytes, then resets
        truncate_after: Each connection delivers at most this many bytes, then ends cleanly
        always_fail: Every body read fails before delivering anything
        fail_requests: Number of upcoming requests answered with 503 SlowDown
        ignore_ranges: Answer ranged requests with the full object and no Content-Range
        range_shift: Added to the start reported in Content-Range
        content_range: Replaces the Content-Range header of ranged responses
        chunked: Omit Content-Length
        redirects: Path -> Location for 302 responses
    """

    def __init__(self, content: bytes, *, path: str = "/bucket/object.bin", etag: Optional[str] = "md5") -> None:
        self.content = content
        self.path = path
        self.etag = f'"{hashlib.md5(content).hexdigest()}"' if etag == "md5" else etag
        self.break_after: Optional[int] = None
        self.truncate_after: Optional[int] = None
        self.always_fail = False
        self.fail_requests = 0
        self.ignore_ranges = False
        self.range_shift = 0
        self.content_range: Optional[str] = None
        self.chunked = False
        self.redirects: Dict[str, str] = {}
        self.requests: List[httpx.Request] = []
        self.bodies: List[ScriptedBody] = []

    @property
    def ranges(self) -> List[Optional[str]]:
        """Range header of every object request, in order (None when absent)."""
        return [r.headers.get("Range") for r in self.requests if r.url.path == self.path]

    def client(self, **kwargs) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler), **kwargs)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path in self.redirects:
            return httpx.Response(302, headers={"Location": self.redirects[request.url.path]})

        if self.fail_requests > 0:
            self.fail_requests -= 1
            return self._error(503, b"SlowDown", b"Please reduce your request rate.")

        if request.url.path != self.path:
            return self._error(404, b"NoSuchKey", b"The specified key does not exist.")

        status = 200
        start = 0
        headers = {"Content-Type": "application/octet-stream", "Accept-Ranges": "bytes"}
        if self.etag is not None:
            headers["ETag"] = self.etag

        match = _RANGE.match(request.headers.get("Range", ""))
        if match and not self.ignore_ranges:
            start = int(match.group(1))
            if start >= len(self.content):
                return self._error(416, b"InvalidRange", b"The requested range is not satisfiable")
            status = 206
            headers["Content-Range"] = (
                f"bytes {start + self.range_shift}-{len(self.content) - 1}/{len(self.content)}"
            )
            if self.content_range is not None:
                headers["Content-Range"] = self.content_range

        data = self.content[start:]
        if not self.chunked:
            headers["Content-Length"] = str(len(data))

        body = self._body(data)
        self.bodies.append(body)
        return httpx.Response(status, headers=headers, stream=body)

    def _body(self, data: bytes) -> ScriptedBody:
        if self.always_fail:
            return ScriptedBody(data, limit=0, error=httpx.ReadError("connection reset by peer"))
        if self.break_after is not None and len(data) > self.break_after:
            return ScriptedBody(data, limit=self.break_after, error=httpx.ReadError("connection reset by peer"))
        if self.truncate_after is not None:
            return ScriptedBody(data, limit=self.truncate_after)
        return ScriptedBody(data)

    def _error(self, status: int, code: bytes, message: bytes) -> httpx.Response:
        return httpx.Response(
            status,
            headers={"Content-Type": "application/xml"},
            content=ERROR_BODY % (code, message, self.path.encode(), b"REQ123"),
        )
