"""
Resumable, seekable stream over a remote HTTP resource.

A ResumableStream presents one logical byte stream over any number of
underlying connections. When a connection fails or ends early, the stream
reopens with ``Range: bytes=<position>-`` and carries on, so every byte is
delivered exactly once and in order. Seeking only moves the position; the
next read reopens at the new offset.
"""
from __future__ import annotations

import io
import logging
from typing import Mapping, Optional

import httpx
from tenacity import RetryError

from .errors import (
    ClosedStreamError,
    DigestMismatchError,
    IncompleteBodyError,
    InvalidPositionError,
    RangeGrabError,
    ReadFailedError,
    UnverifiableDigestError,
)
from .integrity import DigestAccumulator, HashingReader, parse_expected_digest
from .settings import Settings
from .transport.body import ResponseBody
from .transport.executor import FetchResult, RequestTemplate, RetryingExecutor

__all__ = ["ResumableStream", "open_url", "RETRYABLE_READ_ERRORS"]

RETRYABLE_READ_ERRORS = (httpx.TransportError, IncompleteBodyError)


class ResumableStream(io.RawIOBase):
    """
    Read-only, seekable raw stream backed by HTTP range requests.

    Not thread-safe: use one instance per thread. Independent streams share
    nothing and can run in parallel.

    Once a read fails for good the error is sticky: it is raised again by
    every read until the stream is seeked or closed.
    """

    def __init__(
        self,
        executor: RetryingExecutor,
        template: RequestTemplate,
        fetched: FetchResult,
        *,
        accumulator: Optional[DigestAccumulator] = None,
    ) -> None:
        super().__init__()
        self._executor = executor
        self._template = template
        self._length = fetched.length
        self._position = 0
        self._accumulator = accumulator or DigestAccumulator()
        self._expected_digest = parse_expected_digest(fetched.headers, self._accumulator.hex_length)
        self._body: Optional[HashingReader] = HashingReader(ResponseBody(fetched.response), self._accumulator)
        self._seeked = False
        self._error: Optional[RangeGrabError] = None

    @property
    def length(self) -> int:
        """Total resource length declared when the stream was opened."""
        return self._length

    @property
    def position(self) -> int:
        return self._position

    @property
    def attempts(self) -> int:
        return self._executor.attempts

    @property
    def expected_digest(self) -> Optional[str]:
        """Whole-object digest advertised by the server, if it sent a usable one."""
        return self._expected_digest

    @property
    def seeked(self) -> bool:
        """True once the stream was seeked away from sequential reading from 0."""
        return self._seeked

    @property
    def resolved_url(self) -> str:
        return self._template.target_url

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def hexdigest(self) -> str:
        """Digest of the bytes delivered since open or the last seek to 0."""
        self._check_open()
        return self._accumulator.hexdigest()

    def readinto(self, buffer) -> int:
        """
        Read up to ``len(buffer)`` bytes into ``buffer``.

        Returns as soon as some bytes are available; 0 means end of stream.

        Raises:
            ClosedStreamError: If the stream is closed
            InvalidPositionError: If the position is past the end of the resource
            ReadFailedError: If every read/reconnect attempt failed
            RequestFailedError: If a reconnect request failed on every attempt
            RangeNotHonoredError: If a reconnect was answered for the wrong range or a changed resource
        """
        self._check_open()
        if self._error is not None:
            raise self._error

        if self._position == self._length:
            self._release()
            return 0
        if self._position > self._length:
            raise InvalidPositionError(
                f"read at position {self._position} past {self._length} boundary",
                self._position,
                self._length,
            )

        target = memoryview(buffer).cast("B")
        if not len(target):
            return 0

        try:
            chunk = self._read_chunk(min(len(target), self._length - self._position))
        except RangeGrabError as e:
            self._error = e
            raise

        n = len(chunk)
        target[:n] = chunk
        if self._position == self._length:
            self._release()
        return n

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """
        Move the read position without touching the network.

        Seeking to 0 restarts the digest; seeking anywhere else makes the
        stream unverifiable until it is seeked back to 0.

        Raises:
            ClosedStreamError: If the stream is closed
            InvalidPositionError: If the new position would be negative
        """
        self._check_open()
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self._length + offset
        else:
            raise ValueError(f"invalid whence ({whence!r}, should be 0, 1 or 2)")

        if position < 0:
            raise InvalidPositionError("cannot seek before beginning", position, self._length)
        if position == self._position:
            return position

        self._release()
        self._error = None
        self._position = position
        if position == 0:
            self._accumulator.reset()
            self._seeked = False
        else:
            self._seeked = True
        return position

    def tell(self) -> int:
        self._check_open()
        return self._position

    def verify(self) -> None:
        """
        Check the delivered bytes against the server-advertised digest.

        Passes trivially when the server advertised no usable digest.

        Raises:
            ClosedStreamError: If the stream is closed
            UnverifiableDigestError: If the stream has been seeked
            DigestMismatchError: If the digests differ
        """
        self._check_open()
        if self._expected_digest is None:
            return
        if self._seeked:
            raise UnverifiableDigestError("cannot verify transfer for streams that have been seeked")

        actual = self._accumulator.hexdigest()
        if actual != self._expected_digest:
            raise DigestMismatchError(
                f"server reported ETag of {self._expected_digest!r} but we calculated a digest of {actual!r}",
                expected=self._expected_digest,
                actual=actual,
            )

    def close(self) -> None:
        """
        Release the connection and make the stream unusable.

        Raises:
            ClosedStreamError: If the stream was already closed
        """
        if self.closed:
            raise ClosedStreamError()
        try:
            self._release()
            self._executor.close()
        finally:
            super().close()

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.closed:
            self.close()

    def _check_open(self) -> None:
        if self.closed:
            raise ClosedStreamError()

    def _release(self) -> None:
        if self._body is not None:
            body, self._body = self._body, None
            body.close()

    def _read_chunk(self, size: int) -> bytes:
        retrying = self._executor.retrying(RETRYABLE_READ_ERRORS, "read")
        try:
            return retrying(self._next_chunk, size)
        except RetryError as e:
            cause = e.last_attempt.exception()
            raise ReadFailedError(self._executor.attempts, self._position, cause) from cause

    def _next_chunk(self, size: int) -> bytes:
        if self._body is None:
            self._body = self._reopen()

        try:
            chunk = self._body.read(size)
        except httpx.TransportError:
            self._release()
            raise

        if not chunk:
            self._release()
            raise IncompleteBodyError(self._position, self._length)

        self._position += len(chunk)
        return chunk

    def _reopen(self) -> HashingReader:
        self._executor.logger.debug("Reopening %s at %d", self._template.target_url, self._position)
        fetched = self._executor.execute(self._template, self._position, self._length)
        return HashingReader(ResponseBody(fetched.response), self._accumulator)


def open_url(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    attempts: Optional[int] = None,
    settings: Optional[Settings] = None,
    client: Optional[httpx.Client] = None,
    logger: Optional[logging.Logger] = None,
) -> ResumableStream:
    """
    Open a remote resource as a ResumableStream.

    Args:
        url: Resource URL; the server must support byte ranges
        headers: Extra headers sent with every request (e.g. Authorization)
        attempts: Attempt budget; None or non-positive uses ``settings.attempts``
        settings: Timeouts, backoff and redirect configuration
        client: httpx client to use; the stream never closes a client it was given
        logger: Receives retry and reconnect messages

    Returns:
        ResumableStream positioned at 0

    Raises:
        RequestFailedError: If the initial request failed on every attempt
        RedirectError: If the redirect chain is rejected
    """
    settings = settings or Settings()
    executor = RetryingExecutor.from_settings(settings, client=client, attempts=attempts, logger=logger)
    template = RequestTemplate(url, headers=httpx.Headers(headers or {}))
    try:
        fetched = executor.execute(template)
    except Exception:
        executor.close()
        raise
    executor.logger.debug("Opened %s (%d bytes)", template.target_url, fetched.length)
    return ResumableStream(executor, template, fetched)
