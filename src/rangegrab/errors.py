"""
Range stream error classes.

Provides a clear taxonomy of errors that can occur while opening, reading,
seeking and verifying a remote byte stream. Recoverable failures (transport
errors, bad responses) are retried internally; only the classes below ever
reach a caller.
"""
from __future__ import annotations

from typing import Optional


class RangeGrabError(Exception):
    """Base class for all rangegrab errors."""
    pass


class ResponseValidationError(RangeGrabError):
    """
    The server answered, but not with something a stream can be built on.

    Retried by the executor like a transport failure.
    """
    pass


class ResponseStatusError(ResponseValidationError):
    """
    Error response from the server (status >= 300).

    Carries the fields of an S3-style XML error document when one was sent:
    http://docs.aws.amazon.com/AmazonS3/latest/API/ErrorResponses.html
    When the body is missing or unparseable, ``code`` is the status line.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str = "",
        resource: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(f"[{code}]: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message
        self.resource = resource
        self.request_id = request_id


class UnknownLengthError(ResponseValidationError):
    """
    Response without a declared Content-Length.

    Chunked or close-delimited bodies cannot be resumed, so they are rejected.
    """
    pass


class RedirectError(RangeGrabError):
    """
    Redirect chain rejected.

    Raised when:
    - A non-GET request is redirected
    - The chain is longer than the configured maximum
    """
    pass


class RangeNotHonoredError(RangeGrabError):
    """
    A ranged request came back without a matching Content-Range.

    The server ignored the Range header; reading on would duplicate bytes.
    Never retried.
    """

    def __init__(self, message: str, offset: int, content_range: Optional[str] = None):
        super().__init__(message)
        self.offset = offset
        self.content_range = content_range


class RequestFailedError(RangeGrabError):
    """Every attempt of a request failed; ``cause`` is the last failure."""

    def __init__(self, attempts: int, cause: Optional[BaseException]):
        super().__init__(f"request failed after {attempts} attempts: {cause}")
        self.attempts = attempts
        self.cause = cause


class ReadFailedError(RangeGrabError):
    """Reading the body failed on every attempt, reconnects included."""

    def __init__(self, attempts: int, position: int, cause: Optional[BaseException]):
        super().__init__(
            f"unable to read from response body after {attempts} attempts "
            f"at position {position}: {cause}"
        )
        self.attempts = attempts
        self.position = position
        self.cause = cause


class IncompleteBodyError(RangeGrabError):
    """The underlying body ended before the declared length was delivered."""

    def __init__(self, position: int, length: int):
        super().__init__(f"response body ended at position {position} of {length}")
        self.position = position
        self.length = length


class ClosedStreamError(RangeGrabError, ValueError):
    """Operation on a closed stream."""

    def __init__(self, message: str = "I/O operation on closed stream"):
        super().__init__(message)


class InvalidPositionError(RangeGrabError, ValueError):
    """
    Stream position outside the resource.

    Raised when:
    - Seeking before the beginning
    - Reading at a position past the declared length
    """

    def __init__(self, message: str, position: int, length: int):
        super().__init__(message)
        self.position = position
        self.length = length


class IntegrityError(RangeGrabError):
    """Base class for digest verification failures."""
    pass


class UnverifiableDigestError(IntegrityError):
    """The stream was seeked, so its digest no longer covers the whole object."""
    pass


class DigestMismatchError(IntegrityError):
    """Digest of the delivered bytes differs from the one the server advertised."""

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


__all__ = [
    "RangeGrabError",
    "ResponseValidationError",
    "ResponseStatusError",
    "UnknownLengthError",
    "RedirectError",
    "RangeNotHonoredError",
    "RequestFailedError",
    "ReadFailedError",
    "IncompleteBodyError",
    "ClosedStreamError",
    "InvalidPositionError",
    "IntegrityError",
    "UnverifiableDigestError",
    "DigestMismatchError",
]
