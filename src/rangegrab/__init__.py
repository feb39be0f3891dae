"""
rangegrab - resumable, seekable streams over HTTP range requests.

Typical use::

    from rangegrab import open_url

    with open_url("https://bucket.example.com/data.bin") as stream:
        data = stream.read()
        stream.verify()
"""
from __future__ import annotations

import logging

from .download import DownloadResult, fetch_to_file
from .errors import (
    ClosedStreamError,
    DigestMismatchError,
    IntegrityError,
    InvalidPositionError,
    RangeGrabError,
    RangeNotHonoredError,
    ReadFailedError,
    RedirectError,
    RequestFailedError,
    ResponseStatusError,
    ResponseValidationError,
    UnknownLengthError,
    UnverifiableDigestError,
)
from .settings import Settings, create_settings_from_env
from .stream import ResumableStream, open_url

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "open_url",
    "ResumableStream",
    "fetch_to_file",
    "DownloadResult",
    "Settings",
    "create_settings_from_env",
    "RangeGrabError",
    "ResponseValidationError",
    "ResponseStatusError",
    "UnknownLengthError",
    "RedirectError",
    "RangeNotHonoredError",
    "RequestFailedError",
    "ReadFailedError",
    "ClosedStreamError",
    "InvalidPositionError",
    "IntegrityError",
    "UnverifiableDigestError",
    "DigestMismatchError",
]
