"""
Whole-file downloads on top of ResumableStream.

Streams a remote resource to disk with an atomic write (temp file + rename),
so a failed or unverifiable transfer never leaves a partial file at the
destination.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import httpx

from .settings import Settings
from .stream import ResumableStream, open_url

__all__ = ["DownloadResult", "fetch_to_file", "write_stream_atomically", "CHUNK_SIZE"]

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB


@dataclass(frozen=True)
class DownloadResult:
    """Outcome of fetch_to_file."""
    path: Path
    size: int
    digest: str
    expected_digest: Optional[str]
    verified: bool
    resolved_url: str


def write_stream_atomically(target_path: Path, stream: ResumableStream, *, verify: bool = True) -> int:
    """
    Copy a stream to ``target_path`` through a temp file in the same directory.

    Args:
        target_path: Final path for the file
        stream: Open stream positioned where copying should start
        verify: Check the stream digest before the file is moved into place

    Returns:
        Number of bytes written

    Raises:
        IntegrityError: If verification fails
        RangeGrabError: If the transfer fails
        OSError: If file operations fail
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(prefix=".rangegrab.tmp.", dir=target_path.parent)
    temp_path = Path(temp_name)
    written = 0

    try:
        with os.fdopen(fd, "wb", buffering=0) as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
                written += len(chunk)

            out.flush()
            os.fsync(out.fileno())

        if verify:
            stream.verify()

        os.replace(temp_path, target_path)

    except Exception:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        raise

    return written


def fetch_to_file(
    url: str,
    dest: str | Path,
    *,
    settings: Optional[Settings] = None,
    headers: Optional[Mapping[str, str]] = None,
    attempts: Optional[int] = None,
    verify: bool = True,
    client: Optional[httpx.Client] = None,
) -> DownloadResult:
    """
    Download ``url`` to ``dest``, resuming across connection failures.

    Args:
        url: Resource URL
        dest: Destination file path
        settings: Stream configuration
        headers: Extra request headers
        attempts: Attempt budget override
        verify: Verify against the server digest when one is advertised
        client: Optional httpx client (left open)

    Returns:
        DownloadResult describing the written file
    """
    target = Path(dest)
    with open_url(url, headers=headers, attempts=attempts, settings=settings, client=client) as stream:
        logger.info("Downloading %s (%d bytes) to %s", url, stream.length, target)
        size = write_stream_atomically(target, stream, verify=verify)
        return DownloadResult(
            path=target,
            size=size,
            digest=stream.hexdigest(),
            expected_digest=stream.expected_digest,
            verified=verify and stream.expected_digest is not None,
            resolved_url=stream.resolved_url,
        )
