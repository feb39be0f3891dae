"""
Response validation.

Classifies a completed response as usable or as a ResponseValidationError.
Error bodies from S3-compatible stores are parsed for their error code,
message, resource and request id.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

import httpx

from ..errors import ResponseStatusError, UnknownLengthError

__all__ = ["check_response", "parse_error_body", "status_line"]

XML_CONTENT_TYPES = ("application/xml", "text/xml")


def status_line(response: httpx.Response) -> str:
    """Return e.g. ``"404 Not Found"``."""
    return f"{response.status_code} {response.reason_phrase}".strip()


def parse_error_body(body: bytes) -> Optional[dict]:
    """
    Parse an S3-style ``<Error>`` document.

    Returns:
        Dict with code, message, resource and request_id keys, or None when
        the body is not a parseable error document
    """
    if not body:
        return None
    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        return None

    # Namespaced documents (e.g. some S3 clones) still carry plain child tags
    def text(tag: str) -> Optional[str]:
        for child in root:
            if child.tag.rsplit("}", 1)[-1] == tag:
                return (child.text or "").strip()
        return None

    code = text("Code")
    if not code:
        return None
    return {
        "code": code,
        "message": text("Message") or "",
        "resource": text("Resource"),
        "request_id": text("RequestId"),
    }


def check_response(response: httpx.Response) -> None:
    """
    Validate a response before its body is used as a stream.

    Args:
        response: Streamed response whose headers have arrived

    Raises:
        ResponseStatusError: If the status code is 300 or above
        UnknownLengthError: If the response does not declare a Content-Length
    """
    if response.status_code >= 300:
        raise _status_error(response)

    length = response.headers.get("Content-Length")
    if length is None:
        raise UnknownLengthError(
            "retrieving objects with undefined content-length responses "
            "(chunked transfer encoding / EOF close) is not supported"
        )
    if not length.strip().isdigit():
        raise UnknownLengthError(f"invalid Content-Length header: {length!r}")


def _status_error(response: httpx.Response) -> ResponseStatusError:
    content_type = response.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
    fields = None
    if content_type in XML_CONTENT_TYPES:
        try:
            fields = parse_error_body(response.read())
        except httpx.HTTPError:
            fields = None

    if fields is None:
        return ResponseStatusError(response.status_code, status_line(response))
    return ResponseStatusError(response.status_code, **fields)
