"""
HTTP client construction and redirect handling.

Redirects are walked here rather than by httpx so that the original request
headers (credentials, Range) survive every hop and so that the chain can be
capped and restricted to GET.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ..errors import RedirectError
from ..settings import Settings

__all__ = ["RedirectPolicy", "build_client", "send", "USER_AGENT"]

logger = logging.getLogger(__name__)

USER_AGENT = "rangegrab/0.1.0"


@dataclass(frozen=True)
class RedirectPolicy:
    """
    How redirect responses are followed.

    Attributes:
        max_redirects: Hops allowed before giving up
        preserve_headers: Copy the original request headers onto every hop
    """
    max_redirects: int = 10
    preserve_headers: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> RedirectPolicy:
        return cls(
            max_redirects=settings.max_redirects,
            preserve_headers=settings.preserve_redirect_headers,
        )


def build_client(settings: Settings) -> httpx.Client:
    """
    Create the HTTP client used for range requests.

    Args:
        settings: Timeouts, proxy and TLS configuration

    Returns:
        httpx.Client that does not follow redirects on its own
    """
    return httpx.Client(
        timeout=httpx.Timeout(
            connect=settings.connect_timeout_s,
            read=settings.read_timeout_s,
            write=settings.read_timeout_s,
            pool=settings.connect_timeout_s,
        ),
        proxy=settings.proxy,
        verify=settings.verify_tls,
        follow_redirects=False,
        headers={
            "User-Agent": USER_AGENT,
            # Ranges address the raw representation
            "Accept-Encoding": "identity",
        },
    )


def send(client: httpx.Client, request: httpx.Request, policy: RedirectPolicy) -> httpx.Response:
    """
    Send a request and follow redirects according to ``policy``.

    The returned response is streamed; the caller owns it and must close it.
    ``response.url`` is the final location after all hops.

    Raises:
        RedirectError: If a non-GET request is redirected or the chain is too long
        httpx.TransportError: On network failures
    """
    original_headers = request.headers
    hops = 0

    while True:
        response = client.send(request, stream=True, follow_redirects=False)
        if response.next_request is None:
            return response

        response.close()
        if request.method != "GET":
            raise RedirectError(f"refusing to follow redirect for {request.method} {request.url}")

        hops += 1
        if hops > policy.max_redirects:
            raise RedirectError(f"stopped after {policy.max_redirects} redirects from {request.url}")

        next_request = response.next_request
        if policy.preserve_headers:
            for key, value in original_headers.items():
                if key.lower() != "host":
                    next_request.headers[key] = value

        logger.debug("Following redirect %d: %s -> %s", hops, request.url, next_request.url)
        request = next_request
