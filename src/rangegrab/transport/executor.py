"""
Retrying request executor.

Issues one logical GET, optionally starting at a byte offset, and retries
transport failures and invalid responses with exponential backoff until the
attempt budget is spent.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx
from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from ..backoff import ExponentialBackoff
from ..errors import RangeNotHonoredError, RequestFailedError, ResponseValidationError
from ..settings import Settings
from .client import RedirectPolicy, build_client, send
from .validation import check_response

__all__ = ["RequestTemplate", "FetchResult", "RetryingExecutor", "RETRYABLE_REQUEST_ERRORS"]


RETRYABLE_REQUEST_ERRORS = (httpx.TransportError, ResponseValidationError)

_CONTENT_RANGE = re.compile(r"^\s*bytes\s+(\d+)-(\d+)/(\d+|\*)\s*$")


@dataclass
class RequestTemplate:
    """
    The logical request behind a stream.

    ``resolved_url`` caches the final location of the first request so that
    range requests go straight there instead of re-walking redirects.
    """
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    method: str = "GET"
    resolved_url: Optional[str] = None

    def __post_init__(self) -> None:
        self.headers = httpx.Headers(self.headers)

    @property
    def target_url(self) -> str:
        return self.resolved_url or self.url

    def build(self, offset: Optional[int] = None, client: Optional[httpx.Client] = None) -> httpx.Request:
        """
        Build a fresh request, asking for ``bytes=<offset>-`` when offset is given.

        With a client, its default headers are merged in underneath the template headers.
        """
        headers = httpx.Headers(self.headers)
        if offset is not None:
            headers["Range"] = f"bytes={offset}-"
        if client is not None:
            return client.build_request(self.method, self.target_url, headers=headers)
        return httpx.Request(self.method, self.target_url, headers=headers)


@dataclass(frozen=True)
class FetchResult:
    """A validated response whose body has not been consumed yet."""
    response: httpx.Response
    length: int
    content_range: Optional[str] = None

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    @property
    def url(self) -> str:
        return str(self.response.url)


class RetryingExecutor:
    """
    Sends requests built from a RequestTemplate with retries.

    The executor owns its httpx client only when it created it.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        attempts: int = 5,
        backoff: Optional[ExponentialBackoff] = None,
        redirects: Optional[RedirectPolicy] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {attempts}")
        self.attempts = attempts
        self.backoff = backoff or ExponentialBackoff()
        self.redirects = redirects or RedirectPolicy()
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.sleep = sleep
        self._owns_client = client is None
        self.client = client if client is not None else build_client(Settings())

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        client: Optional[httpx.Client] = None,
        attempts: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> RetryingExecutor:
        executor = cls(
            client if client is not None else build_client(settings),
            attempts=attempts if attempts and attempts > 0 else settings.attempts,
            backoff=ExponentialBackoff(settings.backoff_base_s, settings.backoff_max_s),
            redirects=RedirectPolicy.from_settings(settings),
            logger=logger,
            sleep=sleep,
        )
        executor._owns_client = client is None
        return executor

    def retrying(self, retry_on: tuple, label: str) -> Retrying:
        """
        Build the tenacity controller shared by request and read retries.

        Every failed attempt that matches ``retry_on`` is logged as
        ``"<label> attempt <n>: <cause>"``.
        """
        def log_attempt(retry_state: RetryCallState) -> None:
            self.logger.warning(
                "%s attempt %d: %s", label, retry_state.attempt_number, retry_state.outcome.exception()
            )

        return Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=self.backoff,
            retry=retry_if_exception_type(retry_on),
            after=log_attempt,
            sleep=self.sleep,
        )

    def execute(
        self,
        template: RequestTemplate,
        offset: Optional[int] = None,
        total: Optional[int] = None,
    ) -> FetchResult:
        """
        Send the templated request, retrying recoverable failures.

        Args:
            template: Request description; its resolved URL may be updated
            offset: Start the response at this byte (adds a Range header)
            total: Length of the whole resource as first declared; a ranged
                response describing a different resource is rejected

        Returns:
            FetchResult with the open response; the caller must close it

        Raises:
            RequestFailedError: If every attempt failed
            RangeNotHonoredError: If a ranged response lacks a matching Content-Range,
                or reports a different total or remaining length
            RedirectError: If the redirect chain is rejected
        """
        try:
            response = self.retrying(RETRYABLE_REQUEST_ERRORS, "http")(self._attempt, template, offset)
        except RetryError as e:
            cause = e.last_attempt.exception()
            raise RequestFailedError(self.attempts, cause) from cause

        if offset is None and template.resolved_url is None and str(response.url) != template.url:
            self.logger.debug("Caching resolved URL %s for %s", response.url, template.url)
            template.resolved_url = str(response.url)

        content_range = response.headers.get("Content-Range")
        length = int(response.headers["Content-Length"])
        if offset:
            self._check_content_range(response, offset, content_range, total)
        if offset is not None and total is not None and length != total - offset:
            response.close()
            raise RangeNotHonoredError(
                f"response length {length} at offset {offset} does not match "
                f"the {total - offset} bytes remaining of {total}",
                offset,
                content_range,
            )

        return FetchResult(
            response=response,
            length=length,
            content_range=content_range,
        )

    def _attempt(self, template: RequestTemplate, offset: Optional[int]) -> httpx.Response:
        request = template.build(offset, self.client)
        self.logger.debug("GET %s (Range: %s)", request.url, request.headers.get("Range", "-"))
        response = send(self.client, request, self.redirects)
        try:
            check_response(response)
        except ResponseValidationError:
            response.close()
            raise
        return response

    @staticmethod
    def _check_content_range(
        response: httpx.Response,
        offset: int,
        content_range: Optional[str],
        total: Optional[int],
    ) -> None:
        if not content_range:
            response.close()
            raise RangeNotHonoredError("missing Content-Range header in response", offset)

        match = _CONTENT_RANGE.match(content_range)
        if match is None:
            response.close()
            raise RangeNotHonoredError(f"malformed Content-Range {content_range!r}", offset, content_range)

        if int(match.group(1)) != offset:
            response.close()
            raise RangeNotHonoredError(
                f"Content-Range {content_range!r} does not start at requested offset {offset}",
                offset,
                content_range,
            )

        # "*" leaves the total unknown
        if total is not None and match.group(3) != "*" and int(match.group(3)) != total:
            response.close()
            raise RangeNotHonoredError(
                f"Content-Range {content_range!r} reports a total of {match.group(3)} bytes, "
                f"expected {total}; the resource changed",
                offset,
                content_range,
            )

    def close(self) -> None:
        """Close the HTTP client if this executor created it."""
        if self._owns_client:
            self.client.close()
