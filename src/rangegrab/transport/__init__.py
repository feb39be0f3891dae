"""
Transport package - HTTP plumbing beneath ResumableStream.

Client construction, redirect handling, response validation and the
retrying request executor.
"""
from .client import RedirectPolicy, build_client, send
from .executor import FetchResult, RequestTemplate, RetryingExecutor
from .validation import check_response, parse_error_body

__all__ = [
    "RedirectPolicy",
    "build_client",
    "send",
    "FetchResult",
    "RequestTemplate",
    "RetryingExecutor",
    "check_response",
    "parse_error_body",
]
