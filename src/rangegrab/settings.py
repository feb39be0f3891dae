"""
Settings and configuration for rangegrab.

Centralizes configuration values and provides validation with fail-fast behavior.
Settings are passed explicitly to the executor and streams; nothing here is
process-wide state.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

__all__ = ["Settings", "create_settings_from_env", "DEFAULT_ATTEMPTS"]

DEFAULT_ATTEMPTS = 5


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for range streams.

    Retry Settings:
        attempts: Attempts per request, and per read call for resuming a broken body;
            the count restarts on every read, so resume warnings usually show attempt 1
        backoff_base_s: Base delay; the n-th retry waits base * 2**n seconds
        backoff_max_s: Optional cap on a single backoff delay

    HTTP Settings:
        connect_timeout_s: Connection timeout in seconds
        read_timeout_s: Socket read timeout in seconds
        max_redirects: Maximum redirect hops followed for one request
        preserve_redirect_headers: Re-send the original request headers on every hop
        proxy: Proxy URL for all requests (None uses no proxy)
        verify_tls: Verify server TLS certificates
    """
    attempts: int = DEFAULT_ATTEMPTS
    backoff_base_s: float = 0.6
    backoff_max_s: Optional[float] = None

    connect_timeout_s: float = 10.0
    read_timeout_s: float = 10.0
    max_redirects: int = 10
    preserve_redirect_headers: bool = True
    proxy: Optional[str] = None
    verify_tls: bool = True

    def __post_init__(self):
        """Validate settings on construction."""
        if self.attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {self.attempts}")

        if self.backoff_base_s < 0:
            raise ValueError(f"backoff_base_s must be non-negative, got {self.backoff_base_s}")

        if self.backoff_max_s is not None and self.backoff_max_s < 0:
            raise ValueError(f"backoff_max_s must be non-negative, got {self.backoff_max_s}")

        if self.connect_timeout_s <= 0:
            raise ValueError(f"connect_timeout_s must be positive, got {self.connect_timeout_s}")

        if self.read_timeout_s <= 0:
            raise ValueError(f"read_timeout_s must be positive, got {self.read_timeout_s}")

        if self.max_redirects < 0:
            raise ValueError(f"max_redirects must be non-negative, got {self.max_redirects}")

        if self.proxy is not None and not self.proxy.startswith(("http://", "https://", "socks5://")):
            raise ValueError(f"Invalid proxy URL: {self.proxy}")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - RANGEGRAB_ATTEMPTS (default: 5)
        - RANGEGRAB_BACKOFF_BASE (default: 0.6)
        - RANGEGRAB_BACKOFF_MAX (optional)
        - RANGEGRAB_CONNECT_TIMEOUT (default: 10.0)
        - RANGEGRAB_READ_TIMEOUT (default: 10.0)
        - RANGEGRAB_MAX_REDIRECTS (default: 10)
        - RANGEGRAB_PRESERVE_REDIRECT_HEADERS (default: true)
        - RANGEGRAB_PROXY (optional)
        - RANGEGRAB_VERIFY_TLS (default: true)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    backoff_max = os.getenv("RANGEGRAB_BACKOFF_MAX")

    return Settings(
        attempts=get_int("RANGEGRAB_ATTEMPTS", DEFAULT_ATTEMPTS),
        backoff_base_s=get_float("RANGEGRAB_BACKOFF_BASE", 0.6),
        backoff_max_s=float(backoff_max) if backoff_max else None,
        connect_timeout_s=get_float("RANGEGRAB_CONNECT_TIMEOUT", 10.0),
        read_timeout_s=get_float("RANGEGRAB_READ_TIMEOUT", 10.0),
        max_redirects=get_int("RANGEGRAB_MAX_REDIRECTS", 10),
        preserve_redirect_headers=str_to_bool(os.getenv("RANGEGRAB_PRESERVE_REDIRECT_HEADERS", "true")),
        proxy=os.getenv("RANGEGRAB_PROXY") or None,
        verify_tls=str_to_bool(os.getenv("RANGEGRAB_VERIFY_TLS", "true")),
    )
