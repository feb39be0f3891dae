"""
Human-readable output formatting.

Centralizes all CLI output formatting so commands stay thin.
"""
from __future__ import annotations

import typer
from typing import Optional

from ..download import DownloadResult


def print_info(url: str, resolved_url: str, size: int, expected_digest: Optional[str]) -> None:
    """
    Print what the server reports about a resource.

    Args:
        url: Requested URL
        resolved_url: Final URL after redirects
        size: Declared length in bytes
        expected_digest: Whole-object digest, if advertised
    """
    typer.echo(f"URL: {url}")
    if resolved_url != url:
        typer.echo(f"Resolved: {resolved_url}")
    typer.echo(f"Size: {_format_bytes(size)} ({size} bytes)")
    typer.echo(f"Digest: {expected_digest or 'none'}")


def print_download_summary(result: DownloadResult, verbose: bool = False) -> None:
    """
    Print a summary of a completed download.

    Args:
        result: Download outcome
        verbose: Also show digests and the resolved URL
    """
    typer.echo(f"Downloaded {_format_bytes(result.size)} to {result.path}")
    if result.verified:
        typer.echo("Verified: digest matches")
    elif result.expected_digest is None:
        typer.echo("Verified: no digest advertised")
    else:
        typer.echo("Verified: skipped")

    if verbose:
        typer.echo(f"Resolved: {result.resolved_url}")
        typer.echo(f"MD5: {result.digest}")


def print_error(exc: BaseException) -> None:
    """Print an error to stderr."""
    typer.echo(f"Error: {exc}", err=True)


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
