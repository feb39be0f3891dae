"""
rangegrab CLI

Commands:
- info: Show size, digest and resolved location of a remote resource
- fetch: Download a resource to a file, resuming across connection failures
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import typer

from .download import fetch_to_file
from .operations import run_and_exit
from .operations.printers import print_download_summary, print_info
from .settings import create_settings_from_env
from .stream import open_url

app = typer.Typer(name="rangegrab", help="Resumable HTTP range downloads")


def _parse_headers(values: Optional[List[str]]) -> Dict[str, str]:
    """
    Parse repeated ``--header "Name: value"`` options.

    Raises:
        ValueError: If an entry has no colon or an empty name
    """
    headers: Dict[str, str] = {}
    for raw in values or []:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header {raw!r}, expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@app.command()
def info(
    url: str = typer.Argument(..., help="URL of the resource"),
    header: Optional[List[str]] = typer.Option(None, "--header", "-H", help="Extra request header 'Name: value'"),
    attempts: Optional[int] = typer.Option(None, "--attempts", help="Attempt budget (default from RANGEGRAB_ATTEMPTS)"),
    verbose: bool = typer.Option(False, "--verbose", help="Log requests and retries"),
) -> None:
    """Show what the server reports about a resource."""
    _configure_logging(verbose)

    def _info() -> None:
        settings = create_settings_from_env()
        with open_url(url, headers=_parse_headers(header), attempts=attempts, settings=settings) as stream:
            print_info(url, stream.resolved_url, stream.length, stream.expected_digest)

    run_and_exit(_info)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL of the resource"),
    dest: str = typer.Argument(..., help="Destination file"),
    header: Optional[List[str]] = typer.Option(None, "--header", "-H", help="Extra request header 'Name: value'"),
    attempts: Optional[int] = typer.Option(None, "--attempts", help="Attempt budget (default from RANGEGRAB_ATTEMPTS)"),
    no_verify: bool = typer.Option(False, "--no-verify", help="Skip digest verification"),
    verbose: bool = typer.Option(False, "--verbose", help="Log requests and retries"),
) -> None:
    """Download a resource to a file."""
    _configure_logging(verbose)

    def _fetch() -> None:
        settings = create_settings_from_env()
        result = fetch_to_file(
            url,
            dest,
            settings=settings,
            headers=_parse_headers(header),
            attempts=attempts,
            verify=not no_verify,
        )
        print_download_summary(result, verbose=verbose)

    run_and_exit(_fetch)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
