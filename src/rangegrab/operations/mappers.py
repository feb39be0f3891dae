"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

# Exit codes by exception class name; the closest match along the MRO wins
EXIT_CODES = {
    "ResponseStatusError": 1,
    "ValueError": 2,
    "UnknownLengthError": 2,
    "RangeNotHonoredError": 2,
    "RedirectError": 2,
    "RequestFailedError": 3,
    "ReadFailedError": 3,
    "IntegrityError": 4,
}

FALLBACK_EXIT_CODE = 3


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    - 0: Success
    - 1: Server returned an error response (ResponseStatusError)
    - 2: Invalid input or protocol violation (ValueError, UnknownLengthError,
         RangeNotHonoredError, RedirectError)
    - 3: Network failure after all attempts, or unknown error
    - 4: Integrity check failed (DigestMismatchError, UnverifiableDigestError)

    A RequestFailedError whose last cause was an error response maps like
    that response.

    Args:
        exc: Exception to map

    Returns:
        Exit code (1-4, with 3 as fallback for unknown exceptions)
    """
    if type(exc).__name__ == "RequestFailedError" and getattr(exc, "cause", None) is not None:
        if type(exc.cause).__name__ == "ResponseStatusError":
            return EXIT_CODES["ResponseStatusError"]

    for klass in type(exc).__mro__:
        if klass.__name__ in EXIT_CODES:
            return EXIT_CODES[klass.__name__]
    return FALLBACK_EXIT_CODE


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, printing the error message to stderr.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        from .printers import print_error
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
