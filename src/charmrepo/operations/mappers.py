"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

EXIT_CODES = {
    "CharmNotFoundError": 1,
    "InvalidReferenceError": 2,
    "ValueError": 2,
    "CharmDownloadError": 3,
    "IntegrityError": 10,
    "CharmParseError": 11,
    "CacheError": 12,
}

FALLBACK_EXIT_CODE = 3


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Exit codes:
    - 0: Success
    - 1: Charm or repository not found (CharmNotFoundError)
    - 2: Invalid reference or configuration (InvalidReferenceError, ValueError)
    - 3: Network/download error (CharmDownloadError) or unknown error
    - 10: Downloaded content failed verification (IntegrityError)
    - 11: Charm could not be read (CharmParseError)
    - 12: Cache directory unusable (CacheError)

    The most specific class in the exception's MRO that has a mapping
    wins, so subclasses such as RepositoryNotFoundError or
    HashMismatchError inherit their parent's code.

    Args:
        exc: Exception to map

    Returns:
        Exit code (3 as fallback for unknown exceptions)
    """
    for cls in type(exc).__mro__:
        if cls.__name__ in EXIT_CODES:
            return EXIT_CODES[cls.__name__]
    return FALLBACK_EXIT_CODE


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, after printing the error message.

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
