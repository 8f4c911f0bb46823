"""
Operations package - glue between the CLI and the repositories.

Centralizes error mapping and output formatting so CLI commands stay thin
and testable.
"""
from .mappers import EXIT_CODES, exit_code_for, run_and_exit

__all__ = ["EXIT_CODES", "exit_code_for", "run_and_exit"]
