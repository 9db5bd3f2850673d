#!/usr/bin/env python3
"""
Error reporting for genebuild jobs.

Jobs end with an exit code a scheduler can act on: known pipeline errors
(bad input, unresolvable evidence, missing sequences) are retried or
reported, unexpected errors need a developer.
"""
import sys
import logging
import traceback
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from .exceptions import GenebuildError

T = TypeVar('T')

EXIT_OK = 0
EXIT_GENEBUILD_ERROR = 1
EXIT_UNEXPECTED_ERROR = 2
EXIT_INTERRUPTED = 130


def format_error(error: Exception, verbose: bool = False) -> str:
    """One-line (or, verbose, multi-line) description of an error"""
    if not isinstance(error, GenebuildError):
        if verbose:
            return (f"Unexpected Error ({type(error).__name__}): {error}\n"
                    f"{traceback.format_exc()}")
        return f"Unexpected Error: {error}"

    text = f"{type(error).__name__}: {error.message}"
    if verbose and error.details:
        text = f"{text}\nDetails: {error.details}"
    return text


def _exit_code(error: BaseException) -> int:
    if isinstance(error, KeyboardInterrupt):
        return EXIT_INTERRUPTED
    if isinstance(error, GenebuildError):
        return EXIT_GENEBUILD_ERROR
    return EXIT_UNEXPECTED_ERROR


def handle_exceptions(exit_on_error: bool = False) -> Callable[[Callable[..., T]], Callable[..., Union[T, int]]]:
    """Decorator turning exceptions into exit codes

    Genebuild errors give 1, anything else 2 and an interrupt 130. With
    exit_on_error the process exits with that code instead of returning it.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Union[T, int]]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Union[T, int]:
            logger = logging.getLogger(func.__module__)
            try:
                return func(*args, **kwargs)
            except (KeyboardInterrupt, Exception) as e:
                code = _exit_code(e)
                if code == EXIT_INTERRUPTED:
                    logger.info(f"{func.__name__} interrupted")
                    print("\nOperation cancelled by user", file=sys.stderr)
                elif code == EXIT_GENEBUILD_ERROR:
                    logger.error(f"{func.__name__} failed: {format_error(e)}")
                    print(format_error(e), file=sys.stderr)
                else:
                    logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
                    print(format_error(e), file=sys.stderr)
                    print("See log for details.", file=sys.stderr)

                if exit_on_error:
                    sys.exit(code)
                return code
        return wrapper
    return decorator


def log_exception(logger: logging.Logger, error: Exception, level: int = logging.ERROR,
                  context: Optional[Dict[str, Any]] = None) -> None:
    """Log an error with its details merged into the record's 'context' attribute"""
    details = error.details if isinstance(error, GenebuildError) else {}
    merged = {**(details or {}), **(context or {})}
    message = (f"{type(error).__name__}: {error.message}" if isinstance(error, GenebuildError)
               else f"Unexpected error: {error}")
    logger.log(level, message, extra={"context": merged} if merged else None, exc_info=True)
