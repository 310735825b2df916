#!/usr/bin/env python3
"""
Exit statuses and error reporting for the scop commands.

Each exception family gets its own exit status so that release scripts can
tell a bad invocation (wrong release pair, frozen release) from a store that
is already inconsistent, and both from a database outage:

    0    success (anomalies are reported, not fatal)
    1    other SCOPError, e.g. an unparseable record
    2    unexpected exception
    3    usage: ReleaseError / ConfigurationError
    4    corruption: duplicate sccs or sunid, unresolvable node
    5    database: connection or statement failure
    130  interrupted
"""
import sys
import traceback
import logging
from functools import wraps
from typing import Callable, TypeVar, Any, Dict, Optional, Union

from .exceptions import ConfigurationError, CorruptionError, DatabaseError, SCOPError

T = TypeVar('T')

EXIT_FAILURE = 1
EXIT_UNEXPECTED = 2
EXIT_USAGE = 3
EXIT_CORRUPTION = 4
EXIT_DATABASE = 5
EXIT_INTERRUPTED = 130

# most specific first; SCOPError itself falls through to EXIT_FAILURE
ERROR_CLASSES = [
    (CorruptionError, EXIT_CORRUPTION,
     "The classification store is inconsistent. Nothing was written; fix the data and rerun."),
    (ConfigurationError, EXIT_USAGE,
     "Check the release versions (old must directly precede new) and the configuration."),
    (DatabaseError, EXIT_DATABASE,
     "Database step failed and was rolled back. Check the connection settings."),
]


def exit_status(error: BaseException) -> int:
    """Exit status for an exception raised by a command"""
    if isinstance(error, KeyboardInterrupt):
        return EXIT_INTERRUPTED
    for error_class, status, _ in ERROR_CLASSES:
        if isinstance(error, error_class):
            return status
    if isinstance(error, SCOPError):
        return EXIT_FAILURE
    return EXIT_UNEXPECTED


def error_hint(error: BaseException) -> Optional[str]:
    for error_class, _, hint in ERROR_CLASSES:
        if isinstance(error, error_class):
            return hint
    return None


def format_error(error: Exception, verbose: bool = False) -> str:
    """One-line description of an error, plus details when verbose"""
    if isinstance(error, SCOPError):
        msg = f"{error.__class__.__name__}: {error.message}"
        if verbose and error.details:
            msg += f"\nDetails: {error.details}"
        return msg
    if verbose:
        return f"Unexpected Error ({error.__class__.__name__}): {error}\n{traceback.format_exc()}"
    return f"Unexpected Error: {error}"


def handle_exceptions(exit_on_error: bool = False) -> Callable[[Callable[..., T]], Callable[..., Union[T, int]]]:
    """Turn exceptions escaping a command into an exit status

    Args:
        exit_on_error: Call sys.exit with the status instead of returning it
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Union[T, int]]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Union[T, int]:
            logger = logging.getLogger(func.__module__)
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt as e:
                logger.info("Operation cancelled by user")
                print("\nOperation cancelled by user", file=sys.stderr)
                status = exit_status(e)
            except SCOPError as e:
                logger.error(format_error(e, verbose=True))
                print(format_error(e), file=sys.stderr)
                hint = error_hint(e)
                if hint:
                    print(hint, file=sys.stderr)
                status = exit_status(e)
            except Exception as e:
                logger.error(f"Unexpected error: {e}", exc_info=True)
                print(format_error(e), file=sys.stderr)
                print("See log for details. Run with --verbose for more information.", file=sys.stderr)
                status = exit_status(e)
            if exit_on_error:
                sys.exit(status)
            return status
        return wrapper
    return decorator


def log_exception(logger: logging.Logger,
                  error: Exception,
                  level: int = logging.ERROR,
                  context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with its details merged into a 'context' record attribute"""
    ctx = dict(context or {})
    if isinstance(error, SCOPError):
        ctx = {**error.details, **ctx}
    ctx["exit_status"] = exit_status(error)
    logger.log(level, format_error(error), extra={"context": ctx}, exc_info=True)
