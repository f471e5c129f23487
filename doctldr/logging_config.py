"""
Unified Logging Configuration for doctldr

This module provides the logging system used across the pipeline:
- Console output on stderr (stdout is reserved for rendered summaries)
- Optional file output (``log_file`` in the settings file)
- Performance timing via the Timer context manager

All modules should import logging functions from this module:
    from doctldr.logging_config import debug_log, info, warning, Timer

Verbosity is chosen once per run by configure_logging():
- debug=True: everything, including prompts sent to the backend
- verbose=True: progress and per-file information
- neither: only warnings and errors

Setting the environment variable DEBUG=true forces debug output, matching
the convention used by the rest of the tooling.

Log Levels:
- debug_log(): Diagnostic detail (prefix messages with a [COMPONENT] tag)
- info(): Standard information messages
- warning(): Skipped files, retries, recoverable problems
- critical(): Run-fatal conditions
"""

import logging
import os
import sys
import time
from pathlib import Path

LOGGER_NAME = "doctldr"
LOG_FORMAT = "[%(levelname)s %(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

DEBUG_MODE = os.environ.get('DEBUG', 'false').lower() == 'true'

_logger = logging.getLogger(LOGGER_NAME)
_logger.addHandler(logging.NullHandler())


def configure_logging(
    verbose: bool = False,
    debug: bool = False,
    log_file: Path | None = None,
    stream=None,
) -> logging.Logger:
    """
    Configure the doctldr logger for one run.

    Replaces any handlers installed by a previous call, so calling this
    twice (e.g. from tests) does not duplicate output.

    Args:
        verbose: Show INFO messages on the console.
        debug: Show DEBUG messages on the console (implies verbose).
        log_file: Optional path; when given, all messages at DEBUG and above
                  are also appended to this file.
        stream: Console stream (defaults to sys.stderr).

    Returns:
        The configured logger.
    """
    if debug or DEBUG_MODE:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    for handler in list(_logger.handlers):
        _logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    _logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        _logger.addHandler(file_handler)
        _logger.setLevel(logging.DEBUG)
    else:
        _logger.setLevel(level)

    _logger.propagate = False
    return _logger


# =============================================================================
# Timer Context Manager
# =============================================================================

class Timer:
    """
    Context manager for timing code blocks with automatic logging.

    Usage:
        with Timer("Extracting guide.md"):
            # code to time
            pass

    Output (debug logging enabled):
        [DEBUG 14:32:01] Starting Extracting guide.md...
        [DEBUG 14:32:01] Extracting guide.md took 12 ms

    Attributes:
        operation_name: Name of the operation being timed
        duration_ms: Duration in milliseconds (available after exit)
    """

    def __init__(self, operation_name: str, auto_log: bool = True):
        self.operation_name = operation_name
        self.auto_log = auto_log
        self.start_time: float | None = None
        self.end_time: float | None = None
        self.duration_ms: float | None = None

    def __enter__(self):
        if self.auto_log:
            debug_log(f"Starting {self.operation_name}...")
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        self.duration_ms = (self.end_time - self.start_time) * 1000

        if self.auto_log:
            debug_timing(self.operation_name, self.duration_ms / 1000)

        return False  # Don't suppress exceptions


# =============================================================================
# Public Logging Functions
# =============================================================================

def debug_log(message: str):
    """
    Log a debug message.

    Args:
        message: The message to log (prefix with [COMPONENT] for clarity)

    Example:
        debug_log("[WALKER] Pruned excluded directory node_modules")
    """
    _logger.debug(message)


def info(message: str):
    """Log an informational message (shown with --verbose)."""
    _logger.info(message)


def warning(message: str):
    """Log a warning message (always shown)."""
    _logger.warning(message)


def critical(message: str, exc_info: bool = True):
    """
    Log a run-fatal error.

    Args:
        message: The critical error message
        exc_info: If True, include the traceback (only when debug logging)
    """
    _logger.critical(message, exc_info=exc_info and _logger.isEnabledFor(logging.DEBUG))


def debug_timing(operation: str, elapsed_seconds: float):
    """
    Log operation timing information in human-readable format.

    Example:
        start = time.time()
        # ... do work ...
        debug_timing("Summarizing guide.md", time.time() - start)
        # Output: "Summarizing guide.md took 2.34s"
    """
    if elapsed_seconds < 1:
        time_str = f"{elapsed_seconds*1000:.0f} ms"
    elif elapsed_seconds < 60:
        time_str = f"{elapsed_seconds:.2f}s"
    else:
        time_str = f"{elapsed_seconds/60:.1f}m"
    debug_log(f"{operation} took {time_str}")


__all__ = [
    'configure_logging',
    'debug_log',
    'debug_timing',
    'info',
    'warning',
    'critical',
    'Timer',
    'DEBUG_MODE',
]
