"""
Error types for doctldr.

Errors fall into three groups:

Per-file (logged, file skipped, run continues):
    TraversalError, ExtractionError, EncodingError,
    TransientBackendError, RetriesExhaustedError

Run-fatal (processing stops, non-zero exit):
    ConfigError, AuthError, InvalidRequestError,
    BackendUnavailableError, OutputError

Neither (the run is already stopping):
    TaskCancelledError
"""

from __future__ import annotations

from pathlib import Path


class DoctldrError(Exception):
    """Base class for all doctldr errors."""

    fatal: bool = False


class ConfigError(DoctldrError):
    """Settings file or command line produced an invalid configuration."""

    fatal = True


class TraversalError(DoctldrError):
    """A directory or file could not be enumerated during the walk."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = Path(path)


class ExtractionError(DoctldrError):
    """A file could not be turned into normalized text."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = Path(path)


class EncodingError(ExtractionError):
    """No decoding heuristic produced valid text for a file's bytes."""


class SummarizationError(DoctldrError):
    """The backend exchange for one document did not produce a summary."""


class TransientBackendError(SummarizationError):
    """A failure expected to resolve on retry (timeout, rate limit, 5xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RetriesExhaustedError(SummarizationError):
    """Transient failures persisted through every allowed attempt."""

    def __init__(self, path: Path, attempts: int, last_error: Exception | None):
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"{path}: gave up after {attempts} attempts{detail}")
        self.path = Path(path)
        self.attempts = attempts
        self.last_error = last_error


class FatalBackendError(SummarizationError):
    """A backend failure that will recur for every document."""

    fatal = True

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(FatalBackendError):
    """The backend rejected or never received a credential."""


class InvalidRequestError(FatalBackendError):
    """The backend rejected the request as malformed."""


class BackendUnavailableError(DoctldrError):
    """Every document that reached the backend failed."""

    fatal = True


class OutputError(DoctldrError):
    """The output artifact could not be written."""

    fatal = True


class TaskCancelledError(DoctldrError):
    """Work for one file was skipped because the run is stopping."""
