"""
Summarization Client

One Document in, one Summary out. Builds the prompt, sends it through a
backend, and drives the retry state machine around the exchange.

The backend is anything with ``complete(prompt) -> str`` that raises the
doctldr backend errors; ChatCompletionBackend in production, a fake in tests.
"""

from __future__ import annotations

import random
import time
from typing import Callable, Protocol

from ..config import PipelineConfig
from ..errors import (
    FatalBackendError,
    RetriesExhaustedError,
    TaskCancelledError,
    TransientBackendError,
)
from ..logging_config import debug_log, warning
from ..models import Document, Summary
from .backend import ChatCompletionBackend
from .prompt import build_prompt
from .retry import (
    Attempting,
    FailedFatal,
    FailedTransient,
    Outcome,
    Succeeded,
    backoff_delay,
    is_terminal,
    next_state,
)


class Backend(Protocol):
    def complete(self, prompt) -> str: ...


class SummarizationClient:
    """
    Summarizes Documents with retry and backoff.

    Args:
        backend: Object exposing complete(prompt) -> str.
        config: Run configuration (model, budgets, retry policy).
        sleep: Called with the backoff delay in seconds between attempts.
        rng: Source of backoff jitter.
        should_stop: Checked before every attempt; when it returns True no
                     further request is sent and TaskCancelledError is raised.
    """

    def __init__(
        self,
        backend: Backend,
        config: PipelineConfig,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
        should_stop: Callable[[], bool] | None = None,
    ):
        self.backend = backend
        self.config = config
        self.sleep = sleep
        self.rng = rng or random.Random()
        self.should_stop = should_stop or (lambda: False)

    def summarize(self, document: Document) -> Summary:
        """
        Summarize one Document.

        Raises:
            RetriesExhaustedError: Transient failures on every attempt.
            AuthError, InvalidRequestError: On the first fatal failure.
            TaskCancelledError: If the run stopped before a request was sent.
        """
        name = document.source_path
        prompt = build_prompt(document.normalized_text, self.config.input_budget_chars)
        if prompt.truncated:
            warning(f"[CLIENT] {name}: {document.size} characters exceed the input budget "
                    f"of {self.config.input_budget_chars}; truncated")

        max_attempts = self.config.max_attempts
        state = Attempting(1)
        last_error: Exception | None = None
        text = ""

        while not is_terminal(state):
            if self.should_stop():
                raise TaskCancelledError(f"{name}: cancelled before attempt {state.attempt}")

            attempt = state.attempt
            debug_log(f"[CLIENT] {name}: attempt {attempt}/{max_attempts}")
            try:
                text = self.backend.complete(prompt)
                outcome = Outcome.SUCCESS
            except TransientBackendError as e:
                last_error = e
                outcome = Outcome.TRANSIENT
            except FatalBackendError as e:
                last_error = e
                outcome = Outcome.FATAL

            state = next_state(state, outcome, max_attempts)

            if isinstance(state, Attempting):
                delay = backoff_delay(
                    attempt,
                    self.config.backoff_base_seconds,
                    self.config.backoff_max_seconds,
                    self.rng,
                )
                warning(f"[CLIENT] {name}: attempt {attempt} failed ({last_error}); "
                        f"retrying in {delay:.1f}s")
                self.sleep(delay)

        if isinstance(state, FailedFatal):
            raise last_error
        if isinstance(state, FailedTransient):
            raise RetriesExhaustedError(name, state.attempts, last_error)

        assert isinstance(state, Succeeded)
        summary = Summary.from_document(document, text)
        debug_log(f"[CLIENT] {name}: {summary.original_size} -> {summary.summary_size} chars "
                  f"({summary.compression_percent:.1f}%) after {state.attempts} attempt(s)")
        return summary


def summarize(document: Document, config: PipelineConfig, backend: Backend | None = None) -> Summary:
    """Summarize one Document with a fresh client (and backend, if none given)."""
    client = SummarizationClient(backend or ChatCompletionBackend(config), config)
    return client.summarize(document)
