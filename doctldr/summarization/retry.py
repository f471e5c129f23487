"""
Retry state machine for backend requests.

States:
    Attempting(n)       - about to make attempt n (1-based)
    Succeeded(n)        - attempt n returned a summary
    FailedTransient(n)  - attempt n failed transiently and no attempts remain
    FailedFatal(n)      - attempt n failed in a way retrying cannot fix

next_state() is a pure function of (state, outcome, max_attempts); the
client owns the loop, the sleeping and the error bookkeeping.

    Attempting(1) --success--> Succeeded(1)
    Attempting(1) --transient--> Attempting(2) --transient--> ... Attempting(max)
    Attempting(max) --transient--> FailedTransient(max)
    Attempting(n) --fatal--> FailedFatal(n)
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Union

# Jitter adds up to this fraction of the delay on top of it.
JITTER_FRACTION = 0.25


class Outcome(Enum):
    SUCCESS = "success"
    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass(frozen=True)
class Attempting:
    attempt: int


@dataclass(frozen=True)
class Succeeded:
    attempts: int


@dataclass(frozen=True)
class FailedTransient:
    attempts: int


@dataclass(frozen=True)
class FailedFatal:
    attempts: int


RetryState = Union[Attempting, Succeeded, FailedTransient, FailedFatal]
TERMINAL_STATES = (Succeeded, FailedTransient, FailedFatal)


def next_state(state: RetryState, outcome: Outcome, max_attempts: int) -> RetryState:
    """
    Transition after one attempt.

    Raises:
        ValueError: If state is already terminal or max_attempts < 1.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    if is_terminal(state):
        raise ValueError(f"No transitions out of terminal state {state!r}")

    n = state.attempt
    if outcome is Outcome.SUCCESS:
        return Succeeded(n)
    if outcome is Outcome.FATAL:
        return FailedFatal(n)
    if n < max_attempts:
        return Attempting(n + 1)
    return FailedTransient(n)


def is_terminal(state: RetryState) -> bool:
    return isinstance(state, TERMINAL_STATES)


def backoff_delay(
    failed_attempt: int,
    base_seconds: float,
    max_seconds: float,
    rng: random.Random | None = None,
) -> float:
    """
    Seconds to wait after a transient failure of attempt failed_attempt.

    base * 2**(n-1), capped at max_seconds, plus up to 25% random jitter.
    """
    delay = min(base_seconds * (2 ** (failed_attempt - 1)), max_seconds)
    jitter = (rng or random).random() * JITTER_FRACTION * delay
    return delay + jitter
