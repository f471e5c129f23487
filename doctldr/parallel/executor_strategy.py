"""
Execution strategies for per-file pipeline tasks.

Strategy Pattern: the pipeline decides what runs for each file, the
strategy decides how (a thread pool in production, inline in tests).

    strategy = ThreadPoolStrategy(max_workers=4)   # production
    strategy = SequentialStrategy()                # deterministic tests

Per-file work is dominated by waiting on the backend, so threads are the
right tool despite the GIL.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, TypeVar

from ..config import DEFAULT_CONCURRENCY

T = TypeVar('T')
R = TypeVar('R')


class ExecutorStrategy(ABC):
    """
    Interface shared by all execution strategies.

    Attributes:
        max_workers: Number of concurrent workers (1 for sequential).
    """

    max_workers: int

    @abstractmethod
    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        """Schedule fn(item) and return its Future."""

    @abstractmethod
    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """
        Release workers.

        Args:
            wait: Block until running tasks finish.
            cancel_futures: Cancel tasks that have not started.
        """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
        return False


class ThreadPoolStrategy(ExecutorStrategy):
    """
    Bounded thread pool.

    Args:
        max_workers: Concurrent threads; defaults to min(cpu_count, 4).
    """

    def __init__(self, max_workers: int = None):
        if max_workers is None:
            max_workers = DEFAULT_CONCURRENCY

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="doctldr-worker",
        )
        self.max_workers = max_workers

    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        return self._executor.submit(fn, item)

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)


class SequentialStrategy(ExecutorStrategy):
    """
    Runs each task inline at submit time.

    Same interface as ThreadPoolStrategy, so tests exercise the production
    code path with deterministic ordering and no thread interleaving.
    """

    def __init__(self):
        self.max_workers = 1

    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        """Execute fn(item) now and return an already-completed Future."""
        future: Future = Future()
        future.set_running_or_notify_cancel()
        try:
            result = fn(item)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """Nothing to release."""
