"""
Task runner for per-file pipeline work.

Submits one task per item to an ExecutorStrategy and collects every
outcome into a TaskResult. It is the only place that joins worker results,
and it returns them in submission order no matter which finished first.

Stopping:
- A task raising one of ``fatal_errors`` sets the cancel event and cancels
  every task that has not started. Tasks already running are expected to
  check ``is_cancelled`` before doing anything expensive.
- KeyboardInterrupt while waiting does the same, then gives running tasks
  ``cancel_grace_seconds`` to finish and abandons whatever is still going.

Usage:
    runner = ParallelTaskRunner(
        strategy=ThreadPoolStrategy(max_workers=4),
        fatal_errors=(AuthError,),
    )
    results = runner.run(process, [(str(path), path) for path in paths])
    for result in results:
        if result.success:
            ...
"""

from concurrent.futures import Future, as_completed, wait
from dataclasses import dataclass
import threading
from typing import Any, Callable, Iterable

from ..config import DEFAULT_CANCEL_GRACE_SECONDS
from ..logging_config import debug_log, warning
from .executor_strategy import ExecutorStrategy


@dataclass
class TaskResult:
    """
    Outcome of one task.

    Attributes:
        task_id: Identifier given with the item (the file path).
        index: Position of the item in submission order.
        success: True if the task returned normally.
        result: Return value (success only).
        error: Exception raised by the task (failure only).
        cancelled: True if the task never ran, or was abandoned, because
                   the run was stopping.
    """
    task_id: str
    index: int
    success: bool
    result: Any = None
    error: Exception = None
    cancelled: bool = False


class ParallelTaskRunner:
    """
    Runs tasks through an ExecutorStrategy with cancellation support.

    Args:
        strategy: How tasks are executed.
        on_task_complete: Called as (task_id, result) for each success,
                          from the collecting thread.
        fatal_errors: Exception types that stop the whole run.
        cancel_grace_seconds: How long an interrupted run waits for tasks
                              already in flight.

    Attributes:
        fatal_error: First fatal exception seen, if any.
        interrupted: True if the run was stopped by KeyboardInterrupt.
    """

    def __init__(
        self,
        strategy: ExecutorStrategy,
        on_task_complete: Callable[[str, Any], None] = None,
        fatal_errors: tuple = (),
        cancel_grace_seconds: float = DEFAULT_CANCEL_GRACE_SECONDS,
    ):
        self.strategy = strategy
        self.on_task_complete = on_task_complete
        self.fatal_errors = tuple(fatal_errors)
        self.cancel_grace_seconds = cancel_grace_seconds
        self.fatal_error: Exception | None = None
        self.interrupted = False
        self._cancel_event = threading.Event()
        self._futures: dict[Future, tuple[int, str]] = {}
        self._results: dict[int, TaskResult] = {}

    def run(
        self,
        fn: Callable[[Any], Any],
        items: Iterable[tuple[str, Any]],
    ) -> list[TaskResult]:
        """
        Run fn over the payload of each (task_id, payload) item.

        Returns:
            One TaskResult per item, in submission order. Items that were
            never started, or were abandoned, have cancelled=True.
        """
        items = list(items)
        self._futures = {}
        self._results = {}

        try:
            for index, (task_id, payload) in enumerate(items):
                if self._cancel_event.is_set():
                    break
                future = self.strategy.submit(fn, payload)
                self._futures[future] = (index, task_id)
                if future.done():
                    self._collect(future)

            for future in as_completed(list(self._futures)):
                self._collect(future)
        except KeyboardInterrupt:
            self._handle_interrupt()

        results = []
        for index, (task_id, _payload) in enumerate(items):
            result = self._results.get(index)
            if result is None:
                result = TaskResult(task_id=task_id, index=index, success=False, cancelled=True)
            results.append(result)
        return results

    def _collect(self, future: Future) -> None:
        index, task_id = self._futures[future]
        if index in self._results:
            return

        if future.cancelled():
            self._results[index] = TaskResult(task_id=task_id, index=index,
                                              success=False, cancelled=True)
            return

        try:
            result = future.result()
        except Exception as e:
            self._results[index] = TaskResult(task_id=task_id, index=index,
                                              success=False, error=e)
            if self.fatal_errors and isinstance(e, self.fatal_errors) and self.fatal_error is None:
                self.fatal_error = e
                debug_log(f"[RUNNER] Fatal error from {task_id}; cancelling pending tasks")
                self.cancel()
            return

        self._results[index] = TaskResult(task_id=task_id, index=index,
                                          success=True, result=result)
        if self.on_task_complete:
            self.on_task_complete(task_id, result)

    def _handle_interrupt(self) -> None:
        self.interrupted = True
        self.cancel()

        running = [f for f in self._futures if not f.done()]
        if running:
            warning(f"Interrupted: waiting up to {self.cancel_grace_seconds:.0f}s "
                    f"for {len(running)} task(s) in progress")
            _done, not_done = wait(running, timeout=self.cancel_grace_seconds)
            if not_done:
                warning(f"Abandoning {len(not_done)} unfinished task(s)")

        for future in list(self._futures):
            if future.done():
                self._collect(future)
        self.strategy.shutdown(wait=False, cancel_futures=True)

    def cancel(self) -> None:
        """
        Stop the run: set the cancel event and cancel tasks not yet started.

        Running tasks are not interrupted; they observe is_cancelled.
        """
        self._cancel_event.set()
        for future in list(self._futures):
            future.cancel()

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()
