"""
Progress reporting for parallel tasks.

Worker threads report per-file status; the aggregator turns that into
throttled log lines so that four workers do not produce a wall of
near-identical messages. Completions are always reported.

    aggregator = ProgressAggregator(throttle_ms=500)
    aggregator.set_total(5)
    aggregator.update("guide.md", "Summarizing guide.md...")
    aggregator.complete("guide.md")
    # [INFO] [PROGRESS] 1/5 documents (20%)
"""

from dataclasses import dataclass, field
import threading
import time
from typing import Callable

from ..logging_config import info


@dataclass
class ProgressState:
    """
    Counters behind the aggregator (locking is the aggregator's job).

    Attributes:
        total_tasks: Number of files in the run.
        completed_tasks: Files finished so far, successfully or not.
        failed_tasks: Files that finished with an error.
        task_messages: task_id -> current status for files in flight.
    """
    total_tasks: int
    completed_tasks: int = 0
    failed_tasks: int = 0
    task_messages: dict = field(default_factory=dict)

    @property
    def percentage(self) -> int:
        if self.total_tasks == 0:
            return 0
        return int((self.completed_tasks / self.total_tasks) * 100)


class ProgressAggregator:
    """
    Thread-safe, throttled progress reporter.

    Args:
        report: Receives each progress line (defaults to INFO logging).
        throttle_ms: Minimum milliseconds between status updates.
    """

    def __init__(self, report: Callable[[str], None] = info, throttle_ms: int = 500):
        self.report = report
        self.throttle_ms = throttle_ms
        self._state = ProgressState(total_tasks=0)
        self._last_update = 0.0
        self._lock = threading.Lock()

    def set_total(self, count: int) -> None:
        """Reset counters for a run of count tasks."""
        with self._lock:
            self._state = ProgressState(total_tasks=count)
            self._last_update = 0.0

    def update(self, task_id: str, message: str) -> None:
        """Record a task's status; reported only if the throttle allows."""
        with self._lock:
            self._state.task_messages[task_id] = message
            now = time.monotonic() * 1000
            if now - self._last_update >= self.throttle_ms:
                self._send_update()

    def complete(self, task_id: str, success: bool = True) -> None:
        """Count a finished task and always report."""
        with self._lock:
            self._state.completed_tasks += 1
            if not success:
                self._state.failed_tasks += 1
            self._state.task_messages.pop(task_id, None)
            self._send_update()

    def _send_update(self) -> None:
        # Caller holds _lock.
        state = self._state
        line = (f"[PROGRESS] {state.completed_tasks}/{state.total_tasks} documents "
                f"({state.percentage}%)")
        if state.failed_tasks:
            line += f", {state.failed_tasks} failed"

        messages = list(state.task_messages.values())
        if messages:
            line += " | " + " | ".join(messages[:3])
            if len(messages) > 3:
                line += f" (+{len(messages) - 3} more)"

        self.report(line)
        self._last_update = time.monotonic() * 1000

    @property
    def completed(self) -> int:
        with self._lock:
            return self._state.completed_tasks

    @property
    def failed(self) -> int:
        with self._lock:
            return self._state.failed_tasks

    @property
    def total(self) -> int:
        with self._lock:
            return self._state.total_tasks
