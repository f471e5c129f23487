"""
Parallel processing for the summarization pipeline.

Strategy Pattern separates what runs for each file (the pipeline's task)
from how it runs:

    ExecutorStrategy   - interface
    ThreadPoolStrategy - bounded thread pool (production)
    SequentialStrategy - inline execution (tests, debugging)
    ParallelTaskRunner - submission, collection, cancellation
    TaskResult         - outcome of one task
    ProgressAggregator - throttled progress logging

Testing Example:
    runner = ParallelTaskRunner(strategy=SequentialStrategy())
    results = runner.run(process, items)
    assert [r.task_id for r in results] == [task_id for task_id, _ in items]
"""

from .executor_strategy import (
    ExecutorStrategy,
    ThreadPoolStrategy,
    SequentialStrategy,
)
from .task_runner import ParallelTaskRunner, TaskResult
from .progress_aggregator import ProgressAggregator, ProgressState

__all__ = [
    # Strategies
    'ExecutorStrategy',
    'ThreadPoolStrategy',
    'SequentialStrategy',
    # Task runner
    'ParallelTaskRunner',
    'TaskResult',
    # Progress tracking
    'ProgressAggregator',
    'ProgressState',
]
