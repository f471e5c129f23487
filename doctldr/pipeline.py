"""
Summarization Pipeline

Walker -> Extractor -> Client, with a bounded worker pool between the walk
and the collected results. Rendering is left to the caller so that the
pipeline can be driven from the CLI or from tests alike.

Architecture:
    SummarizationPipeline.run(roots)
        ├── DirectoryWalker        candidate paths, in walk order
        ├── ParallelTaskRunner     one task per path:
        │       read bytes -> extract Document -> SummarizationClient
        └── PipelineResult         summaries in walk order + failures

Failure policy:
- Per-file errors (unreadable/undecodable file, retries exhausted) are
  logged and recorded in PipelineResult.failures; the run continues.
- Run-fatal errors (AuthError, InvalidRequestError) cancel pending work and
  are raised from run(). Nothing partial is returned.
- If every document that reached the backend failed, run() raises
  BackendUnavailableError.
- stop() or KeyboardInterrupt ends the run early; the summaries finished so
  far are returned with cancelled=True.

Usage:
    pipeline = SummarizationPipeline(load_config())
    result = pipeline.run([Path("docs")])
    print(render(result.summaries, OutputFormat.MARKDOWN))
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .config import PipelineConfig
from .errors import (
    BackendUnavailableError,
    EncodingError,
    ExtractionError,
    FatalBackendError,
    SummarizationError,
    TaskCancelledError,
)
from .extraction import extract, read_document
from .extraction.decoding import detect_and_decode
from .logging_config import debug_log, info, warning
from .models import PreviewRecord, Summary
from .parallel import (
    ExecutorStrategy,
    ParallelTaskRunner,
    ProgressAggregator,
    ThreadPoolStrategy,
)
from .summarization import ChatCompletionBackend, SummarizationClient
from .walker import DirectoryWalker


@dataclass
class FileFailure:
    """A file that was skipped, and why."""
    path: Path
    error: Exception
    stage: str  # "traversal", "extraction" or "summarization"

    def __str__(self) -> str:
        return f"{self.path}: {self.error}"


@dataclass
class PipelineResult:
    """
    Everything one run produced.

    Attributes:
        summaries: Successful summaries, in walk order.
        previews: Dry-run records, in walk order (empty unless dry-run).
        failures: Per-file failures, in walk order.
        documents_found: Files the walker yielded.
        cancelled: True if the run was stopped before every file finished.
        processing_time_seconds: Wall-clock duration of the run.
    """
    summaries: list[Summary] = field(default_factory=list)
    previews: list[PreviewRecord] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)
    documents_found: int = 0
    cancelled: bool = False
    processing_time_seconds: float = 0.0

    @property
    def documents_processed(self) -> int:
        return len(self.summaries)

    @property
    def documents_failed(self) -> int:
        return len(self.failures)


class SummarizationPipeline:
    """
    Runs the walk/extract/summarize pipeline for one configuration.

    Args:
        config: Run configuration.
        client: Summarization client. Built on demand from a
                ChatCompletionBackend when None (never in dry-run).
        strategy: Execution strategy. Defaults to a ThreadPoolStrategy with
                  config.concurrency workers, shut down after each run.
    """

    def __init__(
        self,
        config: PipelineConfig,
        client: SummarizationClient | None = None,
        strategy: ExecutorStrategy | None = None,
    ):
        self.config = config
        self.client = client
        self.strategy = strategy
        self._stop_event = threading.Event()
        self._runner: ParallelTaskRunner | None = None

    def stop(self) -> None:
        """Ask the running pipeline to stop; no new backend requests are sent."""
        self._stop_event.set()
        if self._runner is not None:
            self._runner.cancel()

    def _should_stop(self) -> bool:
        if self._stop_event.is_set():
            return True
        return self._runner is not None and self._runner.is_cancelled

    def _discover(self, roots: Iterable[Path], result: PipelineResult) -> list[Path]:
        walker = DirectoryWalker(
            self.config,
            on_error=lambda err: result.failures.append(FileFailure(err.path, err, "traversal")),
        )
        paths = list(walker.walk(roots))
        result.documents_found = len(paths)
        info(f"[PIPELINE] Found {len(paths)} candidate file(s)")
        return paths

    def preview(self, roots: Iterable[Path]) -> PipelineResult:
        """
        Dry-run: walk and extract, but never contact the backend.

        Returns:
            PipelineResult with one preview per matched file, in walk
            order. Sizes are normalized-text lengths; a file that would
            fail extraction is still listed (with its decoded length, or
            its byte length if it cannot be decoded) and is also recorded
            in failures.
        """
        start_time = time.time()
        result = PipelineResult()
        for path in self._discover(roots, result):
            record, failure = _preview_file(path)
            if failure is not None:
                warning(f"[PIPELINE] Would skip {failure}")
                result.failures.append(FileFailure(path, failure, "extraction"))
            result.previews.append(record)
        result.processing_time_seconds = time.time() - start_time
        return result

    def run(self, roots: Iterable[Path]) -> PipelineResult:
        """
        Summarize every candidate file under roots.

        Raises:
            AuthError, InvalidRequestError: Run-fatal backend errors.
            BackendUnavailableError: Every document sent to the backend failed.
        """
        if self.config.dry_run:
            return self.preview(roots)

        start_time = time.time()
        self._stop_event.clear()
        self._runner = None
        result = PipelineResult()
        paths = self._discover(roots, result)
        if not paths:
            result.processing_time_seconds = time.time() - start_time
            return result

        client = self.client or SummarizationClient(
            ChatCompletionBackend(self.config),
            self.config,
            should_stop=self._should_stop,
        )

        owns_strategy = self.strategy is None
        strategy = self.strategy or ThreadPoolStrategy(max_workers=self.config.concurrency)

        aggregator = ProgressAggregator()
        aggregator.set_total(len(paths))

        def process_file(path: Path) -> Summary:
            """Read, extract and summarize one file (runs in the worker pool)."""
            task_id = str(path)
            aggregator.update(task_id, f"Summarizing {path.name}...")
            try:
                if self._should_stop():
                    raise TaskCancelledError(f"{path}: not started")
                document = read_document(path)
                if self._should_stop():
                    raise TaskCancelledError(f"{path}: cancelled after extraction")
                summary = client.summarize(document)
            except Exception:
                aggregator.complete(task_id, success=False)
                raise
            aggregator.complete(task_id)
            return summary

        self._runner = ParallelTaskRunner(
            strategy=strategy,
            on_task_complete=lambda task_id, summary: debug_log(
                f"[PIPELINE] Completed {task_id} ({summary.compression_percent:.1f}%)"
            ),
            fatal_errors=(FatalBackendError,),
            cancel_grace_seconds=self.config.cancel_grace_seconds,
        )

        try:
            task_results = self._runner.run(process_file, [(str(path), path) for path in paths])
        finally:
            if owns_strategy:
                strategy.shutdown(wait=not self._runner.interrupted, cancel_futures=True)

        if self._runner.fatal_error is not None:
            raise self._runner.fatal_error

        attempted = 0
        for task_result, path in zip(task_results, paths):
            if task_result.success:
                attempted += 1
                result.summaries.append(task_result.result)
                continue
            if task_result.cancelled or isinstance(task_result.error, TaskCancelledError):
                result.cancelled = True
                continue

            err = task_result.error
            stage = "summarization" if isinstance(err, SummarizationError) else "extraction"
            if stage == "summarization":
                attempted += 1
            warning(f"[PIPELINE] Skipping {path}: {err}")
            result.failures.append(FileFailure(path, err, stage))

        result.cancelled = result.cancelled or self._runner.interrupted or self._stop_event.is_set()
        result.processing_time_seconds = time.time() - start_time

        info(f"[PIPELINE] Finished {aggregator.completed}/{aggregator.total} documents "
             f"({aggregator.failed} failed, {result.documents_processed} summarized) "
             f"in {result.processing_time_seconds:.1f}s")

        if attempted and not result.summaries and not result.cancelled:
            raise BackendUnavailableError(
                f"All {attempted} document(s) sent to the backend failed"
            )
        return result


def _preview_file(path: Path) -> tuple[PreviewRecord, ExtractionError | None]:
    """PreviewRecord for one matched file, plus the extraction error if any."""
    try:
        raw_bytes = path.read_bytes()
    except OSError as e:
        return PreviewRecord(path, 0), ExtractionError(path, f"could not read file: {e.strerror or e}")

    try:
        return PreviewRecord.from_document(extract(path, raw_bytes)), None
    except EncodingError as e:
        return PreviewRecord(path, len(raw_bytes)), e
    except ExtractionError as e:
        text, _ = detect_and_decode(raw_bytes, path)
        return PreviewRecord(path, len(text)), e
