"""Batch upload coordinator.

Runs a list of upload tasks concurrently and aggregates their results,
managing:
- Bounded fan-out on a thread pool
- Optional retries with backoff per task
- Cancellation of pending tasks and backoff waits
- Reporter callbacks
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional, Sequence

from s3_uploader.models import (
    BatchSummary,
    FailureKind,
    UploadFailure,
    UploadResult,
    UploadTask,
)
from s3_uploader.retry import (
    CancellationToken,
    Cancelled,
    RetryExhausted,
    exponential_backoff,
)
from s3_uploader.uploader import RetryingUploader, SingleFileUploader

# Upper bound on concurrent uploads in one batch
DEFAULT_MAX_WORKERS = 8

DEFAULT_MAX_ATTEMPTS = 3


class BatchUploadCoordinator:
    """Uploads many files concurrently and summarizes the outcome.

    Every submitted task yields exactly one result, in submission order.
    Task failures are data: upload_all never raises for them.

    Args:
        uploader: Performs the individual uploads
        max_attempts: Attempts per task; None disables the retry wrapper
        max_workers: Maximum number of concurrent uploads
        reporter: Optional reporter for progress callbacks
        token: Cancellation token; a new one is created if omitted
        delay_for: Backoff policy handed to the retry wrapper
    """

    def __init__(
        self,
        uploader: SingleFileUploader,
        max_attempts: Optional[int] = DEFAULT_MAX_ATTEMPTS,
        max_workers: int = DEFAULT_MAX_WORKERS,
        reporter: Optional[Any] = None,
        token: Optional[CancellationToken] = None,
        delay_for: Callable[[int], float] = exponential_backoff,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.uploader = uploader
        self.max_workers = max_workers
        self.reporter = reporter
        self.token = token or CancellationToken()

        self.retrying: Optional[RetryingUploader] = None
        if max_attempts is not None:
            self.retrying = RetryingUploader(
                uploader,
                max_attempts=max_attempts,
                delay_for=delay_for,
                sleep=self.token.sleep,
                on_retry=self._on_retry,
                token=self.token,
            )

    def cancel(self) -> None:
        """Stop starting new tasks and abort pending backoff waits."""
        self.token.cancel()

    def upload_all(self, tasks: Sequence[UploadTask]) -> BatchSummary:
        """Upload every task and wait for all of them to finish.

        Args:
            tasks: The tasks to upload

        Returns:
            BatchSummary with one result per task
        """
        start_time = time.monotonic()
        results: list[Optional[UploadResult]] = [None] * len(tasks)

        if self.reporter:
            self.reporter.on_batch_start(len(tasks))

        if tasks:
            workers = min(self.max_workers, len(tasks))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_to_index = {
                    executor.submit(self._run_task, task): index
                    for index, task in enumerate(tasks)
                }

                try:
                    for future in as_completed(future_to_index):
                        index = future_to_index[future]
                        try:
                            result = future.result()
                        except Exception as e:
                            result = UploadFailure(
                                local_path=tasks[index].local_path,
                                error_message=f"Unexpected error: {e}",
                                kind=FailureKind.INTERNAL,
                                destination_key=tasks[index].destination_key,
                            )

                        results[index] = result

                        if self.reporter:
                            self.reporter.on_task_complete(result)
                except KeyboardInterrupt:
                    # Let queued tasks drain as cancelled before the pool shuts down
                    self.cancel()
                    raise

        summary = BatchSummary(
            results=results,
            duration_seconds=time.monotonic() - start_time,
        )

        if self.reporter:
            self.reporter.on_batch_complete(summary)

        return summary

    def _run_task(self, task: UploadTask) -> UploadResult:
        """Run one task to a terminal result."""
        if self.token.cancelled:
            return UploadFailure(
                local_path=task.local_path,
                error_message="Upload cancelled before start",
                kind=FailureKind.CANCELLED,
                destination_key=task.destination_key,
                attempts=0,
            )

        if self.reporter:
            self.reporter.on_task_start(task)

        if self.retrying is None:
            return self.uploader.upload(task, token=self.token)

        try:
            return self.retrying.upload_with_retry(task)
        except RetryExhausted as e:
            return UploadFailure(
                local_path=task.local_path,
                error_message=str(e),
                kind=FailureKind.RETRIES_EXHAUSTED,
                destination_key=task.destination_key,
                attempts=e.attempts,
            )
        except Cancelled as e:
            return UploadFailure(
                local_path=task.local_path,
                error_message=str(e),
                kind=FailureKind.CANCELLED,
                destination_key=task.destination_key,
                attempts=e.attempts,
            )

    def _on_retry(self, task: UploadTask, attempt: int, error: Exception, delay: float) -> None:
        if self.reporter:
            self.reporter.on_retry(task, attempt, error, delay)
