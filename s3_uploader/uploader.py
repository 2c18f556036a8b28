"""Single-file upload and its retrying wrapper.

SingleFileUploader never raises for per-file problems: a missing file or a
storage error comes back as an UploadFailure. RetryingUploader repeats
failed uploads with backoff and raises RetryExhausted once its
attempts are used up, leaving the conversion back into a result to the caller.
"""

import os
import time
from dataclasses import replace
from typing import Any, Callable, Optional

from s3_uploader.content_types import resolve_content_type
from s3_uploader.models import (
    FailureKind,
    UploaderConfig,
    UploadFailure,
    UploadResult,
    UploadSuccess,
    UploadTask,
)
from s3_uploader.retry import (
    CancellationToken,
    Cancelled,
    exponential_backoff,
    retry_with_backoff,
)
from s3_uploader.s3_client import AttemptTimeout, TransportError, object_url, put_object
from s3_uploader.strategy import TransferStrategy, select_strategy


class AttemptFailed(Exception):
    """Carries a failed attempt's result through the retry loop."""

    def __init__(self, result: UploadFailure):
        super().__init__(result.error_message)
        self.result = result


class SingleFileUploader:
    """Uploads one local file to one key with a shared S3 client.

    Args:
        client: boto3 S3 client (shared, read-only)
        config: Bucket configuration
        default_metadata: Metadata sent with every object; task metadata
            wins on key conflicts
        clock: Monotonic clock used to time the put call
        token: Optional cancellation token checked before each put; a token
            passed to upload() takes its place for that call
    """

    def __init__(
        self,
        client: Any,
        config: UploaderConfig,
        default_metadata: Optional[dict[str, str]] = None,
        clock: Callable[[], float] = time.monotonic,
        token: Optional[CancellationToken] = None,
    ):
        self.client = client
        self.config = config
        self.default_metadata = dict(default_metadata or {})
        self._clock = clock
        self.token = token

    def upload(self, task: UploadTask, token: Optional[CancellationToken] = None) -> UploadResult:
        """Upload the task's file.

        Args:
            task: The file and destination key to upload
            token: Cancellation token for this call, defaults to the uploader's

        Returns:
            UploadSuccess with the object URL and ETag, or UploadFailure
            describing what went wrong.
        """
        path = task.local_path
        token = token if token is not None else self.token

        if token is not None and token.cancelled:
            return self._failure(task, "Upload cancelled", FailureKind.CANCELLED)
        if not os.path.isfile(path):
            return self._failure(task, f"File not found: {path}", FailureKind.INPUT_NOT_FOUND)
        if not os.access(path, os.R_OK):
            return self._failure(task, f"File not readable: {path}", FailureKind.INPUT_NOT_FOUND)

        try:
            size = os.path.getsize(path)
            strategy = select_strategy(size)
            content_type = task.content_type or resolve_content_type(path)
            metadata = {**self.default_metadata, **task.metadata}

            with open(path, "rb") as f:
                # Streamed bodies are read lazily by botocore from the open handle
                body = f.read() if strategy is TransferStrategy.BUFFERED else f
                start = self._clock()
                response = put_object(
                    self.client,
                    self.config.bucket_name,
                    task.destination_key,
                    body,
                    content_type,
                    metadata,
                )
                duration_ms = (self._clock() - start) * 1000
        except AttemptTimeout as e:
            return self._failure(task, str(e), FailureKind.TIMEOUT)
        except TransportError as e:
            return self._failure(task, str(e), FailureKind.TRANSPORT)
        except OSError as e:
            return self._failure(task, f"Cannot read {path}: {e}", FailureKind.INPUT_NOT_FOUND)
        except Exception as e:
            return self._failure(task, f"{type(e).__name__}: {e}", FailureKind.TRANSPORT)

        return UploadSuccess(
            destination_key=task.destination_key,
            url=object_url(self.config, task.destination_key),
            etag=response["etag"],
            duration_ms=duration_ms,
            version_id=response.get("version_id"),
            size_bytes=size,
        )

    @staticmethod
    def _failure(task: UploadTask, message: str, kind: FailureKind) -> UploadFailure:
        return UploadFailure(
            local_path=task.local_path,
            error_message=message,
            kind=kind,
            destination_key=task.destination_key,
        )


class RetryingUploader:
    """Wraps a SingleFileUploader with bounded exponential-backoff retries.

    Args:
        uploader: The uploader performing each attempt
        max_attempts: Attempts per task, including the first
        delay_for: Backoff policy, failed attempt number -> seconds
        sleep: Wait function; CancellationToken.sleep makes waits cancellable
        on_retry: Called with (task, attempt, error, delay) before each wait
        token: Cancellation token handed to every attempt
    """

    def __init__(
        self,
        uploader: SingleFileUploader,
        max_attempts: int = 3,
        delay_for: Callable[[int], float] = exponential_backoff,
        sleep: Callable[[float], None] = time.sleep,
        on_retry: Optional[Callable[[UploadTask, int, Exception, float], None]] = None,
        token: Optional[CancellationToken] = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.uploader = uploader
        self.max_attempts = max_attempts
        self.delay_for = delay_for
        self.sleep = sleep
        self.on_retry = on_retry
        self.token = token

    def upload_with_retry(self, task: UploadTask) -> UploadSuccess:
        """Upload a task, retrying failures until success or the attempts run out.

        Returns:
            The successful result, with the number of attempts it took.

        Raises:
            RetryExhausted: After max_attempts consecutive failures; carries
                the last error message.
            Cancelled: If a cancelled attempt or backoff wait stops the loop;
                carries the number of attempts made.
        """
        attempts = 0

        def attempt() -> UploadSuccess:
            nonlocal attempts
            attempts += 1
            result = self.uploader.upload(task, token=self.token)
            if result.succeeded:
                return result
            if result.kind is FailureKind.CANCELLED:
                # Refused before the put, so it does not count
                attempts -= 1
                raise Cancelled(result.error_message)
            raise AttemptFailed(result)

        on_retry = None
        if self.on_retry:
            def on_retry(attempt_number: int, error: Exception, delay: float) -> None:
                self.on_retry(task, attempt_number, error, delay)

        try:
            result = retry_with_backoff(
                attempt,
                max_attempts=self.max_attempts,
                delay_for=self.delay_for,
                sleep=self.sleep,
                on_retry=on_retry,
            )
        except Cancelled as e:
            raise Cancelled(str(e), attempts=attempts) from e
        return replace(result, attempts=attempts)
