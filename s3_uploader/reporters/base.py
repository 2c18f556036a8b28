"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from s3_uploader.models import BatchSummary, UploadResult, UploadTask


class Reporter(ABC):
    """Abstract base class for upload progress reporters."""

    @abstractmethod
    def on_batch_start(self, total: int) -> None:
        """Called before any task of a batch is submitted."""
        pass

    @abstractmethod
    def on_task_start(self, task: "UploadTask") -> None:
        """Called from a worker thread when a task begins."""
        pass

    @abstractmethod
    def on_retry(
        self, task: "UploadTask", attempt: int, error: Exception, delay: float
    ) -> None:
        """Called from a worker thread before waiting to retry a task."""
        pass

    @abstractmethod
    def on_task_complete(self, result: "UploadResult") -> None:
        """Called when a task reaches its final result."""
        pass

    @abstractmethod
    def on_batch_complete(self, summary: "BatchSummary") -> None:
        """Called when every task of the batch has finished."""
        pass
