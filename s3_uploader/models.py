"""Data models for the S3 uploader."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class FailureKind(Enum):
    """Why an upload task ended without an object in the bucket."""

    INPUT_NOT_FOUND = "input_not_found"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    RETRIES_EXHAUSTED = "retries_exhausted"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass
class UploaderConfig:
    """Connection settings for the destination bucket."""

    bucket_name: str
    region_name: str
    aws_access_key_id: str
    aws_secret_access_key: str
    endpoint_url: Optional[str] = None
    endpoint_suffix: str = "amazonaws.com"
    addressing_style: str = "virtual"
    connect_timeout: float = 10.0
    read_timeout: float = 60.0


@dataclass(frozen=True)
class UploadTask:
    """Upload one local file to one destination key."""

    local_path: str
    destination_key: str
    content_type: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UploadSuccess:
    """An object was written to the bucket."""

    destination_key: str
    url: str
    etag: str
    duration_ms: float
    version_id: Optional[str] = None
    size_bytes: int = 0
    attempts: int = 1

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class UploadFailure:
    """A task finished without writing its object."""

    local_path: str
    error_message: str
    kind: FailureKind = FailureKind.TRANSPORT
    destination_key: Optional[str] = None
    attempts: int = 1

    @property
    def succeeded(self) -> bool:
        return False


UploadResult = Union[UploadSuccess, UploadFailure]


@dataclass
class BatchSummary:
    """Outcome of a batch: one result per submitted task, in submission order."""

    results: list[UploadResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failures(self) -> list[UploadFailure]:
        return [r for r in self.results if not r.succeeded]

    @property
    def all_succeeded(self) -> bool:
        """True when no task failed (an empty batch counts as success)."""
        return self.failed == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Returns:
            Dict with a summary block and one entry per result
        """
        results = []
        for result in self.results:
            if isinstance(result, UploadSuccess):
                results.append({
                    "status": "success",
                    "destination_key": result.destination_key,
                    "url": result.url,
                    "etag": result.etag,
                    "version_id": result.version_id,
                    "size_bytes": result.size_bytes,
                    "duration_ms": result.duration_ms,
                    "attempts": result.attempts,
                })
            else:
                results.append({
                    "status": "failure",
                    "local_path": result.local_path,
                    "destination_key": result.destination_key,
                    "kind": result.kind.value,
                    "error_message": result.error_message,
                    "attempts": result.attempts,
                })

        return {
            "summary": {
                "total": self.total,
                "succeeded": self.succeeded,
                "failed": self.failed,
                "all_succeeded": self.all_succeeded,
                "duration_seconds": self.duration_seconds,
            },
            "results": results,
        }
