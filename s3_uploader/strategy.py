"""Choice between buffering a file in memory and streaming it from disk."""

from enum import Enum

# Files larger than 5 MiB are streamed instead of read into memory
STREAMING_THRESHOLD = 5 * 1024 * 1024


class TransferStrategy(Enum):
    """How a file body is handed to the S3 client."""

    BUFFERED = "buffered"
    STREAMED = "streamed"


def select_strategy(size_bytes: int) -> TransferStrategy:
    """Pick the transfer strategy for a file of the given size."""
    if size_bytes > STREAMING_THRESHOLD:
        return TransferStrategy.STREAMED
    return TransferStrategy.BUFFERED
