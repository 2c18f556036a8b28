"""S3 Uploader.

Uploads local files and directory trees to an S3 bucket concurrently, with
retry/backoff and Content-Type inference.
"""

__version__ = "1.0.0"

from s3_uploader.cli import main

__all__ = ["main", "__version__"]
