"""Directory traversal producing upload tasks.

Walks a directory tree with an explicit stack and emits one UploadTask per
regular file, keyed by its slash-joined path relative to the root under an
optional prefix. Symbolic links and special files are skipped; empty files
are included.
"""

import os
from typing import Optional

from s3_uploader.models import UploadTask


class InvalidInput(Exception):
    """Raised when a path is neither a regular file nor a directory as required."""

    pass


class InputNotFound(InvalidInput):
    """Raised when a local file or directory does not exist."""

    pass


def join_key(prefix: str, name: str) -> str:
    """Join a key prefix and a name with a single slash.

    >>> join_key("uploads/", "a.txt")
    'uploads/a.txt'
    >>> join_key("", "a.txt")
    'a.txt'
    """
    prefix = prefix.rstrip("/")
    return f"{prefix}/{name}" if prefix else name


def walk_directory(
    root_path: str,
    key_prefix: str = "",
    metadata: Optional[dict[str, str]] = None,
) -> list[UploadTask]:
    """Build the upload tasks for every regular file under a directory.

    Entries are visited in name order, depth first, so the result is
    deterministic for an unchanged tree.

    Args:
        root_path: Directory to upload
        key_prefix: Prefix for every destination key ("" for none)
        metadata: Metadata attached to every task

    Returns:
        List of UploadTask, one per regular file.

    Raises:
        InputNotFound: If root_path does not exist.
        InvalidInput: If root_path is not a directory.
    """
    if not os.path.lexists(root_path):
        raise InputNotFound(f"Directory not found: {root_path}")
    if not os.path.isdir(root_path):
        raise InvalidInput(f"Not a directory: {root_path}")

    task_metadata = dict(metadata or {})
    tasks: list[UploadTask] = []
    stack = [(root_path, key_prefix.rstrip("/"))]

    while stack:
        dir_path, prefix = stack.pop()

        with os.scandir(dir_path) as it:
            entries = sorted(it, key=lambda e: e.name)

        subdirs = []
        for entry in entries:
            if entry.is_symlink():
                continue
            key = join_key(prefix, entry.name)
            if entry.is_file(follow_symlinks=False):
                tasks.append(UploadTask(
                    local_path=entry.path,
                    destination_key=key,
                    metadata=dict(task_metadata),
                ))
            elif entry.is_dir(follow_symlinks=False):
                subdirs.append((entry.path, key))

        # Reversed so the first subdirectory by name is walked next
        stack.extend(reversed(subdirs))

    return tasks
