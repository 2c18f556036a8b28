"""Command-line interface for the S3 uploader.

Provides argument parsing and main entry point for uploading a file or a
directory tree from the command line.
"""

import argparse
import os
import sys
from typing import Optional

from s3_uploader.config import load_config, ConfigError
from s3_uploader.diagnostics import CheckStatus, render_diagnostics, run_diagnostics
from s3_uploader.models import UploadTask
from s3_uploader.reporters import ConsoleReporter, JsonReporter, Reporter
from s3_uploader.runner import BatchUploadCoordinator, DEFAULT_MAX_ATTEMPTS, DEFAULT_MAX_WORKERS
from s3_uploader.s3_client import build_s3_client
from s3_uploader.uploader import SingleFileUploader
from s3_uploader.walker import InputNotFound, InvalidInput, walk_directory

# Conventional exit code for termination by Ctrl+C
EXIT_INTERRUPTED = 130


class CompositeReporter(Reporter):
    """Reporter that delegates to multiple reporters.

    Allows using both ConsoleReporter and JsonReporter simultaneously.
    """

    def __init__(self, reporters: list[Reporter]):
        """Initialize with list of reporters.

        Args:
            reporters: List of reporters to delegate to
        """
        self._reporters = reporters

    def on_batch_start(self, total: int) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_batch_start(total)

    def on_task_start(self, task) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_task_start(task)

    def on_retry(self, task, attempt: int, error: Exception, delay: float) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_retry(task, attempt, error, delay)

    def on_task_complete(self, result) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_task_complete(result)

    def on_batch_complete(self, summary) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_batch_complete(summary)


def positive_int(value: str) -> int:
    """argparse type for integers >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="s3-upload",
        description="Upload a file or directory tree to an S3 bucket",
    )

    parser.add_argument(
        "source",
        nargs="?",
        help="Local file or directory to upload",
    )

    parser.add_argument(
        "destination",
        nargs="?",
        default="",
        help="Object key for a file (default: file name) or key prefix for a directory",
    )

    parser.add_argument(
        "-c", "--config",
        metavar="PATH",
        help="JSON configuration file, used unless the environment sets every required variable",
    )

    parser.add_argument(
        "--bucket",
        help="Destination bucket (overrides configuration)",
    )

    parser.add_argument(
        "--region",
        help="Bucket region (overrides configuration)",
    )

    parser.add_argument(
        "-r", "--retries",
        type=positive_int,
        default=DEFAULT_MAX_ATTEMPTS,
        metavar="N",
        help=f"Maximum attempts per file (default: {DEFAULT_MAX_ATTEMPTS})",
    )

    parser.add_argument(
        "--no-retry",
        action="store_true",
        help="Attempt each file once without retrying",
    )

    parser.add_argument(
        "-w", "--workers",
        type=positive_int,
        default=DEFAULT_MAX_WORKERS,
        metavar="N",
        help=f"Maximum concurrent uploads (default: {DEFAULT_MAX_WORKERS})",
    )

    parser.add_argument(
        "--content-type",
        metavar="TYPE",
        help="Content-Type for a single-file upload (default: inferred from extension)",
    )

    parser.add_argument(
        "-m", "--metadata",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Object metadata; may be repeated",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List files and keys without uploading",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress per-file output, show only summary",
    )

    parser.add_argument(
        "-j", "--json-output",
        metavar="PATH",
        help="Write JSON results to file",
    )

    parser.add_argument(
        "--github-actions",
        action="store_true",
        help="Enable GitHub Actions output mode",
    )

    parser.add_argument(
        "--diagnose",
        action="store_true",
        help="Check credentials, configuration and endpoint reachability, then exit",
    )

    return parser.parse_args(argv)


def parse_metadata(items: list[str]) -> dict[str, str]:
    """Parse KEY=VALUE metadata arguments.

    Raises:
        ValueError: If an item has no '=' or an empty key.
    """
    metadata = {}
    for item in items:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid metadata {item!r}, expected KEY=VALUE")
        metadata[key] = value
    return metadata


def build_tasks(
    source: str,
    destination: str = "",
    content_type: Optional[str] = None,
    metadata: Optional[dict[str, str]] = None,
) -> list[UploadTask]:
    """Turn the source path into upload tasks.

    A file becomes one task keyed by destination (or its base name); a
    directory becomes one task per regular file under it, keyed under the
    destination prefix.

    Raises:
        InputNotFound: If the source does not exist.
        InvalidInput: If the source is neither a file nor a directory, or
            a content type is forced on a directory.
    """
    if os.path.isdir(source):
        if content_type:
            raise InvalidInput(
                f"--content-type applies to a single file, not to directory {source}"
            )
        return walk_directory(source, destination, metadata)

    if os.path.isfile(source):
        return [UploadTask(
            local_path=source,
            destination_key=destination or os.path.basename(source),
            content_type=content_type,
            metadata=dict(metadata or {}),
        )]

    if not os.path.lexists(source):
        raise InputNotFound(f"Source not found: {source}")
    raise InvalidInput(f"Source is neither a file nor a directory: {source}")


def create_reporters(args: argparse.Namespace) -> list[Reporter]:
    """Create reporters based on command-line arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        List of configured reporters
    """
    reporters = []

    # Always add console reporter
    reporters.append(ConsoleReporter(quiet=args.quiet))

    # Add JSON reporter if requested
    if args.json_output or args.github_actions:
        reporters.append(JsonReporter(
            output_path=args.json_output,
            github_output=args.github_actions,
        ))

    return reporters


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for failed uploads, 2 for errors,
        130 when interrupted
    """
    args = parse_args(argv)

    if args.diagnose:
        results = run_diagnostics()
        render_diagnostics(results)
        return 1 if any(r.status == CheckStatus.FAIL for r in results) else 0

    if not args.source:
        print("No source given. Pass a file or directory to upload.", file=sys.stderr)
        return 2

    try:
        metadata = parse_metadata(args.metadata)
    except ValueError as e:
        print(f"Argument error: {e}", file=sys.stderr)
        return 2

    # Build the work list before touching credentials
    try:
        tasks = build_tasks(args.source, args.destination, args.content_type, metadata)
    except InvalidInput as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Input error: cannot read {args.source}: {e}", file=sys.stderr)
        return 2

    if args.dry_run:
        for task in tasks:
            print(f"{task.local_path}  ->  {task.destination_key}")
        print(f"Total files: {len(tasks)}")
        return 0

    # Load configuration
    try:
        config = load_config(args.config, bucket=args.bucket, region=args.region)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    # Create reporters
    reporters = create_reporters(args)
    if len(reporters) == 1:
        reporter = reporters[0]
    else:
        reporter = CompositeReporter(reporters)

    # Run uploads
    uploader = SingleFileUploader(build_s3_client(config), config)
    coordinator = BatchUploadCoordinator(
        uploader,
        max_attempts=None if args.no_retry else args.retries,
        max_workers=args.workers,
        reporter=reporter,
    )

    try:
        summary = coordinator.upload_all(tasks)
    except KeyboardInterrupt:
        print("Interrupted, pending uploads cancelled", file=sys.stderr)
        return EXIT_INTERRUPTED

    # Return appropriate exit code
    return 0 if summary.all_succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
