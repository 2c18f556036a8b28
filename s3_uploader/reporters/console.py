"""Console reporter using Rich library for formatted CLI output.

Provides colorful, formatted output during an upload batch including:
- A header with the number of files
- Per-file results with OK/FAIL indicators
- Retry notices
- Final summary table and failure list
"""

from rich.console import Console
from rich.table import Table
from rich import box
from rich.markup import escape
from rich.rule import Rule

from s3_uploader.reporters.base import Reporter
from s3_uploader.models import BatchSummary, UploadResult, UploadSuccess, UploadTask


def format_size(size_bytes: int) -> str:
    """Render a byte count the way the upload log shows it (MB, 2 decimals)."""
    return f"{size_bytes / 1024 / 1024:.2f} MB"


class ConsoleReporter(Reporter):
    """Rich-based console reporter for CLI output.

    Args:
        quiet: If True, suppress per-file output (only show summary)
    """

    def __init__(self, quiet: bool = False):
        """Initialize the console reporter.

        Args:
            quiet: Suppress per-file output if True
        """
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = Console(legacy_windows=True)
        self.quiet = quiet

    def on_batch_start(self, total: int) -> None:
        """Displays a header with the number of files to upload."""
        self.console.print()
        self.console.print(
            Rule(f"[bold cyan]Uploading {total} file(s)[/bold cyan]", style="cyan", characters="-")
        )

    def on_task_start(self, task: UploadTask) -> None:
        """Currently a no-op for console reporter."""
        pass

    def on_retry(self, task: UploadTask, attempt: int, error: Exception, delay: float) -> None:
        """Displays a retry notice with the error and the backoff delay."""
        if self.quiet:
            return

        self.console.print(
            f"  [yellow][RETRY][/yellow] {escape(task.destination_key)}: attempt {attempt} failed, "
            f"retrying in {delay:.1f}s"
        )
        self.console.print(f"     [dim]{escape(str(error))}[/dim]")

    def on_task_complete(self, result: UploadResult) -> None:
        """Displays OK/FAIL indicator with file details."""
        if self.quiet:
            return

        if isinstance(result, UploadSuccess):
            self.console.print(
                f"  [green][OK][/green] {escape(result.destination_key)} "
                f"({format_size(result.size_bytes)}) in {result.duration_ms / 1000:.2f}s"
            )
            self.console.print(f"     [dim]{escape(result.url)}[/dim]")
        else:
            self.console.print(f"  [red][FAIL][/red] {escape(result.local_path)}")
            self.console.print(f"     [dim]{escape(result.error_message)}[/dim]")

    def on_batch_complete(self, summary: BatchSummary) -> None:
        """Displays a summary table followed by every failure."""
        self.console.print()
        self.console.print(
            Rule("[bold]Upload Summary[/bold]", style="magenta", characters="-")
        )

        # Create summary table with ASCII-safe box drawing
        table = Table(
            title="",
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
            box=box.ASCII,
        )
        table.add_column("Total", justify="center", no_wrap=True)
        table.add_column("Succeeded", justify="center", no_wrap=True)
        table.add_column("Failed", justify="center", no_wrap=True)
        table.add_column("Duration", justify="center", no_wrap=True)
        table.add_column("Status", justify="center", no_wrap=True)

        if summary.all_succeeded:
            status_symbol = "[green]OK[/green]"
        else:
            status_symbol = "[red]FAIL[/red]"

        table.add_row(
            str(summary.total),
            f"[green]{summary.succeeded}[/green]",
            f"[red]{summary.failed}[/red]" if summary.failed else "0",
            f"{summary.duration_seconds:.1f}s",
            status_symbol,
        )
        self.console.print(table)

        if summary.failures:
            self.console.print("[bold red]Failed uploads:[/bold red]")
            for failure in summary.failures:
                self.console.print(f"  - {escape(failure.local_path)}: {escape(failure.error_message)}")

        self.console.print()
