"""JSON reporter for structured output and GitHub Actions integration.

Generates JSON output suitable for:
- Archiving the result of an upload run
- GitHub Actions workflow outputs
"""

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from s3_uploader.reporters.base import Reporter
from s3_uploader.models import BatchSummary, UploadResult, UploadTask


class JsonReporter(Reporter):
    """JSON reporter for structured output.

    Args:
        output_path: Optional file path to write JSON output
        github_output: If True, write to GITHUB_OUTPUT for Actions
    """

    def __init__(
        self,
        output_path: Optional[str] = None,
        github_output: bool = False,
    ):
        """Initialize the JSON reporter.

        Args:
            output_path: File path for JSON output (optional)
            github_output: Enable GitHub Actions output
        """
        self.output_path = output_path
        self.github_output = github_output
        self._retries: int = 0
        self._lock = threading.Lock()

    def on_batch_start(self, total: int) -> None:
        """No-op for JSON reporter."""
        pass

    def on_task_start(self, task: UploadTask) -> None:
        """No-op for JSON reporter."""
        pass

    def on_retry(self, task: UploadTask, attempt: int, error: Exception, delay: float) -> None:
        """Counts retries for the summary."""
        with self._lock:
            self._retries += 1

    def on_task_complete(self, result: UploadResult) -> None:
        """No-op - data comes from the batch summary."""
        pass

    def on_batch_complete(self, summary: BatchSummary) -> dict:
        """Generates and outputs JSON data.

        Args:
            summary: The finished batch

        Returns:
            The generated JSON data as a dictionary
        """
        output = self._generate_output(summary)

        # Write to file if path provided
        if self.output_path:
            self._write_to_file(output)

        # Write GitHub Actions output if enabled
        if self.github_output:
            self._write_github_output(output)

        return output

    def _generate_output(self, summary: BatchSummary) -> dict:
        """Generate the JSON output structure."""
        output = summary.to_dict()
        output["summary"]["retries"] = self._retries
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **output,
        }

    def _write_to_file(self, output: dict) -> None:
        """Write JSON output to file.

        Args:
            output: The data to write
        """
        path = Path(self.output_path)

        # Create parent directories if needed
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.output_path, "w") as f:
            json.dump(output, f, indent=2)

    def _write_github_output(self, output: dict) -> None:
        """Write to GitHub Actions output file.

        Args:
            output: The data to write
        """
        github_output_file = os.environ.get("GITHUB_OUTPUT")
        if not github_output_file:
            return

        with open(github_output_file, "a") as f:
            # Write summary values as outputs
            f.write(f"all_succeeded={str(output['summary']['all_succeeded']).lower()}\n")
            f.write(f"total={output['summary']['total']}\n")
            f.write(f"succeeded={output['summary']['succeeded']}\n")
            f.write(f"failed={output['summary']['failed']}\n")

            # Write full JSON as multiline output
            f.write("results<<EOF\n")
            f.write(json.dumps(output))
            f.write("\nEOF\n")
