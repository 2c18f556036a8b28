"""Tests for CLI entry point.

Tests the command-line interface and argument parsing.
"""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from s3_uploader.cli import (
    CompositeReporter,
    build_tasks,
    create_reporters,
    main,
    parse_args,
    parse_metadata,
)
from s3_uploader.config import ConfigError
from s3_uploader.diagnostics import CheckResult, CheckStatus
from s3_uploader.models import UploaderConfig
from s3_uploader.reporters import ConsoleReporter, JsonReporter
from s3_uploader.walker import InputNotFound, InvalidInput


@pytest.fixture
def uploader_config() -> UploaderConfig:
    return UploaderConfig(
        bucket_name="johnk-files",
        region_name="eu-north-1",
        aws_access_key_id="AKIAEXAMPLE",
        aws_secret_access_key="secret",
    )


@pytest.fixture
def mock_client():
    client = Mock()
    client.put_object.return_value = {"ETag": '"etag"'}
    return client


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "index.html").write_text("<html></html>")
    (root / "css" / "main.css").write_text("body {}")
    return root


class TestParseArgs:
    """Tests for argument parsing."""

    def test_default_args(self):
        """Should have sensible defaults."""
        args = parse_args(["file.txt"])

        assert args.source == "file.txt"
        assert args.destination == ""
        assert args.config is None
        assert args.retries == 3
        assert args.no_retry is False
        assert args.workers == 8
        assert args.metadata == []
        assert args.quiet is False
        assert args.json_output is None
        assert args.dry_run is False
        assert args.diagnose is False

    def test_source_and_destination(self):
        """Should accept source and destination positionals."""
        args = parse_args(["./site", "uploads/site"])

        assert args.source == "./site"
        assert args.destination == "uploads/site"

    def test_retries_short_flag(self):
        """Should accept -r short flag."""
        args = parse_args(["f", "-r", "5"])
        assert args.retries == 5

    def test_workers_short_flag(self):
        """Should accept -w short flag."""
        args = parse_args(["f", "-w", "16"])
        assert args.workers == 16

    @pytest.mark.parametrize("flag", ["-r", "-w"])
    @pytest.mark.parametrize("value", ["0", "-1", "many"])
    def test_rejects_non_positive_counts(self, flag: str, value: str):
        """Counts must be positive integers."""
        with pytest.raises(SystemExit):
            parse_args(["f", flag, value])

    def test_repeated_metadata(self):
        """Should collect repeated -m flags."""
        args = parse_args(["f", "-m", "a=1", "--metadata", "b=2"])
        assert args.metadata == ["a=1", "b=2"]

    def test_flags(self):
        """Should accept boolean flags."""
        args = parse_args(["f", "--no-retry", "--dry-run", "-q", "--github-actions"])

        assert args.no_retry is True
        assert args.dry_run is True
        assert args.quiet is True
        assert args.github_actions is True

    def test_diagnose_without_source(self):
        """--diagnose does not need a source."""
        args = parse_args(["--diagnose"])

        assert args.diagnose is True
        assert args.source is None


class TestParseMetadata:
    """Tests for parse_metadata function."""

    def test_key_value_pairs(self):
        """Should split on the first '='."""
        assert parse_metadata(["owner=john", "note=a=b"]) == {"owner": "john", "note": "a=b"}

    def test_empty_value_allowed(self):
        """Should allow empty values."""
        assert parse_metadata(["flag="]) == {"flag": ""}

    @pytest.mark.parametrize("item", ["novalue", "=value", " =x"])
    def test_invalid_items(self, item: str):
        """Should reject items without a key or '='."""
        with pytest.raises(ValueError, match="KEY=VALUE"):
            parse_metadata([item])


class TestBuildTasks:
    """Tests for build_tasks function."""

    def test_single_file_default_key(self, tree: Path):
        """A file defaults to its base name as key."""
        tasks = build_tasks(str(tree / "index.html"))

        assert len(tasks) == 1
        assert tasks[0].destination_key == "index.html"

    def test_single_file_with_key_and_overrides(self, tree: Path):
        """A file uses the given key, content type and metadata."""
        tasks = build_tasks(
            str(tree / "index.html"), "web/home.html", "text/plain", {"owner": "john"}
        )

        assert tasks[0].destination_key == "web/home.html"
        assert tasks[0].content_type == "text/plain"
        assert tasks[0].metadata == {"owner": "john"}

    def test_directory(self, tree: Path):
        """A directory is walked under the prefix."""
        tasks = build_tasks(str(tree), "uploads")

        assert {t.destination_key for t in tasks} == {"uploads/index.html", "uploads/css/main.css"}

    def test_directory_rejects_content_type(self, tree: Path):
        """A forced content type is refused for a directory."""
        with pytest.raises(InvalidInput, match="--content-type"):
            build_tasks(str(tree), "uploads", "text/plain")

    def test_missing_source(self, tmp_path: Path):
        """A missing source raises InputNotFound."""
        with pytest.raises(InputNotFound):
            build_tasks(str(tmp_path / "nope"))

    def test_missing_source_is_invalid_input(self, tmp_path: Path):
        """InputNotFound is caught as InvalidInput by the driver."""
        with pytest.raises(InvalidInput):
            build_tasks(str(tmp_path / "nope"))


class TestCreateReporters:
    """Tests for reporter creation."""

    def test_console_only_by_default(self):
        """Should create just a console reporter by default."""
        reporters = create_reporters(parse_args(["f"]))

        assert len(reporters) == 1
        assert isinstance(reporters[0], ConsoleReporter)

    def test_json_reporter_added(self):
        """Should add a JSON reporter for -j."""
        reporters = create_reporters(parse_args(["f", "-j", "out.json"]))

        assert len(reporters) == 2
        assert isinstance(reporters[1], JsonReporter)
        assert reporters[1].output_path == "out.json"

    def test_quiet_passed_to_console(self):
        """Should pass quiet flag to console reporter."""
        reporters = create_reporters(parse_args(["f", "-q"]))
        assert reporters[0].quiet is True


class TestCompositeReporter:
    """Tests for CompositeReporter."""

    def test_delegates_all_events(self):
        """Every event reaches every reporter."""
        first, second = Mock(), Mock()
        composite = CompositeReporter([first, second])
        task, result, summary, error = Mock(), Mock(), Mock(), Exception("x")

        composite.on_batch_start(2)
        composite.on_task_start(task)
        composite.on_retry(task, 1, error, 2.0)
        composite.on_task_complete(result)
        composite.on_batch_complete(summary)

        for reporter in (first, second):
            reporter.on_batch_start.assert_called_once_with(2)
            reporter.on_task_start.assert_called_once_with(task)
            reporter.on_retry.assert_called_once_with(task, 1, error, 2.0)
            reporter.on_task_complete.assert_called_once_with(result)
            reporter.on_batch_complete.assert_called_once_with(summary)


class TestMain:
    """Tests for main entry point."""

    def test_no_source_returns_2(self, capsys):
        """Should fail with exit code 2 without a source."""
        assert main([]) == 2
        assert "No source" in capsys.readouterr().err

    def test_missing_source_returns_2(self, tmp_path: Path, capsys):
        """Should fail with exit code 2 for a missing source."""
        assert main([str(tmp_path / "missing")]) == 2
        assert "Input error" in capsys.readouterr().err

    def test_bad_metadata_returns_2(self, tree: Path, capsys):
        """Should fail with exit code 2 for malformed metadata."""
        assert main([str(tree), "-m", "broken"]) == 2
        assert "Argument error" in capsys.readouterr().err

    def test_content_type_with_directory_returns_2(self, tree: Path, capsys):
        """--content-type is rejected for a directory source."""
        assert main([str(tree), "--content-type", "text/plain", "--dry-run"]) == 2
        assert "--content-type" in capsys.readouterr().err

    def test_config_error_returns_2(self, tree: Path, capsys):
        """Should fail with exit code 2 on configuration errors."""
        with patch("s3_uploader.cli.load_config", side_effect=ConfigError("Missing thing")):
            assert main([str(tree)]) == 2

        assert "Configuration error: Missing thing" in capsys.readouterr().err

    def test_dry_run_lists_keys(self, tree: Path, capsys):
        """Dry run prints keys without loading configuration."""
        with patch("s3_uploader.cli.load_config") as mock_load:
            assert main([str(tree), "uploads", "--dry-run"]) == 0

        mock_load.assert_not_called()
        out = capsys.readouterr().out
        assert "uploads/index.html" in out
        assert "uploads/css/main.css" in out
        assert "Total files: 2" in out

    def test_successful_directory_upload(self, tree: Path, uploader_config, mock_client):
        """Should return 0 when every file uploads."""
        with patch("s3_uploader.cli.load_config", return_value=uploader_config), \
                patch("s3_uploader.cli.build_s3_client", return_value=mock_client):
            exit_code = main([str(tree), "uploads", "-q"])

        assert exit_code == 0
        keys = {c.kwargs["Key"] for c in mock_client.put_object.call_args_list}
        assert keys == {"uploads/index.html", "uploads/css/main.css"}

    def test_single_file_upload_options(self, tree: Path, uploader_config, mock_client):
        """Key, content type and metadata options reach the put call."""
        with patch("s3_uploader.cli.load_config", return_value=uploader_config), \
                patch("s3_uploader.cli.build_s3_client", return_value=mock_client):
            exit_code = main([
                str(tree / "index.html"), "web/home",
                "--content-type", "text/plain",
                "-m", "owner=john",
                "-q",
            ])

        assert exit_code == 0
        kwargs = mock_client.put_object.call_args.kwargs
        assert kwargs["Key"] == "web/home"
        assert kwargs["ContentType"] == "text/plain"
        assert kwargs["Metadata"] == {"owner": "john"}

    def test_failed_upload_returns_1(self, tree: Path, uploader_config, mock_client):
        """Should return 1 when any file fails."""
        mock_client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )

        with patch("s3_uploader.cli.load_config", return_value=uploader_config), \
                patch("s3_uploader.cli.build_s3_client", return_value=mock_client):
            exit_code = main([str(tree), "--no-retry", "-q"])

        assert exit_code == 1
        assert mock_client.put_object.call_count == 2

    def test_json_output_written(self, tree: Path, tmp_path: Path, uploader_config, mock_client):
        """Should write JSON results when requested."""
        output = tmp_path / "out" / "results.json"

        with patch("s3_uploader.cli.load_config", return_value=uploader_config), \
                patch("s3_uploader.cli.build_s3_client", return_value=mock_client):
            assert main([str(tree), "-q", "-j", str(output)]) == 0

        data = json.loads(output.read_text())
        assert data["summary"]["total"] == 2
        assert data["summary"]["succeeded"] == 2

    def test_interrupt_returns_130(self, tree: Path, uploader_config, mock_client):
        """Should return 130 when interrupted."""
        with patch("s3_uploader.cli.load_config", return_value=uploader_config), \
                patch("s3_uploader.cli.build_s3_client", return_value=mock_client), \
                patch(
                    "s3_uploader.cli.BatchUploadCoordinator.upload_all",
                    side_effect=KeyboardInterrupt,
                ):
            assert main([str(tree), "-q"]) == 130

    def test_diagnose_passes(self):
        """--diagnose returns 0 when no check fails."""
        results = [CheckResult("x", CheckStatus.PASS, "ok"), CheckResult("y", CheckStatus.WARN, "hm")]

        with patch("s3_uploader.cli.run_diagnostics", return_value=results), \
                patch("s3_uploader.cli.render_diagnostics") as mock_render:
            assert main(["--diagnose"]) == 0

        mock_render.assert_called_once_with(results)

    def test_diagnose_fails(self):
        """--diagnose returns 1 when a check fails."""
        results = [CheckResult("x", CheckStatus.FAIL, "missing")]

        with patch("s3_uploader.cli.run_diagnostics", return_value=results), \
                patch("s3_uploader.cli.render_diagnostics"):
            assert main(["--diagnose"]) == 1
