"""
Tests for the command-line entry point.

Tests cover:
- Dry-run listing without a backend
- Exit status for configuration and credential errors
- Full run to an output file with a stand-in backend
- Interrupt exit status
"""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from doctldr.cli import EXIT_FATAL, EXIT_INTERRUPTED, EXIT_OK, build_parser, main
from doctldr.logging_config import configure_logging
from doctldr.models import Summary
from doctldr.pipeline import PipelineResult


class StubBackend:
    """Stands in for ChatCompletionBackend; one fixed reply per call."""

    def __init__(self, config):
        self.config = config

    def complete(self, prompt):
        return "Short summary."


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # main() binds the console handler to the captured stderr.
    configure_logging(stream=sys.__stderr__)


@pytest.fixture
def docs(tmp_path):
    root = tmp_path / "docs"
    root.mkdir()
    (root / "guide.md").write_text("# Guide\n\n" + "Install the tool. " * 20, encoding="utf-8")
    (root / "notes.txt").write_text("Plain notes about the project.", encoding="utf-8")
    return root


@pytest.fixture
def empty_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    return path


class TestParser:
    """Argument parsing."""

    def test_unset_flags_are_none(self):
        args = build_parser().parse_args(["docs"])
        assert args.directories == [Path("docs")]
        assert args.output_format is None
        assert args.concurrency is None
        assert args.verbose is None
        assert args.dry_run is None

    def test_flags(self):
        args = build_parser().parse_args(
            ["-f", "json", "-j", "8", "--max-tokens", "256", "-o", "out.json", "a", "b"]
        )
        assert args.output_format == "json"
        assert args.concurrency == 8
        assert args.max_tokens == 256
        assert args.output == Path("out.json")
        assert args.directories == [Path("a"), Path("b")]

    def test_directory_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Exit codes and produced output."""

    def test_dry_run_lists_files(self, docs, empty_config, capsys, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        status = main(["--dry-run", "-c", str(empty_config), str(docs)])
        out = capsys.readouterr().out
        assert status == EXIT_OK
        assert f"Would process: {docs / 'guide.md'}" in out
        assert f"Would process: {docs / 'notes.txt'}" in out
        assert "2 files would be summarized" in out

    def test_bad_format_is_fatal(self, docs, empty_config):
        assert main(["-f", "yaml", "-c", str(empty_config), str(docs)]) == EXIT_FATAL

    def test_missing_config_file_is_fatal(self, docs, tmp_path):
        assert main(["-c", str(tmp_path / "absent.yaml"), str(docs)]) == EXIT_FATAL

    def test_missing_api_key_is_fatal(self, docs, empty_config, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert main(["-c", str(empty_config), str(docs)]) == EXIT_FATAL

    def test_full_run_writes_json(self, docs, empty_config, tmp_path):
        output = tmp_path / "out" / "summaries.json"
        with patch("doctldr.pipeline.ChatCompletionBackend", StubBackend):
            status = main(["-f", "json", "-j", "2", "-o", str(output),
                           "-c", str(empty_config), str(docs)])

        assert status == EXIT_OK
        data = json.loads(output.read_text(encoding="utf-8"))
        paths = [entry["original_path"] for entry in data["summaries"]]
        assert paths == [str(docs / "guide.md"), str(docs / "notes.txt")]
        assert all(entry["summary"] == "Short summary." for entry in data["summaries"])

    def test_full_run_markdown_to_stdout(self, docs, empty_config, capsys):
        with patch("doctldr.pipeline.ChatCompletionBackend", StubBackend):
            status = main(["-c", str(empty_config), str(docs)])

        out = capsys.readouterr().out
        assert status == EXIT_OK
        assert out.startswith(f"# Summary of {docs / 'guide.md'}\n\nShort summary.")
        assert out.endswith("_\n")

    def test_interrupt_exit_status(self, docs, empty_config):
        with patch("doctldr.cli.SummarizationPipeline.run", side_effect=KeyboardInterrupt):
            assert main(["-c", str(empty_config), str(docs)]) == EXIT_INTERRUPTED

    def test_interrupted_run_writes_partial_output(self, docs, empty_config, tmp_path):
        output = tmp_path / "partial.md"
        partial = PipelineResult(
            summaries=[Summary(docs / "guide.md", "Done before the interrupt.", 369, 26, 26 / 369)],
            documents_found=2,
            cancelled=True,
        )
        with patch("doctldr.cli.SummarizationPipeline.run", return_value=partial):
            status = main(["-o", str(output), "-c", str(empty_config), str(docs)])

        assert status == EXIT_INTERRUPTED
        written = output.read_text(encoding="utf-8")
        assert written.startswith(f"# Summary of {docs / 'guide.md'}\n\nDone before the interrupt.")
        assert "notes.txt" not in written
