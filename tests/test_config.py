"""
Tests for configuration loading and the data model.

Tests cover:
- YAML settings sections and key mapping
- Validation of bad values
- CLI override precedence
- Summary ratio calculation and OutputFormat parsing
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from doctldr.config import (
    CHARS_PER_TOKEN,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    PROMPT_OVERHEAD_TOKENS,
    PipelineConfig,
    load_config,
    load_settings,
)
from doctldr.errors import ConfigError
from doctldr.models import Document, DocumentFormat, OutputFormat, PreviewRecord, Summary


def write_yaml(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestDefaults:
    """Built-in defaults."""

    def test_defaults(self):
        config = PipelineConfig()
        assert config.model == "gpt-4"
        assert config.max_tokens == 2048
        assert config.output_format is OutputFormat.MARKDOWN
        assert config.include_patterns == DEFAULT_INCLUDE_PATTERNS
        assert config.exclude_patterns == DEFAULT_EXCLUDE_PATTERNS
        assert config.max_depth == 5
        assert config.include_metadata is True
        assert config.dry_run is False
        assert config.temperature == 0.3

    def test_input_budget(self):
        config = PipelineConfig(context_window=8192, max_tokens=2048)
        assert config.input_budget_chars == (8192 - 2048 - PROMPT_OVERHEAD_TOKENS) * CHARS_PER_TOKEN

    def test_input_budget_never_zero(self):
        config = PipelineConfig(context_window=100, max_tokens=2048)
        assert config.input_budget_chars == CHARS_PER_TOKEN

    def test_frozen(self):
        config = PipelineConfig()
        with pytest.raises(AttributeError):
            config.model = "other"


class TestValidation:
    """Invalid values are ConfigErrors."""

    @pytest.mark.parametrize("field,value", [
        ("max_tokens", 0),
        ("max_depth", -1),
        ("concurrency", 0),
        ("concurrency", 1000),
        ("max_attempts", 0),
        ("max_tokens", "many"),
        ("request_timeout", -5),
        ("model", "  "),
        ("include_patterns", ()),
    ])
    def test_rejected(self, field, value):
        with pytest.raises(ConfigError):
            PipelineConfig(**{field: value})


class TestSettingsFile:
    """YAML settings loading."""

    def test_sections_mapped_to_fields(self, tmp_path):
        path = write_yaml(tmp_path, """
default:
  model: gpt-4o-mini
  max_tokens: 512
  format: json
api:
  provider: openai
  key_env: MY_KEY
  base_url: http://localhost:8000/v1
  timeout: 30
processing:
  include_patterns: ["*.md"]
  exclude_patterns: "_build"
  max_depth: 2
  concurrency: 2
retry:
  max_attempts: 5
  base_delay: 0.5
output:
  include_metadata: false
""")
        config = load_config(path)
        assert config.model == "gpt-4o-mini"
        assert config.max_tokens == 512
        assert config.output_format is OutputFormat.JSON
        assert config.api_key_env == "MY_KEY"
        assert config.api_base == "http://localhost:8000/v1"
        assert config.request_timeout == 30
        assert config.include_patterns == ("*.md",)
        assert config.exclude_patterns == ("_build",)
        assert config.max_depth == 2
        assert config.concurrency == 2
        assert config.max_attempts == 5
        assert config.backoff_base_seconds == 0.5
        assert config.include_metadata is False

    def test_overrides_beat_file(self, tmp_path):
        path = write_yaml(tmp_path, "default:\n  model: from-file\n  max_tokens: 100\n")
        config = load_config(path, model="from-cli", max_tokens=None)
        assert config.model == "from-cli"
        assert config.max_tokens == 100

    def test_override_format_name(self, tmp_path):
        path = write_yaml(tmp_path, "")
        assert load_config(path, output_format="txt").output_format is OutputFormat.PLAIN_TEXT

    def test_missing_default_file_means_defaults(self, tmp_path):
        with patch("doctldr.config.CONFIG_FILE", tmp_path / "absent.yaml"):
            assert load_settings() == {}
            assert load_config() == PipelineConfig()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.yaml")

    @pytest.mark.parametrize("content", [
        "default: [unclosed",
        "- just\n- a list\n",
        "unknown_section:\n  x: 1\n",
        "default:\n  colour: blue\n",
        "default:\n  format: yaml\n",
        "processing:\n  max_depth: 0\n",
        "processing:\n  include_patterns: 5\n",
    ])
    def test_bad_settings(self, tmp_path, content):
        with pytest.raises(ConfigError):
            load_config(write_yaml(tmp_path, content))

    def test_unknown_override(self):
        with pytest.raises(ConfigError):
            load_config(None, colour="blue")

    def test_log_file_path_expanded(self, tmp_path):
        path = write_yaml(tmp_path, "default:\n  log_file: ~/doctldr.log\n")
        config = load_config(path)
        assert config.log_file == Path.home() / "doctldr.log"


class TestModels:
    """Data model helpers."""

    @pytest.mark.parametrize("name,expected", [
        ("md", OutputFormat.MARKDOWN),
        ("Markdown", OutputFormat.MARKDOWN),
        ("JSON", OutputFormat.JSON),
        ("txt", OutputFormat.PLAIN_TEXT),
        ("text", OutputFormat.PLAIN_TEXT),
        ("plain", OutputFormat.PLAIN_TEXT),
    ])
    def test_output_format_parse(self, name, expected):
        assert OutputFormat.parse(name) is expected

    def test_output_format_parse_rejects_unknown(self):
        with pytest.raises(ConfigError):
            OutputFormat.parse("pdf")

    def test_summary_from_document(self):
        document = Document(Path("a.md"), b"", DocumentFormat.MARKDOWN, "x" * 400)
        summary = Summary.from_document(document, "y" * 100)
        assert summary.original_size == 400
        assert summary.summary_size == 100
        assert summary.compression_ratio == 0.25
        assert summary.compression_percent == 25.0

    def test_summary_ratio_clamped(self):
        document = Document(Path("a.md"), b"", DocumentFormat.MARKDOWN, "short")
        assert Summary.from_document(document, "much longer summary").compression_ratio == 1.0

    def test_preview_record(self):
        document = Document(Path("a.md"), b"", DocumentFormat.MARKDOWN, "line one\nline two")
        assert document.line_count == 2
        assert PreviewRecord.from_document(document) == PreviewRecord(Path("a.md"), 17)
