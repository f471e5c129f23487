"""
doctldr Configuration Module

Defaults, settings-file loading, and the read-only PipelineConfig that every
pipeline component receives.

Settings are resolved in three layers, later layers winning:
1. Built-in defaults (the constants below)
2. The YAML settings file (--config, or ~/.config/doctldr/config.yaml)
3. Command-line overrides

Example settings file:

    default:
      model: gpt-4o-mini
      max_tokens: 1024
      format: json
    api:
      key_env: OPENAI_API_KEY
      base_url: https://api.openai.com/v1
    processing:
      include_patterns: ["*.md", "*.rst"]
      exclude_patterns: ["node_modules", ".git", "_build"]
      max_depth: 3
    output:
      include_metadata: true
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .models import OutputFormat

APP_NAME = "doctldr"
CONFIG_DIR = Path(os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))) / APP_NAME
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Backend
DEFAULT_MODEL = "gpt-4"
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TEMPERATURE = 0.3
DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 120.0

# Context Window Configuration
# Input budget = context window - max_tokens - prompt overhead.
# Token counts are estimated at 4 characters per token.
DEFAULT_CONTEXT_WINDOW = 8192
CHARS_PER_TOKEN = 4
PROMPT_OVERHEAD_TOKENS = 150

# Retry policy for transient backend failures
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE_SECONDS = 1.0
DEFAULT_BACKOFF_MAX_SECONDS = 30.0

# Traversal
DEFAULT_INCLUDE_PATTERNS = ("*.md", "*.rst", "*.txt", "*.html")
DEFAULT_EXCLUDE_PATTERNS = ("node_modules", ".git")
DEFAULT_MAX_DEPTH = 5

# Parallel Processing Configuration
# Auto-detect: min(cpu_count, 4). Backend rate limits, not CPU, are the
# usual bottleneck, so more workers rarely help.
DEFAULT_CONCURRENCY = min(os.cpu_count() or 4, 4)
MAX_CONCURRENCY = 32

# How long an interrupted run waits for in-flight requests before
# abandoning them.
DEFAULT_CANCEL_GRACE_SECONDS = 10.0


@dataclass(frozen=True)
class PipelineConfig:
    """
    Read-only settings for one run.

    Built once at startup by load_config() and passed explicitly to the
    walker, extractor, client and renderer.
    """
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    include_patterns: tuple[str, ...] = DEFAULT_INCLUDE_PATTERNS
    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    max_depth: int = DEFAULT_MAX_DEPTH
    output_format: OutputFormat = OutputFormat.MARKDOWN
    dry_run: bool = False
    include_metadata: bool = True
    include_hidden: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    context_window: int = DEFAULT_CONTEXT_WINDOW
    temperature: float = DEFAULT_TEMPERATURE
    api_base: str = DEFAULT_API_BASE
    api_key_env: str = DEFAULT_API_KEY_ENV
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_base_seconds: float = DEFAULT_BACKOFF_BASE_SECONDS
    backoff_max_seconds: float = DEFAULT_BACKOFF_MAX_SECONDS
    cancel_grace_seconds: float = DEFAULT_CANCEL_GRACE_SECONDS
    verbose: bool = False
    log_file: Path | None = None

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        if not self.model or not str(self.model).strip():
            raise ConfigError("model must be a non-empty string")
        for name in ("max_tokens", "max_depth", "concurrency", "context_window", "max_attempts"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.concurrency > MAX_CONCURRENCY:
            raise ConfigError(f"concurrency must be at most {MAX_CONCURRENCY}, got {self.concurrency}")
        for name in ("request_timeout", "backoff_base_seconds", "backoff_max_seconds",
                     "cancel_grace_seconds", "temperature"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ConfigError(f"{name} must be a non-negative number, got {value!r}")
        if not self.include_patterns:
            raise ConfigError("include_patterns must contain at least one pattern")
        if not isinstance(self.output_format, OutputFormat):
            raise ConfigError(f"output_format must be an OutputFormat, got {self.output_format!r}")

    @property
    def input_budget_chars(self) -> int:
        """
        Characters of document text that fit in one request.

        Never less than one token's worth, so a misconfigured context
        window still sends something rather than an empty prompt.
        """
        tokens = self.context_window - self.max_tokens - PROMPT_OVERHEAD_TOKENS
        return max(tokens, 1) * CHARS_PER_TOKEN

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with the given non-None fields replaced."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "output_format" in changes:
            changes["output_format"] = OutputFormat.parse(changes["output_format"])
        return replace(self, **changes)


# Settings file section -> {yaml key: PipelineConfig field}
_SECTION_FIELDS = {
    "default": {
        "model": "model",
        "max_tokens": "max_tokens",
        "format": "output_format",
        "verbose": "verbose",
        "temperature": "temperature",
        "log_file": "log_file",
    },
    "api": {
        "key_env": "api_key_env",
        "base_url": "api_base",
        "timeout": "request_timeout",
    },
    "processing": {
        "include_patterns": "include_patterns",
        "exclude_patterns": "exclude_patterns",
        "max_depth": "max_depth",
        "include_hidden": "include_hidden",
        "concurrency": "concurrency",
        "context_window": "context_window",
    },
    "retry": {
        "max_attempts": "max_attempts",
        "base_delay": "backoff_base_seconds",
        "max_delay": "backoff_max_seconds",
        "cancel_grace": "cancel_grace_seconds",
    },
    "output": {
        "default_format": "output_format",
        "include_metadata": "include_metadata",
    },
}

# Keys accepted for compatibility but not used by the pipeline.
_IGNORED_KEYS = {("api", "provider")}


def load_settings(path: Path | None = None) -> dict[str, Any]:
    """
    Read the YAML settings file into PipelineConfig keyword arguments.

    Args:
        path: Settings file. None means CONFIG_FILE, which may be absent.

    Returns:
        dict of PipelineConfig field name -> value. Empty if the default
        settings file does not exist.

    Raises:
        ConfigError: If an explicitly given file is missing, the YAML is
                     malformed, or a section contains unknown keys.
    """
    explicit = path is not None
    settings_path = Path(path) if explicit else CONFIG_FILE

    if not settings_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {settings_path}")
        return {}

    try:
        with open(settings_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file {settings_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file {settings_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {settings_path} must contain a mapping")

    values: dict[str, Any] = {}
    for section, content in data.items():
        if section not in _SECTION_FIELDS:
            raise ConfigError(f"Unknown config section [{section}] in {settings_path}")
        if content is None:
            continue
        if not isinstance(content, dict):
            raise ConfigError(f"Config section [{section}] must be a mapping")
        mapping = _SECTION_FIELDS[section]
        for key, value in content.items():
            if (section, key) in _IGNORED_KEYS:
                continue
            if key not in mapping:
                raise ConfigError(f"Unknown key '{key}' in config section [{section}]")
            values[mapping[key]] = value

    return _coerce(values)


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    """Convert YAML scalars/lists into PipelineConfig field types."""
    coerced = dict(values)
    for key in ("include_patterns", "exclude_patterns"):
        if key in coerced:
            patterns = coerced[key]
            if isinstance(patterns, str):
                patterns = [patterns]
            if not isinstance(patterns, (list, tuple)):
                raise ConfigError(f"{key} must be a list of glob patterns")
            coerced[key] = tuple(str(p) for p in patterns)
    if "output_format" in coerced:
        coerced["output_format"] = OutputFormat.parse(coerced["output_format"])
    if coerced.get("log_file") is not None:
        coerced["log_file"] = Path(os.path.expanduser(str(coerced["log_file"])))
    return coerced


def load_config(path: Path | None = None, **overrides: Any) -> PipelineConfig:
    """
    Build the PipelineConfig for a run.

    Args:
        path: Optional explicit settings file.
        **overrides: Field values from the command line; None values are
                     ignored so unset flags fall through to the file/defaults.

    Raises:
        ConfigError: If the settings are invalid.
    """
    known = {f.name for f in fields(PipelineConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ConfigError(f"Unknown configuration fields: {sorted(unknown)}")

    settings = load_settings(path)
    settings.update({key: value for key, value in overrides.items() if value is not None})
    if "output_format" in settings:
        settings["output_format"] = OutputFormat.parse(settings["output_format"])

    try:
        return PipelineConfig(**settings)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
