"""
Configuration loader for the export.

Settings are layered: defaults, then an optional YAML file, then
environment variables, then command-line flags.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..core.exceptions import ExportConfigError
from ..runner.export_runner import RunnerConfig


logger = logging.getLogger(__name__)


# Environment variable -> (field, type)
ENV_OVERRIDES = {
    "ES_EXPORT_HOST": ("host", str),
    "ES_EXPORT_USER": ("user", str),
    "ES_EXPORT_PASSWORD": ("password", str),
    "ES_EXPORT_INDEX": ("index", str),
    "ES_EXPORT_SLICES": ("slices", int),
    "ES_EXPORT_SCROLL_TTL": ("scroll_ttl", str),
}

# Expected YAML value type per field; None is allowed for NULLABLE_FIELDS
FIELD_TYPES = {
    "host": str,
    "user": str,
    "password": str,
    "index": str,
    "query": str,
    "slices": int,
    "page_size": int,
    "output": str,
    "scroll_ttl": str,
    "timeout": int,
    "verify_ssl": bool,
    "clear_scroll": bool,
    "max_retries": int,
    "progress": bool,
}

NULLABLE_FIELDS = {"user", "password", "index", "query", "page_size", "output"}


@dataclass
class ExportConfig:
    """
    Settings for one export run.

    Attributes:
        host: Base URL of the search service
        user: Basic auth user (no auth when None)
        password: Basic auth password (prompted for when None and user is set)
        index: Index or index pattern to export
        query: Path to the JSON query file, or "-" for stdin
        slices: Number of parallel slices
        page_size: Optional page size hint
        output: Output file path
        scroll_ttl: Scroll keep-alive, e.g. "1m"
        timeout: HTTP timeout in seconds
        verify_ssl: Verify TLS certificates
        clear_scroll: Release scroll sessions when slices end
        max_retries: Extra attempts for the initial search of a slice
        progress: Render the terminal progress display
    """
    host: str = "http://localhost:9200"
    user: Optional[str] = None
    password: Optional[str] = None
    index: Optional[str] = None
    query: Optional[str] = None
    slices: int = 1
    page_size: Optional[int] = None
    output: Optional[str] = None
    scroll_ttl: str = "1m"
    timeout: int = 60
    verify_ssl: bool = True
    clear_scroll: bool = True
    max_retries: int = 0
    progress: bool = True

    def with_overrides(self, **overrides: Any) -> "ExportConfig":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **values)

    def validate(self) -> None:
        """
        Check the settings needed to start a run.

        Raises:
            ExportConfigError: on the first invalid or missing setting
        """
        if not self.host:
            raise ExportConfigError("host is required")
        if not self.index:
            raise ExportConfigError("index is required")
        if not self.query:
            raise ExportConfigError("query is required")
        if not self.output:
            raise ExportConfigError("output is required")
        if self.slices < 1:
            raise ExportConfigError(f"slices must be at least 1, got {self.slices}")
        if self.page_size is not None and self.page_size < 1:
            raise ExportConfigError(f"page_size must be at least 1, got {self.page_size}")
        if not self.scroll_ttl:
            raise ExportConfigError("scroll_ttl must not be empty")
        if self.max_retries < 0:
            raise ExportConfigError(f"max_retries must not be negative, got {self.max_retries}")

    def runner_config(self) -> RunnerConfig:
        return RunnerConfig(
            index=self.index,
            slices=self.slices,
            scroll_ttl=self.scroll_ttl,
            page_size=self.page_size,
            clear_scroll=self.clear_scroll,
        )


def load_config(config_path: Optional[Path] = None) -> ExportConfig:
    """
    Build the configuration from defaults, a YAML file and the environment.

    Args:
        config_path: Optional path to a YAML file with ExportConfig keys

    Returns:
        ExportConfig (not yet validated)

    Raises:
        ExportConfigError: if the file is missing, malformed or has unknown keys
    """
    values: Dict[str, Any] = {}
    if config_path is not None:
        values.update(_read_yaml(Path(config_path)))
    values.update(_env_overrides())

    try:
        return ExportConfig(**values)
    except TypeError as e:
        raise ExportConfigError(f"Invalid configuration: {e}")


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise ExportConfigError(f"Config file not found: {config_path}")

    logger.info(f"Loading config from: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ExportConfigError(f"Invalid YAML in {config_path}: {e}")

    config = config or {}
    if not isinstance(config, dict):
        raise ExportConfigError(f"Config file {config_path} must contain a mapping")

    known = {f.name for f in dataclasses.fields(ExportConfig)}
    unknown = sorted(str(key) for key in set(config) - known)
    if unknown:
        raise ExportConfigError(f"Unknown config keys in {config_path}: {', '.join(unknown)}")

    return {key: _check_type(key, value, config_path) for key, value in config.items()}


def _check_type(key: str, value: Any, config_path: Path) -> Any:
    """Return the value for `key`, or raise if it has the wrong type."""
    expected = FIELD_TYPES[key]
    if value is None and key in NULLABLE_FIELDS:
        return value

    if expected is str and isinstance(value, (int, float)) and not isinstance(value, bool):
        # Unquoted numeric passwords and users
        return str(value)

    # bool is a subclass of int, so check it explicitly
    if isinstance(value, expected) and (expected is bool or not isinstance(value, bool)):
        return value

    raise ExportConfigError(
        f"Invalid value for {key} in {config_path}: "
        f"expected {expected.__name__}, got {value!r}"
    )


def _env_overrides() -> Dict[str, Any]:
    """Apply environment variable overrides."""
    values = {}
    for env_name, (field_name, field_type) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if not raw:
            continue
        try:
            values[field_name] = field_type(raw)
        except ValueError:
            raise ExportConfigError(f"Invalid value for {env_name}: {raw!r}")
    return values
