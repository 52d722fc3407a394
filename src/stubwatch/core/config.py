"""
Configuration module for stubwatch.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section, {})
    value = section_defaults.get(key, fallback)
    # Mutable defaults are copied so instances never share them
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return {k: list(v) if isinstance(v, list) else v for k, v in value.items()}
    return value


@dataclass
class WatchSettings:
    """Configuration for the watch loop."""

    debounce_ms: int = field(default_factory=lambda: _get_default("watch", "debounce_ms", 2000))
    ignore_patterns: list[str] = field(
        default_factory=lambda: _get_default("watch", "ignore_patterns", [".git"])
    )
    exit_on_failure: bool = field(
        default_factory=lambda: _get_default("watch", "exit_on_failure", False)
    )


@dataclass
class FilterConfig:
    """Configuration for the relevance filter."""

    source_extension: str = field(
        default_factory=lambda: _get_default("filter", "source_extension", ".rb")
    )
    reserved_markers: list[str] = field(
        default_factory=lambda: _get_default("filter", "reserved_markers", ["sorbet"])
    )


@dataclass
class ClassificationConfig:
    """Configuration for the change classifier."""

    schema_filename: str = field(
        default_factory=lambda: _get_default("classification", "schema_filename", "schema.rb")
    )
    persistence_category: str = field(
        default_factory=lambda: _get_default(
            "classification", "persistence_category", "persistence_model"
        )
    )
    category_prefixes: dict[str, list[str]] = field(
        default_factory=lambda: _get_default("classification", "category_prefixes", {})
    )


@dataclass
class HostConfig:
    """Configuration for the host application's manifest."""

    manifest_path: str = field(
        default_factory=lambda: _get_default("host", "manifest_path", ".stubwatch/manifest.yaml")
    )


@dataclass
class GenerationConfig:
    """Configuration for the generation command."""

    command: list[str] = field(
        default_factory=lambda: _get_default("generation", "command", ["bin/tapioca", "dsl"])
    )
    output_dir: str = field(
        default_factory=lambda: _get_default("generation", "output_dir", "sorbet/rbi/dsl")
    )
    workers: int = field(default_factory=lambda: _get_default("generation", "workers", 2))
    verbose: bool = field(default_factory=lambda: _get_default("generation", "verbose", True))
    quiet: bool = field(default_factory=lambda: _get_default("generation", "quiet", False))
    file_header: bool = field(
        default_factory=lambda: _get_default("generation", "file_header", True)
    )
    halt_upon_load_error: bool = field(
        default_factory=lambda: _get_default("generation", "halt_upon_load_error", True)
    )
    auto_strictness: bool = field(
        default_factory=lambda: _get_default("generation", "auto_strictness", True)
    )
    exclude: list[str] = field(default_factory=lambda: _get_default("generation", "exclude", []))
    timeout: Optional[float] = field(
        default_factory=lambda: _get_default("generation", "timeout", None)
    )
    write_generated_marker: bool = field(
        default_factory=lambda: _get_default("generation", "write_generated_marker", True)
    )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "INFO"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )


@dataclass
class StubwatchConfig:
    """Main configuration class for stubwatch."""

    watch: WatchSettings = field(default_factory=WatchSettings)
    filter: FilterConfig = field(default_factory=FilterConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    host: HostConfig = field(default_factory=HostConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "StubwatchConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            StubwatchConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the file format is unsupported
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "StubwatchConfig":
        """Create StubwatchConfig from a dictionary."""
        config = cls()

        if "watch" in data:
            config.watch = WatchSettings(**data["watch"])
        if "filter" in data:
            config.filter = FilterConfig(**data["filter"])
        if "classification" in data:
            config.classification = ClassificationConfig(**data["classification"])
        if "host" in data:
            config.host = HostConfig(**data["host"])
        if "generation" in data:
            config.generation = GenerationConfig(**data["generation"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])

        return config

    def apply_env_overrides(self) -> "StubwatchConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: STUBWATCH_<SECTION>_<KEY>
        Examples:
            - STUBWATCH_WATCH_DEBOUNCE_MS
            - STUBWATCH_CLASSIFICATION_SCHEMA_FILENAME
            - STUBWATCH_GENERATION_WORKERS
            - STUBWATCH_LOGGING_LEVEL

        List values are comma-separated.

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            # Watch config
            "STUBWATCH_WATCH_DEBOUNCE_MS": ("watch", "debounce_ms", int),
            "STUBWATCH_WATCH_IGNORE_PATTERNS": ("watch", "ignore_patterns", _parse_list),
            "STUBWATCH_WATCH_EXIT_ON_FAILURE": ("watch", "exit_on_failure", _parse_bool),
            # Filter config
            "STUBWATCH_FILTER_SOURCE_EXTENSION": ("filter", "source_extension", str),
            "STUBWATCH_FILTER_RESERVED_MARKERS": ("filter", "reserved_markers", _parse_list),
            # Classification config
            "STUBWATCH_CLASSIFICATION_SCHEMA_FILENAME": (
                "classification",
                "schema_filename",
                str,
            ),
            "STUBWATCH_CLASSIFICATION_PERSISTENCE_CATEGORY": (
                "classification",
                "persistence_category",
                str,
            ),
            # Host config
            "STUBWATCH_HOST_MANIFEST_PATH": ("host", "manifest_path", str),
            # Generation config
            "STUBWATCH_GENERATION_COMMAND": ("generation", "command", _parse_list),
            "STUBWATCH_GENERATION_OUTPUT_DIR": ("generation", "output_dir", str),
            "STUBWATCH_GENERATION_WORKERS": ("generation", "workers", int),
            "STUBWATCH_GENERATION_VERBOSE": ("generation", "verbose", _parse_bool),
            "STUBWATCH_GENERATION_QUIET": ("generation", "quiet", _parse_bool),
            "STUBWATCH_GENERATION_FILE_HEADER": ("generation", "file_header", _parse_bool),
            "STUBWATCH_GENERATION_HALT_UPON_LOAD_ERROR": (
                "generation",
                "halt_upon_load_error",
                _parse_bool,
            ),
            "STUBWATCH_GENERATION_AUTO_STRICTNESS": (
                "generation",
                "auto_strictness",
                _parse_bool,
            ),
            "STUBWATCH_GENERATION_TIMEOUT": ("generation", "timeout", float),
            # Logging config
            "STUBWATCH_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                setattr(section_obj, key, converter(value))

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _parse_bool(value: str) -> bool:
    """Parse a string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string to a list, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(
    config_path: Optional[Path | str] = None, apply_env: bool = True
) -> StubwatchConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        StubwatchConfig instance
    """
    if config_path:
        config = StubwatchConfig.from_file(config_path)
    else:
        config = StubwatchConfig()

    if apply_env:
        config.apply_env_overrides()

    return config
