"""
Configuration Manager for scapwb.

This module provides the ConfigManager class for loading, validating,
and accessing configuration from multiple sources (YAML, JSON, TOML,
environment variables).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dynaconf import Dynaconf
from pydantic import ValidationError

from scapwb.config.defaults import DEFAULT_CONFIG
from scapwb.config.models import LoggingConfig, OutputConfig, ScannerConfig, ScapwbConfig
from scapwb.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class ConfigManager:
    """
    Configuration manager for scapwb.

    Handles loading configuration from multiple sources with proper precedence:
    CLI args > Environment variables (SCAPWB_*) > Config file > Defaults

    Usage:
        manager = ConfigManager()
        manager.load(Path("settings.yaml"))
        scanner_config = manager.scanner_config()
    """

    def __init__(self) -> None:
        self._settings: Optional[Dynaconf] = None
        self._config_file: Optional[Path] = None
        self._loaded = False

    def load(self, config_path: Optional[Path] = None) -> None:
        """
        Load configuration from file and environment.

        Args:
            config_path: Optional path to a configuration file. If not
                provided, settings.{yaml,json,toml} in the CWD are used.

        Raises:
            FileNotFoundError: If config_path does not exist.
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            settings_files = [str(config_path)]
            self._config_file = config_path
        else:
            settings_files = ["settings.yaml", "settings.json", "settings.toml"]
            self._config_file = None

        self._settings = Dynaconf(
            envvar_prefix="SCAPWB",
            settings_files=settings_files,
            environments=False,
            load_dotenv=True,
            merge_enabled=True,
            default_settings_paths=[],
        )

        self._apply_defaults()
        self._loaded = True

        logger.info(
            "configuration_loaded",
            config_file=str(self._config_file) if self._config_file else None,
        )

    def _apply_defaults(self) -> None:
        """Apply default values for missing configuration keys."""
        if self._settings is None:
            return

        def apply_nested(defaults: dict, prefix: str = "") -> None:
            for key, value in defaults.items():
                full_key = f"{prefix}.{key}" if prefix else key
                if isinstance(value, dict):
                    apply_nested(value, full_key)
                elif not self._settings.exists(full_key):
                    self._settings.set(full_key, value)

        apply_nested(DEFAULT_CONFIG)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key, e.g. "scanner.niceness"
            default: Default value if key doesn't exist
        """
        if not self._loaded:
            self.load()

        if self._settings is None:
            return default

        value = self._settings.get(key, default)
        if isinstance(value, Mapping):
            return _normalize(value)
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value (dot notation supported)."""
        if not self._loaded:
            self.load()

        if self._settings is not None:
            self._settings.set(key, value)

    def logging_config(self) -> LoggingConfig:
        """Return the validated ``logging`` section."""
        return LoggingConfig.model_validate(self.get("logging", {}))

    def scanner_config(self) -> ScannerConfig:
        """Return the validated ``scanner`` section."""
        return ScannerConfig.model_validate(self.get("scanner", {}))

    def output_config(self) -> OutputConfig:
        """Return the validated ``output`` section."""
        return OutputConfig.model_validate(self.get("output", {}))

    def validate(self, strict: bool = False) -> ValidationResult:
        """
        Validate the current configuration against the schema.

        Args:
            strict: If True, treat warnings as errors
        """
        if not self._loaded:
            self.load()

        errors: list[str] = []
        warnings: list[str] = []

        try:
            ScapwbConfig.model_validate(self.to_dict())
        except ValidationError as e:
            errors.extend(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )

        scanner = self.get("scanner", {})
        for key in ("oscap_path", "pkexec_oscap_path", "nice_path"):
            path = scanner.get(key)
            if path and not Path(path).exists():
                warnings.append(f"scanner.{key} does not exist: {path}")

        is_valid = len(errors) == 0
        if strict:
            is_valid = is_valid and len(warnings) == 0

        return ValidationResult(is_valid=is_valid, errors=errors, warnings=warnings)

    def to_dict(self) -> dict:
        """Export the current configuration as a dictionary with lower-case keys."""
        if not self._loaded:
            self.load()

        if self._settings is None:
            return {key: dict(value) for key, value in DEFAULT_CONFIG.items()}

        return _normalize(self._settings.as_dict())

    @property
    def config_file(self) -> Optional[Path]:
        """Return the path to the loaded configuration file."""
        return self._config_file

    @property
    def is_loaded(self) -> bool:
        """Return whether configuration has been loaded."""
        return self._loaded


def _normalize(value: Mapping) -> dict:
    """Convert Dynaconf boxes to plain dicts; Dynaconf upper-cases top-level keys."""
    normalized = {}
    for key, item in value.items():
        if isinstance(item, Mapping):
            item = _normalize(item)
        normalized[str(key).lower()] = item
    return normalized


_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
