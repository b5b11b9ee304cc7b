"""
Configuration management for code generation.

Handles loading and merging generator settings from JSON files,
providing per-framework defaults and validation.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ...logging_config import get_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


@dataclass
class GeneratorConfig:
    """Settings of the generator itself (not the project's rash.config.json)."""

    # Project defaults
    default_port: int = 3000
    default_project_name: str = "rash-app"

    # Capability limits
    max_tier: int = 3

    # Formatting
    format_output: bool = True
    max_blank_lines: int = 2

    # Custom settings (framework-specific)
    custom: Dict[str, Any] = field(default_factory=dict)


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._configs: Dict[str, Dict[str, Any]] = {}
        self._load_defaults()

    def _load_defaults(self):
        """Load default configurations for the implemented frameworks."""
        self._configs["express"] = {
            "default_port": 3000,
            "custom": {"module_type": "commonjs", "node_types_version": "^20.0.0"},
        }
        self._configs["actix"] = {
            "default_port": 8080,
            "custom": {"edition": "2021"},
        }
        self._configs["fastapi"] = {
            "default_port": 8000,
            "custom": {"python_version": ">=3.11"},
        }
        self._configs["gin"] = {
            "default_port": 8080,
            "custom": {"go_version": "1.22"},
        }

    def get_config(self, framework: str, custom_config: Optional[Dict[str, Any]] = None,
                   config_file: Optional[Union[str, Path]] = None) -> GeneratorConfig:
        """
        Get complete configuration for a framework.

        Args:
            framework: Target framework name
            custom_config: Keyword overrides, applied last
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration

        Raises:
            ConfigError: If the configuration file cannot be used
        """
        defaults = self._configs.get(framework, {})
        base_config = dict(defaults)
        base_config["custom"] = dict(defaults.get("custom", {}))

        if config_file:
            file_config = self._load_config_file(config_file)
            self._merge(base_config, file_config)

        if custom_config:
            self._merge(base_config, custom_config)

        return self._dict_to_config(base_config)

    @staticmethod
    def _merge(target: Dict[str, Any], overrides: Dict[str, Any]):
        for key, value in overrides.items():
            if key == "custom" and isinstance(value, dict):
                target.setdefault("custom", {}).update(value)
            else:
                target[key] = value

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {str(e)}")
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {str(e)}")

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        logger.debug("Loaded generator config from %s", path)
        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig instance."""
        known_fields = set(GeneratorConfig.__dataclass_fields__)

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        # Unknown keys end up in the custom dict
        if custom_args:
            existing_custom = dict(config_args.get("custom", {}))
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        return GeneratorConfig(**config_args)

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)
        config_dict = asdict(config)
        custom = config_dict.pop("custom")
        config_dict.update(custom)

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {str(e)}")

    def list_frameworks(self) -> list[str]:
        """Get list of frameworks with built-in defaults."""
        return list(self._configs.keys())

    def validate_config(self, config: GeneratorConfig) -> list[str]:
        """
        Validate a configuration.

        Returns:
            List of human-readable problems (empty when valid)
        """
        problems = []

        if not 0 <= config.max_tier <= 3:
            problems.append(f"Invalid max_tier: {config.max_tier} (expected 0-3)")

        if not 1 <= config.default_port <= 65535:
            problems.append(f"Invalid default_port: {config.default_port}")

        if config.max_blank_lines < 0:
            problems.append(f"Invalid max_blank_lines: {config.max_blank_lines}")

        if not config.default_project_name.strip():
            problems.append("default_project_name must not be empty")

        return problems


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(framework: str, custom_config: Optional[Dict[str, Any]] = None,
                config_file: Optional[Union[str, Path]] = None) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        framework: Target framework name
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration for the framework
    """
    manager = get_config_manager()
    return manager.get_config(framework, custom_config, config_file)
