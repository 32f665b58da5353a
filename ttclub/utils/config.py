"""Configuration management utilities."""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

CONFIG_DIR_ENV = "TTCLUB_CONFIG_DIR"
ANALYSIS_CONFIG = "analysis_config"


class Config:
    """Configuration manager for loading YAML config files and environment variables."""

    def __init__(self, config_dir: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_dir: Directory containing config files. Defaults to
                $TTCLUB_CONFIG_DIR, then the config/ directory shipped with the package.
        """
        if config_dir is None:
            env_dir = self.get_env(CONFIG_DIR_ENV)
            if env_dir:
                config_dir = Path(env_dir)
            else:
                # ttclub/utils/config.py -> ttclub/config
                config_dir = Path(__file__).parent.parent / "config"

        self.config_dir = Path(config_dir)
        self._configs: dict[str, dict[str, Any]] = {}

    def load(self, config_name: str) -> dict[str, Any]:
        """Load a configuration file.

        Args:
            config_name: Name of config file (without .yaml extension).

        Returns:
            Dictionary containing configuration.

        Raises:
            FileNotFoundError: If config file doesn't exist.
        """
        if config_name in self._configs:
            return self._configs[config_name]

        config_path = self.config_dir / f"{config_name}.yaml"
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f)

        self._configs[config_name] = config or {}
        return self._configs[config_name]

    def get(self, config_name: str, key: str, default: Any = None) -> Any:
        """Get a specific configuration value.

        Args:
            config_name: Name of config file.
            key: Dot-separated key path (e.g., "shot_classifier.cooldown_frames").
            default: Default value if key not found.

        Returns:
            Configuration value or default.
        """
        config = self.load(config_name)
        keys = key.split(".")

        value: Any = config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

            if value is None:
                return default

        return value

    def get_env(self, key: str, default: Any = None) -> Any:
        """Get environment variable with optional default."""
        return os.getenv(key, default)


# Global config instance
_global_config: Config | None = None


def get_config() -> Config:
    """Get global configuration instance (singleton).

    Returns:
        Global Config instance.
    """
    global _global_config
    if _global_config is None:
        _global_config = Config()
    return _global_config


def section_value(section: str, key: str, override: Any, default: Any) -> Any:
    """Resolve an analyzer setting.

    An explicit argument wins, then ``<section>.<key>`` from the analysis
    config, then ``default``.

    Args:
        section: Config section, e.g. "shot_classifier".
        key: Setting name within the section.
        override: Value passed by the caller (None = not given).
        default: Built-in default.

    Returns:
        Resolved value.
    """
    if override is not None:
        return override
    return get_config().get(ANALYSIS_CONFIG, f"{section}.{key}", default)
