"""Configuration management for custody tools.

Settings come from ``config/settings.yaml`` with optional overrides from
``config/settings.local.yaml``. String values of the form ``${VAR}`` or
``${VAR:default}`` are substituted from the environment, which is first
populated from a ``.env`` file when present.
"""

import os
import re
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

_ENV_REFERENCE = re.compile(r"\$\{[^}]+\}")


class ConfigError(Exception):
    """Raise when configuration loading or validation fails."""


class ConfigLoader:
    """Load YAML settings with environment variable substitution."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the config loader.

        Args:
            config_dir: Directory containing config files. Defaults to
                src/custody_tools/config.

        """
        load_dotenv()
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)
        self._config: dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        settings_file = self.config_dir / "settings.yaml"
        if settings_file.exists():
            with settings_file.open() as f:
                self._config = yaml.safe_load(f) or {}

        local_settings = self.config_dir / "settings.local.yaml"
        if local_settings.exists():
            with local_settings.open() as f:
                local_config = cast("dict[str, Any]", yaml.safe_load(f) or {})
                self._deep_merge(self._config, local_config)

        self._config = self._substitute_env_vars(self._config)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Merge ``override`` into ``base`` in place, recursing into dicts."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], cast("dict[str, Any]", value))
            else:
                base[key] = value

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute ``${VAR}`` and ``${VAR:default}`` references.

        Raises:
            ConfigError: If a variable without default is unset, or a reference
                is embedded inside a longer string.

        """
        if isinstance(config, dict):
            return {
                k: self._substitute_env_vars(v)
                for k, v in cast("dict[str, Any]", config).items()
            }
        if isinstance(config, list):
            return [self._substitute_env_vars(item) for item in cast("list[Any]", config)]
        if isinstance(config, str) and config.startswith("${") and config.endswith("}"):
            var_expr = config[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
            else:
                var_name, default = var_expr, None

            value = os.getenv(var_name, default)
            if value is None:
                msg = f"Required environment variable ${{{var_name}}} is not set and has no default"
                raise ConfigError(msg)
            return value

        if isinstance(config, str) and _ENV_REFERENCE.search(config):
            msg = f"Unresolved environment variable reference in: {config}"
            raise ConfigError(msg)

        return config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key.

        Args:
            key: Configuration key in dot notation (e.g., 'custody.api_key').
            default: Default value if key not found.

        Returns:
            Configuration value.

        """
        current: Any = self._config
        for k in key.split("."):
            if not isinstance(current, dict):
                return default
            current = cast("dict[str, Any]", current).get(k)
            if current is None:
                return default
        return current

    def get_custody_config(self) -> dict[str, Any]:
        """Get the custody API section.

        Raises:
            ConfigError: If the custody config value is not a dictionary.

        """
        result: Any = self.get("custody", {})
        if isinstance(result, dict):
            return cast("dict[str, Any]", result)
        msg = f"custody config must be a dict, got {type(result).__name__}"
        raise ConfigError(msg)

    def get_timeout(self) -> float:
        """Return the request timeout in seconds.

        Raises:
            ConfigError: If the configured value is not a number.

        """
        raw = self.get("custody.timeout", 30.0)
        try:
            return float(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"custody.timeout must be a number, got {raw!r}") from exc

    def get_private_key(self) -> bytes:
        """Read the PEM private key file.

        Returns:
            The private key bytes.

        Raises:
            ValueError: If private key path is not configured.
            FileNotFoundError: If private key file doesn't exist.

        """
        key_path = self.get("custody.private_key_path")
        if not key_path:
            raise ValueError("custody.private_key_path is not configured")

        path = Path(key_path)
        if not path.exists():
            raise FileNotFoundError(f"Private key not found at {path}")

        return path.read_bytes()


_config: ConfigLoader | None = None


def get_config() -> ConfigLoader:
    """Return the global ``ConfigLoader`` singleton, creating it on first use.

    Returns:
        The shared ``ConfigLoader`` instance.

    """
    global _config  # noqa: PLW0603
    if _config is None:
        _config = ConfigLoader()
    return _config
