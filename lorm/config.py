"""
Config system - Layered typed configuration with validation.

Merge precedence (later overrides earlier):
defaults < lorm.yaml < .env file < LORM_* environment < explicit overrides
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, MISSING
from pathlib import Path
from typing import Any, Dict, Optional, get_args, get_origin

import yaml
from dotenv import dotenv_values

from .faults import ConfigFault

logger = logging.getLogger("lorm.config")

__all__ = ["LormConfig", "ConfigLoader", "get_config", "configure", "reset_config"]


@dataclass(frozen=True)
class LormConfig:
    """
    Process-wide defaults.

    Attributes:
        dialect: Backend dialect used when a model does not declare one.
        database_url: URL handed to ``lorm.db.connect`` when none is given.
        echo_sql: Log every executed statement at INFO instead of DEBUG.
    """

    dialect: Optional[str] = "sqlite"
    database_url: Optional[str] = None
    echo_sql: bool = False


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > YAML file > defaults
    """

    def __init__(self, env_prefix: str = "LORM_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        env_prefix: str = "LORM_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from every source in precedence order.

        Args:
            path: YAML config file (defaults to ./lorm.yaml when present)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file (defaults to ./.env when present)
            overrides: Manual overrides (highest precedence)
        """
        loader = cls(env_prefix=env_prefix)

        if path is None and Path("lorm.yaml").exists():
            path = "lorm.yaml"
        if path:
            loader._load_yaml_file(Path(path))

        if env_file is None and Path(".env").exists():
            env_file = ".env"
        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        if not path.exists():
            raise ConfigFault(str(path), "config file does not exist")
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigFault(str(path), "top-level YAML value must be a mapping")
        # A `lorm:` section is accepted so the file can be shared with other tools
        self._merge_dict(self.config_data, data.get("lorm", data))

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return
        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert LORM_SECTION__KEY to a nested dict entry."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on", "1"):
            return True
        if value.lower() in ("false", "no", "off", "0"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def build(self) -> LormConfig:
        """Instantiate and validate ``LormConfig`` from the merged data."""
        kwargs = {}
        for field_info in fields(LormConfig):
            name = field_info.name
            if name in self.config_data:
                value = self.config_data[name]
                if not self._check_type(value, field_info.type):
                    raise ConfigFault(
                        name,
                        f"expected {field_info.type}, got {type(value).__name__}",
                    )
                kwargs[name] = value
            elif field_info.default is MISSING:
                raise ConfigFault(name, "required config field not provided")

        unknown = set(self.config_data) - {f.name for f in fields(LormConfig)}
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")

        return LormConfig(**kwargs)

    def _check_type(self, value: Any, expected: Any) -> bool:
        """Basic type checking against the (string) dataclass annotation."""
        if isinstance(expected, str):
            expected = {
                "Optional[str]": Optional[str],
                "bool": bool,
                "str": str,
            }.get(expected, object)

        origin = get_origin(expected)
        if origin is not None:
            args = get_args(expected)
            if value is None:
                return type(None) in args
            return any(isinstance(value, a) for a in args if a is not type(None))
        return isinstance(value, expected)


# ── Module-level accessor ───────────────────────────────────────────────────

_config: Optional[LormConfig] = None


def get_config() -> LormConfig:
    """Return the process configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = ConfigLoader.load().build()
    return _config


def configure(
    config: Optional[LormConfig] = None,
    *,
    path: Optional[str] = None,
    env_file: Optional[str] = None,
    **overrides: Any,
) -> LormConfig:
    """
    Replace the process configuration.

    Either pass a ready ``LormConfig`` or let the loader merge ``path``,
    ``env_file``, the environment and keyword ``overrides``.
    """
    global _config
    if config is None:
        config = ConfigLoader.load(path=path, env_file=env_file, overrides=overrides).build()
    _config = config
    return config


def reset_config() -> None:
    """Forget the loaded configuration (for testing)."""
    global _config
    _config = None
