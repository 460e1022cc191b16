"""
Settings system - layered configuration for the CLI and embedders.

Merge order (later overrides earlier):
1. Defaults
2. Settings file (YAML or JSON)
3. .env file
4. Environment variables (MANIFOLD_* prefix)
5. Manual overrides
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass, fields, asdict
from pathlib import Path
import json
import logging
import os

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("manifold.config")

ENV_PREFIX = "MANIFOLD_"


class ConfigError(Exception):
    """Raised when settings are invalid."""
    pass


@dataclass
class ManifoldSettings:
    """Resolved settings."""

    modules_path: str = "modules"
    manifest_path: str = "deployment.yml"
    declaration_file: str = "config.yml"
    verify: bool = True
    strict: bool = False
    log_level: str = "WARNING"

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        env_prefix: str = ENV_PREFIX,
    ) -> "ManifoldSettings":
        """
        Load settings from every source.

        Args:
            path: Settings file (``.yml``, ``.yaml`` or ``.json``)
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence), ``None`` values ignored
            env_prefix: Prefix for environment variables

        Returns:
            ManifoldSettings instance
        """
        data: Dict[str, Any] = {}

        if path:
            data.update(_load_file(Path(path)))

        if env_file:
            data.update(_from_env(dotenv_values(env_file), env_prefix))

        data.update(_from_env(os.environ, env_prefix))

        if overrides:
            data.update({k: v for k, v in overrides.items() if v is not None})

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifoldSettings":
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in data.items():
            if known[key].type in (bool, "bool"):
                values[key] = _parse_bool(key, value)
            else:
                values[key] = str(value)

        settings = cls(**values)
        logger.debug("Loaded settings: %s", settings.to_dict())
        return settings

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _load_file(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    with open(path, encoding="utf-8") as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    return data


def _from_env(environ, prefix: str) -> Dict[str, Any]:
    """Pick MANIFOLD_MODULES_PATH style keys and strip the prefix.

    Prefixed variables that name no setting are skipped, not rejected.
    """
    known = {f.name for f in fields(ManifoldSettings)}
    picked: Dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(prefix) or value is None:
            continue
        name = key[len(prefix):].lower()
        if name in known:
            picked[name] = value
        else:
            logger.debug("Ignoring environment variable %s: not a setting", key)
    return picked


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ("true", "yes", "1", "on"):
        return True
    if lowered in ("false", "no", "0", "off"):
        return False
    raise ConfigError(f"Setting '{key}' must be a boolean, got {value!r}")
