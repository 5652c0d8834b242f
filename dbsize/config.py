from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from dbsize.engine.errors import ConfigError
from dbsize.storage.relpath import TABLESPACE_VERSION_DIRECTORY

ENV_PREFIX = "DBSIZE_"
ENV_KEYS = ("data_dir", "role", "database", "log_level")


@dataclass
class DbSizeConfig:
    data_dir: str = "data"
    catalog_file: Optional[str] = None
    tablespace_version_directory: str = TABLESPACE_VERSION_DIRECTORY
    role: str = "postgres"
    database: str = "postgres"
    log_level: str = "WARNING"

    @property
    def catalog_path(self) -> str:
        """目录文件缺省放在数据目录下"""
        if self.catalog_file:
            return self.catalog_file
        return os.path.join(self.data_dir, "catalog.json")


def load_yaml_config(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file into a dictionary."""
    config_path = Path(path).expanduser()
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed configuration file {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping.")
    return data


def load_config(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> DbSizeConfig:
    """
    Build the configuration: defaults, then the YAML file (if it exists),
    then DBSIZE_* environment variables.
    """
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    if path is not None and Path(path).expanduser().exists():
        values.update(load_yaml_config(path))

    known = {f.name for f in fields(DbSizeConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    for key in ENV_KEYS:
        env_value = environ.get(ENV_PREFIX + key.upper())
        if env_value:
            values[key] = env_value

    for key, value in values.items():
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"Configuration key '{key}' must be a string.")

    return DbSizeConfig(**values)
