"""
Configuration for ZFS API.

Reads from environment variables with sensible defaults, then layers an
optional YAML config file (server.host / server.port and friends) on top.
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml
from pydantic_settings import BaseSettings

from zfs_api.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/zfsapi/config.yaml"
DEV_CONFIG_PATH = "config.yaml"

# YAML section/key -> Settings field
_YAML_FIELDS = {
    ("server", "host"): "api_host",
    ("server", "port"): "api_port",
    ("zfs", "binary"): "zfs_binary",
    ("zfs", "command_timeout"): "command_timeout_seconds",
    ("zfs", "zvol_root"): "zvol_dev_root",
    ("output", "format"): "default_format",
    ("logging", "level"): "log_level",
}


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Runtime environment ("dev" switches to ./config.yaml)
    app_env: str = os.getenv("APP_ENV", "production")
    config_path: str = os.getenv("ZFS_API_CONFIG", DEFAULT_CONFIG_PATH)

    # API server
    api_host: str = os.getenv("ZFS_API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("ZFS_API_PORT", "8000"))

    # ZFS configuration
    zfs_binary: str = os.getenv("ZFS_BINARY", "/usr/sbin/zfs")
    command_timeout_seconds: int = int(os.getenv("ZFS_API_COMMAND_TIMEOUT", "120"))
    zvol_dev_root: str = os.getenv("ZFS_API_ZVOL_ROOT", "/dev/zvol")

    # Output
    default_format: str = os.getenv("ZFS_API_DEFAULT_FORMAT", "json")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        env_prefix = "ZFS_API_"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    def resolved_config_path(self) -> str:
        """Config file to read: ./config.yaml in dev, config_path otherwise."""
        if self.is_dev:
            return DEV_CONFIG_PATH
        return self.config_path


def _read_yaml(path: str) -> Optional[Dict[str, Any]]:
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config file {path}", detail=str(e))
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment and an optional YAML file.

    Values present in the file override environment defaults. A missing
    file is not an error.
    """
    base = Settings()
    path = path or base.resolved_config_path()

    data = _read_yaml(path)
    if data is None:
        logger.info(f"Config file {path} not found - using environment defaults")
        base.config_path = path
        return base

    overrides: Dict[str, Any] = {}
    for (section, key), field_name in _YAML_FIELDS.items():
        section_data = data.get(section) or {}
        if isinstance(section_data, dict) and key in section_data:
            overrides[field_name] = section_data[key]

    logger.info(f"Using config file {path}")
    merged = base.model_dump()
    merged.update(overrides)
    merged["config_path"] = path
    return Settings(**merged)


settings = load_settings()
