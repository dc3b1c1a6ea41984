"""Configuration loading for tasksync."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class RemoteConfig:
    url: str = "http://localhost:8888/api"
    timeout_seconds: float = 8.0
    health_timeout_seconds: float = 5.0


@dataclass
class CacheConfig:
    """Configuration for the local snapshot cache and settings database."""

    db_path: str = "~/.tasksync/cache.db"


@dataclass
class SyncConfig:
    """Configuration for the synchronization engine."""

    safety_timeout_seconds: float = 8.0
    write_retry_attempts: int = 0  # Extra attempts after a failed background write
    write_retry_backoff_seconds: float = 1.0


@dataclass
class ServerConfig:
    """Configuration for the remote store service."""

    host: str = "0.0.0.0"
    port: int = 8888
    db_path: str = "~/.tasksync/store.db"


@dataclass
class SettingsConfig:
    api_key: str = ""


@dataclass
class Config:
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    settings: SettingsConfig = field(default_factory=SettingsConfig)


def _get_env(key: str, default: Any = None) -> Any:
    """Get environment variable with TASKSYNC_ prefix."""
    return os.environ.get(f"TASKSYNC_{key}", default)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config."""
    # Remote overrides
    if url := _get_env("REMOTE_URL"):
        config.remote.url = url
    if timeout := _get_env("REMOTE_TIMEOUT"):
        config.remote.timeout_seconds = float(timeout)

    # Cache overrides
    if db_path := _get_env("CACHE_DB_PATH"):
        config.cache.db_path = db_path

    # Sync overrides
    if safety := _get_env("SAFETY_TIMEOUT"):
        config.sync.safety_timeout_seconds = float(safety)
    if retries := _get_env("WRITE_RETRY_ATTEMPTS"):
        config.sync.write_retry_attempts = int(retries)

    # Server overrides
    if host := _get_env("SERVER_HOST"):
        config.server.host = host
    if port := _get_env("SERVER_PORT"):
        config.server.port = int(port)
    if server_db := _get_env("SERVER_DB_PATH"):
        config.server.db_path = server_db

    if api_key := _get_env("API_KEY"):
        config.settings.api_key = api_key

    return config


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None, uses default config.

    Returns:
        Loaded Config object.
    """
    config = Config()

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

            if "remote" in data:
                remote_data = data["remote"]
                config.remote = RemoteConfig(
                    url=remote_data.get("url", config.remote.url),
                    timeout_seconds=remote_data.get(
                        "timeout_seconds", config.remote.timeout_seconds
                    ),
                    health_timeout_seconds=remote_data.get(
                        "health_timeout_seconds", config.remote.health_timeout_seconds
                    ),
                )

            if "cache" in data:
                config.cache = CacheConfig(
                    db_path=data["cache"].get("db_path", config.cache.db_path)
                )

            if "sync" in data:
                sync_data = data["sync"]
                config.sync = SyncConfig(
                    safety_timeout_seconds=sync_data.get(
                        "safety_timeout_seconds", config.sync.safety_timeout_seconds
                    ),
                    write_retry_attempts=sync_data.get(
                        "write_retry_attempts", config.sync.write_retry_attempts
                    ),
                    write_retry_backoff_seconds=sync_data.get(
                        "write_retry_backoff_seconds",
                        config.sync.write_retry_backoff_seconds,
                    ),
                )

            if "server" in data:
                server_data = data["server"]
                config.server = ServerConfig(
                    host=server_data.get("host", config.server.host),
                    port=server_data.get("port", config.server.port),
                    db_path=server_data.get("db_path", config.server.db_path),
                )

            if "settings" in data:
                config.settings = SettingsConfig(
                    api_key=data["settings"].get("api_key", config.settings.api_key)
                )

    return _apply_env_overrides(config)
