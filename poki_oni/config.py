"""Loading of the ``config.json`` file shared by the server and the browser client.

The browser only cares about the ``server`` section (it builds the WebSocket
URL from it); the remaining sections tune the room server itself. Every key
is optional so an empty or missing file yields a runnable default setup.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

CONFIG_ENV_VAR = "POKI_ONI_CONFIG"
DEFAULT_CONFIG_PATH = "config.json"


class ServerConfig(BaseModel):
    ip: str = "0.0.0.0"
    port: int = 3000


class StorageConfig(BaseModel):
    """Where the durable room snapshot lives."""

    backend: Literal["sqlite", "json"] = "sqlite"
    db_url: str = "sqlite://rooms.db"
    json_path: str = "rooms.json"


class BroadcastConfig(BaseModel):
    # Seconds a single send may take before the connection is treated as broken.
    send_timeout: float = Field(default=5.0, gt=0)


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    broadcast: BroadcastConfig = Field(default_factory=BroadcastConfig)
    static_dir: str = "public"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Return the configuration stored at *path*.

    Falls back to ``$POKI_ONI_CONFIG`` and then ``./config.json``. A missing
    file is not an error; a present but invalid one raises pydantic's
    ``ValidationError`` so misconfiguration fails at startup.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    config_path = Path(path)
    if not config_path.is_file():
        return AppConfig()
    return AppConfig.model_validate_json(config_path.read_text(encoding="utf-8"))


__all__ = [
    "CONFIG_ENV_VAR",
    "ServerConfig",
    "StorageConfig",
    "BroadcastConfig",
    "AppConfig",
    "load_config",
]
