"""Configuration models and loading."""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "cors-relay"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3001
    # Checked in order; "" mounts the catch-all at the root.
    mount_paths: list[str] = Field(default_factory=lambda: ["/api", ""])


class ForwardSettings(BaseModel):
    timeout: float = 120.0
    follow_redirects: bool = True
    stripped_headers: list[str] = Field(
        default_factory=lambda: [
            "accept-encoding",
            "host",
            "content-length",
            "connection",
            "keep-alive",
            "proxy-connection",
            "transfer-encoding",
            "te",
            "trailer",
            "upgrade",
        ]
    )


class CorsSettings(BaseModel):
    allow_origin: str = "*"
    allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: str = "*"


class LimitSettings(BaseModel):
    max_body_size: int = 50 * 1024 * 1024  # 50MB
    keep_alive_timeout: int = 5


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    forward: ForwardSettings = Field(default_factory=ForwardSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    config = _read_config(config_file)

    port = os.environ.get("PORT")
    if port and port.isdigit():
        config.proxy.port = int(port)
    return config


def _read_config(config_file: Path) -> Config:
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default
