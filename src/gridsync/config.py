"""Client configuration loader."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

BASE_URL_ENV = "GRIDSYNC_BASE_URL"


@dataclass
class ServerConfig:
    base_url: str = "http://localhost:8080/api"
    request_timeout_s: float = 10.0


@dataclass
class ReconnectConfig:
    floor_ms: int = 1000
    ceiling_ms: int = 30000


@dataclass
class DisplayConfig:
    flash_ms: int = 600  # remote-update highlight
    leave_delay_ms: int = 300  # badge fade-out before removal


@dataclass
class ClientConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    reconnect: ReconnectConfig = field(default_factory=ReconnectConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> ClientConfig:
    """Load client config from a YAML file; every section is optional.

    ``GRIDSYNC_BASE_URL`` in the environment overrides server.base_url.
    """
    raw: dict = {}
    if path is not None:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    server = raw.get("server") or {}
    reconnect = raw.get("reconnect") or {}
    display = raw.get("display") or {}
    logging_cfg = raw.get("logging") or {}

    config = ClientConfig(
        server=ServerConfig(
            base_url=server.get("base_url", ServerConfig.base_url),
            request_timeout_s=float(
                server.get("request_timeout_s", ServerConfig.request_timeout_s)
            ),
        ),
        reconnect=ReconnectConfig(
            floor_ms=int(reconnect.get("floor_ms", ReconnectConfig.floor_ms)),
            ceiling_ms=int(reconnect.get("ceiling_ms", ReconnectConfig.ceiling_ms)),
        ),
        display=DisplayConfig(
            flash_ms=int(display.get("flash_ms", DisplayConfig.flash_ms)),
            leave_delay_ms=int(
                display.get("leave_delay_ms", DisplayConfig.leave_delay_ms)
            ),
        ),
        log_level=str(logging_cfg.get("level", "INFO")).upper(),
    )

    env_url = os.environ.get(BASE_URL_ENV)
    if env_url:
        config.server.base_url = env_url

    _validate(config)
    return config


def _validate(config: ClientConfig) -> None:
    if config.server.request_timeout_s <= 0:
        raise ValueError("server.request_timeout_s must be positive")
    if config.reconnect.floor_ms <= 0:
        raise ValueError("reconnect.floor_ms must be positive")
    if config.reconnect.ceiling_ms < config.reconnect.floor_ms:
        raise ValueError("reconnect.ceiling_ms must be >= reconnect.floor_ms")
    if config.display.flash_ms < 0 or config.display.leave_delay_ms < 0:
        raise ValueError("display delays must not be negative")
