"""Service configuration: defaults, loading from JSON and saving back."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

_DEFAULT_PORT = "8080"
_DEFAULT_HOST = "0.0.0.0"
_DEFAULT_ALLOW_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
)


@dataclass
class ServerConfig:
    """Network settings of the HTTP server."""

    port: str = _DEFAULT_PORT
    host: str = _DEFAULT_HOST
    allow_origins: list[str] = field(default_factory=lambda: list(_DEFAULT_ALLOW_ORIGINS))


@dataclass
class ParserConfig:
    """Markdown parser limits and feature switches."""

    max_content_size: int = 1024 * 1024
    enable_gfm: bool = True
    enable_tables: bool = True
    enable_autolink: bool = True


@dataclass
class WebSocketConfig:
    """WebSocket connection limits and keep-alive timing."""

    max_connections: int = 1000
    max_message_size: int = 512 * 1024
    ping_period_seconds: int = 54
    pong_wait_seconds: int = 60


@dataclass
class Config:
    """Complete application configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    websocket: WebSocketConfig = field(default_factory=WebSocketConfig)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a JSON-ready dictionary."""
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write the configuration to ``path`` as indented JSON."""
        Path(path).write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")


def default_config() -> Config:
    """Return a fresh configuration holding the built-in defaults."""
    return Config()


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{key}: expected an object, got {type(value).__name__}")
    return value


def _value(section: dict[str, Any], key: str, kind: type, where: str) -> Any:
    """Read a typed field, giving the type's zero value when it is absent."""
    value = section.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(
            f"{where}.{key}: expected {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _origins(section: dict[str, Any]) -> list[str]:
    origins = _value(section, "allow_origins", list, "server")
    for origin in origins:
        if not isinstance(origin, str):
            raise ValueError(
                f"server.allow_origins: expected str, got {type(origin).__name__}"
            )
    return list(origins)


def load_config(path: str | Path) -> Config:
    """Load configuration from ``path``.

    A missing file yields the defaults. Fields absent from the file take their
    zero value, except the server port, host and origins, which fall back to
    the defaults. Malformed JSON or mistyped fields raise ``ValueError``.
    """
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError:
        return default_config()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid configuration JSON: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"configuration must be a JSON object, got {type(data).__name__}")

    server = _section(data, "server")
    parser = _section(data, "parser")
    websocket = _section(data, "websocket")

    config = Config(
        server=ServerConfig(
            port=_value(server, "port", str, "server"),
            host=_value(server, "host", str, "server"),
            allow_origins=_origins(server),
        ),
        parser=ParserConfig(
            max_content_size=_value(parser, "max_content_size", int, "parser"),
            enable_gfm=_value(parser, "enable_gfm", bool, "parser"),
            enable_tables=_value(parser, "enable_tables", bool, "parser"),
            enable_autolink=_value(parser, "enable_autolink", bool, "parser"),
        ),
        websocket=WebSocketConfig(
            max_connections=_value(websocket, "max_connections", int, "websocket"),
            max_message_size=_value(websocket, "max_message_size", int, "websocket"),
            ping_period_seconds=_value(websocket, "ping_period_seconds", int, "websocket"),
            pong_wait_seconds=_value(websocket, "pong_wait_seconds", int, "websocket"),
        ),
    )

    if not config.server.port:
        config.server.port = _DEFAULT_PORT
    if not config.server.host:
        config.server.host = _DEFAULT_HOST
    if not config.server.allow_origins:
        config.server.allow_origins = list(_DEFAULT_ALLOW_ORIGINS)
    return config