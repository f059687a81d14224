"""Request, response and block types exchanged by the service."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def _now() -> datetime:
    return datetime.now().astimezone()


def _format_timestamp(moment: datetime) -> str:
    """Format a time as RFC 3339 with trailing fraction zeros removed."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    seconds = int(offset.total_seconds())
    sign = "+" if seconds >= 0 else "-"
    seconds = abs(seconds)
    return f"{text}{sign}{seconds // 3600:02d}:{seconds % 3600 // 60:02d}"


_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _parse_timestamp(text: str) -> datetime:
    match = _RFC3339.match(text)
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {text!r}")
    date, clock, fraction, zone = match.groups()
    micro = f".{(fraction + '000000')[:6]}" if fraction else ""
    zone = "+00:00" if zone in ("Z", "z") else zone
    return datetime.fromisoformat(f"{date}T{clock}{micro}{zone}")


def _jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, datetime):
        return _format_timestamp(value)
    return value


def _optional_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected string, got {type(value).__name__}")
    return value


def _require_object(data: Any, what: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


@dataclass
class Position:
    """Location of a block in the source text."""

    start: int = 0
    end: int = 0
    line: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end, "line": self.line}


@dataclass
class Block:
    """A parsed markdown block with its source and rendered HTML."""

    id: str = ""
    type: str = ""
    level: int = 0
    content: str = ""
    html: str = ""
    position: Position = field(default_factory=Position)
    children: list[Block] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "level": self.level,
            "content": self.content,
            "html": self.html,
            "position": self.position.to_dict(),
        }
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


@dataclass
class BlockChange:
    """A block that was added, modified or removed between two parses."""

    type: str
    block_id: str
    block: Block | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "blockId": self.block_id}
        if self.block is not None:
            out["block"] = self.block.to_dict()
        return out


@dataclass
class ParseRequest:
    """A request to parse markdown content."""

    content: str
    block_id: str = ""
    format: str = ""


def parse_request_from_dict(data: Any) -> ParseRequest:
    """Build a request from decoded JSON; content is required and non-empty."""
    data = _require_object(data, "request")
    content = _optional_str(data, "content")
    if not content:
        raise ValueError("content is required")
    return ParseRequest(
        content=content,
        block_id=_optional_str(data, "blockId"),
        format=_optional_str(data, "format"),
    )


@dataclass
class ParseResponse:
    """Result of parsing: full HTML, blocks by id and optional changes."""

    html: str = ""
    ast: Any = None
    blocks: dict[str, Block] = field(default_factory=dict)
    changes: list[BlockChange] = field(default_factory=list)
    success: bool = False
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"html": self.html}
        if self.ast is not None:
            out["ast"] = _jsonable(self.ast)
        out["blocks"] = {key: block.to_dict() for key, block in self.blocks.items()}
        if self.changes:
            out["changes"] = [change.to_dict() for change in self.changes]
        out["success"] = self.success
        if self.error:
            out["error"] = self.error
        return out


@dataclass
class WebSocketMessage:
    """A message received from a WebSocket client."""

    type: str = ""
    document_id: str = ""
    content: str = ""
    block_id: str = ""
    timestamp: datetime | None = None
    data: Any = None


def websocket_message_from_dict(data: Any) -> WebSocketMessage:
    """Build a message from decoded JSON, raising ``ValueError`` on bad fields."""
    data = _require_object(data, "message")
    stamp = data.get("timestamp")
    if stamp is not None and not isinstance(stamp, str):
        raise ValueError(f"timestamp: expected string, got {type(stamp).__name__}")
    return WebSocketMessage(
        type=_optional_str(data, "type"),
        document_id=_optional_str(data, "documentId"),
        content=_optional_str(data, "content"),
        block_id=_optional_str(data, "blockId"),
        timestamp=_parse_timestamp(stamp) if stamp is not None else None,
        data=data.get("data"),
    )


@dataclass
class WebSocketResponse:
    """A message sent to a WebSocket client."""

    type: str
    success: bool = False
    data: Any = None
    error: str = ""
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "success": self.success}
        if self.data is not None:
            out["data"] = _jsonable(self.data)
        if self.error:
            out["error"] = self.error
        out["timestamp"] = _format_timestamp(self.timestamp)
        return out


@dataclass
class NotionBlock:
    """A Notion-style block for real-time updates."""

    id: str
    type: str
    content: dict[str, Any] = field(default_factory=dict)
    children: list[str] = field(default_factory=list)
    parent: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "content": _jsonable(self.content),
        }
        if self.children:
            out["children"] = list(self.children)
        if self.parent:
            out["parent"] = self.parent
        return out