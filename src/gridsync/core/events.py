"""Stream message parsing — raw text lines to typed events.

Accepts newline-delimited JSON as well as server-sent-events framing
(``data: {...}``). Comment lines such as the service's ``: heartbeat``
keep-alives, blank lines, malformed JSON, schema violations and unknown
event types are dropped: consumption is best-effort and never raises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from gridsync.core.schemas import load_schema, schema_violation

logger = logging.getLogger(__name__)

_EVENT_SCHEMAS = load_schema("events")

_SSE_DATA_PREFIX = "data:"


@dataclass(frozen=True)
class CellUpdate:
    row: int
    col: int
    value: str
    pseudo: str = ""

    type = "cell_update"


@dataclass(frozen=True)
class PlayerJoined:
    pseudo: str
    color: str

    type = "player_joined"


@dataclass(frozen=True)
class PlayerLeft:
    pseudo: str

    type = "player_left"


@dataclass(frozen=True)
class GameState:
    state: list[list[str | None]]
    players: dict[str, Any]

    type = "game_state"


StreamEvent = Union[CellUpdate, PlayerJoined, PlayerLeft, GameState]


def _build(payload: dict) -> StreamEvent:
    kind = payload["type"]
    if kind == "cell_update":
        return CellUpdate(
            row=int(payload["row"]),
            col=int(payload["col"]),
            value=payload["value"],
            pseudo=payload.get("pseudo", ""),
        )
    if kind == "player_joined":
        return PlayerJoined(pseudo=payload["pseudo"], color=payload["color"])
    if kind == "player_left":
        return PlayerLeft(pseudo=payload["pseudo"])
    return GameState(state=payload["state"], players=payload.get("players") or {})


def parse_event(line: str) -> StreamEvent | None:
    """Decode one stream line. Returns None for anything not worth applying."""
    text = line.strip()
    if not text or text.startswith(":"):
        return None
    if text.startswith(_SSE_DATA_PREFIX):
        text = text[len(_SSE_DATA_PREFIX):].strip()
    elif text.startswith(("event:", "id:", "retry:")):
        return None

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Ignoring malformed stream message: %s", e)
        return None
    if not isinstance(payload, dict):
        logger.debug("Ignoring non-object stream message")
        return None

    kind = payload.get("type")
    schema = _EVENT_SCHEMAS.get(kind) if isinstance(kind, str) else None
    if schema is None:
        logger.debug("Ignoring unknown event type: %r", kind)
        return None
    violation = schema_violation(payload, schema)
    if violation is not None:
        logger.debug("Ignoring invalid %s event: %s", kind, violation)
        return None
    return _build(payload)
