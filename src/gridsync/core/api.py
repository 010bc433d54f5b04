"""GameAPI — httpx client for the game service contract.

Join, load, move submission and the server-push event stream. Raw httpx
exceptions never escape: every failure is wrapped in ApiError (or its
JoinError / LoadError subclasses) carrying a coarse ``kind``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator
from urllib.parse import quote

import httpx

from gridsync.core.grid import Grid, GridFormatError, grid_from_dict
from gridsync.core.roster import Player

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised on any failed call to the game service."""

    def __init__(
        self,
        kind: str,
        status: int | None = None,
        details: str = "",
    ):
        self.kind = kind  # "transport", "rejected", "not_found", "bad_payload"
        self.status = status
        self.details = details
        where = f" (HTTP {status})" if status is not None else ""
        super().__init__(f"{kind}{where}: {details}")


class JoinError(ApiError):
    """Join refused (name taken, game full, unknown game) or unreachable."""


class LoadError(ApiError):
    """Game could not be fetched or decoded."""


@dataclass(frozen=True)
class GameSnapshot:
    """One-shot load result: grid plus the fill and roster at load time."""

    grid: Grid
    state: list[list[str | None]]
    players: dict[str, Any]


def _error_message(resp: httpx.Response) -> str:
    """Server's ``{"error": ...}`` text, or "" if the body has none."""
    try:
        data = resp.json()
    except ValueError:
        return ""
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return ""


def _game_path(game_id: str, suffix: str = "") -> str:
    return f"/games/{quote(game_id, safe='')}{suffix}"


class GameAPI:
    """Async HTTP surface of one game service."""

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            transport=transport,
        )
        # Streams stay open indefinitely; only connecting is bounded.
        self._stream_timeout = httpx.Timeout(timeout_s, read=None)

    async def __aenter__(self) -> GameAPI:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def join(self, game_id: str, pseudo: str) -> Player:
        try:
            resp = await self._client.post(
                _game_path(game_id, "/join"), json={"pseudo": pseudo}
            )
        except httpx.HTTPError as e:
            raise JoinError("transport", details=str(e)) from e

        if not resp.is_success:
            raise JoinError("rejected", resp.status_code, _error_message(resp))

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return Player(
            pseudo=data.get("pseudo") or pseudo,
            color=data.get("color") or "",
        )

    async def load_game(self, game_id: str) -> GameSnapshot:
        try:
            resp = await self._client.get(_game_path(game_id))
        except httpx.HTTPError as e:
            raise LoadError("transport", details=str(e)) from e

        if resp.status_code == httpx.codes.NOT_FOUND:
            raise LoadError("not_found", resp.status_code, _error_message(resp))
        if not resp.is_success:
            raise LoadError("rejected", resp.status_code, _error_message(resp))

        try:
            data = resp.json()
            grid = grid_from_dict(data["grid"])
            state = data.get("state") or []
            players = data.get("players") or {}
        except (ValueError, KeyError, TypeError, GridFormatError) as e:
            raise LoadError("bad_payload", resp.status_code, str(e)) from e
        return GameSnapshot(grid=grid, state=state, players=players)

    async def submit_move(
        self, game_id: str, pseudo: str, row: int, col: int, value: str
    ) -> None:
        try:
            resp = await self._client.post(
                _game_path(game_id, "/move"),
                json={"pseudo": pseudo, "row": row, "col": col, "value": value},
            )
        except httpx.HTTPError as e:
            raise ApiError("transport", details=str(e)) from e

        if not resp.is_success:
            raise ApiError("rejected", resp.status_code, _error_message(resp))

    @asynccontextmanager
    async def stream_events(
        self, game_id: str, pseudo: str
    ) -> AsyncIterator[AsyncIterator[str]]:
        """Open the event stream and yield an iterator over its text lines.

        Raises ApiError if the stream cannot be established or breaks
        while being consumed.
        """
        try:
            async with self._client.stream(
                "GET",
                _game_path(game_id, "/events"),
                params={"pseudo": pseudo},
                timeout=self._stream_timeout,
            ) as resp:
                if resp.status_code != httpx.codes.OK:
                    raise ApiError(
                        "rejected", resp.status_code, "event stream refused"
                    )
                yield resp.aiter_lines()
        except httpx.HTTPError as e:
            raise ApiError("transport", details=str(e)) from e
