"""Shared test fixtures for gridsync."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

import httpx
import pytest

from gridsync.core.api import ApiError, GameSnapshot
from gridsync.core.grid import grid_from_dict
from gridsync.core.render import Renderer
from gridsync.core.roster import Player

# 5x5 reference grid ("#" black, "." letter):
#
#   r0:  .  .  .  #[→ABC]     .
#   r1:  #[→R1]  .  .  .  .
#   r2:  #[↓D2]  .  #[→E ↓F]  .  .
#   r3:  .  .  .  .  #
#   r4:  .  #  .  .  .
_LAYOUT = [
    "...#.",
    "#....",
    "#.#..",
    "....#",
    ".#...",
]

_DEFINITIONS = {
    (0, 3): [{"text": "ABC", "direction": "right"}],
    (1, 0): [{"text": "R1", "direction": "right"}],
    (2, 0): [{"text": "D2", "direction": "down"}],
    (2, 2): [
        {"text": "E", "direction": "right"},
        {"text": "F", "direction": "down"},
    ],
}


def make_grid_dict(layout: list[str], definitions: dict | None = None) -> dict:
    """Grid JSON from a list of strings ("#" black, anything else letter)."""
    definitions = definitions or {}
    cells = []
    for r, line in enumerate(layout):
        row = []
        for c, ch in enumerate(line):
            if ch == "#":
                cell = {"black": True}
                if (r, c) in definitions:
                    cell["definitions"] = definitions[(r, c)]
            else:
                cell = {"black": False}
            row.append(cell)
        cells.append(row)
    return {"rows": len(layout), "cols": len(layout[0]), "cells": cells}


@pytest.fixture
def grid_dict():
    return make_grid_dict(_LAYOUT, _DEFINITIONS)


@pytest.fixture
def grid(grid_dict):
    return grid_from_dict(grid_dict)


@pytest.fixture
def renderer():
    return MagicMock(spec=Renderer)


class _FakeHandle:
    def __init__(self, delay_s, callback):
        self.delay_s = delay_s
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled and not self.fired:
            self.fired = True
            self.callback()


class FakeTimers:
    """Stand-in for loop.call_later that records instead of waiting."""

    def __init__(self):
        self.handles: list[_FakeHandle] = []

    def __call__(self, delay_s, callback):
        handle = _FakeHandle(delay_s, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[_FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def fire_all(self) -> None:
        for handle in self.pending:
            handle.fire()


@pytest.fixture
def timers():
    return FakeTimers()


class FakeAPI:
    """In-memory GameAPI double.

    ``streams`` is a queue of scripts, one per stream opening: an ApiError
    is raised on open, a list of lines is served then the stream ends
    (server close). With the queue empty the stream stays open until
    cancelled.
    """

    def __init__(self, snapshot: GameSnapshot | None = None):
        self.snapshot = snapshot
        self.join_error: ApiError | None = None
        self.load_error: ApiError | None = None
        self.move_error: ApiError | None = None
        self.streams: list = []
        self.stream_opens: list[tuple[str, str]] = []
        self.joins: list[tuple[str, str]] = []
        self.moves: list[tuple[str, str, int, int, str]] = []
        self.move_gate: asyncio.Event | None = None
        self.closed = False

    async def join(self, game_id, pseudo):
        self.joins.append((game_id, pseudo))
        if self.join_error is not None:
            raise self.join_error
        return Player(pseudo=pseudo, color="#2563eb")

    async def load_game(self, game_id):
        if self.load_error is not None:
            raise self.load_error
        return self.snapshot

    async def submit_move(self, game_id, pseudo, row, col, value):
        self.moves.append((game_id, pseudo, row, col, value))
        if self.move_gate is not None:
            await self.move_gate.wait()
        if self.move_error is not None:
            raise self.move_error

    @asynccontextmanager
    async def stream_events(self, game_id, pseudo):
        self.stream_opens.append((game_id, pseudo))
        script = self.streams.pop(0) if self.streams else None
        if isinstance(script, ApiError):
            raise script
        yield _serve(script)

    async def close(self):
        self.closed = True


async def _serve(lines):
    if lines is None:
        await asyncio.Event().wait()
        return
    for line in lines:
        yield line


@pytest.fixture
def fake_api(grid):
    return FakeAPI(GameSnapshot(grid=grid, state=[], players={}))


class DroppedStream(httpx.AsyncByteStream):
    """Response body that delivers ``chunks`` then loses the connection."""

    def __init__(self, chunks: list[bytes]):
        self._chunks = chunks

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        raise httpx.ReadError("connection dropped")
