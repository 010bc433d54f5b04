"""ReconnectSupervisor — event-stream lifecycle with exponential backoff.

    connecting --open--> open --fault--> closed --timer--> connecting

A successful open resets the delay to the floor. A fault schedules the
next attempt after the current delay, then doubles the delay (capped at
the ceiling) for the attempt after that. Every new connection is
preceded by the service's full game_state resync, so nothing missed
while disconnected needs replaying.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass, replace
from enum import Enum

from gridsync.core.api import ApiError, GameAPI
from gridsync.core.clock import CallLater, schedule
from gridsync.core.dispatch import EventDispatcher
from gridsync.core.render import Renderer

logger = logging.getLogger(__name__)

DEFAULT_FLOOR_MS = 1000
DEFAULT_CEILING_MS = 30000


class ConnectionStatus(Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class ConnectionState:
    """Immutable connection state; transitions return a new instance."""

    status: ConnectionStatus = ConnectionStatus.CLOSED
    delay_ms: int = DEFAULT_FLOOR_MS
    floor_ms: int = DEFAULT_FLOOR_MS
    ceiling_ms: int = DEFAULT_CEILING_MS

    def connecting(self) -> ConnectionState:
        return replace(self, status=ConnectionStatus.CONNECTING)

    def opened(self) -> ConnectionState:
        return replace(self, status=ConnectionStatus.OPEN, delay_ms=self.floor_ms)

    def faulted(self) -> ConnectionState:
        """Closed, with the delay for the *following* attempt doubled.

        The wait before the next attempt is the pre-fault ``delay_ms``.
        """
        return replace(
            self,
            status=ConnectionStatus.CLOSED,
            delay_ms=min(self.delay_ms * 2, self.ceiling_ms),
        )


class ReconnectSupervisor:
    """Keeps one event stream alive for the lifetime of the game view."""

    def __init__(
        self,
        api: GameAPI,
        game_id: str,
        pseudo: str,
        dispatcher: EventDispatcher,
        renderer: Renderer,
        floor_ms: int = DEFAULT_FLOOR_MS,
        ceiling_ms: int = DEFAULT_CEILING_MS,
        call_later: CallLater | None = None,
    ) -> None:
        self._api = api
        self._game_id = game_id
        self._pseudo = pseudo
        self._dispatcher = dispatcher
        self._renderer = renderer
        self._call_later = call_later
        self._state = ConnectionState(
            delay_ms=floor_ms, floor_ms=floor_ms, ceiling_ms=ceiling_ms
        )
        self._task: asyncio.Task | None = None
        self._timer = None
        self._running = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def stream_task(self) -> asyncio.Task | None:
        """Task consuming the current stream; done once it faults."""
        return self._task

    def start(self) -> None:
        self._running = True
        self._connect()

    async def stop(self) -> None:
        """Cancel the reconnect timer and the current stream."""
        self._running = False
        self._cancel_timer()
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _connect(self) -> None:
        """Discard any previous stream and timer, then open a new stream."""
        self._cancel_timer()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._state = self._state.connecting()
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"gridsync-stream-{self._game_id}"
        )

    async def _run(self) -> None:
        try:
            async with self._api.stream_events(self._game_id, self._pseudo) as lines:
                self._on_open()
                async for line in lines:
                    self._feed(line)
            logger.warning("Event stream closed by server")
        except ApiError as e:
            logger.warning("Event stream fault: %s", e)
        self._on_fault()

    def _feed(self, line: str) -> None:
        """Dispatch one line; a failing handler costs that line only."""
        try:
            self._dispatcher.feed(line)
        except Exception:
            logger.exception("Handler failed on stream line %r", line)

    def _on_open(self) -> None:
        self._state = self._state.opened()
        self._renderer.set_connected(True)
        logger.info("Event stream open for game %s", self._game_id)

    def _on_fault(self) -> None:
        wait_ms = self._state.delay_ms
        self._state = self._state.faulted()
        self._renderer.set_connected(False)
        if not self._running:
            return
        logger.info("Reconnecting in %d ms", wait_ms)
        self._timer = schedule(self._call_later, wait_ms / 1000, self._reconnect)

    def _reconnect(self) -> None:
        self._timer = None
        if self._running:
            self._connect()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
