"""GameClient — coordinator for one player's view of one game.

Owns the session objects and wires them together:

    join(name) -> load grid + state -> render -> start event stream

then routes clicks and key presses to the SelectionAutomaton
(navigation) or the SyncChannel (edits). Edits are sent as background
tasks so navigation never waits on the network.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from gridsync.config import ClientConfig
from gridsync.core.api import GameAPI, JoinError, LoadError
from gridsync.core.clock import CallLater
from gridsync.core.dispatch import EventDispatcher
from gridsync.core.grid import Grid
from gridsync.core.render import Renderer
from gridsync.core.roster import PlayerRoster
from gridsync.core.selection import SelectionAutomaton
from gridsync.core.session import SessionState
from gridsync.core.supervisor import ReconnectSupervisor
from gridsync.core.sync import SyncChannel

logger = logging.getLogger(__name__)

MAX_PSEUDO_LEN = 20

_JOIN_FALLBACK_ERROR = "Erreur"
_LOAD_ERROR = "Partie introuvable"

_ARROW_MOVES = {
    "ArrowRight": (0, 1),
    "ArrowLeft": (0, -1),
    "ArrowDown": (1, 0),
    "ArrowUp": (-1, 0),
}


class JoinStatus(Enum):
    UNJOINED = "unjoined"
    JOINED = "joined"


def sanitize_pseudo(name: str) -> str:
    """Trim whitespace and cap the display name at MAX_PSEUDO_LEN characters."""
    return name.strip()[:MAX_PSEUDO_LEN]


class GameClient:
    """Join/bootstrap state machine plus input routing."""

    def __init__(
        self,
        game_id: str,
        config: ClientConfig,
        renderer: Renderer,
        api: GameAPI | None = None,
        call_later: CallLater | None = None,
    ) -> None:
        self.game_id = game_id
        self.config = config
        self._renderer = renderer
        self._api = api or GameAPI(
            config.server.base_url, timeout_s=config.server.request_timeout_s
        )
        self._call_later = call_later
        self.dispatcher = EventDispatcher()

        self.status = JoinStatus.UNJOINED
        self.pseudo: str | None = None
        self.grid: Grid | None = None
        self.session: SessionState | None = None
        self.roster: PlayerRoster | None = None
        self.selection: SelectionAutomaton | None = None
        self.sync: SyncChannel | None = None
        self.supervisor: ReconnectSupervisor | None = None
        self.load_error: str | None = None
        self._pending_edits: set[asyncio.Task] = set()

    @property
    def ready(self) -> bool:
        """Joined, loaded, and holding a cursor."""
        return (
            self.status is JoinStatus.JOINED
            and self.selection is not None
            and self.selection.position is not None
        )

    # ------------------------------------------------------------------
    # Join / bootstrap
    # ------------------------------------------------------------------

    async def join(self, name: str) -> bool:
        """Join with a display name, then load the game and start streaming.

        Returns True once the game is loaded. A refused join leaves the
        client unjoined with the server's message shown inline; there is
        no automatic retry.
        """
        if self.status is JoinStatus.JOINED:
            return self.load_error is None
        pseudo = sanitize_pseudo(name)
        if not pseudo:
            return False

        try:
            await self._api.join(self.game_id, pseudo)
        except JoinError as e:
            logger.warning("Join as %r refused: %s", pseudo, e)
            self._renderer.show_error(e.details or _JOIN_FALLBACK_ERROR)
            return False

        self.pseudo = pseudo
        self.status = JoinStatus.JOINED
        logger.info("Joined game %s as %s", self.game_id, pseudo)
        return await self._load()

    async def _load(self) -> bool:
        try:
            snapshot = await self._api.load_game(self.game_id)
        except LoadError as e:
            logger.error("Loading game %s failed: %s", self.game_id, e)
            if e.kind == "bad_payload" and e.details:
                self.load_error = e.details
            else:
                self.load_error = _LOAD_ERROR
            self._renderer.show_fatal(self.load_error)
            return False

        display = self.config.display
        self.grid = snapshot.grid
        self.session = SessionState.from_matrix(snapshot.grid, snapshot.state)
        self.roster = PlayerRoster(
            self._renderer,
            leave_delay_ms=display.leave_delay_ms,
            call_later=self._call_later,
        )
        self.roster.replace_all(snapshot.players)
        self._renderer.render_grid(self.grid, self.session.snapshot())

        self.selection = SelectionAutomaton(self.grid, self._renderer)
        self.selection.refresh()

        self.sync = SyncChannel(
            self._api,
            self.game_id,
            self.pseudo,
            self.session,
            self.roster,
            self._renderer,
            flash_ms=display.flash_ms,
            call_later=self._call_later,
        )
        self.sync.register(self.dispatcher)

        reconnect = self.config.reconnect
        self.supervisor = ReconnectSupervisor(
            self._api,
            self.game_id,
            self.pseudo,
            self.dispatcher,
            self._renderer,
            floor_ms=reconnect.floor_ms,
            ceiling_ms=reconnect.ceiling_ms,
            call_later=self._call_later,
        )
        self.supervisor.start()
        return True

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def click(self, row: int, col: int) -> bool:
        if not self.ready:
            return False
        return self.selection.select(row, col)

    def handle_key(self, key: str) -> bool:
        """Route one key press. Returns True if the key was consumed."""
        if not self.ready:
            return False

        if key in _ARROW_MOVES:
            self.selection.move(*_ARROW_MOVES[key])
            return True
        if key == "Tab":
            self.selection.toggle_direction()
            return True
        if key in ("Backspace", "Delete"):
            self._edit("")
            if key == "Backspace":
                self.selection.prev()
            return True
        if len(key) == 1 and key.isascii() and key.isalpha():
            self._edit(key.upper())
            self.selection.next()
            return True
        return False

    def _edit(self, value: str) -> None:
        row, col = self.selection.position
        value = self.sync.apply_local(row, col, value)
        task = asyncio.get_running_loop().create_task(
            self.sync.send_edit(row, col, value)
        )
        self._pending_edits.add(task)
        task.add_done_callback(self._pending_edits.discard)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def flush(self) -> None:
        """Wait for every in-flight edit submission to settle."""
        if self._pending_edits:
            await asyncio.gather(*self._pending_edits)

    async def close(self) -> None:
        await self.flush()
        if self.supervisor is not None:
            await self.supervisor.stop()
        await self._api.close()
