"""SyncChannel — optimistic local edits reconciled with the event stream.

Local keystrokes are written to the fill matrix and rendered at once,
then submitted. A failed submission reverts the cell to empty (no
prior-value snapshot is kept). Authoritative stream events always
overwrite local state without diffing: last broadcast event wins.
"""

from __future__ import annotations

import logging
import re

from gridsync.core.api import ApiError, GameAPI
from gridsync.core.clock import CallLater, schedule
from gridsync.core.dispatch import EventDispatcher
from gridsync.core.events import CellUpdate, GameState, PlayerJoined, PlayerLeft
from gridsync.core.render import Renderer
from gridsync.core.roster import PlayerRoster
from gridsync.core.session import SessionState

logger = logging.getLogger(__name__)

_LETTER_RE = re.compile(r"^[A-Z]$")


class InvalidMoveError(ValueError):
    """Raised for a local edit that can never be accepted."""


def normalize_value(value: str) -> str:
    """Uppercase a typed value; it must end up empty or a single A-Z letter."""
    value = value.strip().upper()
    if value and not _LETTER_RE.match(value):
        raise InvalidMoveError(f"Invalid value {value!r}: one letter A-Z or empty")
    return value


class SyncChannel:
    """Owns every write to the fill matrix and the roster."""

    def __init__(
        self,
        api: GameAPI,
        game_id: str,
        pseudo: str,
        session: SessionState,
        roster: PlayerRoster,
        renderer: Renderer,
        flash_ms: int = 600,
        call_later: CallLater | None = None,
    ) -> None:
        self._api = api
        self._game_id = game_id
        self._pseudo = pseudo
        self._session = session
        self._roster = roster
        self._renderer = renderer
        self._flash_s = flash_ms / 1000
        self._call_later = call_later

    def register(self, dispatcher: EventDispatcher) -> None:
        """Install this channel's handlers in the stream dispatch table."""
        dispatcher.register(CellUpdate.type, self.apply_cell_update)
        dispatcher.register(PlayerJoined.type, self.on_player_joined)
        dispatcher.register(PlayerLeft.type, self.on_player_left)
        dispatcher.register(GameState.type, self.apply_game_state)

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------

    async def submit_edit(self, row: int, col: int, value: str) -> bool:
        """Apply an edit optimistically, then submit it.

        Returns True if the service accepted the move. On any failure the
        cell is cleared, whatever it displayed before.
        """
        value = self.apply_local(row, col, value)
        return await self.send_edit(row, col, value)

    def apply_local(self, row: int, col: int, value: str) -> str:
        """Optimistic half of an edit: write and render, no network.

        Returns the normalized value. Raises InvalidMoveError before any
        state change if the value or target cell is invalid.
        """
        value = normalize_value(value)
        if not self._session.set_cell(row, col, value):
            raise InvalidMoveError(f"({row}, {col}) is not a letter cell")
        self._renderer.render_cell(row, col, value)
        return value

    async def send_edit(self, row: int, col: int, value: str) -> bool:
        """Submit an already-applied edit; revert the cell to empty on failure."""
        try:
            await self._api.submit_move(self._game_id, self._pseudo, row, col, value)
        except ApiError as e:
            logger.warning("Move at (%d, %d) failed, reverting: %s", row, col, e)
            self._session.set_cell(row, col, "")
            self._renderer.render_cell(row, col, "")
            return False
        return True

    # ------------------------------------------------------------------
    # Authoritative events
    # ------------------------------------------------------------------

    def apply_cell_update(self, event: CellUpdate) -> None:
        value = event.value.upper()
        if not self._session.set_cell(event.row, event.col, value):
            logger.debug(
                "Ignoring cell_update for non-letter cell (%d, %d)",
                event.row, event.col,
            )
            return
        remote = event.pseudo != self._pseudo
        if remote:
            self._renderer.flash_cell(event.row, event.col, True)
        self._renderer.render_cell(event.row, event.col, value)
        if remote:
            row, col = event.row, event.col
            schedule(
                self._call_later,
                self._flash_s,
                lambda: self._renderer.flash_cell(row, col, False),
            )

    def apply_game_state(self, event: GameState) -> None:
        """Full resync: replace fill and roster, redraw everything."""
        self._session.replace_fill(event.state)
        self._roster.replace_all(event.players)
        self._renderer.render_grid(self._session.grid, self._session.snapshot())

    def on_player_joined(self, event: PlayerJoined) -> None:
        self._roster.add_player(event.pseudo, event.color)

    def on_player_left(self, event: PlayerLeft) -> None:
        self._roster.remove_player(event.pseudo)
