"""PlayerRoster — live set of connected players and their badge colors.

Updated from stream events: player_joined adds, player_left removes after
a short leave transition, game_state rebuilds from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from gridsync.core.clock import CallLater, schedule
from gridsync.core.render import Renderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Player:
    pseudo: str
    color: str

    @classmethod
    def from_dict(cls, data: dict) -> Player:
        return cls(pseudo=data["pseudo"], color=data.get("color", ""))


class PlayerRoster:
    """Connected players keyed by pseudo.

    A removed player leaves the live mapping immediately; only its badge
    lingers for ``leave_delay_ms`` while the leave transition plays.
    """

    def __init__(
        self,
        renderer: Renderer,
        leave_delay_ms: int = 300,
        call_later: CallLater | None = None,
    ) -> None:
        self._renderer = renderer
        self._leave_delay_s = leave_delay_ms / 1000
        self._call_later = call_later
        self._players: dict[str, Player] = {}
        self._pending_removals: dict[str, Any] = {}

    @property
    def players(self) -> dict[str, Player]:
        return dict(self._players)

    def __contains__(self, pseudo: str) -> bool:
        return pseudo in self._players

    def __len__(self) -> int:
        return len(self._players)

    def add_player(self, pseudo: str, color: str) -> None:
        """Insert and render a badge. No-op if the pseudo is already present."""
        if pseudo in self._players:
            return
        self._cancel_removal(pseudo)
        player = Player(pseudo=pseudo, color=color)
        self._players[pseudo] = player
        self._renderer.render_player_added(player)
        logger.info("Player joined: %s", pseudo)

    def remove_player(self, pseudo: str) -> None:
        """Start the leave transition; the badge goes after the delay."""
        if pseudo not in self._players:
            return
        del self._players[pseudo]
        self._renderer.render_player_leaving(pseudo)
        self._pending_removals[pseudo] = schedule(
            self._call_later, self._leave_delay_s, lambda: self._finish_removal(pseudo)
        )
        logger.info("Player left: %s", pseudo)

    def replace_all(self, players: dict[str, Any] | None) -> None:
        """Clear and rebuild from a pseudo -> {pseudo, color} mapping."""
        for pseudo in list(self._pending_removals):
            self._cancel_removal(pseudo)
        self._players = {}
        for key, raw in (players or {}).items():
            player = raw if isinstance(raw, Player) else Player.from_dict(
                {"pseudo": key, **raw}
            )
            self._players[player.pseudo] = player
        self._renderer.render_players(list(self._players.values()))

    def _finish_removal(self, pseudo: str) -> None:
        if self._pending_removals.pop(pseudo, None) is None:
            return
        self._renderer.render_player_removed(pseudo)

    def _cancel_removal(self, pseudo: str) -> None:
        handle = self._pending_removals.pop(pseudo, None)
        if handle is not None:
            handle.cancel()
