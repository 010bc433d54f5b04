"""Renderer — projection of client state onto a display.

The synchronization core talks to the display only through the Renderer
ABC. TextRenderer draws rich terminal frames for the CLI; tests drive the
core against MagicMock(spec=Renderer).
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TextIO

from rich.console import Console
from rich.text import Text

if TYPE_CHECKING:
    from gridsync.core.grid import Definition, Grid
    from gridsync.core.roster import Player
    from gridsync.core.selection import Selection


class Renderer(ABC):
    """Abstract display binding."""

    @abstractmethod
    def render_grid(self, grid: Grid, fill: list[list[str]]) -> None:
        """Draw the whole grid with the given fill matrix."""

    @abstractmethod
    def render_cell(self, row: int, col: int, value: str) -> None:
        """Redraw one letter cell."""

    @abstractmethod
    def flash_cell(self, row: int, col: int, on: bool) -> None:
        """Start (on=True) or end the remote-update flash on a cell."""

    @abstractmethod
    def render_selection(
        self,
        selection: Selection,
        highlighted: set[tuple[int, int]],
        definition: Definition | None,
    ) -> None:
        """Show cursor, highlighted segment and definition panel.

        definition=None hides the panel.
        """

    @abstractmethod
    def render_players(self, players: list[Player]) -> None:
        """Replace the whole player list."""

    @abstractmethod
    def render_player_added(self, player: Player) -> None: ...

    @abstractmethod
    def render_player_leaving(self, pseudo: str) -> None: ...

    @abstractmethod
    def render_player_removed(self, pseudo: str) -> None: ...

    @abstractmethod
    def set_connected(self, connected: bool) -> None:
        """Hide (True) or show (False) the disconnected indicator."""

    @abstractmethod
    def show_error(self, message: str) -> None:
        """Inline, non-fatal error next to the join control."""

    @abstractmethod
    def show_fatal(self, message: str) -> None:
        """Blocking error; the view is unusable afterwards."""


class TextRenderer(Renderer):
    """Terminal frames drawn with rich, one full redraw per visible change.

    Cell notation: ``#`` black, ``.`` empty, ``[X]`` cursor,
    ``(X)`` highlighted, ``*X*`` flashing remote update. Player names
    are shown in their assigned color.
    """

    def __init__(self, out: TextIO | None = None) -> None:
        self._console = Console(file=out or sys.stdout, highlight=False)
        self._grid: Grid | None = None
        self._fill: list[list[str]] = []
        self._cursor: tuple[int, int] | None = None
        self._highlighted: set[tuple[int, int]] = set()
        self._definition: Definition | None = None
        self._flashing: set[tuple[int, int]] = set()
        self._players: dict[str, str] = {}  # pseudo -> color
        self._leaving: set[str] = set()
        self._connected = True

    # ------------------------------------------------------------------
    # Renderer
    # ------------------------------------------------------------------

    def render_grid(self, grid: Grid, fill: list[list[str]]) -> None:
        self._grid = grid
        self._fill = [list(row) for row in fill]
        self._redraw()

    def render_cell(self, row: int, col: int, value: str) -> None:
        if self._grid is None:
            return
        self._fill[row][col] = value
        self._redraw()

    def flash_cell(self, row: int, col: int, on: bool) -> None:
        if on:
            self._flashing.add((row, col))
        else:
            self._flashing.discard((row, col))
            self._redraw()

    def render_selection(self, selection, highlighted, definition) -> None:
        if selection.row is None:
            self._cursor = None
        else:
            self._cursor = (selection.row, selection.col)
        self._highlighted = set(highlighted)
        self._definition = definition
        self._redraw()

    def render_players(self, players) -> None:
        self._players = {p.pseudo: p.color for p in players}
        self._leaving.clear()
        self._redraw()

    def render_player_added(self, player) -> None:
        self._players[player.pseudo] = player.color
        self._leaving.discard(player.pseudo)
        self._redraw()

    def render_player_leaving(self, pseudo: str) -> None:
        self._leaving.add(pseudo)
        self._redraw()

    def render_player_removed(self, pseudo: str) -> None:
        self._players.pop(pseudo, None)
        self._leaving.discard(pseudo)
        self._redraw()

    def set_connected(self, connected: bool) -> None:
        if connected == self._connected:
            return
        self._connected = connected
        self._redraw()

    def show_error(self, message: str) -> None:
        self._console.print(Text(f"! {message}", style="yellow"))

    def show_fatal(self, message: str) -> None:
        self._console.print(Text(f"!! {message}", style="bold red"))

    # ------------------------------------------------------------------
    # Frame
    # ------------------------------------------------------------------

    def frame(self) -> str:
        """Current frame as plain text."""
        return self.build_frame().plain

    def build_frame(self) -> Text:
        frame = Text()
        frame.append("Players: ", style="dim")
        if not self._players:
            frame.append("-", style="dim")
        for i, (pseudo, color) in enumerate(self._players.items()):
            if i:
                frame.append(", ")
            if pseudo in self._leaving:
                frame.append(f"{pseudo} (leaving)", style="dim strike")
            else:
                frame.append(pseudo, style=f"bold {color}" if color else "bold")
        if not self._connected:
            frame.append("\n")
            frame.append("[disconnected]", style="bold red")
        if self._grid is not None:
            for r in range(self._grid.rows):
                frame.append("\n")
                for c in range(self._grid.cols):
                    frame.append_text(self._cell_text(r, c))
        if self._definition is not None:
            frame.append("\n")
            frame.append(self._definition.label(), style="italic")
        return frame

    def _cell_text(self, row: int, col: int) -> Text:
        if self._grid.is_black(row, col):
            return Text(" # ", style="reverse")
        ch = self._fill[row][col] or "."
        if (row, col) == self._cursor:
            return Text(f"[{ch}]", style="bold black on yellow")
        if (row, col) in self._flashing:
            return Text(f"*{ch}*", style="bold green")
        if (row, col) in self._highlighted:
            return Text(f"({ch})", style="on grey23")
        return Text(f" {ch} ")

    def _redraw(self) -> None:
        self._console.print(self.build_frame())
        self._console.print()
