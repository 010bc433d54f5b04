"""SelectionAutomaton — cursor, word highlighting and definition lookup.

State is (row, col, direction). Clicking the selected cell again flips
the direction; arrow moves skip black cells and stop at the grid edge.
The highlighted word is the maximal run of letter cells through the
cursor along the current direction; its clue lives on the black cell
immediately before the run.
"""

from __future__ import annotations

from dataclasses import dataclass

from gridsync.core.grid import Definition, Direction, Grid
from gridsync.core.render import Renderer


@dataclass(frozen=True)
class Selection:
    row: int | None
    col: int | None
    direction: Direction = Direction.RIGHT

    @property
    def defined(self) -> bool:
        return self.row is not None


class SelectionAutomaton:
    """Cursor state machine over a fixed Grid."""

    def __init__(self, grid: Grid, renderer: Renderer | None = None) -> None:
        self._grid = grid
        self._renderer = renderer
        letters = grid.letter_cells()
        if letters:
            row, col = letters[0]
            self._state = Selection(row, col)
        else:
            self._state = Selection(None, None)

    @property
    def state(self) -> Selection:
        return self._state

    @property
    def position(self) -> tuple[int, int] | None:
        if not self._state.defined:
            return None
        return self._state.row, self._state.col

    @property
    def direction(self) -> Direction:
        return self._state.direction

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select(self, row: int, col: int) -> bool:
        """Click a cell. Same cell flips direction; black cells are ignored."""
        if not self._grid.is_letter(row, col):
            return False
        if (row, col) == self.position:
            self._state = Selection(row, col, self._state.direction.flipped())
        else:
            self._state = Selection(row, col, self._state.direction)
        self.refresh()
        return True

    def move(self, d_row: int, d_col: int) -> bool:
        """Step by (d_row, d_col) until a letter cell; no-op past the edge."""
        if not self._state.defined or (d_row, d_col) == (0, 0):
            return False
        r, c = self._state.row + d_row, self._state.col + d_col
        while self._grid.in_bounds(r, c):
            if not self._grid.is_black(r, c):
                self._state = Selection(r, c, self._state.direction)
                self.refresh()
                return True
            r += d_row
            c += d_col
        return False

    def toggle_direction(self) -> None:
        self._state = Selection(
            self._state.row, self._state.col, self._state.direction.flipped()
        )
        self.refresh()

    def next(self) -> bool:
        d_row, d_col = self._state.direction.step
        return self.move(d_row, d_col)

    def prev(self) -> bool:
        d_row, d_col = self._state.direction.step
        return self.move(-d_row, -d_col)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def segment(self) -> list[tuple[int, int]]:
        if not self._state.defined:
            return []
        return self._grid.segment(
            self._state.row, self._state.col, self._state.direction
        )

    def highlighted(self) -> set[tuple[int, int]]:
        """Segment cells other than the cursor itself."""
        return set(self.segment()) - {self.position}

    def definition(self) -> Definition | None:
        if not self._state.defined:
            return None
        return self._grid.definition_for(
            self._state.row, self._state.col, self._state.direction
        )

    def refresh(self) -> None:
        """Project the current selection onto the renderer."""
        if self._renderer is None or not self._state.defined:
            return
        self._renderer.render_selection(
            self._state, self.highlighted(), self.definition()
        )
