"""SessionState — the shared fill matrix of one game.

One character (or "" for empty) per letter cell. Black cells are always
"" and can never be written. Mutated only from the event loop, by local
optimistic edits and by authoritative stream events.
"""

from __future__ import annotations

from gridsync.core.grid import Grid


class SessionState:
    """Mutable fill matrix sized to a Grid."""

    def __init__(self, grid: Grid, fill: list[list[str]]) -> None:
        self._grid = grid
        self._fill = fill

    @classmethod
    def empty(cls, grid: Grid) -> SessionState:
        return cls(grid, [[""] * grid.cols for _ in range(grid.rows)])

    @classmethod
    def from_matrix(cls, grid: Grid, state: list[list[str | None]] | None) -> SessionState:
        """Build from a server matrix; null entries and black cells become ""."""
        session = cls.empty(grid)
        session.replace_fill(state)
        return session

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def fill(self) -> list[list[str]]:
        return self._fill

    def get(self, row: int, col: int) -> str:
        return self._fill[row][col]

    def set_cell(self, row: int, col: int, value: str) -> bool:
        """Write a letter cell. Returns False for black or out-of-bounds cells."""
        if not self._grid.is_letter(row, col):
            return False
        self._fill[row][col] = value
        return True

    def replace_fill(self, state: list[list[str | None]] | None) -> None:
        """Overwrite every letter cell from a full matrix.

        Cells the matrix does not cover (short rows, missing rows) are
        cleared rather than kept, so a resync never leaves stale letters.
        """
        state = state or []
        for r in range(self._grid.rows):
            src = state[r] if r < len(state) and state[r] is not None else []
            for c in range(self._grid.cols):
                value = src[c] if c < len(src) else None
                if self._grid.is_black(r, c):
                    self._fill[r][c] = ""
                else:
                    self._fill[r][c] = value or ""

    def snapshot(self) -> list[list[str]]:
        return [list(row) for row in self._fill]
