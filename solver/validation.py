# solver/validation.py
"""Occupancy snapshots and placement admissibility.

Every update returns a fresh :class:`Grid`; nothing here mutates a snapshot,
so two searches holding references to the same grid never interfere.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from config import CFG
from models import ROTATIONS, Placement, Shape
from solver.rotation import orientations

Row = Tuple[Optional[str], ...]


@dataclass(frozen=True)
class Grid:
    cells: Tuple[Row, ...]

    @property
    def size(self) -> int:
        return len(self.cells)

    def at(self, x: int, y: int) -> Optional[str]:
        return self.cells[y][x]

    def occupied(self) -> int:
        return sum(1 for row in self.cells for v in row if v is not None)

    def rows(self) -> List[List[Optional[str]]]:
        return [list(row) for row in self.cells]

    def to_text(self, empty: str = ".") -> str:
        # one char per cell: first letter of the owning id
        lines = []
        for row in self.cells:
            lines.append("".join(empty if v is None else str(v)[:1] for v in row))
        return "\n".join(lines)


def empty_grid(size: Optional[int] = None) -> Grid:
    n = int(CFG.GRID_SIZE if size is None else size)
    return Grid(tuple((None,) * n for _ in range(n)))


def can_place(
    grid: Grid,
    shape: Shape,
    x: int,
    y: int,
    exclude_id: Optional[str] = None,
) -> bool:
    """True when every filled cell of ``shape`` at origin (x, y) is in bounds
    and empty (or owned by ``exclude_id``)."""
    n = grid.size
    cells = grid.cells
    for r, c in shape.cells:
        gx = x + c
        gy = y + r
        if gx < 0 or gx >= n or gy < 0 or gy >= n:
            return False
        owner = cells[gy][gx]
        if owner is not None and owner != exclude_id:
            return False
    return True


def place_piece(grid: Grid, piece_id: str, shape: Shape, x: int, y: int) -> Grid:
    # Caller has already run can_place.
    rows = [list(row) for row in grid.cells]
    for r, c in shape.cells:
        rows[y + r][x + c] = piece_id
    return Grid(tuple(tuple(row) for row in rows))


def remove_piece(grid: Grid, piece_id: str) -> Grid:
    return Grid(tuple(
        tuple(None if v == piece_id else v for v in row)
        for row in grid.cells
    ))


def valid_positions(
    grid: Grid,
    shape: Shape,
    exclude_id: Optional[str] = None,
) -> List[Tuple[int, int, int]]:
    """Every admissible (x, y, rotation), in the solver's walk order."""
    n = grid.size
    out: List[Tuple[int, int, int]] = []
    for rotation, rotated in orientations(shape):
        for y in range(n):
            for x in range(n):
                if can_place(grid, rotated, x, y, exclude_id):
                    out.append((x, y, rotation))
    return out


def relocate_piece(
    grid: Grid,
    piece_id: str,
    shape: Shape,
    x: int,
    y: int,
) -> Optional[Grid]:
    """Move or re-rotate a piece that is already on ``grid``.

    The piece's own cells do not block the new position.  Returns ``None`` if
    the new position is not admissible; the input grid is left untouched.
    """
    if not can_place(grid, shape, x, y, exclude_id=piece_id):
        return None
    return place_piece(remove_piece(grid, piece_id), piece_id, shape, x, y)


def build_grid(placements: Iterable[Placement], size: Optional[int] = None) -> Grid:
    """Replay placements in order; raise ``ValueError`` on the first bad one."""
    grid = empty_grid(size)
    for idx, p in enumerate(placements):
        if p.rotation not in ROTATIONS:
            raise ValueError(f"placement {idx} ({p.piece_id}): bad rotation {p.rotation!r}")
        if not can_place(grid, p.shape, p.x, p.y):
            raise ValueError(
                f"placement {idx} ({p.piece_id}) at ({p.x},{p.y}) is out of bounds or overlaps"
            )
        grid = place_piece(grid, p.piece_id, p.shape, p.x, p.y)
    return grid


__all__ = [
    "Grid",
    "empty_grid",
    "can_place",
    "place_piece",
    "remove_piece",
    "valid_positions",
    "relocate_piece",
    "build_grid",
]
