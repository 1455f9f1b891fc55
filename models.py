from __future__ import annotations

import secrets
import time
from functools import cached_property
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

ROTATIONS: Tuple[int, ...] = (0, 90, 180, 270)

Cell = Tuple[int, int]


def _coerce_rows(rows: Iterable[Iterable[Any]]) -> Tuple[Tuple[int, ...], ...]:
    out: List[Tuple[int, ...]] = []
    for row in rows:
        values = []
        for v in row:
            try:
                iv = int(v)
            except (TypeError, ValueError):
                raise ValueError(f"Shape cells must be 0 or 1, got {v!r}") from None
            if iv not in (0, 1):
                raise ValueError(f"Shape cells must be 0 or 1, got {v!r}")
            values.append(iv)
        out.append(tuple(values))
    return tuple(out)


def _trim(rows: Tuple[Tuple[int, ...], ...]) -> Tuple[Tuple[int, ...], ...]:
    filled = [(r, c) for r, row in enumerate(rows) for c, v in enumerate(row) if v == 1]
    if not filled:
        return ()
    r0 = min(r for r, _ in filled)
    r1 = max(r for r, _ in filled)
    c0 = min(c for _, c in filled)
    c1 = max(c for _, c in filled)
    return tuple(row[c0:c1 + 1] for row in rows[r0:r1 + 1])


@dataclass(frozen=True)
class Shape:
    """Binary cell mask kept in its minimal bounding box.

    ``rows[r][c] == 1`` marks a filled cell.  Use :meth:`Shape.of` to build one
    from nested lists; it trims empty border rows/columns before validating.
    """

    rows: Tuple[Tuple[int, ...], ...]

    def __post_init__(self):
        if not self.rows or not self.rows[0]:
            raise ValueError("Shape needs at least one filled cell")
        width = len(self.rows[0])
        if any(len(row) != width for row in self.rows):
            raise ValueError("Shape rows must all have the same length")
        if not any(1 in row for row in self.rows):
            raise ValueError("Shape needs at least one filled cell")
        if _trim(self.rows) != self.rows:
            raise ValueError("Shape is not in its minimal bounding box")

    @classmethod
    def of(cls, rows: Iterable[Iterable[Any]]) -> "Shape":
        coerced = _coerce_rows(rows)
        if coerced:
            width = len(coerced[0])
            if any(len(row) != width for row in coerced):
                raise ValueError("Shape rows must all have the same length")
        return cls(_trim(coerced))

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return len(self.rows[0])

    @cached_property
    def cells(self) -> Tuple[Cell, ...]:
        """(row, col) of every filled cell, row-major."""
        return tuple(
            (r, c)
            for r, row in enumerate(self.rows)
            for c, v in enumerate(row)
            if v == 1
        )

    @cached_property
    def cell_count(self) -> int:
        return sum(sum(row) for row in self.rows)

    def to_lists(self) -> List[List[int]]:
        return [list(row) for row in self.rows]


@dataclass(frozen=True)
class Score:
    atk: float = 0
    hp: float = 0

    def __add__(self, other: "Score") -> "Score":
        return Score(self.atk + other.atk, self.hp + other.hp)

    def to_dict(self) -> Dict[str, float]:
        return {"atk": self.atk, "hp": self.hp}


@dataclass(frozen=True)
class Piece:
    id: str
    shape: Shape
    score: Score = Score()
    name: str = ""
    enabled: bool = True


@dataclass(frozen=True)
class Placement:
    piece_id: str
    x: int
    y: int
    rotation: int
    shape: Shape  # already rotated

    def cells(self) -> Tuple[Cell, ...]:
        """Absolute (x, y) grid cells covered by this placement."""
        return tuple((self.x + c, self.y + r) for r, c in self.shape.cells)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pieceId": self.piece_id,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "shape": self.shape.to_lists(),
        }


def _solution_id() -> str:
    return f"solution_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


@dataclass(frozen=True)
class Solution:
    placements: Tuple[Placement, ...]
    total_score: Score
    id: str = field(default_factory=_solution_id)
    timestamp: float = field(default_factory=time.time)

    @property
    def piece_ids(self) -> Tuple[str, ...]:
        return tuple(p.piece_id for p in self.placements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "placements": [p.to_dict() for p in self.placements],
            "totalScore": self.total_score.to_dict(),
            "timestamp": int(self.timestamp * 1000),
        }


def total_cells(pieces: Sequence[Piece]) -> int:
    return sum(p.shape.cell_count for p in pieces)


__all__ = [
    "ROTATIONS",
    "Cell",
    "Shape",
    "Score",
    "Piece",
    "Placement",
    "Solution",
    "total_cells",
]
