# solver/backtrack.py
"""Depth-first placement search over an ordered piece list.

Pieces are placed strictly in the order produced by ``order_fn`` (the
caller's order unless told otherwise).  For the piece at index ``i`` the
search walks rotation (0, 90, 180, 270), then ``y``, then ``x``; every
admissible spot is committed into a copied grid and the search recurses to
``i + 1``.  Reaching ``i == len(pieces)`` records a :class:`Solution`.

Two limits are checked at every node, timeout first: wall-clock time since
the search began and the number of solutions collected.  Hitting either one
stops the whole search and returns whatever has been found so far.
"""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from config import CFG
from models import Piece, Placement, Score, Shape, Solution, total_cells
from solver.rotation import orientations
from solver.validation import Grid, can_place, empty_grid, place_piece

log = logging.getLogger(__name__)

ScoreFn = Callable[[Piece], Score]
OrderFn = Callable[[Sequence[Piece]], List[Piece]]


@dataclass(frozen=True)
class SearchProgress:
    placed_count: int
    total_pieces: int


ProgressFn = Callable[[SearchProgress], None]


class SolveStatus(str, enum.Enum):
    SOLVED = "solved"
    UNSOLVABLE = "unsolvable"    # search space exhausted, nothing fits
    TIMED_OUT = "timed_out"      # deadline hit before any solution
    NO_PIECES = "no_pieces"


@dataclass
class SolveReport:
    status: SolveStatus
    solutions: List[Solution] = field(default_factory=list)
    elapsed_ms: float = 0.0
    nodes: int = 0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return bool(self.solutions)


def piece_score(piece: Piece) -> Score:
    return piece.score


def input_order(pieces: Sequence[Piece]) -> List[Piece]:
    return list(pieces)


def select_pieces(catalogue: Iterable[Piece], ids: Iterable[str]) -> List[Piece]:
    """Catalogue-ordered pieces whose id is in ``ids``; disabled ones are skipped."""
    wanted = set(ids)
    return [p for p in catalogue if p.id in wanted and p.enabled]


class GridSolver:
    def __init__(
        self,
        max_solutions: Optional[int] = None,
        timeout_ms: Optional[float] = None,
        on_progress: Optional[ProgressFn] = None,
        score_fn: Optional[ScoreFn] = None,
        order_fn: Optional[OrderFn] = None,
        grid_size: Optional[int] = None,
    ):
        self.max_solutions = max(1, int(CFG.MAX_SOLUTIONS if max_solutions is None else max_solutions))
        self.timeout_ms = float(CFG.SOLVE_TIMEOUT_MS if timeout_ms is None else timeout_ms)
        self.on_progress = on_progress
        self.score_fn = score_fn or piece_score
        self.order_fn = order_fn or input_order
        self.grid_size = int(CFG.GRID_SIZE if grid_size is None else grid_size)

        # per-run state, reset by run()
        self._start = 0.0
        self._deadline = 0.0
        self._found = 0
        self._nodes = 0
        self._timed_out = False

    # ---------- public ----------

    def solve(self, pieces: Sequence[Piece]) -> List[Solution]:
        return self.run(pieces).solutions

    def run(self, pieces: Sequence[Piece]) -> SolveReport:
        self._start = time.time()
        self._deadline = self._start + self.timeout_ms / 1000.0
        self._found = 0
        self._nodes = 0
        self._timed_out = False

        ordered = self.order_fn(list(pieces))
        if not ordered:
            return SolveReport(status=SolveStatus.NO_PIECES)

        log.info(
            "Solve started | pieces=%d cells=%d grid=%dx%d max_solutions=%d timeout_ms=%g",
            len(ordered), total_cells(ordered), self.grid_size, self.grid_size,
            self.max_solutions, self.timeout_ms,
        )

        # rotate each base shape once; the walk order is rotation-major
        oriented: List[List[Tuple[int, Shape]]] = [orientations(p.shape) for p in ordered]
        solutions: List[Solution] = []
        self._search(empty_grid(self.grid_size), ordered, oriented, 0, [], solutions)

        elapsed_ms = (time.time() - self._start) * 1000.0
        if solutions:
            status = SolveStatus.SOLVED
        elif self._timed_out:
            status = SolveStatus.TIMED_OUT
        else:
            status = SolveStatus.UNSOLVABLE

        log.info(
            "Solve finished | status=%s solutions=%d nodes=%d elapsed=%.2fs timed_out=%s",
            status.value, len(solutions), self._nodes, elapsed_ms / 1000.0, self._timed_out,
        )
        return SolveReport(
            status=status,
            solutions=solutions,
            elapsed_ms=elapsed_ms,
            nodes=self._nodes,
            timed_out=self._timed_out,
        )

    # ---------- search ----------

    def _deadline_exceeded(self) -> bool:
        if self._timed_out:
            return True
        if time.time() >= self._deadline:
            self._timed_out = True
            return True
        return False

    def _stopped(self) -> bool:
        return self._timed_out or self._found >= self.max_solutions

    def _search(
        self,
        grid: Grid,
        pieces: List[Piece],
        oriented: List[List[Tuple[int, Shape]]],
        index: int,
        placed: List[Placement],
        solutions: List[Solution],
    ) -> None:
        self._nodes += 1
        if self._deadline_exceeded():
            return
        if self._found >= self.max_solutions:
            return

        if self.on_progress is not None:
            self.on_progress(SearchProgress(placed_count=index, total_pieces=len(pieces)))

        if index >= len(pieces):
            solutions.append(self._make_solution(placed, pieces))
            self._found += 1
            return

        piece = pieces[index]
        n = grid.size
        for rotation, shape in oriented[index]:
            for y in range(n):
                for x in range(n):
                    if not can_place(grid, shape, x, y):
                        continue
                    self._search(
                        place_piece(grid, piece.id, shape, x, y),
                        pieces,
                        oriented,
                        index + 1,
                        placed + [Placement(piece.id, x, y, rotation, shape)],
                        solutions,
                    )
                    if self._stopped():
                        return

    def _make_solution(self, placed: List[Placement], pieces: List[Piece]) -> Solution:
        by_id: Dict[str, Piece] = {p.id: p for p in pieces}
        total = Score()
        for pl in placed:
            total = total + self.score_fn(by_id[pl.piece_id])
        return Solution(placements=tuple(placed), total_score=total)


# ---------- best score ----------

_OBJECTIVES: Dict[str, Callable[[Score], float]] = {
    "atk": lambda s: s.atk,
    "hp": lambda s: s.hp,
    "balanced": lambda s: s.atk + s.hp,
}


def solution_value(solution: Solution, optimize_for: str = "balanced") -> float:
    fn = _OBJECTIVES.get(optimize_for, _OBJECTIVES["balanced"])
    return fn(solution.total_score)


def find_optimal_configuration(
    pieces: Sequence[Piece],
    optimize_for: str = "balanced",
    *,
    max_solutions: Optional[int] = None,
    timeout_ms: Optional[float] = None,
    score_fn: Optional[ScoreFn] = None,
    grid_size: Optional[int] = None,
) -> Optional[Solution]:
    """Enumerate a batch of solutions and keep the best one by ``optimize_for``.

    ``optimize_for`` is ``"atk"``, ``"hp"`` or ``"balanced"`` (atk + hp);
    unknown values fall back to balanced.  Earlier solutions win ties.
    """
    solver = GridSolver(
        max_solutions=CFG.OPTIMAL_MAX_SOLUTIONS if max_solutions is None else max_solutions,
        timeout_ms=timeout_ms,
        score_fn=score_fn,
        grid_size=grid_size,
    )
    solutions = solver.solve(pieces)
    if not solutions:
        return None
    best = solutions[0]
    for current in solutions[1:]:
        if solution_value(current, optimize_for) > solution_value(best, optimize_for):
            best = current
    return best


__all__ = [
    "GridSolver",
    "SearchProgress",
    "SolveReport",
    "SolveStatus",
    "find_optimal_configuration",
    "input_order",
    "piece_score",
    "select_pieces",
    "solution_value",
]
