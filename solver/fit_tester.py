# solver/fit_tester.py
"""Which unselected pieces could still join the current selection?

Each candidate gets its own short solve (one solution, small timeout).  The
scan is a generator so the host decides what to do between trials: update a
progress bar, service another request, or stop iterating early.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generator, Iterable, List, Optional, Sequence, Tuple

from config import CFG
from models import Piece
from solver.backtrack import GridSolver, ScoreFn, select_pieces

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FitProgress:
    tested: int
    total: int
    fitting: Tuple[str, ...]


def candidate_pieces(catalogue: Iterable[Piece], selected_ids: Iterable[str]) -> List[Piece]:
    selected = set(selected_ids)
    return [p for p in catalogue if p.id not in selected and p.enabled]


def _trial_fits(
    catalogue: Sequence[Piece],
    trial_ids: List[str],
    *,
    timeout_ms: float,
    grid_size: Optional[int],
    score_fn: Optional[ScoreFn],
) -> bool:
    solver = GridSolver(
        max_solutions=1,
        timeout_ms=timeout_ms,
        score_fn=score_fn,
        grid_size=grid_size,
    )
    # The solver only succeeds by placing every trial piece, so a returned
    # solution always contains the candidate.
    return bool(solver.solve(select_pieces(catalogue, trial_ids)))


def iter_fit_candidates(
    catalogue: Sequence[Piece],
    selected_ids: Iterable[str],
    *,
    timeout_ms: Optional[float] = None,
    yield_every: Optional[int] = None,
    grid_size: Optional[int] = None,
    score_fn: Optional[ScoreFn] = None,
) -> Generator[FitProgress, None, List[str]]:
    """Test every enabled, unselected catalogue piece against the selection.

    Yields a :class:`FitProgress` before candidate ``i`` whenever
    ``i % yield_every == 0``.  The generator's return value is the list of
    candidate ids that fit, in catalogue order.
    """
    selected = list(dict.fromkeys(selected_ids))
    timeout = float(CFG.FIT_TIMEOUT_MS if timeout_ms is None else timeout_ms)
    every = max(1, int(CFG.FIT_YIELD_EVERY if yield_every is None else yield_every))

    candidates = candidate_pieces(catalogue, selected)
    fitting: List[str] = []
    total = len(candidates)

    log.info(
        "Fit scan started | selected=%d candidates=%d timeout_ms=%g",
        len(selected), total, timeout,
    )

    for i, piece in enumerate(candidates):
        if i % every == 0:
            yield FitProgress(tested=i, total=total, fitting=tuple(fitting))
        try:
            fits = _trial_fits(
                catalogue,
                selected + [piece.id],
                timeout_ms=timeout,
                grid_size=grid_size,
                score_fn=score_fn,
            )
        except Exception as exc:
            log.warning(
                "Fit trial failed | candidate=%s error=%s: %s",
                piece.id, type(exc).__name__, exc,
            )
            fits = False
        if fits:
            fitting.append(piece.id)

    log.info("Fit scan finished | tested=%d fitting=%d", total, len(fitting))
    return fitting


def find_fitting_candidates(
    catalogue: Sequence[Piece],
    selected_ids: Iterable[str],
    *,
    on_yield: Optional[Callable[[FitProgress], None]] = None,
    **kwargs,
) -> List[str]:
    scan = iter_fit_candidates(catalogue, selected_ids, **kwargs)
    while True:
        try:
            progress = next(scan)
        except StopIteration as stop:
            return list(stop.value or [])
        if on_yield is not None:
            on_yield(progress)


__all__ = [
    "FitProgress",
    "candidate_pieces",
    "find_fitting_candidates",
    "iter_fit_candidates",
]
