from itertools import combinations

from models import Piece, Score, Shape
from pieces import PIECE_SHAPES
from solver.backtrack import (
    GridSolver,
    SearchProgress,
    SolveStatus,
    find_optimal_configuration,
    select_pieces,
)
from solver.validation import build_grid


def _piece(pid, rows, atk=0, hp=0, enabled=True):
    return Piece(id=pid, shape=Shape.of(rows), score=Score(atk, hp), enabled=enabled)


def _builtin(name, **kw):
    return _piece(name, PIECE_SHAPES[name], **kw)


def test_four_i_pieces_fit_without_rotation():
    pieces = [_piece(f"I{i}", [[1, 1, 1, 1]]) for i in range(4)]

    solutions = GridSolver(max_solutions=1, timeout_ms=5000).solve(pieces)

    assert len(solutions) == 1
    placements = solutions[0].placements
    assert [p.piece_id for p in placements] == ["I0", "I1", "I2", "I3"]
    assert all(p.rotation == 0 for p in placements)
    assert [(p.x, p.y) for p in placements] == [(0, 0), (4, 0), (0, 1), (4, 1)]


def test_piece_longer_than_grid_gives_empty_result():
    solver = GridSolver(max_solutions=1, timeout_ms=5000)
    report = solver.run([_piece("bar", [[1] * 10])])
    assert report.solutions == []
    assert report.status is SolveStatus.UNSOLVABLE
    assert not report.timed_out


def test_more_cells_than_board_is_unsolvable():
    full = _piece("full", [[1] * 9 for _ in range(9)])
    dot = _piece("dot", [[1]])

    report = GridSolver(max_solutions=1, timeout_ms=10000).run([full, dot])

    assert report.solutions == []
    assert report.status is SolveStatus.UNSOLVABLE


def test_zero_pieces_returns_immediately():
    calls = []
    solver = GridSolver(on_progress=calls.append)
    report = solver.run([])
    assert report.solutions == []
    assert report.status is SolveStatus.NO_PIECES
    assert calls == []


def test_zero_timeout_reports_timeout_not_unsolvable():
    pieces = [_piece("a", [[1]])]
    report = GridSolver(max_solutions=1, timeout_ms=0).run(pieces)
    assert report.solutions == []
    assert report.timed_out
    assert report.status is SolveStatus.TIMED_OUT


def test_deadline_keeps_solutions_found_so_far(monkeypatch):
    import solver.backtrack as backtrack

    clock = {"t": 1000.0}

    def fake_time():
        return clock["t"]

    monkeypatch.setattr(backtrack.time, "time", fake_time)

    def on_progress(p: SearchProgress):
        # time moves on only once a full placement exists
        if p.placed_count == p.total_pieces:
            clock["t"] += 0.5

    solver = GridSolver(max_solutions=10, timeout_ms=1000, on_progress=on_progress)
    report = solver.run([_piece("a", [[1]]), _piece("b", [[1]])])

    assert report.timed_out
    assert report.status is SolveStatus.SOLVED
    assert len(report.solutions) == 2


def test_max_solutions_caps_enumeration():
    pieces = [_piece("a", [[1]]), _piece("b", [[1]])]
    solutions = GridSolver(max_solutions=5, timeout_ms=5000).solve(pieces)

    assert len(solutions) == 5
    assert len({s.id for s in solutions}) == 5
    assert [(s.placements[1].x, s.placements[1].y) for s in solutions] == [
        (1, 0), (2, 0), (3, 0), (4, 0), (5, 0)
    ]


def test_solutions_are_valid_and_follow_input_order():
    names = ["normal_T", "normal_L", "normal_Z", "uncommon_F", "rare_hook"]
    pieces = [_builtin(n) for n in names]

    solutions = GridSolver(max_solutions=3, timeout_ms=10000).solve(pieces)

    assert 1 <= len(solutions) <= 3
    for sol in solutions:
        assert list(sol.piece_ids) == names
        grid = build_grid(sol.placements, 9)
        assert grid.occupied() == sum(p.shape.cell_count for p in pieces)
        for a, b in combinations(sol.placements, 2):
            assert not set(a.cells()) & set(b.cells())


def test_total_score_sums_piece_scores():
    pieces = [
        _piece("a", [[1, 1]], atk=100, hp=40),
        _piece("b", [[1], [1]], atk=7, hp=3),
    ]
    sol = GridSolver(max_solutions=1, timeout_ms=5000).solve(pieces)[0]
    assert sol.total_score == Score(107, 43)


def test_injected_score_function_is_used():
    pieces = [_piece("a", [[1]], atk=5, hp=5), _piece("b", [[1]], atk=1, hp=1)]
    seen = []

    def score_fn(piece):
        seen.append(piece.id)
        return Score(piece.score.atk * 2, 0)

    sol = GridSolver(max_solutions=1, timeout_ms=5000, score_fn=score_fn).solve(pieces)[0]
    assert sol.total_score == Score(12, 0)
    assert sorted(seen) == ["a", "b"]


def test_progress_reports_depth_before_each_node():
    calls = []
    GridSolver(max_solutions=1, timeout_ms=5000, on_progress=calls.append).solve(
        [_piece("a", [[1]])]
    )
    assert calls == [SearchProgress(0, 1), SearchProgress(1, 1)]


def test_order_fn_controls_placement_order():
    pieces = [_piece("a", [[1]]), _piece("b", [[1, 1]])]
    solver = GridSolver(max_solutions=1, timeout_ms=5000, order_fn=lambda ps: list(reversed(ps)))
    sol = solver.solve(pieces)[0]
    assert sol.piece_ids == ("b", "a")
    assert (sol.placements[0].x, sol.placements[0].y) == (0, 0)


def test_grid_size_is_configurable():
    pieces = [_piece("a", [[1, 1, 1, 1]])]
    assert GridSolver(timeout_ms=5000, grid_size=3).solve(pieces) == []
    assert len(GridSolver(timeout_ms=5000, grid_size=4).solve(pieces)) == 1


def test_rotation_is_used_when_needed():
    # the wall leaves only column 2 free for a straight run of three
    pieces = [_piece("wall", [[1, 1], [1, 1], [1, 0]]), _piece("bar", [[1, 1, 1]])]
    sol = GridSolver(max_solutions=1, timeout_ms=5000, grid_size=3).solve(pieces)[0]
    bar = sol.placements[1]
    assert bar.rotation == 90
    assert bar.shape.rows == ((1,), (1,), (1,))
    assert (bar.x, bar.y) == (2, 0)


def test_solver_instance_can_be_reused():
    solver = GridSolver(max_solutions=1, timeout_ms=5000)
    first = solver.solve([_piece("a", [[1]])])
    second = solver.solve([_piece("a", [[1]])])
    assert len(first) == len(second) == 1


def test_select_pieces_keeps_catalogue_order_and_skips_disabled():
    catalogue = [
        _piece("a", [[1]]),
        _piece("b", [[1]], enabled=False),
        _piece("c", [[1]]),
    ]
    chosen = select_pieces(catalogue, ["c", "b", "a", "missing"])
    assert [p.id for p in chosen] == ["a", "c"]


def test_find_optimal_configuration_returns_best_or_none():
    pieces = [_piece("a", [[1, 1]], atk=3, hp=4)]
    best = find_optimal_configuration(pieces, "hp", max_solutions=10, timeout_ms=5000)
    assert best is not None
    assert best.total_score == Score(3, 4)

    assert find_optimal_configuration([_piece("bar", [[1] * 10])], timeout_ms=5000) is None


def test_solution_to_dict_shape():
    sol = GridSolver(max_solutions=1, timeout_ms=5000).solve([_piece("a", [[1, 1]], atk=1, hp=2)])[0]
    data = sol.to_dict()
    assert data["placements"] == [
        {"pieceId": "a", "x": 0, "y": 0, "rotation": 0, "shape": [[1, 1]]}
    ]
    assert data["totalScore"] == {"atk": 1, "hp": 2}
    assert isinstance(data["timestamp"], int)
    assert data["id"].startswith("solution_")


def test_zero_max_solutions_still_searches_for_one():
    solver = GridSolver(max_solutions=0, timeout_ms=5000)
    assert solver.max_solutions == 1
    report = solver.run([_piece("a", [[1]])])
    assert report.status is SolveStatus.SOLVED
    assert len(report.solutions) == 1
