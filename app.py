# app.py — JSON host for the solver; progress is polled no-cache
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from config import CFG
from models import Piece, Solution, total_cells
from pieces import builtin_catalogue, parse_pieces, selected_ids_from
from solver.backtrack import GridSolver, SearchProgress, SolveReport, SolveStatus, select_pieces, solution_value
from solver.fit_tester import FitProgress, candidate_pieces, find_fitting_candidates
from solver.validation import build_grid

from progress import (
    reset as progress_reset,
    snapshot as progress_snapshot,
    start_run, set_message, set_placed,
    set_solutions_found, set_candidates, set_done,
    log_attempt_detail,
)

app = Flask(__name__)

_STATUS_MESSAGES = {
    SolveStatus.SOLVED: "Solution found",
    SolveStatus.UNSOLVABLE: "No solutions found: the selected pieces cannot all fit",
    SolveStatus.TIMED_OUT: "No solutions found before the time limit",
    SolveStatus.NO_PIECES: "Please select some pieces first",
}


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _int_arg(payload: Dict[str, Any], key: str, default: int, *, lo: int = 0, hi: Optional[int] = None) -> int:
    try:
        value = int(float(payload.get(key, default)))
    except (TypeError, ValueError, OverflowError):
        value = default
    value = max(lo, value)
    if hi is not None:
        value = min(hi, value)
    return value


def _pieces_from_request(payload: Dict[str, Any]) -> Tuple[List[Piece], List[str], Optional[str]]:
    if "pieces" in payload:
        catalogue, err = parse_pieces(payload)
        if err:
            return [], [], err
    else:
        catalogue = builtin_catalogue()
    return catalogue, selected_ids_from(payload, catalogue), None


def _progress_hook(total_pieces: int):
    # The solver reports every node; only forward depth changes.
    last = {"placed": -1}

    def _hook(p: SearchProgress) -> None:
        if p.placed_count != last["placed"]:
            last["placed"] = p.placed_count
            set_placed(p.placed_count, total_pieces)

    return _hook


def _report_payload(report: SolveReport, optimize_for: Optional[str], grid_size: int) -> Dict[str, Any]:
    solutions: List[Solution] = list(report.solutions)
    if optimize_for and solutions:
        # stable: earlier solutions stay first on equal value
        solutions.sort(key=lambda s: solution_value(s, optimize_for), reverse=True)
    grid = build_grid(solutions[0].placements, grid_size).rows() if solutions else None
    return {
        "ok": report.ok,
        "status": report.status.value,
        "timedOut": report.timed_out,
        "solutions": [s.to_dict() for s in solutions],
        "grid": grid,
        "elapsedMs": round(report.elapsed_ms, 1),
        "nodes": report.nodes,
        "message": _STATUS_MESSAGES.get(report.status, ""),
    }


@app.route("/pieces")
def pieces():
    return jsonify({
        "gridSize": CFG.GRID_SIZE,
        "pieces": [
            {"id": p.id, "name": p.name, "shape": p.shape.to_lists(), "cells": p.shape.cell_count}
            for p in builtin_catalogue()
        ],
    })


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    start_run("solve")

    payload = _payload()
    catalogue, selected, err = _pieces_from_request(payload)
    if err:
        set_done(False, reason=f"Bad pieces: {err}")
        return jsonify({"ok": False, "status": "bad_request", "message": err}), 400

    chosen = select_pieces(catalogue, selected)
    default_max = CFG.ENUMERATE_MAX_SOLUTIONS if payload.get("enumerate") else CFG.MAX_SOLUTIONS
    max_solutions = _int_arg(payload, "maxSolutions", default_max, lo=1, hi=CFG.HTTP_MAX_SOLUTIONS_CAP)
    timeout_ms = _int_arg(payload, "timeoutMs", CFG.SOLVE_TIMEOUT_MS, lo=1)
    optimize_for = payload.get("optimizeFor")
    if optimize_for not in (None, "atk", "hp", "balanced"):
        optimize_for = "balanced"

    log_attempt_detail(
        "Solve request",
        pieces=len(chosen),
        cells=f"{total_cells(chosen)}/{CFG.GRID_SIZE * CFG.GRID_SIZE}",
        max_solutions=max_solutions,
        timeout_ms=timeout_ms,
        optimize_for=optimize_for,
    )
    set_placed(0, len(chosen))

    solver = GridSolver(
        max_solutions=max_solutions,
        timeout_ms=timeout_ms,
        on_progress=_progress_hook(len(chosen)),
    )
    try:
        report = solver.run(chosen)
        body = _report_payload(report, optimize_for, solver.grid_size)
    except Exception as e:
        reason = f"solver exception: {type(e).__name__}: {e}"
        set_done(False, reason=reason)
        return jsonify({"ok": False, "status": "error", "message": reason}), 500

    set_solutions_found(len(report.solutions))
    set_done(report.ok, reason=body["message"])
    return jsonify(body)


@app.route("/fits", methods=["POST"])
def fits():
    progress_reset()
    start_run("fits")

    payload = _payload()
    catalogue, selected, err = _pieces_from_request(payload)
    if err:
        set_done(False, reason=f"Bad pieces: {err}")
        return jsonify({"ok": False, "status": "bad_request", "message": err}), 400
    if not isinstance(payload.get("selected"), (list, tuple)):
        set_done(False, reason="selected ids are required")
        return jsonify({"ok": False, "status": "bad_request", "message": "selected ids are required"}), 400

    usable = {p.id for p in catalogue if p.enabled}
    missing = [pid for pid in selected if pid not in usable]
    if missing:
        msg = f"unknown or locked selected ids: {', '.join(map(str, missing))}"
        set_done(False, reason=msg)
        return jsonify({"ok": False, "status": "bad_request", "message": msg}), 400

    timeout_ms = _int_arg(payload, "timeoutMs", CFG.FIT_TIMEOUT_MS, lo=1)
    set_message("Testing which pieces still fit")

    def _on_yield(p: FitProgress) -> None:
        set_candidates(p.tested, p.total, p.fitting)

    fitting = find_fitting_candidates(
        catalogue,
        selected,
        timeout_ms=timeout_ms,
        on_yield=_on_yield,
    )
    total = len(candidate_pieces(catalogue, selected))
    set_candidates(total, total, fitting)
    set_done(True, reason=f"{len(fitting)} piece(s) fit")
    return jsonify({"ok": True, "fitting": fitting, "tested": total})


@app.route("/progress")
def progress():
    return jsonify(progress_snapshot())


if __name__ == "__main__":
    app.run(debug=False, threaded=True)
