from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from config import CFG

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _log_path() -> Path:
    configured = (CFG.ATTEMPT_LOG or "").strip()
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent / "logs" / "solver_attempts.log"


def _init_logger() -> logging.Logger:
    # Handler sits on the "solver" namespace so solver.backtrack and
    # solver.fit_tester records land in the same file.
    root = logging.getLogger("solver")
    logger = logging.getLogger("solver.attempt_log")
    if root.handlers:
        return logger

    try:
        log_path = _log_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False
    except Exception:
        # Progress tracking must keep working without a log file.
        root.handlers.clear()
    return logger


ATTEMPT_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(logging.getLogger("solver").handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.2f}s"
    except Exception:
        return None


def _emit_log(event: str, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    try:
        if extras:
            ATTEMPT_LOGGER.info("%s | %s", event, " ".join(extras))
        else:
            ATTEMPT_LOGGER.info("%s", event)
    except Exception:
        pass


def log_attempt_detail(event: str, **fields: Any) -> None:
    _emit_log(event, **fields)


# Single source of truth for the polling UI
PROGRESS: Dict[str, Any] = {
    "status": "Idle",            # Idle | Solving | Solved | Error
    "mode": "",                  # solve | fits
    "placed_count": 0,           # pieces on the board at the current node
    "total_pieces": 0,
    "percent": 0.0,              # 0..100 float
    "solutions_found": 0,
    "candidates_tested": 0,
    "candidates_total": 0,
    "fitting": [],               # candidate ids found to fit so far
    "elapsed_start": None,       # t0 (float) when the run started
    "elapsed": 0.0,              # seconds snapshot
    "message": "",
    "done": False,
    "ok": None,
    "run_id": 0,                 # monotonically increasing identifier
}

# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()


def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = _now() - float(t0)


def _pct(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return max(0.0, min(100.0, 100.0 * part / whole))


def reset() -> None:
    with PROGRESS_LOCK:
        try:
            current_run_id = int(PROGRESS.get("run_id", 0))
        except Exception:
            current_run_id = 0
        PROGRESS.update({
            "status": "Idle",
            "mode": "",
            "placed_count": 0,
            "total_pieces": 0,
            "percent": 0.0,
            "solutions_found": 0,
            "candidates_tested": 0,
            "candidates_total": 0,
            "fitting": [],
            "elapsed_start": None,
            "elapsed": 0.0,
            "message": "",
            "done": False,
            "ok": None,
            "run_id": current_run_id + 1,
        })
        _emit_log("Progress reset", run_id=current_run_id + 1)


def start_run(mode: str) -> None:
    with PROGRESS_LOCK:
        now = _now()
        PROGRESS["mode"] = "" if mode is None else str(mode)
        PROGRESS["status"] = "Solving"
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        _emit_log("Run started", mode=PROGRESS["mode"], run_id=PROGRESS.get("run_id"))

# ------------------------------
# Setters (tolerant)
# ------------------------------

def set_message(msg: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["message"] = "" if msg is None else str(msg)


def set_placed(placed_count: Any, total_pieces: Any) -> None:
    try:
        placed = max(0, int(placed_count))
        total = max(0, int(total_pieces))
    except Exception:
        placed, total = 0, 0
    with PROGRESS_LOCK:
        PROGRESS["placed_count"] = placed
        PROGRESS["total_pieces"] = total
        PROGRESS["percent"] = _pct(placed, total)
        _touch_elapsed_locked()


def set_solutions_found(n: Any) -> None:
    try:
        i = int(n)
    except Exception:
        i = 0
    with PROGRESS_LOCK:
        PROGRESS["solutions_found"] = max(0, i)


def set_candidates(tested: Any, total: Any, fitting: Any = None) -> None:
    try:
        t = max(0, int(tested))
        n = max(0, int(total))
    except Exception:
        t, n = 0, 0
    with PROGRESS_LOCK:
        PROGRESS["candidates_tested"] = t
        PROGRESS["candidates_total"] = n
        PROGRESS["percent"] = _pct(t, n)
        if fitting is not None:
            PROGRESS["fitting"] = [str(f) for f in fitting]
        _touch_elapsed_locked()


def set_done(ok: Any = None, *, reason: Any = None, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks the final status (``Solved`` / ``Error``); when omitted the
    run counts as solved.  ``reason`` or ``message`` lands in the message
    field.
    """
    ok_flag = True if ok is None else bool(ok)
    final_message = message if message is not None else reason

    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        PROGRESS["status"] = "Solved" if ok_flag else "Error"
        PROGRESS["percent"] = 100.0
        if final_message is not None:
            PROGRESS["message"] = str(final_message)
        PROGRESS["done"] = True
        PROGRESS["ok"] = ok_flag
        t0 = PROGRESS.get("elapsed_start")
        total = max(0.0, _now() - float(t0)) if isinstance(t0, (int, float)) else None
        _emit_log(
            "Run finished",
            mode=PROGRESS.get("mode"),
            status=PROGRESS.get("status"),
            ok=ok_flag,
            duration=_fmt_seconds(total),
            solutions=PROGRESS.get("solutions_found"),
            fitting=len(PROGRESS.get("fitting") or []),
            message=PROGRESS.get("message"),
        )

# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        out = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        out["fitting"] = list(PROGRESS["fitting"])
        out["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return out
