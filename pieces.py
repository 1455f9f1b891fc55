# pieces.py — built-in shapes and a tolerant piece payload parser
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from models import Piece, Score, Shape

# 1 = filled cell, 0 = empty cell
PIECE_SHAPES: Dict[str, List[List[int]]] = {
    # normal (4 cells)
    "normal_I": [[1, 1, 1, 1]],
    "normal_O": [[1, 1], [1, 1]],
    "normal_T": [[0, 1, 0], [1, 1, 1]],
    "normal_L": [[1, 0], [1, 0], [1, 1]],
    "normal_Z": [[1, 1, 0], [0, 1, 1]],

    # uncommon (5 cells)
    "uncommon_I": [[1, 1, 1, 1, 1]],
    "uncommon_L": [[1, 0], [1, 0], [1, 0], [1, 1]],
    "uncommon_T": [[1, 1, 1], [0, 1, 0], [0, 1, 0]],
    "uncommon_U": [[1, 0, 1], [1, 1, 1]],
    "uncommon_F": [[0, 1, 1], [1, 1, 0], [0, 1, 0]],
    "uncommon_W": [[1, 0, 0], [1, 1, 0], [0, 1, 1]],

    # rare (7 cells)
    "rare_cross": [[0, 1, 0], [1, 1, 1], [0, 1, 0], [0, 1, 0], [0, 1, 0]],
    "rare_L": [[1, 0, 0, 0], [1, 0, 0, 0], [1, 0, 0, 0], [1, 1, 1, 1]],
    "rare_T": [[1, 1, 1, 1, 1], [0, 0, 1, 0, 0]],
    "rare_stairs": [[1, 0, 0], [1, 1, 0], [0, 1, 1], [0, 0, 1]],
    "rare_hook": [[1, 1, 1], [1, 0, 0], [1, 0, 0], [1, 1, 0]],

    # epic (8 cells)
    "epic_cross": [[0, 1, 0], [0, 1, 0], [1, 1, 1], [0, 1, 0], [0, 1, 0]],
    "epic_L": [[1, 0, 0, 0], [1, 0, 0, 0], [1, 0, 0, 0], [1, 0, 0, 0], [1, 1, 1, 1]],
    "epic_U": [[1, 0, 0, 1], [1, 0, 0, 1], [1, 1, 1, 1]],
    "epic_Z": [[1, 1, 0, 0], [0, 1, 1, 0], [0, 0, 1, 1]],
    "epic_spiral": [[1, 1, 1], [1, 0, 1], [1, 1, 1]],
    "epic_T": [[1, 1, 1], [0, 1, 0], [0, 1, 0], [0, 1, 0], [0, 1, 0]],

    # legendary (9 cells)
    "legendary_square": [[1, 1, 1], [1, 1, 1], [1, 1, 1]],
    "legendary_cross": [
        [0, 0, 1, 0, 0],
        [0, 0, 1, 0, 0],
        [1, 1, 1, 1, 1],
        [0, 0, 1, 0, 0],
        [0, 0, 1, 0, 0],
    ],
    "legendary_L": [
        [1, 0, 0, 0, 0],
        [1, 0, 0, 0, 0],
        [1, 0, 0, 0, 0],
        [1, 0, 0, 0, 0],
        [1, 1, 1, 1, 1],
    ],
    "legendary_snake": [[1, 1, 0, 0], [0, 1, 1, 0], [0, 0, 1, 1], [0, 0, 0, 1]],

    # mythic (10 cells)
    "mythic_plus": [[0, 1, 1, 1, 0], [0, 1, 0, 1, 0], [1, 1, 0, 1, 1], [0, 0, 0, 0, 0]],
    "mythic_H": [[1, 0, 1], [1, 0, 1], [1, 1, 1], [1, 0, 1], [1, 0, 1]],
    "mythic_diamond": [
        [0, 0, 1, 0, 0],
        [0, 1, 1, 1, 0],
        [1, 1, 0, 1, 1],
        [0, 1, 1, 1, 0],
        [0, 0, 1, 0, 0],
    ],
    "mythic_complex": [[1, 1, 1, 0], [1, 0, 1, 0], [1, 0, 1, 1], [1, 0, 0, 0]],

    # transcendent (11 cells)
    "transcendent_mega": [[1, 1, 1, 0], [1, 0, 1, 0], [1, 0, 1, 1], [1, 0, 0, 1], [1, 1, 0, 0]],
    "transcendent_star": [
        [0, 0, 1, 0, 0],
        [0, 1, 1, 1, 0],
        [1, 1, 1, 1, 1],
        [0, 1, 1, 1, 0],
        [0, 0, 1, 0, 0],
    ],
    "transcendent_complex": [[1, 1, 1, 1], [1, 0, 0, 1], [1, 0, 0, 1], [1, 1, 1, 1]],
    "transcendent_ultra": [
        [1, 1, 0, 0, 0],
        [0, 1, 1, 0, 0],
        [0, 0, 1, 1, 0],
        [0, 0, 0, 1, 1],
        [0, 0, 0, 0, 1],
    ],
    "transcendent_final": [[1, 0, 1, 0, 1], [1, 1, 1, 1, 1], [0, 0, 1, 0, 0]],
}


def builtin_catalogue() -> List[Piece]:
    return [Piece(id=name, shape=Shape.of(rows), name=name) for name, rows in PIECE_SHAPES.items()]


def _to_float(x: Any) -> Optional[float]:
    try:
        return float(x)
    except Exception:
        return None


def _to_bool(x: Any, default: bool = True) -> bool:
    if x is None:
        return default
    if isinstance(x, str):
        return x.strip().lower() not in ("0", "false", "no", "off", "")
    return bool(x)


def _score_from(entry: Dict[str, Any]) -> Score:
    src = entry.get("score") if isinstance(entry.get("score"), dict) else entry
    atk = _to_float(src.get("atk"))
    hp = _to_float(src.get("hp"))
    return Score(atk or 0, hp or 0)


def _parse_entry(idx: int, entry: Any) -> Tuple[Optional[Piece], Optional[str]]:
    # bare string: a built-in shape name used as the piece id
    if isinstance(entry, str):
        rows = PIECE_SHAPES.get(entry)
        if rows is None:
            return None, f"piece {idx}: unknown shape name {entry!r}"
        return Piece(id=entry, shape=Shape.of(rows), name=entry), None

    if not isinstance(entry, dict):
        return None, f"piece {idx}: expected an object or shape name, got {type(entry).__name__}"

    shape_val = entry.get("shape")
    shape_name = entry.get("shapeName") or entry.get("shape_name")
    if isinstance(shape_val, str) and not shape_name:
        shape_name, shape_val = shape_val, None

    pid = entry.get("id")
    if pid is None or str(pid).strip() == "":
        pid = shape_name
    if pid is None or str(pid).strip() == "":
        return None, f"piece {idx}: missing id"
    pid = str(pid)

    if shape_val is None:
        if not shape_name:
            rows = PIECE_SHAPES.get(pid)
        else:
            rows = PIECE_SHAPES.get(str(shape_name))
        if rows is None:
            return None, f"piece {pid}: no shape and no known shape name"
        shape_val = rows

    if not isinstance(shape_val, (list, tuple)) or not all(isinstance(r, (list, tuple)) for r in shape_val):
        return None, f"piece {pid}: shape must be a list of rows"
    try:
        shape = Shape.of(shape_val)
    except ValueError as e:
        return None, f"piece {pid}: {e}"

    return Piece(
        id=pid,
        shape=shape,
        score=_score_from(entry),
        name=str(entry.get("name") or shape_name or pid),
        enabled=_to_bool(entry.get("enabled", entry.get("unlocked")), default=True),
    ), None


def parse_pieces(payload: Any) -> Tuple[List[Piece], Optional[str]]:
    """
    Return (pieces, error_message_or_None).
    Accepts {"pieces": [...]} or a bare list; each entry is a shape name or an
    object with id / shape / shapeName / atk / hp / score / name / enabled.
    """
    if isinstance(payload, dict):
        entries = payload.get("pieces")
    else:
        entries = payload

    if entries is None:
        return [], "no pieces in request"
    if not isinstance(entries, (list, tuple)):
        return [], "pieces must be a list"

    pieces: List[Piece] = []
    seen = set()
    for idx, entry in enumerate(entries):
        piece, err = _parse_entry(idx, entry)
        if err:
            return [], err
        if piece.id in seen:
            return [], f"duplicate piece id {piece.id!r}"
        seen.add(piece.id)
        pieces.append(piece)
    return pieces, None


def selected_ids_from(payload: Any, pieces: Iterable[Piece]) -> List[str]:
    """Explicit ``selected`` ids, or every parsed piece when the key is absent."""
    if isinstance(payload, dict) and isinstance(payload.get("selected"), (list, tuple)):
        return [str(s) for s in payload["selected"]]
    return [p.id for p in pieces]


__all__ = ["PIECE_SHAPES", "builtin_catalogue", "parse_pieces", "selected_ids_from"]
