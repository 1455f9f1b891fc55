# solver/rotation.py
from typing import List, Tuple

from models import ROTATIONS, Shape


def rotate90(shape: Shape) -> Shape:
    """Rotate a shape 90° clockwise.

    Cell (r, c) of an R×C mask lands on (c, R-1-r) of the C×R result.
    """
    R = shape.height
    C = shape.width
    out = [[0] * R for _ in range(C)]
    for r, row in enumerate(shape.rows):
        for c, v in enumerate(row):
            out[c][R - 1 - r] = v
    return Shape(tuple(tuple(row) for row in out))


def rotate_shape(shape: Shape, degrees: int) -> Shape:
    if degrees not in ROTATIONS:
        raise ValueError(f"Rotation must be one of {ROTATIONS}, got {degrees!r}")
    result = shape
    for _ in range(degrees // 90):
        result = rotate90(result)
    return result


def orientations(shape: Shape) -> List[Tuple[int, Shape]]:
    # Symmetric shapes give repeated masks; all four entries are kept.
    out: List[Tuple[int, Shape]] = []
    current = shape
    for rotation in ROTATIONS:
        out.append((rotation, current))
        current = rotate90(current)
    return out


__all__ = ["rotate90", "rotate_shape", "orientations"]
