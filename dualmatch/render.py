# dualmatch/render.py
from functools import singledispatch
from typing import Sequence, Tuple

import cv2
import numpy as np

from colorprep.colors import as_rgb_array, hex_to_rgb
from .puzzle import (
    ColorContent,
    ConnectionPoint,
    DoubleSidedContent,
    LineContent,
    PixelContent,
    PuzzleDefinition,
)

BACKGROUND = "#1e293b"
LINE_COLOR = "#f8fafc"


def _edge_point(point: ConnectionPoint, size: int) -> Tuple[int, int]:
    # (x, y) of a connection point on the tile border
    offset = size // 3 if point.position == "a" else (2 * size) // 3
    last = size - 1
    return {
        "top": (offset, 0),
        "bottom": (offset, last),
        "left": (0, offset),
        "right": (last, offset),
    }[point.edge]


def _curve(p0, p2, size: int, steps: int = 16) -> np.ndarray:
    # Quadratic Bezier bent through the tile centre
    c = np.array([size / 2, size / 2])
    t = np.linspace(0.0, 1.0, steps)[:, None]
    pts = (1 - t) ** 2 * np.array(p0) + 2 * (1 - t) * t * c + t ** 2 * np.array(p2)
    return np.round(pts).astype(np.int32)


@singledispatch
def render_content(content, size: int, face: str = "a") -> np.ndarray:
    raise TypeError(f"Cannot render tile content of type {type(content).__name__}")


@render_content.register
def _(content: ColorContent, size: int, face: str = "a") -> np.ndarray:
    canvas = np.zeros((size, size, 3), dtype=np.uint8)
    canvas[:, :] = hex_to_rgb(content.color)
    return canvas


@render_content.register
def _(content: PixelContent, size: int, face: str = "a") -> np.ndarray:
    grid = as_rgb_array(content.grid)
    return cv2.resize(grid, (size, size), interpolation=cv2.INTER_NEAREST)


@render_content.register
def _(content: LineContent, size: int, face: str = "a") -> np.ndarray:
    canvas = np.zeros((size, size, 3), dtype=np.uint8)
    canvas[:, :] = hex_to_rgb(BACKGROUND)
    color = tuple(int(v) for v in hex_to_rgb(LINE_COLOR))
    thickness = max(1, size // 12)
    for path in content.paths:
        p0 = _edge_point(path.start, size)
        p1 = _edge_point(path.end, size)
        if path.style == "straight":
            cv2.line(canvas, p0, p1, color, thickness)
        else:
            cv2.polylines(canvas, [_curve(p0, p1, size)], False, color, thickness)
    return canvas


@render_content.register
def _(content: DoubleSidedContent, size: int, face: str = "a") -> np.ndarray:
    return render_content(content.face_b if face == "b" else content.face_a, size)


def render_arrangement(puzzle: PuzzleDefinition, arrangement: Sequence[str],
                       tile_px: int = 32, face: str = "a") -> np.ndarray:
    """Compose the board image for `arrangement` (tile ids, row-major)."""
    n = puzzle.grid_size
    if len(arrangement) != n * n:
        raise ValueError(f"Arrangement has {len(arrangement)} tiles, board needs {n * n}")
    canvas = np.zeros((n * tile_px, n * tile_px, 3), dtype=np.uint8)
    for pos, tile_id in enumerate(arrangement):
        r, c = divmod(pos, n)
        tile = puzzle.tile_by_id(tile_id)
        canvas[r * tile_px:(r + 1) * tile_px, c * tile_px:(c + 1) * tile_px] = \
            render_content(tile.content, tile_px, face)
    return canvas
