# colorprep/colors.py
import numpy as np
from typing import List, Sequence, Tuple, Union

# A ColorGrid is a rectangular list of rows of "#rrggbb" strings.
ColorGrid = List[List[str]]
ImageLike = Union[np.ndarray, Sequence[Sequence[str]]]

# sqrt(255^2 * 3), rounded the way the similarity scores were tuned
MAX_RGB_DISTANCE = 441.67

_HEX_DIGITS = set("0123456789abcdefABCDEF")


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert "#rrggbb" (or "rrggbb") to an (r, g, b) tuple."""
    h = hex_color.replace("#", "")
    if len(h) != 6 or not set(h) <= _HEX_DIGITS:
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def round_half_up(values):
    # np.round is banker's rounding; colour quantisation rounds .5 up
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Clamp each channel to 0-255, round, and format as "#rrggbb"."""
    channels = round_half_up(np.clip([r, g, b], 0, 255)).astype(int)
    return "#" + "".join(f"{int(c):02x}" for c in channels)


def get_luminance(r: float, g: float, b: float) -> float:
    return 0.299 * r + 0.587 * g + 0.114 * b


def luminance_map(image: np.ndarray) -> np.ndarray:
    # Per-pixel luminance of an (H, W, 3) RGB array
    rgb = image.astype(np.float64)
    return 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]


def as_rgb_array(image: ImageLike) -> np.ndarray:
    """
    Return a validated (H, W, 3) uint8 RGB copy of `image`.

    Accepts either a ColorGrid of hex strings or a numpy array. Empty,
    ragged or wrongly shaped input raises ValueError.
    """
    if isinstance(image, np.ndarray):
        if image.ndim != 3 or image.shape[2] != 3:
            raise ValueError(f"Expected an (H, W, 3) array, got shape {image.shape}")
        if image.shape[0] == 0 or image.shape[1] == 0:
            raise ValueError("Image is empty")
        if np.issubdtype(image.dtype, np.floating) and not np.all(np.isfinite(image)):
            raise ValueError("Image contains non-finite values")
        return np.clip(round_half_up(image), 0, 255).astype(np.uint8)

    rows = list(image)
    if not rows or len(rows[0]) == 0:
        raise ValueError("Image is empty")
    width = len(rows[0])
    out = np.zeros((len(rows), width, 3), dtype=np.uint8)
    for r, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"Ragged image: row {r} has {len(row)} pixels, expected {width}")
        for c, pixel in enumerate(row):
            out[r, c] = hex_to_rgb(pixel)
    return out


def array_to_grid(image: np.ndarray) -> ColorGrid:
    """Convert an (H, W, 3) RGB array back to a ColorGrid."""
    arr = as_rgb_array(image)
    return [[f"#{int(p[0]):02x}{int(p[1]):02x}{int(p[2]):02x}" for p in row] for row in arr]


def pixels_of(image: np.ndarray) -> np.ndarray:
    # Flatten to (H*W, 3) in row-major scan order
    return image.reshape(-1, 3)
