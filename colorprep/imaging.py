# colorprep/imaging.py
from pathlib import Path
import cv2
import numpy as np

from .colors import as_rgb_array


def load_color_grid(in_path: Path, pixels: int) -> np.ndarray:
    # Read an image file and pixelate it to a (pixels x pixels) RGB grid
    if pixels <= 0:
        raise ValueError(f"pixels must be positive, got {pixels}")
    img = cv2.imread(str(in_path), cv2.IMREAD_COLOR)
    if img is None:
        raise RuntimeError(f"Cannot read image: {in_path}")
    img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    return cv2.resize(img, (pixels, pixels), interpolation=cv2.INTER_AREA)


def upscale(image: np.ndarray, factor: int) -> np.ndarray:
    # Nearest-neighbour blow-up so pixel art stays crisp in previews
    h, w = image.shape[:2]
    return cv2.resize(image, (w * factor, h * factor), interpolation=cv2.INTER_NEAREST)


def save_rgb_image(image: np.ndarray, out_path: Path, scale: int = 1) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    img = as_rgb_array(image)
    if scale > 1:
        img = upscale(img, scale)
    if not cv2.imwrite(str(out_path), cv2.cvtColor(img, cv2.COLOR_RGB2BGR)):
        raise RuntimeError(f"Cannot write image: {out_path}")
    return out_path
