import logging
import numpy as np
from typing import List

from colorprep.colors import ImageLike, as_rgb_array

logger = logging.getLogger(__name__)


def extract_tiles(image: ImageLike, grid_size: int) -> List[np.ndarray]:
    """
    Split image into grid_size x grid_size tiles, row-major.

    Tile size is floor(H / grid_size) x floor(W / grid_size); leftover
    rows at the bottom and columns at the right are dropped.
    """
    if grid_size <= 0:
        raise ValueError(f"grid_size must be positive, got {grid_size}")
    img = as_rgb_array(image)
    H, W = img.shape[:2]
    if H < grid_size or W < grid_size:
        raise ValueError(f"Image {H}x{W} is smaller than a {grid_size}x{grid_size} grid")

    tile_h = H // grid_size
    tile_w = W // grid_size
    if H % grid_size or W % grid_size:
        logger.debug("Dropping %d rows and %d cols of remainder", H % grid_size, W % grid_size)

    tiles = []
    for r in range(grid_size):
        for c in range(grid_size):
            y0 = r * tile_h
            x0 = c * tile_w
            tiles.append(img[y0:y0 + tile_h, x0:x0 + tile_w].copy())

    return tiles
