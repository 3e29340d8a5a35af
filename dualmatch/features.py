import numpy as np
from typing import Dict, List

from colorprep.colors import MAX_RGB_DISTANCE, ImageLike, as_rgb_array


def tile_similarity(tile_a: ImageLike, tile_b: ImageLike) -> float:
    # 1 - mean per-pixel RGB distance / MAX_RGB_DISTANCE; 0 when shapes differ
    a = as_rgb_array(tile_a)
    b = as_rgb_array(tile_b)
    if a.shape != b.shape:
        return 0.0
    diff = a.astype(np.float64) - b.astype(np.float64)
    mean_distance = float(np.sqrt(np.sum(diff * diff, axis=2)).mean())
    # 441.67 is a hair under the true maximum, so black vs white would dip below 0
    return max(0.0, 1.0 - mean_distance / MAX_RGB_DISTANCE)


def build_similarity_matrix(tiles_a: List[ImageLike], tiles_b: List[ImageLike]) -> np.ndarray:
    """
    tiles_a, tiles_b: equally long tile lists from images A and B

    Returns:
        matrix: N x N, matrix[i][j] = similarity of tile i of A to tile j of B
    """
    if len(tiles_a) != len(tiles_b):
        raise ValueError(f"Tile counts differ: {len(tiles_a)} vs {len(tiles_b)}")

    N = len(tiles_a)
    matrix = np.zeros((N, N), dtype=np.float64)
    for i in range(N):
        for j in range(N):
            matrix[i, j] = tile_similarity(tiles_a[i], tiles_b[j])

    return matrix


def similarity_stats(matrix: np.ndarray) -> Dict[str, float]:
    if matrix.size == 0:
        return {"min": 0.0, "max": 0.0, "mean": 0.0, "diagonal_mean": 0.0}
    return {
        "min": float(matrix.min()),
        "max": float(matrix.max()),
        "mean": float(matrix.mean()),
        "diagonal_mean": float(np.diag(matrix).mean()),
    }
