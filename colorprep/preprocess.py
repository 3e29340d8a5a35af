# colorprep/preprocess.py
import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .colors import (
    ImageLike,
    as_rgb_array,
    hex_to_rgb,
    luminance_map,
    pixels_of,
    rgb_to_hex,
    round_half_up,
)

logger = logging.getLogger(__name__)

KMEANS_ITERATIONS = 10
DEFAULT_PALETTE_SIZE = 16
MATCH_PALETTE_SIZE = 8
METHODS = ("none", "histogram", "palette", "luminance")


@dataclass
class ColorHistogram:
    r: np.ndarray
    g: np.ndarray
    b: np.ndarray
    total_pixels: int


@dataclass(frozen=True)
class NormalizationOptions:
    method: str = "palette"
    palette_size: Optional[int] = None


# --------------------------------------------------------------------------
# Histogram matching
# --------------------------------------------------------------------------
def extract_histogram(image: ImageLike) -> ColorHistogram:
    """256-bin counts per RGB channel."""
    px = pixels_of(as_rgb_array(image))
    return ColorHistogram(
        r=np.bincount(px[:, 0], minlength=256),
        g=np.bincount(px[:, 1], minlength=256),
        b=np.bincount(px[:, 2], minlength=256),
        total_pixels=int(px.shape[0]),
    )


def build_cdf(histogram: np.ndarray, total_pixels: int) -> np.ndarray:
    return np.cumsum(histogram) / total_pixels


def create_histogram_mapping(source_cdf: np.ndarray, target_cdf: np.ndarray) -> np.ndarray:
    """
    For every source intensity, the target intensity whose CDF value is
    closest. argmin returns the first minimum, so ties go to the lowest
    target value.
    """
    diffs = np.abs(target_cdf[None, :] - source_cdf[:, None])
    return np.argmin(diffs, axis=1).astype(np.uint8)


def match_histograms(source: ImageLike, target: ImageLike) -> np.ndarray:
    """Remap `source` so each channel follows `target`'s distribution."""
    src = as_rgb_array(source)
    source_hist = extract_histogram(src)
    target_hist = extract_histogram(target)

    result = np.empty_like(src)
    for ch, name in enumerate(("r", "g", "b")):
        src_cdf = build_cdf(getattr(source_hist, name), source_hist.total_pixels)
        tgt_cdf = build_cdf(getattr(target_hist, name), target_hist.total_pixels)
        mapping = create_histogram_mapping(src_cdf, tgt_cdf)
        result[..., ch] = mapping[src[..., ch]]
    return result


# --------------------------------------------------------------------------
# Palette quantisation
# --------------------------------------------------------------------------
def _check_palette_size(palette_size: int):
    if palette_size < 1:
        raise ValueError(f"palette_size must be >= 1, got {palette_size}")


def _nearest(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    # Squared RGB distance; argmin keeps the first centroid on exact ties
    d = points[:, None, :] - centroids[None, :, :]
    return np.argmin(np.sum(d * d, axis=2), axis=1)


def _kmeans(points: np.ndarray, centroids: np.ndarray, iterations: int = KMEANS_ITERATIONS) -> np.ndarray:
    points = points.astype(np.float64)
    centroids = centroids.astype(np.float64)
    for _ in range(iterations):
        labels = _nearest(points, centroids)
        updated = centroids.copy()
        for k in range(len(centroids)):
            members = points[labels == k]
            # An empty cluster keeps its previous centroid
            if len(members) == 0:
                continue
            updated[k] = round_half_up(members.mean(axis=0))
        centroids = updated
    return centroids


def _to_hex_list(centroids: np.ndarray) -> List[str]:
    return [rgb_to_hex(*c) for c in centroids]


def extract_palette(image: ImageLike, palette_size: int = DEFAULT_PALETTE_SIZE) -> List[str]:
    """
    Representative colours of an image.

    With at most `palette_size` distinct colours the exact colour set is
    returned (first-appearance order). Otherwise k-means runs for
    KMEANS_ITERATIONS passes, seeded from the most frequent colours.
    """
    _check_palette_size(palette_size)
    px = pixels_of(as_rgb_array(image))
    counts = Counter(map(tuple, px.tolist()))
    if len(counts) <= palette_size:
        return [rgb_to_hex(*c) for c in counts]

    # most_common is stable, so frequency ties keep first-appearance order
    seeds = np.array([c for c, _ in counts.most_common(palette_size)], dtype=np.float64)
    centroids = _kmeans(px, seeds)
    logger.debug("Extracted %d-colour palette from %d unique colours", palette_size, len(counts))
    return _to_hex_list(centroids)


def find_shared_palette(image_a: ImageLike, image_b: ImageLike,
                        palette_size: int = DEFAULT_PALETTE_SIZE) -> List[str]:
    """Re-cluster both images' palettes into one palette of at most `palette_size`."""
    _check_palette_size(palette_size)
    all_colors = extract_palette(image_a, palette_size) + extract_palette(image_b, palette_size)
    points = np.array([hex_to_rgb(c) for c in all_colors], dtype=np.float64)
    centroids = _kmeans(points, points[:palette_size])
    return _to_hex_list(centroids)


def remap_to_palette(image: ImageLike, palette: List[str]) -> np.ndarray:
    """Replace every pixel with its nearest palette colour."""
    if not palette:
        raise ValueError("Palette is empty")
    img = as_rgb_array(image)
    palette_rgb = np.array([hex_to_rgb(c) for c in palette], dtype=np.int64)
    labels = _nearest(pixels_of(img).astype(np.int64), palette_rgb)
    return palette_rgb[labels].astype(np.uint8).reshape(img.shape)


# --------------------------------------------------------------------------
# Luminance balancing
# --------------------------------------------------------------------------
def normalize_luminance(image_a: ImageLike, image_b: ImageLike) -> Tuple[np.ndarray, np.ndarray]:
    """Scale both images toward the mean of their average luminances."""
    a = as_rgb_array(image_a)
    b = as_rgb_array(image_b)
    avg_a = float(luminance_map(a).mean())
    avg_b = float(luminance_map(b).mean())
    target = (avg_a + avg_b) / 2

    def adjust(img: np.ndarray, current: float) -> np.ndarray:
        if current == 0:
            logger.warning("Image has zero mean luminance; leaving it unscaled")
            return img.copy()
        scaled = np.minimum(255.0, img.astype(np.float64) * (target / current))
        return round_half_up(scaled).astype(np.uint8)

    return adjust(a, avg_a), adjust(b, avg_b)


def normalize_pair(image_a: ImageLike, image_b: ImageLike,
                   options: Optional[NormalizationOptions] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Apply one normalisation strategy to both images."""
    options = options or NormalizationOptions()
    method = options.method
    if method == "histogram":
        # A is matched to B's distribution and B to A's
        return match_histograms(image_a, image_b), match_histograms(image_b, image_a)
    if method == "palette":
        size = options.palette_size or MATCH_PALETTE_SIZE
        shared = find_shared_palette(image_a, image_b, size)
        logger.debug("Shared palette (%d colours): %s", len(shared), shared)
        return remap_to_palette(image_a, shared), remap_to_palette(image_b, shared)
    if method == "luminance":
        return normalize_luminance(image_a, image_b)
    if method == "none":
        return as_rgb_array(image_a), as_rgb_array(image_b)
    raise ValueError(f"Unknown normalization method {method!r}; expected one of {METHODS}")
