# dualmatch/assembler.py
import os
import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from colorprep.colors import ImageLike, array_to_grid, as_rgb_array, round_half_up
from colorprep.imaging import save_rgb_image
from colorprep.preprocess import MATCH_PALETTE_SIZE, NormalizationOptions, normalize_pair
from .assignment import AssignmentSolver, is_permutation, solve_assignment
from .features import build_similarity_matrix, similarity_stats
from .puzzle import PixelContent, PuzzleDefinition, PuzzleTile, grid_size_for
from .render import render_arrangement
from .splitter import extract_tiles

logger = logging.getLogger(__name__)

DEFAULT_GRID_SIZE = 3
BLEND_THRESHOLD = 0.95
# Matrix construction is O(grid^4 * tile pixels)
LARGE_GRID_WARNING = 8


@dataclass
class TileMatch:
    tile_index_a: int
    tile_index_b: int
    similarity: float
    blended_content: np.ndarray
    blended: bool = False


@dataclass
class MatchResult:
    tiles: List[np.ndarray]
    solution_a: List[int]
    solution_b: List[int]
    total_similarity: float
    match_details: List[TileMatch]
    similarity_matrix: np.ndarray
    assignment: List[int]


@dataclass
class QualityReport:
    raw_similarity: float
    histogram_similarity: float
    palette_similarity: float
    recommended_method: str

    def to_dict(self) -> Dict:
        return {
            "rawSimilarity": self.raw_similarity,
            "histogramSimilarity": self.histogram_similarity,
            "paletteSimilarity": self.palette_similarity,
            "recommendedMethod": self.recommended_method,
        }


def blend_tiles(tile_a: ImageLike, tile_b: ImageLike, weight_a: float = 0.5) -> np.ndarray:
    # Per-channel linear mix, rounded half up and clamped to 0-255
    a = as_rgb_array(tile_a).astype(np.float64)
    b = as_rgb_array(tile_b).astype(np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Cannot blend tiles of shape {a.shape} and {b.shape}")
    mixed = round_half_up(a * weight_a + b * (1 - weight_a))
    return np.clip(mixed, 0, 255).astype(np.uint8)


def match_images(image_a: ImageLike, image_b: ImageLike, grid_size: int = DEFAULT_GRID_SIZE,
                 solver: Optional[AssignmentSolver] = None) -> MatchResult:
    """
    Build one tile set that can be arranged into either image.

    Tile i sits at position i in solution A. In solution B it moves to the
    position of the B tile it was matched with, so solution_b is the
    inverse of the assignment.
    """
    if grid_size > LARGE_GRID_WARNING:
        logger.warning("grid_size=%d: similarity matrix has %d entries and will be slow",
                       grid_size, grid_size ** 4)

    # 1. Extract tiles from both images
    tiles_a = extract_tiles(image_a, grid_size)
    tiles_b = extract_tiles(image_b, grid_size)
    if tiles_a[0].shape != tiles_b[0].shape:
        logger.warning("Tile shapes differ (%s vs %s); all similarities will be 0 and tiles are not blended",
                       tiles_a[0].shape[:2], tiles_b[0].shape[:2])

    # 2. Similarity matrix
    sim_matrix = build_similarity_matrix(tiles_a, tiles_b)
    logger.debug("Similarity matrix stats: %s", similarity_stats(sim_matrix))

    # 3. Assignment
    assignment = solve_assignment(sim_matrix, solver)

    # 4. Blend matched pairs unless they are already near-identical
    N = len(tiles_a)
    tiles = []
    match_details = []
    total = 0.0
    for i in range(N):
        j = assignment[i]
        similarity = float(sim_matrix[i, j])
        total += similarity
        # Tiles of different shapes cannot be mixed; A is kept as is
        blended = similarity <= BLEND_THRESHOLD and tiles_a[i].shape == tiles_b[j].shape
        content = blend_tiles(tiles_a[i], tiles_b[j], 0.5) if blended else tiles_a[i]
        tiles.append(content)
        match_details.append(TileMatch(i, j, similarity, content, blended))

    # 5. Solutions
    solution_a = list(range(N))
    solution_b = [0] * N
    for i, j in enumerate(assignment):
        solution_b[j] = i
    if not is_permutation(solution_b, N):
        raise RuntimeError(f"Solution B is not a permutation: {solution_b}")

    result = MatchResult(
        tiles=tiles,
        solution_a=solution_a,
        solution_b=solution_b,
        total_similarity=total / N,
        match_details=match_details,
        similarity_matrix=sim_matrix,
        assignment=list(assignment),
    )
    logger.info("Matched %d tiles (grid %d), mean similarity %.3f", N, grid_size, result.total_similarity)
    return result


def match_images_with_normalization(image_a: ImageLike, image_b: ImageLike,
                                    grid_size: int = DEFAULT_GRID_SIZE,
                                    options: Optional[NormalizationOptions] = None,
                                    solver: Optional[AssignmentSolver] = None) -> MatchResult:
    options = options or NormalizationOptions(method="palette", palette_size=MATCH_PALETTE_SIZE)
    normalized_a, normalized_b = normalize_pair(image_a, image_b, options)
    logger.debug("Normalized images with method=%s", options.method)
    return match_images(normalized_a, normalized_b, grid_size, solver)


def analyze_match_quality(image_a: ImageLike, image_b: ImageLike,
                          grid_size: int = DEFAULT_GRID_SIZE) -> QualityReport:
    """
    Score the pair without normalisation and with histogram and palette
    normalisation. The best score wins; on a tie the earlier method in
    (none, histogram, palette) is kept. Luminance balancing is not scored.
    """
    raw = match_images(image_a, image_b, grid_size)
    hist = match_images_with_normalization(image_a, image_b, grid_size,
                                           NormalizationOptions(method="histogram"))
    palette = match_images_with_normalization(image_a, image_b, grid_size,
                                              NormalizationOptions(method="palette",
                                                                   palette_size=MATCH_PALETTE_SIZE))

    scores = [
        ("none", raw.total_similarity),
        ("histogram", hist.total_similarity),
        ("palette", palette.total_similarity),
    ]
    best_method, best_score = scores[0]
    for method, score in scores[1:]:
        if score > best_score:
            best_method, best_score = method, score

    return QualityReport(
        raw_similarity=raw.total_similarity,
        histogram_similarity=hist.total_similarity,
        palette_similarity=palette.total_similarity,
        recommended_method=best_method,
    )


def create_puzzle_from_match(match_result: MatchResult, label_a: str, label_b: str,
                             puzzle_id: str = "generated-puzzle") -> PuzzleDefinition:
    tiles = tuple(
        PuzzleTile(id=f"t{i}", content=PixelContent.from_grid(array_to_grid(grid)))
        for i, grid in enumerate(match_result.tiles)
    )
    return PuzzleDefinition(
        id=puzzle_id,
        name=f"{label_a} ↔ {label_b}",
        grid_size=grid_size_for(len(tiles)),
        tiles=tiles,
        solution_a=tuple(f"t{i}" for i in match_result.solution_a),
        solution_b=tuple(f"t{i}" for i in match_result.solution_b),
        image_a=label_a,
        image_b=label_b,
    )


def save_heatmap(matrix: np.ndarray, output_path: str, title_text: str):
    plt.figure(figsize=(6,5))
    plt.imshow(matrix, aspect='auto', vmin=0.0, vmax=1.0)
    plt.colorbar()
    plt.xlabel("tile in B")
    plt.ylabel("tile in A")
    plt.title(title_text)
    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close()


def match_report(match_result: MatchResult) -> Dict:
    return {
        "totalSimilarity": match_result.total_similarity,
        "assignment": list(match_result.assignment),
        "solutionA": list(match_result.solution_a),
        "solutionB": list(match_result.solution_b),
        "blendThreshold": BLEND_THRESHOLD,
        "matches": [
            {
                "tileIndexA": m.tile_index_a,
                "tileIndexB": m.tile_index_b,
                "similarity": m.similarity,
                "blended": m.blended,
            }
            for m in match_result.match_details
        ],
        "similarityStats": similarity_stats(match_result.similarity_matrix),
    }


def save_puzzle_json(puzzle: PuzzleDefinition, output_directory: str) -> str:
    os.makedirs(output_directory, exist_ok=True)
    puzzle_json_path = os.path.join(output_directory, "puzzle.json")
    with open(puzzle_json_path, "w", encoding="utf-8") as output_file:
        json.dump(puzzle.to_dict(), output_file, indent=2, ensure_ascii=False)
    return puzzle_json_path


def save_match_outputs(match_result: MatchResult, puzzle: PuzzleDefinition, output_directory: str,
                       tile_px: int = 48) -> Dict[str, str]:
    """Write puzzle.json, match_report.json, both solution previews and the heatmap."""
    puzzle_json_path = save_puzzle_json(puzzle, output_directory)
    report_json_path = os.path.join(output_directory, "match_report.json")
    with open(report_json_path, "w", encoding="utf-8") as output_file:
        json.dump(match_report(match_result), output_file, indent=2)

    paths = {"puzzle": puzzle_json_path, "report": report_json_path}
    for label, solution in (("a", puzzle.solution_a), ("b", puzzle.solution_b)):
        preview = render_arrangement(puzzle, solution, tile_px=tile_px)
        paths[f"solution_{label}"] = str(save_rgb_image(preview, os.path.join(output_directory, f"solution_{label}.png")))

    heatmap_path = os.path.join(output_directory, "similarity_heatmap.png")
    save_heatmap(match_result.similarity_matrix, heatmap_path, f"Tile similarity: {puzzle.name}")
    paths["heatmap"] = heatmap_path
    return paths
