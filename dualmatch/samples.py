# dualmatch/samples.py
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from colorprep.colors import ColorGrid
from .assembler import DEFAULT_GRID_SIZE, create_puzzle_from_match, match_images
from .puzzle import PuzzleDefinition, empty_puzzle

logger = logging.getLogger(__name__)

PALETTE = {
    ".": "#1e293b",  # background
    "R": "#ef4444",
    "B": "#3b82f6",
    "Y": "#facc15",
}


def _image(rows: List[str]) -> ColorGrid:
    return [[PALETTE[ch] for ch in row] for row in rows]


X_PATTERN = _image([
    "RR........RR",
    "RRR......RRR",
    ".RRR....RRR.",
    "..RRR..RRR..",
    "...RRRRRR...",
    "....RRRR....",
    "....RRRR....",
    "...RRRRRR...",
    "..RRR..RRR..",
    ".RRR....RRR.",
    "RRR......RRR",
    "RR........RR",
])

O_PATTERN = _image([
    "...RRRRRR...",
    "..RRRRRRRR..",
    ".RRR....RRR.",
    "RRR......RRR",
    "RR........RR",
    "RR........RR",
    "RR........RR",
    "RR........RR",
    "RRR......RRR",
    ".RRR....RRR.",
    "..RRRRRRRR..",
    "...RRRRRR...",
])

UP_ARROW = _image([
    ".....BB.....",
    "....BBBB....",
    "...BBBBBB...",
    "..BBBBBBBB..",
    ".BBBBBBBBBB.",
    "BBBBBBBBBBBB",
    "....BBBB....",
    "....BBBB....",
    "....BBBB....",
    "....BBBB....",
    "....BBBB....",
    "....BBBB....",
])

DOWN_ARROW = _image(list(reversed([
    ".....BB.....",
    "....BBBB....",
    "...BBBBBB...",
    "..BBBBBBBB..",
    ".BBBBBBBBBB.",
    "BBBBBBBBBBBB",
    "....BBBB....",
    "....BBBB....",
    "....BBBB....",
    "....BBBB....",
    "....BBBB....",
    "....BBBB....",
])))

HAPPY_FACE = _image([
    "...YYYYYY...",
    "..YYYYYYYY..",
    ".YYYYYYYYYY.",
    "YYY..YY..YYY",
    "YYY..YY..YYY",
    "YYYYYYYYYYYY",
    "YYYYYYYYYYYY",
    "YY.YYYYYY.YY",
    "YYY.YYYY.YYY",
    ".YYY....YYY.",
    "..YYYYYYYY..",
    "...YYYYYY...",
])

SAD_FACE = _image([
    "...YYYYYY...",
    "..YYYYYYYY..",
    ".YYYYYYYYYY.",
    "YYY..YY..YYY",
    "YYY..YY..YYY",
    "YYYYYYYYYYYY",
    "YYYYYYYYYYYY",
    "YYY.YYYY.YYY",
    "YY.YYYYYY.YY",
    ".YYY....YYY.",
    "..YYYYYYYY..",
    "...YYYYYY...",
])

# puzzle id -> (image A, label A, image B, label B, fallback name)
SAMPLE_PAIRS = {
    "generated-xo": (X_PATTERN, "X Pattern", O_PATTERN, "O Pattern", "X ↔ O"),
    "generated-arrow": (UP_ARROW, "Up Arrow", DOWN_ARROW, "Down Arrow", "Arrow"),
    "generated-face": (HAPPY_FACE, "Happy Face", SAD_FACE, "Sad Face", "Face"),
}


@dataclass
class PuzzleBuild:
    """Outcome of generating one puzzle: the puzzle, or its empty fallback plus the error."""

    puzzle: PuzzleDefinition
    similarity: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def build_puzzle(puzzle_id: str, image_a, label_a: str, image_b, label_b: str,
                 fallback_name: Optional[str] = None, grid_size: int = DEFAULT_GRID_SIZE) -> PuzzleBuild:
    """Generate one puzzle; on failure return the empty puzzle with the error attached."""
    try:
        match = match_images(image_a, image_b, grid_size)
        puzzle = create_puzzle_from_match(match, label_a, label_b, puzzle_id).validate()
    except Exception as exc:
        logger.error("Failed to generate puzzle %s: %s", puzzle_id, exc)
        fallback = empty_puzzle(puzzle_id, fallback_name or f"{label_a} ↔ {label_b}",
                                label_a, label_b, grid_size)
        return PuzzleBuild(puzzle=fallback, error=str(exc))
    logger.info("%s puzzle - average similarity: %.1f%%", puzzle.name, match.total_similarity * 100)
    return PuzzleBuild(puzzle=puzzle, similarity=match.total_similarity)


def build_sample_puzzles(grid_size: int = DEFAULT_GRID_SIZE) -> Dict[str, PuzzleBuild]:
    """Generate every built-in pairing; called once by the application at startup."""
    return {
        puzzle_id: build_puzzle(puzzle_id, image_a, label_a, image_b, label_b, fallback, grid_size)
        for puzzle_id, (image_a, label_a, image_b, label_b, fallback) in SAMPLE_PAIRS.items()
    }
