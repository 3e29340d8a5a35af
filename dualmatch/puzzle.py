"""
Puzzle definitions handed to the game layer.

Tile content is a closed set of types (flat colour, line paths, pixel grid,
double-sided pair). Code that needs to act on content registers one
implementation per type with functools.singledispatch, see content_to_dict
below and dualmatch.render.
"""
from dataclasses import dataclass
from functools import singledispatch
from math import isqrt
from typing import Any, Dict, Tuple, Union

EDGES = ("top", "right", "bottom", "left")
EDGE_POSITIONS = ("a", "b")  # a = 1/3 along the edge, b = 2/3


@dataclass(frozen=True)
class ColorContent:
    color: str


@dataclass(frozen=True)
class ConnectionPoint:
    edge: str
    position: str = "a"

    def __post_init__(self):
        if self.edge not in EDGES:
            raise ValueError(f"Unknown edge {self.edge!r}")
        if self.position not in EDGE_POSITIONS:
            raise ValueError(f"Unknown edge position {self.position!r}")


@dataclass(frozen=True)
class LinePath:
    start: ConnectionPoint
    end: ConnectionPoint
    style: str = "curved"


@dataclass(frozen=True)
class LineContent:
    paths: Tuple[LinePath, ...]


@dataclass(frozen=True)
class PixelContent:
    grid: Tuple[Tuple[str, ...], ...]

    @classmethod
    def from_grid(cls, grid) -> "PixelContent":
        return cls(tuple(tuple(row) for row in grid))


@dataclass(frozen=True)
class DoubleSidedContent:
    face_a: Union[ColorContent, PixelContent]
    face_b: Union[ColorContent, PixelContent]


TileContent = Union[ColorContent, LineContent, PixelContent, DoubleSidedContent]


@dataclass(frozen=True)
class PuzzleTile:
    id: str
    content: TileContent


@dataclass(frozen=True)
class PuzzleDefinition:
    id: str
    name: str
    grid_size: int
    tiles: Tuple[PuzzleTile, ...]
    solution_a: Tuple[str, ...]
    solution_b: Tuple[str, ...]
    image_a: str
    image_b: str
    requires_flip: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.tiles

    def tile_by_id(self, tile_id: str) -> PuzzleTile:
        for tile in self.tiles:
            if tile.id == tile_id:
                return tile
        raise KeyError(tile_id)

    def validate(self) -> "PuzzleDefinition":
        """Raise ValueError unless the tile count and both solutions are consistent."""
        ids = [t.id for t in self.tiles]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Puzzle {self.id}: duplicate tile ids")
        if len(ids) != self.grid_size ** 2:
            raise ValueError(f"Puzzle {self.id}: {len(ids)} tiles for grid size {self.grid_size}")
        for label, solution in (("A", self.solution_a), ("B", self.solution_b)):
            if sorted(solution) != sorted(ids):
                raise ValueError(f"Puzzle {self.id}: solution {label} is not a permutation of the tile ids")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "gridSize": self.grid_size,
            "tiles": [{"id": t.id, "content": content_to_dict(t.content)} for t in self.tiles],
            "solutionA": list(self.solution_a),
            "solutionB": list(self.solution_b),
            "imageA": self.image_a,
            "imageB": self.image_b,
            "requiresFlip": self.requires_flip,
        }


def empty_puzzle(puzzle_id: str, name: str, image_a: str = "", image_b: str = "",
                 grid_size: int = 3) -> PuzzleDefinition:
    # Degenerate stand-in used when generation fails
    return PuzzleDefinition(
        id=puzzle_id,
        name=name,
        grid_size=grid_size,
        tiles=(),
        solution_a=(),
        solution_b=(),
        image_a=image_a,
        image_b=image_b,
    )


def grid_size_for(tile_count: int) -> int:
    size = isqrt(tile_count)
    if size * size != tile_count:
        raise ValueError(f"{tile_count} tiles do not form a square grid")
    return size


@singledispatch
def content_to_dict(content) -> Dict[str, Any]:
    raise TypeError(f"Unsupported tile content: {type(content).__name__}")


@content_to_dict.register
def _(content: ColorContent):
    return {"type": "color", "color": content.color}


@content_to_dict.register
def _(content: LineContent):
    return {
        "type": "lines",
        "paths": [
            {
                "from": {"edge": p.start.edge, "position": p.start.position},
                "to": {"edge": p.end.edge, "position": p.end.position},
                "style": p.style,
            }
            for p in content.paths
        ],
    }


@content_to_dict.register
def _(content: PixelContent):
    return {"type": "pixels", "grid": [list(row) for row in content.grid]}


@content_to_dict.register
def _(content: DoubleSidedContent):
    return {
        "type": "double-sided",
        "faceA": content_to_dict(content.face_a),
        "faceB": content_to_dict(content.face_b),
    }
