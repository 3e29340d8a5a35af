#!/usr/bin/env python3
# Generate a dual-solution puzzle from two image files

import argparse
import logging
import sys
import traceback
from pathlib import Path

from colorprep.imaging import load_color_grid
from colorprep.preprocess import METHODS, MATCH_PALETTE_SIZE, NormalizationOptions
from dualmatch.assembler import (
    DEFAULT_GRID_SIZE,
    analyze_match_quality,
    create_puzzle_from_match,
    match_images,
    match_images_with_normalization,
    save_match_outputs,
    save_puzzle_json,
)
from dualmatch.assignment import SOLVERS, get_solver
from dualmatch.puzzle import empty_puzzle


def parse_args(argv=None):
    # Parse command line arguments for puzzle generation
    parser = argparse.ArgumentParser(description="Generate a tile puzzle that solves to two images")
    parser.add_argument("--image_a", required=True, help="Image shown by solution A")
    parser.add_argument("--image_b", required=True, help="Image shown by solution B")
    parser.add_argument("--grid", type=int, default=DEFAULT_GRID_SIZE, help="Tiles per side")
    parser.add_argument("--pixels", type=int, default=12, help="Side length images are pixelated to")
    parser.add_argument("--normalize", choices=METHODS, default="none", help="Colour normalization")
    parser.add_argument("--palette_size", type=int, default=MATCH_PALETTE_SIZE, help="Shared palette size")
    parser.add_argument("--solver", choices=sorted(SOLVERS), default="greedy", help="Assignment solver")
    parser.add_argument("--label_a", default=None, help="Name of image A (default: file stem)")
    parser.add_argument("--label_b", default=None, help="Name of image B (default: file stem)")
    parser.add_argument("--id", default="generated-puzzle", help="Puzzle id")
    parser.add_argument("--analyze", action="store_true", help="Also compare normalization methods")
    parser.add_argument("--out_dir", default="generated_outputs", help="Output directory")
    parser.add_argument("--log_level", default="info", help="Logging level")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    path_a, path_b = Path(args.image_a), Path(args.image_b)
    label_a = args.label_a or path_a.stem
    label_b = args.label_b or path_b.stem
    out_dir = Path(args.out_dir) / args.id

    print("=" * 70)
    print(f"Dual puzzle: {label_a} <-> {label_b} ({args.grid}x{args.grid})")
    print("=" * 70)

    try:
        image_a = load_color_grid(path_a, args.pixels)
        image_b = load_color_grid(path_b, args.pixels)

        if args.analyze:
            quality = analyze_match_quality(image_a, image_b, args.grid)
            print(f"[INFO] raw={quality.raw_similarity:.3f} histogram={quality.histogram_similarity:.3f} "
                  f"palette={quality.palette_similarity:.3f} -> recommended: {quality.recommended_method}")

        solver = get_solver(args.solver)
        if args.normalize == "none":
            result = match_images(image_a, image_b, args.grid, solver)
        else:
            options = NormalizationOptions(method=args.normalize, palette_size=args.palette_size)
            result = match_images_with_normalization(image_a, image_b, args.grid, options, solver)

        puzzle = create_puzzle_from_match(result, label_a, label_b, args.id).validate()
        paths = save_match_outputs(result, puzzle, str(out_dir))
    except Exception as exc:
        print(f"[ERROR] Generation failed: {exc}")
        traceback.print_exc()
        fallback = empty_puzzle(args.id, f"{label_a} ↔ {label_b}", label_a, label_b, args.grid)
        print(f"[INFO] Wrote empty fallback puzzle -> {save_puzzle_json(fallback, str(out_dir))}")
        return 1

    print(f"[DONE] -> {paths['puzzle']} | mean similarity={result.total_similarity:.3f} "
          f"solver={args.solver} normalize={args.normalize}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
