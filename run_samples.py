#!/usr/bin/env python3
# Build the built-in sample puzzles and write them out

import argparse
import logging
from pathlib import Path

from dualmatch.assembler import DEFAULT_GRID_SIZE, save_puzzle_json
from dualmatch.render import render_arrangement
from colorprep.imaging import save_rgb_image
from dualmatch.samples import build_sample_puzzles


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate the built-in sample puzzles")
    parser.add_argument("--out_dir", default="samples_outputs", help="Output directory")
    parser.add_argument("--grid", type=int, default=DEFAULT_GRID_SIZE, help="Tiles per side")
    parser.add_argument("--log_level", default="info", help="Logging level")
    return parser.parse_args(argv)


def run_samples(out_root: Path, grid_size: int):
    # Generate each sample; failures still produce the empty fallback puzzle
    builds = build_sample_puzzles(grid_size)
    for puzzle_id, build in builds.items():
        out_dir = out_root / puzzle_id
        save_puzzle_json(build.puzzle, str(out_dir))
        if not build.ok:
            print(f"[ERROR] {puzzle_id} failed: {build.error} (wrote empty fallback)")
            continue
        for label, solution in (("a", build.puzzle.solution_a), ("b", build.puzzle.solution_b)):
            save_rgb_image(render_arrangement(build.puzzle, solution), out_dir / f"solution_{label}.png")
        print(f"[DONE] {puzzle_id} -> {out_dir} | similarity={build.similarity * 100:.1f}%")
    return builds


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    print("[INFO] Building sample puzzles")
    builds = run_samples(Path(args.out_dir), args.grid)
    ok = sum(1 for b in builds.values() if b.ok)
    print(f"[INFO] {ok}/{len(builds)} sample puzzles generated")


if __name__ == "__main__":
    main()
