"""Tests for dualmatch.assembler: blending, matching and output writing."""

import json
from pathlib import Path

import numpy as np
import pytest

from colorprep.colors import array_to_grid
from colorprep.preprocess import NormalizationOptions
from dualmatch.assembler import (
    BLEND_THRESHOLD,
    analyze_match_quality,
    blend_tiles,
    create_puzzle_from_match,
    match_images,
    match_images_with_normalization,
    match_report,
    save_match_outputs,
)
from dualmatch.assignment import HungarianSolver, is_permutation
from dualmatch.puzzle import PixelContent
from conftest import B, G, K, R, Y


def _random_image(seed, size=12):
    return np.random.default_rng(seed).integers(0, 256, size=(size, size, 3), dtype=np.uint8)


class TestBlend:
    def test_even_blend_rounds_half_up(self):
        assert array_to_grid(blend_tiles([[R]], [[B]])) == [["#800080"]]

    def test_weights(self):
        assert array_to_grid(blend_tiles([[R]], [[B]], 1.0)) == [[R]]
        assert array_to_grid(blend_tiles([[R]], [[B]], 0.0)) == [[B]]
        assert array_to_grid(blend_tiles([["#000000"]], [["#ffffff"]], 0.25)) == [["#bfbfbf"]]

    def test_clamped(self):
        assert array_to_grid(blend_tiles([["#ffffff"]], [["#000000"]], 1.5)) == [["#ffffff"]]

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError):
            blend_tiles([[R, R]], [[R]])


class TestMatchImages:
    def test_shifted_bands(self, top_red_blue, bottom_red_blue):
        result = match_images(top_red_blue, bottom_red_blue, 2)
        assert len(result.tiles) == 4
        assert result.assignment == [2, 3, 0, 1]
        assert result.solution_a == [0, 1, 2, 3]
        assert result.solution_b == [2, 3, 0, 1]
        assert result.total_similarity == pytest.approx(1.0)
        assert sorted(result.solution_b) == [0, 1, 2, 3]

    def test_solution_b_places_tiles_where_b_expects_them(self, top_red_blue, bottom_red_blue):
        result = match_images(top_red_blue, bottom_red_blue, 2)
        # Laying tiles out in solution-B order rebuilds image B
        rebuilt = [array_to_grid(result.tiles[i]) for i in result.solution_b]
        expected = [[[K, K], [K, K]], [[K, K], [K, K]], [[R, R], [R, R]], [[B, B], [B, B]]]
        assert rebuilt == expected

    def test_identical_images(self):
        image = _random_image(1)
        result = match_images(image, image, 3)
        assert np.all(np.diag(result.similarity_matrix) == 1.0)
        assert result.assignment == list(range(9))
        assert result.solution_b == list(range(9))
        assert all(m.similarity == 1.0 for m in result.match_details)
        assert result.total_similarity == 1.0

    @pytest.mark.parametrize("seed", range(5))
    @pytest.mark.parametrize("grid", [2, 3, 4])
    def test_solutions_are_permutations(self, seed, grid):
        result = match_images(_random_image(seed), _random_image(seed + 100), grid)
        n = grid * grid
        assert is_permutation(result.solution_a, n)
        assert is_permutation(result.solution_b, n)
        assert 0.0 <= result.total_similarity <= 1.0

    def test_low_similarity_tiles_are_blended(self):
        result = match_images([[R]], [[B]], 1)
        assert result.match_details[0].similarity <= BLEND_THRESHOLD
        assert array_to_grid(result.tiles[0]) == [["#800080"]]

    def test_different_tile_sizes_keep_image_a_tiles(self):
        a = [[R] * 4 for _ in range(4)]
        b = [[B] * 6 for _ in range(6)]
        result = match_images(a, b, 2)
        assert np.all(result.similarity_matrix == 0.0)
        assert is_permutation(result.solution_b, 4)
        for tile, match in zip(result.tiles, result.match_details):
            assert tile.shape == (2, 2, 3)
            assert array_to_grid(tile) == [[R, R], [R, R]]
            assert match.blended is False
        assert not any(m["blended"] for m in match_report(result)["matches"])

    def test_high_similarity_tiles_use_image_a(self):
        result = match_images([["#ff0000"]], [["#fe0000"]], 1)
        assert result.match_details[0].similarity > BLEND_THRESHOLD
        assert array_to_grid(result.tiles[0]) == [["#ff0000"]]

    def test_total_is_mean_of_matched_scores(self):
        result = match_images(_random_image(3), _random_image(4), 3)
        mean = np.mean([result.similarity_matrix[i, j] for i, j in enumerate(result.assignment)])
        assert result.total_similarity == pytest.approx(mean)

    def test_exact_solver_never_scores_lower(self):
        a, b = _random_image(8), _random_image(9)
        greedy = match_images(a, b, 3)
        exact = match_images(a, b, 3, HungarianSolver())
        assert exact.total_similarity >= greedy.total_similarity - 1e-12

    def test_inputs_not_mutated(self):
        a, b = _random_image(5), _random_image(6)
        a0, b0 = a.copy(), b.copy()
        match_images_with_normalization(a, b, 3, NormalizationOptions("luminance"))
        assert np.array_equal(a, a0) and np.array_equal(b, b0)

    def test_invalid_grid_raises(self, top_red_blue):
        with pytest.raises(ValueError):
            match_images(top_red_blue, top_red_blue, 0)


class TestNormalizedMatching:
    yellow_top = [[Y] * 4, [Y] * 4, [K] * 4, [K] * 4]
    green_bottom = [[K] * 4, [K] * 4, [G] * 4, [G] * 4]

    def test_palette(self):
        result = match_images_with_normalization(self.yellow_top, self.green_bottom, 2,
                                                 NormalizationOptions("palette", 4))
        assert len(result.tiles) == 4
        assert is_permutation(result.solution_b, 4)

    def test_histogram(self):
        result = match_images_with_normalization(self.yellow_top, self.green_bottom, 2,
                                                 NormalizationOptions("histogram"))
        assert len(result.tiles) == 4
        assert result.total_similarity > 0

    def test_luminance(self):
        result = match_images_with_normalization(self.yellow_top, self.green_bottom, 2,
                                                 NormalizationOptions("luminance"))
        assert len(result.tiles) == 4
        assert result.total_similarity > 0

    def test_default_is_palette(self):
        result = match_images_with_normalization(self.yellow_top, self.green_bottom, 2)
        assert is_permutation(result.solution_b, 4)


class TestAnalyzeQuality:
    def test_reports_all_methods(self):
        image_a = [[R] * 6, [R] * 6, [B] * 6, [B] * 6, [K] * 6, [K] * 6]
        image_b = [[K] * 6, [K] * 6, [R] * 6, [R] * 6, [B] * 6, [B] * 6]
        quality = analyze_match_quality(image_a, image_b)
        assert quality.raw_similarity > 0
        assert quality.histogram_similarity > 0
        assert quality.palette_similarity > 0
        assert quality.recommended_method in ("none", "histogram", "palette")

    def test_ties_keep_first_method(self):
        image = [[R] * 6, [R] * 6, [B] * 6, [B] * 6, [K] * 6, [K] * 6]
        quality = analyze_match_quality(image, image)
        assert quality.raw_similarity == quality.histogram_similarity == quality.palette_similarity == 1.0
        assert quality.recommended_method == "none"

    def test_to_dict(self):
        image = _random_image(2, 6)
        d = analyze_match_quality(image, image).to_dict()
        assert set(d) == {"rawSimilarity", "histogramSimilarity", "paletteSimilarity", "recommendedMethod"}


class TestCreatePuzzle:
    def test_definition(self, top_red_blue, bottom_red_blue):
        result = match_images(top_red_blue, bottom_red_blue, 2)
        puzzle = create_puzzle_from_match(result, "Top", "Bottom", "bands")
        assert puzzle.id == "bands"
        assert puzzle.name == "Top ↔ Bottom"
        assert puzzle.grid_size == 2
        assert [t.id for t in puzzle.tiles] == ["t0", "t1", "t2", "t3"]
        assert puzzle.solution_a == ("t0", "t1", "t2", "t3")
        assert puzzle.solution_b == ("t2", "t3", "t0", "t1")
        assert puzzle.image_a == "Top" and puzzle.image_b == "Bottom"
        assert isinstance(puzzle.tiles[0].content, PixelContent)
        assert puzzle.tiles[0].content.grid == ((R, R), (R, R))
        puzzle.validate()

    def test_default_id(self, top_red_blue):
        puzzle = create_puzzle_from_match(match_images(top_red_blue, top_red_blue, 2), "A", "B")
        assert puzzle.id == "generated-puzzle"


class TestOutputs:
    def test_save_match_outputs(self, tmp_path, top_red_blue, bottom_red_blue):
        result = match_images(top_red_blue, bottom_red_blue, 2)
        puzzle = create_puzzle_from_match(result, "Top", "Bottom", "bands")
        paths = save_match_outputs(result, puzzle, str(tmp_path), tile_px=8)
        for key in ("puzzle", "report", "solution_a", "solution_b", "heatmap"):
            assert Path(paths[key]).exists()
        saved = json.loads((tmp_path / "puzzle.json").read_text(encoding="utf-8"))
        assert saved["solutionB"] == ["t2", "t3", "t0", "t1"]
        assert saved["tiles"][0]["content"]["type"] == "pixels"
        report = json.loads((tmp_path / "match_report.json").read_text())
        assert report["assignment"] == [2, 3, 0, 1]

    def test_match_report_flags_blended_tiles(self):
        report = match_report(match_images([[R]], [[B]], 1))
        assert report["matches"][0]["blended"] is True
