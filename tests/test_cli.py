"""End-to-end tests for the run scripts."""

import json

import cv2
import numpy as np

import run_generate
import run_samples


def _write_image(path, top_color, bottom_color):
    img = np.zeros((24, 24, 3), dtype=np.uint8)
    img[:12] = top_color
    img[12:] = bottom_color
    cv2.imwrite(str(path), img)
    return path


class TestRunGenerate:
    def test_generates_outputs(self, tmp_path):
        a = _write_image(tmp_path / "a.png", (0, 0, 255), (0, 0, 0))
        b = _write_image(tmp_path / "b.png", (0, 0, 0), (0, 0, 255))
        out_dir = tmp_path / "out"
        code = run_generate.main([
            "--image_a", str(a), "--image_b", str(b), "--grid", "2", "--pixels", "8",
            "--id", "bands", "--out_dir", str(out_dir), "--analyze",
        ])
        assert code == 0
        puzzle = json.loads((out_dir / "bands" / "puzzle.json").read_text(encoding="utf-8"))
        assert puzzle["name"] == "a ↔ b"
        assert sorted(puzzle["solutionA"]) == sorted(puzzle["solutionB"]) == ["t0", "t1", "t2", "t3"]
        for name in ("solution_a.png", "solution_b.png", "similarity_heatmap.png", "match_report.json"):
            assert (out_dir / "bands" / name).exists()

    def test_normalization_and_exact_solver(self, tmp_path):
        a = _write_image(tmp_path / "a.png", (0, 0, 255), (0, 0, 0))
        b = _write_image(tmp_path / "b.png", (255, 0, 0), (40, 40, 40))
        code = run_generate.main([
            "--image_a", str(a), "--image_b", str(b), "--grid", "2", "--pixels", "8",
            "--normalize", "palette", "--palette_size", "4", "--solver", "hungarian",
            "--out_dir", str(tmp_path / "out"),
        ])
        assert code == 0

    def test_failure_writes_empty_puzzle(self, tmp_path):
        a = _write_image(tmp_path / "a.png", (0, 0, 255), (0, 0, 0))
        code = run_generate.main([
            "--image_a", str(a), "--image_b", str(tmp_path / "missing.png"),
            "--id", "broken", "--out_dir", str(tmp_path / "out"),
        ])
        assert code == 1
        puzzle = json.loads((tmp_path / "out" / "broken" / "puzzle.json").read_text(encoding="utf-8"))
        assert puzzle["tiles"] == [] and puzzle["solutionA"] == [] and puzzle["solutionB"] == []


    def test_unexpected_error_writes_empty_puzzle(self, tmp_path, monkeypatch):
        a = _write_image(tmp_path / "a.png", (0, 0, 255), (0, 0, 0))

        def broken_match(*args, **kwargs):
            raise KeyError("tile")

        monkeypatch.setattr(run_generate, "match_images", broken_match)
        code = run_generate.main([
            "--image_a", str(a), "--image_b", str(a), "--grid", "2", "--pixels", "8",
            "--id", "keyerror", "--out_dir", str(tmp_path / "out"),
        ])
        assert code == 1
        puzzle = json.loads((tmp_path / "out" / "keyerror" / "puzzle.json").read_text(encoding="utf-8"))
        assert puzzle["tiles"] == []


class TestRunSamples:
    def test_writes_samples(self, tmp_path):
        builds = run_samples.run_samples(tmp_path, 3)
        assert all(b.ok for b in builds.values())
        for puzzle_id in builds:
            assert (tmp_path / puzzle_id / "puzzle.json").exists()
            assert (tmp_path / puzzle_id / "solution_b.png").exists()
