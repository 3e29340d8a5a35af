"""Shared test fixtures."""

import numpy as np
import pytest

R = "#ff0000"
B = "#0000ff"
K = "#000000"
Y = "#ffff00"
G = "#00ff00"


@pytest.fixture
def top_red_blue():
    # Red/blue band on top, black below
    return [
        [R, R, B, B],
        [R, R, B, B],
        [K, K, K, K],
        [K, K, K, K],
    ]


@pytest.fixture
def bottom_red_blue():
    # Same band shifted to the bottom half
    return [
        [K, K, K, K],
        [K, K, K, K],
        [R, R, B, B],
        [R, R, B, B],
    ]


@pytest.fixture
def gradient_image():
    # 6x6 image with a distinct colour in every pixel
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(6, 6, 3), dtype=np.uint8)
