import tracemalloc

import numpy as np
import pytest

import quantize_lib
from quantize_lib import (
    EIGHT_COLOR_PALETTE,
    color_distance,
    find_closest_color,
    nearest_palette_indices,
)


def test_color_distance_squares_signed_differences():
    assert color_distance((128, 0, 0), (255, 0, 0)) == 127 ** 2
    assert color_distance((128, 0, 0), (0, 0, 0)) == 128 ** 2
    assert color_distance((0, 10, 20), (3, 6, 20)) == 9 + 16


def test_color_distance_symmetric_and_zero_on_equal():
    a, b = (12, 200, 34), (250, 1, 99)

    assert color_distance(a, b) == color_distance(b, a)
    assert color_distance(a, a) == 0
    assert color_distance(a, b) > 0


def test_color_distance_accepts_uint8_arrays():
    a = np.array([0, 0, 0], dtype=np.uint8)
    b = np.array([255, 255, 255], dtype=np.uint8)

    assert color_distance(a, b) == 3 * 255 ** 2


def test_dark_red_maps_to_red():
    assert find_closest_color((128, 0, 0), EIGHT_COLOR_PALETTE) == (255, 0, 0)


def test_tie_goes_to_earlier_palette_entry():
    pixel = (100, 100, 100)
    palette = [(90, 100, 100), (110, 100, 100)]

    assert find_closest_color(pixel, palette) == (90, 100, 100)
    assert find_closest_color(pixel, list(reversed(palette))) == (110, 100, 100)


def test_empty_palette_rejected():
    with pytest.raises(ValueError):
        find_closest_color((1, 2, 3), [])


def test_vectorized_matches_scalar_scan():
    rng = np.random.default_rng(3)
    pixels = rng.integers(0, 256, size=(500, 3), dtype=np.uint8)
    palette_arr = np.array(EIGHT_COLOR_PALETTE, dtype=np.uint8)

    idx = nearest_palette_indices(pixels, palette_arr)

    for pixel, i in zip(pixels, idx):
        assert EIGHT_COLOR_PALETTE[i] == find_closest_color(pixel, EIGHT_COLOR_PALETTE)


def test_vectorized_tie_goes_to_earlier_entry():
    pixels = np.array([[100, 100, 100]], dtype=np.uint8)
    palette_arr = np.array([(90, 100, 100), (110, 100, 100)], dtype=np.uint8)

    assert nearest_palette_indices(pixels, palette_arr).tolist() == [0]


def test_vectorized_matches_scalar_across_chunk_boundaries(monkeypatch):
    monkeypatch.setattr(quantize_lib, "MATCH_CHUNK_SIZE", 7)
    rng = np.random.default_rng(11)
    pixels = rng.integers(0, 256, size=(50, 3), dtype=np.uint8)
    palette_arr = np.array(EIGHT_COLOR_PALETTE, dtype=np.uint8)

    idx = nearest_palette_indices(pixels, palette_arr)

    expected = [EIGHT_COLOR_PALETTE.index(find_closest_color(p, EIGHT_COLOR_PALETTE)) for p in pixels]
    assert idx.tolist() == expected


def test_vectorized_memory_stays_bounded():
    pixels = np.zeros((1_000_000, 3), dtype=np.uint8)
    palette_arr = np.array(EIGHT_COLOR_PALETTE, dtype=np.uint8)

    tracemalloc.start()
    try:
        idx = nearest_palette_indices(pixels, palette_arr)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    assert idx.shape == (1_000_000,)
    assert not idx.any()
    # the index array itself is 8 MB; no per-palette-entry copy of the image
    assert peak < 50e6
