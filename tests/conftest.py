import numpy as np
import pytest
from PIL import Image


def make_image(rows):
    """Build an RGB image from a nested list of (r, g, b) rows."""
    return Image.fromarray(np.array(rows, dtype=np.uint8), 'RGB')


def pixels_of(image):
    return [tuple(int(c) for c in px) for px in np.array(image.convert('RGB')).reshape(-1, 3)]


@pytest.fixture
def gradient_image():
    rng = np.random.default_rng(7)
    arr = rng.integers(0, 256, size=(9, 13, 3), dtype=np.uint8)
    return Image.fromarray(arr, 'RGB')
