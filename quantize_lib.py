"""
A Python library of pixel-quantization operations: binary thresholding,
nearest-color mapping onto a fixed 8-color palette, random dithering and
ordered (Bayer) dithering. Every operation collapses an RGB image to a
handful of colors and keeps its dimensions.
Use this as a standalone library or import it from the CLI.
"""

import numpy as np
from enum import Enum
from typing import Optional, Sequence, Tuple, Union
from PIL import Image

# -------------------- Enumerations & Constants --------------------

class QuantizeMode(Enum):
    MONOCHROME = "monochrome"
    PALETTE = "palette"
    DITHERING = "dithering"
    BAYER = "bayer"


Pixel = Tuple[int, int, int]

BLACK: Pixel = (0, 0, 0)
WHITE: Pixel = (255, 255, 255)

# Order matters: ties are resolved in favour of the earlier entry.
EIGHT_COLOR_PALETTE: Tuple[Pixel, ...] = (
    (0, 0, 0),
    (255, 255, 255),
    (255, 0, 0),
    (0, 255, 0),
    (0, 0, 255),
    (255, 255, 0),
    (255, 0, 255),
    (0, 255, 255),
)

DEFAULT_THRESHOLD = 0.5
DEFAULT_BAYER_ORDER = 1

# pixels matched per batch in nearest_palette_indices
MATCH_CHUNK_SIZE = 1 << 16


# -------------------- Bayer Matrix --------------------

def _bayer_levels(order: int) -> np.ndarray:
    if order == 0:
        return np.zeros((1, 1), dtype=np.int64)
    smaller = _bayer_levels(order - 1)
    base = smaller * 4
    return np.block([
        [base,     base + 2],
        [base + 3, base + 1],
    ])


def generate_bayer_matrix(order: int) -> np.ndarray:
    """
    Build a normalized Bayer threshold matrix of side 2**order.

    Each expansion step places four copies of the previous matrix (times 4)
    with the offsets +0 (top-left), +2 (top-right), +3 (bottom-left) and
    +1 (bottom-right). The integer levels of the finished matrix are divided
    by 4*S*S, S being the side of the previous order, so every value lies in
    [0, 1). Order 0 is the trivial [[0.0]].
    """
    if order < 0:
        raise ValueError(f"Bayer order must be non-negative, got {order}")
    levels = _bayer_levels(order)
    if order == 0:
        return levels.astype(np.float64)
    size = levels.shape[0] // 2
    return levels / float(size * size * 4)


# -------------------- Color Matching --------------------

def color_distance(c1: Sequence[int], c2: Sequence[int]) -> int:
    """Squared euclidean distance between two RGB colors."""
    r_diff = (int(c1[0]) - int(c2[0])) ** 2
    g_diff = (int(c1[1]) - int(c2[1])) ** 2
    b_diff = (int(c1[2]) - int(c2[2])) ** 2
    return r_diff + g_diff + b_diff


def find_closest_color(pixel: Sequence[int], palette: Sequence[Pixel]) -> Pixel:
    """
    Return the palette entry nearest to 'pixel'.
    The palette is scanned in order and only a strictly smaller distance
    replaces the current best, so the first of several equidistant colors wins.
    """
    if len(palette) == 0:
        raise ValueError("Palette must contain at least one color")
    closest_color = tuple(palette[0])
    smallest_distance = float("inf")
    for color in palette:
        distance = color_distance(pixel, color)
        if distance < smallest_distance:
            smallest_distance = distance
            closest_color = tuple(color)
    return closest_color


def nearest_palette_indices(pixels: np.ndarray, palette_arr: np.ndarray) -> np.ndarray:
    """
    Vectorized form of find_closest_color for an (N,3) pixel array.
    Pixels are matched in chunks of MATCH_CHUNK_SIZE, one palette entry at a
    time, so memory stays proportional to the chunk and not the image. A
    running best is only replaced on a strictly smaller distance.
    """
    palette = palette_arr.astype(np.int32)
    indices = np.zeros(pixels.shape[0], dtype=np.intp)
    for start in range(0, pixels.shape[0], MATCH_CHUNK_SIZE):
        chunk = pixels[start:start + MATCH_CHUNK_SIZE].astype(np.int32)
        best_dist = np.full(chunk.shape[0], np.iinfo(np.int32).max, dtype=np.int32)
        best_idx = indices[start:start + MATCH_CHUNK_SIZE]
        for i, color in enumerate(palette):
            diff = chunk - color
            # at most 3 * 255**2, fits int32
            dist = (diff * diff).sum(axis=1, dtype=np.int32)
            closer = dist < best_dist
            best_dist[closer] = dist[closer]
            best_idx[closer] = i
    return indices


# -------------------- Brightness Helpers --------------------

def _integer_brightness(pixels: np.ndarray) -> np.ndarray:
    # channel mean truncated to an integer level, then scaled to [0,1]
    sums = pixels.astype(np.int32).sum(axis=1)
    return (sums // 3) / 255.0


def _float_brightness(pixels: np.ndarray) -> np.ndarray:
    return pixels.astype(np.float64).sum(axis=1) / (3.0 * 255.0)


def _black_or_white(is_white: np.ndarray) -> np.ndarray:
    return np.where(is_white[:, None],
                    np.array(WHITE, dtype=np.uint8),
                    np.array(BLACK, dtype=np.uint8)).astype(np.uint8)


# -------------------- Quantization Strategies --------------------

class BaseQuantizeStrategy:
    """
    Base class for quantization strategies.
    Each strategy must implement a .quantize(pixels, image_size) method
    that returns a uint8 array of shape (N,3), the same shape as 'pixels'.
    """
    def quantize(self, pixels: np.ndarray, image_size: Tuple[int,int]) -> np.ndarray:
        raise NotImplementedError


class MonochromeStrategy(BaseQuantizeStrategy):
    """
    Binary thresholding: a pixel becomes white when its brightness is
    strictly greater than the threshold, black otherwise.
    """
    def __init__(self, threshold: float = DEFAULT_THRESHOLD):
        self.threshold = threshold

    def quantize(self, pixels: np.ndarray, image_size: Tuple[int,int]) -> np.ndarray:
        brightness = _integer_brightness(pixels)
        # float64 on both sides; a level equal to the threshold stays black
        return _black_or_white(brightness > self.threshold)


class PaletteStrategy(BaseQuantizeStrategy):
    """
    No dithering at all; simply assign each pixel to its nearest palette color.
    """
    def __init__(self, palette: Sequence[Pixel] = EIGHT_COLOR_PALETTE):
        if len(palette) == 0:
            raise ValueError("Palette must contain at least one color")
        self.palette_arr = np.array(palette, dtype=np.uint8)

    def quantize(self, pixels: np.ndarray, image_size: Tuple[int,int]) -> np.ndarray:
        idx = nearest_palette_indices(pixels, self.palette_arr)
        return self.palette_arr[idx, :]


class RandomDitherStrategy(BaseQuantizeStrategy):
    """
    Random dithering: each pixel's brightness is compared against its own
    uniform draw in [0,1). Without a seed the output differs between runs.
    """
    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def quantize(self, pixels: np.ndarray, image_size: Tuple[int,int]) -> np.ndarray:
        brightness = _float_brightness(pixels)
        draws = self.rng.random(brightness.shape[0])
        return _black_or_white(brightness > draws)


class BayerDitherStrategy(BaseQuantizeStrategy):
    """
    Ordered dithering against a Bayer matrix tiled over the whole image.
    """
    def __init__(self, order: int = DEFAULT_BAYER_ORDER):
        self.order = order
        self.threshold_matrix = generate_bayer_matrix(order)

    def quantize(self, pixels: np.ndarray, image_size: Tuple[int,int]) -> np.ndarray:
        h, w = image_size
        # tile threshold matrix
        th_h, th_w = self.threshold_matrix.shape
        tiled = np.tile(self.threshold_matrix,
                        ((h + th_h - 1)//th_h, (w + th_w - 1)//th_w))
        flat_thresh = tiled[:h,:w].flatten()
        brightness = _integer_brightness(pixels)
        return _black_or_white(brightness > flat_thresh)


# -------------------- Image Quantizer --------------------

class ImageQuantizer:
    """
    Runs one quantization mode over a whole image.
    """
    def __init__(self,
                 mode: Union[QuantizeMode, str],
                 threshold: float = DEFAULT_THRESHOLD,
                 seed: Optional[int] = None):
        # raises ValueError for an unknown operation name
        self.mode = QuantizeMode(mode)
        self.threshold = threshold
        self.seed = seed

    def _get_strategy(self, mode: QuantizeMode) -> BaseQuantizeStrategy:
        if mode == QuantizeMode.MONOCHROME:
            return MonochromeStrategy(self.threshold)
        elif mode == QuantizeMode.PALETTE:
            return PaletteStrategy(EIGHT_COLOR_PALETTE)
        elif mode == QuantizeMode.DITHERING:
            return RandomDitherStrategy(self.seed)
        elif mode == QuantizeMode.BAYER:
            return BayerDitherStrategy(DEFAULT_BAYER_ORDER)
        else:
            raise ValueError(f"Unrecognized QuantizeMode: {mode}")

    def apply_quantization(self, image: Image.Image) -> Image.Image:
        arr = np.array(image.convert('RGB'), dtype=np.uint8)
        h, w, _ = arr.shape
        flat_pixels = arr.reshape((-1, 3))

        strategy = self._get_strategy(self.mode)
        out_flat = strategy.quantize(flat_pixels, (h, w))
        return Image.fromarray(out_flat.reshape((h, w, 3)).astype(np.uint8), 'RGB')
