"""
Image file helpers for the quantization tool: decoding to RGB and encoding
results with the format picked from the file extension.
"""

import os
from pathlib import Path
from typing import Optional, Union
from PIL import Image, UnidentifiedImageError

__all__ = [
    # Functions
    'load_rgb_image',
    'save_image',
    'describe_image',
    'ensure_rgb',
    # Exceptions
    'ImageCodecError',
]

PathLike = Union[str, os.PathLike]


class ImageCodecError(Exception):
    """Raised when an image cannot be decoded or encoded."""
    pass


def load_rgb_image(filepath: PathLike) -> Image.Image:
    """
    Decode an image file into an RGB image.

    Args:
        filepath: Path to any image format Pillow can read

    Returns:
        Image in RGB mode

    Raises:
        ImageCodecError: If the file is missing or cannot be decoded
    """
    try:
        with Image.open(filepath) as img:
            return ensure_rgb(img).copy()
    except FileNotFoundError:
        raise ImageCodecError(f"Input image not found: {filepath}")
    except UnidentifiedImageError:
        raise ImageCodecError(f"Unsupported or corrupt image: {filepath}")
    except Image.DecompressionBombError as e:
        # not an OSError subclass
        raise ImageCodecError(f"Image too large to decode {filepath}: {e}")
    except OSError as e:
        raise ImageCodecError(f"Failed to read image {filepath}: {e}")


def save_image(image: Image.Image, filepath: PathLike) -> Path:
    """
    Encode 'image' to 'filepath'. The output format follows the extension.

    Args:
        image: PIL Image to write
        filepath: Destination path, parent directories are created

    Returns:
        Path of the written file

    Raises:
        ImageCodecError: If the extension is unknown or writing fails
    """
    output_path = Path(filepath)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        image.save(output_path)
    except ValueError as e:
        # Pillow raises ValueError for an unknown file extension
        raise ImageCodecError(f"Cannot determine output format for {output_path}: {e}")
    except OSError as e:
        raise ImageCodecError(f"Failed to write image {output_path}: {e}")
    return output_path


def describe_image(filepath: PathLike) -> Optional[str]:
    """
    Short "FORMAT WxH MODE" summary read from the file header, for logging.
    Returns None if the file cannot be opened.
    """
    try:
        with Image.open(filepath) as img:
            return f"{img.format} {img.width}x{img.height} {img.mode}"
    except (OSError, Image.DecompressionBombError):
        return None


def ensure_rgb(image: Image.Image) -> Image.Image:
    """
    Ensure image is in RGB mode.
    """
    if image.mode != 'RGB':
        return image.convert('RGB')
    return image
