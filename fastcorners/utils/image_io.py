"""
Image I/O helpers.

Thin wrappers around PIL and scikit-image for loading images as 8-bit
grayscale, adapting foreign image objects to numpy, and managing output
directories for the pipeline.
"""

import os
from typing import Protocol

import numpy as np
from PIL import Image
from skimage.color import rgb2gray, rgba2rgb
from skimage.util import img_as_ubyte

from fastcorners.errors import InvalidImage


class IntensityImage(Protocol):
    """Any read-only grayscale image addressed by (column, row)."""

    def width(self) -> int: ...

    def height(self) -> int: ...

    def intensity(self, col: int, row: int) -> int: ...


def load_grayscale(path: str) -> np.ndarray:
    """Load an image file as an H x W uint8 grayscale array."""
    with Image.open(path) as img:
        if img.mode == "L":
            return np.array(img)
        return to_grayscale(np.array(img.convert("RGB")))


def to_grayscale(img: np.ndarray) -> np.ndarray:
    """Convert an RGB(A) or grayscale image to uint8 grayscale.

    Parameters
    ----------
    img : np.ndarray
        H x W, H x W x 3 or H x W x 4 image, uint8 or float in [0, 1].

    Returns
    -------
    np.ndarray
        H x W uint8 image.
    """
    if img.ndim == 3 and img.shape[2] == 4:
        img = rgba2rgb(img)
    if img.ndim == 3:
        # weights sum to 1 only up to float rounding
        img = np.clip(rgb2gray(img), 0.0, 1.0)
    return img_as_ubyte(img)


def random_image(width: int = 64, height: int = 64, seed=None) -> np.ndarray:
    """Uniform noise image, handy for smoke-testing the detector."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width), dtype=np.uint8)


def image_size(image):
    """Return ``(width, height)`` without reading any pixel.

    Parameters
    ----------
    image : np.ndarray or IntensityImage
        2-D array indexed ``[row, col]`` or an object with ``width()``,
        ``height()`` and ``intensity(col, row)``.
    """
    if isinstance(image, np.ndarray):
        if image.ndim != 2:
            raise InvalidImage(
                f"expected a single-channel 2-D image, got shape {image.shape}; "
                "convert colour images with to_grayscale()")
        return image.shape[1], image.shape[0]

    if all(callable(getattr(image, name, None))
           for name in ("width", "height", "intensity")):
        return int(image.width()), int(image.height())

    raise InvalidImage(f"unsupported image type: {type(image).__name__}")


def as_intensity_array(image, support=None) -> np.ndarray:
    """Return the image as a 2-D integer array indexed ``[row, col]``.

    Parameters
    ----------
    image : np.ndarray or IntensityImage
        Image to adapt.  numpy input is returned as-is (no copy) after its
        dtype and value range are checked.
    support : np.ndarray, optional
        H x W boolean mask of the pixels to read from an ``IntensityImage``.
        Pixels outside it are never passed to ``intensity(col, row)`` and
        come back as 0.  Defaults to every pixel.

    Raises
    ------
    InvalidImage
        For float data or integer values outside [0, 255].
    """
    width, height = image_size(image)

    if isinstance(image, np.ndarray):
        if not (np.issubdtype(image.dtype, np.integer) or image.dtype == bool):
            raise InvalidImage(
                f"expected integer intensities in [0, 255], got dtype {image.dtype}; "
                "convert float images with to_grayscale()")
        if image.size and image.dtype != np.uint8 and image.dtype != bool:
            low, high = int(image.min()), int(image.max())
            if low < 0 or high > 255:
                raise InvalidImage(
                    f"expected integer intensities in [0, 255], got values in "
                    f"[{low}, {high}]")
        return image

    pixels = np.zeros((height, width), dtype=np.int32)
    if support is None:
        support = np.ones((height, width), dtype=bool)
    for row, col in zip(*np.nonzero(support)):
        pixels[row, col] = image.intensity(int(col), int(row))
    return pixels


def ensure_output_dirs(scenes: list, base: str = "results") -> None:
    """Create output subdirectories for each scene name.

    Parameters
    ----------
    scenes : list of str
        Scene identifiers (one subdirectory is created per scene).
    base : str
        Root output directory.
    """
    for scene in scenes:
        os.makedirs(os.path.join(base, scene), exist_ok=True)
