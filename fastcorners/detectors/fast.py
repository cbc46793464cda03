"""
FAST corner detector.

Features from Accelerated Segment Test: a pixel is a corner when a long
enough arc of the 16-pixel ring around it is uniformly darker or brighter
than the pixel itself.  See Rosten & Drummond, "Machine learning for
high-speed corner detection" (ECCV 2006).

The detector scans every pixel that keeps a 3-pixel margin to the border in
row-major order, optionally discards obvious non-corners with the 4-point
high-speed test, confirms the rest with the full arc test and finally runs
non-maximal suppression over the whole list.  Each step is evaluated on
numpy arrays for a band of rows at a time; the result is the same as a
pixel-by-pixel raster loop.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

import numpy as np

from fastcorners.config import DetectorConfig
from fastcorners.detectors.pruning import high_speed_test
from fastcorners.detectors.ring import (
    COMPASS_OFFSETS,
    MARGIN,
    classify,
    ring_support,
    ring_values,
)
from fastcorners.detectors.scoring import corner_score
from fastcorners.detectors.segment import segment_test
from fastcorners.errors import ImageTooSmall, InvalidParameter
from fastcorners.suppression.nms import non_maximal_suppression
from fastcorners.utils.image_io import as_intensity_array, image_size

logger = logging.getLogger(__name__)

MIN_IMAGE_SIZE = 2 * MARGIN + 1

# upper bound on centre pixels evaluated per band, bounds temporary arrays
BAND_PIXELS = 1 << 18


class Keypoint(NamedTuple):
    """Integer pixel coordinate of a detected corner."""

    x: int
    y: int


class FastDetector:
    """FAST corner detector with a fixed configuration.

    Parameters
    ----------
    config : DetectorConfig, optional
        Detector settings, defaults to ``DetectorConfig()``.
    **overrides
        Individual settings (``threshold``, ``arc_length``, ...) applied on
        top of *config*.

    The detector holds no per-image state, so one instance can be shared
    between threads.
    """

    def __init__(self, config: DetectorConfig = None, **overrides):
        if config is None:
            config = DetectorConfig.from_dict(overrides)
        elif overrides:
            config = config.replace(**overrides)
        self._config = config

    @property
    def config(self) -> DetectorConfig:
        return self._config

    def __repr__(self):
        return f"{type(self).__name__}({self._config!r})"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect(self, image, features: list = None) -> list:
        """Detect corners in a grayscale image.

        Parameters
        ----------
        image : np.ndarray or IntensityImage
            H x W integer image, or an object exposing ``width()``,
            ``height()`` and ``intensity(col, row)``.
        features : list, optional
            Existing list to append the detections to.  Entries already in
            it are left untouched and take no part in suppression.

        Returns
        -------
        list of Keypoint
            *features* (or a new list) with the detections appended in scan
            order.

        Raises
        ------
        ImageTooSmall
            If the image is less than 7 pixels wide or high.
        InvalidImage
            If the image is not single-channel integer data.
        """
        pixels = self._prepare(image)
        found = self._scan(pixels)
        if self._config.enable_suppression:
            found = self._suppress(pixels, found)

        if features is None:
            return found
        features.extend(found)
        return features

    def candidates(self, image) -> list:
        """All pixels passing the segment test, before suppression."""
        return self._scan(self._prepare(image))

    def suppress(self, image, features) -> list:
        """Run non-maximal suppression on *features* detected in *image*."""
        return self._suppress(self._prepare(image), list(features))

    def scores(self, image, features) -> np.ndarray:
        """Corner score of every feature, as an int array."""
        return self._scores(self._prepare(image), features)

    def is_corner(self, image, x: int, y: int) -> bool:
        """Apply the high-speed and segment tests to a single pixel."""
        pixels = self._prepare(image)
        self._check_margin(pixels, x, y)
        return bool(self._evaluate(pixels, np.array([x]), np.array([y]))[0])

    def score(self, image, x: int, y: int) -> int:
        """Corner score of the pixel at (x, y)."""
        pixels = self._prepare(image)
        self._check_margin(pixels, x, y)
        return int(self._scores(pixels, [(x, y)])[0])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _prepare(image) -> np.ndarray:
        width, height = image_size(image)
        if width < MIN_IMAGE_SIZE or height < MIN_IMAGE_SIZE:
            raise ImageTooSmall(width, height, MIN_IMAGE_SIZE)
        # widened copy: the caller's buffer is never written and sums of
        # 8-bit values cannot wrap
        support = None if isinstance(image, np.ndarray) else ring_support(height, width)
        pixels = as_intensity_array(image, support=support)
        return np.array(pixels, dtype=np.int32)

    @staticmethod
    def _check_margin(pixels, x, y):
        height, width = pixels.shape
        if not (MARGIN <= x < width - MARGIN and MARGIN <= y < height - MARGIN):
            raise InvalidParameter(
                f"pixel ({x}, {y}) is closer than {MARGIN} pixels to the border "
                f"of a {width}x{height} image")

    def _evaluate(self, pixels, xs, ys) -> np.ndarray:
        """Boolean corner mask for the centre pixels (xs, ys)."""
        cfg = self._config
        centers = pixels[ys, xs][:, np.newaxis]
        keep = np.ones(xs.shape, dtype=bool)

        if cfg.uses_high_speed_test:
            compass = classify(centers, ring_values(pixels, xs, ys, COMPASS_OFFSETS),
                               cfg.threshold)
            keep = high_speed_test(compass)
            xs, ys, centers = xs[keep], ys[keep], centers[keep]

        tags = classify(centers, ring_values(pixels, xs, ys), cfg.threshold)
        keep[keep] = segment_test(tags, cfg.arc_length)
        return keep

    def _scan_band(self, pixels, row_offset: int = 0) -> list:
        """Scan every valid pixel of *pixels* in row-major order."""
        height, width = pixels.shape
        ys, xs = np.mgrid[MARGIN:height - MARGIN, MARGIN:width - MARGIN]
        xs, ys = xs.ravel(), ys.ravel()

        hits = self._evaluate(pixels, xs, ys)
        return [Keypoint(int(x), int(y) + row_offset)
                for x, y in zip(xs[hits], ys[hits])]

    def _scan(self, pixels) -> list:
        height, width = pixels.shape
        n_rows = height - 2 * MARGIN
        workers = self._config.workers
        rows_per_band = max(1, BAND_PIXELS // (width - 2 * MARGIN))
        bands = row_bands(n_rows, max(workers, math.ceil(n_rows / rows_per_band)))
        logger.debug("scanning %dx%d image in %d band(s)", width, height, len(bands))

        # each band sees its own rows plus the margin above and below
        def scan(band):
            start, stop = band
            return self._scan_band(pixels[start:stop + 2 * MARGIN], start)

        if workers == 1:
            found = [kp for band in bands for kp in scan(band)]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                found = [kp for part in pool.map(scan, bands) for kp in part]

        logger.debug("%d corner candidates", len(found))
        return found

    def _scores(self, pixels, features) -> np.ndarray:
        if len(features) == 0:
            return np.empty(0, dtype=np.int64)
        coords = np.asarray(features, dtype=np.intp).reshape(-1, 2)
        xs, ys = coords[:, 0], coords[:, 1]
        return np.asarray(corner_score(pixels[ys, xs], ring_values(pixels, xs, ys),
                                       self._config.threshold), dtype=np.int64)

    def _suppress(self, pixels, features) -> list:
        if len(features) < 2:
            return features
        survivors = non_maximal_suppression(features, self._scores(pixels, features))
        logger.debug("suppression: %d -> %d features", len(features), len(survivors))
        return survivors


def row_bands(n_rows: int, workers: int) -> list:
    """Split ``range(n_rows)`` into at most *workers* contiguous (start, stop) bands."""
    workers = max(1, min(workers, n_rows))
    edges = np.linspace(0, n_rows, workers + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def detect_fast(image, **options) -> list:
    """Detect FAST corners with a one-off detector.

    Parameters
    ----------
    image : np.ndarray
        H x W uint8 grayscale image.
    **options
        Any :class:`~fastcorners.config.DetectorConfig` field.

    Returns
    -------
    list of Keypoint
    """
    return FastDetector(**options).detect(image)


def keypoints_to_array(features) -> np.ndarray:
    """Convert keypoints to a 2 x N array of (row, col) coordinates."""
    if len(features) == 0:
        return np.empty((2, 0), dtype=int)
    coords = np.asarray(features, dtype=int).reshape(-1, 2)
    return coords[:, ::-1].T.copy()
