import numpy as np
import pytest

from fastcorners.config import DetectorConfig
from fastcorners.detectors import fast as fast_module
from fastcorners.detectors.fast import (
    FastDetector,
    Keypoint,
    detect_fast,
    keypoints_to_array,
    row_bands,
)
from fastcorners.detectors.ring import RING_OFFSETS
from fastcorners.errors import ImageTooSmall, InvalidImage, InvalidParameter
from fastcorners.utils.image_io import random_image


def ring_image(dark_positions=range(16), center=100, threshold=10, size=9):
    """Uniform image whose ring around (4, 4) is just below the threshold."""
    img = np.full((size, size), center, dtype=np.uint8)
    for k in dark_positions:
        dx, dy = RING_OFFSETS[k]
        img[4 + dy, 4 + dx] = center - threshold - 1
    return img


def reference_corners(img, threshold, arc_length):
    """Pixel-by-pixel raster scan, no pruning, no suppression."""
    h, w = img.shape
    found = []
    for y in range(3, h - 3):
        for x in range(3, w - 3):
            c = int(img[y, x])
            tags = []
            for dx, dy in RING_OFFSETS:
                n = int(img[y + dy, x + dx])
                if n + threshold < c:
                    tags.append("d")
                elif n - threshold > c:
                    tags.append("b")
                else:
                    tags.append("s")
            doubled = tags + tags[:arc_length - 1]
            if any(all(t == cls for t in doubled[s:s + arc_length])
                   for s in range(16) for cls in "db"):
                found.append((x, y))
    return found


class GridImage:
    """Minimal (col, row) intensity image that records every access."""

    def __init__(self, array):
        self._array = array
        self.reads = []

    def width(self):
        return self._array.shape[1]

    def height(self):
        return self._array.shape[0]

    def intensity(self, col, row):
        if not (0 <= col < self.width() and 0 <= row < self.height()):
            raise IndexError((col, row))
        self.reads.append((col, row))
        return int(self._array[row, col])


class TestSyntheticCorners:
    def test_full_dark_ring_is_detected(self):
        corners = FastDetector().detect(ring_image())
        assert (4, 4) in corners

    def test_eleven_non_contiguous_dark_pixels_rejected(self):
        img = ring_image([k for k in range(16) if k not in (0, 3, 6, 9, 12)])
        assert (4, 4) not in FastDetector().detect(img)
        assert (4, 4) not in FastDetector(enable_pruning=False).detect(img)

    def test_bright_arc_detected_with_shorter_arc_length(self):
        img = np.full((9, 9), 100, dtype=np.uint8)
        for dx, dy in RING_OFFSETS[:9]:
            img[4 + dy, 4 + dx] = 200
        assert (4, 4) in FastDetector(arc_length=9).detect(img)
        assert (4, 4) not in FastDetector(arc_length=12).detect(img)

    def test_single_pixel_helpers(self):
        det = FastDetector()
        img = ring_image()
        assert det.is_corner(img, 4, 4) is True
        assert det.is_corner(img, 3, 3) is False
        assert det.score(img, 4, 4) == 16
        with pytest.raises(InvalidParameter):
            det.is_corner(img, 2, 4)


class TestDetectProperties:
    @pytest.mark.parametrize("shape", [(7, 7), (9, 31), (40, 12)])
    @pytest.mark.parametrize("threshold, arc_length", [(0, 1), (0, 12), (10, 9), (255, 16)])
    def test_uniform_image_has_no_corners(self, shape, threshold, arc_length):
        img = np.full(shape, 77, dtype=np.uint8)
        det = FastDetector(threshold=threshold, arc_length=arc_length)
        assert det.detect(img) == []

    def test_deterministic(self):
        img = random_image(48, 40, seed=3)
        det = FastDetector(enable_suppression=False)
        assert det.detect(img) == det.detect(img)

    def test_returns_keypoints_in_raster_order(self):
        img = random_image(48, 40, seed=4)
        corners = FastDetector(enable_suppression=False, arc_length=9).detect(img)
        assert corners
        assert all(isinstance(kp, Keypoint) for kp in corners)
        assert corners == sorted(corners, key=lambda kp: (kp.y, kp.x))

    def test_coordinates_within_margin(self):
        img = random_image(30, 20, seed=5)
        for kp in FastDetector(arc_length=9, threshold=5).detect(img):
            assert 3 <= kp.x <= 30 - 4
            assert 3 <= kp.y <= 20 - 4

    @pytest.mark.parametrize("seed", range(3))
    def test_suppressed_corners_not_adjacent(self, seed):
        img = random_image(64, 64, seed=seed)
        det = FastDetector(threshold=5, arc_length=9)
        candidates = det.candidates(img)
        corners = det.detect(img)
        assert 0 < len(corners) < len(candidates)
        assert set(corners) <= set(candidates)
        for i, a in enumerate(corners):
            for b in corners[i + 1:]:
                assert max(abs(a.x - b.x), abs(a.y - b.y)) > 1

    @pytest.mark.parametrize("seed", range(4))
    def test_pruning_is_sound(self, seed):
        img = random_image(64, 64, seed=seed)
        pruned = FastDetector(enable_pruning=True, enable_suppression=False).detect(img)
        full = FastDetector(enable_pruning=False, enable_suppression=False).detect(img)
        assert set(pruned) <= set(full)
        assert pruned == full

    def test_image_not_modified(self):
        img = random_image(32, 32, seed=6)
        before = img.copy()
        FastDetector().detect(img)
        assert np.array_equal(img, before)


class TestMatchesReference:
    @pytest.mark.parametrize("threshold", [0, 10, 40])
    @pytest.mark.parametrize("arc_length", [1, 9, 12, 16])
    def test_candidates_match_raster_loop(self, threshold, arc_length):
        img = random_image(24, 20, seed=threshold + arc_length)
        expected = reference_corners(img, threshold, arc_length)
        for pruning in (False, True):
            det = FastDetector(threshold=threshold, arc_length=arc_length,
                               enable_pruning=pruning)
            assert det.candidates(img) == expected


class TestImageInputs:
    def test_too_small_raises_without_reading(self):
        grid = GridImage(np.zeros((6, 6), dtype=np.uint8))
        with pytest.raises(ImageTooSmall):
            FastDetector().detect(grid)
        assert grid.reads == []

    @pytest.mark.parametrize("shape", [(6, 6), (6, 20), (20, 6), (0, 0)])
    def test_too_small_array(self, shape):
        with pytest.raises(ImageTooSmall):
            FastDetector().detect(np.zeros(shape, dtype=np.uint8))

    def test_seven_by_seven_is_accepted(self):
        assert FastDetector().detect(np.zeros((7, 7), dtype=np.uint8)) == []

    def test_intensity_object_matches_array(self):
        img = random_image(20, 16, seed=7)
        grid = GridImage(img)
        det = FastDetector(arc_length=9)
        assert det.detect(grid) == det.detect(img)
        assert grid.reads

    def test_intensity_object_skips_pixels_outside_every_ring(self):
        grid = GridImage(random_image(9, 9, seed=3))
        FastDetector(arc_length=9).detect(grid)
        reads = set(grid.reads)
        assert len(grid.reads) == len(reads)
        for corner in [(0, 0), (1, 0), (0, 1), (8, 0), (0, 8), (8, 8), (7, 8), (8, 7)]:
            assert corner not in reads
        # rings of the valid centres reach every edge midpoint
        assert {(4, 0), (0, 4), (8, 4), (4, 8), (2, 1), (1, 2)} <= reads
        assert len(reads) == 81 - 4 * 3

    @pytest.mark.parametrize("values", [[300], [-50], [0, 256]])
    def test_out_of_range_integers_rejected(self, values):
        img = np.zeros((10, 10), dtype=np.int16)
        img.flat[:len(values)] = values
        with pytest.raises(InvalidImage):
            FastDetector().detect(img)

    def test_wide_integer_dtype_in_range_accepted(self):
        img = random_image(20, 20, seed=4)
        det = FastDetector(arc_length=9)
        assert det.detect(img.astype(np.int64)) == det.detect(img)

    def test_colour_image_rejected(self):
        with pytest.raises(InvalidImage):
            FastDetector().detect(np.zeros((10, 10, 3), dtype=np.uint8))

    def test_float_image_rejected(self):
        with pytest.raises(InvalidImage):
            FastDetector().detect(np.zeros((10, 10)))

    def test_unsupported_object_rejected(self):
        with pytest.raises(InvalidImage):
            FastDetector().detect("not an image")


class TestDetectorApi:
    def test_invalid_config(self):
        with pytest.raises(InvalidParameter):
            FastDetector(arc_length=0)
        with pytest.raises(InvalidParameter):
            FastDetector(arc_length=17)
        with pytest.raises(InvalidParameter):
            FastDetector(min_contig_neighbors=12)

    def test_overrides_on_top_of_config(self):
        base = DetectorConfig(threshold=30)
        det = FastDetector(base, enable_suppression=False)
        assert det.config.threshold == 30
        assert det.config.enable_suppression is False
        assert base.enable_suppression is True

    def test_appends_to_caller_list(self):
        img = random_image(40, 40, seed=8)
        det = FastDetector(arc_length=9)
        existing = [Keypoint(0, 0), "sentinel"]
        result = det.detect(img, existing)
        assert result is existing
        assert existing[:2] == [Keypoint(0, 0), "sentinel"]
        assert existing[2:] == det.detect(img)

    def test_workers_give_same_result(self):
        img = random_image(64, 50, seed=9)
        single = FastDetector(arc_length=9, workers=1).detect(img)
        assert FastDetector(arc_length=9, workers=4).detect(img) == single
        assert FastDetector(arc_length=9, workers=500).detect(img) == single

    @pytest.mark.parametrize("workers", [1, 3])
    def test_small_bands_give_same_result(self, monkeypatch, workers):
        img = random_image(40, 50, seed=10)
        expected = FastDetector(arc_length=9).detect(img)
        # one valid row of 34 centres per band
        monkeypatch.setattr(fast_module, "BAND_PIXELS", 34)
        assert FastDetector(arc_length=9, workers=workers).detect(img) == expected
        monkeypatch.setattr(fast_module, "BAND_PIXELS", 1)
        assert FastDetector(arc_length=9, workers=workers).detect(img) == expected

    def test_single_worker_scans_in_bands(self, monkeypatch):
        seen = []
        scan_band = FastDetector._scan_band

        def record(self, pixels, row_offset=0):
            seen.append((row_offset, pixels.shape[0]))
            return scan_band(self, pixels, row_offset)

        monkeypatch.setattr(fast_module, "BAND_PIXELS", 34 * 4)
        monkeypatch.setattr(FastDetector, "_scan_band", record)
        FastDetector(workers=1).detect(random_image(40, 50, seed=11))
        # 44 valid rows, at most 4 per band, each band padded by 6 rows
        assert len(seen) == 11
        assert [offset for offset, _ in seen] == list(range(0, 44, 4))
        assert all(rows == 4 + 6 for _, rows in seen)

    def test_scores(self):
        det = FastDetector()
        img = ring_image()
        assert det.scores(img, [(4, 4)]).tolist() == [16]
        assert det.scores(img, []).shape == (0,)

    def test_detect_fast(self):
        img = random_image(32, 32, seed=10)
        assert detect_fast(img, threshold=15) == FastDetector(threshold=15).detect(img)

    def test_repr_mentions_config(self):
        assert "threshold=10" in repr(FastDetector())


class TestHelpers:
    def test_keypoints_to_array(self):
        arr = keypoints_to_array([Keypoint(3, 5), Keypoint(7, 4)])
        assert arr.tolist() == [[5, 4], [3, 7]]
        assert keypoints_to_array([]).shape == (2, 0)

    def test_row_bands_cover_all_rows(self):
        for n_rows, workers in [(1, 1), (10, 3), (10, 10), (5, 50)]:
            bands = row_bands(n_rows, workers)
            assert bands[0][0] == 0 and bands[-1][1] == n_rows
            assert all(a[1] == b[0] for a, b in zip(bands, bands[1:]))
            assert len(bands) <= workers
