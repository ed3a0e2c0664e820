from __future__ import annotations

import numpy as np

from dish_cutout.holes import close_mask, fill_holes
from dish_cutout.masks import BinaryMask


def _disk(h: int, w: int, cx: float, cy: float, r: float) -> np.ndarray:
    yy, xx = np.mgrid[0:h, 0:w]
    return ((xx - cx) ** 2 + (yy - cy) ** 2) <= r * r


def _ring(gap: slice | None = None) -> BinaryMask:
    m = np.zeros((100, 100), dtype=np.uint8)
    m[20:80, 20:80] = 1
    m[30:70, 30:70] = 0
    if gap is not None:
        m[20:30, gap] = 0
    return BinaryMask(m)


def test_enclosed_disk_hole_is_filled():
    disk = _disk(128, 128, 64, 64, 40)
    hole = _disk(128, 128, 64, 64, 10)
    mask = BinaryMask(disk & ~hole)

    filled = fill_holes(mask)

    assert filled.data[hole].all()
    assert not filled.data[~disk].any()
    assert np.array_equal(filled.data, disk.astype(np.uint8))


def test_narrow_gap_is_sealed_before_filling():
    filled = fill_holes(_ring(gap=slice(48, 51)))
    assert filled.data[50, 50] == 1
    assert filled.data[25, 49] == 1


def test_open_region_connected_to_border_stays_background():
    filled = fill_holes(_ring(gap=slice(40, 60)))
    assert filled.data[50, 50] == 0
    assert filled.data[25, 50] == 0
    assert filled.data[75, 75] == 1


def test_closing_radius_zero_is_identity():
    mask = _ring()
    assert close_mask(mask, 0) is mask


def test_output_is_pure_binary_and_fresh():
    mask = _ring()
    filled = fill_holes(mask)
    rgba = filled.to_rgba()
    assert set(np.unique(rgba[..., :3]).tolist()) <= {0, 255}
    assert (rgba[..., 3] == 255).all()
    # input untouched
    assert mask.data[50, 50] == 0


def test_all_foreground_and_all_background():
    full = fill_holes(BinaryMask(np.ones((16, 16), dtype=np.uint8)))
    empty = fill_holes(BinaryMask(np.zeros((16, 16), dtype=np.uint8)))
    assert full.area == 256
    assert empty.area == 0
