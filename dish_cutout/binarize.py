from __future__ import annotations

import numpy as np

from .config import BINARIZE_THRESHOLD, DILATE_THRESHOLD
from .errors import InvalidInputDimensions
from .masks import BinaryMask, gaussian_blur


def binarize_mask(raw: np.ndarray, size: tuple[int, int], dilate_px: float = 0) -> BinaryMask:
    """
    Clean a raw (possibly gray / antialiased) mask into a pure foreground mask.

    Steps:
      1) luma > 128 -> foreground
      2) optional dilation: blur(dilate_px) then re-threshold low (> 16 of 255)

    `size` is the expected (W, H) of the run.
    """
    h, w = raw.shape[:2]
    if (w, h) != tuple(size):
        raise InvalidInputDimensions(tuple(size), (w, h), what="raw mask")

    mask = BinaryMask.from_luma(raw, BINARIZE_THRESHOLD)
    if dilate_px <= 0:
        return mask
    return dilate_mask(mask, dilate_px)


def dilate_mask(mask: BinaryMask, px: float) -> BinaryMask:
    """
    Grow the white region by roughly `px` using the blur + low threshold trick.
    """
    if px <= 0:
        return mask
    blurred = gaussian_blur(mask.to_gray(), px)
    return BinaryMask(blurred > float(DILATE_THRESHOLD))
