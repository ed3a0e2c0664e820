from __future__ import annotations

import numpy as np

from .config import RAMP_HIGH, RAMP_LOW
from .errors import InvalidInputDimensions
from .masks import luma


def alpha_ramp(mask_luma: np.ndarray, low: float = RAMP_LOW, high: float = RAMP_HIGH) -> np.ndarray:
    """
    Two-point linear levels: <= low -> 0, >= high -> 255, linear in between.
    """
    if high <= low:
        raise ValueError(f"Expected low < high, got low={low} high={high}")
    lum = mask_luma.astype(np.float32, copy=False)
    a = (lum - np.float32(low)) * np.float32(255.0) / np.float32(high - low)
    a = np.where(lum <= low, 0.0, np.where(lum >= high, 255.0, a))
    return np.clip(np.rint(a), 0, 255).astype(np.uint8)


def inject_alpha(rgb: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """
    RGBA uint8 from RGB(A) uint8 and an alpha uint8 plane. Source RGB is kept as-is.
    """
    if rgb.ndim != 3 or rgb.shape[2] not in (3, 4):
        raise ValueError(f"Expected RGB(A) image (H,W,3|4), got {rgb.shape}")
    if alpha.ndim != 2 or alpha.shape[:2] != rgb.shape[:2]:
        raise ValueError(f"Alpha shape {alpha.shape} does not match RGB {rgb.shape[:2]}")
    return np.dstack([rgb[..., :3].astype(np.uint8, copy=False), alpha.astype(np.uint8, copy=False)])


def make_cutout(
    source: np.ndarray,
    soft_mask: np.ndarray,
    low: float = RAMP_LOW,
    high: float = RAMP_HIGH,
) -> np.ndarray:
    """
    Write the soft mask into the source alpha channel.

    Output:
      - uint8 (H, W, 4), RGB copied from source, alpha from alpha_ramp(luma(soft_mask))
    """
    h, w = source.shape[:2]
    mh, mw = soft_mask.shape[:2]
    if (mw, mh) != (w, h):
        raise InvalidInputDimensions((w, h), (mw, mh), what="soft mask")
    return inject_alpha(source, alpha_ramp(luma(soft_mask), low=low, high=high))
