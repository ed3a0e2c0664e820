from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from .config import (
    EDIT_SIZE_LANDSCAPE,
    EDIT_SIZE_PORTRAIT,
    EDIT_SIZE_SQUARE,
    SQUARE_ASPECT_MAX,
    SQUARE_ASPECT_MIN,
)


def resolve_edit_size(width: int, height: int) -> Tuple[int, int]:
    """
    Map any (W, H) onto one of the three allowed segmentation sizes.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {(width, height)}")
    ar = float(width) / float(height)
    if SQUARE_ASPECT_MIN <= ar <= SQUARE_ASPECT_MAX:
        return EDIT_SIZE_SQUARE
    if ar < 1.0:
        return EDIT_SIZE_PORTRAIT
    return EDIT_SIZE_LANDSCAPE


def fit_cover(img: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """
    Scale so the image covers (W, H), center-crop the overflow, resize to exactly (W, H).
    """
    tw, th = size
    ih, iw = img.shape[:2]
    if ih <= 0 or iw <= 0:
        raise ValueError(f"Invalid image size: {(iw, ih)}")
    if (iw, ih) == (tw, th):
        return img.copy()

    scale = max(tw / float(iw), th / float(ih))
    sw = tw / scale
    sh = th / scale
    sx = max(0.0, (iw - sw) / 2.0)
    sy = max(0.0, (ih - sh) / 2.0)

    x0, y0 = int(round(sx)), int(round(sy))
    x1 = min(iw, x0 + max(1, int(round(sw))))
    y1 = min(ih, y0 + max(1, int(round(sh))))
    cropped = img[y0:y1, x0:x1]

    interp = cv2.INTER_AREA if scale < 1 else cv2.INTER_CUBIC
    return cv2.resize(cropped, (tw, th), interpolation=interp)


def prepare_source(img: np.ndarray) -> np.ndarray:
    """Fit a decoded photo into its allowed segmentation size."""
    h, w = img.shape[:2]
    return fit_cover(img, resolve_edit_size(w, h))
