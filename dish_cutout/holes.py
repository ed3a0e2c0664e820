from __future__ import annotations

import cv2
import numpy as np

from .config import CLOSE_RADIUS
from .masks import BinaryMask


def close_mask(mask: BinaryMask, radius: int = CLOSE_RADIUS) -> BinaryMask:
    """
    Exact morphological closing: max then min over a (2r+1)x(2r+1) square window.

    Samples outside the image are ignored (OpenCV's default morphology border).
    """
    r = int(radius)
    if r <= 0:
        return mask
    kernel = np.ones((2 * r + 1, 2 * r + 1), np.uint8)
    closed = cv2.morphologyEx(mask.data.copy(), cv2.MORPH_CLOSE, kernel)
    return BinaryMask(closed)


def exterior_background(fg: np.ndarray) -> np.ndarray:
    """
    Background pixels 4-connected to the image border through background only.

    Equivalent to a BFS flood seeded from every border pixel and blocked by foreground.
    """
    bg = (fg == 0).astype(np.uint8)
    if not bg.any():
        return np.zeros_like(bg, dtype=bool)

    _num_labels, labels = cv2.connectedComponents(bg, connectivity=4)
    rim = np.concatenate([labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]])
    rim_bg = np.concatenate([bg[0, :], bg[-1, :], bg[:, 0], bg[:, -1]]).astype(bool)
    seeds = np.unique(rim[rim_bg])
    return np.isin(labels, seeds) & bg.astype(bool)


def fill_holes(mask: BinaryMask, close_radius: int = CLOSE_RADIUS) -> BinaryMask:
    """
    Close small gaps, then reclassify enclosed background (holes) as foreground.

    Steps:
      1) closing with radius `close_radius` (2 by default)
      2) flood the background from the image border (4-connected)
      3) anything not reached becomes foreground
    """
    closed = close_mask(mask, close_radius).data
    reached = exterior_background(closed)
    filled = (closed == 1) | ~reached
    return BinaryMask(filled)
