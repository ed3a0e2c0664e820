from __future__ import annotations

import cv2
import numpy as np

from .config import EDGE_EPS
from .masks import luma


def _zero_border(a: np.ndarray) -> np.ndarray:
    a[0, :] = 0.0
    a[-1, :] = 0.0
    a[:, 0] = 0.0
    a[:, -1] = 0.0
    return a


def normalize01(a: np.ndarray) -> np.ndarray:
    """Divide by the global max; arrays with max <= 1e-6 are returned as-is."""
    mx = float(a.max()) if a.size else 0.0
    if mx <= EDGE_EPS:
        return a
    return a / np.float32(mx)


def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
    """
    3x3 Sobel gradient magnitude on interior pixels; the outer ring is fixed at 0.
    """
    g = gray.astype(np.float32, copy=False)
    out = np.zeros_like(g, dtype=np.float32)
    if g.shape[0] < 3 or g.shape[1] < 3:
        return out
    gx = cv2.Sobel(g, cv2.CV_32F, 1, 0, ksize=3)
    gy = cv2.Sobel(g, cv2.CV_32F, 0, 1, ksize=3)
    out[1:-1, 1:-1] = np.hypot(gx[1:-1, 1:-1], gy[1:-1, 1:-1])
    return out


def box_blur3(a: np.ndarray) -> np.ndarray:
    """3x3 mean on interior pixels; the outer ring is fixed at 0."""
    if a.shape[0] < 3 or a.shape[1] < 3:
        return np.zeros_like(a, dtype=np.float32)
    blurred = cv2.blur(a.astype(np.float32, copy=False), (3, 3), borderType=cv2.BORDER_CONSTANT)
    return _zero_border(blurred)


def extract_edges(source: np.ndarray) -> np.ndarray:
    """
    Normalized edge-strength map of a source raster.

    Output:
      - float32 (H, W) in [0,1]
      - zeros for flat images (no division by zero)
    """
    edges = normalize01(sobel_magnitude(luma(source)))
    edges = normalize01(box_blur3(edges))
    return np.clip(edges, 0.0, 1.0).astype(np.float32, copy=False)
