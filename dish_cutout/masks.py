from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from .config import LUMA_WEIGHTS


def luma(img: np.ndarray) -> np.ndarray:
    """
    Perceptual brightness as float32 (H, W).

    Accepts (H, W) single-channel, (H, W, 3) RGB or (H, W, 4) RGBA; alpha is ignored.
    """
    if img.ndim == 2:
        return img.astype(np.float32)
    if img.ndim != 3 or img.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H,W), (H,W,3) or (H,W,4) raster, got shape={img.shape}")
    rgb = img[..., :3].astype(np.float32)
    wr, wg, wb = LUMA_WEIGHTS
    return rgb[..., 0] * wr + rgb[..., 1] * wg + rgb[..., 2] * wb


def gaussian_blur(img: np.ndarray, radius: float) -> np.ndarray:
    """
    Canvas-style `blur(radius px)`: Gaussian with standard deviation == radius.
    """
    f = img.astype(np.float32, copy=False)
    if radius <= 0:
        return f.copy()
    return cv2.GaussianBlur(f, (0, 0), sigmaX=float(radius), sigmaY=float(radius))


@dataclass(frozen=True, eq=False)
class BinaryMask:
    """
    Single tagged foreground representation shared by every downstream stage.

    `data` is a read-only uint8 (H, W) array holding 0 (background) or 1 (foreground).
    """

    data: np.ndarray

    def __post_init__(self):
        d = np.asarray(self.data)
        if d.ndim != 2:
            raise ValueError(f"Expected 2D mask, got shape={d.shape}")
        d = (d != 0).astype(np.uint8)
        d.flags.writeable = False
        object.__setattr__(self, "data", d)

    @classmethod
    def from_luma(cls, img: np.ndarray, threshold: float) -> "BinaryMask":
        """Foreground where luma > threshold."""
        return cls(luma(img) > threshold)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def area(self) -> int:
        return int(self.data.sum())

    def to_gray(self) -> np.ndarray:
        return self.data * np.uint8(255)

    def to_rgba(self) -> np.ndarray:
        """0/255 per channel with full opacity."""
        g = self.to_gray()
        return np.dstack([g, g, g, np.full_like(g, 255)])


def boundary_map(mask: BinaryMask) -> np.ndarray:
    """
    1 where an interior foreground pixel has a background 4-neighbor.

    The outer pixel ring is never marked.
    """
    m = mask.data
    out = np.zeros_like(m, dtype=np.uint8)
    if m.shape[0] < 3 or m.shape[1] < 3:
        return out

    center = m[1:-1, 1:-1] == 1
    any_bg = (
        (m[:-2, 1:-1] == 0)
        | (m[2:, 1:-1] == 0)
        | (m[1:-1, :-2] == 0)
        | (m[1:-1, 2:] == 0)
    )
    out[1:-1, 1:-1] = (center & any_bg).astype(np.uint8)
    return out
