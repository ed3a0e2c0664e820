from __future__ import annotations

import numpy as np

from .config import EXPAND_GAIN
from .masks import BinaryMask, gaussian_blur


def soften_mask(mask: BinaryMask, expand_px: float, feather_px: float) -> np.ndarray:
    """
    Graded opacity mask (uint8 (H, W) in [0,255]) with a slightly grown, feathered edge.

      - expand: blur(expand_px), then x1.25 clamped to 255 (biases the ramp toward opaque)
      - feather: blur(feather_px)

    Partial values are the intended output; nothing is re-thresholded here.
    """
    soft = mask.to_gray().astype(np.float32)

    if expand_px > 0:
        soft = gaussian_blur(soft, expand_px)
        soft = np.clip(soft * np.float32(EXPAND_GAIN), 0.0, 255.0)

    if feather_px > 0:
        soft = gaussian_blur(soft, feather_px)

    return np.clip(np.rint(soft), 0, 255).astype(np.uint8)
