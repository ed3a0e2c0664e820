from __future__ import annotations

from .config import SHRINK_THRESHOLD
from .masks import BinaryMask, gaussian_blur


def shrink_mask(mask: BinaryMask, px: float) -> BinaryMask:
    """
    Pull the foreground boundary inward by roughly `px`: blur(px) then keep only
    near-saturated pixels (> 240 of 255). px <= 0 returns the input unchanged.
    """
    if px <= 0:
        return mask
    blurred = gaussian_blur(mask.to_gray(), px)
    return BinaryMask(blurred > float(SHRINK_THRESHOLD))
