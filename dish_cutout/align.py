from __future__ import annotations

import logging
import math
from typing import Tuple

import cv2
import numpy as np

from .config import (
    ALIGN_LAMBDA,
    COARSE_CLAMP_PX,
    COARSE_TOP_EDGE_PCT,
    EDGE_BAND_PX,
    EDGE_EPS,
    FINE_RADIUS_PX,
    NO_SAMPLES_SCORE,
)
from .contracts import AlignmentResult
from .edges import extract_edges
from .errors import InvalidInputDimensions
from .masks import BinaryMask, boundary_map

logger = logging.getLogger(__name__)

# The alignment heuristic is reported but not applied to output pixels.
APPLIED_SHIFT = (0, 0)


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def _clamp(v: int, lo: int, hi: int) -> int:
    return lo if v < lo else hi if v > hi else v


def percentile_threshold(edges: np.ndarray, pct: float) -> float:
    """
    Value at position floor(pct * (n - 1)) of the sorted edge strengths.

    pct=0.90 keeps roughly the top 10% of edges.
    """
    flat = edges.ravel()
    if flat.size == 0:
        return 0.0
    idx = _clamp(int(math.floor(pct * (flat.size - 1))), 0, flat.size - 1)
    return float(np.partition(flat, idx)[idx])


def _centroid(sel: np.ndarray) -> Tuple[float, float, int]:
    h, w = sel.shape[:2]
    ys, xs = np.nonzero(sel)
    if ys.size == 0:
        return w / 2.0, h / 2.0, 0
    return float(xs.mean()), float(ys.mean()), int(ys.size)


def _interior(shape: Tuple[int, int]) -> np.ndarray:
    inner = np.zeros(shape, dtype=bool)
    if shape[0] >= 3 and shape[1] >= 3:
        inner[1:-1, 1:-1] = True
    return inner


def object_edge_selection(
    edges: np.ndarray,
    boundary: np.ndarray,
    edge_threshold: float,
    band_px: int = EDGE_BAND_PX,
) -> np.ndarray:
    """
    Strong interior edge pixels that sit within `band_px` (square window) of the mask boundary.
    """
    k = 2 * int(band_px) + 1
    near = cv2.dilate(boundary.astype(np.uint8), np.ones((k, k), np.uint8), iterations=1) > 0
    strong = (edges >= edge_threshold) & (edges > EDGE_EPS)
    return strong & near & _interior(edges.shape)


class BoundaryScorer:
    """
    Mean edge strength under the boundary shifted by (dx, dy).

    Samples that land on the outer ring or outside the image are skipped.
    """

    def __init__(self, boundary: np.ndarray, edges: np.ndarray):
        self.edges = edges
        self.h, self.w = edges.shape[:2]
        self.ys, self.xs = np.nonzero(boundary)

    def score(self, dx: int, dy: int) -> float:
        yy = self.ys + dy
        xx = self.xs + dx
        valid = (yy > 0) & (yy < self.h - 1) & (xx > 0) & (xx < self.w - 1)
        if not valid.any():
            return NO_SAMPLES_SCORE
        return float(self.edges[yy[valid], xx[valid]].astype(np.float64).mean())


def fine_search(
    scorer: BoundaryScorer,
    coarse: Tuple[int, int],
    radius: int,
    lam: float,
) -> Tuple[int, int, float]:
    """
    Exhaustive search around the coarse shift with an L2 penalty on the refinement.

    Row-major scan; the first strictly-better candidate wins ties.
    """
    cdx, cdy = coarse
    best_dx, best_dy, best = 0, 0, -math.inf
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            s = scorer.score(cdx + dx, cdy + dy) - lam * (dx * dx + dy * dy)
            if s > best:
                best, best_dx, best_dy = s, dx, dy
    return best_dx, best_dy, float(best)


def shift_mask(mask: BinaryMask, dx: int, dy: int) -> BinaryMask:
    """Composite the mask onto a black canvas of the same size at offset (dx, dy)."""
    h, w = mask.height, mask.width
    out = np.zeros((h, w), dtype=np.uint8)
    x0, x1 = max(0, dx), min(w, w + dx)
    y0, y1 = max(0, dy), min(h, h + dy)
    if x0 < x1 and y0 < y1:
        out[y0:y1, x0:x1] = mask.data[y0 - dy : y1 - dy, x0 - dx : x1 - dx]
    return BinaryMask(out)


def align_mask(
    source: np.ndarray,
    mask: BinaryMask,
    coarse_top_edge_pct: float = COARSE_TOP_EDGE_PCT,
    fine_radius_px: int = FINE_RADIUS_PX,
    lam: float = ALIGN_LAMBDA,
) -> Tuple[BinaryMask, AlignmentResult]:
    """
    Estimate the translation registering the mask boundary onto the photo's edges.

    Steps:
      1) edge map + percentile threshold
      2) mask boundary + its centroid
      3) centroid of strong edges near the boundary
      4) coarse shift = centroid difference, clamped
      5) regularized fine search around the coarse shift

    The returned mask is placed at APPLIED_SHIFT (unshifted); coarse/fine shifts and the
    score are diagnostics only.
    """
    h, w = source.shape[:2]
    if mask.size != (w, h):
        raise InvalidInputDimensions((w, h), mask.size)

    edges = extract_edges(source)
    thr = percentile_threshold(edges, coarse_top_edge_pct)

    boundary = boundary_map(mask)
    mcx, mcy, n_boundary = _centroid(boundary)
    ocx, ocy, n_object = _centroid(object_edge_selection(edges, boundary, thr))

    coarse_dx = _clamp(_round_half_up(ocx - mcx), -COARSE_CLAMP_PX, COARSE_CLAMP_PX)
    coarse_dy = _clamp(_round_half_up(ocy - mcy), -COARSE_CLAMP_PX, COARSE_CLAMP_PX)

    scorer = BoundaryScorer(boundary, edges)
    fine_dx, fine_dy, best = fine_search(scorer, (coarse_dx, coarse_dy), int(fine_radius_px), float(lam))

    applied_dx, applied_dy = APPLIED_SHIFT
    aligned = shift_mask(mask, applied_dx, applied_dy)

    result = AlignmentResult(
        coarse_dx=coarse_dx,
        coarse_dy=coarse_dy,
        fine_dx=fine_dx,
        fine_dy=fine_dy,
        applied_dx=applied_dx,
        applied_dy=applied_dy,
        score=best,
        edge_threshold=thr,
        mask_centroid=(mcx, mcy),
        object_centroid=(ocx, ocy),
        boundary_pixels=n_boundary,
        object_edge_pixels=n_object,
    )
    logger.debug(
        "align: coarse=(%d,%d) fine=(%d,%d) score=%.5f boundary=%d object_edges=%d",
        coarse_dx,
        coarse_dy,
        fine_dx,
        fine_dy,
        best,
        n_boundary,
        n_object,
    )
    return aligned, result
