from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .align import align_mask
from .binarize import binarize_mask
from .composite import make_cutout
from .contracts import AlignmentResult, CutoutParams
from .errors import InvalidInputDimensions
from .holes import fill_holes
from .io import decode_rgba, encode_png, load_rgba, save_png
from .mask_provider import request_dish_mask
from .masks import BinaryMask
from .preprocess import prepare_source
from .shrink import shrink_mask
from .soften import soften_mask

logger = logging.getLogger(__name__)

MaskProvider = Callable[[bytes, int, int], bytes]


@dataclass(frozen=True)
class StageTimings:
    binarize_s: float
    align_s: float
    fill_s: float
    shrink_s: float
    soften_s: float
    composite_s: float
    total_s: float


@dataclass(frozen=True)
class CutoutOutcome:
    cutout: np.ndarray
    soft_mask: np.ndarray
    binary: BinaryMask
    aligned: BinaryMask
    filled: BinaryMask
    shrunk: BinaryMask
    alignment: AlignmentResult
    timings: StageTimings


def _check_same_size(source: np.ndarray, raw_mask: np.ndarray) -> Tuple[int, int]:
    if source.ndim != 3 or source.shape[2] not in (3, 4):
        raise ValueError(f"Expected RGB(A) source (H,W,3|4), got shape={source.shape}")
    h, w = source.shape[:2]
    mh, mw = raw_mask.shape[:2]
    if (mw, mh) != (w, h):
        raise InvalidInputDimensions((w, h), (mw, mh), what="raw mask")
    return w, h


def refine_cutout(
    source: np.ndarray,
    raw_mask: np.ndarray,
    params: Optional[CutoutParams] = None,
) -> CutoutOutcome:
    """
    Deterministic, linear pipeline on same-size rasters:
      1) Binarize (+ dilate)
      2) Align (diagnostics only, mask stays in place)
      3) Fill holes
      4) Shrink
      5) Soften (expand + feather)
      6) Cutout
    """
    params = params or CutoutParams()
    w, h = _check_same_size(source, raw_mask)

    t0 = time.perf_counter()

    t_bin0 = time.perf_counter()
    binary = binarize_mask(raw_mask, (w, h), dilate_px=params.dilate_px)
    t_bin1 = time.perf_counter()

    t_al0 = time.perf_counter()
    aligned, alignment = align_mask(
        source,
        binary,
        coarse_top_edge_pct=params.coarse_top_edge_pct,
        fine_radius_px=params.fine_radius_px,
        lam=params.lam,
    )
    t_al1 = time.perf_counter()

    t_fill0 = time.perf_counter()
    filled = fill_holes(aligned, close_radius=params.close_radius)
    t_fill1 = time.perf_counter()

    t_sh0 = time.perf_counter()
    shrunk = shrink_mask(filled, params.shrink_px_for(w, h))
    t_sh1 = time.perf_counter()

    t_soft0 = time.perf_counter()
    soft = soften_mask(shrunk, expand_px=params.expand_px, feather_px=params.feather_px)
    t_soft1 = time.perf_counter()

    t_comp0 = time.perf_counter()
    cutout = make_cutout(source, soft, low=params.ramp_low, high=params.ramp_high)
    t_comp1 = time.perf_counter()

    t1 = time.perf_counter()
    timings = StageTimings(
        binarize_s=t_bin1 - t_bin0,
        align_s=t_al1 - t_al0,
        fill_s=t_fill1 - t_fill0,
        shrink_s=t_sh1 - t_sh0,
        soften_s=t_soft1 - t_soft0,
        composite_s=t_comp1 - t_comp0,
        total_s=t1 - t0,
    )
    logger.debug("refine %dx%d: %s", w, h, timings)

    return CutoutOutcome(
        cutout=cutout,
        soft_mask=soft,
        binary=binary,
        aligned=aligned,
        filled=filled,
        shrunk=shrunk,
        alignment=alignment,
        timings=timings,
    )


def process_cutout_bytes(
    source_png: bytes,
    raw_mask_png: bytes,
    params: Optional[CutoutParams] = None,
) -> Tuple[bytes, CutoutOutcome]:
    """
    Byte-level boundary: decode both rasters, refine, encode the RGBA cutout as PNG.
    """
    source = decode_rgba(source_png, what="source image")
    raw_mask = decode_rgba(raw_mask_png, what="raw mask")
    outcome = refine_cutout(source, raw_mask, params)
    return encode_png(outcome.cutout), outcome


def save_debug_masks(outcome: CutoutOutcome, debug_dir: str, stem: str) -> None:
    for name, mask in (
        ("binary", outcome.binary),
        ("aligned", outcome.aligned),
        ("filled", outcome.filled),
        ("shrunk", outcome.shrunk),
    ):
        save_png(mask.to_gray(), os.path.join(debug_dir, f"{stem}.{name}.png"))
    save_png(outcome.soft_mask, os.path.join(debug_dir, f"{stem}.soft.png"))


def process_image(
    source_path: str,
    out_path: str,
    params: Optional[CutoutParams] = None,
    *,
    mask_path: Optional[str] = None,
    provider: MaskProvider = request_dish_mask,
    debug_dir: Optional[str] = None,
) -> CutoutOutcome:
    """
    File-level boundary used by the CLI:
      1) Load photo, fit it into its allowed edit size
      2) Raw mask from `mask_path`, or from the external provider. A precomputed
         mask must already be at the resolved edit size (see resolve_edit_size),
         not at the photo's original size
      3) Refine
      4) Save RGBA PNG (nothing is written if any step fails)
    """
    source = prepare_source(load_rgba(source_path))
    h, w = source.shape[:2]

    if mask_path is not None:
        raw_mask = load_rgba(mask_path)
    else:
        raw_mask = decode_rgba(provider(encode_png(source), w, h), what="external mask")

    outcome = refine_cutout(source, raw_mask, params)

    save_png(outcome.cutout, out_path)
    if debug_dir:
        stem = os.path.splitext(os.path.basename(out_path))[0]
        save_debug_masks(outcome, debug_dir, stem)
    return outcome
