from __future__ import annotations

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from .config import (
    ALIGN_LAMBDA,
    CLOSE_RADIUS,
    COARSE_TOP_EDGE_PCT,
    DEFAULT_DILATE_PX,
    DEFAULT_EXPAND_PX,
    DEFAULT_FEATHER_PX,
    FINE_RADIUS_PX,
    RAMP_HIGH,
    RAMP_LOW,
    SHRINK_FRACTION,
)


class CutoutParams(BaseModel):
    """Pipeline-level tunables. Fixed for the whole run."""

    dilate_px: float = Field(default=DEFAULT_DILATE_PX, ge=0)
    coarse_top_edge_pct: float = Field(default=COARSE_TOP_EDGE_PCT, ge=0.0, le=1.0)
    fine_radius_px: int = Field(default=FINE_RADIUS_PX, ge=0)
    lam: float = Field(default=ALIGN_LAMBDA, ge=0.0)
    close_radius: int = Field(default=CLOSE_RADIUS, ge=0)
    # None -> derived from the image size (see shrink_px_for).
    shrink_px: Optional[float] = Field(default=None, ge=0)
    expand_px: float = Field(default=DEFAULT_EXPAND_PX, ge=0)
    feather_px: float = Field(default=DEFAULT_FEATHER_PX, ge=0)
    ramp_low: float = Field(default=RAMP_LOW, ge=0, le=255)
    ramp_high: float = Field(default=RAMP_HIGH, ge=0, le=255)

    @model_validator(mode="after")
    def _check_ramp(self) -> "CutoutParams":
        if self.ramp_low >= self.ramp_high:
            raise ValueError(f"ramp_low ({self.ramp_low}) must be below ramp_high ({self.ramp_high})")
        return self

    def shrink_px_for(self, width: int, height: int) -> float:
        if self.shrink_px is not None:
            return self.shrink_px
        return float(round(max(width, height) * SHRINK_FRACTION))


class AlignmentResult(BaseModel):
    coarse_dx: int
    coarse_dy: int
    fine_dx: int
    fine_dy: int
    # Always (0, 0): the computed shift is reported, never applied.
    applied_dx: int = 0
    applied_dy: int = 0
    score: float
    edge_threshold: float
    mask_centroid: Tuple[float, float]
    object_centroid: Tuple[float, float]
    boundary_pixels: int
    object_edge_pixels: int


class CutoutRecord(BaseModel):
    """One line of the CLI diagnostics JSONL."""

    image_id: str
    source_path: str
    output_path: str
    status: Literal["ok", "failed"]
    width: int = 0
    height: int = 0
    alignment: Optional[AlignmentResult] = None
    timings: dict[str, float] = Field(default_factory=dict)
    error: str = ""
