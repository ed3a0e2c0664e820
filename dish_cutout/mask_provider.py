from __future__ import annotations

import base64
import binascii
import logging
import os
from typing import Optional

import requests

from .config import MASK_MODEL, MASK_PROMPT, MASK_QUALITY, MAX_MASK_RETRIES
from .errors import DecodeFailure
from .io import decode_rgba

logger = logging.getLogger(__name__)


def _get_base_url() -> str:
    return os.getenv("MASK_BASE_URL", "https://api.openai.com").rstrip("/")


def _get_timeout_s() -> float:
    try:
        return float(os.getenv("MASK_TIMEOUT_S", "120"))
    except ValueError:
        return 120.0


def _get_model() -> str:
    return os.getenv("MASK_MODEL", MASK_MODEL)


def _extract_b64(payload) -> Optional[str]:
    # Expected: {"data": [{"b64_json": "..."}]}
    if not isinstance(payload, dict):
        return None
    items = payload.get("data")
    if not isinstance(items, list) or not items:
        return None
    first = items[0]
    if not isinstance(first, dict):
        return None
    b64 = first.get("b64_json")
    if isinstance(b64, str) and b64:
        return b64
    return None


def _request_mask_once(source_png: bytes, width: int, height: int) -> bytes:
    api_key = os.getenv("MASK_API_KEY")
    if not api_key:
        raise RuntimeError("Missing MASK_API_KEY")

    url = f"{_get_base_url()}/v1/images/edits"
    data = {
        "model": _get_model(),
        "prompt": MASK_PROMPT.strip(),
        "size": f"{width}x{height}",
        "output_format": "png",
        "quality": MASK_QUALITY,
        "background": "opaque",
    }
    files = {"image": ("input.png", source_png, "image/png")}
    resp = requests.post(
        url,
        headers={"Authorization": f"Bearer {api_key}"},
        data=data,
        files=files,
        timeout=_get_timeout_s(),
    )
    resp.raise_for_status()
    b64 = _extract_b64(resp.json())
    if not b64:
        raise RuntimeError("Segmentation model did not return a mask")
    try:
        return base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise RuntimeError("Mask payload is not valid base64") from e


def request_dish_mask(source_png: bytes, width: int, height: int) -> bytes:
    """
    Ask the external segmentation model for a same-size black/white mask PNG.

    Retries up to MAX_MASK_RETRIES. Any failure, including an undecodable reply,
    surfaces as DecodeFailure.
    """
    last_err: Optional[Exception] = None
    for attempt in range(MAX_MASK_RETRIES + 1):
        try:
            mask_png = _request_mask_once(source_png, width, height)
            decode_rgba(mask_png, what="external mask")
            return mask_png
        except (requests.RequestException, RuntimeError, DecodeFailure) as e:
            logger.warning("mask request attempt %d failed: %s", attempt + 1, e)
            last_err = e
            continue
    raise DecodeFailure(f"External mask unavailable after retries: {last_err}") from last_err
