from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Dict

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailure


def decode_rgba(data: bytes, what: str = "image") -> np.ndarray:
    """
    Decode compressed raster bytes to an RGBA uint8 ndarray of shape (H, W, 4).
    """
    if not data:
        raise DecodeFailure(f"Empty {what} payload")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeFailure(f"Could not decode {what}: {e}") from e
    return np.array(img.convert("RGBA"), dtype=np.uint8)


def load_rgba(path: str) -> np.ndarray:
    p = Path(path)
    if not p.is_file():
        raise DecodeFailure(f"Could not read image: {path}")
    return decode_rgba(p.read_bytes(), what=p.name)


def encode_png(arr: np.ndarray) -> bytes:
    """
    Lossless PNG bytes from an (H, W), (H, W, 3) or (H, W, 4) uint8 array.
    """
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG", optimize=False)
    return buf.getvalue()


def save_png(arr: np.ndarray, path: str) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(encode_png(arr))


def write_json(path: str, data: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")


def safe_image_id_from_relpath(relpath: str) -> str:
    """
    Make a stable, filesystem-safe id from a relative path.
    Example: "menu/lunch/burger 1.png" -> "menu__lunch__burger_1"
    """
    p = Path(relpath)
    stem = p.with_suffix("").as_posix()
    stem = stem.replace("/", "__")
    stem = "".join(ch if ch.isalnum() or ch in ("_", "-", ".") else "_" for ch in stem)
    return stem
