from __future__ import annotations

import json
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

import run
from dish_cutout.io import encode_png


def _write_photo(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (100, 100), (140, 90, 60)).save(str(path), format="PNG")


def test_batch_reports_failures_and_writes_summary(tmp_path: Path, monkeypatch):
    in_dir = tmp_path / "in"
    masks_dir = tmp_path / "masks"
    out_dir = tmp_path / "out"
    _write_photo(in_dir / "lunch" / "pasta.png")
    _write_photo(in_dir / "lunch" / "salad.png")

    m = np.zeros((1024, 1024), dtype=np.uint8)
    m[256:768, 256:768] = 255
    (masks_dir / "lunch").mkdir(parents=True)
    (masks_dir / "lunch" / "pasta.png").write_bytes(encode_png(m))
    # salad has no mask -> reported as failed, batch continues

    monkeypatch.setattr(
        sys,
        "argv",
        ["run.py", "--input", str(in_dir), "--output", str(out_dir), "--masks", str(masks_dir)],
    )
    assert run.main() == 1

    assert (out_dir / "lunch" / "pasta.png").exists()
    assert not (out_dir / "lunch" / "salad.png").exists()

    lines = (out_dir / "diagnostics.jsonl").read_text(encoding="utf-8").strip().splitlines()
    records = {r["image_id"]: r for r in map(json.loads, lines)}
    assert records["lunch__pasta"]["status"] == "ok"
    assert records["lunch__pasta"]["alignment"]["applied_dx"] == 0
    assert records["lunch__salad"]["status"] == "failed"
    assert "FileNotFoundError" in records["lunch__salad"]["error"]

    summary = json.loads((out_dir / "run_summary.json").read_text(encoding="utf-8"))
    assert (summary["total"], summary["ok"], summary["failed"]) == (2, 1, 1)
    assert summary["params"]["ramp_low"] == 5


def test_unexpected_errors_abort_the_batch(tmp_path: Path, monkeypatch):
    in_dir = tmp_path / "in"
    _write_photo(in_dir / "pasta.png")

    def _boom(*_a, **_k):
        raise RuntimeError("disk full")

    monkeypatch.setattr(run, "process_image", _boom)
    monkeypatch.setattr(sys, "argv", ["run.py", "--input", str(in_dir), "--output", str(tmp_path / "out")])

    with pytest.raises(RuntimeError):
        run.main()
    assert not (tmp_path / "out" / "run_summary.json").exists()
