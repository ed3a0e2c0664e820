from __future__ import annotations

import importlib.util
from pathlib import Path

from dish_cutout.contracts import AlignmentResult, CutoutRecord


def _load_script():
    path = Path(__file__).resolve().parents[1] / "scripts" / "summarize_alignment.py"
    spec = importlib.util.spec_from_file_location("summarize_alignment", path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def _record(image_id: str, coarse=(0, 0), fine=(0, 0), status="ok") -> dict:
    alignment = None
    if status == "ok":
        alignment = AlignmentResult(
            coarse_dx=coarse[0],
            coarse_dy=coarse[1],
            fine_dx=fine[0],
            fine_dy=fine[1],
            score=0.5,
            edge_threshold=0.1,
            mask_centroid=(10.0, 10.0),
            object_centroid=(12.0, 10.0),
            boundary_pixels=40,
            object_edge_pixels=12,
        )
    rec = CutoutRecord(
        image_id=image_id,
        source_path=f"in/{image_id}.png",
        output_path=f"out/{image_id}.png",
        status=status,
        alignment=alignment,
    )
    return rec.model_dump(mode="json")


def test_summarize_counts_unapplied_shifts():
    mod = _load_script()
    stats = mod.summarize(
        [
            _record("a"),
            _record("b", coarse=(3, -1), fine=(2, 0)),
            _record("c", status="failed"),
        ]
    )
    assert stats == {"total": 3, "ok": 2, "failed": 1, "would_shift": 1, "max_shift_px": 5}


def test_iter_jsonl_skips_blank_lines(tmp_path: Path):
    mod = _load_script()
    p = tmp_path / "diagnostics.jsonl"
    p.write_text('{"status": "ok"}\n\n{"status": "failed"}\n', encoding="utf-8")
    assert [r["status"] for r in mod._iter_jsonl(p)] == ["ok", "failed"]
