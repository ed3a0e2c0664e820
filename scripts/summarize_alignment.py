from __future__ import annotations

import argparse
import json
from pathlib import Path


def _iter_jsonl(path: Path):
    with open(path, "r", encoding="utf-8") as fp:
        for line_no, line in enumerate(fp, start=1):
            s = line.strip()
            if not s:
                continue
            try:
                yield json.loads(s)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON on line {line_no}: {path}") from e


def summarize(records) -> dict:
    """
    Aggregate run.py diagnostics: status counts plus how far the (unapplied)
    coarse + fine alignment estimate would have moved each mask.
    """
    stats = {"total": 0, "ok": 0, "failed": 0, "would_shift": 0, "max_shift_px": 0}
    for rec in records:
        stats["total"] += 1
        if rec.get("status") != "ok":
            stats["failed"] += 1
            continue
        stats["ok"] += 1
        a = rec.get("alignment") or {}
        dx = int(a.get("coarse_dx", 0)) + int(a.get("fine_dx", 0))
        dy = int(a.get("coarse_dy", 0)) + int(a.get("fine_dy", 0))
        if dx or dy:
            stats["would_shift"] += 1
        stats["max_shift_px"] = max(stats["max_shift_px"], abs(dx), abs(dy))
    return stats


def main() -> int:
    parser = argparse.ArgumentParser(description="Summarize cutout diagnostics.jsonl written by run.py.")
    parser.add_argument("--diagnostics", required=True, type=str, help="Path to diagnostics.jsonl")
    parser.add_argument("--per-image", action="store_true", help="Also print one line per image.")
    args = parser.parse_args()

    path = Path(args.diagnostics)
    if not path.exists():
        raise FileNotFoundError(f"diagnostics not found: {path}")

    records = list(_iter_jsonl(path))
    if args.per_image:
        for rec in records:
            a = rec.get("alignment") or {}
            print(
                json.dumps(
                    {
                        "image_id": rec.get("image_id"),
                        "status": rec.get("status"),
                        "coarse": [a.get("coarse_dx"), a.get("coarse_dy")],
                        "fine": [a.get("fine_dx"), a.get("fine_dy")],
                        "score": a.get("score"),
                    },
                    ensure_ascii=False,
                )
            )

    print(json.dumps(summarize(records), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
