from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError
from tqdm import tqdm

from dish_cutout.contracts import CutoutParams, CutoutRecord
from dish_cutout.errors import CutoutInputError
from dish_cutout.io import safe_image_id_from_relpath, write_json
from dish_cutout.pipeline import process_image

logger = logging.getLogger("dish_cutout.run")


def _iter_images(input_dir: Path):
    exts = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}
    for p in sorted(input_dir.rglob("*")):
        if p.is_file() and p.suffix.lower() in exts:
            yield p


def _find_mask(masks_dir: Optional[Path], rel: Path) -> Optional[str]:
    if masks_dir is None:
        return None
    candidate = (masks_dir / rel).with_suffix(".png")
    if not candidate.exists():
        raise FileNotFoundError(f"Mask not found for {rel}: {candidate}")
    return str(candidate)


def _build_params(args: argparse.Namespace) -> CutoutParams:
    return CutoutParams(
        dilate_px=args.dilate_px,
        coarse_top_edge_pct=args.coarse_top_edge_pct,
        fine_radius_px=args.fine_radius_px,
        lam=args.lam,
        close_radius=args.close_radius,
        shrink_px=args.shrink_px,
        expand_px=args.expand_px,
        feather_px=args.feather_px,
        ramp_low=args.ramp_low,
        ramp_high=args.ramp_high,
    )


def main() -> int:
    load_dotenv()

    defaults = CutoutParams()
    parser = argparse.ArgumentParser(description="Refine dish segmentation masks into soft RGBA cutouts.")
    parser.add_argument("--input", required=True, type=str, help="Input directory containing source photos.")
    parser.add_argument("--output", required=True, type=str, help="Output directory for RGBA PNG cutouts.")
    parser.add_argument(
        "--masks",
        type=str,
        default=None,
        help="Directory of precomputed raw masks mirroring --input (<name>.png), each at the photo's "
        "resolved edit size (1024x1024, 1024x1536 or 1536x1024), not its original size. "
        "Without it, masks are requested from the external segmentation model.",
    )
    parser.add_argument("--diagnostics", type=str, default=None, help="JSONL path (default: <output>/diagnostics.jsonl).")
    parser.add_argument("--debug-dir", type=str, default=None, help="Also save intermediate masks here.")
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failing image.")
    parser.add_argument("--log-level", default="WARNING", type=str)

    tuning = parser.add_argument_group("tuning")
    tuning.add_argument("--dilate-px", type=float, default=defaults.dilate_px)
    tuning.add_argument("--coarse-top-edge-pct", type=float, default=defaults.coarse_top_edge_pct)
    tuning.add_argument("--fine-radius-px", type=int, default=defaults.fine_radius_px)
    tuning.add_argument("--lam", type=float, default=defaults.lam)
    tuning.add_argument("--close-radius", type=int, default=defaults.close_radius)
    tuning.add_argument("--shrink-px", type=float, default=None, help="Default: 0.5%% of the longest side.")
    tuning.add_argument("--expand-px", type=float, default=defaults.expand_px)
    tuning.add_argument("--feather-px", type=float, default=defaults.feather_px)
    tuning.add_argument("--ramp-low", type=float, default=defaults.ramp_low)
    tuning.add_argument("--ramp-high", type=float, default=defaults.ramp_high)
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        params = _build_params(args)
    except ValidationError as e:
        parser.error(str(e))

    input_dir = Path(args.input)
    output_dir = Path(args.output)
    masks_dir = Path(args.masks) if args.masks else None
    if not input_dir.exists():
        raise FileNotFoundError(f"Input dir not found: {input_dir}")
    if masks_dir is not None and not masks_dir.exists():
        raise FileNotFoundError(f"Masks dir not found: {masks_dir}")

    images = list(_iter_images(input_dir))
    if not images:
        print(f"No images found under {input_dir}")
        return 0

    diagnostics_path = Path(args.diagnostics) if args.diagnostics else output_dir / "diagnostics.jsonl"
    diagnostics_path.parent.mkdir(parents=True, exist_ok=True)

    failed = 0
    total0 = time.perf_counter()
    with open(diagnostics_path, "a", encoding="utf-8") as diag_fp:
        for img_path in tqdm(images, desc="Cutting out", unit="img"):
            rel = img_path.relative_to(input_dir)
            out_path = (output_dir / rel).with_suffix(".png")
            image_id = safe_image_id_from_relpath(rel.as_posix())

            # Bad input and provider failures are recorded per image; any other exception aborts the batch.
            try:
                outcome = process_image(
                    str(img_path),
                    str(out_path),
                    params,
                    mask_path=_find_mask(masks_dir, rel),
                    debug_dir=args.debug_dir,
                )
            except (CutoutInputError, FileNotFoundError) as e:
                failed += 1
                logger.error("%s: %s", img_path.name, e)
                record = CutoutRecord(
                    image_id=image_id,
                    source_path=str(img_path),
                    output_path=str(out_path),
                    status="failed",
                    error=f"{type(e).__name__}: {e}",
                )
                diag_fp.write(record.model_dump_json() + "\n")
                diag_fp.flush()
                if args.fail_fast:
                    raise
                continue

            h, w = outcome.cutout.shape[:2]
            t = outcome.timings
            record = CutoutRecord(
                image_id=image_id,
                source_path=str(img_path),
                output_path=str(out_path),
                status="ok",
                width=w,
                height=h,
                alignment=outcome.alignment,
                timings={k: float(v) for k, v in vars(t).items()},
            )
            diag_fp.write(record.model_dump_json() + "\n")
            diag_fp.flush()

            # Simple per-image timing log (kept minimal and deterministic).
            print(
                f"{img_path.name}: total={t.total_s:.3f}s "
                f"(bin={t.binarize_s:.3f}s align={t.align_s:.3f}s fill={t.fill_s:.3f}s "
                f"shrink={t.shrink_s:.3f}s soft={t.soften_s:.3f}s comp={t.composite_s:.3f}s)"
            )

    total1 = time.perf_counter()
    summary_path = output_dir / "run_summary.json"
    write_json(
        str(summary_path),
        {
            "total": len(images),
            "ok": len(images) - failed,
            "failed": failed,
            "elapsed_s": round(total1 - total0, 3),
            "params": params.model_dump(),
        },
    )
    print(f"Done. {len(images) - failed}/{len(images)} images in {total1-total0:.2f}s (failed: {failed})")
    print(f"- diagnostics: {diagnostics_path.resolve()}")
    print(f"- summary: {summary_path.resolve()}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
