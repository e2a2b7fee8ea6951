from __future__ import annotations

import argparse
import statistics
import time
from dataclasses import dataclass
from typing import List

import numpy as np

from yolo_cam import NMSConfig, PostprocessConfig, decode_candidates, letterbox, nms


@dataclass(frozen=True)
class TimingSummary:
    n: int
    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float


def _summarize_ms(values_s: List[float]) -> TimingSummary:
    ms = np.asarray(values_s, dtype=np.float64) * 1000.0
    return TimingSummary(
        n=int(ms.size),
        mean_ms=float(statistics.fmean(ms)),
        p50_ms=float(np.percentile(ms, 50)),
        p90_ms=float(np.percentile(ms, 90)),
        p95_ms=float(np.percentile(ms, 95)),
    )


def _format_summary(label: str, s: TimingSummary) -> str:
    return (
        f"{label}: n={s.n} mean={s.mean_ms:.3f}ms p50={s.p50_ms:.3f}ms "
        f"p90={s.p90_ms:.3f}ms p95={s.p95_ms:.3f}ms"
    )


def _synthetic_raw(n: int, num_classes: int, imgsz: int, rng: np.random.Generator) -> np.ndarray:
    # Row layout: [cx, cy, w, h, class scores...]
    centers = rng.uniform(0, imgsz, size=(n, 2))
    sizes = rng.uniform(5, imgsz / 8, size=(n, 2))
    scores = rng.uniform(0.0, 1.0, size=(n, num_classes)) ** 4
    return np.concatenate([centers, sizes, scores], axis=1)[None, ...].astype(np.float32)


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark letterbox, decode and NMS on synthetic data (no model).")
    parser.add_argument("--candidates", type=int, default=8400, help="Raw candidates per frame.")
    parser.add_argument("--classes", type=int, default=30, help="Number of classes.")
    parser.add_argument("--imgsz", type=int, default=800, help="Model input size.")
    parser.add_argument("--frame", default="1080x1920", help="Synthetic frame size as HxW.")
    parser.add_argument("--score", type=float, default=0.2, help="NMS score threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="NMS IoU threshold.")
    parser.add_argument("--max-out", type=int, default=500, help="NMS max outputs.")
    parser.add_argument("--repeats", type=int, default=100, help="Recorded iterations.")
    parser.add_argument("--warmup", type=int, default=5, help="Warmup iterations to run but not record.")
    args = parser.parse_args()

    if args.candidates < 1 or args.classes < 1:
        raise ValueError("--candidates/--classes must be >= 1")
    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")
    h, w = (int(v) for v in str(args.frame).lower().split("x"))

    cfg = PostprocessConfig(
        num_classes=int(args.classes),
        nms=NMSConfig(max_outputs=int(args.max_out), iou_threshold=float(args.iou), score_threshold=float(args.score)),
    )
    rng = np.random.default_rng(0)
    frame = rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)
    raw = _synthetic_raw(int(args.candidates), cfg.num_classes, int(args.imgsz), rng)

    t_pre: List[float] = []
    t_dec: List[float] = []
    t_nms: List[float] = []
    kept = 0
    for i in range(int(args.warmup) + int(args.repeats)):
        t0 = time.perf_counter()
        letterbox(frame, int(args.imgsz), int(args.imgsz))
        t1 = time.perf_counter()
        cand = decode_candidates(raw, cfg.num_classes, layout=cfg.layout)
        t2 = time.perf_counter()
        keep = nms(cand.boxes, cand.scores, cfg.nms.max_outputs, cfg.nms.iou_threshold, cfg.nms.score_threshold)
        t3 = time.perf_counter()
        if i < int(args.warmup):
            continue
        t_pre.append(t1 - t0)
        t_dec.append(t2 - t1)
        t_nms.append(t3 - t2)
        kept = int(keep.size)

    print(_format_summary("letterbox", _summarize_ms(t_pre)))
    print(_format_summary("decode", _summarize_ms(t_dec)))
    print(_format_summary("nms", _summarize_ms(t_nms)))
    print(f"candidates={args.candidates} classes={args.classes} kept={kept}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
