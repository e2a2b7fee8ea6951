import asyncio
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class NMSConfig:
    max_outputs: int = 500
    iou_threshold: float = 0.45
    score_threshold: float = 0.2

    def __post_init__(self) -> None:
        if self.max_outputs < 0:
            raise ValueError("max_outputs must be >= 0")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")


def _normalize(boxes: np.ndarray):
    # Accept boxes with flipped corners; IoU is taken on the covered rectangle.
    ymin = np.minimum(boxes[:, 0], boxes[:, 2])
    xmin = np.minimum(boxes[:, 1], boxes[:, 3])
    ymax = np.maximum(boxes[:, 0], boxes[:, 2])
    xmax = np.maximum(boxes[:, 1], boxes[:, 3])
    return ymin, xmin, ymax, xmax


def iou(box_a: Sequence[float], box_b: Sequence[float]) -> float:
    """
    Intersection-over-union of two (y1, x1, y2, x2) boxes.

    Zero-area boxes overlap nothing (IoU 0).
    """
    boxes = np.asarray([box_a, box_b], dtype=np.float64)
    ymin, xmin, ymax, xmax = _normalize(boxes)
    areas = (ymax - ymin) * (xmax - xmin)
    if areas[0] <= 0 or areas[1] <= 0:
        return 0.0
    ih = max(0.0, min(ymax[0], ymax[1]) - max(ymin[0], ymin[1]))
    iw = max(0.0, min(xmax[0], xmax[1]) - max(xmin[0], xmin[1]))
    inter = ih * iw
    return float(inter / (areas[0] + areas[1] - inter))


def nms(
    boxes: np.ndarray,
    scores: np.ndarray,
    max_outputs: int = 500,
    iou_threshold: float = 0.45,
    score_threshold: float = 0.2,
) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N, 4) as y1, x1, y2, x2 and scores shape (N,).

    Candidates scoring below `score_threshold` are dropped up front. The rest are
    visited by descending score; a box is discarded once its IoU with a kept box
    reaches `iou_threshold`. Returns kept indices, highest score first.
    """
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(f"boxes and scores disagree: {boxes.shape[0]} boxes vs {scores.shape[0]} scores")

    if boxes.shape[0] == 0 or max_outputs <= 0:
        return np.empty((0,), dtype=np.int32)

    candidates = np.where(scores >= score_threshold)[0]
    # Stable sort keeps the lower index first among equal scores.
    order = candidates[np.argsort(-scores[candidates], kind="stable")]

    ymin, xmin, ymax, xmax = _normalize(boxes)
    areas = (ymax - ymin) * (xmax - xmin)

    keep = []
    while order.size > 0 and len(keep) < max_outputs:
        i = order[0]
        keep.append(i)
        rest = order[1:]

        yy1 = np.maximum(ymin[i], ymin[rest])
        xx1 = np.maximum(xmin[i], xmin[rest])
        yy2 = np.minimum(ymax[i], ymax[rest])
        xx2 = np.minimum(xmax[i], xmax[rest])

        inter = np.maximum(0.0, yy2 - yy1) * np.maximum(0.0, xx2 - xx1)
        union = areas[i] + areas[rest] - inter
        valid = (areas[i] > 0) & (areas[rest] > 0)
        overlap = np.where(valid, inter / np.where(valid, union, 1.0), 0.0)

        order = rest[overlap < iou_threshold]

    return np.array(keep, dtype=np.int32)


def nms_with_config(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    return nms(
        boxes,
        scores,
        max_outputs=cfg.max_outputs,
        iou_threshold=cfg.iou_threshold,
        score_threshold=cfg.score_threshold,
    )


async def nms_async(
    boxes: np.ndarray,
    scores: np.ndarray,
    max_outputs: int = 500,
    iou_threshold: float = 0.45,
    score_threshold: float = 0.2,
) -> np.ndarray:
    """Run `nms()` in a worker thread so the caller's event loop stays responsive."""
    return await asyncio.to_thread(nms, boxes, scores, max_outputs, iou_threshold, score_threshold)
