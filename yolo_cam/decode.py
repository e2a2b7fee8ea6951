from typing import List

import numpy as np

from .errors import ShapeMismatchError
from .types import DecodedCandidates, Detection

LAYOUTS = ("rows", "channels")


def _as_rows(raw: np.ndarray, num_classes: int, layout: str) -> np.ndarray:
    """
    Validate the raw tensor and return a (N, 4 + C) view of the single batch item.

    - "rows": (1, N, 4 + C), one candidate per row
    - "channels": (1, 4 + C, N), e.g. YOLOv8 exports; transposed to rows
    """
    if layout not in LAYOUTS:
        raise ValueError(f"Unsupported layout {layout!r}; expected one of {LAYOUTS}")

    p = np.asarray(raw)
    if p.ndim != 3:
        raise ShapeMismatchError(f"Expected raw output of rank 3 (1, N, 4 + C), got shape {p.shape}")
    if p.shape[0] != 1:
        raise ShapeMismatchError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one frame at a time.")

    p = p[0]
    if layout == "channels":
        p = p.T

    expected = 4 + num_classes
    if p.shape[1] != expected:
        raise ShapeMismatchError(
            f"Expected {expected} values per candidate (4 box + {num_classes} classes), "
            f"got shape {np.asarray(raw).shape} with layout={layout!r}"
        )
    if not np.issubdtype(p.dtype, np.floating):
        p = p.astype(np.float64)
    return p


def decode_candidates(raw: np.ndarray, num_classes: int, layout: str = "rows") -> DecodedCandidates:
    """
    Convert raw YOLO rows [cx, cy, w, h, score_0 .. score_{C-1}] to columnar candidates.

    Boxes come out as (y1, x1, y2, x2), the argument order `nms()` expects.
    No score threshold is applied here.
    """
    if num_classes < 1:
        raise ValueError("num_classes must be >= 1")

    p = _as_rows(raw, num_classes, layout)

    cx = p[:, 0]
    cy = p[:, 1]
    w = p[:, 2]
    h = p[:, 3]
    x1 = cx - w / 2
    y1 = cy - h / 2
    y2 = y1 + h
    x2 = x1 + w
    boxes = np.stack([y1, x1, y2, x2], axis=1)

    class_scores = p[:, 4:]
    if class_scores.shape[0] == 0:
        return DecodedCandidates(
            boxes=boxes.reshape(0, 4),
            scores=np.empty((0,), dtype=p.dtype),
            class_ids=np.empty((0,), dtype=np.int64),
        )

    # np.argmax returns the first occurrence, so ties go to the lowest class index.
    class_ids = np.argmax(class_scores, axis=1)
    scores = class_scores[np.arange(class_scores.shape[0]), class_ids]
    return DecodedCandidates(boxes=boxes, scores=scores, class_ids=class_ids.astype(np.int64))


def decode(raw: np.ndarray, num_classes: int, layout: str = "rows") -> List[Detection]:
    cand = decode_candidates(raw, num_classes, layout=layout)
    return [
        Detection(y1=float(y1), x1=float(x1), y2=float(y2), x2=float(x2), score=float(score), class_id=int(cls_id))
        for (y1, x1, y2, x2), score, cls_id in zip(cand.boxes, cand.scores, cand.class_ids)
    ]
