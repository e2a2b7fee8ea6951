from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Optional, Tuple

import numpy as np


@dataclass
class Detection:
    """
    Single detection in (y1, x1, y2, x2) order.

    Coordinates are model-input pixels unless the detection has been mapped
    back onto the original frame (see `yolo_cam.postprocess.scale_detections`).
    """

    y1: float
    x1: float
    y2: float
    x2: float
    score: float
    class_id: Optional[int] = None

    def as_yxyx(self) -> Tuple[float, float, float, float]:
        return self.y1, self.x1, self.y2, self.x2

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    def scaled(self, sx: float, sy: float) -> "Detection":
        return replace(self, y1=self.y1 * sy, x1=self.x1 * sx, y2=self.y2 * sy, x2=self.x2 * sx)


@dataclass(frozen=True)
class LetterboxResult:
    """
    Output of `letterbox()`.

    Unpacks as `(frame, scale_x, scale_y)` so call sites can use the short form.
    """

    frame: np.ndarray
    scale_x: float
    scale_y: float
    padded_side: int
    orig_size: Tuple[int, int]  # (width, height)

    @property
    def target_size(self) -> Tuple[int, int]:
        h, w = self.frame.shape[:2]
        return int(w), int(h)

    def __iter__(self) -> Iterator[object]:
        return iter((self.frame, self.scale_x, self.scale_y))


@dataclass(frozen=True)
class DecodedCandidates:
    # boxes: (N, 4) as y1, x1, y2, x2
    boxes: np.ndarray
    scores: np.ndarray
    class_ids: np.ndarray

    def __len__(self) -> int:
        return int(self.scores.shape[0])
