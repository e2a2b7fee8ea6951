from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

import numpy as np

from .decode import LAYOUTS, decode_candidates
from .nms import NMSConfig, nms_with_config
from .types import DecodedCandidates, Detection, LetterboxResult


@dataclass(frozen=True)
class PostprocessConfig:
    """
    Konfigurasi post-processing untuk satu frame.

    map_to_frame=False keeps boxes in model-input pixels (what the camera overlay
    received historically); True maps them onto the original frame.
    """

    num_classes: int = 30
    layout: str = "rows"
    nms: NMSConfig = field(default_factory=NMSConfig)
    map_to_frame: bool = False

    def __post_init__(self) -> None:
        if self.num_classes < 1:
            raise ValueError("num_classes must be >= 1")
        if self.layout not in LAYOUTS:
            raise ValueError(f"layout must be one of {LAYOUTS}, got {self.layout!r}")


def scale_detections(detections: Sequence[Detection], lb: LetterboxResult) -> List[Detection]:
    """
    Map detections from model-input pixels back to original-frame pixels.

    Padding is bottom/right only, so this is a pure scale by padded_side / target,
    followed by clipping to the frame.
    """
    target_w, target_h = lb.target_size
    orig_w, orig_h = lb.orig_size
    sx = lb.padded_side / float(target_w)
    sy = lb.padded_side / float(target_h)

    out: List[Detection] = []
    for det in detections:
        d = det.scaled(sx, sy)
        out.append(
            replace(
                d,
                y1=float(np.clip(d.y1, 0, orig_h - 1)),
                x1=float(np.clip(d.x1, 0, orig_w - 1)),
                y2=float(np.clip(d.y2, 0, orig_h - 1)),
                x2=float(np.clip(d.x2, 0, orig_w - 1)),
            )
        )
    return out


def gather(cand: DecodedCandidates, keep: np.ndarray) -> List[Detection]:
    boxes = cand.boxes[keep]
    scores = cand.scores[keep]
    class_ids = cand.class_ids[keep]
    return [
        Detection(y1=float(y1), x1=float(x1), y2=float(y2), x2=float(x2), score=float(score), class_id=int(cls_id))
        for (y1, x1, y2, x2), score, cls_id in zip(boxes, scores, class_ids)
    ]


class DetectionPostprocessor:
    """
    Raw model output -> filtered detections: decode, NMS, gather.

    `decode()` and `finish()` are exposed separately so the frame loop can await
    NMS in between.
    """

    def __init__(self, cfg: PostprocessConfig = PostprocessConfig()):
        self.cfg = cfg

    def decode(self, raw: np.ndarray) -> DecodedCandidates:
        return decode_candidates(raw, self.cfg.num_classes, layout=self.cfg.layout)

    def finish(
        self,
        cand: DecodedCandidates,
        keep: np.ndarray,
        lb: Optional[LetterboxResult] = None,
    ) -> List[Detection]:
        dets = gather(cand, keep)
        if self.cfg.map_to_frame and lb is not None:
            dets = scale_detections(dets, lb)
        return dets

    def process(self, raw: np.ndarray, lb: Optional[LetterboxResult] = None) -> List[Detection]:
        cand = self.decode(raw)
        if len(cand) == 0:
            return []
        keep = nms_with_config(cand.boxes, cand.scores, self.cfg.nms)
        return self.finish(cand, keep, lb)
