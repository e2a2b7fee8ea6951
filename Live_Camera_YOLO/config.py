from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from yolo_cam.decode import LAYOUTS
from yolo_cam.nms import NMSConfig
from yolo_cam.postprocess import PostprocessConfig

from .frame_loop import FrameLoopConfig


@dataclass(frozen=True)
class LiveProfile:
    """
    Deployment constants for one model: input size, classes, NMS and loop pacing.

    Defaults match the bundled 30-class YOLOv8 camera model (800x800 input,
    channels-first raw output).
    """

    schema_version: int = 1
    model_width: int = 800
    model_height: int = 800
    num_classes: int = 30
    max_outputs: int = 500
    iou_threshold: float = 0.45
    score_threshold: float = 0.2
    output_layout: str = "channels"
    channels_first: bool = False
    swap_rb: bool = False
    frame_interval_s: float = 0.0
    map_to_frame: bool = False
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.schema_version != 1:
            raise ValueError("live profile schema_version must be 1")
        if self.model_width < 1 or self.model_height < 1:
            raise ValueError("model_width/model_height must be >= 1")
        if self.num_classes < 1:
            raise ValueError("num_classes must be >= 1")
        if self.max_outputs < 1:
            raise ValueError("max_outputs must be >= 1")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within [0, 1]")
        if not 0.0 <= self.score_threshold <= 1.0:
            raise ValueError("score_threshold must be within [0, 1]")
        if self.output_layout not in LAYOUTS:
            raise ValueError(f"output_layout must be one of {LAYOUTS}")
        if self.frame_interval_s < 0:
            raise ValueError("frame_interval_s must be >= 0")

    @property
    def input_size(self):
        return (self.model_width, self.model_height)

    def to_postprocess_config(self) -> PostprocessConfig:
        return PostprocessConfig(
            num_classes=self.num_classes,
            layout=self.output_layout,
            nms=NMSConfig(
                max_outputs=self.max_outputs,
                iou_threshold=self.iou_threshold,
                score_threshold=self.score_threshold,
            ),
            map_to_frame=self.map_to_frame,
        )

    def to_loop_config(self, max_iterations: int = 0) -> FrameLoopConfig:
        return FrameLoopConfig(
            input_width=self.model_width,
            input_height=self.model_height,
            channels_first=self.channels_first,
            swap_rb=self.swap_rb,
            frame_interval_s=self.frame_interval_s,
            max_iterations=max_iterations,
        )


_INT_KEYS = {"schema_version", "model_width", "model_height", "num_classes", "max_outputs"}
_FLOAT_KEYS = {"iou_threshold", "score_threshold", "frame_interval_s"}
_BOOL_KEYS = {"channels_first", "swap_rb", "map_to_frame"}
_STR_KEYS = {"output_layout"}


def _coerce(key: str, value: Any) -> Any:
    if key in _INT_KEYS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{key} must be an integer")
        return int(value)
    if key in _FLOAT_KEYS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{key} must be a number")
        return float(value)
    if key in _BOOL_KEYS:
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be a boolean")
        return value
    if key in _STR_KEYS:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{key} must be a non-empty string")
        return value.strip()
    if key == "notes":
        if value is not None and not isinstance(value, str):
            raise ValueError("notes must be a string if provided")
        return value
    raise ValueError(f"Unsupported live profile key: {key}")


def load_live_profile(path: Path) -> LiveProfile:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Live profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid live profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Live profile must be a JSON object")

    allowed = {f.name for f in fields(LiveProfile)}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown live profile keys: {unknown}")
    if "schema_version" not in payload:
        raise ValueError("Missing required key: schema_version")

    values: Dict[str, Any] = {key: _coerce(key, value) for key, value in payload.items()}
    return LiveProfile(**values)
