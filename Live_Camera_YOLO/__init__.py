"""
Live camera layer built on top of `yolo_cam`.

`yolo_cam` holds the per-frame math (letterbox, decode, NMS); this package
holds everything that makes it run continuously:
- the cooperative frame loop and its cancellation token
- the JSON live profile (model size, classes, NMS thresholds, pacing)
- OpenCV capture/window adapters and the script runner
"""

from __future__ import annotations

from .cancellation import CancellationToken
from .config import LiveProfile, load_live_profile
from .frame_loop import (
    FrameLoopConfig,
    FrameLoopController,
    FrameLoopStats,
    LoopState,
    Outcome,
    RenderTarget,
    Stage,
)
from .ingest import CaptureInfo, ReplaySource, capture_frames, get_capture_info, open_capture
from .logging_setup import setup_logging
from .render import CollectingTarget, OpenCVWindowTarget

__all__ = [
    "CancellationToken",
    "LiveProfile",
    "load_live_profile",
    "FrameLoopConfig",
    "FrameLoopController",
    "FrameLoopStats",
    "LoopState",
    "Outcome",
    "RenderTarget",
    "Stage",
    "CaptureInfo",
    "ReplaySource",
    "capture_frames",
    "get_capture_info",
    "open_capture",
    "setup_logging",
    "CollectingTarget",
    "OpenCVWindowTarget",
]
