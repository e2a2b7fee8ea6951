from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureInfo:
    fps: Optional[float]
    width: Optional[int]
    height: Optional[int]


def open_capture(*, video: Optional[str] = None, webcam: Optional[int] = None) -> cv2.VideoCapture:
    if (video is None) == (webcam is None):
        raise ValueError("Exactly one of video/webcam must be provided.")

    cap = cv2.VideoCapture(video) if video is not None else cv2.VideoCapture(int(webcam))
    if not cap.isOpened():
        raise RuntimeError(f"Failed to open video source: {video if video is not None else f'webcam {webcam}'}")
    return cap


def get_capture_info(cap: cv2.VideoCapture) -> CaptureInfo:
    fps = cap.get(cv2.CAP_PROP_FPS)
    fps_val = float(fps) if fps and fps > 0 else None

    w = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
    h = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
    w_val = int(w) if w and w > 0 else None
    h_val = int(h) if h and h > 0 else None

    return CaptureInfo(fps=fps_val, width=w_val, height=h_val)


def capture_frames(
    cap: cv2.VideoCapture,
    *,
    live: bool = True,
    max_frames: int = 0,
    max_consecutive_failures: int = 10,
) -> Iterator[Optional[np.ndarray]]:
    """
    Frame source over an OpenCV capture.

    For a live camera a failed read yields `None` (the frame loop skips it) until
    `max_consecutive_failures` reads in a row have failed. For a video file the
    first failed read is end of stream. The capture is released when the
    generator finishes or is closed.
    """

    if max_frames < 0:
        raise ValueError("max_frames must be >= 0")
    if max_consecutive_failures < 1:
        raise ValueError("max_consecutive_failures must be >= 1")

    failures = 0
    produced = 0
    try:
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                if not live:
                    return
                failures += 1
                if failures >= max_consecutive_failures:
                    logger.error("Too many consecutive read failures (%d), stopping capture", failures)
                    return
                yield None
                continue

            failures = 0
            yield frame
            produced += 1
            if max_frames and produced >= max_frames:
                return
    finally:
        cap.release()


class ReplaySource:
    """
    In-memory frame source that replays a fixed list of frames.

    `loop=True` cycles forever, which is how the benchmark and tests model a
    camera that never runs dry.
    """

    def __init__(self, frames, *, loop: bool = False):
        self._frames: Deque[Optional[np.ndarray]] = deque(frames)
        self.loop = loop
        self.served = 0

    def __iter__(self) -> "ReplaySource":
        return self

    def __next__(self) -> Optional[np.ndarray]:
        if not self._frames:
            raise StopIteration
        frame = self._frames.popleft()
        if self.loop:
            self._frames.append(frame)
        self.served += 1
        return frame
