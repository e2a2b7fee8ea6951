from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from yolo_cam.types import Detection
from yolo_cam.visualize import draw_detections, draw_fps

from .cancellation import CancellationToken


class CollectingTarget:
    """Render target that only remembers what it was asked to draw."""

    def __init__(self, maxlen: Optional[int] = None):
        self.frames: Deque[Tuple[List[Detection], Tuple[int, int]]] = deque(maxlen=maxlen)
        self.calls = 0

    def render(
        self,
        detections: Sequence[Detection],
        frame_size: Tuple[int, int],
        *,
        frame: Optional[np.ndarray] = None,
    ) -> None:
        self.calls += 1
        self.frames.append((list(detections), frame_size))

    @property
    def last(self) -> Optional[Tuple[List[Detection], Tuple[int, int]]]:
        return self.frames[-1] if self.frames else None


class OpenCVWindowTarget:
    """
    Draw detections and the FPS badge over the camera frame in an OpenCV window.

    If `input_size` is given, detections are taken to be in model-input pixels
    and mapped onto the frame here (padded_side / input size per axis).
    Pressing `q` or Esc cancels `token`.
    """

    def __init__(
        self,
        *,
        window_name: str = "detections",
        token: Optional[CancellationToken] = None,
        class_names: Optional[Dict[int, str]] = None,
        input_size: Optional[Tuple[int, int]] = None,
        writer: Optional[cv2.VideoWriter] = None,
        show: bool = True,
    ):
        self.window_name = window_name
        self.token = token
        self.class_names = class_names or {}
        self.input_size = input_size
        self.writer = writer
        self.show = show
        self.fps: Optional[int] = None

    def set_fps(self, fps: int) -> None:
        self.fps = fps

    def _to_frame_space(self, detections: Sequence[Detection], frame_size: Tuple[int, int]) -> Sequence[Detection]:
        if self.input_size is None:
            return detections
        side = float(max(frame_size))
        sx = side / self.input_size[0]
        sy = side / self.input_size[1]
        return [d.scaled(sx, sy) for d in detections]

    def render(
        self,
        detections: Sequence[Detection],
        frame_size: Tuple[int, int],
        *,
        frame: Optional[np.ndarray] = None,
    ) -> None:
        if frame is None:
            return
        image = frame
        if frame.ndim == 3 and frame.shape[2] == 4:
            image = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
        elif frame.ndim == 2 or frame.shape[2] == 1:
            image = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        vis = draw_detections(image, self._to_frame_space(detections, frame_size), class_names=self.class_names)
        draw_fps(vis, self.fps)

        if self.writer is not None:
            self.writer.write(vis)
        if self.show:
            cv2.imshow(self.window_name, vis)
            key = cv2.waitKey(1) & 0xFF
            if key in (27, ord("q")) and self.token is not None:
                self.token.cancel("window closed by user")

    def close(self) -> None:
        if self.writer is not None:
            self.writer.release()
            self.writer = None
        if self.show:
            cv2.destroyAllWindows()
