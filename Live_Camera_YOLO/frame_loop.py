from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

import numpy as np

from yolo_cam.arena import FrameArena
from yolo_cam.errors import InferenceError, InvalidFrameError, YoloCamError
from yolo_cam.nms import nms_async
from yolo_cam.postprocess import DetectionPostprocessor
from yolo_cam.runtime import DetectionPipeline, InferenceService
from yolo_cam.types import Detection

from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

FrameSource = Union[Iterable[Optional[np.ndarray]], AsyncIterator[Optional[np.ndarray]]]

_END = object()


class RenderTarget(Protocol):
    def render(
        self,
        detections: Sequence[Detection],
        frame_size: Tuple[int, int],
        *,
        frame: Optional[np.ndarray] = None,
    ) -> None: ...


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"
    FINISHED = "finished"


class Stage(str, Enum):
    CAPTURING = "capturing"
    PREPROCESSING = "preprocessing"
    INFERRING = "inferring"
    DECODING = "decoding"
    FILTERING = "filtering"
    RENDERING = "rendering"
    SCHEDULED = "scheduled"


class Outcome(str, Enum):
    RENDERED = "rendered"
    FAILED = "failed"
    DISCARDED = "discarded"
    CANCELLED = "cancelled"
    END_OF_STREAM = "end_of_stream"


@dataclass(frozen=True)
class FrameLoopConfig:
    """
    - input_width/input_height: model input size the frame is letterboxed to
    - frame_interval_s: pause before the next iteration (0 just yields to the event loop)
    - max_iterations: stop after N iterations (0 = until cancelled or the source ends)
    """

    input_width: int = 800
    input_height: int = 800
    channels_first: bool = False
    swap_rb: bool = False
    frame_interval_s: float = 0.0
    max_iterations: int = 0

    def __post_init__(self) -> None:
        if self.input_width < 1 or self.input_height < 1:
            raise ValueError("input_width/input_height must be >= 1")
        if self.frame_interval_s < 0:
            raise ValueError("frame_interval_s must be >= 0")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be >= 0")


@dataclass
class FrameLoopStats:
    iterations: int = 0
    rendered: int = 0
    failed: int = 0
    discarded: int = 0


class FrameLoopController:
    """
    Single in-flight frame loop: capture -> letterbox -> inference -> decode -> NMS -> render.

    Runs as one asyncio task. Each iteration finishes (or aborts) before the next
    one is scheduled, so the inference service is never called concurrently.
    A failure in any stage, rendering included, is logged and skips only that
    iteration; the loop keeps going. Cancellation is checked at the top of each
    iteration, after every await and right before rendering; an in-flight result is dropped once the token is set.

    Latency runs from just after capture to just before scheduling the next
    iteration and feeds `fps = floor(1000 / latency_ms)`.
    """

    def __init__(
        self,
        source: FrameSource,
        inference: InferenceService,
        target: RenderTarget,
        *,
        config: FrameLoopConfig = FrameLoopConfig(),
        postprocessor: Optional[DetectionPostprocessor] = None,
        arena_factory: Callable[[], FrameArena] = FrameArena,
        clock: Callable[[], float] = time.perf_counter,
        on_fps: Optional[Callable[[int], None]] = None,
    ):
        if hasattr(source, "__anext__") or hasattr(source, "__aiter__"):
            self._aiter: Optional[AsyncIterator[Optional[np.ndarray]]] = source.__aiter__()  # type: ignore[union-attr]
            self._iter = None
        else:
            self._aiter = None
            self._iter = iter(source)  # type: ignore[arg-type]

        self.inference = inference
        self.target = target
        self.config = config
        self.post = postprocessor or DetectionPostprocessor()
        self._pipeline = DetectionPipeline(
            inference,
            input_size=(config.input_width, config.input_height),
            channels_first=config.channels_first,
            swap_rb=config.swap_rb,
            post_cfg=self.post.cfg,
        )
        self._arena_factory = arena_factory
        self._clock = clock
        self._on_fps = on_fps

        self.state = LoopState.IDLE
        self.stage: Optional[Stage] = None
        self.stats = FrameLoopStats()
        self.fps: Optional[int] = None
        self.last_latency_ms: Optional[float] = None
        self.last_detections: List[Detection] = []

    async def _next_frame(self) -> Any:
        if self._aiter is not None:
            try:
                return await self._aiter.__anext__()
            except StopAsyncIteration:
                return _END
        return next(self._iter, _END)  # type: ignore[arg-type]

    def _cancel(self, token: CancellationToken) -> Outcome:
        self.state = LoopState.CANCELLED
        logger.info("Frame loop cancelled (%s)", token.reason or "no reason given")
        return Outcome.CANCELLED

    def _update_fps(self, latency_ms: float) -> None:
        self.last_latency_ms = latency_ms
        # Millisecond resolution: sub-millisecond iterations count as 1 ms.
        self.fps = int(math.floor(1000.0 / max(latency_ms, 1.0)))
        if self._on_fps is not None:
            self._on_fps(self.fps)

    def _fail(self, exc: Exception, *, unexpected: bool = False) -> Outcome:
        self.stats.failed += 1
        logger.warning(
            "Skipping frame %d at stage %s: %s",
            self.stats.iterations,
            self.stage.value if self.stage else "-",
            exc,
            exc_info=unexpected,
        )
        self.stage = Stage.SCHEDULED
        return Outcome.FAILED

    def _infer(self, blob: np.ndarray) -> np.ndarray:
        try:
            return self._pipeline.infer(blob)
        except YoloCamError:
            raise
        except Exception as exc:
            raise InferenceError(f"Inference failed: {exc}") from exc

    async def _process(
        self,
        frame: Optional[np.ndarray],
        arena: FrameArena,
        token: CancellationToken,
    ) -> Outcome:
        if frame is None:
            raise InvalidFrameError("Frame source returned no frame.")
        arena.track(frame)

        self.stage = Stage.PREPROCESSING
        prep = self._pipeline.preprocess(frame)
        arena.track(prep.letterbox.frame)
        arena.track(prep.blob)

        self.stage = Stage.INFERRING
        raw = arena.track(self._infer(prep.blob))

        self.stage = Stage.DECODING
        cand = self.post.decode(raw)
        arena.track(cand.boxes)
        arena.track(cand.scores)
        arena.track(cand.class_ids)

        self.stage = Stage.FILTERING
        nms_cfg = self.post.cfg.nms
        keep = await nms_async(
            cand.boxes,
            cand.scores,
            nms_cfg.max_outputs,
            nms_cfg.iou_threshold,
            nms_cfg.score_threshold,
        )
        arena.track(keep)
        if token.cancelled:
            return Outcome.DISCARDED

        detections = self.post.finish(cand, keep, prep.letterbox)

        self.stage = Stage.RENDERING
        if token.cancelled:
            return Outcome.DISCARDED
        h, w = frame.shape[:2]
        self.target.render(detections, (int(w), int(h)), frame=frame)
        self.last_detections = detections
        return Outcome.RENDERED

    async def step(self, token: Optional[CancellationToken] = None) -> Outcome:
        """Run exactly one iteration and report how it ended."""

        token = token if token is not None else CancellationToken()
        if token.cancelled:
            return self._cancel(token)

        self.stage = Stage.CAPTURING
        try:
            frame = await self._next_frame()
        except Exception as exc:
            self.stats.iterations += 1
            return self._fail(exc, unexpected=True)
        if frame is _END:
            self.state = LoopState.FINISHED
            self.stage = None
            logger.info("Frame source exhausted after %d iterations", self.stats.iterations)
            return Outcome.END_OF_STREAM

        started = self._clock()
        self.stats.iterations += 1
        if token.cancelled:
            self.stats.discarded += 1
            return self._cancel(token)

        try:
            with self._arena_factory() as arena:
                outcome = await self._process(frame, arena, token)
        except YoloCamError as exc:
            outcome = self._fail(exc)
        except Exception as exc:
            # cv2.error, OSError, ... from the render target or its writer.
            outcome = self._fail(exc, unexpected=True)

        if outcome is Outcome.DISCARDED:
            self.stats.discarded += 1
            return self._cancel(token)

        if outcome is Outcome.RENDERED:
            self.stats.rendered += 1
            self._update_fps((self._clock() - started) * 1000.0)

        self.stage = Stage.SCHEDULED
        return outcome

    async def run(self, token: Optional[CancellationToken] = None) -> FrameLoopStats:
        """
        Loop until the token is cancelled, the source ends, or `max_iterations` is hit.
        """

        if self.state is LoopState.RUNNING:
            raise RuntimeError("Frame loop is already running.")
        token = token if token is not None else CancellationToken()

        self.state = LoopState.RUNNING
        logger.info(
            "Frame loop started: input=%dx%d interval=%.3fs",
            self.config.input_width,
            self.config.input_height,
            self.config.frame_interval_s,
        )

        try:
            while True:
                outcome = await self.step(token)
                if outcome in (Outcome.CANCELLED, Outcome.END_OF_STREAM):
                    break
                if self.config.max_iterations and self.stats.iterations >= self.config.max_iterations:
                    self.state = LoopState.FINISHED
                    break
                await asyncio.sleep(self.config.frame_interval_s)
                if token.cancelled:
                    self._cancel(token)
                    break
        finally:
            # Never left RUNNING, including on task cancellation.
            if self.state is LoopState.RUNNING:
                self.state = LoopState.CANCELLED

        logger.info(
            "Frame loop stopped (%s): iterations=%d rendered=%d failed=%d discarded=%d",
            self.state.value,
            self.stats.iterations,
            self.stats.rendered,
            self.stats.failed,
            self.stats.discarded,
        )
        return self.stats
