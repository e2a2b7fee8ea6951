from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import cv2

from yolo_cam import load_class_names, load_inference_service
from yolo_cam.postprocess import DetectionPostprocessor

from .cancellation import CancellationToken
from .config import LiveProfile, load_live_profile
from .frame_loop import FrameLoopController
from .ingest import capture_frames, get_capture_info, open_capture
from .render import OpenCVWindowTarget

logger = logging.getLogger(__name__)


def _parse_ort_providers(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    # Shell line continuations and copy/paste can leave stray quotes/backticks.
    parts = [p.strip().strip("'\"`") for p in str(raw).split(",")]
    return [p for p in parts if p] or None


def _resolve_profile(args: argparse.Namespace) -> LiveProfile:
    profile = load_live_profile(Path(args.profile)) if args.profile else LiveProfile()
    overrides = {}
    if args.imgsz is not None:
        overrides.update(model_width=int(args.imgsz), model_height=int(args.imgsz))
    if args.num_classes is not None:
        overrides["num_classes"] = int(args.num_classes)
    if args.score is not None:
        overrides["score_threshold"] = float(args.score)
    if args.iou is not None:
        overrides["iou_threshold"] = float(args.iou)
    if args.layout is not None:
        overrides["output_layout"] = args.layout
    if args.swap_rb:
        overrides["swap_rb"] = True
    if args.map_to_frame:
        overrides["map_to_frame"] = True
    return replace(profile, **overrides) if overrides else profile


def run_live(args: argparse.Namespace) -> int:
    if (args.video is None) == (args.webcam is None):
        raise ValueError("Exactly one source must be set: --video or --webcam.")
    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    profile = _resolve_profile(args)
    class_names = load_class_names(args.metadata) if args.metadata else {}

    service = load_inference_service(
        args.model,
        backend=args.backend,
        onnx_providers=_parse_ort_providers(args.onnx_providers),
    )
    providers = getattr(service, "providers_in_use", None)
    if providers is not None:
        logger.info("ONNX Runtime session providers: %s", list(providers))

    token = CancellationToken()
    cap = open_capture(video=args.video, webcam=args.webcam)
    writer: Optional[cv2.VideoWriter] = None
    target: Optional[OpenCVWindowTarget] = None
    source = None
    try:
        info = get_capture_info(cap)
        logger.info("Capture opened: %sx%s @ %s fps", info.width, info.height, info.fps)

        if args.out:
            if info.width is None or info.height is None:
                raise RuntimeError("Cannot record: capture did not report its frame size.")
            writer = cv2.VideoWriter(
                args.out, cv2.VideoWriter_fourcc(*"mp4v"), info.fps or 30.0, (info.width, info.height)
            )
            if not writer.isOpened():
                raise RuntimeError(f"Failed to open video writer: {args.out}")

        target = OpenCVWindowTarget(
            token=token,
            class_names=class_names,
            input_size=None if profile.map_to_frame else profile.input_size,
            writer=writer,
            show=bool(args.show),
        )
        source = capture_frames(cap, live=args.webcam is not None, max_frames=int(args.max_frames))
        controller = FrameLoopController(
            source,
            service,
            target,
            config=profile.to_loop_config(),
            postprocessor=DetectionPostprocessor(profile.to_postprocess_config()),
            on_fps=target.set_fps,
        )

        try:
            stats = asyncio.run(controller.run(token))
        except KeyboardInterrupt:
            token.cancel("keyboard interrupt")
            stats = controller.stats
    finally:
        if source is not None:
            source.close()
        if target is not None:
            target.close()
        elif writer is not None:
            writer.release()
        # capture_frames only releases the capture once it has been started.
        cap.release()

    print(
        f"Frames: {stats.iterations} rendered={stats.rendered} failed={stats.failed} "
        f"discarded={stats.discarded} last_fps={controller.fps if controller.fps is not None else '-'}"
    )
    return 0
