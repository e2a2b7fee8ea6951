from __future__ import annotations

import argparse

from Live_Camera_YOLO.logging_setup import setup_logging
from Live_Camera_YOLO.runner import run_live


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run live YOLO detection on a webcam or video with an FPS overlay.")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    parser.add_argument("--model", default="Models/yolov8/model.onnx", help="Path to a YOLO model (.onnx/.torchscript/.pt).")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / torchscript.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--profile", default=None, help="Live profile JSON (model size, classes, NMS, pacing).")
    parser.add_argument("--metadata", default=None, help="Path to class metadata (names mapping).")
    parser.add_argument("--imgsz", type=int, default=None, help="Override model input size (square).")
    parser.add_argument("--num-classes", type=int, default=None, help="Override number of classes.")
    parser.add_argument("--score", type=float, default=None, help="Override NMS score threshold.")
    parser.add_argument("--iou", type=float, default=None, help="Override NMS IoU threshold.")
    parser.add_argument("--layout", choices=("rows", "channels"), default=None, help="Raw output layout.")
    parser.add_argument("--swap-rb", action="store_true", help="Convert BGR camera frames to RGB before inference.")
    parser.add_argument("--map-to-frame", action="store_true", help="Report boxes in original frame pixels.")
    parser.add_argument("--show", action="store_true", help="Show a window with detections (q/Esc to stop).")
    parser.add_argument("--out", default=None, help="Optional output video path for the visualization.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = no limit).")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    parser.add_argument("--log-file", default=None, help="Optional log file path.")
    return parser


def main() -> int:
    args = build_parser().parse_args()
    if args.imgsz is not None and args.imgsz < 32:
        raise ValueError("--imgsz must be >= 32")
    setup_logging(args.log_level, args.log_file)
    return run_live(args)


if __name__ == "__main__":
    raise SystemExit(main())
