"""
Reusable YOLO pre/post-processing for live camera frames.

Framework-agnostic: works on NumPy arrays coming from ONNX Runtime, TorchScript
or any other runtime. Letterboxing and drawing use OpenCV; inference runtimes
are only imported by the optional backends.
"""

from .arena import FrameArena
from .decode import decode, decode_candidates
from .errors import InferenceError, InvalidFrameError, ShapeMismatchError, YoloCamError
from .letterbox import letterbox, pad_to_square
from .metadata import load_class_names
from .nms import NMSConfig, iou, nms, nms_async
from .postprocess import DetectionPostprocessor, PostprocessConfig, scale_detections
from .runtime import (
    DetectionPipeline,
    InferenceService,
    PreprocessResult,
    find_project_root,
    load_inference_service,
    load_pipeline,
    resolve_path,
)
from .types import DecodedCandidates, Detection, LetterboxResult
from .visualize import draw_detections, draw_fps

__all__ = [
    "FrameArena",
    "decode",
    "decode_candidates",
    "InferenceError",
    "InvalidFrameError",
    "ShapeMismatchError",
    "YoloCamError",
    "letterbox",
    "pad_to_square",
    "load_class_names",
    "NMSConfig",
    "iou",
    "nms",
    "nms_async",
    "DetectionPostprocessor",
    "PostprocessConfig",
    "scale_detections",
    "DetectionPipeline",
    "InferenceService",
    "PreprocessResult",
    "find_project_root",
    "load_inference_service",
    "load_pipeline",
    "resolve_path",
    "DecodedCandidates",
    "Detection",
    "LetterboxResult",
    "draw_detections",
    "draw_fps",
]
