from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, Union

import numpy as np

from .letterbox import letterbox
from .postprocess import DetectionPostprocessor, PostprocessConfig
from .types import Detection, LetterboxResult


PathLike = Union[str, Path]


class InferenceService(Protocol):
    """
    Anything that maps a preprocessed input tensor to the raw detection tensor.

    Implementations raise `yolo_cam.errors.InferenceError` when execution fails.
    """

    def execute(self, input_tensor: np.ndarray) -> np.ndarray: ...


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git", "requirements.txt"),
) -> Path:
    """
    Walk up from `start` (default: cwd) to the first directory holding a marker.

    Falls back to `start` itself when nothing matches.
    """

    p = Path(start).resolve() if start is not None else Path.cwd().resolve()
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        if any((parent / m).exists() for m in markers):
            return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute paths pass through; relative ones resolve against `root`
    ("auto"/None = project root).
    """

    p = Path(path)
    if p.is_absolute():
        return p
    base = find_project_root() if root in ("auto", None) else Path(root).resolve()
    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    letterbox: LetterboxResult


class DetectionPipeline:
    """
    Synchronous frame -> detections pipeline: letterbox -> inference -> postprocess.

    `input_size` is (width, height) of the model input. The blob is NHWC by
    default (TF-style exports); set `channels_first=True` for NCHW models.
    `swap_rb` converts OpenCV BGR frames to RGB before letterboxing.
    """

    def __init__(
        self,
        service: InferenceService,
        *,
        input_size: Tuple[int, int] = (800, 800),
        channels_first: bool = False,
        swap_rb: bool = False,
        post_cfg: PostprocessConfig = PostprocessConfig(),
    ):
        self.service = service
        self.input_size = (int(input_size[0]), int(input_size[1]))
        self.channels_first = channels_first
        self.swap_rb = swap_rb
        self.post = DetectionPostprocessor(post_cfg)

    def preprocess(self, frame: np.ndarray) -> PreprocessResult:
        if self.swap_rb and getattr(frame, "ndim", 0) == 3 and frame.shape[2] >= 3:
            frame = np.ascontiguousarray(frame[:, :, 2::-1])

        lb = letterbox(frame, self.input_size[0], self.input_size[1])
        blob = lb.frame
        if self.channels_first:
            blob = np.transpose(blob, (2, 0, 1))
        blob = np.ascontiguousarray(blob[None, ...])
        return PreprocessResult(blob=blob, letterbox=lb)

    def infer(self, blob: np.ndarray) -> np.ndarray:
        return self.service.execute(blob)

    def __call__(self, frame: np.ndarray) -> List[Detection]:
        prep = self.preprocess(frame)
        raw = self.infer(prep.blob)
        return self.post.process(raw, prep.letterbox)


def _backend_from_suffix(suffix: str) -> str:
    suffix = suffix.lower()
    if suffix == ".onnx":
        return "onnxruntime"
    if suffix in {".torchscript", ".ts", ".pt"}:
        return "torchscript"
    if suffix in {".engine", ".plan"}:
        raise ValueError(
            f"TensorRT engines ('{suffix}') are not supported. Export the model to ONNX and use backend=\"onnxruntime\"."
        )
    raise ValueError(f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly.")


def load_inference_service(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    onnx_providers: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
    torch_output_index: int = 0,
) -> InferenceService:
    """
    Open a model on disk as an inference service.

        service = load_inference_service("models/yolov8n.onnx")

    Args:
        model_path: weights file; relative paths resolve against the project root by default
        backend: "onnxruntime" / "torchscript", or None to infer from the extension
    """

    resolved = resolve_path(model_path, root=root)
    chosen = (backend or _backend_from_suffix(resolved.suffix)).lower()

    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        return OnnxRuntimeBackend(resolved, OnnxRuntimeBackendConfig(providers=onnx_providers))

    if chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        return TorchScriptBackend(
            resolved,
            TorchScriptBackendConfig(device=torch_device, output_index=torch_output_index),
        )

    raise ValueError(f"Unsupported backend: {backend!r}")


def load_pipeline(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    input_size: Tuple[int, int] = (800, 800),
    channels_first: bool = False,
    swap_rb: bool = False,
    post_cfg: PostprocessConfig = PostprocessConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
) -> DetectionPipeline:
    service = load_inference_service(model_path, backend=backend, onnx_providers=onnx_providers)
    return DetectionPipeline(
        service,
        input_size=input_size,
        channels_first=channels_first,
        swap_rb=swap_rb,
        post_cfg=post_cfg,
    )
