from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import InferenceError, ShapeMismatchError


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    - providers: ORT execution providers, tried in order (None = ORT default)
    - input_name/output_name: pin the graph I/O instead of taking the first of each
    - intra_op_threads: 0 lets ORT decide
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    intra_op_threads: int = 0


def _import_ort():
    try:
        import onnxruntime as ort  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
            "(or `onnxruntime-gpu`)."
        ) from e
    return ort


class OnnxRuntimeBackend:
    """
    Inference service over an `onnxruntime.InferenceSession`.

    `execute()` takes the batched float32 blob from `DetectionPipeline.preprocess`
    and returns the selected output unchanged (raw detection tensor).
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        ort = _import_ort()

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        options = ort.SessionOptions()
        if cfg.intra_op_threads > 0:
            options.intra_op_num_threads = int(cfg.intra_op_threads)
        self.session = ort.InferenceSession(
            str(self.model_path),
            sess_options=options,
            providers=list(cfg.providers) if cfg.providers is not None else None,
        )

        graph_input = self.session.get_inputs()[0]
        self.input_name = cfg.input_name or graph_input.name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        self._declared_rank = len(graph_input.shape) if graph_input.shape is not None else None

    @property
    def providers_in_use(self) -> Tuple[str, ...]:
        return tuple(self.session.get_providers())

    def execute(self, input_tensor: np.ndarray, extra_inputs: Optional[Dict[str, Any]] = None) -> np.ndarray:
        blob = np.asarray(input_tensor, dtype=np.float32)
        if self._declared_rank is not None and blob.ndim != self._declared_rank:
            raise ShapeMismatchError(
                f"{self.model_path.name} expects a rank-{self._declared_rank} input, got shape {blob.shape}"
            )

        feeds: Dict[str, Any] = {self.input_name: blob}
        if extra_inputs:
            feeds.update(extra_inputs)
        try:
            (raw,) = self.session.run([self.output_name], feeds)
        except Exception as exc:
            raise InferenceError(f"ONNX Runtime failed on {self.model_path.name}: {exc}") from exc
        return raw
