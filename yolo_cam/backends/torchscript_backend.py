from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import numpy as np

from ..errors import InferenceError


PathLike = Union[str, Path]


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    - device: "cpu", "cuda", "cuda:1", ...
    - half: run in float16 (CUDA exports only)
    - output_index: which element to return when the module yields a tuple/list
    """

    device: str = "cpu"
    half: bool = False
    output_index: int = 0


def _import_torch():
    try:
        import torch  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("torch is required for the TorchScript backend. Install with `pip install torch`.") from e
    return torch


class TorchScriptBackend:
    """Inference service over a `torch.jit` module; no model class code is needed."""

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        torch = _import_torch()

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self._torch = torch
        self.cfg = cfg
        self.device = torch.device(cfg.device)
        self.module = torch.jit.load(str(self.model_path), map_location=self.device).eval()

    def _pick_output(self, out: Any):
        if isinstance(out, (tuple, list)):
            if not 0 <= self.cfg.output_index < len(out):
                raise InferenceError(
                    f"{self.model_path.name} returned {len(out)} outputs; output_index={self.cfg.output_index}"
                )
            return out[self.cfg.output_index]
        return out

    def execute(self, input_tensor: np.ndarray) -> np.ndarray:
        torch = self._torch
        x = torch.from_numpy(np.ascontiguousarray(input_tensor)).to(self.device)
        x = x.half() if self.cfg.half else x.float()

        try:
            with torch.inference_mode():
                out = self.module(x)
        except Exception as exc:
            raise InferenceError(f"TorchScript model {self.model_path.name} failed: {exc}") from exc

        return self._pick_output(out).detach().float().cpu().numpy()
