import argparse
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from Live_Camera_YOLO import runner
from Live_Camera_YOLO.ingest import CaptureInfo
from Live_Camera_YOLO.runner import _parse_ort_providers, _resolve_profile
from yolo_cam.runtime import _backend_from_suffix, load_inference_service


def _args(**kw) -> argparse.Namespace:
    base = dict(
        profile=None,
        imgsz=None,
        num_classes=None,
        score=None,
        iou=None,
        layout=None,
        swap_rb=False,
        map_to_frame=False,
    )
    base.update(kw)
    return argparse.Namespace(**base)


class TestResolveProfile(unittest.TestCase):
    def test_cli_overrides_win_over_profile(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "live.json"
        path.write_text(json.dumps({"schema_version": 1, "num_classes": 80, "score_threshold": 0.5}), encoding="utf-8")

        profile = _resolve_profile(_args(profile=str(path), imgsz=640, score=0.25, swap_rb=True))
        self.assertEqual(profile.input_size, (640, 640))
        self.assertEqual(profile.num_classes, 80)
        self.assertEqual(profile.score_threshold, 0.25)
        self.assertTrue(profile.swap_rb)

    def test_invalid_override_rejected(self) -> None:
        with self.assertRaises(ValueError):
            _resolve_profile(_args(iou=2.0))


class _FakeCapture:
    def __init__(self):
        self.released = 0

    def release(self):
        self.released += 1


class TestRunLiveCleanup(unittest.TestCase):
    def test_capture_released_when_recording_cannot_start(self) -> None:
        cap = _FakeCapture()
        args = _args(
            video="clip.mp4",
            webcam=None,
            max_frames=0,
            metadata=None,
            model="model.onnx",
            backend=None,
            onnx_providers=None,
            out="annotated.mp4",
            show=False,
        )
        with mock.patch.object(runner, "load_inference_service", return_value=object()), mock.patch.object(
            runner, "open_capture", return_value=cap
        ), mock.patch.object(runner, "get_capture_info", return_value=CaptureInfo(fps=None, width=None, height=None)):
            with self.assertRaises(RuntimeError):
                runner.run_live(args)
        self.assertEqual(cap.released, 1)


class TestBackendSelection(unittest.TestCase):
    def test_suffixes(self) -> None:
        self.assertEqual(_backend_from_suffix(".ONNX"), "onnxruntime")
        self.assertEqual(_backend_from_suffix(".torchscript"), "torchscript")
        with self.assertRaisesRegex(ValueError, "TensorRT"):
            _backend_from_suffix(".engine")
        with self.assertRaisesRegex(ValueError, "Could not infer backend"):
            _backend_from_suffix(".bin")

    def test_unknown_backend(self) -> None:
        with self.assertRaises(ValueError):
            load_inference_service("model.bin", backend="tensorrt", root=None)

    def test_provider_parsing(self) -> None:
        self.assertEqual(
            _parse_ort_providers("'CUDAExecutionProvider', `CPUExecutionProvider`,"),
            ["CUDAExecutionProvider", "CPUExecutionProvider"],
        )
        self.assertIsNone(_parse_ort_providers(" , "))


if __name__ == "__main__":
    unittest.main()
