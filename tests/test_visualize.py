import unittest

import numpy as np

from Live_Camera_YOLO.cancellation import CancellationToken
from Live_Camera_YOLO.render import OpenCVWindowTarget
from yolo_cam.types import Detection
from yolo_cam.visualize import color_for_class_id, draw_detections, draw_fps


class TestDrawing(unittest.TestCase):
    def test_draw_detections_returns_copy(self) -> None:
        img = np.zeros((100, 100, 3), dtype=np.uint8)
        det = Detection(y1=20, x1=10, y2=80, x2=90, score=0.9, class_id=2)
        out = draw_detections(img, [det], class_names={2: "cup"})
        self.assertTrue(np.all(img == 0))
        self.assertGreater(int(out.sum()), 0)
        self.assertEqual(tuple(int(v) for v in out[50, 10]), color_for_class_id(2))

    def test_draw_detections_rejects_non_bgr(self) -> None:
        with self.assertRaises(ValueError):
            draw_detections(np.zeros((10, 10), dtype=np.uint8), [])

    def test_draw_fps_in_place(self) -> None:
        img = np.zeros((60, 160, 3), dtype=np.uint8)
        out = draw_fps(img, 24)
        self.assertIs(out, img)
        self.assertEqual(tuple(int(v) for v in img[12, 12]), (255, 255, 255))

    def test_palette_is_deterministic(self) -> None:
        self.assertEqual(color_for_class_id(123), color_for_class_id(123))
        self.assertEqual(color_for_class_id(None), (0, 255, 255))


class _Writer:
    def __init__(self):
        self.frames = []

    def write(self, frame):
        self.frames.append(frame)

    def release(self):
        pass


class TestOpenCVWindowTarget(unittest.TestCase):
    def test_maps_model_space_onto_frame(self) -> None:
        writer = _Writer()
        target = OpenCVWindowTarget(token=CancellationToken(), input_size=(50, 50), writer=writer, show=False)
        target.set_fps(30)
        frame = np.zeros((100, 200, 3), dtype=np.uint8)
        # Model-space box (x 10..20, y 10..20) lands at x 40..80, y 40..80 in the 200 px padded frame.
        det = Detection(y1=10, x1=10, y2=20, x2=20, score=0.5, class_id=0)
        target.render([det], (200, 100), frame=frame)
        (vis,) = writer.frames
        self.assertEqual(tuple(int(v) for v in vis[60, 40]), color_for_class_id(0))
        self.assertTrue(np.all(frame == 0))
        target.close()


if __name__ == "__main__":
    unittest.main()
