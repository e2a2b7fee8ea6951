import unittest

import numpy as np

from yolo_cam.decode import decode, decode_candidates
from yolo_cam.errors import ShapeMismatchError


def _row(cx, cy, w, h, scores):
    return [cx, cy, w, h, *scores]


class TestDecode(unittest.TestCase):
    def test_single_candidate_box(self) -> None:
        raw = np.array([[_row(50, 50, 20, 10, [0.1, 0.7, 0.2])]], dtype=np.float32)
        dets = decode(raw, num_classes=3)
        self.assertEqual(len(dets), 1)
        d = dets[0]
        self.assertEqual(d.as_yxyx(), (45.0, 40.0, 55.0, 60.0))
        self.assertEqual(d.class_id, 1)
        self.assertAlmostEqual(d.score, 0.7, places=6)

    def test_argmax_tie_prefers_lowest_index(self) -> None:
        raw = np.array([[_row(10, 10, 2, 2, [0.3, 0.5, 0.5, 0.5])]], dtype=np.float64)
        cand = decode_candidates(raw, num_classes=4)
        self.assertEqual(int(cand.class_ids[0]), 1)
        self.assertAlmostEqual(float(cand.scores[0]), 0.5)

    def test_no_thresholding(self) -> None:
        raw = np.array([[_row(1, 1, 1, 1, [0.0, 0.0]), _row(2, 2, 2, 2, [0.01, 0.0])]], dtype=np.float32)
        self.assertEqual(len(decode_candidates(raw, num_classes=2)), 2)

    def test_channels_layout_matches_rows(self) -> None:
        rng = np.random.default_rng(3)
        rows = rng.uniform(0, 100, size=(1, 12, 4 + 5)).astype(np.float32)
        channels = np.transpose(rows, (0, 2, 1))
        a = decode_candidates(rows, 5, layout="rows")
        b = decode_candidates(channels, 5, layout="channels")
        self.assertTrue(np.array_equal(a.boxes, b.boxes))
        self.assertTrue(np.array_equal(a.scores, b.scores))
        self.assertTrue(np.array_equal(a.class_ids, b.class_ids))

    def test_box_corner_arithmetic(self) -> None:
        raw = np.array([[_row(7.5, 3.25, 5.0, 2.5, [1.0])]], dtype=np.float64)
        cand = decode_candidates(raw, num_classes=1)
        y1, x1, y2, x2 = cand.boxes[0]
        self.assertAlmostEqual(x1, 5.0)
        self.assertAlmostEqual(y1, 2.0)
        self.assertAlmostEqual(y2 - y1, 2.5)
        self.assertAlmostEqual(x2 - x1, 5.0)

    def test_empty_candidates(self) -> None:
        cand = decode_candidates(np.zeros((1, 0, 6), dtype=np.float32), num_classes=2)
        self.assertEqual(len(cand), 0)
        self.assertEqual(cand.boxes.shape, (0, 4))

    def test_shape_mismatch(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            decode_candidates(np.zeros((1, 5, 7)), num_classes=2)
        with self.assertRaises(ShapeMismatchError):
            decode_candidates(np.zeros((2, 5, 6)), num_classes=2)
        with self.assertRaises(ShapeMismatchError):
            decode_candidates(np.zeros((5, 6)), num_classes=2)

    def test_invalid_arguments(self) -> None:
        with self.assertRaises(ValueError):
            decode_candidates(np.zeros((1, 5, 4)), num_classes=0)
        with self.assertRaises(ValueError):
            decode_candidates(np.zeros((1, 5, 6)), num_classes=2, layout="nchw")


if __name__ == "__main__":
    unittest.main()
