import unittest

import numpy as np

from yolo_cam.errors import InvalidFrameError
from yolo_cam.letterbox import letterbox, pad_to_square


class TestPadToSquare(unittest.TestCase):
    def test_wide_frame_pads_bottom_only(self) -> None:
        frame = np.full((30, 50, 3), 7, dtype=np.uint8)
        padded, sx, sy = pad_to_square(frame)
        self.assertEqual(padded.shape, (50, 50, 3))
        self.assertTrue(np.all(padded[:30, :, :] == 7))
        self.assertTrue(np.all(padded[30:, :, :] == 0))
        self.assertAlmostEqual(sx, 1.0)
        self.assertAlmostEqual(sy, 50 / 30)

    def test_tall_frame_pads_right_only(self) -> None:
        frame = np.full((64, 20, 3), 200, dtype=np.uint8)
        padded, sx, sy = pad_to_square(frame)
        self.assertEqual(padded.shape, (64, 64, 3))
        self.assertTrue(np.all(padded[:, :20, :] == 200))
        self.assertTrue(np.all(padded[:, 20:, :] == 0))
        self.assertAlmostEqual(sx * 20, 64)
        self.assertAlmostEqual(sy * 64, 64)

    def test_single_channel_keeps_channel_axis(self) -> None:
        frame = np.ones((10, 4, 1), dtype=np.uint8)
        padded, _, _ = pad_to_square(frame)
        self.assertEqual(padded.shape, (10, 10, 1))


class TestLetterbox(unittest.TestCase):
    def test_square_zero_frame(self) -> None:
        frame = np.zeros((100, 100, 3), dtype=np.uint8)
        out, sx, sy = letterbox(frame, 800, 800)
        self.assertEqual(out.shape, (800, 800, 3))
        self.assertTrue(np.all(out == 0.0))
        self.assertEqual(sx, 1.0)
        self.assertEqual(sy, 1.0)

    def test_scales_match_padded_side(self) -> None:
        for h, w in [(480, 640), (1920, 1080), (1, 7), (333, 332)]:
            res = letterbox(np.zeros((h, w, 3), dtype=np.uint8), 64, 64)
            side = max(h, w)
            self.assertEqual(res.padded_side, side)
            self.assertAlmostEqual(res.scale_x * w, side, places=6)
            self.assertAlmostEqual(res.scale_y * h, side, places=6)
            self.assertGreaterEqual(res.scale_x, 1.0)
            self.assertGreaterEqual(res.scale_y, 1.0)
            self.assertEqual(res.orig_size, (w, h))

    def test_output_is_normalized_float32(self) -> None:
        frame = np.full((40, 40, 3), 255, dtype=np.uint8)
        res = letterbox(frame, 20, 10)
        self.assertEqual(res.frame.dtype, np.float32)
        self.assertEqual(res.frame.shape, (10, 20, 3))
        self.assertEqual(res.target_size, (20, 10))
        self.assertTrue(np.allclose(res.frame, 1.0))

    def test_padding_stays_bottom_right_after_resize(self) -> None:
        frame = np.full((50, 100, 3), 255, dtype=np.uint8)
        out, _, _ = letterbox(frame, 200, 200)
        # Top half is image, bottom half is padding; rows away from the seam are exact.
        self.assertTrue(np.allclose(out[:90], 1.0))
        self.assertTrue(np.allclose(out[110:], 0.0))

    def test_rejects_empty_or_malformed_frames(self) -> None:
        for bad in [np.zeros((0, 10, 3)), np.zeros((10, 0, 3)), np.zeros((10, 10)), None, [[1, 2], [3, 4]]]:
            with self.assertRaises(InvalidFrameError):
                letterbox(bad, 32, 32)

    def test_rejects_non_positive_target(self) -> None:
        with self.assertRaises(InvalidFrameError):
            letterbox(np.zeros((10, 10, 3), dtype=np.uint8), 0, 32)


if __name__ == "__main__":
    unittest.main()
