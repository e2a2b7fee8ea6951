import unittest

import numpy as np

from Live_Camera_YOLO.cancellation import CancellationToken
from Live_Camera_YOLO.ingest import ReplaySource, capture_frames


class _FakeCapture:
    def __init__(self, reads):
        self.reads = list(reads)
        self.released = False

    def read(self):
        if not self.reads:
            return False, None
        frame = self.reads.pop(0)
        return frame is not None, frame

    def release(self):
        self.released = True


def _frame(v: int = 0) -> np.ndarray:
    return np.full((4, 4, 3), v, dtype=np.uint8)


class TestCaptureFrames(unittest.TestCase):
    def test_live_read_failures_yield_none(self) -> None:
        cap = _FakeCapture([_frame(1), None, _frame(2)])
        frames = list(capture_frames(cap, live=True, max_consecutive_failures=2))
        # f1, miss, f2, miss, then the second miss in a row stops the capture.
        self.assertEqual(len(frames), 4)
        self.assertIsNone(frames[1])
        self.assertIsNone(frames[3])
        self.assertEqual(int(frames[2][0, 0, 0]), 2)
        self.assertTrue(cap.released)

    def test_video_file_ends_on_first_failed_read(self) -> None:
        cap = _FakeCapture([_frame(), None, _frame()])
        frames = list(capture_frames(cap, live=False))
        self.assertEqual(len(frames), 1)
        self.assertTrue(cap.released)

    def test_max_frames(self) -> None:
        cap = _FakeCapture([_frame()] * 5)
        self.assertEqual(len(list(capture_frames(cap, max_frames=2))), 2)
        self.assertTrue(cap.released)

    def test_closing_generator_releases_capture(self) -> None:
        cap = _FakeCapture([_frame()] * 5)
        gen = capture_frames(cap)
        next(gen)
        gen.close()
        self.assertTrue(cap.released)

    def test_invalid_arguments(self) -> None:
        with self.assertRaises(ValueError):
            next(capture_frames(_FakeCapture([]), max_frames=-1))


class TestReplaySource(unittest.TestCase):
    def test_loop_cycles(self) -> None:
        src = ReplaySource([_frame(1), _frame(2)], loop=True)
        values = [int(next(src)[0, 0, 0]) for _ in range(5)]
        self.assertEqual(values, [1, 2, 1, 2, 1])
        self.assertEqual(src.served, 5)


class TestCancellationToken(unittest.TestCase):
    def test_first_reason_wins(self) -> None:
        token = CancellationToken()
        self.assertFalse(token.cancelled)
        token.cancel("window closed")
        token.cancel("ctrl-c")
        self.assertTrue(token.cancelled)
        self.assertEqual(token.reason, "window closed")


if __name__ == "__main__":
    unittest.main()
