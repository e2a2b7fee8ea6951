from typing import Tuple

import numpy as np

from .errors import InvalidFrameError
from .types import LetterboxResult

# dtypes OpenCV resizes/pads natively; anything else is promoted to float32 first.
_CV_DTYPES = (np.uint8, np.uint16, np.int16, np.float32, np.float64)


def _import_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e
    return cv2


def _check_frame(frame: np.ndarray) -> Tuple[int, int, int]:
    if frame is None or not hasattr(frame, "shape"):
        raise InvalidFrameError("frame must be a NumPy array shaped (H, W, C).")
    if frame.ndim != 3:
        raise InvalidFrameError(f"Expected frame shape (H, W, C), got {frame.shape}")
    h, w, c = (int(s) for s in frame.shape)
    if h <= 0 or w <= 0 or c <= 0:
        raise InvalidFrameError(f"Frame must be non-empty, got shape {frame.shape}")
    return h, w, c


def pad_to_square(frame: np.ndarray) -> Tuple[np.ndarray, float, float]:
    """
    Zero-pad `frame` on the bottom and right so it becomes square.

    Returns:
        padded: (side, side, C) array, side = max(H, W), same dtype as the input
        scale_x: side / W
        scale_y: side / H
    """
    h, w, c = _check_frame(frame)
    cv2 = _import_cv2()

    if frame.dtype not in _CV_DTYPES:
        frame = frame.astype(np.float32)

    side = max(h, w)
    if side == h and side == w:
        padded = frame
    else:
        padded = cv2.copyMakeBorder(frame, 0, side - h, 0, side - w, cv2.BORDER_CONSTANT, value=0)
        # OpenCV drops a trailing singleton channel axis.
        padded = padded.reshape(side, side, c)

    return padded, side / w, side / h


def letterbox(frame: np.ndarray, target_width: int = 800, target_height: int = 800) -> LetterboxResult:
    """
    Pad to a top-left aligned square, resize bilinearly and normalize to [0, 1].

    The padding never touches the top/left edge, so model-input coordinates map
    back to the original frame with a pure scale (no offset):

        x_frame = x_model * padded_side / target_width
        y_frame = y_model * padded_side / target_height
    """
    if int(target_width) <= 0 or int(target_height) <= 0:
        raise InvalidFrameError(f"Target size must be positive, got {(target_width, target_height)}")

    h, w, c = _check_frame(frame)
    padded, scale_x, scale_y = pad_to_square(frame)
    side = padded.shape[0]

    cv2 = _import_cv2()
    dsize = (int(target_width), int(target_height))
    if (side, side) != (dsize[1], dsize[0]):
        resized = cv2.resize(padded, dsize, interpolation=cv2.INTER_LINEAR)
        resized = resized.reshape(dsize[1], dsize[0], c)
    else:
        resized = padded

    out = resized.astype(np.float32) / 255.0
    return LetterboxResult(
        frame=out,
        scale_x=float(scale_x),
        scale_y=float(scale_y),
        padded_side=int(side),
        orig_size=(w, h),
    )
