from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from .types import Detection


def _import_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for drawing. Install with `pip install opencv-python`.") from e
    return cv2


def _check_bgr(image_bgr: np.ndarray) -> None:
    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")


def color_for_class_id(class_id: Optional[int]) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a class id (OpenCV expects BGR).
    """

    if class_id is None:
        return (0, 255, 255)

    palette = [
        (255, 56, 56),
        (255, 157, 151),
        (255, 112, 31),
        (255, 178, 29),
        (207, 210, 49),
        (72, 249, 10),
        (146, 204, 23),
        (61, 219, 134),
        (26, 147, 52),
        (0, 212, 187),
        (44, 153, 168),
        (0, 194, 255),
        (52, 69, 147),
        (100, 115, 255),
        (0, 24, 236),
        (132, 56, 255),
        (82, 0, 133),
        (203, 56, 255),
        (255, 149, 200),
        (255, 55, 199),
    ]
    if 0 <= class_id < len(palette):
        return palette[class_id]

    rng = np.random.default_rng(int(class_id))
    bgr = rng.integers(0, 256, size=3, dtype=np.uint8)
    return int(bgr[0]), int(bgr[1]), int(bgr[2])


def _label_text(det: Detection, class_names: Optional[Dict[int, str]], show_score: bool) -> str:
    if det.class_id is None:
        text = "object"
    elif class_names:
        text = class_names.get(det.class_id, str(det.class_id))
    else:
        text = str(det.class_id)
    return f"{text} {det.score:.2f}" if show_score else text


def _box_pixels(det: Detection, w: int, h: int) -> Tuple[int, int, int, int]:
    xs = np.clip(np.rint([det.x1, det.x2]), 0, w - 1).astype(int)
    ys = np.clip(np.rint([det.y1, det.y2]), 0, h - 1).astype(int)
    return int(xs[0]), int(ys[0]), int(xs[1]), int(ys[1])


def _put_tag(
    cv2,
    image: np.ndarray,
    text: str,
    origin: Tuple[int, int],
    *,
    fill: Tuple[int, int, int],
    ink: Tuple[int, int, int],
    font_scale: float,
    font_thickness: int,
    pad: int = 0,
) -> None:
    """Filled tag whose top-left corner sits at `origin`; clipped to the image."""

    h, w = image.shape[:2]
    (tw, th), baseline = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
    x0, y0 = origin
    x1 = min(x0 + tw + 2 * pad, w - 1)
    y1 = min(y0 + th + baseline + 2 * pad, h - 1)
    cv2.rectangle(image, (x0, y0), (x1, y1), fill, thickness=-1)
    cv2.putText(
        image,
        text,
        (x0 + pad, min(y0 + pad + th, h - 1)),
        cv2.FONT_HERSHEY_SIMPLEX,
        font_scale,
        ink,
        thickness=font_thickness,
        lineType=cv2.LINE_AA,
    )


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    class_names: Optional[Dict[int, str]] = None,
    show_score: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw boxes + labels on a BGR image and return a copy.

    Detections must already be in the image's pixel space; boxes are rounded
    and clipped here, not earlier.
    """

    cv2 = _import_cv2()
    _check_bgr(image_bgr)

    canvas = image_bgr.copy()
    h, w = canvas.shape[:2]

    for det in detections:
        left, top, right, bottom = _box_pixels(det, w, h)
        color = color_for_class_id(det.class_id)
        cv2.rectangle(canvas, (left, top), (right, bottom), color, thickness=box_thickness)

        text = _label_text(det, class_names, show_score)
        (_, th), baseline = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Above the box when there is room, otherwise tucked inside its top edge.
        tag_top = top - th - baseline
        if tag_top < 0:
            tag_top = top
        _put_tag(
            cv2,
            canvas,
            text,
            (left, tag_top),
            fill=color,
            ink=(255, 255, 255),
            font_scale=font_scale,
            font_thickness=font_thickness,
        )

    return canvas


def draw_fps(image_bgr: np.ndarray, fps: Optional[int], *, font_scale: float = 0.6) -> np.ndarray:
    """Draw an "FPS: n" badge in the top-left corner, in place."""

    cv2 = _import_cv2()
    _check_bgr(image_bgr)
    _put_tag(
        cv2,
        image_bgr,
        f"FPS: {fps if fps is not None else '-'}",
        (10, 10),
        fill=(255, 255, 255),
        ink=(0, 0, 0),
        font_scale=font_scale,
        font_thickness=1,
        pad=8,
    )
    return image_bgr
