from __future__ import annotations


class YoloCamError(Exception):
    """
    Base class for errors raised by the per-frame detection path.

    The frame loop treats every subclass as "skip this frame": it is logged,
    nothing is rendered and the next frame is attempted fresh.
    """


class InvalidFrameError(YoloCamError, ValueError):
    """Frame is empty, not an array, or not shaped (H, W, C)."""


class ShapeMismatchError(YoloCamError, ValueError):
    """Raw model output does not match the expected (1, N, 4 + C) layout."""


class InferenceError(YoloCamError, RuntimeError):
    """The inference service failed to execute the model."""
