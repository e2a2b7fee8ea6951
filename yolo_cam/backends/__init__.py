"""
Optional inference services for yolo_cam.

Kept apart from the core so letterbox/decode/NMS stay usable without any
inference runtime installed.
"""

from __future__ import annotations

__all__ = []
