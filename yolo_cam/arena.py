from __future__ import annotations

import logging
from typing import Any, List, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class FrameArena:
    """
    Scratch scope for the intermediates of a single frame.

    Everything registered with `track()` is dropped together when the arena is
    released. Objects exposing `close()` or `release()` (device buffers, capture
    handles, ...) get that called too. Use it as a context manager so release
    happens on success, early return and exceptions alike:

        with FrameArena() as arena:
            blob = arena.track(preprocess(frame))
            ...

    A closer that raises does not stop the others; the first such error is
    re-raised once every tracked object has been visited.
    """

    def __init__(self) -> None:
        self._items: List[Any] = []
        self.released = False
        self.total_tracked = 0

    @property
    def tracked_count(self) -> int:
        return len(self._items)

    def track(self, obj: T) -> T:
        if self.released:
            raise RuntimeError("Cannot track objects in a released arena.")
        self._items.append(obj)
        self.total_tracked += 1
        return obj

    def release(self) -> None:
        if self.released:
            return
        items, self._items = self._items, []
        self.released = True

        first_error: Optional[Exception] = None
        for obj in reversed(items):
            for name in ("close", "release"):
                fn = getattr(obj, name, None)
                if callable(fn):
                    try:
                        fn()
                    except Exception as exc:
                        if first_error is None:
                            first_error = exc
                    break
        items.clear()

        if first_error is not None:
            raise first_error

    def __enter__(self) -> "FrameArena":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.release()
        except Exception as release_exc:
            if exc_type is None:
                raise
            # Keep the in-flight error; the closer failure is only reported.
            logger.warning("Arena release failed while handling %s: %s", exc_type.__name__, release_exc)
