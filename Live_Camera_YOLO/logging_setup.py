"""
Logging setup.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_path: Optional[Union[str, Path]] = None) -> None:
    level_value = getattr(logging, str(level).upper(), None)
    if not isinstance(level_value, int):
        raise ValueError(f"Unknown log level: {level!r}")

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path))

    logging.basicConfig(level=level_value, format=LOG_FORMAT, handlers=handlers, force=True)
