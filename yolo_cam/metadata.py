from __future__ import annotations

from typing import Dict, Optional


def load_class_names(metadata_path: str, num_classes: Optional[int] = None) -> Dict[int, str]:
    """
    Load class names from a lightweight `metadata.yaml`.

    Both shapes exported by YOLO tooling are understood:

        names:
          0: person
          1: bicycle

        names:
          - person
          - bicycle

    Parsed by hand so the core does not need PyYAML. When `num_classes` is
    given, every id in [0, num_classes) must be named.
    """

    names: Dict[int, str] = {}
    in_names = False
    next_list_id = 0

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue
            # Any other top-level key ends the names block.
            key = line.split(":", 1)[0].strip()
            if not raw[:1].isspace() and not line.startswith("-") and not key.isdigit():
                break

            if line.startswith("- "):
                names[next_list_id] = line[2:].strip().strip("'").strip('"')
                next_list_id += 1
                continue

            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            if not left.isdigit():
                continue
            names[int(left)] = right.strip().strip("'").strip('"')

    if num_classes is not None:
        missing = [i for i in range(num_classes) if i not in names]
        if missing:
            raise ValueError(f"{metadata_path}: no class name for ids {missing}")

    return names
