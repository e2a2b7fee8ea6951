import tempfile
import unittest
from pathlib import Path

from yolo_cam.metadata import load_class_names


class TestLoadClassNames(unittest.TestCase):
    def _write(self, text: str) -> str:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "metadata.yaml"
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_mapping_form(self) -> None:
        path = self._write("description: demo\nnames:\n  0: person\n  1: 'bicycle'\nimgsz: [800, 800]\n")
        self.assertEqual(load_class_names(path), {0: "person", 1: "bicycle"})

    def test_list_form(self) -> None:
        path = self._write("names:\n  - cat\n  - \"dog\"\n")
        self.assertEqual(load_class_names(path, num_classes=2), {0: "cat", 1: "dog"})

    def test_missing_ids_rejected(self) -> None:
        path = self._write("names:\n  0: cat\n  2: bird\n")
        with self.assertRaises(ValueError):
            load_class_names(path, num_classes=3)


if __name__ == "__main__":
    unittest.main()
