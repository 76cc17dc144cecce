from __future__ import annotations

from pathlib import Path

import sys

import cv2
import numpy as np
import pytest

# Ensure repo root is on sys.path so tests can import `facelab` and `face_recognizer` without installing.
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


class _DummyEngine:
    """Records every call; `save` writes a small file so existence checks behave."""

    def __init__(self, variant, predict_result=(7, 12.5)):
        self.variant = variant
        self.calls = []
        self.trained_samples = []
        self.trained_labels = []
        self.predicted = []
        self.predict_result = predict_result
        self.fail_on = None

    def _maybe_fail(self, name):
        if self.fail_on == name:
            raise RuntimeError(f"engine {name} failed")

    def train(self, samples, labels):
        self.calls.append("train")
        self._maybe_fail("train")
        self.trained_samples = list(samples)
        self.trained_labels = list(labels)

    def update(self, samples, labels):
        self.calls.append("update")
        self._maybe_fail("update")
        self.trained_samples.extend(samples)
        self.trained_labels.extend(labels)

    def predict(self, sample):
        self.calls.append("predict")
        self.predicted.append(sample)
        return self.predict_result

    def save(self, path):
        self.calls.append("save")
        self._maybe_fail("save")
        Path(path).write_bytes(b"model:" + self.variant.name.encode())

    def load(self, path):
        self.calls.append("load")


@pytest.fixture()
def engines():
    """List of dummy engines created so far, newest last."""
    return []


@pytest.fixture()
def engine_factory(engines):
    def _factory(variant):
        engine = _DummyEngine(variant)
        engines.append(engine)
        return engine

    return _factory


def write_image(path: Path, width: int, height: int, value: int = 128, channels: int = 3) -> Path:
    if channels == 1:
        img = np.full((height, width), value, dtype=np.uint8)
    else:
        img = np.full((height, width, channels), value, dtype=np.uint8)
    path.parent.mkdir(parents=True, exist_ok=True)
    assert cv2.imwrite(str(path), img), f"failed to write {path}"
    return path


@pytest.fixture()
def image_writer(tmp_path: Path):
    def _write(name: str, width: int = 16, height: int = 16, value: int = 128, channels: int = 3) -> Path:
        return write_image(tmp_path / "images" / name, width, height, value=value, channels=channels)

    return _write
