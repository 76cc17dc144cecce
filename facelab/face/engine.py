from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Protocol, Sequence, Tuple, Union

import cv2
import numpy as np

from facelab.face.variant import Variant


class RecognitionEngine(Protocol):
    """Numerical recognizer the lifecycle manager delegates to.

    The model file written by `save` is opaque to callers; only `load` needs to
    understand it.
    """

    def train(self, samples: Sequence[np.ndarray], labels: Sequence[int]) -> None: ...

    def update(self, samples: Sequence[np.ndarray], labels: Sequence[int]) -> None: ...

    def predict(self, sample: np.ndarray) -> Tuple[int, float]: ...

    def save(self, path: Union[str, Path]) -> None: ...

    def load(self, path: Union[str, Path]) -> None: ...


def _face_module():
    face = getattr(cv2, "face", None)
    if face is None:
        raise ImportError("cv2.face is not available; install opencv-contrib-python")
    return face


_CONSTRUCTORS: Dict[Variant, Callable[[], object]] = {
    Variant.EIGEN: lambda: _face_module().EigenFaceRecognizer_create(),
    Variant.FISHER: lambda: _face_module().FisherFaceRecognizer_create(),
    Variant.LBPH: lambda: _face_module().LBPHFaceRecognizer_create(),
}


class OpenCVRecognitionEngine:
    """`RecognitionEngine` backed by the opencv-contrib `cv2.face` recognizers."""

    def __init__(self, variant: Variant):
        self.variant = variant
        self._model = _CONSTRUCTORS[variant]()

    @staticmethod
    def _labels(labels: Sequence[int]) -> np.ndarray:
        return np.asarray(list(labels), dtype=np.int32).reshape(-1, 1)

    def train(self, samples: Sequence[np.ndarray], labels: Sequence[int]) -> None:
        self._model.train(list(samples), self._labels(labels))

    def update(self, samples: Sequence[np.ndarray], labels: Sequence[int]) -> None:
        self._model.update(list(samples), self._labels(labels))

    def predict(self, sample: np.ndarray) -> Tuple[int, float]:
        label, confidence = self._model.predict(sample)
        return int(label), float(confidence)

    def save(self, path: Union[str, Path]) -> None:
        self._model.write(str(path))

    def load(self, path: Union[str, Path]) -> None:
        self._model.read(str(path))


def create_engine(variant: Variant) -> RecognitionEngine:
    """Default engine factory used by `ModelLifecycleManager`."""
    return OpenCVRecognitionEngine(variant)
