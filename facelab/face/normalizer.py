from __future__ import annotations

import sys

from dataclasses import dataclass
from typing import Iterable, List

import cv2
import numpy as np


@dataclass(frozen=True)
class CanonicalSize:
    width: int
    height: int

    @property
    def dsize(self):
        """(w, h) as expected by cv2.resize."""
        return (int(self.width), int(self.height))


def compute_canonical_size(images: Iterable[np.ndarray]) -> CanonicalSize:
    """Smallest width and smallest height across the batch, per axis independently."""
    width = height = sys.maxsize
    seen = False
    for image in images:
        h, w = np.asarray(image).shape[:2]
        width = min(width, int(w))
        height = min(height, int(h))
        seen = True
    if not seen:
        raise ValueError("cannot compute a canonical size for an empty batch")
    return CanonicalSize(width=width, height=height)


def resize_to(image: np.ndarray, size: CanonicalSize, interpolation: int = cv2.INTER_LINEAR) -> np.ndarray:
    h, w = image.shape[:2]
    if (w, h) == size.dsize:
        return image
    return cv2.resize(image, size.dsize, interpolation=interpolation)


def resize_all(
    images: Iterable[np.ndarray], size: CanonicalSize, interpolation: int = cv2.INTER_LINEAR
) -> List[np.ndarray]:
    return [resize_to(img, size, interpolation=interpolation) for img in images]
