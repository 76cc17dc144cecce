from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np


def read_image(path: Union[str, Path]) -> Optional[np.ndarray]:
    """Decode an image file, returning None when it is missing or unreadable."""
    p = Path(path)
    if not p.is_file():
        return None
    return cv2.imread(str(p), cv2.IMREAD_UNCHANGED)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert a gray, BGR or BGRA matrix (8 or 16 bit) to a single-channel uint8 matrix."""
    arr = np.asarray(image)
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    if arr.ndim not in (2, 3) or (arr.ndim == 3 and arr.shape[2] not in (3, 4)):
        raise ValueError(f"Unsupported image shape {arr.shape}")
    if arr.dtype == np.uint16:
        arr = (arr >> 8).astype(np.uint8)
    elif arr.dtype != np.uint8:
        raise ValueError(f"Unsupported image dtype {arr.dtype}")
    if arr.ndim == 3:
        code = cv2.COLOR_BGRA2GRAY if arr.shape[2] == 4 else cv2.COLOR_BGR2GRAY
        arr = cv2.cvtColor(arr, code)
    return np.ascontiguousarray(arr)
