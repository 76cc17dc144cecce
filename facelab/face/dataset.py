from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Protocol, Tuple, Union

import numpy as np

from facelab.config import IMAGE_SUFFIXES
from facelab.utils.image import read_image, to_gray
from facelab.utils.log import get_logger

logger = get_logger(__name__)


class PhotoLike(Protocol):
    image: Optional[np.ndarray]
    path: Optional[str]


class PersonLike(Protocol):
    photos: Mapping[object, PhotoLike]


@dataclass
class Photo:
    """A face photo: an already-decoded image, a file to decode, or both."""

    path: Optional[str] = None
    image: Optional[np.ndarray] = None

    def decode(self) -> Optional[np.ndarray]:
        """Return the in-memory image if present, otherwise decode `path`."""
        if self.image is not None:
            return self.image
        if self.path:
            return read_image(self.path)
        return None


@dataclass
class Person:
    name: str = ""
    photos: Dict[object, Photo] = field(default_factory=dict)


@dataclass
class LabeledSample:
    """A grayscale face matrix tagged with the integer label of its person."""

    image: np.ndarray
    label: int
    source: str = ""


# label -> person
Dataset = Mapping[int, PersonLike]


def is_dataset_valid(dataset: Optional[Dataset]) -> bool:
    """True iff at least one label has at least one photo."""
    if dataset is None:
        return False
    for person in dataset.values():
        photos = getattr(person, "photos", None)
        if photos is not None and len(photos) > 0:
            return True
    return False


def _decode_photo(photo: PhotoLike) -> Optional[np.ndarray]:
    decode = getattr(photo, "decode", None)
    if callable(decode):
        return decode()
    image = getattr(photo, "image", None)
    if image is not None:
        return image
    path = getattr(photo, "path", None)
    return read_image(path) if path else None


def iter_labeled_samples(dataset: Dataset) -> Iterator[LabeledSample]:
    """Yield one grayscale `LabeledSample` per decodable photo in the dataset.

    Persons without photos and photos that cannot be decoded are skipped.
    """
    for label, person in dataset.items():
        photos = getattr(person, "photos", None)
        if not photos:
            continue
        for photo in photos.values():
            source = str(getattr(photo, "path", None) or "<memory>")
            image = _decode_photo(photo)
            if image is None:
                logger.warning(f"Skipping undecodable photo for label {label}: {source}")
                continue
            yield LabeledSample(image=to_gray(image), label=int(label), source=source)


def load_dataset_from_directory(root: Union[str, Path]) -> Tuple[Dict[int, Person], Dict[int, str]]:
    """Build a dataset from a `root/<person>/<image>` tree.

    A person directory whose name is an integer keeps that integer as its label;
    the others are numbered in sorted order after the largest numeric one.
    Returns (dataset, label -> person name).
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Dataset directory not found: {root}")

    person_dirs = sorted(p for p in root.iterdir() if p.is_dir())
    numeric = [int(p.name) for p in person_dirs if p.name.isdigit()]
    next_label = max(numeric) + 1 if numeric else 0

    dataset: Dict[int, Person] = {}
    names: Dict[int, str] = {}
    for person_dir in person_dirs:
        if person_dir.name.isdigit():
            label = int(person_dir.name)
        else:
            label = next_label
            next_label += 1

        # case-insensitive so 0001.JPG is not missed
        image_files = sorted(
            p for p in person_dir.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
        )
        person = Person(name=person_dir.name)
        for i, img_file in enumerate(image_files):
            person.photos[i] = Photo(path=str(img_file))
        dataset[label] = person
        names[label] = person_dir.name
        logger.info(f"{person_dir.name}: label {label}, {len(image_files)} images")

    return dataset, names
