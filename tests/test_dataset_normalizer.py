from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from facelab.face.dataset import (
    Person,
    Photo,
    is_dataset_valid,
    iter_labeled_samples,
    load_dataset_from_directory,
)
from facelab.face.normalizer import CanonicalSize, compute_canonical_size, resize_all, resize_to
from facelab.utils.image import read_image, to_gray


def test_dataset_validity():
    assert not is_dataset_valid(None)
    assert not is_dataset_valid({})
    assert not is_dataset_valid({1: Person(name="a"), 2: Person(name="b")})

    person = Person(name="c", photos={0: Photo(image=np.zeros((4, 4), dtype=np.uint8))})
    assert is_dataset_valid({1: Person(name="a"), 3: person})


def test_canonical_size_is_min_per_axis():
    images = [
        np.zeros((40, 10), dtype=np.uint8),  # h=40, w=10
        np.zeros((20, 30), dtype=np.uint8),  # h=20, w=30
        np.zeros((25, 25, 3), dtype=np.uint8),
    ]
    size = compute_canonical_size(images)
    # Not the smallest single image: width comes from one sample, height from another.
    assert size == CanonicalSize(width=10, height=20)
    assert size.dsize == (10, 20)


def test_canonical_size_rejects_empty_batch():
    with pytest.raises(ValueError):
        compute_canonical_size([])


def test_resize_to_and_resize_all():
    size = CanonicalSize(width=8, height=6)
    img = np.arange(12 * 10, dtype=np.uint8).reshape(12, 10)
    out = resize_to(img, size)
    assert out.shape == (6, 8)

    same = np.zeros((6, 8), dtype=np.uint8)
    assert resize_to(same, size) is same

    batch = resize_all([img, same, np.zeros((30, 9), dtype=np.uint8)], size)
    assert [b.shape for b in batch] == [(6, 8)] * 3


def test_to_gray_handles_channel_layouts():
    assert to_gray(np.zeros((5, 7), dtype=np.uint8)).shape == (5, 7)
    assert to_gray(np.zeros((5, 7, 1), dtype=np.uint8)).shape == (5, 7)
    assert to_gray(np.zeros((5, 7, 3), dtype=np.uint8)).shape == (5, 7)
    assert to_gray(np.zeros((5, 7, 4), dtype=np.uint8)).shape == (5, 7)

    with pytest.raises(ValueError):
        to_gray(np.zeros((2, 2, 2, 2), dtype=np.uint8))


def test_to_gray_rejects_two_channel_input():
    with pytest.raises(ValueError, match="shape"):
        to_gray(np.zeros((5, 7, 2), dtype=np.uint8))


def test_to_gray_scales_16bit_by_fixed_shift():
    # Same grey level must map to the same uint8 value whatever else is in the image.
    dim = np.full((4, 4), 0x4000, dtype=np.uint16)
    mixed = dim.copy()
    mixed[0, 0] = 0xFFFF

    assert to_gray(dim).dtype == np.uint8
    assert int(to_gray(dim)[1, 1]) == 0x40
    assert int(to_gray(mixed)[1, 1]) == 0x40
    assert int(to_gray(mixed)[0, 0]) == 0xFF
    assert to_gray(np.full((3, 5, 3), 0x8000, dtype=np.uint16)).shape == (3, 5)

    with pytest.raises(ValueError, match="dtype"):
        to_gray(np.zeros((4, 4), dtype=np.float32))


def test_read_image_missing_file(tmp_path: Path):
    assert read_image(tmp_path / "nope.png") is None
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    assert read_image(bad) is None


def test_iter_labeled_samples_prefers_memory_image_and_skips_bad(tmp_path: Path, image_writer):
    on_disk = image_writer("a.png", width=12, height=10)
    in_memory = np.full((5, 6, 3), 9, dtype=np.uint8)
    dataset = {
        1: Person(
            name="one",
            photos={
                "x": Photo(path=str(on_disk)),
                "y": Photo(path=str(tmp_path / "missing.png")),
            },
        ),
        2: Person(name="two", photos={"z": Photo(path=str(tmp_path / "ignored.png"), image=in_memory)}),
    }

    samples = list(iter_labeled_samples(dataset))
    assert [s.label for s in samples] == [1, 2]
    assert samples[0].image.shape == (10, 12)
    assert samples[0].source == str(on_disk)
    assert samples[1].image.shape == (5, 6)


def test_iter_labeled_samples_skips_missing_persons():
    dataset = {
        1: None,
        2: Person(name="empty"),
        3: Person(name="ok", photos={0: Photo(image=np.zeros((4, 6), dtype=np.uint8))}),
    }
    assert is_dataset_valid(dataset)

    samples = list(iter_labeled_samples(dataset))
    assert [s.label for s in samples] == [3]


def test_load_dataset_from_directory(tmp_path: Path, image_writer):
    root = tmp_path / "images"
    image_writer("alice/1.png")
    image_writer("alice/2.JPG")
    (root / "alice" / "notes.txt").write_text("skip me")
    image_writer("5/a.png")
    image_writer("bob/a.png")
    (root / "empty").mkdir()

    dataset, names = load_dataset_from_directory(root)

    assert names == {5: "5", 6: "alice", 7: "bob", 8: "empty"}
    assert len(dataset[6].photos) == 2
    assert len(dataset[5].photos) == 1
    assert len(dataset[8].photos) == 0
    assert is_dataset_valid(dataset)

    with pytest.raises(FileNotFoundError):
        load_dataset_from_directory(tmp_path / "missing")
