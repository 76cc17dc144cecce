"""Model lifecycle: variant selection, training, incremental update, prediction, reset.

One `ModelLifecycleManager` owns the single `ModelState` of the application: the
active variant, the recognition engine bound to it, the trained flag, the model
file and the canonical size fixed-size variants were trained at. Every mutation
happens under the exclusive side of a read/write lock; predictions share it.
"""

from __future__ import annotations

import math

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import cv2
import numpy as np

from facelab.config import DEFAULT_VARIANT, MODEL_FILE_NAME, UNKNOWN_LABEL
from facelab.face.dataset import Dataset, is_dataset_valid, iter_labeled_samples
from facelab.face.engine import RecognitionEngine, create_engine
from facelab.face.errors import (
    CanonicalSizeUnavailableError,
    ConfigurationError,
    UnsupportedOperationError,
)
from facelab.face.normalizer import CanonicalSize, compute_canonical_size, resize_all, resize_to
from facelab.face.variant import Variant
from facelab.utils.image import read_image, to_gray
from facelab.utils.locks import ReadWriteLock
from facelab.utils.log import get_logger

logger = get_logger(__name__)


@dataclass
class LifecycleConfig:
    # Directory holding the model file; created on first save.
    storage_root: Optional[Union[str, Path]] = None
    # Variant the model on disk (if any) was trained with.
    variant: Union[Variant, str, None] = DEFAULT_VARIANT
    model_filename: str = MODEL_FILE_NAME
    # Interpolation used when fixed-size variants resize faces.
    interpolation: int = cv2.INTER_LINEAR


@dataclass
class ModelState:
    """Live state owned by `ModelLifecycleManager`; read it, never assign to it."""

    variant: Variant
    model_path: Path
    engine: RecognitionEngine
    trained: bool = False
    # Size fixed-size variants were trained at in this process; None = unavailable.
    canonical_size: Optional[CanonicalSize] = None


@dataclass(frozen=True)
class Prediction:
    label: int
    # Engine distance, lower is closer. NaN when no model is available.
    confidence: float

    @classmethod
    def unknown(cls) -> "Prediction":
        return cls(label=UNKNOWN_LABEL, confidence=float("nan"))

    @property
    def is_known(self) -> bool:
        return self.label != UNKNOWN_LABEL and not math.isnan(self.confidence)


EngineFactory = Callable[[Variant], RecognitionEngine]


class ModelLifecycleManager:
    """
    Owns the face recognition model and keeps the file on disk consistent with the
    in-memory variant.

    Flow:
    1. acquire(variant): switch variant (resetting the model) and load the model file if present
    2. train(dataset): full retrain, or reset when the dataset has no photos
    3. incremental_train(path, label): LBPH only, update or bootstrap from one image
    4. predict(image): (label, confidence), or Prediction.unknown() when untrained
    """

    def __init__(self, config: LifecycleConfig, engine_factory: Optional[EngineFactory] = None):
        """
        Args:
            config: storage root, initial variant and model file name
            engine_factory: builds the recognition engine for a variant (cv2.face by default)

        Raises:
            ConfigurationError: storage root or variant missing/invalid
        """
        if config is None or not config.storage_root:
            raise ConfigurationError("storage_root must be set")
        if config.variant is None:
            raise ConfigurationError("variant must be set")
        variant = Variant.parse(config.variant)

        self.config = config
        self._engine_factory = engine_factory or create_engine
        self._lock = ReadWriteLock()
        self._state = ModelState(
            variant=variant,
            model_path=Path(config.storage_root) / config.model_filename,
            engine=self._engine_factory(variant),
        )
        self._load_if_present()

    # ------------------------------------------------------------------ accessors

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def variant(self) -> Variant:
        return self._state.variant

    @property
    def is_trained(self) -> bool:
        return self._state.trained

    @property
    def model_path(self) -> Path:
        return self._state.model_path

    @property
    def canonical_size(self) -> Optional[CanonicalSize]:
        return self._state.canonical_size

    # ------------------------------------------------------------------ internals

    def _bind(self, variant: Variant) -> None:
        self._state.engine = self._engine_factory(variant)
        self._state.variant = variant
        self._state.canonical_size = None

    def _reset_locked(self) -> None:
        self._state.model_path.unlink(missing_ok=True)
        self._state.trained = False
        self._state.canonical_size = None
        logger.info(f"Model reset ({self._state.variant.name}): {self._state.model_path}")

    def _load_if_present(self) -> None:
        path = self._state.model_path
        if path.exists():
            self._state.engine.load(path)
            self._state.trained = True
            logger.info(f"Loaded {self._state.variant.name} model: {path}")

    def _save_locked(self) -> None:
        path = self._state.model_path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._state.engine.save(path)
        logger.info(f"Model saved: {path}")

    # ------------------------------------------------------------------ operations

    def acquire(self, variant: Union[Variant, str, None]) -> ModelState:
        """Make `variant` the active one and sync with the model file.

        A different variant resets the model first: a model trained by one
        algorithm family is never handed to another. The file, if still present,
        is then (re)loaded and the model marked trained.
        """
        variant = Variant.parse(variant)
        with self._lock.write():
            if variant is not self._state.variant:
                logger.info(f"Variant change {self._state.variant.name} -> {variant.name}")
                self._bind(variant)
                self._reset_locked()
            self._load_if_present()
            return self._state

    def reset(self) -> None:
        """Delete the model file (if any) and mark the model untrained."""
        with self._lock.write():
            self._reset_locked()

    def set_variant(self, variant: Union[Variant, str, None]) -> None:
        """Bind a fresh engine for `variant` and reset the model. None is ignored."""
        if variant is None:
            return
        variant = Variant.parse(variant)
        with self._lock.write():
            logger.info(f"Set variant {self._state.variant.name} -> {variant.name}")
            self._bind(variant)
            self._reset_locked()

    def train(self, dataset: Optional[Dataset]) -> None:
        """Train a fresh model on the whole dataset, replacing any previous one.

        An empty dataset (no person has a photo) resets the model instead.
        Fixed-size variants resize every face to the batch's canonical size,
        which is kept for later predictions in this process.
        """
        with self._lock.write():
            if not is_dataset_valid(dataset):
                logger.info("Dataset has no photos, resetting model")
                self._reset_locked()
                return

            logger.info(f"Training {self._state.variant.name} model")
            images = []
            labels = []
            for sample in iter_labeled_samples(dataset):
                logger.debug(f"Inserting {sample.label}:{sample.source}")
                images.append(sample.image)
                labels.append(sample.label)

            if not images:
                logger.warning("No photo in the dataset could be decoded, resetting model")
                self._reset_locked()
                return

            size: Optional[CanonicalSize] = None
            if self._state.variant.requires_fixed_size:
                size = compute_canonical_size(images)
                logger.info(f"Set size of all faces to {size.width}x{size.height}")
                images = resize_all(images, size, interpolation=self.config.interpolation)

            logger.debug(f"Labels: {labels}")
            self._state.engine.train(images, labels)
            # the engine now holds the new model; keep the size cache in step even if saving fails
            self._state.canonical_size = size
            self._save_locked()
            self._state.trained = True
            logger.info(f"Training done: {len(images)} faces, {len(set(labels))} labels")

    def incremental_train(self, image_path: Union[str, Path], label: int) -> None:
        """Add one face to the model (LBPH only).

        Updates the trained model, or bootstraps a model from this single face
        when none exists. An image that cannot be decoded is ignored.

        Raises:
            UnsupportedOperationError: the active variant cannot be updated incrementally
        """
        with self._lock.write():
            variant = self._state.variant
            if not variant.supports_incremental_update:
                raise UnsupportedOperationError(
                    f"Face recognizer of type {variant.name} cannot be trained incrementally"
                )

            image = read_image(image_path)
            if image is None:
                logger.warning(f"Cannot decode {image_path}, incremental training skipped")
                return

            faces = [to_gray(image)]
            labels = [int(label)]
            if self._state.trained:
                self._state.engine.update(faces, labels)
            else:
                self._state.engine.train(faces, labels)
            self._save_locked()
            self._state.trained = True

    def predict(self, image: np.ndarray) -> Prediction:
        """Identify one face.

        Returns `Prediction.unknown()` (label -1, NaN confidence) when no model is
        trained. The confidence is passed through from the engine unchanged.

        Raises:
            CanonicalSizeUnavailableError: fixed-size model loaded from disk but never
                trained in this process
        """
        with self._lock.read():
            state = self._state
            logger.debug(f"Predict, type = {state.variant.name}")
            if not state.trained:
                return Prediction.unknown()

            face = to_gray(image)
            if state.variant.requires_fixed_size:
                if state.canonical_size is None:
                    raise CanonicalSizeUnavailableError(
                        f"{state.variant.name} model was loaded from {state.model_path} "
                        "without a training run in this process; retrain to predict"
                    )
                face = resize_to(face, state.canonical_size, interpolation=self.config.interpolation)

            label, confidence = state.engine.predict(face)
            logger.debug(f"Label: {label}, confidence: {confidence}")
            return Prediction(label=int(label), confidence=float(confidence))
