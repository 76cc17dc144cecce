class FaceModelError(Exception):
    """Base class for errors raised by the face model lifecycle."""


class ConfigurationError(FaceModelError, ValueError):
    """Variant or storage location missing or invalid."""


class UnsupportedOperationError(FaceModelError):
    """Operation not available for the active variant (e.g. incremental update on EIGEN)."""


class CanonicalSizeUnavailableError(FaceModelError):
    """A fixed-size model is loaded but the size it was trained at is not known in this process.

    Retrain with `ModelLifecycleManager.train` to re-derive it.
    """
