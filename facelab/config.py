# File name of the serialized recognizer under the storage root.
MODEL_FILE_NAME = "trained_model.xml"

# Where the model lives when the caller does not pass a storage root (CLI default).
DEFAULT_STORAGE_ROOT = "data/model"

# Variant used when nothing else is configured; the only one that supports incremental update.
DEFAULT_VARIANT = "LBPH"

# Label reported when no trained model is available.
UNKNOWN_LABEL = -1

# Image files picked up when a dataset is read from a directory tree (matched case-insensitively).
IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".bmp", ".pgm")
