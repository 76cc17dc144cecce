from __future__ import annotations

from enum import Enum
from typing import Union

from facelab.face.errors import ConfigurationError


class Variant(Enum):
    """Recognition algorithm family."""

    EIGEN = "EIGEN"
    FISHER = "FISHER"
    LBPH = "LBPH"

    @property
    def supports_incremental_update(self) -> bool:
        return _CAPABILITIES[self][0]

    @property
    def requires_fixed_size(self) -> bool:
        return _CAPABILITIES[self][1]

    @classmethod
    def parse(cls, value: Union["Variant", str, None]) -> "Variant":
        """Accept a Variant or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if value is None:
            raise ConfigurationError("variant cannot be None")
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            names = ", ".join(v.name for v in cls)
            raise ConfigurationError(f"Invalid variant {value!r}, expected one of: {names}") from None


# variant -> (supports_incremental_update, requires_fixed_size)
_CAPABILITIES = {
    Variant.EIGEN: (False, True),
    Variant.FISHER: (False, True),
    Variant.LBPH: (True, False),
}
