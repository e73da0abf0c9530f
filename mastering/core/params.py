"""
Numeric helpers shared by stage primitives: parameter validation and
clamping. Validation raises StageRenderFailure so a bad stage
fails its render pass instead of producing garbage.
"""
import math
from typing import Optional

from mastering.errors import StageRenderFailure


def require_finite(stage_name: str, **values: float) -> None:
    """Raise StageRenderFailure if any named value is NaN or infinite."""
    for key, value in values.items():
        try:
            v = float(value)
        except (TypeError, ValueError):
            raise StageRenderFailure(stage_name, f"{key} is not numeric: {value!r}")
        if not math.isfinite(v):
            raise StageRenderFailure(stage_name, f"{key} is not finite: {value!r}")


def require_positive(stage_name: str, **values: float) -> None:
    """Finite and > 0."""
    require_finite(stage_name, **values)
    for key, value in values.items():
        if float(value) <= 0:
            raise StageRenderFailure(stage_name, f"{key} must be > 0, got {value!r}")


def clamp_if_bounds(
    value: float,
    min: Optional[float] = None,
    max: Optional[float] = None,
) -> float:
    """
    Clamp value to [min, max] when bounds are not None.
    If both are None, returns value unchanged.
    """
    v = float(value)
    if min is not None and v < min:
        return min
    if max is not None and v > max:
        return max
    return v
