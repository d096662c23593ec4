"""Base model and coercion helpers for oracle payloads.

Every model parsed from an oracle response inherits from
:class:`IsochroneBaseModel` which provides:

* frozen instances (results are shared between the engine and the sink)
* ``populate_by_name`` so wire names (``total_pop``) and Python names
  (``population``) are both accepted
* a ``raw`` dict capturing the original payload
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def safe_float(value: Any) -> float | None:
    """Convert *value* to a finite float, or ``None``."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(round(parsed))


class IsochroneBaseModel(BaseModel):
    """Base for models built from oracle payloads."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload as received."""
