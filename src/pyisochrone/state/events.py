"""Normalized engine events and state enums.

Every input change (registry, parameters, explicit refresh) is converted
into a :class:`Trigger` before it reaches the debounce queue.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TriggerKind(StrEnum):
    POINT_ADDED = "point_added"
    POINTS_CLEARED = "points_cleared"
    BUDGET_CHANGED = "budget_changed"
    REFRESH = "refresh"


class EnginePhase(StrEnum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    FETCHING = "fetching"


class PointStatus(StrEnum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class MergeOutcome(StrEnum):
    """What the store did with an incoming response."""

    ACCEPTED = "accepted"
    FAILED = "failed"
    # Belongs to an older generation (or a point outside the snapshot).
    STALE = "stale"
    # The point already has an outcome in this generation.
    DUPLICATE = "duplicate"


class Trigger(BaseModel):
    """A normalized input change waiting in the debounce queue."""

    model_config = ConfigDict(frozen=True)

    kind: TriggerKind
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    point_id: int | None = None
    distance_m: int | None = None
