"""Deterministic merge policy.

This module contains *no* payload parsing; the fetcher/Pydantic boundary is
responsible for producing validated results.
"""

from __future__ import annotations

from collections.abc import Mapping

from pyisochrone.state.events import MergeOutcome, PointStatus


def classify_response(
    *,
    current_generation: int,
    response_generation: int,
    point_status: PointStatus | None,
) -> MergeOutcome | None:
    """Decide whether a response may be merged.

    Returns ``None`` when it may, otherwise the reason it is dropped:

    - another generation started since the request was issued: ``STALE``
    - the point is not part of the current snapshot: ``STALE``
    - the point already has an outcome in this generation: ``DUPLICATE``
    """
    if response_generation != current_generation:
        return MergeOutcome.STALE
    if point_status is None:
        return MergeOutcome.STALE
    if point_status != PointStatus.PENDING:
        return MergeOutcome.DUPLICATE
    return None


def is_settled(statuses: Mapping[int, PointStatus]) -> bool:
    """A generation is settled once no point is still pending."""
    return all(status != PointStatus.PENDING for status in statuses.values())
