"""Aggregation state layer.

This package is the single source of truth for how asynchronous, possibly
out-of-order isochrone responses are merged into one consistent set of
per-point results and running totals.
"""

from pyisochrone.state.events import EnginePhase, MergeOutcome, PointStatus, Trigger, TriggerKind
from pyisochrone.state.store import AggregationStore, GenerationSnapshot, PointOutcome, Totals

__all__ = [
    "AggregationStore",
    "EnginePhase",
    "GenerationSnapshot",
    "MergeOutcome",
    "PointOutcome",
    "PointStatus",
    "Totals",
    "Trigger",
    "TriggerKind",
]
