"""Client-side API access with optimistic updates."""

from .reconciler import (
    Outcome,
    RatingView,
    ReactionView,
    ReconciliationStore,
    ReconcileResult,
)
from .transport import RestoPulseClient

__all__ = [
    "Outcome",
    "RatingView",
    "ReactionView",
    "ReconcileResult",
    "ReconciliationStore",
    "RestoPulseClient",
]
