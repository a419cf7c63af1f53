"""Static stop reference data."""

from mta_realtime.services.stops.loader import (
    ReferenceLoadError,
    RowOutcome,
    StopReferenceLoader,
)
from mta_realtime.services.stops.store import StopIndexStore

__all__ = [
    "ReferenceLoadError",
    "RowOutcome",
    "StopIndexStore",
    "StopReferenceLoader",
]
