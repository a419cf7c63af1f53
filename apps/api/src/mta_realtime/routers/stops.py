"""Stop reference endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from mta_realtime.dependencies import get_stop_store
from mta_realtime.logging import get_logger
from mta_realtime.models.stops import StopReferenceEntry
from mta_realtime.services.stops.loader import ReferenceLoadError
from mta_realtime.services.stops.store import StopIndexStore

logger = get_logger(__name__)

router = APIRouter(tags=["stops"])


class StopIndexStatus(BaseModel):
    source: str
    loaded: bool
    stop_count: int
    rejected_rows: int
    loaded_at: Optional[str] = None
    last_error: Optional[str] = None


@router.get(
    "/stops/{stop_id}",
    response_model=StopReferenceEntry,
    summary="Look up a stop by id",
)
async def get_stop(
    stop_id: str,
    store: StopIndexStore = Depends(get_stop_store),
) -> StopReferenceEntry:
    index = store.current
    if index is None:
        raise HTTPException(status_code=503, detail="Stop reference data not loaded")
    entry = index.get(stop_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown stop: {stop_id}")
    return entry


@router.get("/meta/stops", response_model=StopIndexStatus, summary="Stop index status")
async def stop_index_status(store: StopIndexStore = Depends(get_stop_store)) -> dict[str, Any]:
    return store.get_status()


@router.post(
    "/admin/stops/reload",
    response_model=StopIndexStatus,
    summary="Reload the stop reference table",
)
async def reload_stops(store: StopIndexStore = Depends(get_stop_store)) -> dict[str, Any]:
    """Reload the table and swap it in; the old index stays if loading fails."""
    try:
        await store.reload()
    except ReferenceLoadError as exc:
        logger.warning("Stop table reload failed", source=store.source, error=str(exc))
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return store.get_status()
