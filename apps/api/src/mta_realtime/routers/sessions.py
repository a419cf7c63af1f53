"""Polling session control: one background poller per feed."""

from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from mta_realtime.dependencies import get_poller_manager, get_stop_store
from mta_realtime.services.enrichment import EnrichedFeed, enrich
from mta_realtime.services.feeds.poller import PollerManager
from mta_realtime.services.feeds.registry import FeedDomain
from mta_realtime.services.stops.store import StopIndexStore

router = APIRouter(prefix="/sessions", tags=["sessions"])


class SessionStatus(BaseModel):
    domain: str
    key: Optional[str] = None
    running: bool
    poll_count: int
    last_poll_at: Optional[str] = None
    poll_interval_sec: float
    last_state: Optional[str] = None
    last_error: Optional[str] = None
    has_data: bool
    stale: bool


class SessionList(BaseModel):
    sessions: List[SessionStatus]


@router.get("", response_model=SessionList, summary="List polling sessions")
async def list_sessions(manager: PollerManager = Depends(get_poller_manager)) -> dict[str, Any]:
    return {"sessions": manager.sessions()}


@router.post(
    "/{domain}/{key}/start",
    response_model=SessionStatus,
    summary="Start polling a feed",
)
async def start_session(
    domain: FeedDomain,
    key: str,
    manager: PollerManager = Depends(get_poller_manager),
) -> dict[str, Any]:
    poller = await manager.start(domain, key)
    return poller.get_status()


@router.post(
    "/{domain}/{key}/stop",
    response_model=SessionStatus,
    summary="Stop polling a feed",
)
async def stop_session(
    domain: FeedDomain,
    key: str,
    manager: PollerManager = Depends(get_poller_manager),
) -> dict[str, Any]:
    poller = await manager.stop(domain, key)
    if poller is None:
        raise HTTPException(status_code=404, detail=f"No session for {domain.value}/{key}")
    return poller.get_status()


@router.get(
    "/{domain}/{key}/status",
    response_model=SessionStatus,
    summary="Polling session status",
)
async def session_status(
    domain: FeedDomain,
    key: str,
    manager: PollerManager = Depends(get_poller_manager),
) -> dict[str, Any]:
    poller = manager.get(domain, key)
    if poller is None:
        raise HTTPException(status_code=404, detail=f"No session for {domain.value}/{key}")
    return poller.get_status()


@router.get(
    "/{domain}/{key}/latest",
    response_model=EnrichedFeed,
    summary="Latest polled feed, joined with stop data",
)
async def session_latest(
    domain: FeedDomain,
    key: str,
    manager: PollerManager = Depends(get_poller_manager),
    store: StopIndexStore = Depends(get_stop_store),
) -> EnrichedFeed:
    poller = manager.get(domain, key)
    if poller is None:
        raise HTTPException(status_code=404, detail=f"No session for {domain.value}/{key}")
    if poller.latest is None:
        raise HTTPException(status_code=404, detail="No feed data received yet")
    return enrich(poller.latest, store.current)
