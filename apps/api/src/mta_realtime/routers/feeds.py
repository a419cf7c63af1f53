"""Realtime feed endpoints for subway, LIRR and Metro-North.

Endpoints
---------
GET /api/feeds                      - available feed domains and keys
GET /api/lirr                       - decoded LIRR feed
GET /api/mnr                        - decoded Metro-North feed
GET /api/subways/{feed}             - decoded subway feed for a line group
GET /api/.../enriched               - same, joined with stop reference data

Errors are raised as FeedError subclasses and rendered by the handlers
registered in ``mta_realtime.main``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mta_realtime.dependencies import get_feed_service, get_stop_store
from mta_realtime.models.feed import FeedMessage
from mta_realtime.services.enrichment import EnrichedFeed, enrich
from mta_realtime.services.feeds.registry import FeedDomain
from mta_realtime.services.feeds.service import FeedService
from mta_realtime.services.stops.store import StopIndexStore

router = APIRouter(prefix="/api", tags=["feeds"])


# --- Response schemas ---


class FeedOption(BaseModel):
    key: str
    label: str


class FeedDomainInfo(BaseModel):
    domain: str
    default_key: str
    feeds: list[FeedOption]


class FeedCatalogResponse(BaseModel):
    domains: list[FeedDomainInfo]


async def _enriched(
    service: FeedService,
    store: StopIndexStore,
    domain: FeedDomain,
    key: Optional[str] = None,
) -> EnrichedFeed:
    feed = await service.get_feed(domain, key)
    return enrich(feed, store.current)


# --- Catalog ---


@router.get(
    "/feeds",
    response_model=FeedCatalogResponse,
    summary="List available realtime feeds",
)
async def list_feeds(
    service: FeedService = Depends(get_feed_service),
) -> FeedCatalogResponse:
    return FeedCatalogResponse(
        domains=[
            FeedDomainInfo(
                domain=registry.domain.value,
                default_key=registry.default_key,
                feeds=[FeedOption(key=s.key, label=s.label) for s in registry],
            )
            for registry in service.catalog
        ]
    )


# --- Commuter rail ---


@router.get("/lirr", response_model=FeedMessage, summary="Long Island Rail Road feed")
async def get_lirr_feed(service: FeedService = Depends(get_feed_service)) -> FeedMessage:
    return await service.get_feed(FeedDomain.LIRR)


@router.get("/lirr/enriched", response_model=EnrichedFeed, summary="LIRR feed with stop names")
async def get_lirr_feed_enriched(
    service: FeedService = Depends(get_feed_service),
    store: StopIndexStore = Depends(get_stop_store),
) -> EnrichedFeed:
    return await _enriched(service, store, FeedDomain.LIRR)


@router.get("/mnr", response_model=FeedMessage, summary="Metro-North Railroad feed")
async def get_mnr_feed(service: FeedService = Depends(get_feed_service)) -> FeedMessage:
    return await service.get_feed(FeedDomain.MNR)


@router.get("/mnr/enriched", response_model=EnrichedFeed, summary="MNR feed with stop names")
async def get_mnr_feed_enriched(
    service: FeedService = Depends(get_feed_service),
    store: StopIndexStore = Depends(get_stop_store),
) -> EnrichedFeed:
    return await _enriched(service, store, FeedDomain.MNR)


# --- Subway ---


@router.get("/subways/{feed}", response_model=FeedMessage, summary="Subway line-group feed")
async def get_subway_feed(
    feed: str,
    service: FeedService = Depends(get_feed_service),
) -> FeedMessage:
    return await service.get_feed(FeedDomain.SUBWAY, feed)


@router.get(
    "/subways/{feed}/enriched",
    response_model=EnrichedFeed,
    summary="Subway line-group feed with stop names",
)
async def get_subway_feed_enriched(
    feed: str,
    service: FeedService = Depends(get_feed_service),
    store: StopIndexStore = Depends(get_stop_store),
) -> EnrichedFeed:
    return await _enriched(service, store, FeedDomain.SUBWAY, feed)
