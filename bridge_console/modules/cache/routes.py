from fastapi import APIRouter, Depends
from pydantic import BaseModel
from bridge_console.core.dependencies import get_scope, get_query_cache
from bridge_console.core.permissions import Scope
from bridge_console.core.query_cache import QueryCache, RefetchTrigger

router = APIRouter(prefix="/cache", tags=["cache"])


class CacheEvent(BaseModel):
    event: RefetchTrigger


class CacheEventResponse(BaseModel):
    event: RefetchTrigger
    refreshing: int


@router.post("/events", response_model=CacheEventResponse, status_code=202)
async def cache_event(
    body: CacheEvent,
    scope: Scope = Depends(get_scope),
    cache: QueryCache = Depends(get_query_cache)
):
    """Window regained focus or network reconnected: refresh the caller's stale queries in the background"""
    return CacheEventResponse(event=body.event, refreshing=cache.notify(body.event, scope=scope))
