from fastapi import APIRouter, Depends, Query
from bridge_console.modules.clients.schemas import ClientFilters, ClientResponse
from bridge_console.core.dependencies import require_permission, get_console_queries
from bridge_console.core.exceptions import NotFoundError
from bridge_console.core.pagination import Page
from bridge_console.core.queries import ConsoleQueries
from bridge_console.config.settings import settings
from typing import List, Optional

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=Page[ClientResponse])
async def list_clients(
    search: Optional[str] = None,
    sector: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    refresh: bool = False,
    _=Depends(require_permission("clients:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """List clients (a client user only ever sees their own)"""
    result = await queries.list_clients(ClientFilters(search=search, sector=sector), page, limit, refresh=refresh)
    return result or Page.empty(page, limit)


@router.get("/sectors", response_model=List[str])
async def list_sectors(
    _=Depends(require_permission("clients:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """Distinct sectors for the filter dropdown"""
    return await queries.list_sectors() or []


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    _=Depends(require_permission("clients:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """Get client by ID"""
    client = await queries.get_client(client_id)
    if client is None:
        raise NotFoundError("Client not found")
    return client


@router.delete("/{client_id}", status_code=204)
async def delete_client(
    client_id: str,
    _=Depends(require_permission("clients:delete")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """Delete client with its licenses and equipment"""
    await queries.delete_client(client_id)
    return None
