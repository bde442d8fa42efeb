from datetime import date
from fastapi import APIRouter, Depends, Query
from bridge_console.modules.licenses.schemas import LicenseFilters, LicenseResponse, LicenseStats
from bridge_console.modules.licenses.service import LicenseService
from bridge_console.core.dependencies import require_permission, get_console_queries
from bridge_console.core.exceptions import NotFoundError
from bridge_console.core.pagination import Page
from bridge_console.core.queries import ConsoleQueries
from bridge_console.config.settings import settings
from typing import Optional

router = APIRouter(prefix="/licenses", tags=["licenses"])


@router.get("", response_model=Page[LicenseResponse])
async def list_licenses(
    search: Optional[str] = None,
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    refresh: bool = False,
    _=Depends(require_permission("licenses:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """List licenses ordered by expiry date"""
    filters = LicenseFilters(search=search, status=status, client_id=client_id)
    result = await queries.list_licenses(filters, page, limit, refresh=refresh)
    return result or Page.empty(page, limit)


@router.get("/stats", response_model=LicenseStats)
async def license_stats(
    _=Depends(require_permission("reports:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """Status breakdown and six-month expiry histogram"""
    stats = await queries.license_stats()
    return stats or LicenseService.summarize([], date.today())


@router.get("/{license_id}", response_model=LicenseResponse)
async def get_license(
    license_id: str,
    _=Depends(require_permission("licenses:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """Get license by ID"""
    license = await queries.get_license(license_id)
    if license is None:
        raise NotFoundError("License not found")
    return license
