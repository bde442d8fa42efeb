from fastapi import APIRouter, Depends, Query
from bridge_console.modules.equipment.schemas import EquipmentFilters, EquipmentResponse, EquipmentStats
from bridge_console.modules.equipment.service import EquipmentService
from bridge_console.core.dependencies import require_permission, get_console_queries
from bridge_console.core.exceptions import NotFoundError
from bridge_console.core.pagination import Page
from bridge_console.core.queries import ConsoleQueries
from bridge_console.config.settings import settings
from typing import Optional

router = APIRouter(prefix="/equipment", tags=["equipment"])


@router.get("", response_model=Page[EquipmentResponse])
async def list_equipment(
    search: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    refresh: bool = False,
    _=Depends(require_permission("equipment:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """List equipment ordered by estimated obsolescence date"""
    filters = EquipmentFilters(search=search, type=type, status=status, client_id=client_id)
    result = await queries.list_equipment(filters, page, limit, refresh=refresh)
    return result or Page.empty(page, limit)


@router.get("/stats", response_model=EquipmentStats)
async def equipment_stats(
    _=Depends(require_permission("reports:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """Counts by type and status"""
    stats = await queries.equipment_stats()
    return stats or EquipmentService.summarize([])


@router.get("/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment(
    equipment_id: str,
    _=Depends(require_permission("equipment:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """Get equipment by ID"""
    equipment = await queries.get_equipment(equipment_id)
    if equipment is None:
        raise NotFoundError("Equipment not found")
    return equipment
