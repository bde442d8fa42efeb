from fastapi import APIRouter, Depends
from bridge_console.modules.dashboard.schemas import DashboardResponse, DashboardStats
from bridge_console.core.dependencies import require_permission, get_console_queries
from bridge_console.core.queries import ConsoleQueries

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    _=Depends(require_permission("reports:read")),
    queries: ConsoleQueries = Depends(get_console_queries)
):
    """Upcoming alerts and summary counters for the caller's scope"""
    dashboard = await queries.get_dashboard()
    return dashboard or DashboardResponse(stats=DashboardStats(), alerts=[])
