import logging
from supabase import Client
from bridge_console.modules.equipment.schemas import (
    EquipmentFilters, EquipmentResponse, EquipmentStats, EquipmentChartData,
    EQUIPMENT_TYPES, EQUIPMENT_STATUSES
)
from bridge_console.core.exceptions import NotFoundError
from bridge_console.core.pagination import Page
from bridge_console.core.permissions import Scope
from bridge_console.core.scoped_query import restrict_to_scope, execute_page, execute_rows, fetch_all_rows
from bridge_console.core.stats import count_by, chart_entries
from typing import List

logger = logging.getLogger(__name__)

EQUIPMENT_VIEW = "v_equipment_with_client"
OWNER_KEY = "client_id"


class EquipmentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_equipment(self, scope: Scope, filters: EquipmentFilters, page: int = 1, limit: int = 10) -> Page[EquipmentResponse]:
        """List equipment visible to the scope, closest obsolescence first (unknown dates last)"""
        query = self.supabase.table(EQUIPMENT_VIEW).select("*", count="exact")
        query = restrict_to_scope(query, scope, OWNER_KEY)

        if filters.client_id:
            query = query.eq("client_id", filters.client_id)
        if filters.search:
            query = query.ilike("name", f"%{filters.search}%")
        if filters.type in EQUIPMENT_TYPES:
            query = query.eq("type", filters.type)
        if filters.status in EQUIPMENT_STATUSES:
            query = query.eq("status", filters.status)

        query = query.order("estimated_obsolescence_date", desc=False, nullsfirst=False)
        rows, count = execute_page(query, page, limit, "equipment")
        return Page[EquipmentResponse].build([EquipmentResponse(**row) for row in rows], count, page, limit)

    def get_equipment(self, scope: Scope, equipment_id: str) -> EquipmentResponse:
        """Get a single piece of equipment by ID"""
        query = self.supabase.table(EQUIPMENT_VIEW).select("*").eq("id", equipment_id)
        query = restrict_to_scope(query, scope, OWNER_KEY)
        rows = execute_rows(query.limit(1), f"equipment {equipment_id}")
        if not rows:
            raise NotFoundError("Equipment not found")
        return EquipmentResponse(**rows[0])

    def equipment_stats(self, scope: Scope) -> EquipmentStats:
        """Counts by type and by status"""
        rows = fetch_all_rows(
            lambda: restrict_to_scope(self.supabase.table("equipment").select("type, status, client_id"), scope, OWNER_KEY),
            "equipment stats"
        )
        return self.summarize(rows)

    @staticmethod
    def summarize(rows: List[dict]) -> EquipmentStats:
        valid = [row for row in rows if row.get("type") and row.get("status")]
        total = len(valid)
        by_type = count_by(valid, "type", EQUIPMENT_TYPES)
        by_status = count_by(valid, "status", EQUIPMENT_STATUSES)

        return EquipmentStats(
            total=total,
            by_type=by_type,
            by_status=by_status,
            chart_data=EquipmentChartData(
                types=chart_entries(by_type, total),
                statuses=chart_entries(by_status, total)
            )
        )
