import logging
from datetime import date
from supabase import Client
from bridge_console.modules.licenses.schemas import (
    LicenseFilters, LicenseResponse, LicenseStats, LicenseChartData, LICENSE_STATUSES
)
from bridge_console.core.exceptions import NotFoundError
from bridge_console.core.pagination import Page
from bridge_console.core.permissions import Scope
from bridge_console.core.scoped_query import restrict_to_scope, execute_page, execute_rows, fetch_all_rows
from bridge_console.core.stats import count_by, chart_entries, monthly_expiry
from typing import List, Optional

logger = logging.getLogger(__name__)

LICENSES_VIEW = "v_licenses_with_client"
OWNER_KEY = "client_id"


class LicenseService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_licenses(self, scope: Scope, filters: LicenseFilters, page: int = 1, limit: int = 10) -> Page[LicenseResponse]:
        """List licenses visible to the scope, soonest expiry first"""
        query = self.supabase.table(LICENSES_VIEW).select("*", count="exact")
        query = restrict_to_scope(query, scope, OWNER_KEY)

        if filters.client_id:
            query = query.eq("client_id", filters.client_id)
        if filters.search:
            query = query.ilike("name", f"%{filters.search}%")
        if filters.status in LICENSE_STATUSES:
            query = query.eq("status", filters.status)

        query = query.order("expiry_date", desc=False)
        rows, count = execute_page(query, page, limit, "licenses")
        return Page[LicenseResponse].build([LicenseResponse(**row) for row in rows], count, page, limit)

    def get_license(self, scope: Scope, license_id: str) -> LicenseResponse:
        """Get a single license by ID"""
        query = self.supabase.table(LICENSES_VIEW).select("*").eq("id", license_id)
        query = restrict_to_scope(query, scope, OWNER_KEY)
        rows = execute_rows(query.limit(1), f"license {license_id}")
        if not rows:
            raise NotFoundError("License not found")
        return LicenseResponse(**rows[0])

    def license_stats(self, scope: Scope, today: Optional[date] = None) -> LicenseStats:
        """Status breakdown, total value and the six-month expiry histogram"""
        today = today or date.today()
        rows = fetch_all_rows(
            lambda: restrict_to_scope(
                self.supabase.table("licenses").select("status, expiry_date, client_id, cost"), scope, OWNER_KEY
            ),
            "license stats"
        )
        return self.summarize(rows, today)

    @staticmethod
    def summarize(rows: List[dict], today: date) -> LicenseStats:
        valid = [row for row in rows if row.get("status") and row.get("expiry_date")]
        total = len(valid)
        by_status = count_by(valid, "status", LICENSE_STATUSES)
        expiry = monthly_expiry(valid, today)
        total_value = round(sum(float(row.get("cost") or 0) for row in valid), 2)

        return LicenseStats(
            total=total,
            by_status=by_status,
            total_value=total_value,
            monthly_expiry=expiry,
            chart_data=LicenseChartData(
                statuses=chart_entries(by_status, total),
                expiry=[bucket for bucket in expiry if bucket.count > 0]
            )
        )
