import logging
from concurrent.futures import ThreadPoolExecutor
from supabase import Client
from bridge_console.modules.dashboard.schemas import DashboardAlert, DashboardStats, DashboardResponse
from bridge_console.core.exceptions import PermissionDeniedError, QueryError
from bridge_console.core.permissions import Scope
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

ALERTS_LIMIT = 10
ALERT_REQUIRED_FIELDS = ("id", "item_name", "alert_type", "alert_level", "status")


class DashboardService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_dashboard(self, scope: Scope) -> DashboardResponse:
        """Alerts plus summary counters. A failing counter query degrades to zero."""
        if not scope.can_query:
            raise PermissionDeniedError("No data access for this account")
        alerts = self.get_alerts(scope)
        stats = self._all_data_stats() if scope.can_view_all else self._client_stats(scope.owner_filter)
        return DashboardResponse(stats=stats, alerts=alerts)

    def get_alerts(self, scope: Scope) -> List[DashboardAlert]:
        view = "v_dashboard_alerts" if scope.can_view_all else "v_client_dashboard"
        query = self.supabase.table(view).select("*")
        if scope.is_restricted:
            query = query.eq("client_id", scope.owner_filter)
        try:
            result = query.order("alert_date", desc=False).limit(ALERTS_LIMIT).execute()
        except Exception as e:
            logger.error(f"Error fetching dashboard alerts: {e}")
            raise QueryError.from_exception(e, "Error fetching alerts")

        return [
            DashboardAlert(**alert) for alert in (result.data or [])
            if alert and all(alert.get(field) for field in ALERT_REQUIRED_FIELDS)
        ]

    def _all_data_stats(self) -> DashboardStats:
        counts = self._settled([
            lambda: self._count("clients"),
            lambda: self._count("licenses"),
            lambda: self._count("licenses", status="expired"),
            lambda: self._count("licenses", status="about_to_expire"),
            lambda: self._count("equipment"),
            lambda: self._count("equipment", status="obsolete"),
            lambda: self._count("equipment", status="soon_obsolete"),
        ])
        return self._summarize(*counts)

    def _client_stats(self, client_id: str) -> DashboardStats:
        counts = self._settled([
            lambda: self._count("licenses", client_id),
            lambda: self._count("licenses", client_id, status="expired"),
            lambda: self._count("licenses", client_id, status="about_to_expire"),
            lambda: self._count("equipment", client_id),
            lambda: self._count("equipment", client_id, status="obsolete"),
            lambda: self._count("equipment", client_id, status="soon_obsolete"),
        ])
        # A client user sees exactly one client: their own
        return self._summarize(1, *counts)

    def _count(self, table: str, client_id: Optional[str] = None, status: Optional[str] = None) -> int:
        """Exact row count from a head request; no rows are transferred"""
        query = self.supabase.table(table).select("*", count="exact", head=True)
        if client_id is not None:
            query = query.eq("client_id", client_id)
        if status is not None:
            query = query.eq("status", status)
        return query.execute().count or 0

    @staticmethod
    def _summarize(clients: int, licenses: int, expired: int, about_to_expire: int,
                   equipment: int, obsolete: int, soon_obsolete: int) -> DashboardStats:
        return DashboardStats(
            total_clients=clients,
            total_licenses=licenses,
            total_equipment=equipment,
            expired_licenses=expired,
            about_to_expire_licenses=about_to_expire,
            obsolete_equipment=obsolete,
            soon_obsolete_equipment=soon_obsolete,
        )

    @staticmethod
    def _settled(calls: List[Callable[[], int]]) -> List[int]:
        """Run calls concurrently; a failed call counts as zero instead of raising."""
        results: List[int] = []
        with ThreadPoolExecutor(max_workers=len(calls)) as pool:
            futures = [pool.submit(call) for call in calls]
            for future in futures:
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.warning(f"Dashboard counter query failed, counting as zero: {e}")
                    results.append(0)
        return results
