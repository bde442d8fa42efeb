"""
Scoped, cached queries for one identity.

ConsoleQueries binds a Scope to the shared QueryCache. Each method builds the
cache key from the query kind, the scope and the arguments, and runs the
synchronous Supabase service in the threadpool on a miss. When the scope may
not query at all (anonymous, or a client user without a client) the query is
never issued and None is returned. The list methods take refresh=True to
refetch a cached page now, superseding any fetch already in flight.
"""

from datetime import date
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool
from supabase import Client

from bridge_console.core.pagination import Page
from bridge_console.core.permissions import Scope
from bridge_console.core.query_cache import QueryCache
from bridge_console.modules.clients.schemas import ClientFilters, ClientResponse
from bridge_console.modules.clients.service import ClientService
from bridge_console.modules.dashboard.schemas import DashboardResponse
from bridge_console.modules.dashboard.service import DashboardService
from bridge_console.modules.equipment.schemas import EquipmentFilters, EquipmentResponse, EquipmentStats
from bridge_console.modules.equipment.service import EquipmentService
from bridge_console.modules.licenses.schemas import LicenseFilters, LicenseResponse, LicenseStats
from bridge_console.modules.licenses.service import LicenseService


class ConsoleQueries:
    def __init__(self, scope: Scope, cache: QueryCache, supabase: Client, service_supabase: Optional[Client] = None):
        self.scope = scope
        self.cache = cache
        self.clients = ClientService(supabase, service_supabase)
        self.licenses = LicenseService(supabase)
        self.equipment = EquipmentService(supabase)
        self.dashboard = DashboardService(supabase)

    async def _cached(self, kind: str, func, *args, policy=None, refresh: bool = False):
        key = QueryCache.make_key(kind, self.scope, *args)
        if refresh and self.scope.can_query and key in self.cache:
            return await self.cache.refetch(key)
        return await self.cache.fetch(
            key,
            lambda: run_in_threadpool(func, self.scope, *args),
            policy=policy,
            enabled=self.scope.can_query,
        )

    async def list_clients(
        self, filters: ClientFilters, page: int = 1, limit: int = 10, refresh: bool = False
    ) -> Optional[Page[ClientResponse]]:
        return await self._cached("clients", self.clients.list_clients, filters, page, limit, refresh=refresh)

    async def get_client(self, client_id: str) -> Optional[ClientResponse]:
        return await self._cached("client", self.clients.get_client, client_id)

    async def list_sectors(self) -> Optional[List[str]]:
        # Sectors rarely change: never stale, only realtime invalidation refreshes them
        policy = self.cache.policy.with_changes(stale_window=None)
        return await self._cached("sectors", self.clients.list_sectors, policy=policy)

    async def list_licenses(
        self, filters: LicenseFilters, page: int = 1, limit: int = 10, refresh: bool = False
    ) -> Optional[Page[LicenseResponse]]:
        return await self._cached("licenses", self.licenses.list_licenses, filters, page, limit, refresh=refresh)

    async def get_license(self, license_id: str) -> Optional[LicenseResponse]:
        return await self._cached("license", self.licenses.get_license, license_id)

    async def license_stats(self, today: Optional[date] = None) -> Optional[LicenseStats]:
        today = today or date.today()
        return await self._cached("license_stats", self.licenses.license_stats, today)

    async def list_equipment(
        self, filters: EquipmentFilters, page: int = 1, limit: int = 10, refresh: bool = False
    ) -> Optional[Page[EquipmentResponse]]:
        return await self._cached("equipment", self.equipment.list_equipment, filters, page, limit, refresh=refresh)

    async def get_equipment(self, equipment_id: str) -> Optional[EquipmentResponse]:
        return await self._cached("equipment_item", self.equipment.get_equipment, equipment_id)

    async def equipment_stats(self) -> Optional[EquipmentStats]:
        return await self._cached("equipment_stats", self.equipment.equipment_stats)

    async def get_dashboard(self) -> Optional[DashboardResponse]:
        return await self._cached("dashboard", self.dashboard.get_dashboard)

    async def delete_client(self, client_id: str) -> bool:
        deleted = await run_in_threadpool(self.clients.delete_client, self.scope, client_id)
        for kind in ("clients", "client", "sectors", "licenses", "license", "license_stats",
                     "equipment", "equipment_item", "equipment_stats", "dashboard"):
            self.cache.invalidate(kind)
        return deleted
