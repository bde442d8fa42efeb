import logging
from supabase import Client
from bridge_console.modules.clients.schemas import ClientFilters, ClientResponse
from bridge_console.core.exceptions import NotFoundError, PermissionDeniedError, QueryError
from bridge_console.core.pagination import Page
from bridge_console.core.permissions import Scope
from bridge_console.core.scoped_query import restrict_to_scope, execute_page, execute_rows
from typing import List, Optional

logger = logging.getLogger(__name__)

# A client user's owning entity is the client row itself.
OWNER_KEY = "id"


class ClientService:
    def __init__(self, supabase: Client, service_supabase: Optional[Client] = None):
        self.supabase = supabase
        # Deletes go through the service-role client once clients:delete is checked
        self.service_supabase = service_supabase or supabase

    def list_clients(self, scope: Scope, filters: ClientFilters, page: int = 1, limit: int = 10) -> Page[ClientResponse]:
        """List clients visible to the scope, filtered by name and sector"""
        query = self.supabase.table("clients").select("*", count="exact")
        query = restrict_to_scope(query, scope, OWNER_KEY)

        if filters.search:
            query = query.ilike("name", f"%{filters.search}%")
        if filters.sector:
            query = query.eq("sector", filters.sector)

        query = query.order("name", desc=False)
        rows, count = execute_page(query, page, limit, "clients")
        return Page[ClientResponse].build([ClientResponse(**row) for row in rows], count, page, limit)

    def get_client(self, scope: Scope, client_id: str) -> ClientResponse:
        """Get a single client by ID"""
        query = self.supabase.table("clients").select("*").eq("id", client_id)
        query = restrict_to_scope(query, scope, OWNER_KEY)
        rows = execute_rows(query.limit(1), f"client {client_id}")
        if not rows:
            raise NotFoundError("Client not found")
        return ClientResponse(**rows[0])

    def list_sectors(self, scope: Scope) -> List[str]:
        """Distinct, sorted sectors of the visible clients"""
        query = self.supabase.table("clients").select("sector").not_.is_("sector", "null")
        query = restrict_to_scope(query, scope, OWNER_KEY)
        rows = execute_rows(query, "sectors")
        return sorted({row["sector"] for row in rows if row.get("sector")})

    def delete_client(self, scope: Scope, client_id: str) -> bool:
        """Delete a client (cascades to its licenses and equipment)"""
        if not scope.can("delete", "clients"):
            raise PermissionDeniedError("Insufficient permissions. Required: clients:delete")
        try:
            result = self.service_supabase.table("clients")\
                .delete()\
                .eq("id", client_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting client {client_id}: {e}")
            raise QueryError.from_exception(e, "Error deleting client")

        if not result.data:
            raise NotFoundError("Client not found")
        logger.info(f"Deleted client {client_id}")
        return True
