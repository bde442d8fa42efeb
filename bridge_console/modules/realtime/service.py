"""
Realtime change forwarding.

One Supabase channel per table per mount. Every subscription must be torn
down with unsubscribe() (or RealtimeHub.close() on shutdown) so no listener
outlives its owner.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List

from supabase import AsyncClient

from bridge_console.core.debounce import Debouncer
from bridge_console.core.query_cache import QueryCache

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Dict[str, Any]], Any]

# Cached query kinds derived from each table
TABLE_QUERY_KINDS = {
    "clients": ("clients", "client", "sectors", "dashboard"),
    "licenses": ("licenses", "license", "license_stats", "dashboard"),
    "equipment": ("equipment", "equipment_item", "equipment_stats", "dashboard"),
}


class TableSubscription:
    def __init__(self, hub: "RealtimeHub", table: str, channel):
        self.hub = hub
        self.table = table
        self.channel = channel
        self.active = True

    async def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        await self.hub._teardown(self)


class RealtimeHub:
    def __init__(self, client: AsyncClient):
        self.client = client
        self._subscriptions: Dict[str, TableSubscription] = {}

    @property
    def tables(self) -> List[str]:
        return list(self._subscriptions)

    async def subscribe(self, table: str, callback: ChangeCallback) -> TableSubscription:
        if table in self._subscriptions:
            raise ValueError(f"Table {table} already has an active subscription")
        channel = self.client.channel(f"{table}_changes")
        channel.on_postgres_changes("*", schema="public", table=table, callback=callback)
        await channel.subscribe()
        subscription = TableSubscription(self, table, channel)
        self._subscriptions[table] = subscription
        logger.info(f"Subscribed to realtime changes on {table}")
        return subscription

    async def close(self) -> None:
        for subscription in list(self._subscriptions.values()):
            await subscription.unsubscribe()

    async def _teardown(self, subscription: TableSubscription) -> None:
        self._subscriptions.pop(subscription.table, None)
        try:
            await self.client.remove_channel(subscription.channel)
        except Exception as e:
            logger.warning(f"Error removing realtime channel for {subscription.table}: {e}")
        logger.info(f"Unsubscribed from realtime changes on {subscription.table}")


class CacheInvalidator:
    """Turns bursts of table changes into one debounced cache invalidation per table."""

    def __init__(self, cache: QueryCache, delay: float):
        self.cache = cache
        self._debouncers = {
            table: Debouncer(delay, self._invalidator(kinds))
            for table, kinds in TABLE_QUERY_KINDS.items()
        }

    def _invalidator(self, kinds: Iterable[str]):
        def invalidate(_payload):
            for kind in kinds:
                self.cache.invalidate(kind)
        return invalidate

    def callback_for(self, table: str) -> ChangeCallback:
        debouncer = self._debouncers[table]

        def on_change(payload: Dict[str, Any]) -> None:
            logger.debug(f"Change on {table}")
            debouncer.push(payload)

        return on_change

    def cancel(self) -> None:
        for debouncer in self._debouncers.values():
            debouncer.cancel()


async def mount_cache_invalidation(hub: RealtimeHub, cache: QueryCache, delay: float) -> CacheInvalidator:
    invalidator = CacheInvalidator(cache, delay)
    for table in TABLE_QUERY_KINDS:
        await hub.subscribe(table, invalidator.callback_for(table))
    return invalidator
