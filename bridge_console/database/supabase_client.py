from typing import Callable
from supabase import create_client, acreate_client, Client, AsyncClient
from supabase.client import ClientOptions
from bridge_console.config.settings import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None
    _async_client: AsyncClient = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Only used for client deletes, which are permission-checked first."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @staticmethod
    def create_session_client() -> Client:
        """Fresh client for one sign-in/sign-out call.

        Auth events rewrite the Authorization header of the client that emits
        them, so they must never run on the shared client.
        """
        return create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(persist_session=False, auto_refresh_token=False),
        )

    @classmethod
    async def get_async_client(cls) -> AsyncClient:
        """Async client; realtime channels are only available on it."""
        if cls._async_client is None:
            cls._async_client = await acreate_client(settings.supabase_url, settings.supabase_key)
        return cls._async_client


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()


def get_session_client_factory() -> Callable[[], Client]:
    return SupabaseClient.create_session_client
