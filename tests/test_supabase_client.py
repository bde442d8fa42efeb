import pytest

from bridge_console.config.settings import settings
from bridge_console.database import supabase_client
from bridge_console.database.supabase_client import SupabaseClient


@pytest.fixture
def created(monkeypatch):
    calls = []

    def fake_create_client(url, key, options=None):
        calls.append((key, options))
        return object()

    monkeypatch.setattr(supabase_client, "create_client", fake_create_client)
    monkeypatch.setattr(SupabaseClient, "_client", None)
    monkeypatch.setattr(SupabaseClient, "_service_client", None)
    monkeypatch.setattr(settings, "supabase_key", "anon-key")
    return calls


def test_service_client_uses_service_role_key(created, monkeypatch):
    monkeypatch.setattr(settings, "supabase_service_role_key", "service-key")

    client = SupabaseClient.get_service_client()

    assert client is SupabaseClient.get_service_client()
    assert [key for key, _ in created] == ["service-key"]


def test_service_client_falls_back_to_anon_client(created, monkeypatch):
    monkeypatch.setattr(settings, "supabase_service_role_key", None)

    assert SupabaseClient.get_service_client() is SupabaseClient.get_client()
    assert [key for key, _ in created] == ["anon-key"]


def test_session_clients_are_fresh_and_do_not_persist(created):
    first = SupabaseClient.create_session_client()
    second = SupabaseClient.create_session_client()

    assert first is not second
    options = created[0][1]
    assert options.persist_session is False
    assert options.auto_refresh_token is False
