"""Tests for AuthService and the explicit SessionContext."""

from types import SimpleNamespace

import pytest

from bridge_console.core.exceptions import AuthenticationError, NotFoundError, QueryError
from bridge_console.modules.auth.schemas import LoginRequest, RegisterRequest
from bridge_console.modules.auth.service import AuthService, clear_auth_cache
from bridge_console.modules.auth.session import SessionContext

from conftest import FakeAPIError, FakeSupabase


@pytest.fixture(autouse=True)
def fresh_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def auth_db(fake_supabase):
    fake_supabase.tables["profiles"] = [
        {"id": "u-client", "role": "client", "client_id": "C1", "first_name": "Jane"},
        {"id": "u-admin", "role": "admin"},
    ]
    return fake_supabase


@pytest.fixture
def session_clients():
    return []


@pytest.fixture
def auth_service(fake_supabase, session_clients):
    """AuthService whose per-call auth clients are fakes configured like the shared one."""
    def session_client():
        client = FakeSupabase()
        client.auth.sign_up_user = fake_supabase.auth.sign_up_user
        client.auth.sign_in_error = fake_supabase.auth.sign_in_error
        session_clients.append(client)
        return client

    return AuthService(fake_supabase, session_client_factory=session_client)


def test_register_notifies_administrators(fake_supabase, auth_service, session_clients):
    response = auth_service.register(RegisterRequest(
        email="new@acme-it.com", password="secret123", first_name="Ada", last_name="Byron"
    ))

    assert response.user_id == "new-user"
    assert response.requires_admin_validation is True
    assert response.notification_sent is True
    notification = fake_supabase.tables["notifications"][0]
    assert notification["type"] == "new_unverified_user"
    assert notification["related_id"] == "new-user"
    _, payload = session_clients[0].auth.calls[0]
    assert payload["options"]["data"]["first_name"] == "Ada"
    assert fake_supabase.auth.calls == []


def test_register_succeeds_when_notification_fails(fake_supabase, auth_service):
    fake_supabase.failures["notifications"] = "insert denied"

    response = auth_service.register(RegisterRequest(email="new@acme-it.com", password="secret123"))

    assert response.user_id == "new-user"
    assert response.notification_sent is False


def test_register_without_user_asks_for_confirmation(fake_supabase, auth_service):
    fake_supabase.auth.sign_up_user = None

    with pytest.raises(AuthenticationError, match="confirm your email"):
        auth_service.register(RegisterRequest(email="new@acme-it.com", password="secret123"))
    assert "notifications" not in fake_supabase.tables


def test_login_returns_access_token(auth_service):
    token = auth_service.login(LoginRequest(email="jane@acme-it.com", password="pw"))

    assert token.access_token == "token-123"
    assert token.user_id == "u-client"


def test_login_leaves_shared_client_on_anon_key(fake_supabase, auth_service, session_clients):
    auth_service.login(LoginRequest(email="jane@acme-it.com", password="pw"))
    auth_service.login(LoginRequest(email="bob@acme-it.com", password="pw"))

    assert fake_supabase.headers["Authorization"] == "Bearer anon-key"
    assert fake_supabase.auth.session is None
    assert fake_supabase.auth.calls == []
    assert len(session_clients) == 2
    assert session_clients[0].headers["Authorization"] == "Bearer token-123"


def test_login_with_bad_credentials(fake_supabase, auth_service):
    fake_supabase.auth.sign_in_error = FakeAPIError("Invalid login credentials")

    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth_service.login(LoginRequest(email="jane@acme-it.com", password="nope"))


def test_reset_password_redirects_to_console(fake_supabase, auth_service, monkeypatch):
    from bridge_console.config.settings import settings

    monkeypatch.setattr(settings, "site_url", "https://console.acme-it.com/")

    auth_service.reset_password("jane@acme-it.com")

    assert fake_supabase.auth.calls[-1] == (
        "reset_password_for_email", "jane@acme-it.com",
        {"redirect_to": "https://console.acme-it.com/reset-password"}
    )


def test_current_user_is_cached_per_token(fake_supabase, auth_service):
    fake_supabase.auth.users_by_token["tok"] = SimpleNamespace(
        id="u-client", email="jane@acme-it.com", user_metadata=None, app_metadata={"provider": "email"}
    )

    first = auth_service.get_current_user("tok")
    second = auth_service.get_current_user("tok")

    assert first == second
    assert first["user_metadata"] == {}
    assert [c for c in fake_supabase.auth.calls if c[0] == "get_user"] == [("get_user", "tok")]


def test_logout_revokes_token_and_drops_cached_user(fake_supabase, auth_service, session_clients):
    fake_supabase.auth.users_by_token["tok"] = SimpleNamespace(
        id="u-client", email="jane@acme-it.com", user_metadata={}, app_metadata={}
    )
    auth_service.get_current_user("tok")

    assert auth_service.logout("tok") is True
    auth_service.get_current_user("tok")

    assert session_clients[0].auth.calls == [("admin.sign_out", "tok")]
    assert ("sign_out",) not in fake_supabase.auth.calls
    assert len([c for c in fake_supabase.auth.calls if c[0] == "get_user"]) == 2


def test_invalid_token_is_rejected(auth_service):
    with pytest.raises(AuthenticationError, match="Invalid or expired token"):
        auth_service.get_current_user("garbage")


def test_get_profile(auth_db):
    service = AuthService(auth_db)

    assert service.get_profile("u-client").client_id == "C1"
    with pytest.raises(NotFoundError):
        service.get_profile("ghost")

    auth_db.failures["profiles"] = "connection reset"
    with pytest.raises(QueryError):
        service.get_profile("u-client")


def _session(user_id):
    return SimpleNamespace(user=SimpleNamespace(id=user_id), access_token="token-123")


def test_mount_loads_existing_session(auth_db):
    auth_db.auth.session = _session("u-admin")
    context = SessionContext(auth_db)

    assert context.loading is True
    profile = context.mount()

    assert profile.role == "admin"
    assert context.loading is False
    assert context.scope.can_view_all


def test_mount_without_session(auth_db):
    context = SessionContext(auth_db)

    assert context.mount() is None
    assert context.is_authenticated is False
    assert context.scope.can_query is False


def test_listeners_follow_auth_state_changes(auth_db):
    seen = []
    with SessionContext(auth_db) as context:
        unsubscribe = context.subscribe(seen.append)

        auth_db.auth.emit("SIGNED_IN", _session("u-client"))
        assert context.scope.owner_filter == "C1"

        unsubscribe()
        auth_db.auth.emit("SIGNED_OUT", None)
        assert context.profile is None

    assert [p.id for p in seen] == ["u-client"]
    assert auth_db.auth.listeners == []


def test_unmount_stops_tracking(auth_db):
    context = SessionContext(auth_db)
    context.mount()
    context.unmount()

    auth_db.auth.emit("SIGNED_IN", _session("u-admin"))

    assert context.profile is None


def test_profile_lookup_failure_leaves_user_signed_out(auth_db):
    auth_db.auth.session = _session("ghost")

    with SessionContext(auth_db) as context:
        assert context.profile is None
        assert context.loading is False


def test_sign_in_and_out(auth_db):
    seen = []
    with SessionContext(auth_db) as context:
        context.subscribe(seen.append)

        token = context.sign_in("jane@acme-it.com", "pw")
        assert token.access_token == "token-123"
        assert context.profile.client_id == "C1"

        assert context.sign_out() is True
        assert context.is_authenticated is False

    assert [p.id if p else None for p in seen] == ["u-client", None]
    assert len(auth_db.queries_on("profiles")) == 1


def test_sign_in_without_mount_loads_profile(auth_db):
    context = SessionContext(auth_db)

    context.sign_in("jane@acme-it.com", "pw")
    assert context.profile.id == "u-client"

    context.sign_out()
    assert context.profile is None
    assert auth_db.headers["Authorization"] == "Bearer anon-key"
