"""
Explicit session context for non-HTTP consumers (scripts, workers, tests).

Tracks the signed-in profile through Supabase Auth and notifies subscribers
when it changes. The auth listener only exists between mount() and unmount();
use the context manager form to tie it to a block.
"""

import logging
from typing import Callable, List, Optional

from supabase import Client

from bridge_console.core.exceptions import ConsoleError
from bridge_console.core.permissions import Scope, resolve_scope
from bridge_console.modules.auth.schemas import LoginRequest, RegisterRequest, Profile
from bridge_console.modules.auth.service import AuthService

logger = logging.getLogger(__name__)

ProfileListener = Callable[[Optional[Profile]], None]


class SessionContext:
    def __init__(self, supabase: Client, auth_service: Optional[AuthService] = None):
        self.supabase = supabase
        # The context owns its client, so the session lives on that client
        self.auth_service = auth_service or AuthService(supabase, session_client_factory=lambda: supabase)
        self.profile: Optional[Profile] = None
        self.loading = True
        self._listeners: List[ProfileListener] = []
        self._auth_subscription = None

    @property
    def is_authenticated(self) -> bool:
        return self.profile is not None

    @property
    def scope(self) -> Scope:
        return resolve_scope(self.profile)

    def subscribe(self, listener: ProfileListener) -> Callable[[], None]:
        """Register a profile listener; returns the matching unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def mount(self) -> Optional[Profile]:
        if self._auth_subscription is None:
            self._auth_subscription = self.supabase.auth.on_auth_state_change(self._on_auth_state_change)
        return self.refresh()

    def unmount(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
        self._listeners.clear()

    def __enter__(self) -> "SessionContext":
        self.mount()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    def refresh(self) -> Optional[Profile]:
        """Re-read the current session and its profile."""
        session = self.supabase.auth.get_session()
        self._set_profile(self._load_profile(session))
        return self.profile

    def _on_auth_state_change(self, event, session) -> None:
        logger.debug(f"Auth state change: {event}")
        self._set_profile(self._load_profile(session))

    def _load_profile(self, session) -> Optional[Profile]:
        user = getattr(session, "user", None) if session else None
        if not user:
            return None
        try:
            return self.auth_service.get_profile(user.id)
        except ConsoleError as e:
            logger.error(f"Error loading profile for {user.id}: {e.message}")
            return None

    def _set_profile(self, profile: Optional[Profile]) -> None:
        self.profile = profile
        self.loading = False
        for listener in list(self._listeners):
            listener(profile)

    def sign_in(self, email: str, password: str):
        token = self.auth_service.login(LoginRequest(email=email, password=password))
        # When mounted, the SIGNED_IN event already loaded the profile
        if self._auth_subscription is None:
            self.refresh()
        return token

    def sign_up(self, email: str, password: str, first_name: Optional[str] = None,
                last_name: Optional[str] = None, phone: Optional[str] = None):
        return self.auth_service.register(RegisterRequest(
            email=email, password=password, first_name=first_name, last_name=last_name, phone=phone
        ))

    def sign_out(self) -> bool:
        signed_out = self.auth_service.logout()
        if signed_out and self._auth_subscription is None:
            self._set_profile(None)
        return signed_out

    def reset_password(self, email: str) -> None:
        self.auth_service.reset_password(email)
