import hashlib
import logging
import time
from supabase import Client
from bridge_console.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, Profile
)
from bridge_console.config.settings import settings
from bridge_console.database.supabase_client import SupabaseClient
from bridge_console.core.exceptions import AuthenticationError, NotFoundError, QueryError
from typing import Callable, Dict, Any, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client, session_client_factory: Optional[Callable[[], Client]] = None):
        self.supabase = supabase
        # sign-up/in/out run on a client built per call; the shared one keeps the anon key
        self.session_client_factory = session_client_factory or SupabaseClient.create_session_client

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user and notify administrators that the account needs validation"""
        try:
            auth_response = self.session_client_factory().auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {
                        "first_name": register_data.first_name,
                        "last_name": register_data.last_name,
                        "phone": register_data.phone
                    }
                }
            })
        except Exception as e:
            error_message = str(e)
            logger.error(f"Sign-up failed for {register_data.email}: {error_message}")
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise AuthenticationError("User already exists")
            raise AuthenticationError(f"Registration failed: {error_message}")

        user = auth_response.user
        if not user:
            raise AuthenticationError("Please confirm your email to continue.")

        notification_sent = True
        try:
            self.supabase.table("notifications").insert({
                "user_id": user.id,
                "type": "new_unverified_user",
                "title": "New user awaiting validation",
                "message": f"{register_data.first_name} {register_data.last_name} ({register_data.email}) is waiting for validation",
                "related_id": user.id,
                "related_type": "user"
            }).execute()
        except Exception as e:
            # The account exists at this point; only the admin notification is missing.
            logger.error(f"Failed to create validation notification for {user.id}: {e}")
            notification_sent = False

        return RegisterResponse(
            user_id=user.id,
            email=user.email or register_data.email,
            message="User registered, waiting for administrator validation",
            requires_admin_validation=True,
            notification_sent=notification_sent
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.session_client_factory().auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise AuthenticationError("Invalid email or password")
            raise AuthenticationError(f"Login failed: {error_message}")

        if not auth_response.user or not auth_response.session:
            raise AuthenticationError("Invalid credentials")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def logout(self, token: Optional[str] = None) -> bool:
        """Logout using Supabase Auth: revoke the given token, or end the session client's own session"""
        if token:
            _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            session_client = self.session_client_factory()
            if token:
                session_client.auth.admin.sign_out(token)
            else:
                session_client.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign-out failed: {e}")
            return False

    def reset_password(self, email: str) -> None:
        """Send a password reset email pointing back to the console"""
        try:
            self.supabase.auth.reset_password_for_email(
                email, {"redirect_to": f"{settings.site_url.rstrip('/')}/reset-password"}
            )
        except Exception as e:
            raise AuthenticationError(f"Password reset failed: {str(e)}")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_USER_CACHE:
            user_data, expiry = _AUTH_USER_CACHE[cache_key]
            if now < expiry:
                return user_data
            del _AUTH_USER_CACHE[cache_key]
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise AuthenticationError("Invalid or expired token")
            raise AuthenticationError("Authentication failed")
        if not user_response or not user_response.user:
            raise AuthenticationError("Invalid or expired token")
        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        }
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (user_data, now + settings.auth_cache_ttl_seconds)
        return user_data

    def get_profile(self, user_id: str) -> Profile:
        """Load the profile row holding role and owning client"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching profile {user_id}: {e}")
            raise QueryError.from_exception(e, "Profile lookup failed")

        if not result.data:
            raise NotFoundError("Profile not found")
        return Profile(**result.data[0])
