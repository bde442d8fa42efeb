"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi.concurrency import run_in_threadpool
from bridge_console.database.supabase_client import get_supabase, get_service_supabase, get_session_client_factory
from bridge_console.modules.auth.schemas import Profile
from bridge_console.modules.auth.service import AuthService
from bridge_console.core.exceptions import NotFoundError, PermissionDeniedError
from bridge_console.core.permissions import Scope, resolve_scope
from bridge_console.core.queries import ConsoleQueries
from bridge_console.core.query_cache import QueryCache
from supabase import Client
from typing import Callable, Dict, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    session_client_factory: Callable[[], Client] = Depends(get_session_client_factory)
) -> AuthService:
    return AuthService(supabase, session_client_factory)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict:
    """Resolve the Supabase Auth user behind the bearer token"""
    return await run_in_threadpool(auth_service.get_current_user, token)


async def get_current_profile(
    request: Request,
    user_data: Dict = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Profile]:
    """Load the profile (role, owning client) once per request"""
    if hasattr(request.state, "profile"):
        return request.state.profile
    try:
        profile = await run_in_threadpool(auth_service.get_profile, user_data["id"])
    except NotFoundError:
        # Authenticated but no profile row yet: treated as anonymous for data access
        logger.warning(f"No profile for user {user_data['id']}")
        profile = None
    request.state.profile = profile
    return profile


def get_scope(profile: Optional[Profile] = Depends(get_current_profile)) -> Scope:
    return resolve_scope(profile)


def require_permission(required_permission: str):
    """Factory function to create permission check dependency, e.g. require_permission("licenses:read")"""
    resource, action = required_permission.split(":", 1)

    def check_permission(scope: Scope = Depends(get_scope)) -> Scope:
        if not scope.can(action, resource):
            raise PermissionDeniedError(f"Insufficient permissions. Required: {required_permission}")
        return scope
    return check_permission


def get_query_cache(request: Request) -> QueryCache:
    return request.app.state.query_cache


def get_console_queries(
    scope: Scope = Depends(get_scope),
    cache: QueryCache = Depends(get_query_cache),
    supabase: Client = Depends(get_supabase),
    service_supabase: Client = Depends(get_service_supabase)
) -> ConsoleQueries:
    return ConsoleQueries(scope, cache, supabase, service_supabase)
