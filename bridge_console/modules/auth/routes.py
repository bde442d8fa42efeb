from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from bridge_console.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    ResetPasswordRequest, MeResponse, Profile
)
from bridge_console.modules.auth.service import AuthService
from bridge_console.core.dependencies import (
    get_auth_service, get_current_token, get_current_profile, get_scope
)
from bridge_console.core.exceptions import NotFoundError
from bridge_console.core.permissions import Scope
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user; an administrator must validate the account"""
    return await run_in_threadpool(service.register, register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return await run_in_threadpool(service.login, login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    await run_in_threadpool(service.logout, token)
    return {"message": "Logged out successfully"}


@router.post("/reset-password", status_code=202)
async def reset_password(
    request: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Send a password reset email"""
    await run_in_threadpool(service.reset_password, request.email)
    return {"message": "If the address exists, a reset email has been sent"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    profile: Optional[Profile] = Depends(get_current_profile),
    scope: Scope = Depends(get_scope)
):
    """Current profile and the capabilities the frontend uses to gate its UI"""
    if profile is None:
        raise NotFoundError("Profile not found")
    return MeResponse(profile=profile, **scope.to_dict())
