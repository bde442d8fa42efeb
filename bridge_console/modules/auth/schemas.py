"""
Backing Supabase tables:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text
- first_name: text (nullable)
- last_name: text (nullable)
- phone: text (nullable)
- role: text (not null, default: 'unverified') - values: admin, technician, client, unverified
- client_id: uuid (foreign key to clients.id, nullable) - owning client for the 'client' role
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

notifications:
- id: uuid (primary key)
- user_id: uuid (recipient / subject user)
- type: text - 'new_unverified_user' on sign-up
- title: text
- message: text
- related_id: uuid (nullable)
- related_type: text (nullable) - e.g. 'user'
- created_at: timestamp (default: now())

A trigger on auth.users creates the profiles row from the sign-up metadata
(first_name, last_name, phone).
"""

from pydantic import BaseModel, EmailStr
from typing import Optional, List
from datetime import datetime


class Profile(BaseModel):
    id: str
    role: Optional[str] = None
    client_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str
    requires_admin_validation: bool = True
    notification_sent: bool = True


class ResetPasswordRequest(BaseModel):
    email: EmailStr


class MeResponse(BaseModel):
    profile: Profile
    can_view_all_data: bool
    client_access: Optional[str] = None
    role: Optional[str] = None
    permissions: List[str]
    can_manage_clients: bool
    can_manage_licenses: bool
    can_manage_equipment: bool
    can_view_reports: bool
