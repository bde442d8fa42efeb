"""
Backing Supabase tables:

licenses:
- id: uuid (primary key)
- name: text (not null)
- editor: text (nullable)
- version: text (nullable)
- license_key: text (nullable)
- purchase_date: date (nullable)
- expiry_date: date (not null)
- cost: numeric (nullable)
- status: text (not null, default: 'active') - values: active, expired, about_to_expire, cancelled
- client_id: uuid (foreign key to clients.id, not null) - owner key
- description: text (nullable)
- created_by: uuid (foreign key to profiles.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

v_licenses_with_client:
- every licenses column plus client_name (clients.name)
"""

from enum import Enum
from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import date, datetime

from bridge_console.core.stats import ChartEntry, MonthlyExpiry


class LicenseStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    ABOUT_TO_EXPIRE = "about_to_expire"
    CANCELLED = "cancelled"


LICENSE_STATUSES = tuple(s.value for s in LicenseStatus)


class LicenseFilters(BaseModel):
    search: Optional[str] = None
    status: Optional[str] = None  # unknown values are ignored, not rejected
    client_id: Optional[str] = None


class LicenseResponse(BaseModel):
    id: str
    name: Optional[str] = None
    editor: Optional[str] = None
    version: Optional[str] = None
    license_key: Optional[str] = None
    purchase_date: Optional[date] = None
    expiry_date: Optional[date] = None
    cost: Optional[float] = None
    status: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LicenseChartData(BaseModel):
    statuses: List[ChartEntry] = []
    expiry: List[MonthlyExpiry] = []


class LicenseStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    total_value: float
    monthly_expiry: List[MonthlyExpiry]
    chart_data: LicenseChartData
