from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class DashboardAlert(BaseModel):
    id: str
    item_name: str
    alert_type: str
    alert_level: str
    status: str
    alert_date: Optional[datetime] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    total_clients: int = 0
    total_licenses: int = 0
    total_equipment: int = 0
    expired_licenses: int = 0
    about_to_expire_licenses: int = 0
    obsolete_equipment: int = 0
    soon_obsolete_equipment: int = 0


class DashboardResponse(BaseModel):
    stats: DashboardStats
    alerts: List[DashboardAlert]
