"""
Backing Supabase tables:

equipment:
- id: uuid (primary key)
- name: text (not null)
- type: text (not null) - values: pc, server, router, switch, printer, other
- brand: text (nullable)
- model: text (nullable)
- serial_number: text (nullable)
- purchase_date: date (nullable)
- estimated_obsolescence_date: date (nullable) - list ordering, nulls last
- end_of_sale: date (nullable)
- status: text (not null, default: 'active') - values: active, in_maintenance, obsolete, soon_obsolete, retired
- client_id: uuid (foreign key to clients.id, not null) - owner key
- location: text (nullable)
- cost: numeric (nullable)
- description: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

v_equipment_with_client:
- every equipment column plus client_name (clients.name)
"""

from enum import Enum
from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import date, datetime

from bridge_console.core.stats import ChartEntry


class EquipmentType(str, Enum):
    PC = "pc"
    SERVER = "server"
    ROUTER = "router"
    SWITCH = "switch"
    PRINTER = "printer"
    OTHER = "other"


class EquipmentStatus(str, Enum):
    ACTIVE = "active"
    IN_MAINTENANCE = "in_maintenance"
    OBSOLETE = "obsolete"
    SOON_OBSOLETE = "soon_obsolete"
    RETIRED = "retired"


EQUIPMENT_TYPES = tuple(t.value for t in EquipmentType)
EQUIPMENT_STATUSES = tuple(s.value for s in EquipmentStatus)


class EquipmentFilters(BaseModel):
    search: Optional[str] = None
    type: Optional[str] = None  # unknown values are ignored, not rejected
    status: Optional[str] = None
    client_id: Optional[str] = None


class EquipmentResponse(BaseModel):
    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    purchase_date: Optional[date] = None
    estimated_obsolescence_date: Optional[date] = None
    end_of_sale: Optional[date] = None
    status: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    location: Optional[str] = None
    cost: Optional[float] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        protected_namespaces = ()  # "model" is a real column


class EquipmentChartData(BaseModel):
    types: List[ChartEntry] = []
    statuses: List[ChartEntry] = []


class EquipmentStats(BaseModel):
    total: int
    by_type: Dict[str, int]
    by_status: Dict[str, int]
    chart_data: EquipmentChartData
