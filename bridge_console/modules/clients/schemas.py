"""
Backing Supabase table: clients
- id: uuid (primary key) - owner key for restricted scopes (profiles.client_id)
- name: text (not null)
- sector: text (nullable)
- address: text (nullable)
- contact_email: text (nullable)
- contact_phone: text (nullable)
- contact_name: text (nullable)
- notes: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Deleting a client cascades to its licenses and equipment.
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ClientFilters(BaseModel):
    search: Optional[str] = None
    sector: Optional[str] = None


class ClientResponse(BaseModel):
    id: str
    name: str
    sector: Optional[str] = None
    address: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
