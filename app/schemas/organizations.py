from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class OrganizationOut(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MembershipOut(BaseModel):
    organization_id: int
    user_id: int
    role: str
    is_default: bool

    class Config:
        from_attributes = True
