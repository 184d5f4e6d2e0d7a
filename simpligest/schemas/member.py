from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict


class RoleAssignmentRequest(BaseModel):
    role: Literal["admin", "seller", "accountant", "warehouse", "custom"]
    email: Optional[str] = None
    overrides: Dict[str, Optional[bool]] = {}


class MemberStatusRequest(BaseModel):
    status: Literal["active", "invited", "disabled"]


class MemberRead(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: str
    status: str
    permissions: Dict[str, bool]
    allowed_pages: list
    assigned_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MemberTokenRead(BaseModel):
    user_id: str
    access_token: str
    token_type: str = "bearer"
