from datetime import datetime

from pydantic import BaseModel, ConfigDict

from stockroom.models.enums import AppRole


class RoleAssignmentCreate(BaseModel):
    user_id: str
    role: AppRole


class RoleAssignmentOut(BaseModel):
    id: str
    user_id: str
    role: AppRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleAssignmentListOut(BaseModel):
    items: list[RoleAssignmentOut]
