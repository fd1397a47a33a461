"""Auth Pydantic schemas for request / response validation."""


import uuid
from typing import Optional

from pydantic import BaseModel

from toff.common.constants import UserRole


class MeResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    supervisor_id: Optional[uuid.UUID] = None
    direct_reports_count: int


class LogoutResponse(BaseModel):
    message: str = "Logged out successfully."
