"""
Common schemas used across the application.
"""
from typing import Any, Optional
from datetime import datetime
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    detail: str
    kind: str


class HealthResponse(BaseModel):
    code: int = 200
    message: str
    environment: str


class ActivityResponse(BaseModel):
    id: str
    project_id: str
    action: str
    description: Optional[str] = None
    changes: Optional[dict[str, Any]] = None
    user_id: Optional[str] = None
    created: datetime

    class Config:
        from_attributes = True
