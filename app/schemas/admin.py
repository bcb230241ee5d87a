# app/schemas/admin.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List, Dict

from app.models.application import ApplicationStatus


class TransitionRequest(BaseModel):
    status: ApplicationStatus

    model_config = ConfigDict(title="TransitionRequest")


class BulkTransitionRequest(BaseModel):
    application_ids: List[str]
    status: ApplicationStatus

    model_config = ConfigDict(title="BulkTransitionRequest")


class BulkTransitionResponse(BaseModel):
    succeeded: List[str]
    failed: Dict[str, str]

    model_config = ConfigDict(title="BulkTransitionResponse")


class StatsResponse(BaseModel):
    total: int
    pending: int
    accepted: int
    rejected: int

    model_config = ConfigDict(title="StatsResponse")


class ApplicationRow(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    school: Optional[str] = None
    status: str
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(title="ApplicationRow")


class ApplicationListResponse(BaseModel):
    rows: List[ApplicationRow]
    total_count: int
    page: int
    page_size: int

    model_config = ConfigDict(title="ApplicationListResponse")


class AdminOverviewResponse(BaseModel):
    stats: StatsResponse
    applications: ApplicationListResponse

    model_config = ConfigDict(title="AdminOverviewResponse")
