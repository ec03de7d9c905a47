"""
Schedule editing request/response schemas
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from ..models.alert import Alert, AlertSummary
from ..models.schedule import ScheduleGraph


class SessionResponse(BaseModel):
    """Draft session state"""
    session_id: str = Field(..., description="Draft session id")
    residence_id: str = Field(..., description="Residence id")
    version: int = Field(..., description="Version the draft is based on")
    has_changes: bool = Field(..., description="Draft differs from the loaded schedule")
    ignored_alerts: List[str] = Field(default_factory=list, description="Ignored alert keys")


class DraftResponse(SessionResponse):
    """Session state plus the draft graph"""
    draft: ScheduleGraph


class PrincipalAlternativeRequest(BaseModel):
    """Principal alternative selection"""
    config_id: str = Field(..., description="AlternativeConfig id")


class AuditResponse(BaseModel):
    """Audit outcome"""
    alerts: List[Alert] = Field(..., description="Every alert of the audit")
    visible_alerts: List[Alert] = Field(..., description="Alerts not ignored in this session")
    summary: AlertSummary


class SaveRequest(BaseModel):
    """Save request"""
    actor_id: Optional[str] = Field(None, description="Who is saving")
    force: bool = Field(False, description="Save even with error-severity alerts")


class SaveResponse(BaseModel):
    """Save outcome"""
    version: int = Field(..., description="New stored version")
