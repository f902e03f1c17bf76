"""
API response models
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from models.candidature import CandidatureIdentity


class SubmissionResponse(BaseModel):
    """Response from POST /api/candidatures"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Candidature envoyée avec succès."
    id: int
    uuid: UUID
    date_soumission: datetime = Field(alias="dateSoumission")


class ExistsResponse(BaseModel):
    """Response from GET /api/candidatures/exists"""
    exists: bool
    last: Optional[CandidatureIdentity] = None


class ErrorResponse(BaseModel):
    """Envelope shared by every error response"""
    success: bool = False
    message: str
    details: Optional[List[str]] = None


class HealthResponse(BaseModel):
    ok: bool = True
