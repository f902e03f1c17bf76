"""
/api/candidatures endpoints
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request

from models.responses import ExistsResponse, HealthResponse, SubmissionResponse
from services.candidature_service import CandidatureService
from services.email_service import EmailService
from services.validation import validate_candidature


router = APIRouter(prefix="/api/candidatures", tags=["Candidatures"])


def get_candidature_service(request: Request) -> CandidatureService:
    return request.app.state.candidature_service


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


@router.get("/health", response_model=HealthResponse)
def candidatures_health():
    return HealthResponse()


@router.post("", status_code=201, response_model=SubmissionResponse)
def create_candidature(
    payload: Any = Body(...),
    service: CandidatureService = Depends(get_candidature_service),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Submit a candidature.

    Flow:
    1. Validate and normalize the form (400 with every field error)
    2. Reject an email that already has a candidature (409)
    3. Insert; the store assigns id and date_soumission, we assign the uuid
    4. Schedule the confirmation email without waiting for it
    """
    record = validate_candidature(payload)
    identity = service.submit(record)
    email_service.notify(record, identity.uuid, identity.date_soumission)

    return SubmissionResponse(
        id=identity.id,
        uuid=identity.uuid,
        date_soumission=identity.date_soumission,
    )


@router.get("/exists", response_model=ExistsResponse, response_model_exclude_none=True)
def candidature_exists(
    email: str = Query(..., min_length=1, max_length=150),
    service: CandidatureService = Depends(get_candidature_service),
):
    """Tell whether a candidature already exists for this email (read-only)"""
    existing = service.exists(email)
    return ExistsResponse(exists=existing is not None, last=existing)
