"""
Candidature submission orchestration - duplicate guard then persistence
"""

import uuid
from typing import Optional

from models.candidature import CandidatureIdentity, CandidatureRecord
from services.candidature_repository import CandidatureRepository
from utils.errors import DuplicateEmailError
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class CandidatureService:
    """Coordinates the duplicate check and the insert of a validated candidature"""

    def __init__(self, repository: CandidatureRepository):
        """
        Initialize service

        Args:
            repository: Candidature repository
        """
        self.repository = repository

    def submit(self, record: CandidatureRecord) -> CandidatureIdentity:
        """
        Persist a validated candidature unless its email is already known

        The lookup and the insert are separate statements. Two concurrent
        submissions can both pass the lookup; the unique index on
        lower(email) then rejects the second insert, which is reported
        with the same DuplicateEmailError.

        Args:
            record: Normalized candidature

        Returns:
            Identity assigned at insert (id, uuid, date_soumission)

        Raises:
            DuplicateEmailError: a candidature already exists for this email
        """
        existing = self.repository.find_latest_by_email(record.email)
        if existing is not None:
            logger.info("⚠️ Duplicate candidature rejected (existing id=%s)", existing.id)
            raise DuplicateEmailError(existing)

        candidature_uuid = uuid.uuid4()
        try:
            identity = self.repository.insert(record, candidature_uuid)
        except DuplicateEmailError as exc:
            if exc.existing is not None:
                raise
            logger.info("⚠️ Duplicate candidature caught by unique index")
            raise DuplicateEmailError(self.repository.find_latest_by_email(record.email)) from exc

        logger.info("✅ Candidature stored: id=%s uuid=%s", identity.id, identity.uuid)
        return identity

    def exists(self, email: str) -> Optional[CandidatureIdentity]:
        """Latest candidature for this email, if any (read-only)"""
        return self.repository.find_latest_by_email(email.strip())
