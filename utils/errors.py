"""
Error taxonomy for the candidature service.

Components raise these typed errors; ``api/error_handlers.py`` is the only
place that turns them into HTTP responses.
"""

from typing import List, NamedTuple, Optional

from models.candidature import CandidatureIdentity


class FieldError(NamedTuple):
    """A single field-level validation failure"""
    field: str
    message: str

    def render(self) -> str:
        return f"{self.field}: {self.message}"


class CandidatureError(Exception):
    """Base class for every error the request handler knows how to map"""

    status_code: int = 500
    message: str = "Erreur interne. Réessayez plus tard."

    def __init__(self, message: Optional[str] = None, details: Optional[List[str]] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class CandidatureValidationError(CandidatureError):
    """One or more fields of the submission are invalid"""

    status_code = 400
    message = "Validation échouée"

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        super().__init__(details=[error.render() for error in self.errors])


class MalformedRequestError(CandidatureError):
    """The request body could not be parsed as JSON"""

    status_code = 400
    message = "JSON invalide dans la requête."


class DuplicateEmailError(CandidatureError):
    """A candidature already exists for this email"""

    status_code = 409
    message = "Une candidature avec cet email existe déjà."

    def __init__(self, existing: Optional[CandidatureIdentity] = None):
        self.existing = existing
        details = None
        if existing is not None:
            details = [
                f"Candidature existante (id: {existing.id}, uuid: {existing.uuid}, "
                f"soumise le {existing.date_soumission.isoformat()})"
            ]
        super().__init__(details=details)


class StorageConstraintError(CandidatureError):
    """The storage engine rejected the statement (constraint or type violation)"""

    def __init__(self, message: str, status_code: int = 409):
        self.status_code = status_code
        super().__init__(message)


class OriginRejectedError(CandidatureError):
    """The request Origin is not in the configured allow-list"""

    status_code = 403
    message = "CORS: origine non autorisée"

    def __init__(self, origin: str):
        self.origin = origin
        super().__init__(details=[f"origin: {origin}"])


class RateLimitedError(CandidatureError):
    """The client exceeded its request quota"""

    status_code = 429
    message = "Trop de requêtes. Réessayez plus tard."
