import itertools
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Config
from models.candidature import CandidatureIdentity, CandidatureRecord, StoredCandidature
from services.candidature_service import CandidatureService
from utils.errors import DuplicateEmailError
from utils.rate_limiter import RateLimiter


ALLOWED_ORIGIN = "http://localhost:4200"


class FakeCandidatureRepository:
    """In-memory stand-in for CandidatureRepository, with the same unique email rule"""

    def __init__(self):
        self.rows: List[Tuple[CandidatureIdentity, CandidatureRecord]] = []
        self._ids = itertools.count(1)

    def find_latest_by_email(self, email: str) -> Optional[CandidatureIdentity]:
        matches = [identity for identity, record in self.rows if record.email.lower() == email.lower()]
        return matches[-1] if matches else None

    def insert(self, record, candidature_uuid) -> CandidatureIdentity:
        if self.find_latest_by_email(record.email) is not None:
            raise DuplicateEmailError()
        identity = CandidatureIdentity(
            id=next(self._ids),
            uuid=candidature_uuid,
            date_soumission=datetime.now(timezone.utc),
        )
        self.rows.append((identity, record))
        return identity

    def find_by_uuid(self, candidature_uuid) -> Optional[StoredCandidature]:
        for identity, record in self.rows:
            if identity.uuid == candidature_uuid:
                return StoredCandidature(identity=identity, record=record)
        return None


class FakeEmailService:
    """Records notifications instead of sending them"""

    def __init__(self):
        self.notifications = []
        self.stopped = False

    def notify(self, record, candidature_uuid, date_soumission):
        self.notifications.append((record, candidature_uuid, date_soumission))

    def shutdown(self):
        self.stopped = True


@pytest.fixture
def valid_payload():
    return {
        "nom": "Mbarga",
        "prenom": "Aline",
        "nationalite": "Camerounaise",
        "sexe": "Femme",
        "dateNaissance": "1990-05-14",
        "lieuNaissance": "Yaoundé",
        "telephone": "+237690123456",
        "email": "aline.mbarga@exemple.org",
        "organisation": "Ministère de l'Éducation de Base",
        "pays": "Cameroun",
        "departement": "",
        "posteActuel": "Inspectrice pédagogique",
        "descriptionTaches": "Suivi et évaluation des programmes scolaires.",
        "diplome": "Master",
        "institution": "Université de Yaoundé I",
        "domaine": "Sciences de l'éducation",
        "langues": ["Français", "Anglais"],
        "niveaux": {"Français": "maternelle", "Anglais": "courant"},
        "resultatsAttendus": "Renforcer mes compétences en évaluation des apprentissages.",
        "autresInfos": "",
        "mode": "Vous-même",
        "source": "Site web",
        "consentement": True,
    }


@pytest.fixture
def institution_payload(valid_payload):
    payload = dict(valid_payload)
    payload.update({
        "mode": "Institution",
        "institutionFinancement": "Banque mondiale",
        "contactFinancement": "Paul Essomba",
        "emailContactFinancement": "p.essomba@exemple.org",
    })
    return payload


@pytest.fixture
def config(monkeypatch):
    for var in ("DATABASE_URL", "SES_FROM_EMAIL", "EMAIL_BCC", "EMAIL_REPLY_TO", "TRUST_PROXY",
                "RATE_LIMIT_MAX", "RATE_LIMIT_WINDOW_SECONDS", "DB_AUTO_CREATE_SCHEMA"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.setenv("CORS_ORIGINS", ALLOWED_ORIGIN)
    return Config()


@pytest.fixture
def repository():
    return FakeCandidatureRepository()


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def app(config, repository, email_service):
    return create_app(
        config,
        candidature_service=CandidatureService(repository),
        email_service=email_service,
    )


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def make_client(config, repository, email_service):
    """Build a client with some components replaced"""
    def build(cfg=None, service=None, mailer=None, limiter: Optional[RateLimiter] = None):
        app = create_app(
            cfg or config,
            candidature_service=service or CandidatureService(repository),
            email_service=mailer or email_service,
            rate_limiter=limiter,
        )
        return TestClient(app, raise_server_exceptions=False)
    return build
