from datetime import date, datetime, timezone
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest

from conftest import FakeCandidatureRepository
from models.candidature import CandidatureIdentity
from services.candidature_service import CandidatureService
from services.validation import validate_candidature
from utils.errors import DuplicateEmailError


TODAY = date(2026, 10, 18)


@pytest.fixture
def record(valid_payload):
    return validate_candidature(valid_payload, today=TODAY)


def test_submit_assigns_a_fresh_uuid(record):
    repository = FakeCandidatureRepository()
    identity = CandidatureService(repository).submit(record)

    assert identity.id == 1
    assert isinstance(identity.uuid, UUID)
    assert identity.uuid.version == 4
    assert len(repository.rows) == 1


def test_duplicate_email_is_rejected_before_insert(record, valid_payload):
    repository = FakeCandidatureRepository()
    service = CandidatureService(repository)
    first = service.submit(record)

    valid_payload["email"] = valid_payload["email"].upper()
    shouting = validate_candidature(valid_payload, today=TODAY)
    with pytest.raises(DuplicateEmailError) as excinfo:
        service.submit(shouting)

    assert excinfo.value.existing.id == first.id
    assert excinfo.value.status_code == 409
    assert f"id: {first.id}" in excinfo.value.details[0]
    assert len(repository.rows) == 1


def test_unique_index_violation_reports_the_winning_row(record):
    winner = CandidatureIdentity(id=7, uuid=uuid4(), date_soumission=datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc))
    repository = MagicMock()
    # Another request inserts between our lookup and our insert
    repository.find_latest_by_email.side_effect = [None, winner]
    repository.insert.side_effect = DuplicateEmailError()

    with pytest.raises(DuplicateEmailError) as excinfo:
        CandidatureService(repository).submit(record)

    assert excinfo.value.existing == winner
    assert excinfo.value.details == [
        f"Candidature existante (id: 7, uuid: {winner.uuid}, soumise le 2026-10-18T09:30:00+00:00)"
    ]
    assert repository.find_latest_by_email.call_count == 2


def test_stored_record_holds_normalized_levels(record):
    repository = FakeCandidatureRepository()
    identity = CandidatureService(repository).submit(record)

    stored = repository.find_by_uuid(identity.uuid)
    assert stored.record.niveaux == {"Français": "Natif", "Anglais": "Avancé"}
    assert stored.identity == identity


def test_exists_is_read_only(record):
    repository = FakeCandidatureRepository()
    service = CandidatureService(repository)

    assert service.exists("aline.mbarga@exemple.org") is None
    identity = service.submit(record)
    assert service.exists(" ALINE.MBARGA@exemple.org ") == identity
    assert len(repository.rows) == 1
