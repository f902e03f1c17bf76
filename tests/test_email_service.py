from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from botocore.exceptions import ClientError

from services.email_service import (
    EmailService,
    confirmation_subject,
    render_candidature_html,
    render_text_fallback,
)
from services.validation import validate_candidature


SUBMITTED_AT = datetime(2026, 10, 18, 8, 15, tzinfo=timezone.utc)


def make_config(**overrides):
    values = {
        "ses_from_email": "candidatures@exemple.org",
        "ses_region": "eu-west-3",
        "email_reply_to": None,
        "email_bcc": None,
        "email_workers": 1,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def record(valid_payload):
    return validate_candidature(valid_payload, today=date(2026, 10, 18))


@pytest.fixture
def financed_record(institution_payload):
    return validate_candidature(institution_payload, today=date(2026, 10, 18))


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=1)
    yield pool
    pool.shutdown(wait=True)


def test_html_contains_the_summary(record):
    candidature_uuid = uuid4()
    html = render_candidature_html(record, candidature_uuid, SUBMITTED_AT)

    assert f"#{candidature_uuid}" in html
    assert "2026-10-18T08:15:00+00:00" in html
    for value in ("Aline Mbarga", "aline.mbarga@exemple.org", "+237690123456",
                  "Camerounaise", "Inspectrice pédagogique", "Vous-même", "Français, Anglais"):
        assert value in html
    assert "<th" in html and "Niveau" in html
    assert "Natif" in html and "Avancé" in html
    assert "Institution de financement" not in html


def test_html_lists_financing_details_when_applicable(financed_record):
    html = render_candidature_html(financed_record, uuid4(), SUBMITTED_AT)
    assert "Institution de financement" in html
    assert "Banque mondiale" in html
    assert "p.essomba@exemple.org" in html


def test_html_escapes_submitted_values(valid_payload):
    valid_payload["posteActuel"] = "<script>alert(1)</script>"
    record = validate_candidature(valid_payload, today=date(2026, 10, 18))
    html = render_candidature_html(record, uuid4(), SUBMITTED_AT)
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_text_fallback_contains_the_summary(financed_record):
    candidature_uuid = uuid4()
    text = render_text_fallback(financed_record, candidature_uuid, SUBMITTED_AT)

    assert f"Identifiant: #{candidature_uuid}" in text
    assert "Mode de financement: Institution" in text
    assert "Contact financement: Paul Essomba" in text
    assert "Anglais: Avancé" in text


def test_unconfigured_transport_is_a_noop(record, executor):
    ses_client = MagicMock()
    service = EmailService(make_config(ses_from_email=None), ses_client=ses_client, executor=executor)

    assert service.notify(record, uuid4(), SUBMITTED_AT) is None
    ses_client.send_email.assert_not_called()


def test_notify_sends_in_the_background(record, executor):
    ses_client = MagicMock()
    ses_client.send_email.return_value = {"MessageId": "abc-123"}
    service = EmailService(make_config(email_bcc="archives@exemple.org"), ses_client=ses_client, executor=executor)
    candidature_uuid = uuid4()

    future = service.notify(record, candidature_uuid, SUBMITTED_AT)

    assert future.result(timeout=5) is True
    kwargs = ses_client.send_email.call_args.kwargs
    assert kwargs["Source"] == "candidatures@exemple.org"
    assert kwargs["Destination"] == {
        "ToAddresses": ["aline.mbarga@exemple.org"],
        "BccAddresses": ["archives@exemple.org"],
    }
    assert kwargs["Message"]["Subject"]["Data"] == confirmation_subject(candidature_uuid)
    assert str(candidature_uuid) in kwargs["Message"]["Subject"]["Data"]
    assert "Html" in kwargs["Message"]["Body"] and "Text" in kwargs["Message"]["Body"]
    assert "ReplyToAddresses" not in kwargs


def test_reply_to_is_set_when_different_from_sender(record, executor):
    ses_client = MagicMock()
    ses_client.send_email.return_value = {"MessageId": "abc-123"}
    service = EmailService(make_config(email_reply_to="contact@exemple.org"), ses_client=ses_client, executor=executor)

    service.notify(record, uuid4(), SUBMITTED_AT).result(timeout=5)

    assert ses_client.send_email.call_args.kwargs["ReplyToAddresses"] == ["contact@exemple.org"]


def test_ses_rejection_is_logged_not_raised(record, executor):
    ses_client = MagicMock()
    ses_client.send_email.side_effect = ClientError(
        {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
        "SendEmail",
    )
    service = EmailService(make_config(), ses_client=ses_client, executor=executor)

    future = service.notify(record, uuid4(), SUBMITTED_AT)
    assert future.result(timeout=5) is False


def test_unexpected_failure_stays_in_the_future(record, executor):
    ses_client = MagicMock()
    ses_client.send_email.side_effect = RuntimeError("connection reset")
    service = EmailService(make_config(), ses_client=ses_client, executor=executor)

    future = service.notify(record, uuid4(), SUBMITTED_AT)

    assert isinstance(future.exception(timeout=5), RuntimeError)


def test_notify_after_shutdown_does_not_raise(record):
    service = EmailService(make_config(), ses_client=MagicMock(), executor=ThreadPoolExecutor(max_workers=1))
    service.shutdown()

    assert service.notify(record, uuid4(), SUBMITTED_AT) is None
