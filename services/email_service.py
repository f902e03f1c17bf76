"""
AWS SES email service for candidature confirmations
"""

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from html import escape
from typing import Optional
from uuid import UUID

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config import Config
from models.candidature import CandidatureRecord
from utils.logging_utils import get_logger

logger = get_logger(__name__)


COLORS = {
    "primary": "#15199E",
    "accent": "#3AC569",
    "text": "#222222",
    "muted": "#555555",
    "bg": "#F5F7FB",
    "card": "#FFFFFF",
    "border": "#E5E7EB",
}

SIGNATURE = "GPE Cameroun"


def confirmation_subject(candidature_uuid: UUID) -> str:
    return f"Confirmation de candidature – #{candidature_uuid}"


def _row(label: str, value: Optional[str]) -> str:
    return (
        f'<tr><td style="padding:8px 0;color:{COLORS["muted"]};font-size:13px;width:36%;">{escape(label)}</td>'
        f'<td style="padding:8px 0;">{escape(value or "")}</td></tr>'
    )


def render_levels_table(record: CandidatureRecord) -> str:
    """Language -> level table, empty string when no level was given"""
    if not record.niveaux:
        return ""

    rows = "".join(
        f"""
        <tr>
          <td style="padding:6px 10px;border:1px solid {COLORS['border']};">{escape(language)}</td>
          <td style="padding:6px 10px;border:1px solid {COLORS['border']};">{escape(level)}</td>
        </tr>"""
        for language, level in record.niveaux.items()
    )
    return f"""
    <table role="presentation" cellpadding="0" cellspacing="0" width="100%" style="border-collapse:collapse;margin-top:8px;border:1px solid {COLORS['border']};">
      <thead>
        <tr style="background:{COLORS['bg']}">
          <th align="left" style="padding:8px 10px;color:{COLORS['muted']};font-size:13px;">Langue</th>
          <th align="left" style="padding:8px 10px;color:{COLORS['muted']};font-size:13px;">Niveau</th>
        </tr>
      </thead>
      <tbody>{rows}</tbody>
    </table>"""


def render_candidature_html(record: CandidatureRecord, candidature_uuid: UUID, date_soumission: datetime) -> str:
    """
    Render the HTML confirmation email

    Args:
        record: Normalized candidature
        candidature_uuid: Public identifier of the candidature
        date_soumission: Server-assigned submission timestamp

    Returns:
        Complete HTML document
    """
    financing_rows = ""
    if record.has_financing_details:
        financing_rows = (
            _row("Institution de financement", record.institution_financement)
            + _row("Contact financement", record.contact_financement)
            + _row("Email contact financement", record.email_contact_financement)
        )

    summary_rows = "".join([
        _row("Nom complet", record.full_name),
        _row("Email", record.email),
        _row("Téléphone", record.telephone),
        _row("Nationalité", record.nationalite),
        _row("Poste actuel", record.poste_actuel),
        _row("Mode de financement", record.mode_financement),
        financing_rows,
        _row("Langues", ", ".join(record.langues)),
    ])

    uid = escape(str(candidature_uuid))
    submitted = escape(date_soumission.isoformat())

    return f"""<!doctype html>
<html lang="fr">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Confirmation de candidature – #{uid}</title>
</head>
<body style="margin:0;padding:0;background:{COLORS['bg']};font-family:Arial,Helvetica,sans-serif;">
  <table role="presentation" cellpadding="0" cellspacing="0" width="100%" style="background:{COLORS['bg']};">
    <tr>
      <td align="center" style="padding:24px;">
        <table role="presentation" cellpadding="0" cellspacing="0" width="100%" style="max-width:640px;background:{COLORS['card']};border-radius:16px;border:1px solid {COLORS['border']};">
          <tr><td style="background:{COLORS['primary']};height:6px;font-size:0;line-height:0;">&nbsp;</td></tr>
          <tr>
            <td style="padding:20px 24px 8px 24px;">
              <h1 style="margin:0 0 6px 0;color:{COLORS['primary']};font-size:22px;">Confirmation de candidature</h1>
              <p style="margin:0;color:{COLORS['muted']};font-size:14px;">
                Identifiant : <strong style="color:{COLORS['text']}">#{uid}</strong> &nbsp;·&nbsp;
                Soumise le : <strong style="color:{COLORS['text']}">{submitted}</strong>
              </p>
            </td>
          </tr>
          <tr>
            <td style="padding:8px 24px 0 24px;">
              <p style="margin:0 0 12px 0;color:{COLORS['text']};font-size:14px;line-height:1.55;">
                Bonjour {escape(record.full_name)},<br>
                Nous vous confirmons la réception de votre candidature. Voici un récapitulatif de votre soumission.
              </p>
              <div style="margin:10px 0 16px 0;">
                <span style="display:inline-block;padding:12px 18px;background:{COLORS['accent']};color:#ffffff;border-radius:8px;font-weight:bold;">
                  Candidature enregistrée
                </span>
              </div>
            </td>
          </tr>
          <tr>
            <td style="padding:0 24px 20px 24px;">
              <table role="presentation" cellpadding="0" cellspacing="0" width="100%" style="border-collapse:collapse;">
                {summary_rows}
              </table>
              {render_levels_table(record)}
            </td>
          </tr>
          <tr>
            <td style="padding:16px 24px 22px 24px;border-top:1px solid {COLORS['border']};">
              <p style="margin:0 0 6px 0;color:{COLORS['muted']};font-size:12px;">Cet email a été envoyé automatiquement, merci de ne pas y répondre directement.</p>
              <p style="margin:0;color:{COLORS['muted']};font-size:12px;">© {date_soumission.year} {SIGNATURE}</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def render_text_fallback(record: CandidatureRecord, candidature_uuid: UUID, date_soumission: datetime) -> str:
    """Plain-text version of the confirmation email"""
    financing = ""
    if record.has_financing_details:
        financing = f"""
- Institution de financement: {record.institution_financement or ''}
- Contact financement: {record.contact_financement or ''}
- Email contact financement: {record.email_contact_financement or ''}"""

    levels = "\n".join(f"  - {language}: {level}" for language, level in record.niveaux.items())

    return f"""Bonjour {record.full_name},

Votre candidature a bien été reçue.
Identifiant: #{candidature_uuid}
Date de soumission: {date_soumission.isoformat()}

Récapitulatif:
- Nom complet: {record.full_name}
- Email: {record.email}
- Téléphone: {record.telephone}
- Nationalité: {record.nationalite}
- Poste actuel: {record.poste_actuel}
- Mode de financement: {record.mode_financement}{financing}
- Langues: {', '.join(record.langues)}
- Niveaux:
{levels}

Merci pour votre intérêt.
"""


class EmailService:
    """Send candidature confirmations via AWS SES, off the request path"""

    def __init__(self, config: Config, ses_client=None, executor: Optional[Executor] = None):
        """
        Initialize email service

        Args:
            config: Configuration instance
            ses_client: Preconfigured SES client (created from config when omitted)
            executor: Executor running the sends (a small thread pool when omitted)
        """
        self.config = config
        self.ses_client = ses_client
        if self.ses_client is None and self.is_configured:
            self.ses_client = boto3.client("ses", region_name=self.ses_region)
        self.executor = executor or ThreadPoolExecutor(
            max_workers=config.email_workers,
            thread_name_prefix="candidature-email",
        )

        if not self.is_configured:
            logger.warning("⚠️ SES_FROM_EMAIL not set. No confirmation email will be sent.")

    @property
    def ses_region(self) -> str:
        """Get SES region"""
        return self.config.ses_region

    @property
    def is_configured(self) -> bool:
        return bool(self.config.ses_from_email)

    def notify(self, record: CandidatureRecord, candidature_uuid: UUID, date_soumission: datetime) -> Optional[Future]:
        """
        Schedule the confirmation email and return immediately.
        Never raises; failures are logged and discarded.

        Returns:
            The scheduled future, or None when nothing was scheduled
        """
        if not self.is_configured:
            return None

        try:
            future = self.executor.submit(self.send_confirmation_email, record, candidature_uuid, date_soumission)
        except RuntimeError as e:
            logger.error("❌ Could not schedule confirmation email for %s: %s", candidature_uuid, e)
            return None

        future.add_done_callback(_log_send_outcome)
        return future

    def send_confirmation_email(self, record: CandidatureRecord, candidature_uuid: UUID, date_soumission: datetime) -> bool:
        """
        Send the confirmation email to the applicant

        Returns:
            True if email sent successfully
        """
        return self._send_email(
            to_email=record.email,
            subject=confirmation_subject(candidature_uuid),
            body_text=render_text_fallback(record, candidature_uuid, date_soumission),
            body_html=render_candidature_html(record, candidature_uuid, date_soumission),
        )

    def _send_email(self, to_email: str, subject: str, body_text: str, body_html: str) -> bool:
        """
        Send email via SES

        Args:
            to_email: Recipient email address
            subject: Email subject
            body_text: Plain text body
            body_html: HTML body

        Returns:
            True if email sent successfully
        """
        destination = {"ToAddresses": [to_email]}
        if self.config.email_bcc:
            destination["BccAddresses"] = [self.config.email_bcc]

        extra = {}
        if self.config.email_reply_to and self.config.email_reply_to != self.config.ses_from_email:
            extra["ReplyToAddresses"] = [self.config.email_reply_to]

        try:
            response = self.ses_client.send_email(
                Source=self.config.ses_from_email,
                Destination=destination,
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {
                        "Text": {"Data": body_text, "Charset": "UTF-8"},
                        "Html": {"Data": body_html, "Charset": "UTF-8"},
                    },
                },
                **extra,
            )
            logger.info("✅ Email sent successfully to %s. MessageId: %s", to_email, response["MessageId"])
            return True
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"]["Message"]
            logger.error("❌ Failed to send email to %s: %s - %s", to_email, error_code, error_message)
            return False
        except BotoCoreError as e:
            logger.error("❌ Failed to send email to %s: %s", to_email, e)
            return False

    def shutdown(self) -> None:
        """Stop accepting new sends; in-flight sends finish in the background"""
        self.executor.shutdown(wait=False)


def _log_send_outcome(future: Future) -> None:
    if future.cancelled():
        logger.warning("⚠️ Confirmation email cancelled")
        return
    error = future.exception()
    if error is not None:
        logger.error("❌ Confirmation email failed (non-blocking): %s", error)
