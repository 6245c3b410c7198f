"""
Mail compose launcher for client outreach.

Recommendation letter emails are not sent by the server: the UI opens a
pre-filled web mail compose window for the project manager to review and
send. The launcher builds that compose URL and keeps a log of every composed
message so outreach can be traced.
"""
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlencode, quote

from projecthub.core.config import settings
from projecthub.schemas.project import ProjectRecord

logger = logging.getLogger(__name__)


def build_compose_url(to: str, subject: str, body: str, base_url: Optional[str] = None) -> str:
    """Web mail compose URL with recipient, subject and body filled in."""
    query = urlencode(
        {"view": "cm", "fs": "1", "to": to, "su": subject, "body": body},
        quote_via=quote,
    )
    return f"{base_url or settings.MAIL_COMPOSE_URL}?{query}"


def _completed_on(project: ProjectRecord) -> str:
    completed: Union[date, str, None] = project.completed_date
    return completed.isoformat() if isinstance(completed, date) else (completed or "N/A")


def request_email(project: ProjectRecord, contact: str) -> tuple[str, str]:
    """Subject and body of the initial recommendation letter request."""
    completed = _completed_on(project)
    subject = f"Recommendation Letter Request - {project.name} Project"
    body = f"""Dear {contact},

I hope this email finds you well.

We are pleased to inform you that the {project.name} project has been successfully completed on {completed}. We are grateful for the opportunity to work with {project.client} and are proud of the quality work delivered.

As we continue to grow our business and showcase our capabilities to potential clients, we would be extremely grateful if you could provide us with a recommendation letter/testimonial highlighting:

- Quality of work delivered
- Adherence to timelines and specifications
- Professional conduct and communication
- Overall satisfaction with our services

This recommendation would be invaluable in helping us demonstrate our track record of successful project delivery to future clients.

If you need any additional information about the project or our services, please do not hesitate to contact us.

Thank you for your time and consideration.

Best regards,
{project.manager}
Project Manager

---
Project Details:
Project Name: {project.name}
Client: {project.client}
Location: {project.location}
Completion Date: {completed}
PO Number: {project.po_number}"""
    return subject, body


def reminder_email(project: ProjectRecord, contact: str, letter_url: Optional[str] = None) -> tuple[str, str]:
    """Subject and body of a follow-up reminder."""
    completed = _completed_on(project)
    subject = f"Gentle Reminder - Recommendation Letter Request - {project.name} Project"
    body = f"""Dear {contact},

I hope you are doing well.

This is a gentle follow-up regarding our request for a recommendation letter for the {project.name} project that was completed on {completed}.

We understand you have a busy schedule, but we would be extremely grateful if you could spare a few minutes to provide us with a brief testimonial or recommendation letter. Your feedback would be incredibly valuable for our business growth.

If you have already sent the recommendation letter and we may have missed it, please let us know and we will check our records.

Thank you for your time and continued support.

Best regards,
{project.manager}
Project Manager

---
Project: {project.name} | Client: {project.client} | Completed: {completed}
"""
    if letter_url:
        body += f"""
Recommendation Letter template: {letter_url}

Note: Please download the Recommendation Letter template using the link above, fill in the details, sign it, and send it back to us."""
    return subject, body


class MailComposeLauncher:
    """
    Opens a pre-filled compose window for an outbound email.

    Delivery is not confirmed; the composed message is only logged.
    """

    def __init__(self, log_path: Optional[str] = None, compose_url: Optional[str] = None):
        self.compose_url = compose_url or settings.MAIL_COMPOSE_URL
        self.email_log_path = Path(log_path or settings.MAIL_LOG_PATH)

    def _log_email(self, to: str, subject: str, body: str, url: str):
        """Append the composed email to the outreach log."""
        timestamp = datetime.now().isoformat()
        log_entry = f"""
================================================================================
EMAIL COMPOSED: {timestamp}
================================================================================
TO: {to}
SUBJECT: {subject}
COMPOSE URL: {url}
--------------------------------------------------------------------------------
BODY:
{body}
--------------------------------------------------------------------------------
"""
        self.email_log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.email_log_path, "a") as f:
            f.write(log_entry)

        logger.info(f"Email composed: to={to}, subject={subject}")

    async def open_compose(self, to: str, subject: str, body: str) -> None:
        """
        Open the compose window for an email.

        Args:
            to: Recipient email address
            subject: Email subject line
            body: Plain text body
        """
        url = build_compose_url(to, subject, body, self.compose_url)
        self._log_email(to, subject, body, url)
