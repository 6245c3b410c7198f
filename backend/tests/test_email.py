"""Tests for client outreach emails."""
from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest

from projecthub.services.email import MailComposeLauncher, build_compose_url, reminder_email, request_email

from conftest import make_record


@pytest.fixture
def project():
    return make_record("p1", status="completed", completed_date=date(2026, 10, 1))


def test_compose_url_encodes_fields():
    url = build_compose_url("jane@acme.com", "Hello & welcome", "Line 1\nLine 2", "https://mail.test/")

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert url.startswith("https://mail.test/?")
    assert query["view"] == ["cm"]
    assert query["to"] == ["jane@acme.com"]
    assert query["su"] == ["Hello & welcome"]
    assert query["body"] == ["Line 1\nLine 2"]


def test_request_email(project):
    subject, body = request_email(project, "Jane Smith")

    assert subject == "Recommendation Letter Request - Refinery Upgrade Project"
    assert body.startswith("Dear Jane Smith,")
    assert "completed on 2026-10-01" in body
    assert "PO Number: PO-1001" in body
    assert "Dana Lee\nProject Manager" in body


def test_reminder_email_links_template(project):
    subject, body = reminder_email(project, "Jane Smith", "https://files.test/letter.docx")

    assert subject == "Gentle Reminder - Recommendation Letter Request - Refinery Upgrade Project"
    assert "Recommendation Letter template: https://files.test/letter.docx" in body


def test_reminder_email_without_template(project):
    _, body = reminder_email(project, "Jane Smith")
    assert "template" not in body


@pytest.mark.asyncio
async def test_launcher_logs_composed_email(tmp_path):
    log_path = tmp_path / "outreach" / "emails.log"
    launcher = MailComposeLauncher(log_path=str(log_path), compose_url="https://mail.test/")

    await launcher.open_compose("jane@acme.com", "Subject line", "Body text")

    content = log_path.read_text()
    assert "TO: jane@acme.com" in content
    assert "SUBJECT: Subject line" in content
    assert "COMPOSE URL: https://mail.test/?view=cm" in content
