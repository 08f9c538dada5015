from email import message_from_string
import smtplib

import pytest

from app.core.config import settings
from app.services import notifier as notifier_module
from app.services.ics import build_ics, parse_duration_hours
from app.services.notifier import BookingMessage, EmailNotifier, Notifier


def message(**kw) -> BookingMessage:
    fields = dict(
        to="ana@example.com",
        customer_name="Ana Silva",
        booking_reference="LT-ABC1234",
        tour_name="Alfama Walk",
        tour_duration="3 hours",
        date="2099-03-10",
        time="10:00",
        participants=2,
        total_amount=3600,
        meeting_point="Praça do Comércio, by the arch",
    )
    fields.update(kw)
    return BookingMessage(**fields)


def test_duration_parsing():
    assert parse_duration_hours("3 hours") == 3
    assert parse_duration_hours("2,5 h") == 2.5
    assert parse_duration_hours("all day") == 3
    assert parse_duration_hours(None) == 3


def test_ics_event_uses_local_time_and_escapes_text():
    ics = build_ics("Alfama Walk", "Booking LT-ABC1234", "Praça, arch; gate", "2099-03-10", "10:00", 2.5, "Europe/Lisbon")
    assert ics.startswith("BEGIN:VCALENDAR\r\n")
    assert "DTSTART;TZID=Europe/Lisbon:20990310T100000\r\n" in ics
    assert "DTEND;TZID=Europe/Lisbon:20990310T123000\r\n" in ics
    assert "LOCATION:Praça\\, arch\\; gate\r\n" in ics
    assert ics.endswith("END:VCALENDAR\r\n")


def test_total_display():
    assert message(total_amount=1805).total_display == "€18.05"


def test_email_skipped_without_smtp(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "")

    def fail(*args, **kwargs):
        raise AssertionError("SMTP must not be used")

    monkeypatch.setattr(smtplib, "SMTP", fail)
    EmailNotifier().booking_requested(message())


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def sendmail(self, sender, recipients, body):
        FakeSMTP.sent.append((recipients, body))


def test_confirmation_carries_calendar_attachment(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(notifier_module.smtplib, "SMTP", FakeSMTP)
    EmailNotifier().booking_confirmed(message())
    assert len(FakeSMTP.sent) == 1
    recipients, body = FakeSMTP.sent[0]
    assert recipients == ["ana@example.com"]
    assert "tour.ics" in body
    assert "text/calendar" in body


def test_smtp_failure_is_logged_not_raised(monkeypatch, caplog):
    class Broken(FakeSMTP):
        def sendmail(self, sender, recipients, body):
            raise smtplib.SMTPException("relay denied")

    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(notifier_module.smtplib, "SMTP", Broken)
    EmailNotifier().booking_cancelled(message())
    assert "Failed to send email" in caplog.text


def html_part(raw: str) -> str:
    for part in message_from_string(raw).walk():
        if part.get_content_type() == "text/html":
            return part.get_payload(decode=True).decode(part.get_content_charset() or "utf-8")
    raise AssertionError("no html part")


def test_html_part_escapes_customer_text(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "admin_notify_email", "")
    monkeypatch.setattr(notifier_module.smtplib, "SMTP", FakeSMTP)
    EmailNotifier().booking_requested(message(customer_name="<script>alert(1)</script>"))
    assert len(FakeSMTP.sent) == 1
    body = html_part(FakeSMTP.sent[0][1])
    assert "<script>" not in body
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body


def test_notifier_must_implement_every_message():
    class Partial(Notifier):
        def booking_requested(self, msg):
            pass

    with pytest.raises(TypeError):
        Partial()
