"""
Customer and admin emails about bookings.

Routes build a BookingMessage while the DB session is still open and hand it
to the notifier through BackgroundTasks, so sending happens after the commit
and a failing SMTP server never rolls back a booking. Without SMTP settings
messages are logged and skipped.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import html
import logging
import smtplib
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email import encoders

from app.core.config import settings
from app.models.availability import Availability
from app.models.booking import Booking
from app.models.tour import Tour
from app.schemas.i18n import localize
from app.services.ics import build_ics, parse_duration_hours

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingMessage:
    to: str
    customer_name: str
    booking_reference: str
    tour_name: str
    tour_duration: str
    date: str
    time: str
    participants: int
    total_amount: int
    meeting_point: str = ""
    refund_reason: str = ""

    @property
    def total_display(self) -> str:
        return f"€{self.total_amount / 100:.2f}"


def message_for(booking: Booking, tour: Tour, availability: Availability | None = None) -> BookingMessage:
    lang = booking.language or "en"
    day = booking.confirmed_date or (availability.date if availability else "")
    time = booking.confirmed_time or (availability.time if availability else "")
    return BookingMessage(
        to=booking.customer_email,
        customer_name=booking.customer_name,
        booking_reference=booking.booking_reference,
        tour_name=localize(tour.name, lang),
        tour_duration=localize(tour.duration, lang),
        date=day,
        time=time,
        participants=booking.number_of_participants,
        total_amount=booking.total_amount,
        meeting_point=booking.confirmed_meeting_point or "",
        refund_reason=booking.refund_reason or "",
    )


def review_link(reference: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/review/{reference}"


class Notifier(ABC):
    """Notification collaborator used by the booking routes."""

    @abstractmethod
    def booking_requested(self, msg: BookingMessage) -> None:
        ...

    @abstractmethod
    def booking_confirmed(self, msg: BookingMessage) -> None:
        ...

    @abstractmethod
    def booking_cancelled(self, msg: BookingMessage) -> None:
        ...

    @abstractmethod
    def booking_refunded(self, msg: BookingMessage) -> None:
        ...


class EmailNotifier(Notifier):
    def _from_address(self) -> str:
        if settings.email_from.strip():
            return settings.email_from.strip()
        user = settings.smtp_user.strip()
        return f"Tour Bookings <{user or 'noreply@localhost'}>"

    def _send(self, to: str, subject: str, body: str, ics: str | None = None) -> bool:
        if not to:
            return False
        if not settings.smtp_enabled:
            logger.info("SMTP not configured; skipping email '%s' to %s", subject, to)
            return False
        msg = MIMEMultipart("mixed")
        msg["Subject"] = subject
        msg["From"] = self._from_address()
        msg["To"] = to
        alt = MIMEMultipart("alternative")
        alt.attach(MIMEText(body, "plain"))
        alt.attach(MIMEText(f"<pre style='font-family:sans-serif'>{html.escape(body, quote=True)}</pre>", "html"))
        msg.attach(alt)
        if ics:
            part = MIMEBase("text", "calendar", method="PUBLISH", name="tour.ics")
            part.set_payload(ics.encode("utf-8"))
            encoders.encode_base64(part)
            part.add_header("Content-Disposition", "attachment", filename="tour.ics")
            msg.attach(part)
        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
                server.starttls()
                if settings.smtp_user:
                    server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(msg["From"], [to], msg.as_string())
            logger.info("Email '%s' sent to %s", subject, to)
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email '%s' to %s", subject, to)
            return False

    def booking_requested(self, msg: BookingMessage) -> None:
        body = "\n".join([
            f"Hello {msg.customer_name},",
            "",
            f"We received your request for {msg.tour_name}.",
            f"Requested date: {msg.date} at {msg.time}",
            f"Participants: {msg.participants}",
            f"Total: {msg.total_display}",
            f"Booking reference: {msg.booking_reference}",
            "",
            "We will confirm the final schedule and meeting point shortly.",
        ])
        self._send(msg.to, f"Booking request received - {msg.booking_reference}", body)
        if settings.admin_notify_email:
            self._send(
                settings.admin_notify_email,
                f"New booking request {msg.booking_reference}",
                f"{msg.customer_name} requested {msg.tour_name} on {msg.date} {msg.time} for {msg.participants}.",
            )

    def booking_confirmed(self, msg: BookingMessage) -> None:
        body = "\n".join([
            f"Hello {msg.customer_name},",
            "",
            f"Your {msg.tour_name} is confirmed.",
            f"Date: {msg.date}",
            f"Time: {msg.time}",
            f"Meeting point: {msg.meeting_point}",
            f"Participants: {msg.participants}",
            f"Total: {msg.total_display}",
            f"Booking reference: {msg.booking_reference}",
            "",
            f"After the tour, tell us how it went: {review_link(msg.booking_reference)}",
        ])
        ics = None
        if msg.date and msg.time:
            ics = build_ics(
                summary=msg.tour_name,
                description=f"Booking {msg.booking_reference}",
                location=msg.meeting_point,
                day=msg.date,
                time=msg.time,
                duration_hours=parse_duration_hours(msg.tour_duration),
                tzid=settings.business_timezone,
                url=f"{settings.public_base_url.rstrip('/')}/bookings/{msg.booking_reference}",
            )
        self._send(msg.to, f"Booking confirmed - {msg.booking_reference}", body, ics=ics)

    def booking_cancelled(self, msg: BookingMessage) -> None:
        body = "\n".join([
            f"Hello {msg.customer_name},",
            "",
            f"Your booking {msg.booking_reference} for {msg.tour_name} on {msg.date} has been cancelled.",
        ])
        self._send(msg.to, f"Booking cancelled - {msg.booking_reference}", body)

    def booking_refunded(self, msg: BookingMessage) -> None:
        body = "\n".join([
            f"Hello {msg.customer_name},",
            "",
            f"A refund of {msg.total_display} for booking {msg.booking_reference} has been issued.",
            f"Reason: {msg.refund_reason}" if msg.refund_reason else "",
        ])
        self._send(msg.to, f"Refund issued - {msg.booking_reference}", body)


_notifier = EmailNotifier()

def get_notifier() -> Notifier:
    return _notifier
