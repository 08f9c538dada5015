"""Minimal RFC 5545 calendar file for a confirmed tour."""
from __future__ import annotations

from datetime import datetime, timedelta
import re
import uuid

DEFAULT_DURATION_HOURS = 3
_DURATION_RE = re.compile(r"(\d+(?:[.,]\d+)?)")


def _esc(value: str) -> str:
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace("\r", "")
        .replace("\n", "\\n")
        .replace(",", "\\,")
        .replace(";", "\\;")
    )


def _fmt_local(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def parse_duration_hours(text: str | None) -> float:
    """'3 hours' -> 3.0, '2,5 h' -> 2.5; anything unparsable gives the default."""
    match = _DURATION_RE.search(text or "")
    if not match:
        return DEFAULT_DURATION_HOURS
    return float(match.group(1).replace(",", "."))


def build_ics(
    summary: str,
    description: str,
    location: str,
    day: str,
    time: str,
    duration_hours: float,
    tzid: str,
    url: str | None = None,
) -> str:
    start = datetime.strptime(f"{day} {time}", "%Y-%m-%d %H:%M")
    end = start + timedelta(hours=duration_hours)
    stamp = datetime.utcnow().strftime("%Y%m%dT%H%M%SZ")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Tour Booking//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uuid.uuid4()}@tour-booking",
        f"SUMMARY:{_esc(summary)}",
        f"DTSTAMP:{stamp}",
        f"DTSTART;TZID={tzid}:{_fmt_local(start)}",
        f"DTEND;TZID={tzid}:{_fmt_local(end)}",
        f"DESCRIPTION:{_esc(description)}",
        f"LOCATION:{_esc(location)}",
    ]
    if url:
        lines.append(f"URL:{url}")
    lines += ["STATUS:CONFIRMED", "SEQUENCE:0", "END:VEVENT", "END:VCALENDAR"]
    return "\r\n".join(lines) + "\r\n"
