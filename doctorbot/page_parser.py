from __future__ import annotations

import datetime as dt
import json
import re

from doctorbot.domain import PageParseError

BASE_URL = "https://serguide.maccabi4u.co.il"

_INITIAL_STATE_RE = re.compile(r"window\.__INITIAL_STATE__ = ({.*?})\s*;", re.DOTALL)
_DATE_RE = re.compile(r"(?<!\d)(\d{2})/(\d{2})/(\d{4}|\d{2})(?!\d)")


def build_appointment_url(item_key_index: str) -> str:
    return f"{BASE_URL}/heb/doctors/doctorssearchresults/doctorsinfopage/?ItemKeyIndex={item_key_index}"


def parse_date_string(raw: str) -> dt.date:
    """Extract the first DD/MM/YY or DD/MM/YYYY date from ``raw``.

    Two-digit years are read as 2000+YY, four-digit years as written.
    """
    m = _DATE_RE.search(raw)
    if not m:
        raise PageParseError(f"Appointment date format is incorrect or missing: {raw!r}")

    day, month, year = m.groups()
    y = int(year)
    if len(year) == 2:
        y += 2000

    try:
        return dt.date(y, int(month), int(day))
    except ValueError as e:
        raise PageParseError(f"Invalid appointment date: {m.group(0)!r}") from e


def parse_appointment_date(html: str) -> dt.date | None:
    """Read the next appointment date from a doctor info page.

    Returns None when the page state has no AppointmentDateTime, which is how
    the site says that nothing is currently published.
    """
    m = _INITIAL_STATE_RE.search(html)
    if not m:
        raise PageParseError("Initial state match not found in webpage content")

    try:
        data = json.loads(m.group(1))
    except json.JSONDecodeError as e:
        raise PageParseError(f"Initial state is not valid JSON ({e})") from e

    info = data.get("info") if isinstance(data, dict) else None
    results = info.get("infoResults") if isinstance(info, dict) else None
    full_date_str = results.get("AppointmentDateTime") if isinstance(results, dict) else None
    if not full_date_str:
        return None

    return parse_date_string(str(full_date_str))
