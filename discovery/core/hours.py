"""
core/hours.py – Parse free-text open hours ("10:00 AM - 9:00 PM", "10:00-21:00")
and match them against now / a requested window.

All comparisons happen on one calendar day. "6 PM - 2 AM" parses, but close
lands before open so it never matches.
"""
import re
from datetime import date, datetime
from typing import Optional

_CLOCK_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M:%S %p", "%I %p")
_RANGE_SPLIT = re.compile(r"\s*[-–]\s*")
_AMPM_GLUE = re.compile(r"(\d)(AM|PM)$")


def parse_clock(text: Optional[str], day: date) -> Optional[datetime]:
    """'9:30 PM' / '21:30' → datetime on `day`. None if unparseable."""
    if not text:
        return None
    cleaned = _AMPM_GLUE.sub(r"\1 \2", " ".join(text.strip().upper().split()))
    for fmt in _CLOCK_FORMATS:
        try:
            parsed = datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
        return datetime.combine(day, parsed.time())
    return None


def parse_open_hours(hours: Optional[str], day: date) -> Optional[tuple[datetime, datetime]]:
    if not hours:
        return None
    parts = _RANGE_SPLIT.split(hours.strip())
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    opens = parse_clock(parts[0], day)
    closes = parse_clock(parts[1], day)
    if opens is None or closes is None:
        return None
    return opens, closes


def is_open_now(hours: Optional[str], now: datetime) -> bool:
    parsed = parse_open_hours(hours, now.date())
    if parsed is None:
        return False
    opens, closes = parsed
    return opens < now < closes


def within_custom_hours(
    hours: Optional[str],
    open_from: Optional[str],
    open_to: Optional[str],
    now: datetime,
) -> bool:
    """
    Both bounds → shop interval must overlap [from, to] (from < to required).
    Only from → shop closes after `from`. Only to → shop opens before `to`.
    """
    parsed = parse_open_hours(hours, now.date())
    if parsed is None:
        return False
    shop_open, shop_close = parsed
    today = now.date()

    if open_from and open_to:
        req_from = parse_clock(open_from, today)
        req_to = parse_clock(open_to, today)
        if req_from is None or req_to is None or req_from >= req_to:
            return False
        return shop_open < req_to and shop_close > req_from

    if open_from:
        req_from = parse_clock(open_from, today)
        return req_from is not None and shop_close > req_from

    if open_to:
        req_to = parse_clock(open_to, today)
        return req_to is not None and shop_open < req_to

    return False
