"""
IdeaNote Backend: Target & Due-Date Codec
===========================================

What:  Parses and formats the two optional scalar fields of a note.
How:   Pure functions. Absence is `None` on both sides; a blank form input
       encodes to `None` and is never an error.
Who:   EditorSession (save/open) and NoteService (list rendering).

Wire formats:
    target    int ≥ 0, up to 4000 digits            "10"  ⇄ 10
    due_date  int nanoseconds since the Unix epoch  "2024-06-01T10:00" ⇄ 1717210800000000000 (UTC+7)
              signed 64-bit, so 1677-09-21 to 2262-04-11 only

Time zones:
    Form inputs are local wall-clock times without an offset. Every function
    takes an optional `tz`; `None` means the server's local zone, resolved
    with the offset in force at the instant being converted.

Precision:
    Due dates are encoded at millisecond precision (ms × 1,000,000), edited
    at minute precision, and displayed at minute precision.
"""

import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from ideanote.exceptions import ValidationError
from ideanote.schemas.note import (
    MAX_DUE_DATE_NS,
    MAX_TARGET_DIGITS,
    MIN_DUE_DATE_NS,
    DueDateDisplay,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
NANOS_PER_MILLI = 1_000_000
EDIT_FORMAT = "%Y-%m-%dT%H:%M"

_INTEGER_RE = re.compile(r"([+-]?)([0-9]+)")

# Form input: date, hours and minutes; optional seconds, fraction and offset
_DUE_DATE_RE = re.compile(
    r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}(:[0-9]{2}(\.[0-9]{1,6})?)?([+-][0-9]{2}:[0-9]{2})?"
)

# Indonesian month names (id-ID)
MONTHS_LONG = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)
MONTHS_SHORT = (
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
)


def resolve_timezone(name: str) -> Optional[tzinfo]:
    """IANA zone for a configured name; `None` (system zone) when blank."""
    name = name.strip()
    return ZoneInfo(name) if name else None


# ── Instant helpers ───────────────────────────────────────────────────────


def datetime_to_nanos(dt: datetime) -> int:
    """Nanoseconds since epoch. Naive datetimes are read as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // timedelta(microseconds=1) * 1_000


def nanos_to_datetime(ns: int) -> datetime:
    """Aware UTC datetime for a nanosecond timestamp (sub-microsecond part dropped)."""
    return EPOCH + timedelta(microseconds=ns // 1_000)


def _to_local(ns: int, tz: Optional[tzinfo]) -> datetime:
    return nanos_to_datetime(ns).astimezone(tz)


# ── Target ────────────────────────────────────────────────────────────────


def encode_target(raw: str) -> Optional[int]:
    """
    Parse the target form field.

    Examples:
        encode_target("10")   → 10
        encode_target("  ")   → None
        encode_target("-3")   → ValidationError
        encode_target("abc")  → ValidationError
    """
    text = raw.strip()
    if not text:
        return None

    match = _INTEGER_RE.fullmatch(text)
    if match is None:
        raise ValidationError(
            message=f"Target must be a whole number, got '{text}'",
            field="target",
            context={"value": text},
        )

    sign, digits = match.groups()
    digits = digits.lstrip("0") or "0"
    if len(digits) > MAX_TARGET_DIGITS:
        raise ValidationError(
            message=f"Target cannot be longer than {MAX_TARGET_DIGITS} digits",
            field="target",
            context={"digits": len(digits)},
        )

    value = int(sign + digits)
    if value < 0:
        raise ValidationError(
            message=f"Target cannot be negative, got {value}",
            field="target",
            context={"value": text},
        )
    return value


# ── Due date ──────────────────────────────────────────────────────────────


def encode_due_date(raw: str, tz: Optional[tzinfo] = None) -> Optional[int]:
    """
    Parse a local date-time form value into nanoseconds since epoch.

    Accepts "YYYY-MM-DDTHH:MM" with optional ":SS[.ffffff]" and an optional
    "+HH:MM" offset. A value that carries an offset is taken as-is. The result
    must fit a signed 64-bit nanosecond count (1677-09-21 to 2262-04-11).
    """
    text = raw.strip()
    if not text:
        return None

    try:
        if not _DUE_DATE_RE.fullmatch(text):
            raise ValueError(text)
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            # Without tz, astimezone() applies the system zone's offset for that wall time
            instant = parsed.replace(tzinfo=tz) if tz is not None else parsed.astimezone()
        else:
            instant = parsed
        millis = (instant - EPOCH) // timedelta(milliseconds=1)
    except (ValueError, OverflowError, OSError):
        raise ValidationError(
            message=f"Due date '{text}' is not a valid date-time (expected YYYY-MM-DDTHH:MM)",
            field="due_date",
            context={"value": text},
        )

    nanos = millis * NANOS_PER_MILLI
    if not MIN_DUE_DATE_NS <= nanos <= MAX_DUE_DATE_NS:
        raise ValidationError(
            message=f"Due date '{text}' is out of range (years 1677 to 2262)",
            field="due_date",
            context={"value": text},
        )
    return nanos


def decode_due_date_for_edit(ns: int, tz: Optional[tzinfo] = None) -> str:
    """Local wall-clock "YYYY-MM-DDTHH:MM" for re-editing a stored due date."""
    return _to_local(ns, tz).strftime(EDIT_FORMAT)


def _format_id(local: datetime, months) -> str:
    return (
        f"{local.day} {months[local.month - 1]} {local.year}, "
        f"{local.hour:02d}.{local.minute:02d}"
    )


def decode_due_date_for_display(
    ns: int,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> DueDateDisplay:
    """
    Render a due date for list views, e.g. "1 Jun 2024, 10.00".

    `overdue` compares the due instant to `now`, so callers pass the
    current time on every render.
    """
    instant = nanos_to_datetime(ns)
    if now.tzinfo is None:
        now = now.astimezone()
    return DueDateDisplay(
        formatted=_format_id(instant.astimezone(tz), MONTHS_SHORT),
        overdue=instant < now,
    )


def format_timestamp(ns: int, tz: Optional[tzinfo] = None) -> str:
    """Creation timestamp with the long month name, e.g. "1 Juni 2024, 10.00"."""
    return _format_id(_to_local(ns, tz), MONTHS_LONG)
