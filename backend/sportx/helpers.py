from __future__ import annotations

from datetime import datetime, timezone, tzinfo

from dateutil import parser as date_parser

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_date(value: str | datetime | None, tz: tzinfo = timezone.utc) -> str:
    """Format a timestamp as ``"Wed, 24 Mar 20:45"`` in ``tz``.

    Returns an empty string for ``None`` and unparsable input. Naive values are
    taken as UTC.
    """

    if value is None:
        return ""
    if isinstance(value, datetime):
        moment = value
    else:
        try:
            moment = date_parser.isoparse(str(value))
        except (ValueError, TypeError, OverflowError):
            return ""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(tz)
    return (
        f"{_DAYS[local.weekday()]}, {local.day:02d} {_MONTHS[local.month - 1]} "
        f"{local.hour:02d}:{local.minute:02d}"
    )
