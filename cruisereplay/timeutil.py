"""
ISO 8601 / RFC 3339 parsing helpers.
"""

import re
from datetime import datetime, timezone

# Seconds fraction of any length; fromisoformat before 3.11 takes only 3 or 6 digits
_FRACTION_RE = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


def _six_digit_fraction(m) -> str:
    return f"{m.group(1)}.{(m.group(2) + '000000')[:6]}"


def parse_iso_utc(text: str) -> datetime:
    """
    Parse an ISO 8601 timestamp, converting to UTC.

    A trailing 'Z' or a missing offset both mean UTC. Fractional seconds
    beyond microsecond precision are truncated.

    Raises:
        ValueError: If text is not ISO 8601
    """
    text = text.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(_six_digit_fraction, text, count=1)
    t = datetime.fromisoformat(text)
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)
