"""
Best-effort parsing of the free-text dates returned by the extraction model.

Invoice dates come back in whatever shape was printed on the invoice
("2024-03-05", "05/03/2024", "5.3.24", "March 5, 2024"). Numeric dates with
three parts are read as Y-M-D when the first part has four characters and as
D-M-Y otherwise. Two-digit years are taken as 20YY. Anything else goes
through dateutil. Values that cannot be
read are rejected (None), never guessed.
"""

import logging
import re
from datetime import date, datetime
from typing import Optional

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[/\-.]")
_LEADING_INT = re.compile(r"^\s*(\d+)")

DISPLAY_FORMAT = "%B %d, %Y"
TIMESTAMP_FORMAT = "%B %d, %Y %I:%M %p"


def _leading_int(part: str) -> int:
    """Read the leading digits of a date part ("05T10:00" -> 5)."""
    match = _LEADING_INT.match(part)
    if not match:
        raise ValueError(f"not a number: {part!r}")
    return int(match.group(1))


def parse_invoice_date(text: Optional[str]) -> Optional[date]:
    """
    Parse an invoice date string.

    Args:
        text: Date as extracted from the invoice

    Returns:
        The calendar date, or None when the text is not a valid date
    """
    if not text or not text.strip():
        return None

    text = text.strip()
    parts = _SEPARATORS.split(text)

    try:
        if len(parts) == 3:
            if len(parts[0].strip()) == 4:
                year, month, day = parts
            else:
                day, month, year = parts
            full_year = _leading_int(year)
            if full_year < 100:
                full_year += 2000
            return date(full_year, _leading_int(month), _leading_int(day))

        default = datetime(date.today().year, 1, 1)
        return dateutil_parser.parse(text, dayfirst=True, default=default).date()
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse invoice date {text!r}: {e}")
        return None


def format_display_date(text: Optional[str]) -> str:
    """Format an invoice date for display, or 'N/A' when it does not parse."""
    parsed = parse_invoice_date(text)
    if parsed is None:
        return "N/A"
    return parsed.strftime(DISPLAY_FORMAT)


def format_upload_timestamp(value: Optional[str]) -> str:
    """Format an ISO upload timestamp for display."""
    if not value:
        return "N/A"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime(TIMESTAMP_FORMAT)
