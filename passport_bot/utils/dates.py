from __future__ import annotations

import logging
from datetime import date

from dateutil import parser

logger = logging.getLogger(__name__)

# MRZ years up to this value belong to the 2000s, the rest to the 1900s.
MRZ_CENTURY_PIVOT = 30


def parse_date(value: str | None) -> date | None:
    """Parse a free-text date, day first ("03/04/2020" is 3 April 2020)."""
    if not value or not value.strip():
        return None
    try:
        return parser.parse(value, dayfirst=True).date()
    except (ValueError, OverflowError, parser.ParserError):
        logger.debug("Unparseable date %r", value)
        return None


def parse_mrz_date(value: str | None) -> date | None:
    """Decode an MRZ ``YYMMDD`` date."""
    if not value or len(value) != 6 or not value.isdigit():
        return None

    year, month, day = int(value[:2]), int(value[2:4]), int(value[4:])
    year += 2000 if year <= MRZ_CENTURY_PIVOT else 1900
    try:
        return date(year, month, day)
    except ValueError:
        return None


__all__ = ["parse_date", "parse_mrz_date"]
