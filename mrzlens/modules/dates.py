"""
Date and age derivation.

MRZ dates are YYMMDD with no century. We resolve the century with a pivot:
- expiry dates: YY > 60 -> 19YY, else 20YY (documents do not expire in
  the distant past, and nothing is issued for more than ~40 years)
- birth dates: YY > current YY -> 19YY, else 20YY (nobody is born in
  the future)

Derived values:
- days_remaining: ceil((expiry - now) / 1 day), negative once expired
- age: year distance between now and the birth date. This ignores the
  exact month and day, so it can be one year off around birthdays.
"""

import math
import re
from datetime import datetime, timedelta

from mrzlens.models import DecodedFields, ParsedData


EXPIRY_PIVOT = 60

EPOCH = datetime(1970, 1, 1)

YYMMDD = re.compile(r"[0-9]{6}")


def resolve_century(yy: int, is_expiry: bool, today: datetime) -> int:
    """Turn a 2-digit year into a 4-digit year with the pivot rules."""
    if is_expiry:
        return 1900 + yy if yy > EXPIRY_PIVOT else 2000 + yy
    return 1900 + yy if yy > today.year % 100 else 2000 + yy


def parse_mrz_date(yymmdd: str | None, is_expiry: bool, today: datetime | None = None) -> datetime | None:
    """
    Parse a YYMMDD field.

    Args:
        yymmdd: 6-character field from the MRZ
        is_expiry: Use the expiry pivot instead of the birth pivot
        today: Reference date for the birth pivot (defaults to now)

    Returns:
        datetime at midnight, or None if the field is not 6 digits or not
        a real calendar date (e.g. "740230" -> Feb 30)

    Examples:
        >>> parse_mrz_date("740812", is_expiry=False)
        datetime.datetime(1974, 8, 12, 0, 0)
        >>> parse_mrz_date("120415", is_expiry=True)
        datetime.datetime(2012, 4, 15, 0, 0)
        >>> parse_mrz_date("12<415", is_expiry=True) is None
        True
    """
    if not yymmdd or not YYMMDD.fullmatch(yymmdd):
        return None

    today = today or datetime.now()
    yy = int(yymmdd[0:2])
    month = int(yymmdd[2:4])
    day = int(yymmdd[4:6])
    year = resolve_century(yy, is_expiry, today)

    try:
        return datetime(year, month, day)
    except ValueError:
        # Month 13, February 30, day 00...
        return None


def days_until(expiry: datetime, now: datetime) -> int:
    """Days left before expiry, rounded up. Negative when already expired."""
    return math.ceil((expiry - now) / timedelta(days=1))


def age_at(birth: datetime, now: datetime) -> int:
    """
    Coarse age in years.

    Adds the elapsed time to the Unix epoch and reads the year offset,
    so month and day are not taken into account.
    """
    return abs((EPOCH + (now - birth)).year - EPOCH.year)


def derive_dates(fields: DecodedFields, now: datetime | None = None) -> ParsedData:
    """
    Build the date part of ParsedData from raw fields.

    Derived values stay None when their source date is missing or invalid.
    """
    now = now or datetime.now()
    parsed = ParsedData(
        birth_date=parse_mrz_date(fields.birth_date, is_expiry=False, today=now),
        expiry_date=parse_mrz_date(fields.expiry_date, is_expiry=True, today=now),
    )

    if parsed.expiry_date is not None:
        parsed.days_remaining = days_until(parsed.expiry_date, now)
    if parsed.birth_date is not None:
        parsed.age = age_at(parsed.birth_date, now)

    return parsed
