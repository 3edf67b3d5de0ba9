"""Amounts are integer cents; these helpers convert for display and entry."""

import re
from typing import Optional

_AMOUNT_RE = re.compile(r"^(\d*)(?:\.(\d*))?$")


def format_currency(cents: int) -> str:
    """Format cents as dollars, e.g. -105 -> '-$1.05'."""
    sign = "-" if cents < 0 else ""
    dollars, remainder = divmod(abs(cents), 100)
    return f"{sign}${dollars}.{remainder:02d}"


def parse_currency(text: str) -> Optional[int]:
    """Parse '12.34', '$12', '.5', '-3.1' into cents. Returns None if unparseable.

    Digits past the second decimal place are dropped, not rounded.
    """
    cleaned = text.strip()
    negative = cleaned.startswith("-")
    cleaned = cleaned.removeprefix("-").removeprefix("$")

    match = _AMOUNT_RE.match(cleaned)
    if not match or not cleaned or cleaned == ".":
        return None

    dollars = int(match.group(1) or 0)
    fraction = (match.group(2) or "")[:2].ljust(2, "0")
    total = dollars * 100 + int(fraction)
    return -total if negative else total
