"""
Relative date resolution for user messages (French phrasing).

Recognizes: aujourd'hui, demain, après-demain, "dans N jours", weekday
names (optionally with "prochain"), and "<day> <month>".
"""

import re
from datetime import date, timedelta
from typing import Optional

# Monday = 0, matching date.weekday()
WEEKDAYS = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]

MONTHS = {
    "janvier": 1, "février": 2, "fevrier": 2, "mars": 3, "avril": 4,
    "mai": 5, "juin": 6, "juillet": 7, "août": 8, "aout": 8,
    "septembre": 9, "octobre": 10, "novembre": 11, "décembre": 12, "decembre": 12,
}

_IN_DAYS = re.compile(r"dans (\d+) jours?")
_DAY_MONTH = re.compile(r"(\d{1,2})\s*(" + "|".join(MONTHS) + r")")


def parse_relative_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """First date expression found in a text, resolved against today."""
    today = today or date.today()
    lower = text.lower()

    # Checked before "demain", which it contains
    if "après-demain" in lower or "apres-demain" in lower:
        return today + timedelta(days=2)
    if "aujourd'hui" in lower or "aujourdhui" in lower:
        return today
    if "demain" in lower:
        return today + timedelta(days=1)

    match = _IN_DAYS.search(lower)
    if match:
        return today + timedelta(days=int(match.group(1)))

    for weekday, name in enumerate(WEEKDAYS):
        if re.search(rf"\b{name}\b", lower):
            ahead = weekday - today.weekday()
            if ahead <= 0:
                ahead += 7
            if ("prochain" in lower or "prochaine" in lower) and ahead <= 1:
                ahead += 7
            return today + timedelta(days=ahead)

    match = _DAY_MONTH.search(lower)
    if match:
        day, month = int(match.group(1)), MONTHS[match.group(2)]
        try:
            target = date(today.year, month, day)
        except ValueError:
            return None
        if target < today:
            try:
                target = target.replace(year=today.year + 1)
            except ValueError:
                return None
        return target

    return None


def replace_dates_in_text(text: str, today: Optional[date] = None) -> str:
    """Append "(date: YYYY-MM-DD)" when the text names a date not already given."""
    parsed = parse_relative_date(text, today)
    if parsed is None:
        return text
    iso = parsed.isoformat()
    if iso in text:
        return text
    return f"{text} (date: {iso})"
