"""Date/time detection by trying a fixed list of layouts."""

from datetime import datetime, timezone

# Tried in order, the first exact match wins.
TIME_LAYOUTS = [
    '%a %b %d %H:%M:%S %Y',           # ANSIC
    '%a %b %d %H:%M:%S %Z %Y',        # UnixDate
    '%a %b %d %H:%M:%S %z %Y',        # RubyDate
    '%d %b %y %H:%M %Z',              # RFC822
    '%d %b %y %H:%M %z',              # RFC822Z
    '%A, %d-%b-%y %H:%M:%S %Z',       # RFC850
    '%a, %d %b %Y %H:%M:%S %Z',       # RFC1123
    '%a, %d %b %Y %H:%M:%S %z',       # RFC1123Z
    '%Y-%m-%dT%H:%M:%S%z',            # RFC3339
    '%Y-%m-%dT%H:%M:%S.%f%z',         # RFC3339 with fractional seconds
    '%I:%M%p',                        # Kitchen
    '%b %d %H:%M:%S',                 # Stamp
    '%b %d %H:%M:%S.%f',              # Stamp with fractional seconds
    '%Y%m%d',
    '%Y/%m/%d',
    '%Y/%m/%d %H:%M',
    '%Y-%m-%d',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%d %H:%M:%S',
]

DISPLAY_FORMAT = '%Y-%m-%d %H:%M:%S'

# strptime accepts one-digit months and days, these layouts must not
FIXED_WIDTH_LAYOUTS = {'%Y%m%d': 8}


def parse_datetime(value: str) -> datetime:
    """
    Parse a date/time string with the first matching layout.

    Zone-aware results are converted to UTC and returned naive, so every
    parsed value can be compared with every other.

    Raises:
        ValueError: If no layout matches
    """
    for layout in TIME_LAYOUTS:
        width = FIXED_WIDTH_LAYOUTS.get(layout)
        if width is not None and len(value) != width:
            continue
        try:
            parsed = datetime.strptime(value, layout)
        except ValueError:
            continue
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    raise ValueError(f"no time layout matches {value!r}")


def format_datetime(value: datetime) -> str:
    """Format a timestamp the way reports display it."""
    return value.strftime(DISPLAY_FORMAT)
