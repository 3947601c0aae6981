"""
Primitive value coercion shared by schema inference and filter evaluation.

Lead values arrive as whatever the importer produced (mostly strings from CSV
rows, sometimes real numbers, booleans or datetimes). Every comparison in the
filter engine goes through one of three projections:

  stringify()   → text used for substring search and dropdown membership
  to_number()   → float used by number conditions (NaN when not numeric)
  to_epoch_ms() → float used by date conditions (NaN when not a date)

None of them raise: anything that cannot be coerced becomes '' or NaN, and
every comparison against NaN is false.
"""
import math
import re
from datetime import datetime, date, timezone

NAN = float('nan')

_NUMERIC_RE = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')
# ISO 8601 calendar date, optionally followed by a time part
_ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$')


def stringify(value) -> str:
    """Render a lead value as text. Missing values render as ''."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def is_numeric_string(text: str) -> bool:
    return bool(_NUMERIC_RE.match(text.strip()))


def is_iso_date_string(text: str) -> bool:
    return bool(_ISO_DATE_RE.match(text.strip())) and parse_iso(text) is not None


def parse_iso(text: str):
    """Parse an ISO 8601 string to an aware datetime, or None."""
    try:
        parsed = datetime.fromisoformat(text.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def datetime_to_epoch_ms(value) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp() * 1000.0
    # plain date → midnight UTC
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp() * 1000.0


def to_number(value) -> float:
    """Numeric projection. Non-numeric input becomes NaN."""
    if value is None:
        return NAN
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (datetime, date)):
        return datetime_to_epoch_ms(value)
    if isinstance(value, str) and is_numeric_string(value):
        return float(value)
    return NAN


def to_epoch_ms(value) -> float:
    """Date projection in epoch milliseconds. Numbers are taken as epoch ms."""
    if value is None or isinstance(value, bool):
        return NAN
    if isinstance(value, (datetime, date)):
        return datetime_to_epoch_ms(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        if is_numeric_string(value):
            return float(value)
        parsed = parse_iso(value) if _ISO_DATE_RE.match(value.strip()) else None
        if parsed is not None:
            return datetime_to_epoch_ms(parsed)
    return NAN


def is_nan(number: float) -> bool:
    return isinstance(number, float) and math.isnan(number)


def to_jsonable(value):
    """Lead value as it is written to the document store."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
