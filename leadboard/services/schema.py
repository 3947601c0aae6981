"""
Schema inference — derives filterable fields from schema-less lead records.

Types are sampled from the first lead only. If a later lead holds a different
kind of value for the same field, the first lead wins; evaluation still
works because every comparison coerces per value.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, date
from typing import Dict, List, Optional, Sequence

from leadboard.config import ID_FIELD, MODES_BY_FIELD_TYPE
from leadboard.models.lead import Lead
from leadboard.values import (
    stringify, is_iso_date_string, is_numeric_string, is_nan, parse_iso, to_number,
)

logger = logging.getLogger('services.schema')

_LABEL_SPLIT_RE = re.compile(r'(?=[A-Z])|_|-')


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    label: str
    type: str

    @property
    def modes(self) -> List[str]:
        return list(MODES_BY_FIELD_TYPE[self.type])

    def to_dict(self) -> Dict:
        return {'key': self.name, 'label': self.label, 'type': self.type, 'modes': self.modes}


def detect_field_type(value) -> str:
    """Classify one sample value as date, number, boolean or string."""
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (datetime, date)):
        return 'date'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        if is_iso_date_string(value):
            return 'date'
        if is_numeric_string(value):
            return 'number'
        if value in ('true', 'false'):
            return 'boolean'
    return 'string'


def format_field_label(key: str) -> str:
    """lastContact → 'Last Contact', deal_value → 'Deal Value'."""
    words = [w for w in _LABEL_SPLIT_RE.split(key) if w]
    return ' '.join(w[:1].upper() + w[1:].lower() for w in words)


def infer_fields(leads: Sequence[Lead]) -> List[FieldDescriptor]:
    """Candidate filter fields from the first lead, excluding the identifier."""
    if not leads:
        return []
    sample = leads[0]
    fields = [
        FieldDescriptor(name=name, label=format_field_label(name), type=detect_field_type(value))
        for name, value in sample.fields.items()
        if name != ID_FIELD
    ]
    logger.debug("Inferred %d fields from lead %s", len(fields), sample.id)
    return fields


def find_field(fields: Sequence[FieldDescriptor], name: str) -> Optional[FieldDescriptor]:
    for descriptor in fields:
        if descriptor.name == name:
            return descriptor
    return None


def distinct_values(leads: Sequence[Lead], field_name: str) -> List[str]:
    """Dropdown candidates: distinct stringified values in first-seen order."""
    seen = {}
    for lead in leads:
        seen.setdefault(stringify(lead.get(field_name)), None)
    return list(seen)


# ── Display / form helpers ────────────────────────────────────────────────────

def format_field_value(value, field_type: str) -> str:
    if value is None:
        return ''
    if field_type == 'date':
        if isinstance(value, (datetime, date)):
            return value.date().isoformat() if isinstance(value, datetime) else value.isoformat()
        parsed = parse_iso(str(value))
        return parsed.date().isoformat() if parsed else str(value)
    if field_type == 'number':
        number = to_number(value)
        if is_nan(number):
            return str(value)
        if number.is_integer():
            return f'{int(number):,}'
        return f'{number:,}'
    if field_type == 'boolean':
        return stringify(value).lower()
    return stringify(value)


def parse_field_value(text: str, field_type: str):
    """Turn form input back into a typed lead value.

    Text that does not parse for the type yields None (dates, booleans) or NaN
    (numbers); callers keep the raw text in that case.
    """
    if field_type == 'date':
        return parse_iso(text)
    if field_type == 'number':
        number = to_number(text)
        if not is_nan(number) and number.is_integer():
            return int(number)
        return number
    if field_type == 'boolean':
        lowered = text.strip().lower()
        if lowered in ('true', 'false'):
            return lowered == 'true'
        return None
    return text
