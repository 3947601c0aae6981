"""
Filter predicate model.

A Filter targets one lead field and carries a value whose shape depends on its
mode:

  search           → str (substring, '' matches everything)
  dropdown         → list of str (selected values, [] matches everything)
  numberCondition  → list of Condition
  dateCondition    → list of Condition (values in epoch milliseconds)

Each mode is its own dataclass so the value type travels with the mode. The
condition modes always hold a list, even when empty.

Filters are treated as values: the builder functions below return a new
Filter and the FilterStore swaps it in by id.
"""
import dataclasses
import uuid
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Type

from leadboard.config import (
    MODE_SEARCH, MODE_DROPDOWN, MODE_NUMBER, MODE_DATE,
    LEGACY_MODE_NAMES, OPERATORS,
)
from leadboard.errors import FilterValidationError, NotFoundError
from leadboard.values import stringify, to_number, to_epoch_ms, is_nan


def new_id() -> str:
    return str(uuid.uuid4())


# ── Conditions ────────────────────────────────────────────────────────────────

@dataclass
class Condition:
    operator: str
    value: float
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {'operator': self.operator, 'value': self.value, 'isActive': self.is_active}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], mode: str = MODE_NUMBER) -> 'Condition':
        return make_condition(
            data.get('operator', '='),
            data.get('value', 0),
            mode=mode,
            is_active=data.get('isActive', data.get('is_active', True)),
        )


def make_condition(operator: str, value, mode: str = MODE_NUMBER, is_active: bool = True) -> Condition:
    """Validate raw input and build a Condition.

    Date conditions accept a datetime or ISO string and store epoch ms.
    """
    if operator not in OPERATORS:
        raise FilterValidationError(f"Unknown operator '{operator}'")
    if mode == MODE_DATE:
        number = to_epoch_ms(value)
    else:
        number = to_number(value)
    if is_nan(number):
        raise FilterValidationError(f"Condition value {value!r} is not a valid {'date' if mode == MODE_DATE else 'number'}")
    if number.is_integer():
        number = int(number)
    return Condition(operator=operator, value=number, is_active=bool(is_active))


# ── Filters ───────────────────────────────────────────────────────────────────

@dataclass
class Filter:
    id: str
    field: str
    name: str = ''

    mode: ClassVar[str] = ''

    def is_empty(self) -> bool:
        """True when the filter holds no user-chosen value."""
        return not self.value

    def value_to_json(self):
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'field': self.field,
            'mode': self.mode,
            'value': self.value_to_json(),
        }


@dataclass
class SearchFilter(Filter):
    value: str = ''

    mode: ClassVar[str] = MODE_SEARCH


@dataclass
class DropdownFilter(Filter):
    value: List[str] = field(default_factory=list)

    mode: ClassVar[str] = MODE_DROPDOWN


@dataclass
class NumberConditionFilter(Filter):
    value: List[Condition] = field(default_factory=list)

    mode: ClassVar[str] = MODE_NUMBER

    def active_conditions(self) -> List[Condition]:
        return [c for c in self.value if c.is_active]

    def value_to_json(self):
        return [c.to_dict() for c in self.value]


@dataclass
class DateConditionFilter(NumberConditionFilter):
    mode: ClassVar[str] = MODE_DATE


FILTER_CLASSES: Dict[str, Type[Filter]] = {
    MODE_SEARCH: SearchFilter,
    MODE_DROPDOWN: DropdownFilter,
    MODE_NUMBER: NumberConditionFilter,
    MODE_DATE: DateConditionFilter,
}


def normalize_mode(mode: Optional[str]) -> str:
    mode = LEGACY_MODE_NAMES.get(mode, mode)
    if mode not in FILTER_CLASSES:
        raise FilterValidationError(f"Unknown filter mode '{mode}'")
    return mode


def empty_value(mode: str):
    """The value a freshly created (or reset) filter of this mode holds."""
    mode = normalize_mode(mode)
    if mode == MODE_SEARCH:
        return ''
    return []


def _normalize_value(mode: str, value):
    if value is None:
        return empty_value(mode)

    if mode == MODE_SEARCH:
        if isinstance(value, (list, tuple, set, dict)):
            raise FilterValidationError("Search filter value must be text")
        return stringify(value)

    if mode == MODE_DROPDOWN:
        if isinstance(value, (str, int, float, bool)):
            value = [value]
        if not isinstance(value, (list, tuple, set)):
            raise FilterValidationError("Dropdown filter value must be a list of values")
        selected = []
        for item in value:
            text = stringify(item)
            if text not in selected:
                selected.append(text)
        return selected

    if not isinstance(value, (list, tuple)):
        raise FilterValidationError("Condition filter value must be a list of conditions")
    conditions = []
    for item in value:
        if isinstance(item, Condition):
            conditions.append(dataclasses.replace(item))
        elif isinstance(item, dict):
            conditions.append(Condition.from_dict(item, mode=mode))
        else:
            raise FilterValidationError(f"Invalid condition {item!r}")
    return conditions


def build_filter(
    field: Optional[str],
    mode: Optional[str],
    value=None,
    name: Optional[str] = None,
    filter_id: Optional[str] = None,
) -> Filter:
    """Construct a Filter from raw input.

    Raises FilterValidationError when no field is selected, the mode is
    unknown, or the value does not fit the mode.
    """
    if not isinstance(field, str) or not field.strip():
        raise FilterValidationError('A field is required')
    mode = normalize_mode(mode)
    cls = FILTER_CLASSES[mode]
    return cls(
        id=filter_id or new_id(),
        field=field,
        name=name if name is not None else field,
        value=_normalize_value(mode, value),
    )


def filter_from_dict(data: Dict[str, Any]) -> Filter:
    """Rebuild a Filter from its stored form (accepts `type` as the mode key)."""
    mode = data.get('mode') or data.get('type')
    return build_filter(
        data.get('field'),
        mode,
        value=data.get('value'),
        name=data.get('name'),
        filter_id=data.get('id'),
    )


# ── Edits (each returns a new Filter) ─────────────────────────────────────────

def with_value(flt: Filter, value) -> Filter:
    return dataclasses.replace(flt, value=_normalize_value(flt.mode, value))


def with_field(flt: Filter, field: str) -> Filter:
    if not isinstance(field, str) or not field.strip():
        raise FilterValidationError('A field is required')
    return dataclasses.replace(flt, field=field)


def cleared(flt: Filter) -> Filter:
    return dataclasses.replace(flt, value=empty_value(flt.mode))


def _require(flt: Filter, *classes):
    if not isinstance(flt, classes):
        raise FilterValidationError(f"Operation not supported for {flt.mode} filters")


def toggle_dropdown_value(flt: Filter, candidate) -> Filter:
    """Add the candidate to the selection, or remove it if already selected."""
    _require(flt, DropdownFilter)
    text = stringify(candidate)
    if text in flt.value:
        selected = [v for v in flt.value if v != text]
    else:
        selected = flt.value + [text]
    return dataclasses.replace(flt, value=selected)


def select_all_values(flt: Filter, candidates: Iterable) -> Filter:
    _require(flt, DropdownFilter)
    return dataclasses.replace(flt, value=_normalize_value(MODE_DROPDOWN, list(candidates)))


def add_condition(flt: Filter, operator: str, value) -> Filter:
    _require(flt, NumberConditionFilter)
    condition = make_condition(operator, value, mode=flt.mode)
    return dataclasses.replace(flt, value=flt.value + [condition])


def _check_index(flt: NumberConditionFilter, index: int):
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(flt.value):
        raise NotFoundError(f"Filter {flt.id} has no condition at index {index}")


def remove_condition(flt: Filter, index: int) -> Filter:
    _require(flt, NumberConditionFilter)
    _check_index(flt, index)
    return dataclasses.replace(flt, value=[c for i, c in enumerate(flt.value) if i != index])


def toggle_condition(flt: Filter, index: int) -> Filter:
    _require(flt, NumberConditionFilter)
    _check_index(flt, index)
    conditions = [
        dataclasses.replace(c, is_active=not c.is_active) if i == index else c
        for i, c in enumerate(flt.value)
    ]
    return dataclasses.replace(flt, value=conditions)


# ── Saved groups ──────────────────────────────────────────────────────────────

@dataclass
class SavedFilterGroup:
    """A named bundle of filters. Whether it is applied lives in the store's active-id set."""
    id: str
    name: str
    filters: List[Filter] = field(default_factory=list)

    def filter_ids(self) -> List[str]:
        return [f.id for f in self.filters]

    def contains(self, filter_id: str) -> bool:
        return any(f.id == filter_id for f in self.filters)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'filters': [f.to_dict() for f in self.filters],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SavedFilterGroup':
        return cls(
            id=data.get('id') or new_id(),
            name=data.get('name', ''),
            filters=[filter_from_dict(f) for f in data.get('filters') or []],
        )
