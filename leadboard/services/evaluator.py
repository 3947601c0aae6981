"""
Filter evaluation — projects the lead collection through the active filters
and the free-text search box.

evaluate(leads, filters, query) keeps a lead when

    matches_search(lead)  AND  every filter matches the lead

Per-mode rules:
  search          empty value matches everything, else case-insensitive substring
  dropdown        empty selection matches everything, else membership
  number/date     only active conditions count; all of them must hold;
                  no active conditions → vacuously true

Missing fields read as None → '' / NaN, so they never match a non-empty
search or dropdown and never satisfy a comparison. Nothing here raises on
odd lead data, and nothing mutates its inputs. Output keeps input order.
"""
import logging
import operator as op
from typing import Callable, List, Optional, Sequence

from leadboard.config import MODE_DATE
from leadboard.models.filters import (
    Condition, Filter, SearchFilter, DropdownFilter, NumberConditionFilter,
)
from leadboard.models.lead import Lead
from leadboard.values import stringify, to_number, to_epoch_ms

logger = logging.getLogger('services.evaluator')

Predicate = Callable[[Lead], bool]

COMPARATORS = {
    '=': op.eq,
    '>': op.gt,
    '<': op.lt,
    '>=': op.ge,
    '<=': op.le,
}


# ── Single-value tests ────────────────────────────────────────────────────────

def compare(left: float, condition: Condition) -> bool:
    """Apply one condition. Comparisons involving NaN are always False."""
    comparator = COMPARATORS.get(condition.operator)
    if comparator is None:
        return True
    return comparator(left, condition.value)


def matches_search(lead: Lead, query: str) -> bool:
    """True if the query is empty or any value of the lead contains it."""
    if not query:
        return True
    needle = query.lower()
    return any(needle in stringify(value).lower() for value in lead.values())


# ── Per-filter predicates ─────────────────────────────────────────────────────

def _always(lead: Lead) -> bool:
    return True


def compile_filter(flt: Filter) -> Predicate:
    """Resolve a filter once into a predicate over leads."""
    field_name = flt.field

    if isinstance(flt, SearchFilter):
        if not flt.value:
            return _always
        needle = flt.value.lower()
        return lambda lead: needle in stringify(lead.get(field_name)).lower()

    if isinstance(flt, DropdownFilter):
        if not flt.value:
            return _always
        selected = frozenset(flt.value)
        return lambda lead: stringify(lead.get(field_name)) in selected

    if isinstance(flt, NumberConditionFilter):
        conditions = flt.active_conditions()
        if not conditions:
            return _always
        project = to_epoch_ms if flt.mode == MODE_DATE else to_number

        def _conditions_hold(lead: Lead) -> bool:
            left = project(lead.get(field_name))
            return all(compare(left, c) for c in conditions)
        return _conditions_hold

    logger.warning("No evaluator for filter %s with mode %r; ignoring it", flt.id, flt.mode)
    return _always


def matches_filter(lead: Lead, flt: Filter) -> bool:
    return compile_filter(flt)(lead)


# ── Collection projection ─────────────────────────────────────────────────────

def evaluate(leads: Sequence[Lead], filters: Sequence[Filter], search_query: str = '') -> List[Lead]:
    """Return the leads that match the search query and every filter, in input order."""
    predicates = [compile_filter(f) for f in filters]
    query = search_query or ''
    result = [
        lead for lead in leads
        if matches_search(lead, query) and all(p(lead) for p in predicates)
    ]
    logger.debug(
        "Evaluated %d leads against %d filters (query=%r): %d matched",
        len(leads), len(predicates), query, len(result),
    )
    return result


def has_active_values(filters: Sequence[Filter]) -> bool:
    """True when at least one filter would narrow the result."""
    for flt in filters:
        if isinstance(flt, NumberConditionFilter):
            if flt.active_conditions():
                return True
        elif not flt.is_empty():
            return True
    return False


class FilteredView:
    """
    Memoized evaluate().

    Recomputes only when the leads, the filters, or the query differ from the
    previous call. Leads and filters are compared by version tokens supplied
    by their owners, so the check is O(1).
    """

    def __init__(self, evaluate_fn=evaluate):
        self._evaluate = evaluate_fn
        self._key = None
        self._result: Optional[List[Lead]] = None
        self.recomputations = 0

    def get(self, leads: Sequence[Lead], leads_version, filters: Sequence[Filter], filters_version,
            search_query: str = '') -> List[Lead]:
        key = (leads_version, filters_version, search_query or '')
        if self._result is None or key != self._key:
            self._result = self._evaluate(leads, filters, search_query)
            self._key = key
            self.recomputations += 1
        return list(self._result)

    def invalidate(self):
        self._key = None
        self._result = None
