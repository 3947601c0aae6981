"""
FilterStore — working filters, saved filter groups and their activation.

State:
    filters         → working Filter list (what the UI edits)
    groups          → SavedFilterGroup list (the saved library)
    active_group_ids→ ids of groups currently applied, in activation order

Every user-added filter becomes its own saved, active group. A filter that
belongs to groups is evaluated only while at least one of those groups is
active; a filter in no group is always evaluated.

Each mutating command updates memory first, then merge-writes the full group
list and active ids to the user's document. Write failures are logged by the
DocumentWriter and never roll the in-memory state back.
"""
import dataclasses
import logging
from typing import Any, Dict, Iterable, List, Optional

from leadboard.config import FILTERS_KEY, ACTIVE_GROUPS_KEY
from leadboard.errors import FilterValidationError, NotFoundError
from leadboard.models.filters import (
    Filter, SavedFilterGroup,
    build_filter, cleared, new_id,
    add_condition, remove_condition, toggle_condition,
    toggle_dropdown_value, select_all_values, with_field, with_value,
)
from leadboard.services.document_store import DocumentWriter
from leadboard.services.schema import format_field_label

logger = logging.getLogger('services.filter_store')


class FilterStore:

    def __init__(self, user_id: str, writer: DocumentWriter):
        self.user_id = user_id
        self.writer = writer
        self.filters: List[Filter] = []
        self.groups: List[SavedFilterGroup] = []
        self.active_group_ids: List[str] = []
        self.version = 0

    # ── Hydration / persistence ───────────────────────────────────────

    def load(self, document: Optional[Dict[str, Any]] = None) -> 'FilterStore':
        """Hydrate from the user's document; working filters are the groups flattened."""
        if document is None:
            document = self.writer.read(self.user_id)
        groups = []
        for raw in document.get(FILTERS_KEY) or []:
            try:
                groups.append(SavedFilterGroup.from_dict(raw))
            except FilterValidationError as e:
                logger.warning("Skipping unreadable filter group %r for user %s: %s",
                               raw.get('id') if isinstance(raw, dict) else raw, self.user_id, e)
        self.groups = groups
        self.filters = []
        seen = set()
        for group in groups:
            for flt in group.filters:
                if flt.id not in seen:
                    seen.add(flt.id)
                    self.filters.append(flt)
        known = {g.id for g in groups}
        self.active_group_ids = [gid for gid in document.get(ACTIVE_GROUPS_KEY) or [] if gid in known]
        self._touch()
        logger.debug("Loaded %d groups / %d filters for user %s",
                     len(self.groups), len(self.filters), self.user_id)
        return self

    def to_document(self) -> Dict[str, Any]:
        return {
            FILTERS_KEY: [g.to_dict() for g in self.groups],
            ACTIVE_GROUPS_KEY: list(self.active_group_ids),
        }

    def _persist(self):
        return self.writer.write(self.user_id, self.to_document())

    def _touch(self):
        self.version += 1

    # ── Lookups ──────────────────────────────────────────────────────

    def get_filter(self, filter_id: str) -> Filter:
        for flt in self.filters:
            if flt.id == filter_id:
                return flt
        raise NotFoundError(f"Filter {filter_id} not found")

    def get_group(self, group_id: str) -> SavedFilterGroup:
        for group in self.groups:
            if group.id == group_id:
                return group
        raise NotFoundError(f"Filter group {group_id} not found")

    def is_group_active(self, group_id: str) -> bool:
        return group_id in self.active_group_ids

    def active_filters(self) -> List[Filter]:
        """Working filters that currently take part in evaluation."""
        active = set(self.active_group_ids)
        result = []
        for flt in self.filters:
            owners = [g.id for g in self.groups if g.contains(flt.id)]
            if not owners or any(gid in active for gid in owners):
                result.append(flt)
        return result

    # ── Filter commands ──────────────────────────────────────────────

    def add_filter(self, field: Optional[str], mode: Optional[str], value=None,
                   name: Optional[str] = None, group_name: Optional[str] = None) -> SavedFilterGroup:
        """Create a filter plus its own saved group, activate the group, persist.

        Raises FilterValidationError (and changes nothing) when no field is given.
        """
        flt = build_filter(field, mode, value=value,
                           name=name or (format_field_label(field) if isinstance(field, str) else None))
        group = SavedFilterGroup(
            id=new_id(),
            name=group_name or f"{flt.field[:1].upper()}{flt.field[1:]} Filter",
            filters=[flt],
        )
        self.filters.append(flt)
        self.groups.append(group)
        self.active_group_ids.append(group.id)
        self._touch()
        logger.info("User %s added %s filter %s on '%s' (group %s)",
                    self.user_id, flt.mode, flt.id, flt.field, group.id)
        self._persist()
        return group

    def remove_filter(self, filter_id: str) -> None:
        """Drop a filter; groups left empty are deleted and deactivated."""
        self.get_filter(filter_id)
        self.filters = [f for f in self.filters if f.id != filter_id]
        emptied = []
        kept = []
        for group in self.groups:
            if group.contains(filter_id):
                group.filters = [f for f in group.filters if f.id != filter_id]
                if not group.filters:
                    emptied.append(group.id)
                    continue
            kept.append(group)
        self.groups = kept
        self.active_group_ids = [gid for gid in self.active_group_ids if gid not in emptied]
        self._touch()
        logger.info("User %s removed filter %s (dropped groups: %s)",
                    self.user_id, filter_id, ', '.join(emptied) or 'none')
        self._persist()

    def update_filter(self, updated: Filter) -> Filter:
        """Replace a filter by id in the working list and in every group holding it."""
        self.get_filter(updated.id)
        if not isinstance(updated.field, str) or not updated.field.strip():
            raise FilterValidationError('A field is required')
        self.filters = [updated if f.id == updated.id else f for f in self.filters]
        for group in self.groups:
            if group.contains(updated.id):
                group.filters = [updated if f.id == updated.id else f for f in group.filters]
        self._touch()
        logger.info("User %s updated filter %s", self.user_id, updated.id)
        self._persist()
        return updated

    def edit_filter(self, filter_id: str, field: Optional[str] = None, value=None,
                    name: Optional[str] = None, clear: bool = False) -> Filter:
        """Partial edit of field / value / name, then update_filter()."""
        flt = self.get_filter(filter_id)
        if field is not None:
            flt = with_field(flt, field)
        if clear:
            flt = cleared(flt)
        elif value is not None:
            flt = with_value(flt, value)
        if name is not None:
            flt = dataclasses.replace(flt, name=name)
        return self.update_filter(flt)

    def reset_filters(self) -> None:
        """Empty every filter's value; keep the filter definitions and groups."""
        reset = {f.id: cleared(f) for f in self.filters}
        self.filters = [reset[f.id] for f in self.filters]
        for group in self.groups:
            group.filters = [reset.get(f.id, cleared(f)) for f in group.filters]
        self._touch()
        logger.info("User %s reset %d filters", self.user_id, len(reset))
        self._persist()

    # ── Condition / dropdown commands ────────────────────────────────

    def add_condition(self, filter_id: str, operator: str, value) -> Filter:
        return self.update_filter(add_condition(self.get_filter(filter_id), operator, value))

    def remove_condition(self, filter_id: str, index: int) -> Filter:
        return self.update_filter(remove_condition(self.get_filter(filter_id), index))

    def toggle_condition(self, filter_id: str, index: int) -> Filter:
        return self.update_filter(toggle_condition(self.get_filter(filter_id), index))

    def toggle_value(self, filter_id: str, candidate) -> Filter:
        return self.update_filter(toggle_dropdown_value(self.get_filter(filter_id), candidate))

    def select_all(self, filter_id: str, candidates: Iterable) -> Filter:
        return self.update_filter(select_all_values(self.get_filter(filter_id), candidates))

    # ── Group commands ───────────────────────────────────────────────

    def save_filter_group(self, name: str, filter_ids: Iterable[str]) -> SavedFilterGroup:
        """Bundle existing working filters into a new named group and activate it."""
        name = (name or '').strip()
        if not name:
            raise FilterValidationError('A group name is required')
        members = [self.get_filter(fid) for fid in dict.fromkeys(filter_ids)]
        if not members:
            raise FilterValidationError('A group needs at least one filter')
        group = SavedFilterGroup(id=new_id(), name=name, filters=members)
        self.groups.append(group)
        self.active_group_ids.append(group.id)
        self._touch()
        logger.info("User %s saved group %s '%s' with %d filters",
                    self.user_id, group.id, name, len(members))
        self._persist()
        return group

    def toggle_filter_group(self, group_id: str) -> bool:
        """Flip a group's activation. Returns the new state. Filters are untouched."""
        self.get_group(group_id)
        if group_id in self.active_group_ids:
            self.active_group_ids = [gid for gid in self.active_group_ids if gid != group_id]
            active = False
        else:
            self.active_group_ids.append(group_id)
            active = True
        self._touch()
        logger.info("User %s %s group %s", self.user_id, 'activated' if active else 'deactivated', group_id)
        self._persist()
        return active

    apply_filter_group = toggle_filter_group

    def delete_filter_group(self, group_id: str) -> None:
        """Remove a group together with its filters."""
        group = self.get_group(group_id)
        member_ids = set(group.filter_ids())
        self.groups = [g for g in self.groups if g.id != group_id]
        self.filters = [f for f in self.filters if f.id not in member_ids]
        # other groups sharing those filters lose them too
        emptied = []
        for other in self.groups:
            other.filters = [f for f in other.filters if f.id not in member_ids]
            if not other.filters:
                emptied.append(other.id)
        self.groups = [g for g in self.groups if g.id not in emptied]
        dropped = {group_id, *emptied}
        self.active_group_ids = [gid for gid in self.active_group_ids if gid not in dropped]
        self._touch()
        logger.info("User %s deleted group %s (%d filters)", self.user_id, group_id, len(member_ids))
        self._persist()

    # ── Views ────────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            'filters': [f.to_dict() for f in self.filters],
            'groups': [
                {**g.to_dict(), 'active': g.id in self.active_group_ids}
                for g in self.groups
            ],
            'active_group_ids': list(self.active_group_ids),
        }
