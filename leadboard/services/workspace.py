"""
Workspace — one user's lead collection, filter store and filtered view.

Routes build a Workspace per request from the user's document (one read for
both halves) and call its commands. The filtered view is memoized on the
collection/store versions and the search query.
"""
import logging
from typing import Any, Dict, List, Optional

from leadboard.models.lead import Lead
from leadboard.services.document_store import DocumentStore, DocumentWriter
from leadboard.services.evaluator import FilteredView, has_active_values
from leadboard.services.filter_store import FilterStore
from leadboard.services.lead_collection import LeadCollection
from leadboard.services.schema import FieldDescriptor, distinct_values, find_field, infer_fields

logger = logging.getLogger('services.workspace')


class Workspace:

    def __init__(self, user_id: str, writer: DocumentWriter):
        self.user_id = user_id
        self.writer = writer
        self.leads = LeadCollection(user_id, writer)
        self.filters = FilterStore(user_id, writer)
        self.search_query = ''
        self._view = FilteredView()

    @classmethod
    def open(cls, user_id: str, store: DocumentStore, background: bool = False) -> 'Workspace':
        return cls.for_writer(user_id, DocumentWriter(store, background=background))

    @classmethod
    def for_writer(cls, user_id: str, writer: DocumentWriter) -> 'Workspace':
        """Hydrate from one document read.

        A failed read raises DocumentStoreError before anything is loaded, so no
        command can persist an empty snapshot over the stored document.
        """
        workspace = cls(user_id, writer)
        document = writer.read(user_id)
        workspace.leads.load(document)
        workspace.filters.load(document)
        return workspace

    # ── Schema ───────────────────────────────────────────────────────

    def fields(self) -> List[FieldDescriptor]:
        return infer_fields(self.leads.leads)

    def field(self, name: str) -> Optional[FieldDescriptor]:
        return find_field(self.fields(), name)

    def dropdown_candidates(self, field_name: str) -> List[str]:
        """Distinct values across the whole collection, not just the filtered view."""
        return distinct_values(self.leads.leads, field_name)

    def select_all(self, filter_id: str):
        flt = self.filters.get_filter(filter_id)
        return self.filters.select_all(filter_id, self.dropdown_candidates(flt.field))

    # ── Evaluation ───────────────────────────────────────────────────

    def set_search_query(self, query: Optional[str]):
        self.search_query = query or ''

    def filtered_leads(self) -> List[Lead]:
        return self._view.get(
            self.leads.leads, self.leads.version,
            self.filters.active_filters(), self.filters.version,
            self.search_query,
        )

    def summary(self) -> Dict[str, Any]:
        filtered = self.filtered_leads()
        return {
            'total': len(self.leads),
            'count': len(filtered),
            'filtering': has_active_values(self.filters.active_filters()),
            'query': self.search_query,
        }
