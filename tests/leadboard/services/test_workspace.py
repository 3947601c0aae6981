"""Tests for Workspace — hydration and the memoized filtered view."""
import time
from unittest.mock import patch

import pytest

from leadboard.errors import DocumentStoreError
from leadboard.services.document_store import DocumentWriter, MemoryDocumentStore
from leadboard.services.workspace import Workspace


@pytest.fixture
def workspace(writer, sample_leads):
    ws = Workspace.for_writer('u1', writer)
    ws.leads.replace_all(sample_leads)
    return ws


class TestHydration:

    def test_open_reads_document_once(self, memory_store, sample_leads):
        Workspace.open('u1', memory_store).leads.replace_all(sample_leads)
        with patch.object(memory_store, 'get', wraps=memory_store.get) as spy:
            ws = Workspace.open('u1', memory_store)
        assert spy.call_count == 1
        assert ws.leads.leads == sample_leads

    def test_filters_restored(self, workspace, writer):
        group = workspace.filters.add_filter('status', 'dropdown', value=['New'])
        restored = Workspace.for_writer('u1', writer)
        assert restored.filters.get_group(group.id).name == 'Status Filter'
        assert [lead.id for lead in restored.filtered_leads()] == [1]

    def test_new_user_is_empty(self, writer):
        ws = Workspace.for_writer('fresh', writer)
        assert ws.fields() == []
        assert ws.filtered_leads() == []
        assert ws.summary() == {'total': 0, 'count': 0, 'filtering': False, 'query': ''}


class TestFilteredLeads:

    def test_end_to_end_scenarios(self, workspace):
        group = workspace.filters.add_filter('value', 'numberCondition')
        flt = group.filters[0]
        workspace.filters.add_condition(flt.id, '>', 60)
        assert [lead.id for lead in workspace.filtered_leads()] == [1]

        workspace.set_search_query('clo')
        assert workspace.filtered_leads() == []

        workspace.filters.toggle_condition(flt.id, 0)
        assert [lead.id for lead in workspace.filtered_leads()] == [2]

    def test_deactivated_group_stops_filtering(self, workspace):
        group = workspace.filters.add_filter('status', 'dropdown', value=['Closed'])
        assert [lead.id for lead in workspace.filtered_leads()] == [2]
        workspace.filters.toggle_filter_group(group.id)
        assert [lead.id for lead in workspace.filtered_leads()] == [1, 2]

    def test_cache_reused_until_something_changes(self, workspace):
        workspace.filtered_leads()
        workspace.filtered_leads()
        assert workspace._view.recomputations == 1
        workspace.leads.add_lead({'id': 3, 'status': 'New', 'value': 10})
        assert len(workspace.filtered_leads()) == 3
        assert workspace._view.recomputations == 2

    def test_summary(self, workspace):
        workspace.filters.add_filter('status', 'dropdown', value=['New'])
        assert workspace.summary() == {'total': 2, 'count': 1, 'filtering': True, 'query': ''}


class TestSchemaHelpers:

    def test_fields_from_first_lead(self, workspace):
        assert [(f.name, f.type) for f in workspace.fields()] == [('status', 'string'), ('value', 'number')]
        assert workspace.field('value').label == 'Value'
        assert workspace.field('missing') is None

    def test_dropdown_candidates_ignore_filters(self, workspace):
        workspace.filters.add_filter('status', 'dropdown', value=['New'])
        assert workspace.dropdown_candidates('status') == ['New', 'Closed']

    def test_select_all_uses_whole_collection(self, workspace):
        flt = workspace.filters.add_filter('status', 'dropdown').filters[0]
        selected = workspace.select_all(flt.id)
        assert selected.value == ['New', 'Closed']
        assert len(workspace.filtered_leads()) == 2


def test_background_writer_persists_after_flush(memory_store, sample_leads):
    writer = DocumentWriter(memory_store, background=True)
    ws = Workspace.for_writer('u1', writer)
    ws.leads.replace_all(sample_leads)
    ws.filters.add_filter('status', 'dropdown', value=['New'])
    writer.flush(timeout=5)
    assert len(memory_store.get('u1')['savedLeads']) == 2
    assert len(memory_store.get('u1')['filters']) == 1


class FlakyReadStore(MemoryDocumentStore):
    """Memory store whose next `failures` reads raise."""

    def __init__(self):
        super().__init__()
        self.failures = 0

    def get(self, user_id):
        if self.failures:
            self.failures -= 1
            raise DocumentStoreError('connection reset')
        return super().get(user_id)


class SlowMergeStore(MemoryDocumentStore):

    def merge(self, user_id, patch):
        time.sleep(0.2)
        super().merge(user_id, patch)


class TestStoreFailures:
    """A failed or stale read must never lead to stored data being replaced."""

    def test_failed_read_raises_and_keeps_document(self, sample_leads):
        store = FlakyReadStore()
        ws = Workspace.open('u1', store)
        ws.leads.replace_all(sample_leads)
        ws.filters.add_filter('status', 'dropdown', value=['New'])
        ws.filters.add_filter('value', 'numberCondition')

        store.failures = 1
        with pytest.raises(DocumentStoreError):
            Workspace.open('u1', store)

        doc = store.get('u1')
        assert len(doc['savedLeads']) == 2
        assert len(doc['filters']) == 2

    def test_next_request_after_failed_read_sees_everything(self, sample_leads):
        store = FlakyReadStore()
        Workspace.open('u1', store).leads.replace_all(sample_leads)
        store.failures = 1
        with pytest.raises(DocumentStoreError):
            Workspace.open('u1', store)

        ws = Workspace.open('u1', store)
        ws.leads.delete_many([999])
        assert len(store.get('u1')['savedLeads']) == 2

    def test_background_writes_visible_to_next_workspace(self):
        store = SlowMergeStore()
        writer = DocumentWriter(store, background=True)

        Workspace.for_writer('u1', writer).filters.add_filter('status', 'search', value='x')
        Workspace.for_writer('u1', writer).filters.add_filter('value', 'numberCondition')
        writer.flush(timeout=5)

        groups = store.get('u1')['filters']
        assert [g['filters'][0]['field'] for g in groups] == ['status', 'value']
