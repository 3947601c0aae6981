"""Tests for LeadCollection and import row normalization."""
from unittest.mock import patch

import pytest

from leadboard.models.lead import Lead
from leadboard.services.lead_collection import LeadCollection, rows_to_leads


@pytest.fixture
def collection(writer):
    return LeadCollection('u1', writer)


class TestRowsToLeads:

    def test_blank_rows_dropped(self):
        rows = [{'id': 1, 'name': 'Ada'}, {'name': '', 'company': None}, {}]
        assert [lead.id for lead in rows_to_leads(rows)] == [1]

    def test_missing_ids_assigned_from_base(self):
        rows = [{'name': 'Ada'}, {'id': 'keep', 'name': 'Grace'}, {'id': '', 'name': 'Alan'}]
        leads = rows_to_leads(rows, id_base=1000)
        assert [lead.id for lead in leads] == [1000, 'keep', 1002]

    def test_default_base_is_current_time(self):
        with patch('leadboard.services.lead_collection.time.time', return_value=1700000000.0):
            leads = rows_to_leads([{'name': 'Ada'}])
        assert leads[0].id == 1700000000000

    def test_field_order_preserved(self):
        lead = rows_to_leads([{'id': 1, 'b': 1, 'a': 2}])[0]
        assert list(lead.fields) == ['b', 'a']


class TestReplaceAll:

    def test_replaces_and_persists(self, collection, memory_store, sample_rows):
        leads = collection.replace_all(sample_rows)
        assert len(collection) == 3
        assert [lead.id for lead in leads] == [1, 2, 3]
        stored = memory_store.get('u1')['savedLeads']
        assert stored[0]['name'] == 'Ada Byron'
        assert stored[0]['id'] == 1

    def test_accepts_lead_objects(self, collection, sample_leads):
        collection.replace_all(sample_leads)
        assert collection.leads == sample_leads

    def test_empty_import_clears(self, collection, sample_leads, memory_store):
        collection.replace_all(sample_leads)
        collection.replace_all([])
        assert len(collection) == 0
        assert memory_store.get('u1')['savedLeads'] == []

    def test_bumps_version(self, collection, sample_leads):
        before = collection.version
        collection.replace_all(sample_leads)
        assert collection.version > before


class TestAddLead:

    def test_appends_dict(self, collection, sample_leads):
        collection.replace_all(sample_leads)
        lead = collection.add_lead({'id': 9, 'status': 'New'})
        assert collection.leads[-1] is lead
        assert len(collection) == 3

    def test_blank_lead_rejected(self, collection):
        with pytest.raises(ValueError, match='no values'):
            collection.add_lead({'name': ''})

    def test_accepts_lead_object(self, collection):
        lead = Lead(id=5, fields={'status': 'New'})
        assert collection.add_lead(lead) is lead


class TestUpdateOne:

    def test_replaces_matching_lead(self, collection, sample_leads, memory_store):
        collection.replace_all(sample_leads)
        assert collection.update_one(Lead(id=2, fields={'status': 'Won', 'value': 75})) is True
        assert collection.find(2).fields['status'] == 'Won'
        assert memory_store.get('u1')['savedLeads'][1]['status'] == 'Won'

    def test_matches_ids_as_text(self, collection, sample_leads):
        collection.replace_all(sample_leads)
        assert collection.update_one(Lead(id='1', fields={'status': 'Won'}))
        assert collection.find(1).fields['status'] == 'Won'

    def test_unknown_id_is_noop(self, collection, sample_leads, writer):
        collection.replace_all(sample_leads)
        version = collection.version
        with patch.object(writer, 'write') as mock_write:
            assert collection.update_one(Lead(id=99, fields={})) is False
        mock_write.assert_not_called()
        assert collection.version == version
        assert collection.leads == sample_leads


class TestDeleteMany:

    def test_removes_listed_ids(self, collection, sample_leads, memory_store):
        collection.replace_all(sample_leads)
        assert collection.delete_many(['1']) == 1
        assert [lead.id for lead in collection] == [2]
        assert [row['id'] for row in memory_store.get('u1')['savedLeads']] == [2]

    def test_unknown_ids_tolerated(self, collection, sample_leads):
        collection.replace_all(sample_leads)
        assert collection.delete_many([42, 'x']) == 0
        assert len(collection) == 2

    def test_empty_list(self, collection, sample_leads):
        collection.replace_all(sample_leads)
        assert collection.delete_many([]) == 0


class TestLoad:

    def test_round_trip(self, collection, writer, sample_rows):
        collection.replace_all(sample_rows)
        restored = LeadCollection('u1', writer).load()
        assert restored.leads == collection.leads

    def test_missing_document(self, writer):
        assert LeadCollection('nobody', writer).load().leads == []

    def test_write_failure_keeps_memory_state(self, failing_writer, sample_leads):
        collection = LeadCollection('u1', failing_writer)
        collection.replace_all(sample_leads)
        assert collection.leads == sample_leads
