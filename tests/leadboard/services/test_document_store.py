"""Tests for the document store backends and DocumentWriter."""
import json
import time
from unittest.mock import MagicMock, patch

import pytest

from leadboard.errors import DocumentStoreError
from leadboard.services.document_store import (
    DocumentWriter, MemoryDocumentStore, RedisDocumentStore, SqlDocumentStore, get_document_store,
)


class SlowMemoryStore(MemoryDocumentStore):
    """Memory store whose merges take a while, like a remote backend under load."""

    def __init__(self, delay=0.1):
        super().__init__()
        self.delay = delay

    def merge(self, user_id, patch):
        time.sleep(self.delay)
        super().merge(user_id, patch)


class TestMemoryDocumentStore:

    def test_missing_document_is_empty(self, memory_store):
        assert memory_store.get('u1') == {}

    def test_merge_replaces_only_given_keys(self, memory_store):
        memory_store.merge('u1', {'savedLeads': [{'id': 1}], 'filters': []})
        memory_store.merge('u1', {'filters': [{'id': 'g'}]})
        assert memory_store.get('u1') == {'savedLeads': [{'id': 1}], 'filters': [{'id': 'g'}]}

    def test_returns_copies(self, memory_store):
        memory_store.merge('u1', {'filters': []})
        memory_store.get('u1')['filters'].append('x')
        assert memory_store.get('u1') == {'filters': []}


class TestSqlDocumentStore:

    def test_insert_then_merge(self, sql_store):
        sql_store.merge('u1', {'savedLeads': [{'id': 1, 'status': 'New'}]})
        sql_store.merge('u1', {'activeFilterIds': ['g1']})
        assert sql_store.get('u1') == {
            'savedLeads': [{'id': 1, 'status': 'New'}],
            'activeFilterIds': ['g1'],
        }

    def test_missing_document_is_empty(self, sql_store):
        assert sql_store.get('ghost') == {}

    def test_row_written(self, sql_store, db_session):
        from leadboard.models.user_document import UserDocument
        sql_store.merge('u1', {'filters': []})
        row = db_session.get(UserDocument, 'u1')
        assert row.data == {'filters': []}
        assert row.updated_at is not None

    def test_failure_raises_document_store_error(self):
        session = MagicMock()
        session.get.side_effect = RuntimeError('db down')
        store = SqlDocumentStore(session_factory=lambda: session)
        with pytest.raises(DocumentStoreError, match='Failed to write'):
            store.merge('u1', {'filters': []})
        session.rollback.assert_called_once()
        session.close.assert_called_once()


class TestRedisDocumentStore:

    def test_merge_and_get(self, mock_redis):
        store = RedisDocumentStore(redis_client=mock_redis)
        store.merge('u1', {'filters': []})
        store.merge('u1', {'activeFilterIds': ['g']})
        assert json.loads(mock_redis.data['userdoc:u1']) == {'filters': [], 'activeFilterIds': ['g']}
        assert store.get('u1') == {'filters': [], 'activeFilterIds': ['g']}

    def test_ttl_uses_setex(self, mock_redis):
        store = RedisDocumentStore(redis_client=mock_redis, ttl=3600)
        store.merge('u1', {'filters': []})
        mock_redis.setex.assert_called_once()
        assert mock_redis.setex.call_args[0][:2] == ('userdoc:u1', 3600)
        mock_redis.set.assert_not_called()

    def test_corrupt_document_reads_empty(self, mock_redis):
        mock_redis.data['userdoc:u1'] = '{not json'
        assert RedisDocumentStore(redis_client=mock_redis).get('u1') == {}

    def test_connection_error_raises(self):
        client = MagicMock()
        client.get.side_effect = ConnectionError('refused')
        with pytest.raises(DocumentStoreError):
            RedisDocumentStore(redis_client=client).get('u1')


class TestDocumentWriter:

    def test_write_success(self, memory_store):
        writer = DocumentWriter(memory_store)
        assert writer.write('u1', {'filters': []}) is True
        assert memory_store.get('u1') == {'filters': []}

    def test_write_failure_logged_not_raised(self, failing_writer, caplog):
        assert failing_writer.write('u1', {'filters': []}) is False
        assert 'Failed to persist filters for user u1' in caplog.text

    def test_patch_snapshot_taken_at_call(self, memory_store):
        writer = DocumentWriter(memory_store)
        patch_data = {'savedLeads': [{'id': 1}]}
        writer.write('u1', patch_data)
        patch_data['savedLeads'].append({'id': 2})
        assert memory_store.get('u1') == {'savedLeads': [{'id': 1}]}

    def test_read_failure_raises(self, caplog):
        store = MagicMock()
        store.get.side_effect = DocumentStoreError('boom')
        with pytest.raises(DocumentStoreError):
            DocumentWriter(store).read('u1')
        assert 'Failed to load document' in caplog.text

    def test_unexpected_read_error_wrapped(self):
        store = MagicMock()
        store.get.side_effect = ConnectionError('refused')
        with pytest.raises(DocumentStoreError, match='refused'):
            DocumentWriter(store).read('u1')

    def test_read_waits_for_queued_writes(self):
        store = SlowMemoryStore(delay=0.2)
        writer = DocumentWriter(store, background=True)
        writer.write('u1', {'filters': [{'id': 'g1'}]})
        assert writer.read('u1') == {'filters': [{'id': 'g1'}]}

    def test_background_writes_land_in_order(self, memory_store):
        writer = DocumentWriter(memory_store, background=True)
        for n in range(20):
            writer.write('u1', {'activeFilterIds': [str(n)]})
        writer.flush(timeout=5)
        assert memory_store.get('u1') == {'activeFilterIds': ['19']}

    def test_background_write_returns_future(self, memory_store):
        writer = DocumentWriter(memory_store, background=True)
        future = writer.write('u1', {'filters': []})
        assert future.result(timeout=5) is True


class TestGetDocumentStore:

    def test_memory(self):
        assert isinstance(get_document_store('memory'), MemoryDocumentStore)

    def test_redis_uses_shared_client(self, mock_redis):
        with patch('leadboard.extensions.get_redis', return_value=mock_redis):
            store = get_document_store('redis')
        assert isinstance(store, RedisDocumentStore)
        assert store.redis is mock_redis

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match='Unknown DOCUMENT_STORE'):
            get_document_store('mongo')
