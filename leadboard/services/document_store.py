"""
Per-user document store — get / merge-write over one JSON document per user.

Backends:
  SqlDocumentStore    → user_documents table (JSON column), default
  RedisDocumentStore  → userdoc:{user_id} JSON blob
  MemoryDocumentStore → process-local dict (local dev, tests)

merge() replaces the given top-level keys and leaves the others alone. There
are no version checks: the last write wins.

DocumentWriter sits in front of a store for the mutating services. Its writes
never raise: a failed write is logged and the in-memory state the caller
already changed is kept as-is. The next successful write sends the full
snapshot again, which reconciles the document.

Reads are strict. read() first waits for this writer's queued writes, so a
request never hydrates from a document older than a change already accepted,
and a failed read raises DocumentStoreError instead of handing back an empty
document that the next write would store over the real one.
"""
import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from leadboard.errors import DocumentStoreError

logger = logging.getLogger('services.document_store')


class DocumentStore(ABC):

    @abstractmethod
    def get(self, user_id: str) -> Dict[str, Any]:
        """Return the user's document, or {} when none exists."""

    @abstractmethod
    def merge(self, user_id: str, patch: Dict[str, Any]) -> None:
        """Write the top-level keys of patch into the user's document."""


class MemoryDocumentStore(DocumentStore):

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, user_id):
        with self._lock:
            return copy.deepcopy(self._docs.get(user_id, {}))

    def merge(self, user_id, patch):
        with self._lock:
            doc = self._docs.setdefault(user_id, {})
            doc.update(copy.deepcopy(patch))


class SqlDocumentStore(DocumentStore):
    """
    Documents in the user_documents table.

    session_factory defaults to leadboard.database.get_session; tests inject
    a factory bound to an in-memory SQLite engine.
    """

    def __init__(self, session_factory: Optional[Callable] = None):
        if session_factory is None:
            from leadboard.database import get_session
            session_factory = get_session
        self._session_factory = session_factory

    def get(self, user_id):
        from leadboard.models.user_document import UserDocument
        session = self._session_factory()
        try:
            row = session.get(UserDocument, user_id)
            return copy.deepcopy(row.data) if row and row.data else {}
        except Exception as e:
            raise DocumentStoreError(f"Failed to read document for {user_id}: {e}") from e
        finally:
            session.close()

    def merge(self, user_id, patch):
        from leadboard.models.user_document import UserDocument
        session = self._session_factory()
        try:
            row = session.get(UserDocument, user_id)
            if row is None:
                row = UserDocument(user_id=user_id, data=copy.deepcopy(patch))
                session.add(row)
            else:
                # reassign so SQLAlchemy sees the JSON column change
                row.data = {**(row.data or {}), **copy.deepcopy(patch)}
            session.commit()
        except Exception as e:
            session.rollback()
            raise DocumentStoreError(f"Failed to write document for {user_id}: {e}") from e
        finally:
            session.close()


class RedisDocumentStore(DocumentStore):
    """
    Keys:
        userdoc:{user_id} → JSON blob of the whole document
    """

    PREFIX = 'userdoc'

    def __init__(self, redis_client=None, ttl: int = 0):
        if redis_client is None:
            from leadboard.extensions import get_redis
            redis_client = get_redis()
        self.redis = redis_client
        self.ttl = ttl

    def _key(self, user_id):
        return f'{self.PREFIX}:{user_id}'

    def get(self, user_id):
        try:
            raw = self.redis.get(self._key(user_id))
        except Exception as e:
            raise DocumentStoreError(f"Failed to read document for {user_id}: {e}") from e
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except ValueError:
            logger.error("Corrupt document for user %s; treating as empty", user_id)
            return {}

    def merge(self, user_id, patch):
        doc = self.get(user_id)
        doc.update(patch)
        try:
            if self.ttl:
                self.redis.setex(self._key(user_id), self.ttl, json.dumps(doc))
            else:
                self.redis.set(self._key(user_id), json.dumps(doc))
        except Exception as e:
            raise DocumentStoreError(f"Failed to write document for {user_id}: {e}") from e


# ── Writer ────────────────────────────────────────────────────────────────────

class DocumentWriter:
    """
    Failure-tolerant merge-writes for one store.

    With background=True, writes run on a single worker thread: the caller
    returns immediately and writes land in the order they were issued.
    """

    def __init__(self, store: DocumentStore, background: bool = False):
        self.store = store
        self.background = background
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='docwriter') if background else None

    def _write(self, user_id: str, patch: Dict[str, Any]) -> bool:
        try:
            self.store.merge(user_id, patch)
            logger.debug("Persisted %s for user %s", ', '.join(sorted(patch)), user_id)
            return True
        except Exception:
            logger.error("Failed to persist %s for user %s", ', '.join(sorted(patch)), user_id, exc_info=True)
            return False

    def write(self, user_id: str, patch: Dict[str, Any]):
        """Merge-write patch. Returns True/False, or a Future in background mode."""
        # snapshot now so later in-memory edits don't leak into this write
        patch = copy.deepcopy(patch)
        if self._executor is not None:
            return self._executor.submit(self._write, user_id, patch)
        return self._write(user_id, patch)

    def read(self, user_id: str) -> Dict[str, Any]:
        """Read the user's document after any queued writes have landed.

        Raises DocumentStoreError when the store cannot be read. Callers must not
        go on to write: a snapshot built from a missing document would replace
        the stored one.
        """
        self.flush()
        try:
            return self.store.get(user_id)
        except DocumentStoreError:
            logger.error("Failed to load document for user %s", user_id, exc_info=True)
            raise
        except Exception as e:
            logger.error("Failed to load document for user %s", user_id, exc_info=True)
            raise DocumentStoreError(f"Failed to read document for {user_id}: {e}") from e

    def flush(self, timeout: Optional[float] = None):
        """Wait for queued background writes."""
        if self._executor is not None:
            self._executor.submit(lambda: None).result(timeout=timeout)


def get_document_store(kind: Optional[str] = None) -> DocumentStore:
    """Build the configured document store backend."""
    from leadboard.config import DOCUMENT_STORE, DOCUMENT_TTL
    kind = (kind or DOCUMENT_STORE).lower()
    if kind == 'sql':
        return SqlDocumentStore()
    if kind == 'redis':
        return RedisDocumentStore(ttl=DOCUMENT_TTL)
    if kind == 'memory':
        return MemoryDocumentStore()
    raise ValueError(f"Unknown DOCUMENT_STORE '{kind}'")
