"""Shared test fixtures."""
import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from leadboard.database import init_db
from leadboard.models.lead import Lead
from leadboard.services.document_store import (
    DocumentWriter, MemoryDocumentStore, SqlDocumentStore,
)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine('sqlite:///:memory:')
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite. Rolls back after each test."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def sql_store(db_engine):
    """SqlDocumentStore opening a fresh session per call on the test engine."""
    TestSession = sessionmaker(bind=db_engine)
    return SqlDocumentStore(session_factory=TestSession)


@pytest.fixture
def memory_store():
    return MemoryDocumentStore()


@pytest.fixture
def writer(memory_store):
    """Synchronous writer over the memory store."""
    return DocumentWriter(memory_store)


@pytest.fixture
def failing_writer():
    """Writer whose store raises on every merge."""
    store = MagicMock()
    store.get.return_value = {}
    store.merge.side_effect = RuntimeError('document store offline')
    return DocumentWriter(store)


@pytest.fixture
def mock_redis():
    """Mock Redis client backed by a plain dict for get/set/setex."""
    data = {}
    mock = MagicMock()
    mock.get.side_effect = lambda key: data.get(key)
    mock.set.side_effect = lambda key, value: data.__setitem__(key, value)
    mock.setex.side_effect = lambda key, ttl, value: data.__setitem__(key, value)
    mock.data = data
    return mock


@pytest.fixture
def app(memory_store):
    """Flask test app wired to the memory store."""
    from leadboard import create_app
    app = create_app(document_store=memory_store)
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_lead():
    """Factory fixture: make_lead(1, status='New', value=100)."""
    def _make(lead_id, **fields):
        return Lead(id=lead_id, fields=fields)
    return _make


@pytest.fixture
def sample_leads(make_lead):
    """The two-lead collection used throughout the evaluator scenarios."""
    return [
        make_lead(1, status='New', value=100),
        make_lead(2, status='Closed', value=50),
    ]


@pytest.fixture
def sample_rows():
    """Raw import rows resembling a parsed CSV."""
    return [
        {'id': 1, 'name': 'Ada Byron', 'company': 'Analytical Co', 'status': 'New',
         'value': '42000', 'lastContact': '2026-09-02', 'subscribed': 'true'},
        {'id': 2, 'name': 'Grace Hopper', 'company': 'Cobol Labs', 'status': 'Qualified',
         'value': '87000', 'lastContact': '2026-08-15', 'subscribed': 'false'},
        {'id': 3, 'name': 'Alan Turing', 'company': 'Bombe Ltd', 'status': 'New',
         'value': '15500', 'lastContact': '2026-07-30', 'subscribed': 'true'},
    ]
