"""
Centralized configuration — env vars, document keys, filter vocabulary.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Flask ────────────────────────────────────────────────────────────────────
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')
DEFAULT_USER_ID = os.getenv('DEFAULT_USER_ID', 'local')
USER_HEADER = 'X-User-Id'

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── Document store ───────────────────────────────────────────────────────────
# sql | redis | memory
DOCUMENT_STORE = os.getenv('DOCUMENT_STORE', 'sql').lower()
DOCUMENT_TTL = int(os.getenv('DOCUMENT_TTL', '0'))  # seconds, 0 = keep forever
PERSIST_ASYNC = os.getenv('PERSIST_ASYNC', 'false').lower() in ('1', 'true', 'yes')

# Top-level keys of the per-user document
FILTERS_KEY = 'filters'
ACTIVE_GROUPS_KEY = 'activeFilterIds'
LEADS_KEY = 'savedLeads'

# ── Leads ─────────────────────────────────────────────────────────────────────
ID_FIELD = 'id'

# ── Filter vocabulary ─────────────────────────────────────────────────────────
MODE_SEARCH = 'search'
MODE_DROPDOWN = 'dropdown'
MODE_NUMBER = 'numberCondition'
MODE_DATE = 'dateCondition'

# Older documents stored the mode under `type` with these short names
LEGACY_MODE_NAMES = {
    'number': MODE_NUMBER,
    'date': MODE_DATE,
}

OPERATORS = ['=', '>', '<', '>=', '<=']

# Filter modes offered per inferred field type
MODES_BY_FIELD_TYPE = {
    'number': [MODE_SEARCH, MODE_NUMBER],
    'date': [MODE_SEARCH, MODE_DATE],
    'boolean': [MODE_SEARCH, MODE_DROPDOWN],
    'string': [MODE_SEARCH, MODE_DROPDOWN],
}
