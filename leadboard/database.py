"""
Database engine + session factory for the SQL document store.

SQLite by default for local dev, Postgres in production. Only the
user_documents table lives here; everything else a user owns is inside that
table's JSON document.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from leadboard.config import DATABASE_URL

logger = logging.getLogger('leadboard.database')


class Base(DeclarativeBase):
    pass


# Hosted Postgres URLs use postgres:// but SQLAlchemy 2.x requires postgresql://
url = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

if url.startswith('sqlite'):
    # the background document writer uses its own thread
    engine = create_engine(url, connect_args={'check_same_thread': False})
else:
    engine = create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)

SessionLocal = sessionmaker(bind=engine)


def get_session():
    """Return a new DB session."""
    return SessionLocal()


def init_db(bind=None):
    """Create the user_documents table when missing (local dev and scripts).

    Deployed databases are migrated with alembic instead.
    """
    from leadboard.models.user_document import UserDocument

    bind = bind or engine
    Base.metadata.create_all(bind, tables=[UserDocument.__table__])
    logger.info("Ensured table %s on %s", UserDocument.__tablename__, bind.url.render_as_string(hide_password=True))
