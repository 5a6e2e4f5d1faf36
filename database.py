import logging

from databases import Database
from sqlalchemy import Table, create_engine
from sqlalchemy.dialects import postgresql, sqlite

from models import metadata

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def create_database(url: str) -> Database:
    return Database(url)


def init_schema(url: str) -> None:
    """Create the users and messages tables if they are missing."""
    engine = create_engine(url)
    try:
        metadata.create_all(engine)
    finally:
        engine.dispose()
    logger.info("schema ready")


def insert_or_skip(database: Database, table: Table, **values):
    """INSERT ... ON CONFLICT DO NOTHING in the handle's dialect."""
    dialect = database.url.dialect
    if dialect not in _DIALECT_INSERTS:
        raise ValueError(f"unsupported database dialect: {dialect}")
    return _DIALECT_INSERTS[dialect](table).values(**values).on_conflict_do_nothing()
