"""Database initialization utilities."""
import logging

from sqlalchemy import inspect

from backoffice.db.base import Base, import_models
from backoffice.db.session import engine

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    """
    Initialize the database by creating all missing tables.

    Note: This is suitable for development/testing only.
    For production, use migrations instead.
    """
    bind = bind or engine
    try:
        import_models()

        existing_tables = set(inspect(bind).get_table_names())
        Base.metadata.create_all(bind=bind)

        created = set(Base.metadata.tables) - existing_tables
        if created:
            logger.info(f"Database tables created: {', '.join(sorted(created))}")
        else:
            logger.info(f"Database already initialized with {len(existing_tables)} tables")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise
