"""Database initialization utilities."""
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from tiffin.core.logging import get_logger
from tiffin.db.base import Base, import_models

logger = get_logger(__name__)


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Initialize the database by creating all tables.

    Note: This is suitable for development/testing only.
    For production, apply migrations instead.
    """
    if engine is None:
        from tiffin.config.database import get_engine
        engine = get_engine()

    try:
        import_models()

        existing_tables = inspect(engine).get_table_names()
        if existing_tables:
            logger.info(f"Database already initialized with {len(existing_tables)} tables")
        else:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created successfully")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def drop_db(engine: Optional[Engine] = None) -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data! Only for development/testing.
    """
    if engine is None:
        from tiffin.config.database import get_engine
        engine = get_engine()

    Base.metadata.drop_all(bind=engine)
    logger.warning("All database tables dropped")
