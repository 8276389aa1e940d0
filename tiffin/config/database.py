"""
Database connection settings for the tiffin subscription service.
Provides SQLAlchemy session management and connection pooling.
"""

import time
from functools import lru_cache
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from tiffin.config.settings import settings
from tiffin.core.logging import get_logger

logger = get_logger(__name__)

SLOW_QUERY_SECONDS = 0.5


def build_engine_options(url: str) -> Dict[str, Any]:
    """Engine keyword arguments for the configured dialect."""
    options: Dict[str, Any] = {
        "pool_pre_ping": True,  # Check connection before using it
        "echo": settings.DB_ECHO,
    }
    connect_args = dict(settings.DB_CONNECT_ARGS)

    if url.startswith("postgresql"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_OVERFLOW,
            pool_recycle=3600,  # Recycle connections after 1 hour
            isolation_level=settings.DB_ISOLATION_LEVEL,
        )
        # Bound every statement (including lock waits) by the server timeout
        connect_args.setdefault(
            "options", f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
        )
    elif url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)

    options["connect_args"] = connect_args
    return options


@lru_cache()
def get_engine() -> Engine:
    """Create the process-wide engine on first use."""
    url = settings.get_database_url()
    engine = create_engine(url, **build_engine_options(url))
    logger.info(f"Database engine created for dialect {engine.dialect.name}")
    return engine


@lru_cache()
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


# Event listeners for performance monitoring
@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log query execution time - start timer"""
    conn.info.setdefault('query_start_time', []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log query execution time - stop timer and log if slow query"""
    total_time = time.time() - conn.info['query_start_time'].pop()

    if total_time > SLOW_QUERY_SECONDS:
        logger.warning(
            f"Slow query detected ({total_time:.4f}s): "
            f"{statement[:100]}... with params {parameters}"
        )


def get_db_session() -> Generator[Session, None, None]:
    """Get database session with automatic cleanup"""
    session = get_session_factory()()
    try:
        yield session
    except Exception as e:
        logger.error(f"Database session error: {str(e)}")
        session.rollback()
        raise
    finally:
        session.close()
