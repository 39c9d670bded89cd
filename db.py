from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from config import settings

from utils.structured_logging import get_logger, LogCategory

logger = get_logger("database")

# Test-friendly engine: use SQLite when NODE_ENV=test
if settings.NODE_ENV == "test":
    engine = create_engine(settings.DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        settings.DATABASE_URL,
        poolclass=QueuePool,
        pool_size=10,  # Number of connections to maintain in the pool
        max_overflow=20,  # Additional connections beyond pool_size
        pool_pre_ping=True,  # Validate connections before use
        pool_recycle=3600,  # Recycle connections every hour
        pool_timeout=30,  # Timeout for getting connection from pool
        echo=False,
        connect_args={
            "connect_timeout": 10,
            "application_name": "smart_tdah_api",
        },
    )


@event.listens_for(engine, "connect")
def set_postgresql_settings(dbapi_connection, connection_record):
    """Configure connection-level settings"""
    if settings.NODE_ENV != "test":
        try:
            cursor = dbapi_connection.cursor()
            try:
                # Bound runaway queries, including the ones written by the assistant
                cursor.execute("SET statement_timeout = '30s'")
            finally:
                cursor.close()
        except Exception as e:
            logger.warning(f"Could not apply PostgreSQL settings: {e}", category=LogCategory.DATABASE)


@event.listens_for(engine, "checkout")
def receive_checkout(dbapi_connection, connection_record, connection_proxy):
    """Log connection checkout for monitoring"""
    try:
        logger.debug(
            "Database connection checked out",
            category=LogCategory.DATABASE,
            extra={"checked_out": engine.pool.checkedout()},
        )
    except Exception as e:
        logger.debug(f"Pool monitoring error: {e}", category=LogCategory.DATABASE)


@event.listens_for(engine, "checkin")
def receive_checkin(dbapi_connection, connection_record):
    """Log connection checkin for monitoring"""
    try:
        logger.debug(
            "Database connection checked in",
            category=LogCategory.DATABASE,
            extra={"checked_out": engine.pool.checkedout()},
        )
    except Exception as e:
        logger.debug(f"Pool monitoring error: {e}", category=LogCategory.DATABASE)


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
