from sqlalchemy.orm import Session

from hospital_finance.core.config import settings
from hospital_finance.core.database import SessionLocal
from hospital_finance.logger_config import logger


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def open_report_session(db: Session, isolation_level: str | None = None) -> Session:
    """
    Pin the session to one connection at the report isolation level so that
    every aggregation of a report sees the same snapshot.
    """
    level = isolation_level if isolation_level is not None else settings.REPORT_ISOLATION_LEVEL
    if level and db.get_bind().dialect.name != "sqlite":
        db.connection(execution_options={"isolation_level": level})
        logger.debug(f"Report session opened at isolation level {level}")
    return db


def get_report_db():
    """Dependency for read-only report requests. Nothing is ever committed."""
    db = SessionLocal()
    try:
        yield open_report_session(db)
    finally:
        db.rollback()
        db.close()
