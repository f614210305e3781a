# kezekshi_dashboard/core/database.py
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from kezekshi_dashboard.core.config import settings
from kezekshi_dashboard.models.base import Base

def make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args)

engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def create_tables(bind=None):
    """Create all tables"""
    from kezekshi_dashboard.models import budget  # noqa: F401  ensure models are registered
    Base.metadata.create_all(bind=bind or engine)

@contextmanager
def get_db_session():
    """Context manager for database sessions"""
    db: Session = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
