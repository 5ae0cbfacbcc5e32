from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from relnotes.core.config import get_settings

settings = get_settings()

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
