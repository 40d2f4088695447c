from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from moviebuzz.core.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite connections are shared across the threadpool FastAPI runs sync routes in
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Request-scoped session for FastAPI.
    Usage: Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
