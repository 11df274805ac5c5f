from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from nemdash.config import DATABASE_URL

# Initialize Base class for declarative models
Base = declarative_base()


def build_engine(url: str = DATABASE_URL):
    """Create an engine; SQLite needs cross-thread access, in-memory SQLite a single shared connection."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


engine = build_engine()

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

__all__ = ['Base', 'SessionLocal', 'engine', 'build_engine']

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
