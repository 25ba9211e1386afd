"""
SQLAlchemy setup and database access
"""

from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for models
Base = declarative_base()


# ============================================================================
# Database handle
# ============================================================================

class Database:
    """
    Owns the engine (connection pool) and the session factory

    Created by the application factory and kept on app.state, so every
    request works with the pool that belongs to its application.
    """

    def __init__(self, url: str, echo: bool = False):
        """
        Args:
            url: SQLAlchemy database URL
            echo: Log SQL statements (dev only)
        """
        self.url = url

        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise each checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init_db(self):
        """
        Create all tables
        Called on application startup
        """
        # Import models so they are registered on Base.metadata
        from partner_portal.models import dealer, user  # noqa

        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        """Close all pooled connections"""
        self.engine.dispose()


# ============================================================================
# Dependency for FastAPI
# ============================================================================

def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency providing a database session to FastAPI endpoints

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
