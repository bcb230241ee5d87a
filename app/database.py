from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings
import logging

# Set up logging
logger = logging.getLogger(__name__)


def build_engine(database_url: str):
    """Create an engine with the pool and timeout policy used by every store call."""
    if database_url.startswith("sqlite"):
        # SQLite is used for local runs and the test suite
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": settings.DB_POOL_TIMEOUT_SECONDS},
        )

    connect_args = {}
    if database_url.startswith("postgresql"):
        # Slow queries surface as OperationalError and are handled as provider faults
        connect_args["options"] = f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Auto-reconnect on broken connections
        pool_size=5,
        max_overflow=10,
        pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
        pool_recycle=1800,   # Recycle connections after 30 minutes
        connect_args=connect_args,
    )


engine = build_engine(settings.DATABASE_URL)
logger.info(f"Database engine created for dialect: {engine.dialect.name}")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# ✅ This line ensures models are registered before Alembic autogenerate
from app import models
