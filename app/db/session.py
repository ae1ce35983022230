"""
Try-Merge Bot Database Session.

Builds the async SQLAlchemy engine and the session factory shared by the
job store, the API dependencies and the application lifespan.

Attributes:
    engine: The global async engine.
    AsyncSessionLocal: Session factory producing SQLModel ``AsyncSession`` objects.
"""

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from app.core.config import settings

engine_kwargs = {
    "pool_size": 10,
    "max_overflow": 20,
    "pool_timeout": 30,
    "pool_recycle": 1800,
    "pool_pre_ping": True,
}


def normalize_database_url(url: str) -> str:
    """Force the asyncpg driver for plain ``postgresql://`` URLs."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


database_url = normalize_database_url(settings.DATABASE_URL)

engine = create_async_engine(database_url, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
