"""Async engine, session factory and declarative base."""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import get_settings

settings = get_settings()


def _to_async_url(url: str) -> str:
    # plain URLs from the environment get the async driver
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def make_engine(url: str, **kwargs):
    return create_async_engine(_to_async_url(url), echo=settings.debug, future=True, **kwargs)


def make_sessionmaker(bind) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = make_engine(settings.database_url)
AsyncSessionLocal = make_sessionmaker(engine)

Base = declarative_base()

