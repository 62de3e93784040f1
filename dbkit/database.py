from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import DbConfig

logger = logging.getLogger(__name__)


def new_engine(config: DbConfig | URL | str | None = None, **kwargs: Any) -> AsyncEngine:
    """Create an AsyncEngine; settings come from the environment when omitted."""
    if config is None:
        config = DbConfig.from_env()
    if isinstance(config, DbConfig):
        logger.debug("Creating engine for %s", config.dsn)
        kwargs.setdefault("echo", config.echo)
        url: URL | str = config.url
    else:
        url = config
    kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(url, **kwargs)


def new_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def get_session(factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with factory() as session:
        yield session
