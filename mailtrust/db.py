# mailtrust/db.py

import logging
import asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
import sqlalchemy

logger = logging.getLogger("mailtrust.db")

# ---------------------------------------------------------
# Declarative base shared by all ORM rows
# ---------------------------------------------------------
Base = declarative_base()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for the given URL; in-memory SQLite shares one connection."""
    if database_url.startswith("sqlite") and (":memory:" in database_url or database_url.endswith("://")):
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        database_url,
        echo=echo,
        future=True,
        pool_pre_ping=True,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    # make sure every model is registered on Base.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ---------------------------------------------------------
# DB readiness check for container startup
# ---------------------------------------------------------
async def wait_for_db(engine: AsyncEngine, max_retries: int = 8, delay: float = 2.0):
    """
    Wait for DB to accept connections.
    """
    last_exc = None
    for attempt in range(1, max_retries + 1):
        try:
            async with engine.connect() as conn:
                await conn.execute(sqlalchemy.text("SELECT 1"))
                logger.info("Database connected (attempt %d)", attempt)
                return True

        except OperationalError as e:
            last_exc = e
            msg = str(e.__cause__ or e)

            if "password authentication failed" in msg.lower():
                logger.error("Database authentication failed: %s", msg)
                raise

            logger.warning(
                "DB not ready (attempt %d/%d): %s",
                attempt, max_retries, msg
            )
            await asyncio.sleep(delay)

        except Exception as e:
            last_exc = e
            logger.exception(
                "Unexpected DB connection error (attempt %d/%d): %s",
                attempt, max_retries, e
            )
            await asyncio.sleep(delay)

    logger.error("Failed to connect to DB after %d retries. Last error: %s",
                 max_retries, last_exc)
    raise last_exc
