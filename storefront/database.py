import asyncio
from typing import Optional

from fastapi import HTTPException, Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.utils.logger import logger

Base = declarative_base()


def build_engine(database_url: str):
    """Create the SQLAlchemy engine for the configured database URL"""
    kwargs = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # a single shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def build_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """Dependency to get database session"""
    db = request.app.state.session_factory()
    try:
        yield db
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        logger.error(f"Database Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


async def wait_for_database(
    engine,
    base_delay: float = 2.0,
    max_delay: float = 30.0,
    max_attempts: Optional[int] = None,
    sleep=asyncio.sleep
) -> int:
    """
    Block until the database answers a trivial query.

    Retries with capped exponential backoff, forever unless max_attempts
    is given. Returns the number of attempts it took.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            logger.info(f"Database connected: {engine.url.render_as_string(hide_password=True)}")
            return attempt
        except OperationalError as e:
            logger.error(f"Error connecting to database: {e}")
            if attempt == 1:
                logger.error("If the database is hosted, make sure this deployment's IP is allowed to connect")
            if max_attempts is not None and attempt >= max_attempts:
                raise
            delay = min(max_delay, base_delay * 2 ** (attempt - 1))
            logger.info(f"Retrying database connection in {delay}s (attempt {attempt})")
            await sleep(delay)
