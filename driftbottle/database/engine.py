"""
driftbottle.database.engine — Database Connection & Async Helper
=================================================================

Discord bots run on an ``asyncio`` event loop while SQLAlchemy +
psycopg2 is synchronous.  Every store operation in driftbottle is a plain
sync function that opens its own :class:`Session`; async callers ship it
to a worker thread with :func:`run_db` so the event loop never blocks:

    1. A Discord event fires (async world).
    2. The cog calls ``await run_db(some_function, engine, arg1, arg2)``.
    3. ``run_db`` runs the function on the default thread pool.
    4. The result is awaited back in the cog.

Because each call opens its own session, the background distribution
task never shares transactional state with the request path.

Usage::

    from driftbottle.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine, cfg)                 # CREATE TABLE IF NOT EXISTS + admin seeding

    chain = await run_db(reply_chain, engine, bottle_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import TYPE_CHECKING, ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from driftbottle.database.models import Base

if TYPE_CHECKING:
    from driftbottle.config import BottleConfig

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build the SQLAlchemy :class:`Engine`.

    *url* defaults to the ``DATABASE_URL`` environment variable.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set; driftbottle needs a PostgreSQL URL "
            "(see .env.example)."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,      # No store call waits forever for a connection
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine, cfg: BottleConfig | None = None) -> None:
    """Create all tables and mark the configured admins.

    Safe to call on every startup — ``CREATE TABLE IF NOT EXISTS`` under
    the hood, and admin seeding is an upsert.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")

    if cfg is not None and cfg.admin_user_ids:
        from driftbottle.services.user_service import seed_admins

        seed_admins(engine, cfg.admin_user_ids)


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Session scope: commit when the block exits cleanly, roll back otherwise.

    Objects stay usable after commit (``expire_on_commit=False``) so
    callers can read ids and columns once the block has closed.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread."""
    return await asyncio.to_thread(func, *args, **kwargs)
