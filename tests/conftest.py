"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from driftbottle.config import BottleConfig
from driftbottle.database.models import Base, Bottle, Guild, User
from driftbottle.engine.cards import BottleCard
from driftbottle.engine.views import Identity
from driftbottle.errors import UpstreamUnavailable

ADMIN_CHANNEL = 999

_sqlite_registered = False


def _register_sqlite_compat():
    """Map BigInteger → INTEGER on SQLite so autoincrement works (idempotent)."""
    global _sqlite_registered
    if _sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _sqlite_registered = True


_register_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all driftbottle tables.

    Uses StaticPool so the worker threads started by ``run_db`` share the
    same in-memory database.
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def cfg() -> BottleConfig:
    return BottleConfig(bot_prefix="b!", admin_channel_id=ADMIN_CHANNEL)


# ---------------------------------------------------------------------------
# Fake notifier
# ---------------------------------------------------------------------------
class FakeNotifier:
    """Records every platform call; message ids count up from 5000."""

    def __init__(self) -> None:
        self._next_id = 5000
        self.cards: list[tuple[int, int, BottleCard]] = []   # (channel, message, card)
        self.texts: list[tuple[int, int, str]] = []
        self.reactions: list[tuple[int, int, str]] = []
        self.edits: list[tuple[int, int, BottleCard]] = []
        self.failing_channels: set[int] = set()
        self.missing_messages: set[int] = set()

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def cards_in(self, channel_id: int) -> list[BottleCard]:
        return [card for ch, _, card in self.cards if ch == channel_id]

    async def send_card(self, channel_id: int, card: BottleCard) -> int:
        if channel_id in self.failing_channels:
            raise UpstreamUnavailable(f"channel {channel_id} is gone")
        message_id = self._new_id()
        self.cards.append((channel_id, message_id, card))
        return message_id

    async def send_text(self, channel_id: int, text: str) -> int:
        if channel_id in self.failing_channels:
            raise UpstreamUnavailable(f"channel {channel_id} is gone")
        message_id = self._new_id()
        self.texts.append((channel_id, message_id, text))
        return message_id

    async def add_reaction(self, channel_id: int, message_id: int, emoji: str) -> None:
        self.reactions.append((channel_id, message_id, emoji))

    async def edit_card(self, channel_id: int, message_id: int, card: BottleCard) -> None:
        if message_id in self.missing_messages:
            raise UpstreamUnavailable(f"message {message_id} was deleted")
        self.edits.append((channel_id, message_id, card))

    async def resolve_user(self, user_id: int) -> Identity | None:
        return Identity(name=f"user{user_id}", icon_url=f"https://cdn.test/{user_id}.png")

    async def resolve_guild(self, guild_id: int) -> Identity | None:
        return Identity(name=f"guild{guild_id}")


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------
def add_user(engine: Engine, user_id: int, *, admin: bool = False, xp: int = 0) -> None:
    with Session(engine) as session:
        session.add(User(id=user_id, admin=admin, xp=xp, tickets=0))
        session.commit()


def add_guild(engine: Engine, guild_id: int, channel_id: int | None) -> None:
    with Session(engine) as session:
        session.add(Guild(id=guild_id, bottle_channel_id=channel_id))
        session.commit()


def add_bottle(
    engine: Engine,
    *,
    user_id: int,
    channel_id: int,
    guild_id: int | None = None,
    reply_to: int | None = None,
    contents: str = "hello world",
    time_pushed: datetime | None = None,
) -> int:
    with Session(engine) as session:
        if session.get(User, user_id) is None:
            session.add(User(id=user_id, admin=False, xp=0, tickets=0))
        bottle = Bottle(
            user_id=user_id,
            message_id=user_id * 10,
            channel_id=channel_id,
            guild_id=guild_id,
            reply_to_id=reply_to,
            contents=contents,
            time_pushed=time_pushed or datetime(2026, 1, 1, tzinfo=UTC),
        )
        session.add(bottle)
        session.commit()
        return bottle.id
