"""
driftbottle.database.models — SQLAlchemy 2.0 Data Models
=========================================================

Tables:
- users               — Discord members (snowflake PK), XP, tickets, admin flag
- guilds              — Communities with an optional inbound bottle channel
- bottles             — Submitted messages, linked into reply chains
- deliveries          — One row per bottle rendered into a channel
- reports             — At most one per bottle; links the moderator copy
- bans                — Presence means banned
- guild_contributions — Per (guild, user) XP for leaderboards
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from driftbottle.engine.views import Anonymous, Community, Origin


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all driftbottle ORM models."""


# ---------------------------------------------------------------------------
# Users — one row per Discord member, created lazily
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    admin: Mapped[bool] = mapped_column(Boolean, default=False)
    xp: Mapped[int] = mapped_column(Integer, default=0)
    tickets: Mapped[int] = mapped_column(Integer, default=0)
    session: Mapped[str | None] = mapped_column(String(64), default=None)

    bottles: Mapped[list[Bottle]] = relationship(back_populates="user")

    __table_args__ = (
        Index("ix_users_xp_desc", "xp"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} xp={self.xp} admin={self.admin}>"


# ---------------------------------------------------------------------------
# Guilds — communities that may receive bottles
# ---------------------------------------------------------------------------
class Guild(Base):
    __tablename__ = "guilds"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    bottle_channel_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    invite: Mapped[str | None] = mapped_column(String(200), default=None)

    def __repr__(self) -> str:
        return f"<Guild id={self.id} channel={self.bottle_channel_id}>"


# ---------------------------------------------------------------------------
# Bottles — the submitted messages
# ---------------------------------------------------------------------------
class Bottle(Base):
    __tablename__ = "bottles"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    message_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    guild_id: Mapped[int | None] = mapped_column(BigInteger, default=None)  # None → anonymous
    reply_to_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("bottles.id", ondelete="SET NULL"), nullable=True
    )
    contents: Mapped[str] = mapped_column(Text, nullable=False, default="")
    url: Mapped[str | None] = mapped_column(Text, default=None)
    image: Mapped[str | None] = mapped_column(Text, default=None)
    time_pushed: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="bottles")

    __table_args__ = (
        Index("ix_bottles_user_time", "user_id", "time_pushed"),
        Index("ix_bottles_reply_to", "reply_to_id"),
    )

    @property
    def origin(self) -> Origin:
        if self.guild_id is None:
            return Anonymous()
        return Community(self.guild_id)

    def __repr__(self) -> str:
        return f"<Bottle id={self.id} user={self.user_id} reply_to={self.reply_to_id}>"


# ---------------------------------------------------------------------------
# Deliveries — proof a bottle was rendered into a channel
# ---------------------------------------------------------------------------
class Delivery(Base):
    __tablename__ = "deliveries"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    # Cleared when the bottle is deleted; the row keeps the rendered
    # message attributable to its author.
    bottle_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("bottles.id", ondelete="SET NULL"), nullable=True
    )
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)  # the bottle's author
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    message_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    time_received: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("bottle_id", "channel_id", name="uq_deliveries_bottle_channel"),
        Index("ix_deliveries_channel_time", "channel_id", "time_received"),
        Index("ix_deliveries_message", "message_id"),
    )

    def __repr__(self) -> str:
        return f"<Delivery bottle={self.bottle_id} user={self.user_id} channel={self.channel_id}>"


# ---------------------------------------------------------------------------
# Reports — one per bottle
# ---------------------------------------------------------------------------
class Report(Base):
    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)  # the reporter
    reported_user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Cleared when the bottle is deleted; the report header stays actionable.
    bottle_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("bottles.id", ondelete="SET NULL"), nullable=True
    )
    message_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    delivery_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("deliveries.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("bottle_id", name="uq_reports_bottle"),
        Index("ix_reports_message", "message_id"),
    )

    def __repr__(self) -> str:
        return f"<Report id={self.id} bottle={self.bottle_id} by={self.user_id}>"


# ---------------------------------------------------------------------------
# Bans — row presence is authoritative
# ---------------------------------------------------------------------------
class Ban(Base):
    __tablename__ = "bans"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    report_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("reports.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Ban user={self.user_id} report={self.report_id}>"


# ---------------------------------------------------------------------------
# GuildContribution — cross-community leaderboard standing
# ---------------------------------------------------------------------------
class GuildContribution(Base):
    __tablename__ = "guild_contributions"

    guild_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    xp: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        Index("ix_guild_contributions_guild_xp", "guild_id", "xp"),
    )

    def __repr__(self) -> str:
        return f"<GuildContribution guild={self.guild_id} user={self.user_id} xp={self.xp}>"
