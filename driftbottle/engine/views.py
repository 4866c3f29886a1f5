"""
driftbottle.engine.views — Origin variant and detached bottle views
====================================================================

The engine never holds ORM rows across operations.  Services copy the
columns they need into a frozen :class:`BottleView` inside the session
and hand that to the pure functions in this package.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


# ---------------------------------------------------------------------------
# Origin — where a bottle was thrown from
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Anonymous:
    """Submitted through a direct message; no community attribution."""


@dataclass(frozen=True, slots=True)
class Community:
    """Submitted in a community's inbound channel."""

    guild_id: int


Origin = Anonymous | Community


def origin_guild_id(origin: Origin) -> int | None:
    """Return the community id of *origin*, or ``None`` when anonymous."""
    if isinstance(origin, Community):
        return origin.guild_id
    if isinstance(origin, Anonymous):
        return None
    raise TypeError(f"Unknown origin: {origin!r}")


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from tz-less backends."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ---------------------------------------------------------------------------
# BottleView — a detached snapshot of one bottle row
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BottleView:
    id: int
    user_id: int
    channel_id: int
    origin: Origin
    reply_to_id: int | None
    contents: str
    url: str | None
    image: str | None
    time_pushed: datetime

    @classmethod
    def of(cls, row: Any) -> BottleView:
        """Snapshot an ORM ``Bottle`` row."""
        return cls(
            id=row.id,
            user_id=row.user_id,
            channel_id=row.channel_id,
            origin=row.origin,
            reply_to_id=row.reply_to_id,
            contents=row.contents,
            url=row.url,
            image=row.image,
            time_pushed=as_utc(row.time_pushed),
        )


@dataclass(frozen=True, slots=True)
class Identity:
    """Display name + picture for a user or a community."""

    name: str
    icon_url: str | None = None
