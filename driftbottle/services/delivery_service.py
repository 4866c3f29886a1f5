"""
driftbottle.services.delivery_service — Delivery Tracker
=========================================================

One :class:`Delivery` row per bottle rendered into a channel.  The rows
answer three questions:

* what did this channel receive last?  (reply targets, repeat avoidance)
* where was this bottle rendered?      (cascading deletes)
* whose bottle does this message show? (moderation reactions)

Recording is append-only.  The (bottle, channel) pair is unique; a
duplicate write keeps the existing row.  Deleting a bottle clears
``bottle_id`` but keeps the row and its author, so a reaction on a
blanked copy still resolves to the banned user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from driftbottle.database.models import Bottle, Delivery
from driftbottle.errors import NotFound

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    """What a rendered message shows.  ``bottle_id`` is ``None`` once deleted."""

    bottle_id: int | None
    user_id: int


def add_delivery(session: Session, bottle_id: int, channel_id: int, message_id: int) -> Delivery:
    """Insert a delivery row inside *session*.

    A SAVEPOINT isolates the unique-pair check so a duplicate does not
    poison the caller's transaction.  Raises :class:`NotFound` if the
    bottle no longer exists.
    """
    author_id = session.scalar(select(Bottle.user_id).where(Bottle.id == bottle_id))
    if author_id is None:
        raise NotFound(f"Bottle {bottle_id} does not exist")

    delivery = Delivery(
        bottle_id=bottle_id,
        user_id=author_id,
        channel_id=channel_id,
        message_id=message_id,
        time_received=datetime.now(UTC),
    )
    try:
        with session.begin_nested():
            session.add(delivery)
            session.flush()
    except IntegrityError:
        existing = session.scalar(
            select(Delivery).where(
                Delivery.bottle_id == bottle_id, Delivery.channel_id == channel_id
            )
        )
        logger.warning(
            "Bottle %d was already delivered to channel %d; keeping message %s",
            bottle_id, channel_id, existing.message_id if existing else None,
        )
        if existing is None:
            raise
        return existing
    return delivery


def last_delivered_in(session: Session, channel_id: int) -> int | None:
    return session.scalar(
        select(Delivery.bottle_id)
        .where(Delivery.channel_id == channel_id, Delivery.bottle_id.is_not(None))
        .order_by(Delivery.time_received.desc(), Delivery.id.desc())
        .limit(1)
    )


# ---------------------------------------------------------------------------
# Engine-level operations (call via run_db)
# ---------------------------------------------------------------------------
def record_delivery(engine: Engine, bottle_id: int, channel_id: int, message_id: int) -> int:
    """Record that *bottle_id* was rendered into *channel_id* as *message_id*."""
    with Session(engine) as session:
        delivery = add_delivery(session, bottle_id, channel_id, message_id)
        session.commit()
        return delivery.id


def last_delivered(engine: Engine, channel_id: int) -> int | None:
    """Id of the live bottle most recently delivered to *channel_id*."""
    with Session(engine) as session:
        return last_delivered_in(session, channel_id)


def delivered_to(engine: Engine, channel_id: int, bottle_ids: list[int]) -> set[int]:
    """Subset of *bottle_ids* already rendered in *channel_id*."""
    if not bottle_ids:
        return set()
    with Session(engine) as session:
        return set(session.scalars(
            select(Delivery.bottle_id).where(
                Delivery.channel_id == channel_id, Delivery.bottle_id.in_(bottle_ids)
            )
        ))


def all_deliveries(engine: Engine, bottle_id: int) -> list[tuple[int, int]]:
    """Every ``(channel_id, message_id)`` where *bottle_id* was rendered."""
    with Session(engine) as session:
        rows = session.execute(
            select(Delivery.channel_id, Delivery.message_id)
            .where(Delivery.bottle_id == bottle_id)
            .order_by(Delivery.id)
        ).all()
        return [(row.channel_id, row.message_id) for row in rows]


def message_target(engine: Engine, message_id: int) -> RenderedMessage | None:
    """The bottle and author a rendered message shows, if it is one of ours."""
    with Session(engine) as session:
        row = session.execute(
            select(Delivery.bottle_id, Delivery.user_id)
            .where(Delivery.message_id == message_id)
            .limit(1)
        ).first()
        if row is None:
            return None
        return RenderedMessage(bottle_id=row.bottle_id, user_id=row.user_id)
