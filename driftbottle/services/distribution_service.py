"""
driftbottle.services.distribution_service — Fan-out engine
===========================================================

One distribution pass per admitted bottle:

    Admitted → AssembleChain → SelectTargets → DeliverEach → Done

1. Walk the reply chain (bottle first, then its ancestors).
2. Sample up to ``deliver_count`` inbound channels of other communities
   and add the channels the chain's bottles were thrown in.
3. Skip the bottle's own channel.
4. Deliver to each target independently; a failing channel is logged and
   the pass moves on.

Per channel, only the *unrepeated prefix* is sent: the chain entries the
channel has not received yet, oldest first, minus any bottle the channel
already shows from an earlier pass.  If that delivery displaces
a bottle nobody ever replied to, the displaced bottle gets a fresh pass
of its own (bounded by ``max_reseed_depth``).

Every store call opens its own session through :func:`run_db`; the pass
shares nothing with the request that admitted the bottle.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from driftbottle.database.engine import run_db
from driftbottle.engine.chain import (
    ChainLink,
    displaces_orphan,
    index_chain,
    select_targets,
    unrepeated_prefix,
)
from driftbottle.engine.views import origin_guild_id
from driftbottle.errors import NotFound
from driftbottle.services.bottle_service import count_replies, reply_chain
from driftbottle.services.delivery_service import delivered_to, last_delivered, record_delivery
from driftbottle.services.guild_service import sample_guild_channels
from driftbottle.services.notifier import Notifier, render_bottle
from driftbottle.services.task_queue import DistributionQueue

if TYPE_CHECKING:
    import asyncio

    from sqlalchemy import Engine

    from driftbottle.config import BottleConfig

logger = logging.getLogger(__name__)


class Distributor:
    """Runs distribution passes on a :class:`DistributionQueue`."""

    def __init__(
        self,
        engine: Engine,
        cfg: BottleConfig,
        notifier: Notifier,
        queue: DistributionQueue | None = None,
    ) -> None:
        self.engine = engine
        self.cfg = cfg
        self.notifier = notifier
        self.queue = queue or DistributionQueue()

    def enqueue(self, bottle_id: int, depth: int = 0) -> asyncio.Task | None:
        """Schedule a pass for *bottle_id* unless one is already running."""
        return self.queue.submit(bottle_id, lambda: self.distribute(bottle_id, depth))

    async def distribute(self, bottle_id: int, depth: int = 0) -> list[int]:
        """Run one pass.  Returns the channels that received at least one bottle.

        *depth* counts how many re-seeds led to this pass (0 for a fresh
        submission).
        """
        try:
            chain = await run_db(reply_chain, self.engine, bottle_id, self.cfg.max_chain_depth)
            bottle = chain[0]
            sampled = await run_db(
                sample_guild_channels,
                self.engine,
                self.cfg.deliver_count,
                exclude_guild_id=origin_guild_id(bottle.origin),
                exclude_channel_id=bottle.channel_id,
            )
        except NotFound:
            logger.info("Bottle %d vanished before distribution", bottle_id)
            return []
        except Exception:
            logger.exception("Distribution of bottle %d abandoned", bottle_id)
            return []

        links = index_chain(chain)
        targets = select_targets(sampled, links, bottle.channel_id)
        logger.debug("Bottle %d → %d target channel(s)", bottle_id, len(targets))

        delivered: list[int] = []
        for channel_id in targets:
            try:
                sent = await self.deliver(links, channel_id, depth)
            except Exception:
                logger.exception("Delivery of bottle %d to channel %d failed", bottle_id, channel_id)
                continue
            if sent:
                delivered.append(channel_id)
        return delivered

    async def deliver(self, links: list[ChainLink], channel_id: int, depth: int = 0) -> int:
        """Send the part of *links* that *channel_id* has not seen yet.

        Returns how many bottles were rendered.
        """
        last = await run_db(last_delivered, self.engine, channel_id)
        prefix = unrepeated_prefix(links, last)

        if last is not None and displaces_orphan(prefix, last):
            replies = await run_db(count_replies, self.engine, last)
            if replies == 0:
                self._reseed(last, depth)

        seen = await run_db(delivered_to, self.engine, channel_id, [b.id for _, b in prefix])
        pending = [link for link in prefix if link[1].id not in seen]

        for chain_depth, bottle in reversed(pending):
            card = await render_bottle(self.notifier, self.cfg, bottle, chain_depth)
            message_id = await self.notifier.send_card(channel_id, card)
            await run_db(record_delivery, self.engine, bottle.id, channel_id, message_id)

        if pending:
            logger.debug("Delivered %d bottle(s) to channel %d", len(pending), channel_id)
        return len(pending)

    def _reseed(self, bottle_id: int, depth: int) -> None:
        if depth >= self.cfg.max_reseed_depth:
            logger.debug("Not re-seeding bottle %d: depth %d reached", bottle_id, depth)
            return
        if self.enqueue(bottle_id, depth + 1) is not None:
            logger.info("Re-seeding unanswered bottle %d (depth %d)", bottle_id, depth + 1)
