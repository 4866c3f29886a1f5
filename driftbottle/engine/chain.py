"""
driftbottle.engine.chain — Reply chains and delivery targets
=============================================================

Pure functions only.  Store access is injected as a ``lookup`` callable
so the same code runs against the database and against plain dicts in
tests.

Terminology:

* **chain** — a bottle followed by its ancestors (newest first), bounded
  by ``max_depth`` entries.
* **links** — the chain paired with a depth index, where the oldest
  bottle has depth 0.  Depth only picks the rendering colour/title.
* **unrepeated prefix** — the newest links a channel has not seen yet.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from driftbottle.engine.views import BottleView

MAX_CHAIN_DEPTH = 25

ChainLink = tuple[int, BottleView]


def walk_chain(
    start: BottleView,
    lookup: Callable[[int], BottleView | None],
    max_depth: int = MAX_CHAIN_DEPTH,
) -> list[BottleView]:
    """Return ``[start, parent, grandparent, …]``.

    Stops at the first bottle without a parent, at a parent that no longer
    exists, at a repeated id, or once ``max_depth`` bottles are collected.
    """
    chain = [start]
    seen = {start.id}
    current = start
    while len(chain) < max_depth and current.reply_to_id is not None:
        parent = lookup(current.reply_to_id)
        if parent is None or parent.id in seen:
            break
        chain.append(parent)
        seen.add(parent.id)
        current = parent
    return chain


def index_chain(chain: list[BottleView]) -> list[ChainLink]:
    """Pair each chain entry with its depth (oldest = 0), keeping newest first."""
    oldest = len(chain) - 1
    return [(oldest - pos, bottle) for pos, bottle in enumerate(chain)]


def unrepeated_prefix(links: list[ChainLink], last_bottle_id: int | None) -> list[ChainLink]:
    """Links up to, not including, the one the channel received last.

    If the channel's last bottle is not in the chain, every link is new.
    """
    prefix: list[ChainLink] = []
    for link in links:
        if link[1].id == last_bottle_id:
            break
        prefix.append(link)
    return prefix


def displaces_orphan(prefix: list[ChainLink], last_bottle_id: int | None) -> bool:
    """True when delivering *prefix* pushes an unrelated bottle out of a channel.

    The caller still has to confirm the displaced bottle has no replies
    before re-distributing it.
    """
    if last_bottle_id is None or not prefix:
        return False
    return all(bottle.id != last_bottle_id for _, bottle in prefix)


def dedup_channels(channels: Iterable[int]) -> list[int]:
    """Drop repeated channel ids, keeping first-seen order."""
    seen: set[int] = set()
    result: list[int] = []
    for channel_id in channels:
        if channel_id in seen:
            continue
        seen.add(channel_id)
        result.append(channel_id)
    return result


def select_targets(
    sampled_channels: Iterable[int],
    links: list[ChainLink],
    origin_channel_id: int,
) -> list[int]:
    """Merge randomly sampled inbound channels with the chain's own channels.

    Chain channels come last so a thread keeps flowing back to where its
    earlier bottles were thrown.  The submitting channel is never a target.
    """
    candidates = list(sampled_channels)
    candidates.extend(bottle.channel_id for _, bottle in links)
    return [c for c in dedup_channels(candidates) if c != origin_channel_id]
