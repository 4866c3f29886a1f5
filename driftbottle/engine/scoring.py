"""
driftbottle.engine.scoring — Experience values per action
==========================================================

Pure calculation.  No Discord I/O, no DB I/O; the scoring service applies
the numbers to users and guild contributions.
"""

from __future__ import annotations

from driftbottle.config import XpConfig


def push_xp(xp: XpConfig, *, has_url: bool, has_image: bool) -> int:
    """XP for throwing a bottle: base plus link and media bonuses."""
    total = xp.push
    if has_url:
        total += xp.url
    if has_image:
        total += xp.image
    return total


def reply_xp(xp: XpConfig, *, replier_id: int, original_author_id: int) -> int:
    """XP owed to the replied-to author.  Self-replies earn nothing."""
    if replier_id == original_author_id:
        return 0
    return xp.reply


def report_xp(xp: XpConfig, *, already_reported: bool) -> int:
    """Only the first report of a bottle is rewarded."""
    return 0 if already_reported else xp.report
