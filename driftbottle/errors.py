"""
driftbottle.errors — Error taxonomy
====================================

Two families:

* :class:`SubmissionRejected` — user-facing refusals of a new bottle.
  They carry the text shown to the author and (except
  :class:`NoReplyTarget`) run through the ticket escalation policy.
* Infrastructure failures — :class:`NotFound`, :class:`UpstreamUnavailable`
  and :class:`StoreFailure`.
"""

from __future__ import annotations


class BottleError(Exception):
    """Base class for every driftbottle error."""


# ---------------------------------------------------------------------------
# User-facing rejections
# ---------------------------------------------------------------------------
class SubmissionRejected(BottleError):
    """A bottle was refused.  ``str(exc)`` is the text shown to the author."""

    counts_ticket: bool = True


class RateLimited(SubmissionRejected):
    def __init__(self, remaining_seconds: int) -> None:
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"You must wait {remaining_seconds} seconds before sending another bottle!"
        )


class Banned(SubmissionRejected):
    def __init__(self) -> None:
        super().__init__(
            "You are banned from using Bottle! Appeal by dming the global admins!"
        )


class TooShort(SubmissionRejected):
    def __init__(self, min_chars: int) -> None:
        self.min_chars = min_chars
        super().__init__(f"Your bottle cannot be less than {min_chars} characters!")


class NoReplyTarget(SubmissionRejected):
    """Reply marker used in a channel that never received a bottle."""

    counts_ticket = False

    def __init__(self) -> None:
        super().__init__("No bottle to reply to found!")


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------
class NotFound(BottleError):
    """A bottle, report or delivery record does not exist."""


class UpstreamUnavailable(BottleError):
    """The chat platform refused or failed a send/react/edit/lookup."""


class StoreFailure(BottleError):
    """The persistence layer raised while handling a request."""
