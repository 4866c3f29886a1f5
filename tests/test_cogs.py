"""
tests/test_cogs.py — Discord adapter glue
==========================================

Exercises the cogs with MagicMock/AsyncMock stand-ins for discord.py
objects and the real in-memory database.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import add_guild
from driftbottle.bot.cogs.bottles import STORE_FAILURE_TEXT, Bottles, build_submission
from driftbottle.bot.cogs.moderation import Moderation, to_reaction_event
from driftbottle.engine.views import Anonymous, Community
from driftbottle.errors import StoreFailure
from driftbottle.services.bottle_service import ADMITTED_TEXT
from driftbottle.services.moderation_service import ModerationAction


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    """Run an async coroutine in a fresh event loop."""
    return asyncio.run(coro)


def _make_bot(engine, cfg) -> MagicMock:
    bot = MagicMock()
    bot.engine = engine
    bot.cfg = cfg
    bot.user = SimpleNamespace(id=4000)
    bot.distributor = MagicMock()
    bot.moderator = MagicMock()
    bot.moderator.handle = AsyncMock(return_value=ModerationAction.IGNORED)
    return bot


def _make_message(
    content: str = "a message in a bottle",
    *,
    guild_id: int | None = None,
    channel_id: int = 10,
    author_bot: bool = False,
    embeds: list | None = None,
    attachments: list | None = None,
) -> MagicMock:
    message = MagicMock()
    message.id = 777
    message.content = content
    message.author = SimpleNamespace(id=1, name="sailor", bot=author_bot)
    message.guild = SimpleNamespace(id=guild_id) if guild_id is not None else None
    message.channel = MagicMock()
    message.channel.id = channel_id
    message.channel.send = AsyncMock()
    message.embeds = embeds or []
    message.attachments = attachments or []
    return message


class TestBuildSubmission:
    def test_first_embed_url_and_attachment(self):
        message = _make_message(
            embeds=[SimpleNamespace(url=None), SimpleNamespace(url="https://a.test"),
                    SimpleNamespace(url="https://b.test")],
            attachments=[SimpleNamespace(url="https://cdn.test/1.png"),
                         SimpleNamespace(url="https://cdn.test/2.png")],
        )

        submission = build_submission(message, Anonymous())

        assert submission.url == "https://a.test"
        assert submission.image == "https://cdn.test/1.png"
        assert submission.author_id == 1
        assert submission.message_id == 777

    def test_plain_text(self):
        submission = build_submission(_make_message("hi"), Community(5))
        assert submission.url is None
        assert submission.image is None
        assert submission.origin == Community(5)


class TestBottlesCog:
    @pytest.fixture
    def bot(self, db_engine, cfg):
        return _make_bot(db_engine, cfg)

    def test_direct_message_is_admitted_and_enqueued(self, bot):
        message = _make_message()

        run_async(Bottles(bot)._handle_message(message))

        message.channel.send.assert_awaited_once_with(ADMITTED_TEXT)
        bot.distributor.enqueue.assert_called_once()

    def test_inbound_channel_message(self, bot, db_engine):
        add_guild(db_engine, 3, 30)
        message = _make_message(guild_id=3, channel_id=30)

        run_async(Bottles(bot)._handle_message(message))

        message.channel.send.assert_awaited_once_with(ADMITTED_TEXT)

    def test_other_guild_channel_is_ignored(self, bot, db_engine):
        add_guild(db_engine, 3, 30)
        message = _make_message(guild_id=3, channel_id=31)

        run_async(Bottles(bot)._handle_message(message))

        message.channel.send.assert_not_awaited()
        bot.distributor.enqueue.assert_not_called()

    def test_bot_author_is_ignored(self, bot):
        message = _make_message(author_bot=True)

        run_async(Bottles(bot)._handle_message(message))

        message.channel.send.assert_not_awaited()

    def test_rejection_is_answered_but_not_enqueued(self, bot):
        message = _make_message("tiny")

        run_async(Bottles(bot)._handle_message(message))

        message.channel.send.assert_awaited_once_with(
            "Your bottle cannot be less than 10 characters!"
        )
        bot.distributor.enqueue.assert_not_called()

    def test_store_failure(self, bot):
        message = _make_message()

        with patch(
            "driftbottle.bot.cogs.bottles.submit_bottle", side_effect=StoreFailure("down")
        ):
            run_async(Bottles(bot)._handle_message(message))

        message.channel.send.assert_awaited_once_with(STORE_FAILURE_TEXT)
        bot.distributor.enqueue.assert_not_called()


class TestModerationCog:
    def _payload(self, user_id: int, *, unicode: bool = True) -> MagicMock:
        payload = MagicMock()
        payload.message_id = 501
        payload.user_id = user_id
        payload.emoji.name = "\U0001f528"
        payload.emoji.is_unicode_emoji.return_value = unicode
        return payload

    def test_unicode_reaction_event(self):
        event = to_reaction_event(self._payload(900), added=True)
        assert event.emoji == "\U0001f528"
        assert event.message_id == 501
        assert event.added is True

    def test_custom_emoji_has_no_name(self):
        event = to_reaction_event(self._payload(900, unicode=False), added=False)
        assert event.emoji is None
        assert event.added is False

    def test_forwards_to_moderator(self, db_engine, cfg):
        bot = _make_bot(db_engine, cfg)

        run_async(Moderation(bot).on_raw_reaction_add(self._payload(900)))

        bot.moderator.handle.assert_awaited_once()
        event = bot.moderator.handle.await_args.args[0]
        assert event.user_id == 900

    def test_own_reactions_are_skipped(self, db_engine, cfg):
        bot = _make_bot(db_engine, cfg)

        run_async(Moderation(bot).on_raw_reaction_remove(self._payload(4000)))

        bot.moderator.handle.assert_not_awaited()
