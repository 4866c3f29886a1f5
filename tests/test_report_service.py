"""
tests/test_report_service.py — Report filing
=============================================
"""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from conftest import ADMIN_CHANNEL, add_bottle, add_user
from driftbottle.database.models import Ban, Report, User
from driftbottle.errors import NotFound
from driftbottle.services.bottle_service import delete_bottle_record
from driftbottle.services.delivery_service import all_deliveries
from driftbottle.services.moderation_service import ModerationAction, Moderator, ReactionEvent
from driftbottle.services.report_service import (
    file_report,
    get_report_status,
    report_header,
    save_report,
)

REPORTER = 5


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    """Run an async coroutine in a fresh event loop."""
    return asyncio.run(coro)


@pytest.fixture
def bottle_id(db_engine):
    return add_bottle(db_engine, user_id=1, channel_id=10, guild_id=1, contents="rude words here")


def _file(engine, cfg, notifier, bottle_id, reporter_id=REPORTER, name="alice"):
    return run_async(file_report(
        engine, cfg, notifier, reporter_id=reporter_id, reporter_name=name, bottle_id=bottle_id,
    ))


def _report_count(engine) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(Report))


def _xp(engine, user_id: int) -> int | None:
    with Session(engine) as session:
        user = session.get(User, user_id)
        return user.xp if user else None


def test_header_text():
    assert report_header("alice", 5, 12) == "REPORT FROM alice. USER ID 5, BOTTLE ID 12."


class TestFileReport:
    def test_first_report(self, db_engine, cfg, notifier, bottle_id):
        outcome = _file(db_engine, cfg, notifier, bottle_id)

        assert outcome.filed
        assert not outcome.banned and not outcome.already_exists

        [(channel, header_id, text)] = notifier.texts
        assert channel == ADMIN_CHANNEL
        assert text == f"REPORT FROM alice. USER ID {REPORTER}, BOTTLE ID {bottle_id}."

        [(channel, copy_id, card)] = notifier.cards
        assert channel == ADMIN_CHANNEL
        assert card.description.startswith("rude words here")

        assert notifier.reactions == [
            (ADMIN_CHANNEL, header_id, cfg.ban_emoji),
            (ADMIN_CHANNEL, copy_id, cfg.ban_emoji),
            (ADMIN_CHANNEL, copy_id, cfg.delete_emoji),
        ]

        with Session(db_engine) as session:
            report = session.scalar(select(Report))
            assert report.user_id == REPORTER
            assert report.reported_user_id == 1
            assert report.bottle_id == bottle_id
            assert report.message_id == header_id
        assert all_deliveries(db_engine, bottle_id) == [(ADMIN_CHANNEL, copy_id)]
        assert _xp(db_engine, REPORTER) == cfg.xp.report

    def test_duplicate_report_is_not_rescored(self, db_engine, cfg, notifier, bottle_id):
        _file(db_engine, cfg, notifier, bottle_id)
        outcome = _file(db_engine, cfg, notifier, bottle_id, reporter_id=6, name="bob")

        assert not outcome.filed
        assert outcome.already_exists
        assert _report_count(db_engine) == 1
        assert _xp(db_engine, 6) is None
        assert len(notifier.texts) == 1

    def test_same_reporter_twice(self, db_engine, cfg, notifier, bottle_id):
        _file(db_engine, cfg, notifier, bottle_id)
        _file(db_engine, cfg, notifier, bottle_id)

        assert _report_count(db_engine) == 1
        assert _xp(db_engine, REPORTER) == cfg.xp.report

    def test_banned_reporter_is_refused(self, db_engine, cfg, notifier, bottle_id):
        add_user(db_engine, REPORTER)
        with Session(db_engine) as session:
            session.add(Ban(user_id=REPORTER))
            session.commit()

        outcome = _file(db_engine, cfg, notifier, bottle_id)

        assert not outcome.filed
        assert outcome.banned
        assert _report_count(db_engine) == 0
        assert notifier.texts == []

    def test_banned_admin_may_report(self, db_engine, cfg, notifier, bottle_id):
        add_user(db_engine, REPORTER, admin=True)
        with Session(db_engine) as session:
            session.add(Ban(user_id=REPORTER))
            session.commit()

        assert _file(db_engine, cfg, notifier, bottle_id).filed

    def test_lost_race_logs_unsaved_copy(self, db_engine, cfg, notifier, bottle_id, caplog):
        with patch("driftbottle.services.report_service.save_report", return_value=False):
            with caplog.at_level(logging.WARNING, logger="driftbottle.services.report_service"):
                outcome = _file(db_engine, cfg, notifier, bottle_id)

        assert not outcome.filed
        assert outcome.already_exists
        copy_id = notifier.cards[0][1]
        assert f"copy {copy_id}" in caplog.text

    def test_bottle_deleted_before_save(self, db_engine, cfg, notifier, bottle_id):
        status = get_report_status(db_engine, REPORTER, bottle_id)
        delete_bottle_record(db_engine, bottle_id)

        saved = save_report(
            db_engine, cfg, reporter_id=REPORTER, bottle=status.bottle,
            header_message_id=800, copy_message_id=801,
        )

        assert saved is False
        assert _report_count(db_engine) == 0

    def test_unknown_bottle(self, db_engine, cfg, notifier):
        with pytest.raises(NotFound):
            _file(db_engine, cfg, notifier, 4242)


class TestReportModeration:
    def test_header_reaction_bans_reported_author(self, db_engine, cfg, notifier, bottle_id):
        add_user(db_engine, 900, admin=True)
        _file(db_engine, cfg, notifier, bottle_id)
        header_id = notifier.texts[0][1]

        moderator = Moderator(db_engine, cfg, notifier)
        action = run_async(moderator.handle(
            ReactionEvent(message_id=header_id, user_id=900, emoji=cfg.ban_emoji, added=True)
        ))

        assert action is ModerationAction.BANNED
        with Session(db_engine) as session:
            assert session.get(Ban, 1) is not None
            assert session.get(Ban, REPORTER) is None
        # the admin-channel copy is never blanked
        assert notifier.edits == []
