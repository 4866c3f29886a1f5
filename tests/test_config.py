"""
tests/test_config.py — YAML configuration loader
=================================================
"""

from __future__ import annotations

import pytest

from driftbottle.config import DEFAULT_ANONYMOUS_AVATAR, load_config, parse_config

MINIMAL = {"bot_prefix": "b!", "admin_channel_id": 999}


class TestParseConfig:
    def test_defaults(self):
        cfg = parse_config(MINIMAL)

        assert cfg.admin_channel_id == 999
        assert cfg.cooldown_minutes == 2
        assert cfg.min_chars == 10
        assert cfg.max_tickets == 5
        assert cfg.deliver_count == 3
        assert cfg.max_chain_depth == 25
        assert cfg.reply_prefixes == ("#reply", "#r")
        assert cfg.site_url is None
        assert cfg.anonymous_avatar_url == DEFAULT_ANONYMOUS_AVATAR
        assert cfg.xp.push == 10
        assert cfg.xp.image == 15

    def test_overrides(self):
        cfg = parse_config({
            **MINIMAL,
            "cooldown_minutes": 5,
            "admin_user_ids": ["123", 456],
            "site_url": "https://bottle.example/",
            "xp": {"reply": 7},
        })

        assert cfg.cooldown_minutes == 5
        assert cfg.admin_user_ids == (123, 456)
        assert cfg.site_url == "https://bottle.example"
        assert cfg.xp.reply == 7
        assert cfg.xp.push == 10

    def test_missing_required_key(self):
        with pytest.raises(KeyError):
            parse_config({"bot_prefix": "b!"})


class TestLoadConfig:
    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "bot_prefix: 'b!'\n"
            "admin_channel_id: 42\n"
            "min_chars: 3\n"
            "reply_prefixes: ['#re']\n",
            encoding="utf-8",
        )

        cfg = load_config(path)

        assert cfg.admin_channel_id == 42
        assert cfg.min_chars == 3
        assert cfg.reply_prefixes == ("#re",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")
