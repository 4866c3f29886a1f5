"""
driftbottle.bot.__main__ — Entry point for ``python -m driftbottle.bot``
========================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml.
3. Create the SQLAlchemy engine, ensure tables exist, seed admins.
4. Create the BottleBot and hand it config + engine.
5. Start the bot (blocking — runs the asyncio event loop).
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from driftbottle.bot.core import BottleBot
from driftbottle.config import load_config
from driftbottle.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("driftbottle")


def main() -> None:
    """Bootstrap and run the bottle bot."""

    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    cfg = load_config(os.getenv("DRIFTBOTTLE_CONFIG", "config.yaml"))
    logger.info("Config loaded — admin channel %d", cfg.admin_channel_id)

    engine = create_db_engine()
    init_db(engine, cfg)

    bot = BottleBot(cfg=cfg, engine=engine)

    logger.info("Starting bottle bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
