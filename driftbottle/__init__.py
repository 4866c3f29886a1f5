"""
driftbottle — Anonymous Message Relay for Discord
==================================================
Users throw "bottles" (short messages, links, images) into the sea; the
bot washes them up in the inbound channels of other communities, lets
readers reply by chaining new bottles onto old ones, and gives admins a
reaction-driven way to delete bottles and ban their authors.

Package layout::

    driftbottle/
    ├── config.py          # YAML → typed Python config
    ├── errors.py          # Rejection + infrastructure error taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models (users, guilds, bottles, deliveries…)
    ├── engine/
    │   ├── views.py       # Origin variant + detached BottleView
    │   ├── chain.py       # Reply-chain walking, target selection, dedup
    │   ├── guard.py       # Submission admission checks
    │   ├── scoring.py     # XP values per action
    │   └── cards.py       # Pure bottle rendering (BottleCard)
    ├── services/
    │   ├── bottle_service.py       # Submission pipeline + bottle store ops
    │   ├── guild_service.py        # Inbound channels, invites, target sampling
    │   ├── user_service.py         # Users, bans, admin seeding
    │   ├── delivery_service.py     # Delivery tracker
    │   ├── scoring_service.py      # XP application (user + guild contribution)
    │   ├── distribution_service.py # Fan-out engine
    │   ├── moderation_service.py   # Reaction-driven bans/deletes
    │   ├── report_service.py       # Report filing
    │   ├── task_queue.py           # Keyed background task registry
    │   ├── notifier.py             # Notifier protocol
    │   └── embeds.py               # BottleCard → discord.Embed
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        ├── notifier.py    # discord.py-backed notifier
        └── cogs/
            ├── bottles.py    # on_message → submission pipeline
            ├── moderation.py # raw reactions → moderation handler
            └── guilds.py     # /setchannel, /setinvite, /report, /unban
"""

__version__ = "0.1.0"
