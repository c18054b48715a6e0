"""
Giveaway Bot
Discord bot running reaction-based giveaways with automatic draws
"""

import asyncio
import logging
import sys

import discord
from discord.ext import commands
from dotenv import load_dotenv

# -------------------------
# Load config
# -------------------------
load_dotenv()

from giveaway_system import config  # noqa: E402  (reads the environment loaded above)
from giveaway_system.commands import setup as setup_giveaway_commands  # noqa: E402
from giveaway_system.draw import ResolutionEngine  # noqa: E402
from giveaway_system.errors import PersistenceError  # noqa: E402
from giveaway_system.manager import GiveawayManager  # noqa: E402
from giveaway_system.persistence import create_snapshot_store  # noqa: E402
from giveaway_system.platform import DiscordPlatformClient  # noqa: E402
from giveaway_system.scheduler import setup_giveaway_scheduler  # noqa: E402
from giveaway_system.store import DrawingStore  # noqa: E402
from utils.error_helpers import log_exceptions  # noqa: E402
from utils.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger("giveaway_bot")


class GiveawayBot(commands.Bot):
    """Bot owning the giveaway store for its whole lifetime"""

    def __init__(self, store: DrawingStore):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.reactions = True  # Enable reaction events
        super().__init__(command_prefix=config.COMMAND_PREFIX, intents=intents)
        self.store = store
        self.manager = None
        self.scheduler = None

    async def setup_hook(self):
        engine = ResolutionEngine(DiscordPlatformClient(self))
        self.manager = GiveawayManager(self.store, engine)
        await setup_giveaway_commands(self, self.manager)
        self.scheduler = setup_giveaway_scheduler(
            self.store, engine, max_attempts=config.GIVEAWAY_RESOLVE_MAX_ATTEMPTS
        )

    async def on_ready(self):
        logger.info(f"✅ Logged in as {self.user} (ID: {self.user.id})")

    async def close(self):
        if self.scheduler:
            await self.scheduler.stop()
        await super().close()


async def main():
    setup_logging(log_level=config.LOG_LEVEL, log_file=config.LOG_FILE or None)

    if not config.DISCORD_TOKEN:
        raise SystemExit("❌ DISCORD_TOKEN environment variable is required")

    # A broken snapshot must stop the bot instead of starting empty
    try:
        with log_exceptions("loading giveaway state", state_file=config.GIVEAWAY_STATE_FILE):
            persistence = create_snapshot_store(config.GIVEAWAY_STATE_FILE, config.DATABASE_URL or None)
            store = DrawingStore(persistence, id_max_attempts=config.GIVEAWAY_ID_MAX_ATTEMPTS)
            count = await store.load()
    except PersistenceError:
        logger.critical("❌ Could not load giveaway state, refusing to start")
        sys.exit(1)

    logger.info(f"📦 Restored {count} active giveaway(s)")

    bot = GiveawayBot(store)
    try:
        async with bot:
            await bot.start(config.DISCORD_TOKEN)
    finally:
        try:
            await store.flush()
        except PersistenceError as e:
            logger.critical(f"❌ Failed to save giveaway state on shutdown: {e}")


# -------------------------
# Run bot
# -------------------------
if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
