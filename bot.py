"""
Main Discord bot entry for the wager bot.
"""

import logging

# Configure logging BEFORE importing discord to prevent duplicate handlers
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    force=True,  # Override any existing handlers (e.g., from discord.py)
)
logger = logging.getLogger("wager_bot")


# Suppress PyNaCl warning since voice support isn't needed
class _PyNaClFilter(logging.Filter):
    """Filter out the PyNaCl warning from discord.py."""

    def filter(self, record):
        return "PyNaCl is not installed" not in record.getMessage()


logging.getLogger("discord.client").addFilter(_PyNaClFilter())

# Now import discord after logging is configured
import discord
from discord.ext import commands

# discord.py adds its own handler to the 'discord' logger on import
_discord_logger = logging.getLogger("discord")
_discord_logger.handlers.clear()
_discord_logger.setLevel(logging.INFO)

from config import (
    CONSENSUS_REQUEST_TTL_SECONDS,
    DB_PATH,
    DISCORD_BOT_TOKEN,
    SYNC_COMMANDS_ON_STARTUP,
    WAGER_ACTIVE_LIST_LIMIT,
    WAGER_HISTORY_LIMIT,
    WAGER_LEADERBOARD_SIZE,
    WAGER_MAX_AMOUNT,
)
from infrastructure.service_container import ServiceConfig, ServiceContainer

# Bot setup

intents = discord.Intents.default()
intents.reactions = True

bot = commands.Bot(command_prefix="!", intents=intents)

_container: ServiceContainer | None = None

EXTENSIONS = [
    "commands.wagers",
]


async def _init_services():
    """Initialize all services via ServiceContainer (idempotent)."""
    global _container

    if _container is not None:
        return

    _container = ServiceContainer(
        ServiceConfig(
            db_path=DB_PATH,
            max_amount=WAGER_MAX_AMOUNT,
            request_ttl_seconds=CONSENSUS_REQUEST_TTL_SECONDS,
            history_limit=WAGER_HISTORY_LIMIT,
            leaderboard_size=WAGER_LEADERBOARD_SIZE,
            active_list_limit=WAGER_ACTIVE_LIST_LIMIT,
        )
    )
    await _container.initialize()
    _container.expose_to_bot(bot)


async def _load_extensions():
    """Load command extensions if not already loaded."""
    await _init_services()

    loaded_extensions = []
    failed_extensions = []

    for ext in EXTENSIONS:
        if ext in bot.extensions:
            logger.debug(f"Extension {ext} already loaded, skipping")
            continue
        try:
            await bot.load_extension(ext)
            loaded_extensions.append(ext)
            logger.info(f"Loaded extension: {ext}")
        except Exception as exc:
            failed_extensions.append(ext)
            logger.error(f"Failed to load extension {ext}: {exc}", exc_info=True)

    logger.info(
        f"Extension loading complete: {len(loaded_extensions)} loaded, "
        f"{len(failed_extensions)} failed"
    )


@bot.event
async def setup_hook():
    """Load command cogs."""
    await _load_extensions()


@bot.event
async def on_ready():
    """Called when bot is ready."""
    logger.info(f"{bot.user} connected. Guilds: {len(bot.guilds)}")

    # Expired requests are ignored anyway; this only keeps the table small
    consensus_service = getattr(bot, "consensus_service", None)
    if consensus_service:
        purged = consensus_service.purge_expired_requests()
        if purged:
            logger.info(f"Purged {purged} expired consensus request(s) on startup")

    if not SYNC_COMMANDS_ON_STARTUP:
        return
    try:
        synced = await bot.tree.sync()
        logger.info(f"Slash commands synced globally ({len(synced)} commands).")
    except Exception as exc:
        logger.error(f"Failed to sync commands: {exc}", exc_info=True)


@bot.tree.error
async def on_app_command_error(interaction: discord.Interaction, error: discord.app_commands.AppCommandError):
    """Global error handler for app commands - prevents infinite 'thinking...' state."""
    logger.error(
        f"App command error in '{interaction.command.name if interaction.command else 'unknown'}': {error}",
        exc_info=error,
    )
    error_msg = "An error occurred while processing your command. Please try again."

    try:
        if interaction.response.is_done():
            await interaction.followup.send(content=f"❌ {error_msg}", ephemeral=True)
        else:
            await interaction.response.send_message(content=f"❌ {error_msg}", ephemeral=True)
    except Exception as followup_error:
        logger.error(f"Failed to send error message to user: {followup_error}")


def main():
    """Run the bot."""
    if not DISCORD_BOT_TOKEN:
        print("ERROR: DISCORD_BOT_TOKEN not found!")
        return

    try:
        # log_handler=None keeps discord.py from adding its own handler
        bot.run(DISCORD_BOT_TOKEN, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")
        print("\nBot stopped. Goodbye!")
    except Exception as exc:
        logger.error(f"Bot crashed: {exc}", exc_info=True)
        print(f"\nBot crashed: {exc}")


if __name__ == "__main__":
    main()
