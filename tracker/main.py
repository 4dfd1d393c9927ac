import asyncio
import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from tracker.config import Config
from tracker.database.database import Database
from tracker.operations.session_operations import SessionOperations
from tracker.operations.vision_operations import VisionOperations
from tracker.services.analytics import AnalyticsService
from tracker.services.auth_gate import DiscordAuthorizationGate
from tracker.services.session_cache import SessionCache
from tracker.services.vision_client import DocumentVisionClient
from tracker.utils.logger import setup_logger

EXTENSIONS = (
    'tracker.cogs.admin',
    'tracker.cogs.sessions',
)


def describe_app_command_error(error: app_commands.AppCommandError) -> str:
    """User-facing text for a failed slash command"""
    if isinstance(error, app_commands.CommandOnCooldown):
        return f"⏳ Slow down, try again in {error.retry_after:.1f}s."
    if isinstance(error, app_commands.BotMissingPermissions):
        return "❌ I'm missing permissions needed for this command."
    if isinstance(error, app_commands.CheckFailure):
        return "❌ Only tracker admins can use this command."
    return "❌ Something went wrong while running this command."


class StatTrackerBot(commands.Bot):
    """Discord front end for screenshot analysis and session ingestion"""

    def __init__(self):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True

        super().__init__(command_prefix=Config.COMMAND_PREFIX, intents=intents, help_command=None)
        self.tree.on_error = self.on_app_command_error

        self.logger = setup_logger(__name__)
        self.analytics = AnalyticsService()
        self.db: Optional[Database] = None
        self.session_cache: Optional[SessionCache] = None
        self.vision_ops: Optional[VisionOperations] = None
        self.session_ops: Optional[SessionOperations] = None

    async def setup_hook(self):
        self.db = Database()
        await self.db.initialize()

        self.session_cache = SessionCache()
        self.vision_ops = VisionOperations(DocumentVisionClient(), analytics=self.analytics)
        self.session_ops = SessionOperations(
            self.db,
            DiscordAuthorizationGate(),
            cache=self.session_cache,
            analytics=self.analytics
        )

        for extension in EXTENSIONS:
            try:
                await self.load_extension(extension)
                self.logger.info(f"Loaded cog: {extension}")
            except commands.ExtensionError as e:
                self.logger.error(f"Failed to load cog {extension}: {e}", exc_info=True)

        await self.sync_app_commands()
        self.logger.info("Stat Tracker ready to start")

    async def sync_app_commands(self):
        """Copy slash commands to each configured guild, or sync globally when none are set"""
        guild_ids = Config.get_guild_ids()
        if not guild_ids:
            synced = await self.tree.sync()
            self.logger.info(f"Synced {len(synced)} command(s) globally (may take up to an hour to appear)")
            return

        for guild_id in guild_ids:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            try:
                synced = await self.tree.sync(guild=guild)
            except discord.HTTPException as e:
                # Keep going: one misconfigured guild should not block the others
                self.logger.error(f"Command sync to guild {guild_id} failed ({e.status}): {e.text}")
                continue
            self.logger.info(f"Synced {len(synced)} command(s) to guild {guild_id}")

    async def on_ready(self):
        self.logger.info(f"{self.user} connected to {len(self.guilds)} guild(s)")
        await self.change_presence(activity=discord.Game(name="/analyze-screenshot"))

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        command_name = interaction.command.name if interaction.command else 'unknown'
        if isinstance(error, (app_commands.CheckFailure, app_commands.CommandOnCooldown)):
            self.logger.info(f"/{command_name} refused for {interaction.user}: {type(error).__name__}")
        else:
            self.logger.error(f"/{command_name} failed: {error}", exc_info=error)

        embed = discord.Embed(description=describe_app_command_error(error), color=discord.Color.red())
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            self.logger.error(f"Failed to send error response: {e}")

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            return
        if isinstance(error, commands.CheckFailure):
            self.logger.info(f"{ctx.prefix}{ctx.command} refused for {ctx.author}")
            await ctx.send("❌ This command is restricted to the bot owner.")
            return
        if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.send(f"❌ {error}")
            return

        self.logger.error(f"Command {ctx.command} failed: {error}", exc_info=error)
        await ctx.send("❌ Something went wrong while running this command.")

    async def close(self):
        self.logger.info("Shutting down Stat Tracker...")
        if self.session_cache:
            await self.session_cache.close()
        if self.db:
            await self.db.close()
        await super().close()


async def main():
    Config.validate()
    bot = StatTrackerBot()
    try:
        await bot.start(Config.DISCORD_TOKEN)
    except Exception as e:
        logging.getLogger(__name__).error(f"Fatal error: {e}", exc_info=True)
    finally:
        await bot.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
