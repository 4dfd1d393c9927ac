"""
Session commands: screenshot analysis, session import, players and listings.

Screenshot analysis never writes to the database. It returns an embed for
review plus a JSON match draft the operator can fold into a session payload
and submit with /import-session.
"""

import io
import json
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands
from sqlalchemy.exc import IntegrityError

from tracker.constants import ErrorCodes, UIConstants
from tracker.operations.vision_operations import build_match_draft
from tracker.processors.base import KnownPlayer
from tracker.processors.registry import default_registry
from tracker.utils.embeds import (
    build_ingestion_embed, build_session_list_embed, build_vision_result_embed
)
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)

GAME_CHOICES = [
    app_commands.Choice(name=processor.game_name, value=processor.game_id)
    for processor in default_registry.all()
]


async def is_tracker_admin(interaction: discord.Interaction) -> bool:
    """Same admin role that session ingestion requires"""
    return await interaction.client.session_ops.auth_gate.is_admin(interaction.user)


class SessionCog(commands.Cog):
    """Screenshot analysis and session ingestion commands"""

    def __init__(self, bot):
        self.bot = bot
        self.logger = logger

    @app_commands.command(name="analyze-screenshot", description="Read player stats and winners from a result screenshot")
    @app_commands.describe(game="Game the screenshot was taken in", screenshot="Result screen image")
    @app_commands.choices(game=GAME_CHOICES)
    @app_commands.checks.cooldown(rate=1, per=10.0, key=lambda i: i.user.id)
    async def analyze_screenshot(
        self,
        interaction: discord.Interaction,
        game: app_commands.Choice[int],
        screenshot: discord.Attachment
    ):
        await interaction.response.defer()

        if screenshot.size > UIConstants.MAX_ATTACHMENT_BYTES:
            await interaction.followup.send("❌ Screenshot is too large.", ephemeral=True)
            return
        if screenshot.content_type and not screenshot.content_type.startswith('image/'):
            await interaction.followup.send("❌ Please attach an image.", ephemeral=True)
            return

        image = await screenshot.read()
        players = await self.bot.db.get_all_players()
        known_players = [KnownPlayer.from_model(player) for player in players]

        result = await self.bot.vision_ops.analyze_screenshot(
            image, known_players, game.value, actor=str(interaction.user)
        )
        embed = build_vision_result_embed(result, game.name)

        if not result.is_success:
            await interaction.followup.send(embed=embed)
            return

        stats = await self.bot.db.get_game_stats(game.value)
        draft = build_match_draft(result, {stat.stat_name: stat.id for stat in stats})
        draft_file = discord.File(
            io.BytesIO(json.dumps(draft, indent=2).encode('utf-8')),
            filename="match_draft.json"
        )
        await interaction.followup.send(embed=embed, file=draft_file)

    @app_commands.command(name="import-session", description="Import a reviewed session from a JSON file")
    @app_commands.describe(payload="Session JSON (game, video, sets, matches, player stats)")
    async def import_session(self, interaction: discord.Interaction, payload: discord.Attachment):
        await interaction.response.defer(ephemeral=True)

        try:
            data = json.loads(await payload.read())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logger.info(f"Unreadable session payload from {interaction.user}: {e}")
            await interaction.followup.send(
                embed=build_ingestion_embed(ErrorCodes.INVALID_SESSION_DATA), ephemeral=True
            )
            return

        result = await self.bot.session_ops.insert_session(interaction.user, data)
        video_id = data.get('videoId') if isinstance(data, dict) else None
        await interaction.followup.send(
            embed=build_ingestion_embed(result.error, result.session_id, video_id),
            ephemeral=True
        )

    @app_commands.command(name="add-player", description="Register a player so screenshots can be matched to them")
    @app_commands.describe(name="Name as it appears in game", member="Discord member to link (optional)")
    @app_commands.check(is_tracker_admin)
    async def add_player(self, interaction: discord.Interaction, name: str, member: Optional[discord.Member] = None):
        name = name.strip()
        if not name:
            await interaction.response.send_message("❌ Player name cannot be empty.", ephemeral=True)
            return

        try:
            player = await self.bot.db.create_player(name, member.id if member else None)
        except IntegrityError:
            await interaction.response.send_message(f"❌ Player `{name}` already exists.", ephemeral=True)
            return

        self.bot.analytics.log_admin_action(str(interaction.user), 'add_player', player_id=player.id)
        await interaction.response.send_message(f"✅ Added player `{player.player_name}` (ID {player.id}).")

    @app_commands.command(name="players", description="List registered players")
    async def list_players(self, interaction: discord.Interaction):
        players = await self.bot.db.get_all_players()
        embed = discord.Embed(title="👥 Players", color=UIConstants.DEFAULT_EMBED_COLOR)
        if players:
            embed.description = "\n".join(f"`{p.id}` {p.player_name}" for p in players)[:4096]
        else:
            embed.description = "No players registered yet."
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="recent-sessions", description="Show the most recently played sessions")
    @app_commands.describe(limit="How many sessions to show")
    async def recent_sessions(self, interaction: discord.Interaction, limit: Optional[app_commands.Range[int, 1, 25]] = None):
        await interaction.response.defer()
        sessions = await self.bot.session_ops.get_recent_sessions(limit)
        await interaction.followup.send(embed=build_session_list_embed(sessions))

    @app_commands.command(name="recompute-set-winners", description="Re-derive a set's winners from its match winners")
    @app_commands.describe(set_id="ID of the set")
    @app_commands.check(is_tracker_admin)
    async def recompute_set_winners(self, interaction: discord.Interaction, set_id: int):
        await interaction.response.defer(ephemeral=True)
        winner_ids = await self.bot.session_ops.recompute_set_winners(set_id)
        if winner_ids is None:
            await interaction.followup.send(f"❌ Set {set_id} not found.", ephemeral=True)
            return

        self.bot.analytics.log_admin_action(
            str(interaction.user), 'recompute_set_winners', set_id=set_id, winners=winner_ids
        )
        winners = ", ".join(str(player_id) for player_id in winner_ids) or "none"
        await interaction.followup.send(f"✅ Set {set_id} winners: {winners}", ephemeral=True)


async def setup(bot):
    await bot.add_cog(SessionCog(bot))
