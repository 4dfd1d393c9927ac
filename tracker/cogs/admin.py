"""
Owner-only maintenance commands (prefix commands, e.g. ``!dbstats``).
"""

import discord
from discord.ext import commands

from tracker.config import Config
from tracker.constants import UIConstants
from tracker.utils.embeds import build_table_counts_embed
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


class AdminCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot
        self.logger = logger

    def cog_check(self, ctx):
        return ctx.author.id == Config.OWNER_DISCORD_ID

    @commands.command(name='shutdown')
    async def shutdown_bot(self, ctx):
        """Stop the bot"""
        self.bot.analytics.log_admin_action(str(ctx.author), 'shutdown')
        await ctx.send("🔴 Stat Tracker going offline.")
        await self.bot.close()

    @commands.command(name='reload')
    async def reload_cog(self, ctx, cog_name: str):
        """Reload one of the tracker's cogs, e.g. ``!reload sessions``"""
        extension = f'tracker.cogs.{cog_name}'
        try:
            await self.bot.reload_extension(extension)
        except commands.ExtensionError as e:
            self.logger.error(f"Failed to reload {extension}: {e}", exc_info=True)
            await ctx.send(f"❌ Could not reload `{cog_name}`: {e}")
            return
        await ctx.send(f"✅ `{cog_name}` reloaded.")

    @commands.command(name='dbstats')
    async def database_stats(self, ctx):
        """Row counts for every session table"""
        counts = await self.bot.db.get_table_counts()
        await ctx.send(embed=build_table_counts_embed(counts))

    @commands.command(name='clearcache')
    async def clear_cache(self, ctx):
        """Drop cached session listings"""
        removed = await self.bot.session_cache.invalidate_session_listings()
        self.bot.analytics.log_admin_action(str(ctx.author), 'clear_cache', removed=removed)
        await ctx.send(f"🧹 Removed {removed} cached listing(s).")

    @commands.command(name='session')
    async def show_session(self, ctx, session_id: int):
        """Sets, matches and winners of one stored session"""
        session = await self.bot.db.get_session_graph(session_id)
        if session is None:
            await ctx.send(f"❌ Session {session_id} not found.")
            return

        embed = discord.Embed(
            title=f"#{session.id} {session.session_name}",
            url=session.session_url,
            description=f"{session.game.name} | {session.date.isoformat()} | video `{session.video_id}`",
            color=UIConstants.DEFAULT_EMBED_COLOR
        )
        for game_set in session.sets[:UIConstants.MAX_EMBED_FIELDS - 1]:
            lines = []
            for match in game_set.matches:
                winners = ", ".join(p.player_name for p in match.match_winners) or "none"
                lines.append(f"Match {match.match_number}: {len(match.player_sessions)} player(s), won by {winners}")
            set_winners = ", ".join(p.player_name for p in game_set.set_winners) or "none"
            lines.append(f"**Set winners:** {set_winners}")
            embed.add_field(name=f"Set {game_set.set_number}", value="\n".join(lines)[:1024], inline=False)

        day_winners = ", ".join(p.player_name for p in session.day_winners) or "none"
        embed.add_field(name=f"{UIConstants.TROPHY_EMOJI} Day Winners", value=day_winners, inline=False)
        await ctx.send(embed=embed)


async def setup(bot):
    await bot.add_cog(AdminCog(bot))
