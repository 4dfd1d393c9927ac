"""
Shared embed utilities for the stat tracker bot.

Provides reusable embed building functions so the session cog and the admin
cog format analysis results, ingestion outcomes and listings the same way.
"""

from typing import Any, Dict, List, Optional

import discord

from tracker.constants import UIConstants
from tracker.processors.base import VisionResult


def build_vision_result_embed(result: VisionResult, game_name: str) -> discord.Embed:
    """
    Build the embed shown after a screenshot analysis.

    Failed analyses get a red embed with the failure message. Successful
    ones list each player's stats, mark low-confidence values and name the
    winners. Discord's 25-field limit is respected by truncating the player
    list.

    Args:
        result: Outcome of the screenshot analysis
        game_name: Display name of the analyzed game

    Returns:
        Formatted Discord embed ready for display
    """
    if not result.is_success or result.data is None:
        return discord.Embed(
            title=f"❌ Screenshot Analysis Failed: {game_name}",
            description=result.message,
            color=UIConstants.ERROR_COLOR
        )

    color = UIConstants.REVIEW_COLOR if result.req_check else UIConstants.SUCCESS_COLOR
    embed = discord.Embed(
        title=f"📸 Screenshot Analysis: {game_name}",
        color=color
    )

    if result.req_check:
        embed.description = (
            f"{UIConstants.REVIEW_EMOJI} Some values were read with low confidence. "
            "Check the marked stats before importing."
        )

    # One field is reserved for the winners
    max_players = UIConstants.MAX_EMBED_FIELDS - 1
    for player in result.data.players[:max_players]:
        lines = []
        for stat in player.stats:
            marker = f" {UIConstants.REVIEW_EMOJI}" if stat.req_check else ""
            lines.append(f"**{stat.stat_name}:** {stat.stat_value}{marker}")
        name = player.name if player.team is None else f"{player.name} (Team {player.team})"
        if player.req_check:
            name = f"{name} {UIConstants.REVIEW_EMOJI}"
        embed.add_field(name=name, value="\n".join(lines) or "No stats", inline=True)

    winners = ", ".join(winner.player_name for winner in result.data.winner) or "No winner"
    embed.add_field(name=f"{UIConstants.TROPHY_EMOJI} Winners", value=winners, inline=False)

    hidden = len(result.data.players) - max_players
    if hidden > 0:
        embed.set_footer(text=f"{hidden} more player(s) not shown")

    return embed


def build_ingestion_embed(error: Optional[str], session_id: Optional[int] = None, video_id: Optional[str] = None) -> discord.Embed:
    """Embed for the outcome of a session import"""
    if error:
        return discord.Embed(
            title="❌ Session Import Failed",
            description=error,
            color=UIConstants.ERROR_COLOR
        )

    embed = discord.Embed(
        title="✅ Session Imported",
        color=UIConstants.SUCCESS_COLOR
    )
    if session_id is not None:
        embed.add_field(name="Session ID", value=str(session_id), inline=True)
    if video_id:
        embed.add_field(name="Video", value=video_id, inline=True)
    return embed


def build_session_list_embed(sessions: List[Dict[str, Any]]) -> discord.Embed:
    embed = discord.Embed(
        title="🎮 Recent Sessions",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    if not sessions:
        embed.description = "No sessions have been imported yet."
        return embed

    for summary in sessions[:UIConstants.MAX_EMBED_FIELDS]:
        winners = ", ".join(summary.get('day_winners') or []) or "None"
        embed.add_field(
            name=f"#{summary['session_id']} {summary['session_name']}",
            value=(
                f"**Game:** {summary['game']}\n"
                f"**Date:** {summary['date']}\n"
                f"**Day Winners:** {winners}"
            ),
            inline=False
        )
    return embed


def build_table_counts_embed(counts: Dict[str, int]) -> discord.Embed:
    embed = discord.Embed(
        title="📊 Database Statistics",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )
    for table_name, count in counts.items():
        embed.add_field(name=table_name.replace('_', ' ').title(), value=count, inline=True)
    return embed
