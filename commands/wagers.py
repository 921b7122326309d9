"""
Discord commands and reaction handling for head-to-head wagers.
"""

import asyncio
import logging

import discord
from discord import app_commands
from discord.ext import commands

from domain.models.wager import STATUS_ACTIVE, VOTE_CANCEL, Wager
from domain.models.wager_action import CastVote, Confirm, JoinSide
from services.consensus_service import OUTCOME_RESOLVED, ConsensusService, ConsensusStatus
from services.wager_service import WagerService
from services.wager_stats_service import WagerStatsService
from utils.interaction_safety import safe_defer, safe_followup
from utils.wager_embeds import (
    CANCEL_VOTE_EMOJI,
    CONFIRM_EMOJI,
    build_active_list_embed,
    build_history_embed,
    build_leaderboard_embed,
    build_request_embed,
    build_settlement_embed,
    build_stats_embed,
    build_status_message,
    build_wager_embed,
    resolve_reaction_action,
    side_emojis,
)

logger = logging.getLogger("wager_bot.commands.wagers")

CATEGORY_CHOICES = [
    app_commands.Choice(name="Game", value="game"),
    app_commands.Choice(name="Player Prop", value="prop"),
    app_commands.Choice(name="Future/Other", value="future"),
]

SIDE_CHOICES = [
    app_commands.Choice(name="Side A", value="A"),
    app_commands.Choice(name="Side B", value="B"),
]

VOTE_CHOICES = SIDE_CHOICES + [app_commands.Choice(name="Cancel", value=VOTE_CANCEL)]

# Rejection notices posted from the reaction listener clean themselves up
NOTICE_DELETE_AFTER = 15


class WagerCommands(commands.Cog):
    """Create, take, settle and review wagers."""

    wager = app_commands.Group(name="wager", description="Create and settle wagers")
    wagers = app_commands.Group(name="wagers", description="Browse wagers")

    def __init__(
        self,
        bot: commands.Bot,
        wager_service: WagerService,
        consensus_service: ConsensusService,
        wager_stats_service: WagerStatsService,
        active_list_limit: int = 10,
    ):
        self.bot = bot
        self.wager_service = wager_service
        self.consensus_service = consensus_service
        self.wager_stats_service = wager_stats_service
        self.active_list_limit = active_list_limit

    # =========================================================================
    # Message helpers
    # =========================================================================

    async def _get_channel(self, channel_id: int | None):
        if channel_id is None:
            return None
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except discord.HTTPException as exc:
                logger.warning(f"Could not fetch channel {channel_id}: {exc}")
                return None
        return channel

    async def _refresh_wager_message(self, wager: Wager | None) -> None:
        """Re-render the wager's own message after a state change."""
        if wager is None or wager.message_id is None:
            return
        channel = await self._get_channel(wager.channel_id)
        if channel is None:
            return
        try:
            message = await channel.fetch_message(wager.message_id)
            await message.edit(embed=build_wager_embed(wager))
            if wager.status == STATUS_ACTIVE:
                await message.add_reaction(CANCEL_VOTE_EMOJI)
        except discord.HTTPException as exc:
            logger.warning(f"Failed to update wager #{wager.wager_id} message: {exc}")

    async def _announce_status(self, channel, status: ConsensusStatus) -> None:
        """Post the status event of a vote or confirmation."""
        if channel is None:
            return
        wager = self.wager_service.get_wager(status.wager_id)
        try:
            if status.committed and status.outcome == OUTCOME_RESOLVED:
                await channel.send(embed=build_settlement_embed(wager, status.settlement))
            elif status.committed:
                await channel.send(
                    f"🚫 Wager #{status.wager_id} was cancelled by agreement. No money changed hands."
                )
            else:
                await channel.send(
                    build_status_message(wager, status.voter_id, status.choice, status.pending_from),
                    allowed_mentions=discord.AllowedMentions(users=True),
                )
        except discord.HTTPException as exc:
            logger.warning(f"Failed to announce consensus status for wager #{status.wager_id}: {exc}")

        if status.committed:
            await self._refresh_wager_message(wager)

    async def _post_request(self, interaction: discord.Interaction, request, wager: Wager) -> None:
        message = await safe_followup(interaction, embed=build_request_embed(request, wager))
        if message is None:
            return
        self.consensus_service.attach_request_message(request.request_id, interaction.channel_id, message.id)
        try:
            await message.add_reaction(CONFIRM_EMOJI)
        except discord.HTTPException as exc:
            logger.warning(f"Failed to add confirm reaction to request #{request.request_id}: {exc}")

    # =========================================================================
    # /wager ...
    # =========================================================================

    @wager.command(name="create", description="Create a new wager for someone to take")
    @app_commands.describe(
        category="What kind of wager this is",
        description="What the wager is about",
        amount="Base amount; the underdog stakes this, the favorite stakes the underdog's winnings",
        side_a="Label for side A (away team for games)",
        side_b="Label for side B (home team for games)",
        side_a_odds="Odds for side A, American (+150, -200) or decimal (2.5). Default even",
        side_b_odds="Odds for side B, American (+150, -200) or decimal (2.5). Default even",
        away_team="Away team (games)",
        home_team="Home team (games)",
        player_name="Player the prop is about",
        details="Anything else worth writing down",
    )
    @app_commands.choices(category=CATEGORY_CHOICES)
    async def create(
        self,
        interaction: discord.Interaction,
        category: app_commands.Choice[str],
        description: str,
        amount: float,
        side_a: str,
        side_b: str,
        side_a_odds: str | None = None,
        side_b_odds: str | None = None,
        away_team: str | None = None,
        home_team: str | None = None,
        player_name: str | None = None,
        details: str | None = None,
    ):
        await safe_defer(interaction)

        result = self.wager_service.create_wager(
            creator_id=interaction.user.id,
            category=category.value,
            description=description,
            base_amount=amount,
            side_a_description=side_a,
            side_b_description=side_b,
            side_a_odds=side_a_odds,
            side_b_odds=side_b_odds,
            guild_id=interaction.guild.id if interaction.guild else None,
            channel_id=interaction.channel_id,
            creator_name=interaction.user.display_name,
            home_team=home_team,
            away_team=away_team,
            player_name=player_name,
            details=details,
        )
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return

        wager = result.value
        message = await safe_followup(interaction, embed=build_wager_embed(wager))
        if message is None:
            return
        self.wager_service.attach_message(wager.wager_id, interaction.channel_id, message.id)
        try:
            for emoji in side_emojis(wager.category):
                await message.add_reaction(emoji)
        except discord.HTTPException as exc:
            logger.warning(f"Failed to add side reactions to wager #{wager.wager_id}: {exc}")

    @wager.command(name="resolve", description="Propose the winner of an active wager")
    @app_commands.describe(wager_id="The wager ID", winner="The side that won")
    @app_commands.choices(winner=SIDE_CHOICES)
    async def resolve(
        self, interaction: discord.Interaction, wager_id: int, winner: app_commands.Choice[str]
    ):
        await safe_defer(interaction)

        result = self.consensus_service.propose_resolution(wager_id, interaction.user.id, winner.value)
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return
        await self._post_request(interaction, result.value.request, result.value.wager)

    @wager.command(name="cancel", description="Cancel a wager (an active one needs your opponent to agree)")
    @app_commands.describe(wager_id="The wager ID")
    async def cancel(self, interaction: discord.Interaction, wager_id: int):
        await safe_defer(interaction)

        result = self.consensus_service.propose_cancellation(wager_id, interaction.user.id)
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return

        proposal = result.value
        if proposal.committed:
            await safe_followup(interaction, content=f"✅ Wager #{wager_id} has been cancelled.")
            await self._refresh_wager_message(proposal.wager)
            return
        await self._post_request(interaction, proposal.request, proposal.wager)

    @wager.command(name="confirm", description="Agree to a proposed resolution or cancellation")
    @app_commands.describe(request_id="The request ID shown on the proposal")
    async def confirm(self, interaction: discord.Interaction, request_id: int):
        await safe_defer(interaction, ephemeral=True)

        result = self.consensus_service.confirm_request(request_id, interaction.user.id)
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return
        await safe_followup(interaction, content=f"✅ Confirmed request #{request_id}.", ephemeral=True)
        await self._announce_status(interaction.channel, result.value)

    @wager.command(name="vote", description="Vote on the outcome of an active wager")
    @app_commands.describe(wager_id="The wager ID", choice="The winning side, or cancel")
    @app_commands.choices(choice=VOTE_CHOICES)
    async def vote(self, interaction: discord.Interaction, wager_id: int, choice: app_commands.Choice[str]):
        await safe_defer(interaction, ephemeral=True)

        result = self.consensus_service.cast_vote(wager_id, interaction.user.id, choice.value)
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return
        await safe_followup(interaction, content=f"✅ Vote recorded: {choice.name}.", ephemeral=True)
        await self._announce_status(interaction.channel, result.value)

    # =========================================================================
    # /wagers ...
    # =========================================================================

    @wagers.command(name="active", description="List open wagers in this server")
    async def active(self, interaction: discord.Interaction):
        await safe_defer(interaction)
        guild_id = interaction.guild.id if interaction.guild else None
        wagers = self.wager_service.list_active_and_pending(guild_id, self.active_list_limit)
        await safe_followup(interaction, embed=build_active_list_embed(wagers))

    @wagers.command(name="history", description="Show resolved wagers for you or another user")
    @app_commands.describe(user="Whose history to show (defaults to you)")
    async def history(self, interaction: discord.Interaction, user: discord.Member | None = None):
        await safe_defer(interaction, ephemeral=True)
        target = user or interaction.user
        entries = self.wager_stats_service.get_user_history(target.id)
        await safe_followup(
            interaction, embed=build_history_embed(target.display_name, entries), ephemeral=True
        )

    # =========================================================================
    # Stats
    # =========================================================================

    @app_commands.command(name="wagerstats", description="Show wager stats for you or another user")
    @app_commands.describe(user="Whose stats to show (defaults to you)")
    async def wagerstats(self, interaction: discord.Interaction, user: discord.Member | None = None):
        await safe_defer(interaction)
        target = user or interaction.user
        stats = self.wager_stats_service.get_user_stats(target.id)
        if stats.total_wagers == 0:
            await safe_followup(interaction, content=f"{target.display_name} has no wager history yet!")
            return
        await safe_followup(interaction, embed=build_stats_embed(target.display_name, stats))

    @app_commands.command(name="wagerleaderboard", description="Top wagerers by net profit")
    async def wagerleaderboard(self, interaction: discord.Interaction):
        await safe_defer(interaction)
        entries = self.wager_stats_service.get_leaderboard()
        await safe_followup(interaction, embed=build_leaderboard_embed(entries))

    # =========================================================================
    # Reactions
    # =========================================================================

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        """Turn reactions on wager and request messages into wager actions."""
        if self.bot.user and payload.user_id == self.bot.user.id:
            return

        emoji = str(payload.emoji)
        target = await asyncio.to_thread(self.wager_service.get_wager_by_message_id, payload.message_id)
        if target is None:
            target = await asyncio.to_thread(
                self.consensus_service.get_request_by_message_id, payload.message_id
            )
        if target is None:
            return

        action = resolve_reaction_action(target, emoji)
        if action is None:
            return

        display_name = payload.member.display_name if payload.member else None
        try:
            result = await asyncio.to_thread(
                self.consensus_service.dispatch, action, payload.user_id, display_name
            )
        except Exception as exc:
            logger.exception(f"Error handling wager reaction {emoji} on {payload.message_id}: {exc}")
            return

        channel = await self._get_channel(payload.channel_id)
        if not result.success:
            logger.debug(f"Reaction {emoji} by {payload.user_id} rejected: {result.error_code}")
            await self._reject_reaction(channel, payload, result.error)
            return

        if isinstance(action, JoinSide):
            joined = result.value
            await self._refresh_wager_message(joined.wager)
            if joined.activated and channel is not None:
                wager = joined.wager
                try:
                    await channel.send(
                        f"🎲 **Wager #{wager.wager_id} is now active!** "
                        f"<@{wager.side_a.user_id}> vs <@{wager.side_b.user_id}>"
                    )
                except discord.HTTPException as exc:
                    logger.warning(f"Failed to announce activation of wager #{wager.wager_id}: {exc}")
        elif isinstance(action, (CastVote, Confirm)):
            await self._announce_status(channel, result.value)

    async def _reject_reaction(self, channel, payload: discord.RawReactionActionEvent, error: str) -> None:
        """Remove a rejected reaction and tell the user why."""
        if channel is None:
            return
        try:
            message = await channel.fetch_message(payload.message_id)
            await message.remove_reaction(payload.emoji, discord.Object(id=payload.user_id))
        except discord.HTTPException as exc:
            logger.debug(f"Could not remove rejected reaction: {exc}")
        try:
            await channel.send(f"<@{payload.user_id}> ❌ {error}", delete_after=NOTICE_DELETE_AFTER)
        except discord.HTTPException as exc:
            logger.warning(f"Failed to send reaction rejection notice: {exc}")


async def setup(bot: commands.Bot):
    wager_service = getattr(bot, "wager_service", None)
    if wager_service is None:
        raise RuntimeError("Wager service not registered on bot.")
    consensus_service = getattr(bot, "consensus_service", None)
    if consensus_service is None:
        raise RuntimeError("Consensus service not registered on bot.")
    wager_stats_service = getattr(bot, "wager_stats_service", None)
    if wager_stats_service is None:
        raise RuntimeError("Wager stats service not registered on bot.")

    await bot.add_cog(
        WagerCommands(
            bot,
            wager_service,
            consensus_service,
            wager_stats_service,
            active_list_limit=getattr(bot, "wager_active_list_limit", 10),
        )
    )
