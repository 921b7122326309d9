"""
Embed builders and emoji mapping for wager messages.
"""

import discord

from domain.models.wager import (
    KIND_RESOLVE,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_PENDING,
    STATUS_RESOLVED,
    VOTE_CANCEL,
    ConsensusRequest,
    HistoryEntry,
    Settlement,
    UserStats,
    Wager,
)
from domain.models.wager_action import CastVote, Confirm, JoinSide, WagerAction
from domain.services.odds_converter import format_odds

# Side A / side B reaction emojis per category
CATEGORY_EMOJIS = {
    "game": ("✈️", "🏠"),  # away / home
    "prop": ("✅", "❌"),
    "future": ("🎯", "🎲"),
}
DEFAULT_SIDE_EMOJIS = ("1️⃣", "2️⃣")

CATEGORY_LABELS = {
    "game": "🏈 Game Bet",
    "prop": "👤 Player Prop",
    "future": "🔮 Future/Other",
}

CANCEL_VOTE_EMOJI = "🚫"
CONFIRM_EMOJI = "✅"

STATUS_DISPLAY = {
    STATUS_PENDING: "⏳ Waiting for takers",
    STATUS_ACTIVE: "🎲 Active",
    STATUS_RESOLVED: "🏁 Resolved",
    STATUS_CANCELLED: "🚫 Cancelled",
}

STATUS_COLORS = {
    STATUS_PENDING: discord.Color.blue(),
    STATUS_ACTIVE: discord.Color.green(),
    STATUS_RESOLVED: discord.Color.gold(),
    STATUS_CANCELLED: discord.Color.dark_grey(),
}

FIELD_VALUE_LIMIT = 1024


def _clip(text: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def format_amount(amount: float) -> str:
    """Format a money amount, e.g. '$150.00'."""
    return f"${amount:,.2f}"


def format_signed_amount(amount: float) -> str:
    """Format a profit/loss, e.g. '+$100.00' or '-$150.00'."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}${abs(amount):,.2f}"


def side_emojis(category: str) -> tuple[str, str]:
    return CATEGORY_EMOJIS.get(category, DEFAULT_SIDE_EMOJIS)


def side_label(wager: Wager, side: str) -> str:
    """Emoji plus 'Side A' / 'Away Team (Side A)' style label."""
    emoji_a, emoji_b = side_emojis(wager.category)
    emoji = emoji_a if side == "A" else emoji_b
    if wager.category == "game":
        team = "Away Team" if side == "A" else "Home Team"
        return f"{emoji} {team} (Side {side})"
    return f"{emoji} Side {side}"


def _mention(user_id: int | None) -> str:
    return f"<@{user_id}>" if user_id is not None else "Open"


def resolve_reaction_action(target: Wager | ConsensusRequest, emoji: str) -> WagerAction | None:
    """
    Map a reaction on a wager or request message to an explicit action.

    Side emojis join a pending wager or vote on an active one; the cancel
    emoji votes to cancel; the confirm emoji on a request message confirms
    it. Anything else maps to None.
    """
    if isinstance(target, ConsensusRequest):
        return Confirm(target.request_id) if emoji == CONFIRM_EMOJI else None

    emoji_a, emoji_b = side_emojis(target.category)
    side = "A" if emoji == emoji_a else "B" if emoji == emoji_b else None

    if target.status == STATUS_PENDING and side is not None:
        return JoinSide(target.wager_id, side)
    if target.status == STATUS_ACTIVE:
        if side is not None:
            return CastVote(target.wager_id, side)
        if emoji == CANCEL_VOTE_EMOJI:
            return CastVote(target.wager_id, VOTE_CANCEL)
    return None


def build_wager_embed(wager: Wager) -> discord.Embed:
    """Main wager message: both sides, stakes, who took what, and status."""
    label = CATEGORY_LABELS.get(wager.category, "🎲 Wager")
    embed = discord.Embed(
        title=f"{label} - {format_amount(wager.base_amount)}",
        description=f"**{wager.description}**",
        color=STATUS_COLORS.get(wager.status, discord.Color.blue()),
    )

    for side in ("A", "B"):
        info = wager.side(side)
        value = (
            f"{info.description}\n"
            f"**Odds:** {format_odds(info.odds)}\n"
            f"**Stake:** {format_amount(info.stake)}\n"
            f"**To Win:** {format_amount(info.to_win)}"
        )
        if info.user_id is not None:
            value += f"\n**Taken by:** {_mention(info.user_id)}"
        embed.add_field(name=side_label(wager, side), value=_clip(value), inline=True)

    if wager.category == "game" and (wager.away_team or wager.home_team):
        embed.add_field(
            name="🏟️ Matchup",
            value=_clip(f"{wager.away_team or '?'} @ {wager.home_team or '?'}"),
            inline=False,
        )
    if wager.category == "prop" and wager.player_name:
        embed.add_field(name="👤 Player", value=_clip(wager.player_name), inline=False)
    if wager.details:
        embed.add_field(name="📝 Additional Details", value=_clip(wager.details), inline=False)

    embed.add_field(name="Total Pot", value=format_amount(wager.total_pot), inline=True)
    embed.add_field(name="Status", value=STATUS_DISPLAY.get(wager.status, wager.status), inline=True)
    embed.add_field(name="Wager ID", value=f"#{wager.wager_id}", inline=True)

    emoji_a, emoji_b = side_emojis(wager.category)
    creator = wager.creator_name or f"user {wager.creator_id}"
    if wager.status == STATUS_PENDING:
        footer = f"React with {emoji_a} or {emoji_b} to take a side | Created by {creator}"
    elif wager.status == STATUS_ACTIVE:
        footer = (
            f"Both players react {emoji_a}/{emoji_b} to settle or {CANCEL_VOTE_EMOJI} to cancel"
            f" | Created by {creator}"
        )
    else:
        footer = f"Created by {creator}"
    embed.set_footer(text=footer)
    return embed


def build_request_embed(request: ConsensusRequest, wager: Wager) -> discord.Embed:
    """Message asking the counterpart to confirm a proposed outcome."""
    if request.kind == KIND_RESOLVE:
        title = f"🏁 Resolve Wager #{wager.wager_id}?"
        proposal = f"{_mention(request.proposer_id)} says **{side_label(wager, request.proposed_winner)}** won."
    else:
        title = f"🚫 Cancel Wager #{wager.wager_id}?"
        proposal = f"{_mention(request.proposer_id)} wants to cancel this wager. No money changes hands."

    embed = discord.Embed(title=title, description=f"**{wager.description}**\n{proposal}", color=discord.Color.orange())
    embed.add_field(
        name="Side A",
        value=f"{_mention(wager.side_a.user_id)} {'✅' if request.side_a_confirmed else '⏳'}",
        inline=True,
    )
    embed.add_field(
        name="Side B",
        value=f"{_mention(wager.side_b.user_id)} {'✅' if request.side_b_confirmed else '⏳'}",
        inline=True,
    )
    embed.add_field(name="Expires", value=f"<t:{request.expires_at}:R>", inline=True)
    embed.set_footer(
        text=f"React with {CONFIRM_EMOJI} or use /wager confirm request_id:{request.request_id} to agree"
    )
    return embed


def build_settlement_embed(wager: Wager, settlement: Settlement) -> discord.Embed:
    loser_side = "B" if settlement.winning_side == "A" else "A"
    embed = discord.Embed(
        title="✅ Wager Resolved!",
        description=f"**Wager #{wager.wager_id}: {wager.description}**",
        color=discord.Color.green(),
    )
    embed.add_field(
        name="🏆 Winner",
        value=(
            f"{_mention(settlement.winner_id)}\n"
            f"**{side_label(wager, settlement.winning_side)}:** {wager.side(settlement.winning_side).description}\n"
            f"**Staked:** {format_amount(settlement.winner_stake)}\n"
            f"**Won:** {format_signed_amount(settlement.winner_to_win)}\n"
            f"**Total Return:** {format_amount(settlement.winner_return)}"
        ),
        inline=True,
    )
    embed.add_field(
        name="❌ Loser",
        value=(
            f"{_mention(settlement.loser_id)}\n"
            f"**{side_label(wager, loser_side)}:** {wager.side(loser_side).description}\n"
            f"**Lost:** {format_signed_amount(-settlement.loser_stake)}"
        ),
        inline=True,
    )
    embed.add_field(name="Total Pot", value=format_amount(settlement.total_pot), inline=False)
    return embed


def format_choice(wager: Wager, choice: str) -> str:
    if choice == VOTE_CANCEL:
        return f"{CANCEL_VOTE_EMOJI} cancel"
    return side_label(wager, choice)


def build_status_message(wager: Wager, voter_id: int, choice: str, pending_from: list[int]) -> str:
    """One-line announcement for a non-committing vote or confirmation."""
    waiting = ", ".join(_mention(uid) for uid in pending_from) or "nobody"
    return (
        f"🗳️ {_mention(voter_id)} voted **{format_choice(wager, choice)}** on wager #{wager.wager_id}. "
        f"Waiting on {waiting}."
    )


def build_active_list_embed(wagers: list[Wager]) -> discord.Embed:
    embed = discord.Embed(title="📊 Active & Pending Wagers", color=discord.Color.blue())
    if not wagers:
        embed.description = "No open wagers right now. Start one with `/wager create`."
        return embed

    for wager in wagers:
        side_a = f"{wager.side_a.description} @ {format_odds(wager.side_a.odds)}"
        side_b = f"{wager.side_b.description} @ {format_odds(wager.side_b.odds)}"
        embed.add_field(
            name=f"Wager #{wager.wager_id} - {STATUS_DISPLAY.get(wager.status, wager.status)} - {format_amount(wager.base_amount)}",
            value=_clip(
                f"**{wager.description}**\n"
                f"**Side A:** {_mention(wager.side_a.user_id)} ({side_a})\n"
                f"**Side B:** {_mention(wager.side_b.user_id)} ({side_b})"
            ),
            inline=False,
        )
    return embed


def build_history_embed(user_name: str, entries: list[HistoryEntry]) -> discord.Embed:
    embed = discord.Embed(title=f"📜 {user_name}'s Wager History", color=discord.Color.blue())
    if not entries:
        embed.description = "No resolved wagers yet."
        return embed

    for entry in entries:
        own = entry.wager.side(entry.user_side)
        opponent = entry.opponent_name or _mention(entry.opponent_id)
        embed.add_field(
            name=f"{'✅' if entry.won else '❌'} Wager #{entry.wager.wager_id} - {format_signed_amount(entry.profit)}",
            value=_clip(
                f"**{entry.wager.description}**\n"
                f"**Your pick:** {own.description} @ {format_odds(own.odds)}\n"
                f"**Opponent:** {opponent}\n"
                f"**Stake:** {format_amount(own.stake)}"
            ),
            inline=False,
        )
    return embed


def build_stats_embed(user_name: str, stats: UserStats) -> discord.Embed:
    color = discord.Color.green() if stats.net_profit >= 0 else discord.Color.red()
    embed = discord.Embed(title=f"📊 {user_name}'s Wager Stats", color=color)
    embed.add_field(name="Total Wagers", value=str(stats.total_wagers), inline=True)
    embed.add_field(name="Won", value=str(stats.wins), inline=True)
    embed.add_field(name="Lost", value=str(stats.losses), inline=True)
    embed.add_field(name="Win Rate", value=f"{stats.win_rate:.1f}%", inline=True)
    embed.add_field(name="Average Stake", value=format_amount(stats.average_stake), inline=True)
    embed.add_field(name="Total Staked", value=format_amount(stats.total_staked), inline=True)
    embed.add_field(name="Total Won", value=format_amount(stats.total_returned), inline=True)
    embed.add_field(name="Total Lost", value=format_amount(stats.total_lost), inline=True)
    embed.add_field(name="Net Profit", value=format_signed_amount(stats.net_profit), inline=True)
    return embed


def build_leaderboard_embed(entries: list[UserStats]) -> discord.Embed:
    embed = discord.Embed(title="🏆 Wager Leaderboard", color=discord.Color.gold())
    if not entries:
        embed.description = "No wagers resolved yet!"
        return embed

    medals = {0: "🥇", 1: "🥈", 2: "🥉"}
    lines = []
    for idx, stats in enumerate(entries):
        rank = medals.get(idx, f"{idx + 1}.")
        name = stats.display_name or _mention(stats.user_id)
        lines.append(
            f"{rank} **{name}**\n"
            f"   Profit: **{format_signed_amount(stats.net_profit)}** | "
            f"Record: {stats.wins}W-{stats.losses}L ({stats.win_rate:.1f}%)"
        )
    embed.description = "\n\n".join(lines)
    embed.set_footer(text=f"Top {len(entries)} by net profit")
    return embed
