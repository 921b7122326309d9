"""
Helpers for responding to interactions without tripping over Discord's
one-response rule or an expired interaction token.
"""

import logging

import discord

logger = logging.getLogger("wager_bot.utils.interaction_safety")


async def safe_defer(interaction: discord.Interaction, ephemeral: bool = False) -> bool:
    """
    Defer an interaction if it has not been answered yet.

    Returns True when the interaction is deferred (now or earlier).
    """
    if interaction.response.is_done():
        return True
    try:
        await interaction.response.defer(ephemeral=ephemeral)
        return True
    except (discord.NotFound, discord.HTTPException) as exc:
        logger.warning(f"Failed to defer interaction {interaction.id}: {exc}")
        return False


async def safe_followup(
    interaction: discord.Interaction,
    content: str | None = None,
    embed: discord.Embed | None = None,
    ephemeral: bool = False,
    allowed_mentions: discord.AllowedMentions | None = None,
):
    """
    Send a followup message, falling back to the channel when the token expired.

    Returns the sent message, or None if nothing could be delivered.
    """
    kwargs = {"content": content, "ephemeral": ephemeral}
    if embed is not None:
        kwargs["embed"] = embed
    if allowed_mentions is not None:
        kwargs["allowed_mentions"] = allowed_mentions

    try:
        return await interaction.followup.send(**kwargs)
    except (discord.NotFound, discord.HTTPException) as exc:
        logger.warning(f"Followup failed for interaction {interaction.id}: {exc}")

    # Ephemeral content must not leak into the channel
    if ephemeral or interaction.channel is None:
        return None
    try:
        channel_kwargs = {"content": content}
        if embed is not None:
            channel_kwargs["embed"] = embed
        if allowed_mentions is not None:
            channel_kwargs["allowed_mentions"] = allowed_mentions
        return await interaction.channel.send(**channel_kwargs)
    except discord.HTTPException as exc:
        logger.warning(f"Channel fallback failed for interaction {interaction.id}: {exc}")
        return None
