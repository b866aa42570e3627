"""
Shared embed utilities for party command replies.

Success messages for every party operation live here so the cog only
decides which one to send.
"""

import discord
from typing import Callable, Optional

from partybot.constants import UIConstants
from partybot.data_models.party import LeaveOutcome, PartyMembership, PartySnapshot
from partybot.database.models import PartyRole


def _success(title: str, description: str, color: int = UIConstants.SUCCESS_COLOR) -> discord.Embed:
    return discord.Embed(title=title, description=description, color=color)


def party_created_embed(party_id: int) -> discord.Embed:
    return _success(
        f"{UIConstants.PARTY_EMOJI} Party Created",
        f"Party #{party_id} created! You are the party owner."
    )


def invited_embed(target_display: str) -> discord.Embed:
    return _success("Player Invited", f"Invited **{target_display}** to the party.")


def kicked_embed(target_display: str) -> discord.Embed:
    return _success("Player Kicked", f"Kicked **{target_display}** from the party.")


def leave_embed(outcome: LeaveOutcome) -> discord.Embed:
    if outcome.disbanded:
        return _success("Party Disbanded", "You have disbanded the party.", UIConstants.WARNING_COLOR)
    return _success("Left Party", "You have left the party.", UIConstants.WARNING_COLOR)


def renamed_embed(name: Optional[str]) -> discord.Embed:
    if name is None:
        return _success("Party Renamed", "The party name has been cleared.")
    return _success("Party Renamed", f"The party is now called **{name}**.")


def find_embed(target_display: str, membership: Optional[PartyMembership]) -> discord.Embed:
    """Result of a privileged party lookup."""
    if membership is None:
        return _success("Party Lookup", f"**{target_display}** is not in a party.", UIConstants.DEFAULT_EMBED_COLOR)
    return _success(
        "Party Lookup",
        f"**{target_display}** is in party #{membership.party_id} as **{role_label(membership.role)}**.",
        UIConstants.DEFAULT_EMBED_COLOR
    )


def build_party_embed(snapshot: PartySnapshot, display_name: Callable[[str], str],
                      size_limit: int = 0) -> discord.Embed:
    """
    Build the party overview embed.

    Args:
        snapshot: Committed party state
        display_name: Maps a player id to the name shown in the member list
        size_limit: Configured party size limit, 0 for unlimited
    """
    title = snapshot.name or f"Party #{snapshot.party_id}"
    embed = discord.Embed(
        title=f"{UIConstants.PARTY_EMOJI} {title}",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    lines = []
    for member_id in snapshot.members:
        marker = f" {UIConstants.CROWN_EMOJI}" if member_id == snapshot.owner_id else ""
        lines.append(f"• {display_name(member_id)}{marker}")

    size = f"{snapshot.size}/{size_limit}" if size_limit else str(snapshot.size)
    embed.add_field(name=f"Members ({size})", value="\n".join(lines) or "—", inline=False)
    embed.set_footer(text=f"Party ID: {snapshot.party_id}")
    return embed


def disband_notice(owner_display: str) -> str:
    return f"Your party was disbanded because {owner_display} left."


def role_label(role: PartyRole) -> str:
    return {PartyRole.OWNER: "Owner", PartyRole.MEMBER: "Member"}.get(role, "None")
