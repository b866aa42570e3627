"""
Centralized embeds for party command replies.

Every PartyErrorKind maps to one title; the description is the error's own
user message, so a failure is never rendered as a generic error.
"""

import discord
from discord import app_commands
from typing import Optional

from partybot.constants import UIConstants
from partybot.utils.party_exceptions import PartyError, PartyErrorKind


ERROR_TITLES = {
    PartyErrorKind.ALREADY_IN_PARTY: "Already In A Party",
    PartyErrorKind.NOT_IN_PARTY: "Not In A Party",
    PartyErrorKind.NOT_OWNER: "Owner Only",
    PartyErrorKind.ALREADY_MEMBER: "Already A Member",
    PartyErrorKind.NOT_A_MEMBER: "Not A Member",
    PartyErrorKind.CANNOT_KICK_SELF: "Cannot Kick Yourself",
    PartyErrorKind.NAME_TOO_LONG: "Name Too Long",
    PartyErrorKind.PARTY_FULL: "Party Full",
    PartyErrorKind.TARGET_NOT_FOUND: "Player Not Found",
    PartyErrorKind.STORAGE_UNAVAILABLE: "Database Unavailable",
    PartyErrorKind.PERMISSION_DENIED: "Permission Denied",
}


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def party_error(error: PartyError) -> discord.Embed:
        """Create the embed for a typed party failure."""
        return discord.Embed(
            title=ERROR_TITLES.get(error.kind, "Party Error"),
            description=error.user_message,
            color=UIConstants.ERROR_COLOR
        )

    @staticmethod
    def command_error(description: Optional[str] = None) -> discord.Embed:
        """Create embed for unexpected command failures."""
        return discord.Embed(
            title="Command Error",
            description=description or "An unexpected error occurred while processing your command. The developers have been notified.",
            color=UIConstants.ERROR_COLOR
        )

    @staticmethod
    def guild_only() -> discord.Embed:
        return discord.Embed(
            title="Server Only",
            description="Party commands can only be used in a server.",
            color=UIConstants.ERROR_COLOR
        )

    @staticmethod
    def permission_denied(description: Optional[str] = None) -> discord.Embed:
        """Create embed for permission errors."""
        return discord.Embed(
            title="Permission Denied",
            description=description or "You don't have permission to perform this action.",
            color=UIConstants.ERROR_COLOR
        )

    @staticmethod
    def cooldown(retry_after: float) -> discord.Embed:
        return discord.Embed(
            title="Slow Down",
            description=f"This command is on cooldown. Try again in {retry_after:.1f} seconds.",
            color=UIConstants.WARNING_COLOR
        )

    @staticmethod
    def for_app_command_error(error: app_commands.AppCommandError) -> discord.Embed:
        """Pick the embed for an error raised out of a slash command."""
        if isinstance(error, app_commands.CommandOnCooldown):
            return ErrorEmbeds.cooldown(error.retry_after)
        if isinstance(error, app_commands.NoPrivateMessage):
            return ErrorEmbeds.guild_only()
        if isinstance(error, app_commands.CheckFailure):
            return ErrorEmbeds.permission_denied(
                "You don't have the required permissions to use this command."
            )
        original = getattr(error, 'original', None)
        if isinstance(original, PartyError):
            return ErrorEmbeds.party_error(original)
        return ErrorEmbeds.command_error()
