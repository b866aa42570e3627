"""
Party slash commands.

/party create | invite | kick | leave | rename | find | info

The cog only translates interactions into PartyService calls and renders
the PartyResult; every rule lives in the service.
"""

import discord
from discord.ext import commands
from discord import app_commands
from typing import Callable, Iterable

from partybot.constants import UIConstants
from partybot.data_models.party import PartyResult
from partybot.utils import embeds
from partybot.utils.error_embeds import ErrorEmbeds
from partybot.utils.logger import setup_logger

logger = setup_logger(__name__)


class PartyCog(commands.Cog):
    """Party membership commands."""

    party = app_commands.Group(name="party", description="Create and manage your party", guild_only=True)

    def __init__(self, bot):
        self.bot = bot
        self.party_service = bot.party_service
        self.players = bot.session_provider

    async def _send(self, interaction: discord.Interaction, result: PartyResult,
                    on_success: Callable[[object], discord.Embed]) -> bool:
        """Reply with the success embed or the error embed for the result's kind."""
        embed = on_success(result.payload) if result.ok else ErrorEmbeds.party_error(result.error)
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=not result.ok)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=not result.ok)
        return result.ok

    async def _notify(self, player_ids: Iterable[str], message: str):
        """Best-effort DM to players; closed DMs are not an error."""
        for player_id in player_ids:
            user = self.bot.get_user(int(player_id))
            if user is None:
                continue
            try:
                await user.send(message)
            except discord.HTTPException as e:
                logger.debug(f"Could not notify {player_id}: {e}")

    @party.command(name="create", description="Create a party with you as the owner")
    async def create(self, interaction: discord.Interaction):
        result = await self.party_service.create(str(interaction.user.id))
        await self._send(interaction, result, embeds.party_created_embed)

    @party.command(name="invite", description="Invite an online player to your party")
    @app_commands.describe(player="Name of the player to invite")
    @app_commands.checks.cooldown(rate=5, per=30.0, key=lambda i: i.user.id)
    async def invite(self, interaction: discord.Interaction, player: str):
        await interaction.response.defer(ephemeral=True)
        result = await self.party_service.invite(str(interaction.user.id), player)
        ok = await self._send(
            interaction, result,
            lambda target_id: embeds.invited_embed(self.players.display_name(target_id))
        )
        if ok:
            await self._notify(
                [result.payload],
                f"You have been invited to join a party by {interaction.user.display_name}."
            )

    @party.command(name="kick", description="Remove a member from your party")
    @app_commands.describe(player="Name of the member to kick")
    async def kick(self, interaction: discord.Interaction, player: str):
        await interaction.response.defer(ephemeral=True)
        result = await self.party_service.kick(str(interaction.user.id), player)
        ok = await self._send(
            interaction, result,
            lambda target_id: embeds.kicked_embed(self.players.display_name(target_id))
        )
        if ok:
            await self._notify(
                [result.payload],
                f"You have been kicked from the party by {interaction.user.display_name}."
            )

    @party.command(name="leave", description="Leave your party (the owner leaving disbands it)")
    async def leave(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        result = await self.party_service.leave(str(interaction.user.id))
        ok = await self._send(interaction, result, embeds.leave_embed)
        if ok and result.payload.disbanded:
            await self._notify(
                result.payload.former_members,
                embeds.disband_notice(interaction.user.display_name)
            )

    @party.command(name="rename", description="Rename your party")
    @app_commands.describe(name="New party name (leave blank to clear)")
    async def rename(self, interaction: discord.Interaction, name: str = ""):
        result = await self.party_service.rename(str(interaction.user.id), name)
        await self._send(interaction, result, embeds.renamed_embed)

    @party.command(name="find", description="Look up which party a player is in")
    @app_commands.describe(player="Name of the player to look up")
    async def find(self, interaction: discord.Interaction, player: str):
        result = await self.party_service.find_role_of(str(interaction.user.id), player)
        await self._send(interaction, result, lambda membership: embeds.find_embed(player, membership))

    @party.command(name="info", description="Show your party and its members")
    async def info(self, interaction: discord.Interaction):
        result = await self.party_service.info(str(interaction.user.id))
        await self._send(
            interaction, result,
            lambda snapshot: embeds.build_party_embed(
                snapshot, self.players.display_name, self.party_service.size_limit
            )
        )

    async def _player_choices(self, interaction: discord.Interaction, current: str,
                              exclude_self: bool = False) -> list[app_commands.Choice[str]]:
        if interaction.guild is None:
            return []
        exclude = str(interaction.user.id) if exclude_self else None
        try:
            names = self.players.online_names(interaction.guild, current, exclude=exclude)
        except Exception as e:
            logger.error(f"Error in player autocomplete: {e}")
            return []
        return [
            app_commands.Choice(name=name, value=name)
            for name in names
        ][:UIConstants.MAX_AUTOCOMPLETE_CHOICES]

    @invite.autocomplete('player')
    async def invite_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._player_choices(interaction, current)

    @kick.autocomplete('player')
    async def kick_autocomplete(self, interaction: discord.Interaction, current: str):
        # Kicking yourself is never valid
        return await self._player_choices(interaction, current, exclude_self=True)

    @find.autocomplete('player')
    async def find_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._player_choices(interaction, current)


async def setup(bot):
    await bot.add_cog(PartyCog(bot))
