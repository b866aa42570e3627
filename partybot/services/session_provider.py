"""
Session providers: who is a player, who is online, who may do what.

The party service only sees opaque string player ids. A session provider
turns names typed by users into those ids and answers presence and
capability questions. DiscordSessionProvider answers them from the guilds
the bot can see.
"""

import re
from typing import Iterator, List, Optional, Protocol

import discord

from partybot.config import Config
from partybot.constants import PartyConstants

MENTION_PATTERN = re.compile(r"^<@!?(\d+)>$")


def parse_player_id(text: str) -> Optional[str]:
    """Extract a user id from a mention (<@123> or <@!123>) or a bare numeric id."""
    text = text.strip()
    if text.isdigit():
        return text
    match = MENTION_PATTERN.match(text)
    return match.group(1) if match else None


class SessionProvider(Protocol):
    """Interface the party service consumes from the host session."""

    def resolve_player(self, name: str) -> Optional[str]:
        ...

    def is_online(self, player_id: str) -> bool:
        ...

    def display_name(self, player_id: str) -> str:
        ...

    def has_capability(self, player_id: str, capability: str) -> bool:
        ...


class DiscordSessionProvider:
    """Session provider backed by the members of every guild the bot is in."""

    def __init__(self, client: discord.Client, owner_id: int = None, lookup_role: str = None):
        self.client = client
        self.owner_id = owner_id if owner_id is not None else Config.OWNER_DISCORD_ID
        self.lookup_role = lookup_role or Config.PARTY_LOOKUP_ROLE

    @property
    def tracks_presence(self) -> bool:
        return self.client.intents.presences

    def _members(self, player_id: str) -> Iterator[discord.Member]:
        try:
            user_id = int(player_id)
        except (TypeError, ValueError):
            return
        for guild in self.client.guilds:
            member = guild.get_member(user_id)
            if member is not None:
                yield member

    def _member(self, player_id: str) -> Optional[discord.Member]:
        return next(self._members(player_id), None)

    def resolve_player(self, name: str) -> Optional[str]:
        """Match a mention, id, username, global name or nickname (case-insensitive)."""
        if not name:
            return None
        name = name.strip()

        raw_id = parse_player_id(name)
        if raw_id is not None and self._member(raw_id) is not None:
            return raw_id

        wanted = name.lower()
        for member in self.client.get_all_members():
            candidates = (member.name, member.global_name, member.nick, member.display_name)
            if any(candidate and candidate.lower() == wanted for candidate in candidates):
                return str(member.id)
        return None

    def is_online(self, player_id: str) -> bool:
        member = self._member(player_id)
        if member is None or member.bot:
            return False
        # Without the presences intent every status reads offline; being in a guild is enough then
        if not self.tracks_presence:
            return True
        return any(m.status != discord.Status.offline for m in self._members(player_id))

    def display_name(self, player_id: str) -> str:
        member = self._member(player_id)
        return member.display_name if member else f"Unknown ({player_id})"

    def has_capability(self, player_id: str, capability: str) -> bool:
        if capability != PartyConstants.LOOKUP_CAPABILITY:
            return False
        if self.owner_id and str(self.owner_id) == str(player_id):
            return True
        for member in self._members(player_id):
            if member.guild_permissions.manage_guild:
                return True
            if any(role.name == self.lookup_role for role in member.roles):
                return True
        return False

    def online_names(self, guild: discord.Guild, prefix: str = '', exclude: Optional[str] = None) -> List[str]:
        """Display names of online members of ``guild`` starting with ``prefix``."""
        prefix = prefix.lower()
        names = []
        for member in guild.members:
            player_id = str(member.id)
            if player_id == exclude or not self.is_online(player_id):
                continue
            if member.display_name.lower().startswith(prefix):
                names.append(member.display_name)
        return names
