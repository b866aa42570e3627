"""
Services package for the Party bot.

Business rules and host-session adapters above the party store.
"""

from .party_service import PartyService
from .session_provider import SessionProvider, DiscordSessionProvider

__all__ = ['PartyService', 'SessionProvider', 'DiscordSessionProvider']
