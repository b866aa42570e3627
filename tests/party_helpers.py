"""
Shared helpers for the party tests: a throwaway SQLite database, the full
store/service stack on top of it, and a session provider without Discord.
"""

import asyncio
import os
import sys
import tempfile
from contextlib import asynccontextmanager
from typing import Dict, Iterable, Optional

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from partybot.constants import PartyConstants
from partybot.database.database import Database, SQLiteBackend
from partybot.database.locks import KeyedLockRegistry
from partybot.database.party_store import PartyStore
from partybot.services.party_service import PartyService

# name -> player id
DEFAULT_PLAYERS = {
    "owner": "1001",
    "member": "1002",
    "alice": "1003",
    "bob": "1004",
    "carol": "1005",
}


class FakeSessionProvider:
    """Session provider backed by a name -> id table."""

    def __init__(self, players: Optional[Dict[str, str]] = None, offline: Iterable[str] = (),
                 lookup: Iterable[str] = ()):
        self.players = dict(DEFAULT_PLAYERS if players is None else players)
        self.offline = set(offline)
        self.lookup = set(lookup)

    def resolve_player(self, name: str) -> Optional[str]:
        return self.players.get(name)

    def is_online(self, player_id: str) -> bool:
        return player_id in self.players.values() and player_id not in self.offline

    def display_name(self, player_id: str) -> str:
        for name, known_id in self.players.items():
            if known_id == player_id:
                return name
        return player_id

    def has_capability(self, player_id: str, capability: str) -> bool:
        return capability == PartyConstants.LOOKUP_CAPABILITY and player_id in self.lookup


def run(coro):
    """Drive one async test body to completion."""
    return asyncio.run(coro)


@asynccontextmanager
async def party_database():
    with tempfile.TemporaryDirectory() as tmpdir:
        db = Database(SQLiteBackend(os.path.join(tmpdir, 'party_test.db')))
        await db.initialize()
        try:
            yield db
        finally:
            await db.close()


@asynccontextmanager
async def party_store(timeout: float = 5.0):
    async with party_database() as db:
        yield PartyStore(db, KeyedLockRegistry(), timeout=timeout)


@asynccontextmanager
async def party_service(size_limit: int = 0, timeout: float = 5.0,
                        players: Optional[FakeSessionProvider] = None):
    async with party_store(timeout=timeout) as store:
        yield PartyService(store, players or FakeSessionProvider(), size_limit=size_limit)
