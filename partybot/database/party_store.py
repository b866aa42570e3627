"""
Party Store - durable CRUD for parties and their memberships.

Key functionality:
- create_party(): party row and owner membership committed as one unit
- invite()/kick()/leave(): membership mutations, leave cascades on owner exit
- is_member()/role()/find_party_of()/member_count(): committed-state queries
- execute_raw(): administrative escape hatch for bulk SQL

Every public operation takes an optional ``session``. Without one the store
opens its own transaction, holds the keyed locks for the rows it touches and
bounds the whole call by the storage timeout. With one, the caller already
owns the transaction and the locks (see PartyService).

Backend failures and timeouts never escape as SQLAlchemy or driver errors;
they are logged here and raised as StorageUnavailableError.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, List, Optional, TypeVar

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from partybot.config import Config
from partybot.data_models.party import PartySnapshot
from partybot.database.locks import KeyedLockRegistry, party_key, player_key
from partybot.database.models import Party, PartyMember, PartyRole
from partybot.utils.logger import setup_logger
from partybot.utils.party_exceptions import StorageUnavailableError

logger = setup_logger(__name__)

T = TypeVar('T')


class PartyStore:
    """
    Relational persistence for parties, shared by every backend adapter.

    The SQL is dialect neutral; the Database object decides whether it runs
    on the embedded SQLite file or the networked PostgreSQL server.
    """

    def __init__(self, database, locks: Optional[KeyedLockRegistry] = None,
                 timeout: Optional[float] = None):
        """
        Args:
            database: Initialized Database instance
            locks: Lock registry shared with the service layer
            timeout: Seconds allowed per storage call, lock wait included
        """
        self.db = database
        self.locks = locks or KeyedLockRegistry()
        self.timeout = timeout if timeout is not None else Config.STORAGE_TIMEOUT
        self.logger = logger

    # ------------------------------------------------------------------
    # Transaction / timeout plumbing
    # ------------------------------------------------------------------

    async def _guarded(self, operation: str, call: Awaitable[T]) -> T:
        """Await ``call`` within the timeout, translating backend failures."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            self.logger.warning(f"Storage call '{operation}' timed out after {self.timeout}s")
            raise StorageUnavailableError(operation, f"timed out after {self.timeout}s") from e
        except (SQLAlchemyError, OSError) as e:
            self.logger.error(f"Storage call '{operation}' failed: {e}")
            raise StorageUnavailableError(operation, str(e)) from e

    async def _locked_transaction(self, func: Callable[[AsyncSession], Awaitable[T]],
                                  lock_keys: Iterable[str]) -> T:
        async with self.locks.hold(*lock_keys):
            async with self.db.transaction() as session:
                return await func(session)

    async def run(self, operation: str, func: Callable[[AsyncSession], Awaitable[T]],
                  lock_keys: Iterable[str] = ()) -> T:
        """
        Run ``func(session)`` in one transaction while holding ``lock_keys``.

        Exceptions raised by ``func`` roll the transaction back. Party errors
        propagate unchanged; backend errors become StorageUnavailableError.
        """
        return await self._guarded(operation, self._locked_transaction(func, tuple(lock_keys)))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_party(self, owner_id: str, session: Optional[AsyncSession] = None) -> int:
        """Insert a party and its owner membership; both commit or neither does."""
        if session is None:
            return await self.run(
                'create_party',
                lambda s: self.create_party(owner_id, session=s),
                [player_key(owner_id)]
            )

        party = Party(owner_id=owner_id)
        session.add(party)
        await session.flush()  # Populates the generated id

        session.add(PartyMember(member_id=owner_id, party_id=party.id))
        await session.flush()
        return party.id

    async def invite(self, party_id: int, member_id: str, session: Optional[AsyncSession] = None):
        """Insert a membership row. No check against the player's other parties."""
        if session is None:
            return await self.run(
                'invite',
                lambda s: self.invite(party_id, member_id, session=s),
                [party_key(party_id)]
            )

        session.add(PartyMember(member_id=member_id, party_id=party_id))
        await session.flush()

    async def kick(self, party_id: int, member_id: str, session: Optional[AsyncSession] = None):
        """Delete the membership row; silently does nothing when it is absent."""
        if session is None:
            return await self.run(
                'kick',
                lambda s: self.kick(party_id, member_id, session=s),
                [party_key(party_id)]
            )

        await session.execute(
            delete(PartyMember).where(
                PartyMember.party_id == party_id,
                PartyMember.member_id == member_id
            )
        )

    async def leave(self, party_id: int, actor_id: str, session: Optional[AsyncSession] = None) -> bool:
        """
        Remove ``actor_id`` from the party.

        The owner leaving disbands the party: all memberships are deleted and
        then the party row. Anyone else is simply kicked.

        Returns:
            True if the party was disbanded
        """
        if session is None:
            return await self.run(
                'leave',
                lambda s: self.leave(party_id, actor_id, session=s),
                [party_key(party_id)]
            )

        owner_id = await self._owner_of(party_id, session)
        if owner_id is None:
            return False

        if owner_id == actor_id:
            await session.execute(delete(PartyMember).where(PartyMember.party_id == party_id))
            await session.execute(delete(Party).where(Party.id == party_id))
            return True

        await self.kick(party_id, actor_id, session=session)
        return False

    async def set_name(self, party_id: int, actor_id: str, name: Optional[str],
                       session: Optional[AsyncSession] = None) -> bool:
        """Persist a new name if ``actor_id`` owns the party; False otherwise."""
        if session is None:
            return await self.run(
                'set_name',
                lambda s: self.set_name(party_id, actor_id, name, session=s),
                [party_key(party_id)]
            )

        owner_id = await self._owner_of(party_id, session)
        if owner_id is None or owner_id != actor_id:
            return False

        await session.execute(
            update(Party).where(Party.id == party_id).values(name=name)
        )
        return True

    async def execute_raw(self, statements: List[str]) -> int:
        """
        Run administrative SQL statements one by one in autocommit mode.

        There is no rollback: statements before a failing one stay applied.
        Reserved for privileged callers.

        Returns:
            Number of statements executed
        """
        return await self._guarded('execute_raw', self._execute_raw(statements))

    async def _execute_raw(self, statements: List[str]) -> int:
        executed = 0
        async with self.db.autocommit_connection() as conn:
            for index, statement in enumerate(statements, start=1):
                if not statement or not statement.strip():
                    continue
                try:
                    await conn.exec_driver_sql(statement)
                except SQLAlchemyError as e:
                    self.logger.error(f"Raw statement {index} failed after {executed} succeeded: {e}")
                    raise StorageUnavailableError('execute_raw', f"statement {index} failed: {e}") from e
                executed += 1
        self.logger.warning(f"Executed {executed} raw SQL statement(s)")
        return executed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _owner_of(self, party_id: int, session: AsyncSession) -> Optional[str]:
        return await session.scalar(select(Party.owner_id).where(Party.id == party_id))

    async def is_member(self, party_id: int, member_id: str, session: Optional[AsyncSession] = None) -> bool:
        if session is None:
            return await self.run('is_member', lambda s: self.is_member(party_id, member_id, session=s))

        found = await session.scalar(
            select(PartyMember.id).where(
                PartyMember.party_id == party_id,
                PartyMember.member_id == member_id
            ).limit(1)
        )
        return found is not None

    async def role(self, party_id: int, member_id: str, session: Optional[AsyncSession] = None) -> PartyRole:
        """Owner match first, then a membership row, else PartyRole.NONE."""
        if session is None:
            return await self.run('role', lambda s: self.role(party_id, member_id, session=s))

        if await self._owner_of(party_id, session) == member_id:
            return PartyRole.OWNER
        if await self.is_member(party_id, member_id, session=session):
            return PartyRole.MEMBER
        return PartyRole.NONE

    async def find_party_of(self, player_id: str, session: Optional[AsyncSession] = None) -> Optional[int]:
        """
        Find the party a player belongs to.

        Ownership is checked before membership, and the oldest row wins within
        each check, so a player who owns one party and holds a stale
        membership elsewhere always resolves to the party they own.
        """
        if session is None:
            return await self.run('find_party_of', lambda s: self.find_party_of(player_id, session=s))

        owned = await session.scalar(
            select(Party.id).where(Party.owner_id == player_id).order_by(Party.id).limit(1)
        )
        if owned is not None:
            return owned

        return await session.scalar(
            select(PartyMember.party_id)
            .where(PartyMember.member_id == player_id)
            .order_by(PartyMember.id)
            .limit(1)
        )

    async def member_count(self, party_id: int, session: Optional[AsyncSession] = None) -> int:
        """Membership rows of the party, owner included; 0 for an unknown party."""
        if session is None:
            return await self.run('member_count', lambda s: self.member_count(party_id, session=s))

        count = await session.scalar(
            select(func.count(PartyMember.id)).where(PartyMember.party_id == party_id)
        )
        return count or 0

    async def list_members(self, party_id: int, session: Optional[AsyncSession] = None) -> List[str]:
        """Member ids in join order (the owner's row is always first)."""
        if session is None:
            return await self.run('list_members', lambda s: self.list_members(party_id, session=s))

        result = await session.execute(
            select(PartyMember.member_id)
            .where(PartyMember.party_id == party_id)
            .order_by(PartyMember.id)
        )
        return list(result.scalars().all())

    async def get_party(self, party_id: int, session: Optional[AsyncSession] = None) -> Optional[PartySnapshot]:
        if session is None:
            return await self.run('get_party', lambda s: self.get_party(party_id, session=s))

        party = await session.get(Party, party_id)
        if party is None:
            return None
        members = await self.list_members(party_id, session=session)
        return PartySnapshot(
            party_id=party.id,
            owner_id=party.owner_id,
            name=party.name,
            members=members
        )
