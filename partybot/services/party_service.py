"""
Party service: who may do what to a party, and what happens when they do.

Every check-then-act workflow runs as one PartyStore transaction while holding
the lock of the party it touches (and of the player it adds, for create and
invite). The party is re-validated once the lock is held, so a disband that
lands between the lookup and the lock surfaces as NotInParty instead of
acting on a dead party.

Public operations never raise for rule violations or storage failures; they
return a PartyResult carrying either the payload or the typed PartyError.
"""

from typing import Awaitable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from partybot.config import Config
from partybot.constants import PartyConstants
from partybot.data_models.party import LeaveOutcome, PartyMembership, PartyResult
from partybot.database.locks import party_key, player_key
from partybot.database.models import PartyRole
from partybot.database.party_store import PartyStore
from partybot.services.session_provider import SessionProvider
from partybot.utils.logger import setup_logger
from partybot.utils.party_exceptions import (
    PartyError, AlreadyInPartyError, NotInPartyError, NotOwnerError, AlreadyMemberError,
    NotAMemberError, CannotKickSelfError, NameTooLongError, PartyFullError,
    TargetNotFoundError, StorageUnavailableError, PermissionDeniedError
)

logger = setup_logger(__name__)


class PartyService:
    """Business rules for party membership on top of PartyStore."""

    def __init__(self, store: PartyStore, session_provider: SessionProvider,
                 size_limit: Optional[int] = None):
        """
        Args:
            store: Storage layer shared by every caller
            session_provider: Resolves player names, presence and capabilities
            size_limit: Maximum members per party, 0 for unlimited
        """
        self.store = store
        self.players = session_provider
        self.size_limit = size_limit if size_limit is not None else Config.PARTY_SIZE_LIMIT
        if self.size_limit < 0:
            raise ValueError("size_limit must be 0 (unlimited) or positive")
        self.logger = logger

    async def _execute(self, operation: str, call: Awaitable) -> PartyResult:
        """Convert the outcome of ``call`` into a PartyResult."""
        try:
            payload = await call
        except StorageUnavailableError as e:
            self.logger.warning(f"{operation} failed, storage unavailable: {e}")
            return PartyResult.failure(e)
        except PartyError as e:
            self.logger.debug(f"{operation} rejected: {e}")
            return PartyResult.failure(e)
        return PartyResult.success(payload)

    # ------------------------------------------------------------------
    # Shared checks
    # ------------------------------------------------------------------

    def _resolve_target(self, target_name: str) -> str:
        target_id = self.players.resolve_player(target_name)
        if target_id is None or not self.players.is_online(target_id):
            raise TargetNotFoundError(target_name)
        return target_id

    async def _require_party(self, actor_id: str) -> int:
        party_id = await self.store.find_party_of(actor_id)
        if party_id is None:
            raise NotInPartyError(actor_id)
        return party_id

    async def _require_owner(self, party_id: int, actor_id: str, action: str, session: AsyncSession):
        """Re-check the actor's role once the party lock is held."""
        role = await self.store.role(party_id, actor_id, session=session)
        if role == PartyRole.NONE:
            raise NotInPartyError(actor_id)
        if role != PartyRole.OWNER:
            raise NotOwnerError(actor_id, action)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(self, actor_id: str) -> PartyResult:
        """Create a party owned by the actor. Payload: the new party id."""
        return await self._execute('create', self._create(actor_id))

    async def _create(self, actor_id: str) -> int:
        async def work(session):
            if await self.store.find_party_of(actor_id, session=session) is not None:
                raise AlreadyInPartyError(actor_id)
            return await self.store.create_party(actor_id, session=session)

        party_id = await self.store.run('create', work, [player_key(actor_id)])
        self.logger.info(f"Party {party_id} created by {actor_id}")
        return party_id

    async def invite(self, actor_id: str, target_name: str) -> PartyResult:
        """Add an online player to the actor's party. Payload: the target id."""
        return await self._execute('invite', self._invite(actor_id, target_name))

    async def _invite(self, actor_id: str, target_name: str) -> str:
        target_id = self._resolve_target(target_name)
        party_id = await self._require_party(actor_id)

        async def work(session):
            await self._require_owner(party_id, actor_id, "invite players", session)

            if await self.store.is_member(party_id, target_id, session=session):
                raise AlreadyMemberError(target_name)

            # One party per player, globally
            if await self.store.find_party_of(target_id, session=session) is not None:
                raise AlreadyInPartyError(target_id, other_player=True)

            if self.size_limit > PartyConstants.UNLIMITED_SIZE:
                count = await self.store.member_count(party_id, session=session)
                if count >= self.size_limit:
                    raise PartyFullError(count, self.size_limit)

            await self.store.invite(party_id, target_id, session=session)

        await self.store.run('invite', work, [party_key(party_id), player_key(target_id)])
        self.logger.info(f"{target_id} invited to party {party_id} by {actor_id}")
        return target_id

    async def kick(self, actor_id: str, target_name: str) -> PartyResult:
        """Remove a member from the actor's party. Payload: the target id."""
        return await self._execute('kick', self._kick(actor_id, target_name))

    async def _kick(self, actor_id: str, target_name: str) -> str:
        target_id = self._resolve_target(target_name)
        party_id = await self._require_party(actor_id)

        async def work(session):
            await self._require_owner(party_id, actor_id, "kick members", session)

            if not await self.store.is_member(party_id, target_id, session=session):
                raise NotAMemberError(target_name)

            if target_id == actor_id:
                raise CannotKickSelfError()

            await self.store.kick(party_id, target_id, session=session)

        await self.store.run('kick', work, [party_key(party_id)])
        self.logger.info(f"{target_id} kicked from party {party_id} by {actor_id}")
        return target_id

    async def leave(self, actor_id: str) -> PartyResult:
        """Leave the actor's party; the owner leaving disbands it. Payload: LeaveOutcome."""
        return await self._execute('leave', self._leave(actor_id))

    async def _leave(self, actor_id: str) -> LeaveOutcome:
        party_id = await self._require_party(actor_id)

        async def work(session):
            if await self.store.role(party_id, actor_id, session=session) == PartyRole.NONE:
                raise NotInPartyError(actor_id)

            members = await self.store.list_members(party_id, session=session)
            disbanded = await self.store.leave(party_id, actor_id, session=session)
            return LeaveOutcome(
                party_id=party_id,
                disbanded=disbanded,
                former_members=[m for m in members if m != actor_id] if disbanded else []
            )

        outcome = await self.store.run('leave', work, [party_key(party_id)])
        if outcome.disbanded:
            self.logger.info(f"Party {party_id} disbanded by owner {actor_id}")
        else:
            self.logger.info(f"{actor_id} left party {party_id}")
        return outcome

    async def rename(self, actor_id: str, name: str) -> PartyResult:
        """Set (or, with a blank name, clear) the party name. Payload: the stored name."""
        return await self._execute('rename', self._rename(actor_id, name))

    async def _rename(self, actor_id: str, name: str) -> Optional[str]:
        name = (name or '').strip() or None
        party_id = await self._require_party(actor_id)

        async def work(session):
            await self._require_owner(party_id, actor_id, "rename the party", session)

            if name is not None and len(name) > PartyConstants.MAX_NAME_LENGTH:
                raise NameTooLongError(len(name))

            if not await self.store.set_name(party_id, actor_id, name, session=session):
                raise NotOwnerError(actor_id, "rename the party")

        await self.store.run('rename', work, [party_key(party_id)])
        self.logger.info(f"Party {party_id} renamed to {name!r} by {actor_id}")
        return name

    async def find_role_of(self, actor_id: str, target_name: str) -> PartyResult:
        """
        Privileged lookup of another player's party.

        Payload: PartyMembership, or None when the target is not in a party.
        """
        return await self._execute('find_role_of', self._find_role_of(actor_id, target_name))

    async def _find_role_of(self, actor_id: str, target_name: str) -> Optional[PartyMembership]:
        if not self.players.has_capability(actor_id, PartyConstants.LOOKUP_CAPABILITY):
            raise PermissionDeniedError(actor_id, PartyConstants.LOOKUP_CAPABILITY)

        target_id = self._resolve_target(target_name)

        async def work(session):
            party_id = await self.store.find_party_of(target_id, session=session)
            if party_id is None:
                return None
            role = await self.store.role(party_id, target_id, session=session)
            return PartyMembership(party_id=party_id, role=role)

        return await self.store.run('find_role_of', work)

    async def info(self, actor_id: str) -> PartyResult:
        """Snapshot of the actor's party. Payload: PartySnapshot."""
        return await self._execute('info', self._info(actor_id))

    async def _info(self, actor_id: str):
        party_id = await self._require_party(actor_id)
        snapshot = await self.store.get_party(party_id)
        if snapshot is None:
            raise NotInPartyError(actor_id)
        return snapshot

    async def handle_disconnect(self, player_id: str) -> PartyResult:
        """
        Session-quit hook: a player who leaves the session leaves their party.

        Payload: LeaveOutcome, or None when the player was not in a party.
        """
        return await self._execute('handle_disconnect', self._handle_disconnect(player_id))

    async def _handle_disconnect(self, player_id: str) -> Optional[LeaveOutcome]:
        if await self.store.find_party_of(player_id) is None:
            return None
        try:
            return await self._leave(player_id)
        except NotInPartyError:
            # Removed by someone else in the meantime
            return None
