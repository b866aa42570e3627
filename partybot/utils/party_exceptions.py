"""
Custom exceptions for the party system with user-friendly error messages.

Every failure kind has exactly one exception class and one user message so the
front end can always render a precise reply.
"""

from enum import Enum

from partybot.constants import PartyConstants


class PartyErrorKind(Enum):
    ALREADY_IN_PARTY = "already_in_party"
    NOT_IN_PARTY = "not_in_party"
    NOT_OWNER = "not_owner"
    ALREADY_MEMBER = "already_member"
    NOT_A_MEMBER = "not_a_member"
    CANNOT_KICK_SELF = "cannot_kick_self"
    NAME_TOO_LONG = "name_too_long"
    PARTY_FULL = "party_full"
    TARGET_NOT_FOUND = "target_not_found"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    PERMISSION_DENIED = "permission_denied"


class PartyError(Exception):
    """Base exception for party-related errors."""
    kind: PartyErrorKind = None

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class AlreadyInPartyError(PartyError):
    """Raised when a player who already belongs to a party tries to join or create one."""
    kind = PartyErrorKind.ALREADY_IN_PARTY

    def __init__(self, player_id: str, other_player: bool = False):
        super().__init__(
            f"Player {player_id} is already in a party",
            "❌ That player is already in another party."
            if other_player else "❌ You are already in a party."
        )


class NotInPartyError(PartyError):
    kind = PartyErrorKind.NOT_IN_PARTY

    def __init__(self, player_id: str):
        super().__init__(
            f"Player {player_id} is not in a party",
            "❌ You are not in a party. Use `/party create` first."
        )


class NotOwnerError(PartyError):
    kind = PartyErrorKind.NOT_OWNER

    def __init__(self, player_id: str, action: str):
        super().__init__(
            f"Player {player_id} is not the party owner (action: {action})",
            f"❌ Only the party owner can {action}."
        )


class AlreadyMemberError(PartyError):
    kind = PartyErrorKind.ALREADY_MEMBER

    def __init__(self, target_name: str):
        super().__init__(
            f"{target_name} is already a member",
            f"❌ {target_name} is already in your party."
        )


class NotAMemberError(PartyError):
    kind = PartyErrorKind.NOT_A_MEMBER

    def __init__(self, target_name: str):
        super().__init__(
            f"{target_name} is not a member",
            f"❌ {target_name} is not in your party."
        )


class CannotKickSelfError(PartyError):
    """Raised when the owner targets themself with kick; disbanding goes through leave."""
    kind = PartyErrorKind.CANNOT_KICK_SELF

    def __init__(self):
        super().__init__(
            "Owner attempted to kick themself",
            "❌ You cannot kick yourself. Use `/party leave` to disband the party."
        )


class NameTooLongError(PartyError):
    kind = PartyErrorKind.NAME_TOO_LONG

    def __init__(self, length: int):
        super().__init__(
            f"Party name of {length} characters exceeds {PartyConstants.MAX_NAME_LENGTH}",
            f"❌ Party names can be at most {PartyConstants.MAX_NAME_LENGTH} characters."
        )


class PartyFullError(PartyError):
    kind = PartyErrorKind.PARTY_FULL

    def __init__(self, count: int, limit: int):
        super().__init__(
            f"Party is full ({count}/{limit})",
            f"❌ Your party is full ({count}/{limit})."
        )
        self.count = count
        self.limit = limit


class TargetNotFoundError(PartyError):
    """Raised when a player name cannot be resolved or the player is offline."""
    kind = PartyErrorKind.TARGET_NOT_FOUND

    def __init__(self, target_name: str):
        super().__init__(
            f"Player '{target_name}' not found or offline",
            "❌ Player not found or not online."
        )


class StorageUnavailableError(PartyError):
    """Raised when the backing store is unreachable, fails, or times out."""
    kind = PartyErrorKind.STORAGE_UNAVAILABLE

    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Storage unavailable during {operation}: {details}",
            "❌ The party database is unavailable right now. Please try again later."
        )
        self.operation = operation


class PermissionDeniedError(PartyError):
    kind = PartyErrorKind.PERMISSION_DENIED

    def __init__(self, player_id: str, capability: str):
        super().__init__(
            f"Player {player_id} lacks capability {capability}",
            "❌ You don't have permission to look up other players' parties."
        )
