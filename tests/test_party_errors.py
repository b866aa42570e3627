#!/usr/bin/env python3
"""
Tests for the failure kinds and how they are rendered.
"""

from partybot.constants import PartyConstants
from partybot.data_models.party import PartyResult
from partybot.utils.error_embeds import ERROR_TITLES, ErrorEmbeds
from partybot.utils.party_exceptions import (
    PartyErrorKind, AlreadyInPartyError, NotInPartyError, NotOwnerError, AlreadyMemberError,
    NotAMemberError, CannotKickSelfError, NameTooLongError, PartyFullError,
    TargetNotFoundError, StorageUnavailableError, PermissionDeniedError
)

ALL_ERRORS = [
    AlreadyInPartyError("1001"),
    NotInPartyError("1001"),
    NotOwnerError("1002", "kick members"),
    AlreadyMemberError("alice"),
    NotAMemberError("alice"),
    CannotKickSelfError(),
    NameTooLongError(40),
    PartyFullError(4, 4),
    TargetNotFoundError("ghost"),
    StorageUnavailableError("invite", "connection refused"),
    PermissionDeniedError("1003", PartyConstants.LOOKUP_CAPABILITY),
]


def test_every_kind_has_one_error_class():
    kinds = [error.kind for error in ALL_ERRORS]
    assert len(set(kinds)) == len(kinds)
    assert set(kinds) == set(PartyErrorKind)


def test_every_kind_has_a_title_and_message():
    assert set(ERROR_TITLES) == set(PartyErrorKind)
    for error in ALL_ERRORS:
        embed = ErrorEmbeds.party_error(error)
        assert embed.title == ERROR_TITLES[error.kind]
        assert embed.description == error.user_message
        assert error.user_message


def test_storage_details_stay_out_of_user_message():
    error = StorageUnavailableError("invite", "connection refused")
    assert "connection refused" in str(error)
    assert "connection refused" not in error.user_message


def test_messages_are_specific():
    assert "at most 32" in NameTooLongError(40).user_message
    assert "(4/4)" in PartyFullError(4, 4).user_message
    assert "/party leave" in CannotKickSelfError().user_message
    assert AlreadyInPartyError("1", other_player=True).user_message != AlreadyInPartyError("1").user_message


def test_party_result_accessors():
    success = PartyResult.success(5)
    assert success.ok and success.payload == 5
    assert success.kind is None and success.message is None

    failure = PartyResult.failure(NotInPartyError("1001"))
    assert not failure.ok
    assert failure.kind == PartyErrorKind.NOT_IN_PARTY
    assert failure.message == failure.error.user_message
