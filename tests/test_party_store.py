#!/usr/bin/env python3
"""
Tests for PartyStore: persistence, atomic creation, leave cascade, query
precedence, the raw SQL escape hatch and storage failure translation.
"""

import asyncio

import pytest
from sqlalchemy import select, func

from partybot.database.locks import party_key
from partybot.database.models import Party, PartyMember, PartyRole
from partybot.utils.party_exceptions import StorageUnavailableError

from party_helpers import party_store, run


async def count_rows(store, model) -> int:
    async with store.db.get_session() as session:
        return await session.scalar(select(func.count(model.id)))


def test_create_party_writes_party_and_owner_membership():
    async def body():
        async with party_store() as store:
            party_id = await store.create_party("1001")

            assert await store.find_party_of("1001") == party_id
            assert await store.role(party_id, "1001") == PartyRole.OWNER
            assert await store.is_member(party_id, "1001")
            assert await store.member_count(party_id) == 1
            assert await store.list_members(party_id) == ["1001"]

            snapshot = await store.get_party(party_id)
            assert snapshot.owner_id == "1001"
            assert snapshot.name is None

    run(body())


def test_create_party_leaves_no_orphan_when_membership_insert_fails():
    async def body():
        async with party_store() as store:
            # Party insert succeeds, owner membership insert cannot
            await store.execute_raw(["DROP TABLE party_member"])

            with pytest.raises(StorageUnavailableError) as excinfo:
                await store.create_party("1001")

            assert excinfo.value.operation == 'create_party'
            assert await count_rows(store, Party) == 0

    run(body())


def test_generated_ids_are_unique():
    async def body():
        async with party_store() as store:
            first = await store.create_party("1001")
            second = await store.create_party("1002")
            assert first != second

    run(body())


def test_invite_and_kick():
    async def body():
        async with party_store() as store:
            party_id = await store.create_party("1001")
            await store.invite(party_id, "1002")

            assert await store.is_member(party_id, "1002")
            assert await store.role(party_id, "1002") == PartyRole.MEMBER
            assert await store.member_count(party_id) == 2

            await store.kick(party_id, "1002")
            assert not await store.is_member(party_id, "1002")
            assert await store.role(party_id, "1002") == PartyRole.NONE

            # Kicking someone who is not there is a silent no-op
            await store.kick(party_id, "1002")
            assert await store.member_count(party_id) == 1

    run(body())


def test_member_leave_only_removes_that_member():
    async def body():
        async with party_store() as store:
            party_id = await store.create_party("1001")
            await store.invite(party_id, "1002")
            await store.invite(party_id, "1003")

            disbanded = await store.leave(party_id, "1002")

            assert disbanded is False
            assert await store.list_members(party_id) == ["1001", "1003"]
            assert await store.find_party_of("1002") is None

    run(body())


def test_owner_leave_disbands_party():
    async def body():
        async with party_store() as store:
            party_id = await store.create_party("1001")
            await store.invite(party_id, "1002")
            await store.invite(party_id, "1003")

            disbanded = await store.leave(party_id, "1001")

            assert disbanded is True
            for player_id in ("1001", "1002", "1003"):
                assert await store.find_party_of(player_id) is None
            assert await store.member_count(party_id) == 0
            assert await store.get_party(party_id) is None
            assert await count_rows(store, PartyMember) == 0

    run(body())


def test_leave_unknown_party_is_noop():
    async def body():
        async with party_store() as store:
            assert await store.leave(999, "1001") is False

    run(body())


def test_find_party_of_prefers_ownership():
    async def body():
        async with party_store() as store:
            older = await store.create_party("2001")
            # Raw store invite does not check other parties, so this leaves
            # 1001 with a stale membership in an older party
            await store.invite(older, "1001")
            owned = await store.create_party("1001")

            assert older < owned
            assert await store.find_party_of("1001") == owned

    run(body())


def test_set_name_only_for_owner():
    async def body():
        async with party_store() as store:
            party_id = await store.create_party("1001")
            await store.invite(party_id, "1002")

            assert await store.set_name(party_id, "1002", "Mutiny") is False
            assert (await store.get_party(party_id)).name is None

            assert await store.set_name(party_id, "1001", "Raiders") is True
            assert (await store.get_party(party_id)).name == "Raiders"

            assert await store.set_name(999, "1001", "Ghosts") is False

    run(body())


def test_member_count_of_unknown_party_is_zero():
    async def body():
        async with party_store() as store:
            assert await store.member_count(12345) == 0

    run(body())


def test_is_member_is_idempotent():
    async def body():
        async with party_store() as store:
            party_id = await store.create_party("1001")
            first = await store.is_member(party_id, "1002")
            second = await store.is_member(party_id, "1002")
            assert first == second is False

            await store.invite(party_id, "1002")
            assert await store.is_member(party_id, "1002") == await store.is_member(party_id, "1002")

    run(body())


def test_execute_raw_runs_statements_in_order():
    async def body():
        async with party_store() as store:
            executed = await store.execute_raw([
                "INSERT INTO party (owner_id) VALUES ('3001')",
                "",
                "UPDATE party SET name = 'Admin made' WHERE owner_id = '3001'",
            ])

            assert executed == 2
            party_id = await store.find_party_of("3001")
            assert (await store.get_party(party_id)).name == "Admin made"

    run(body())


def test_execute_raw_keeps_statements_before_failure():
    async def body():
        async with party_store() as store:
            with pytest.raises(StorageUnavailableError) as excinfo:
                await store.execute_raw([
                    "INSERT INTO party (owner_id) VALUES ('3001')",
                    "INSERT INTO no_such_table VALUES (1)",
                    "INSERT INTO party (owner_id) VALUES ('3002')",
                ])

            assert "statement 2" in str(excinfo.value)
            assert await store.find_party_of("3001") is not None
            assert await store.find_party_of("3002") is None

    run(body())


def test_backend_errors_become_storage_unavailable():
    async def body():
        async with party_store() as store:
            party_id = await store.create_party("1001")
            await store.execute_raw(["DROP TABLE party_member"])

            with pytest.raises(StorageUnavailableError) as excinfo:
                await store.is_member(party_id, "1001")

            assert excinfo.value.operation == 'is_member'
            assert excinfo.value.__cause__ is not None

    run(body())


def test_lock_wait_is_bounded_by_timeout():
    async def body():
        async with party_store(timeout=0.2) as store:
            party_id = await store.create_party("1001")

            async with store.locks.hold(party_key(party_id)):
                with pytest.raises(StorageUnavailableError) as excinfo:
                    await store.kick(party_id, "1001")

            assert "timed out" in str(excinfo.value)
            assert list(store.locks.active_keys()) == []
            # Nothing was applied
            assert await store.is_member(party_id, "1001")

    run(body())


def test_concurrent_reads_do_not_block_each_other():
    async def body():
        async with party_store() as store:
            party_id = await store.create_party("1001")
            results = await asyncio.gather(*[
                store.role(party_id, "1001") for _ in range(5)
            ])
            assert results == [PartyRole.OWNER] * 5

    run(body())


def test_party_ids_are_not_reused_after_disband():
    async def body():
        async with party_store() as store:
            first = await store.create_party("1001")
            await store.leave(first, "1001")

            second = await store.create_party("1002")

            assert second != first
            assert await store.get_party(first) is None

    run(body())


def test_membership_requires_existing_party():
    async def body():
        async with party_store() as store:
            with pytest.raises(StorageUnavailableError) as excinfo:
                await store.invite(999, "1001")

            assert excinfo.value.operation == 'invite'
            assert await store.list_members(999) == []
            assert await store.find_party_of("1001") is None
            assert await count_rows(store, PartyMember) == 0

    run(body())
