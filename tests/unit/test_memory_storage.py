"""Unit tests for the in-memory storage backend."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from helpers import T0, make_introduction, make_record
from schemas.models.identity import Permissions, TokenEntry
from storage import AppendOutcome, LocationStorage, MemoryStorage, create_storage

SK = b"s" * 16
OTHER_SK = b"o" * 16
TOKEN_A = b"a" * 16
TOKEN_B = b"b" * 16


def _entry(token: bytes, secret_key: bytes = SK, **perms) -> TokenEntry:
    return TokenEntry(
        token=token,
        secret_key=secret_key,
        permissions=Permissions(**perms),
        not_before=T0,
    )


@pytest.fixture
async def introduced(storage: MemoryStorage) -> MemoryStorage:
    await storage.record_introduction(make_introduction(), SK, TOKEN_A)
    return storage


# ── Factory / protocol ────────────────────────────────────────────────────────


def test_memory_storage_satisfies_protocol():
    assert isinstance(MemoryStorage(), LocationStorage)


@pytest.mark.parametrize("name", ["memory", " Memory "], ids=["plain", "padded"])
def test_create_storage_memory(name):
    assert isinstance(create_storage(name), MemoryStorage)


def test_create_storage_unknown_backend():
    with pytest.raises(ValueError, match="unknown storage backend"):
        create_storage("sled")


# ── Tokens ────────────────────────────────────────────────────────────────────


class TestTokens:
    async def test_resolve_unknown_token(self, storage):
        assert await storage.resolve_token(b"nope") is None

    async def test_introduction_issues_token(self, storage):
        intro = make_introduction(remote_wipe_enabled=True)
        entry = await storage.record_introduction(intro, SK, TOKEN_A)
        assert entry.secret_key == SK
        assert entry.token == TOKEN_A
        assert entry.not_before == T0
        assert entry.not_after is None
        assert entry.permissions.wipe is True
        assert entry.permissions.nearby is False
        assert await storage.resolve_token(TOKEN_A) == entry

    async def test_introduction_with_expiry(self, storage):
        expiry = T0 + timedelta(days=1)
        entry = await storage.record_introduction(
            make_introduction(), SK, TOKEN_A, not_after=expiry
        )
        assert entry.not_after == expiry

    async def test_issue_token_adds_sibling(self, introduced):
        await introduced.issue_token(SK, _entry(TOKEN_B, read_locations=True))
        tokens = [e.token for e in await introduced.list_tokens(SK)]
        assert tokens == [TOKEN_A, TOKEN_B]

    async def test_issue_token_rejects_foreign_entry(self, storage):
        with pytest.raises(ValueError):
            await storage.issue_token(SK, _entry(TOKEN_B, secret_key=OTHER_SK))

    async def test_revoke_removes_only_that_token(self, introduced):
        await introduced.issue_token(SK, _entry(TOKEN_B, read_locations=True))
        await introduced.append_location(SK, make_record())

        await introduced.revoke_token(TOKEN_A)

        assert await introduced.resolve_token(TOKEN_A) is None
        sibling = await introduced.resolve_token(TOKEN_B)
        assert sibling is not None and sibling.secret_key == SK
        assert [e.token for e in await introduced.list_tokens(SK)] == [TOKEN_B]
        assert len(await introduced.list_locations(SK, limit=10)) == 1

    async def test_revoke_unknown_token_is_noop(self, introduced):
        await introduced.revoke_token(b"missing")
        assert await introduced.resolve_token(TOKEN_A) is not None

    async def test_list_tokens_unknown_identity(self, storage):
        assert await storage.list_tokens(OTHER_SK) == []


# ── Locations ─────────────────────────────────────────────────────────────────


class TestAppendAndList:
    async def test_append_then_list_contains_record_once_in_position(self, storage):
        first, second, third = make_record(0), make_record(5), make_record(10)
        for record in (first, second):
            assert await storage.append_location(SK, record) is AppendOutcome.RECORDED
        await storage.append_location(SK, third)

        listed = await storage.list_locations(SK, limit=1000)
        assert listed == [first, second, third]
        assert listed.count(third) == 1

    async def test_out_of_order_times_kept_in_receipt_order(self, storage):
        late, early = make_record(60), make_record(0)
        await storage.append_location(SK, late)
        await storage.append_location(SK, early)
        assert await storage.list_locations(SK, limit=10) == [late, early]

    async def test_duplicate_submissions_are_kept(self, storage):
        record = make_record()
        await storage.append_location(SK, record)
        await storage.append_location(SK, record)
        assert len(await storage.list_locations(SK, limit=10)) == 2

    async def test_history_is_per_identity(self, storage):
        await storage.append_location(SK, make_record())
        assert await storage.list_locations(OTHER_SK, limit=10) == []

    @pytest.mark.parametrize("limit, expected", [(0, 0), (1, 1), (3, 3), (50, 5)])
    async def test_limit_caps_results(self, storage, limit, expected):
        for i in range(5):
            await storage.append_location(SK, make_record(i))
        assert len(await storage.list_locations(SK, limit=limit)) == expected

    async def test_limit_keeps_first_matches_not_most_recent(self, storage):
        records = [make_record(i) for i in range(5)]
        for r in records:
            await storage.append_location(SK, r)
        assert await storage.list_locations(SK, limit=2) == records[:2]

    async def test_negative_limit_is_caller_error(self, storage):
        with pytest.raises(ValueError):
            await storage.list_locations(SK, limit=-1)

    async def test_since_until_inclusive(self, storage):
        records = [make_record(i * 10) for i in range(5)]  # 0,10,20,30,40 s
        for r in records:
            await storage.append_location(SK, r)

        result = await storage.list_locations(
            SK,
            since=T0 + timedelta(seconds=10),
            until=T0 + timedelta(seconds=30),
            limit=100,
        )
        assert result == records[1:4]

    async def test_since_only(self, storage):
        records = [make_record(i) for i in range(3)]
        for r in records:
            await storage.append_location(SK, r)
        result = await storage.list_locations(
            SK, since=T0 + timedelta(seconds=2), limit=100
        )
        assert result == records[2:]

    async def test_filter_applies_before_limit(self, storage):
        records = [make_record(i) for i in range(6)]
        for r in records:
            await storage.append_location(SK, r)
        result = await storage.list_locations(
            SK, since=T0 + timedelta(seconds=3), limit=2
        )
        assert result == records[3:5]

    async def test_append_with_live_token_records(self, introduced):
        outcome = await introduced.append_location(SK, make_record(), token=TOKEN_A)
        assert outcome is AppendOutcome.RECORDED

    async def test_append_with_revoked_token_is_dropped(self, introduced):
        await introduced.revoke_token(TOKEN_A)
        outcome = await introduced.append_location(SK, make_record(), token=TOKEN_A)
        assert outcome is AppendOutcome.REVOKED
        assert await introduced.list_locations(SK, limit=10) == []

    async def test_append_with_foreign_token_is_dropped(self, introduced):
        outcome = await introduced.append_location(OTHER_SK, make_record(), token=TOKEN_A)
        assert outcome is AppendOutcome.REVOKED
        assert await introduced.list_locations(OTHER_SK, limit=10) == []

    async def test_purge_clears_history_only(self, introduced):
        await introduced.append_location(SK, make_record())
        await introduced.purge_locations(SK)
        assert await introduced.list_locations(SK, limit=10) == []
        assert await introduced.resolve_token(TOKEN_A) is not None

    async def test_concurrent_appends_all_land(self, storage):
        await asyncio.gather(
            *(storage.append_location(SK, make_record(i)) for i in range(50))
        )
        assert len(await storage.list_locations(SK, limit=100)) == 50


# ── Stats ─────────────────────────────────────────────────────────────────────


class TestStats:
    async def test_empty_identity(self, storage):
        stats = await storage.get_stats(SK)
        assert stats.count == 0
        assert stats.earliest_time is None
        assert stats.bytes_consumed == 0

    async def test_earliest_regardless_of_insertion_order(self, storage):
        for seconds in (20, 0, 10):
            await storage.append_location(SK, make_record(seconds))
        stats = await storage.get_stats(SK)
        assert stats.count == 3
        assert stats.earliest_time == T0
        assert stats.bytes_consumed > 0

    async def test_sub_second_differences_ignored(self, storage):
        # Same whole second: the first received wins even though it is later
        first = make_record(0.7)
        second = make_record(0.2)
        await storage.append_location(SK, first)
        await storage.append_location(SK, second)
        stats = await storage.get_stats(SK)
        assert stats.earliest_time == first.update_time


# ── Excommunication ───────────────────────────────────────────────────────────


class TestWipe:
    async def test_request_wipe_downgrades_every_token(self, introduced):
        await introduced.issue_token(SK, _entry(TOKEN_B, read_locations=True))
        await introduced.request_wipe(SK)
        for token in (TOKEN_A, TOKEN_B):
            entry = await introduced.resolve_token(token)
            assert entry.permissions == Permissions.wipe_only()

    async def test_wipe_does_not_touch_other_identities(self, introduced):
        await introduced.record_introduction(make_introduction(), OTHER_SK, TOKEN_B)
        await introduced.request_wipe(SK)
        other = await introduced.resolve_token(TOKEN_B)
        assert other.permissions.write_locations is True
        assert await introduced.is_excommunicated(OTHER_SK) is False

    async def test_next_append_reports_wipe_then_excommunicated(self, introduced):
        await introduced.request_wipe(SK)
        assert await introduced.is_excommunicated(SK) is True

        outcome = await introduced.append_location(SK, make_record())
        assert outcome is AppendOutcome.WIPE_PENDING

        outcome = await introduced.append_location(SK, make_record(1))
        assert outcome is AppendOutcome.EXCOMMUNICATED
        assert await introduced.list_locations(SK, limit=10) == []
        assert await introduced.is_excommunicated(SK) is True


async def test_ping(storage):
    assert await storage.ping() is True
