"""
In-process storage backend.

All state lives in plain dicts guarded by one ``asyncio.Lock``. Every
operation, reads included, holds the lock for its whole duration, so a
resolve never observes a half-applied revoke and two appends for the same
identity never interleave.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

from schemas.models.identity import (
    Introduction,
    Permissions,
    SecretKey,
    Token,
    TokenEntry,
)
from schemas.models.location import LocationRecord
from shared.datetime_utils import whole_seconds
from storage.protocol import AppendOutcome, StorageStats


class MemoryStorage:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._tokens: dict[Token, TokenEntry] = {}
        self._tokens_by_secret: dict[SecretKey, list[Token]] = {}
        self._locations: dict[SecretKey, list[LocationRecord]] = {}
        self._introductions: dict[SecretKey, Introduction] = {}
        self._wipe_pending: set[SecretKey] = set()
        self._excommunicated: set[SecretKey] = set()

    async def resolve_token(self, token: Token) -> Optional[TokenEntry]:
        async with self._lock:
            return self._tokens.get(token)

    async def record_introduction(
        self,
        introduction: Introduction,
        secret_key: SecretKey,
        token: Token,
        not_after: Optional[datetime] = None,
    ) -> TokenEntry:
        entry = TokenEntry(
            token=token,
            secret_key=secret_key,
            permissions=Permissions.from_introduction(introduction),
            not_before=introduction.introduced_at,
            not_after=not_after,
        )
        async with self._lock:
            self._introductions[secret_key] = introduction
            self._put_token(secret_key, entry)
        return entry

    async def append_location(
        self,
        secret_key: SecretKey,
        record: LocationRecord,
        token: Optional[Token] = None,
    ) -> AppendOutcome:
        """Append *record* to the history of *secret_key*.

        With *token*, the write only lands if that token still belongs to
        *secret_key* when the lock is taken.
        """
        async with self._lock:
            if token is not None:
                entry = self._tokens.get(token)
                if entry is None or entry.secret_key != secret_key:
                    return AppendOutcome.REVOKED
            if secret_key in self._wipe_pending:
                self._wipe_pending.discard(secret_key)
                self._excommunicated.add(secret_key)
                return AppendOutcome.WIPE_PENDING
            if secret_key in self._excommunicated:
                return AppendOutcome.EXCOMMUNICATED
            self._locations.setdefault(secret_key, []).append(record)
            return AppendOutcome.RECORDED

    async def issue_token(self, secret_key: SecretKey, entry: TokenEntry) -> None:
        if entry.secret_key != secret_key:
            raise ValueError("token entry belongs to a different identity")
        async with self._lock:
            self._put_token(secret_key, entry)

    async def revoke_token(self, token: Token) -> None:
        async with self._lock:
            entry = self._tokens.pop(token, None)
            if entry is None:
                return
            siblings = self._tokens_by_secret.get(entry.secret_key, [])
            if token in siblings:
                siblings.remove(token)

    async def list_tokens(self, secret_key: SecretKey) -> list[TokenEntry]:
        async with self._lock:
            return [
                self._tokens[t]
                for t in self._tokens_by_secret.get(secret_key, [])
                if t in self._tokens
            ]

    async def purge_locations(self, secret_key: SecretKey) -> None:
        async with self._lock:
            self._locations.pop(secret_key, None)

    async def request_wipe(self, secret_key: SecretKey) -> None:
        async with self._lock:
            self._wipe_pending.add(secret_key)
            for token in self._tokens_by_secret.get(secret_key, []):
                entry = self._tokens.get(token)
                if entry is not None:
                    self._tokens[token] = entry.model_copy(
                        update={"permissions": Permissions.wipe_only()}
                    )

    async def is_excommunicated(self, secret_key: SecretKey) -> bool:
        async with self._lock:
            return (
                secret_key in self._wipe_pending or secret_key in self._excommunicated
            )

    async def list_locations(
        self,
        secret_key: SecretKey,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[LocationRecord]:
        if limit < 0:
            raise ValueError("limit must not be negative")
        results: list[LocationRecord] = []
        if limit == 0:
            return results
        async with self._lock:
            for record in self._locations.get(secret_key, []):
                if since is not None and record.update_time < since:
                    continue
                if until is not None and record.update_time > until:
                    continue
                results.append(record)
                if len(results) >= limit:
                    break
        return results

    async def get_stats(self, secret_key: SecretKey) -> StorageStats:
        async with self._lock:
            records = list(self._locations.get(secret_key, []))
        earliest = None
        if records:
            # min() keeps the first record on ties, i.e. the earliest received
            earliest = min(records, key=lambda r: whole_seconds(r.update_time))
        return StorageStats(
            count=len(records),
            earliest_time=earliest.update_time if earliest else None,
            bytes_consumed=sum(len(r.model_dump_json()) for r in records),
        )

    async def ping(self) -> bool:
        async with self._lock:
            return True

    def _put_token(self, secret_key: SecretKey, entry: TokenEntry) -> None:
        self._tokens[entry.token] = entry
        siblings = self._tokens_by_secret.setdefault(secret_key, [])
        if entry.token not in siblings:
            siblings.append(entry.token)
