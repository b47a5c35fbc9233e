"""
Identity and permission model.

A *secret key* is the durable identity of a device; it owns the location
history and every token issued for it. A *token* is the bearer credential a
client presents. Many tokens may point at one secret key, and each token
carries its own ``Permissions``.

Both are raw byte strings; hex is only a wire/log encoding.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

Token = bytes
SecretKey = bytes


class Permission(str, Enum):
    """Capability flags a token may hold. Each RPC requires exactly one."""

    LIST_TOKENS = "list_tokens"
    WRITE_LOCATIONS = "write_locations"
    READ_LOCATIONS = "read_locations"
    NEARBY = "nearby"
    STATS = "stats"
    WIPE = "wipe"


class Permissions(BaseModel):
    model_config = ConfigDict(frozen=True)

    list_tokens: bool = False
    write_locations: bool = False
    read_locations: bool = False
    nearby: bool = False
    stats: bool = False
    wipe: bool = False

    def allows(self, permission: Permission) -> bool:
        return bool(getattr(self, permission.value))

    def granted(self) -> list[str]:
        return [p.value for p in Permission if self.allows(p)]

    @classmethod
    def from_introduction(cls, introduction: "Introduction") -> "Permissions":
        """Permissions for the token minted when a device introduces itself."""
        return cls(
            list_tokens=True,
            write_locations=True,
            read_locations=True,
            stats=True,
            nearby=introduction.can_read_nearby_devices,
            wipe=introduction.remote_wipe_enabled,
        )

    @classmethod
    def wipe_only(cls) -> "Permissions":
        """What an excommunicated device keeps: acknowledging the wipe."""
        return cls(wipe=True)


class TokenEntry(BaseModel):
    """The authorization record a token resolves to."""

    model_config = ConfigDict(frozen=True)

    token: Token
    secret_key: SecretKey
    permissions: Permissions
    not_before: datetime
    not_after: Optional[datetime] = None  # None = never expires

    def is_valid_at(self, now: datetime) -> bool:
        if now < self.not_before:
            return False
        return self.not_after is None or now <= self.not_after


class Introduction(BaseModel):
    """Registration record kept for every identity."""

    model_config = ConfigDict(frozen=True)

    introduced_at: datetime
    remote_addr: Optional[str] = None
    registration_key: Optional[bytes] = None
    remote_wipe_enabled: bool = False
    can_read_nearby_devices: bool = False
