"""Registration-key validators.

AcceptAllValidator  open registration; the key is ignored.
StaticKeyValidator  closed registration against a fixed set of keys
                    (REGISTRATION_KEYS), compared in constant time.
"""

from __future__ import annotations

import hmac
from typing import Iterable, Optional

from shared.logging import get_logger

log = get_logger(__name__)


class AcceptAllValidator:
    async def verify(self, registration_key: Optional[bytes]) -> bool:
        return True


class StaticKeyValidator:
    def __init__(self, keys: Iterable[bytes]) -> None:
        self._keys = tuple(keys)
        if not self._keys:
            log.warning("registration_closed_without_keys")

    async def verify(self, registration_key: Optional[bytes]) -> bool:
        if not registration_key:
            return False
        matched = False
        for key in self._keys:
            # no early exit: every configured key is compared
            matched |= hmac.compare_digest(key, registration_key)
        return matched
