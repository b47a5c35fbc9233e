"""RegistrationKeyValidator protocol: the service depends on this, not the concrete implementation."""

from typing import Optional, Protocol


class RegistrationKeyValidator(Protocol):
    async def verify(self, registration_key: Optional[bytes]) -> bool: ...
