"""
Client IP resolution for FastAPI requests.

The resolved address is the server-observed ``remote_addr`` stored with every
location record and introduction; it is never taken from the request body.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

_PROXY_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> Optional[str]:
    """Extract the client IP from a FastAPI ``Request``.

    With *trust_proxy_headers* the usual reverse-proxy headers are checked
    first (first address of ``X-Forwarded-For``); otherwise, or when none is
    present, the direct peer address is used.

    Returns:
        The resolved IP string, or ``None`` when the transport reports no peer.
    """
    if trust_proxy_headers:
        for header in _PROXY_HEADERS:
            ip_value: str | None = request.headers.get(header)
            if ip_value:
                client_ip = ip_value.split(",")[0].strip()
                if client_ip:
                    return client_ip

    return request.client.host if request.client else None
