"""
Client IP Resolution

Derives the caller's address from proxy headers and the socket peer.
Values are taken as-is: no IP syntax validation is performed.
"""

from typing import Optional

from fastapi import Request

UNKNOWN_IP = "unknown"
IPV4_MAPPED_PREFIX = "::ffff:"

# Width of the ip_address columns (IPv6 max length is 45 chars)
MAX_IP_LENGTH = 45


def resolve_client_ip(
    forwarded_for: Optional[str],
    real_ip: Optional[str],
    peer_host: Optional[str],
) -> str:
    """
    Pick the effective client address.

    Priority:
    1. First entry of X-Forwarded-For (trimmed)
    2. X-Real-IP, verbatim
    3. Peer address, with an IPv4-mapped IPv6 prefix removed
    4. "unknown"

    Args:
        forwarded_for: X-Forwarded-For header value
        real_ip: X-Real-IP header value
        peer_host: Transport-level peer address

    Returns:
        str: Client IP address
    """
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, the client is the first one
        return forwarded_for.split(",")[0].strip()

    if real_ip:
        return real_ip

    if peer_host:
        if peer_host.startswith(IPV4_MAPPED_PREFIX):
            return peer_host[len(IPV4_MAPPED_PREFIX):]
        return peer_host

    return UNKNOWN_IP


def get_client_ip(request: Request) -> str:
    """
    Resolve the client IP of a FastAPI request.

    The value is cut to MAX_IP_LENGTH so that what is stored, looked up
    and echoed back is always the same string.
    """
    ip_address = resolve_client_ip(
        request.headers.get("x-forwarded-for"),
        request.headers.get("x-real-ip"),
        request.client.host if request.client else None,
    )
    return ip_address[:MAX_IP_LENGTH]
