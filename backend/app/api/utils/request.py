"""Request metadata helpers for audit records."""
from typing import Optional, Tuple
from fastapi import Request


# audit_logs.ip_address is VARCHAR(45), enough for any IPv6 literal
MAX_IP_LENGTH = 45
MAX_USER_AGENT_LENGTH = 512


def client_ip(request: Request) -> Optional[str]:
    """
    Client address, preferring the first X-Forwarded-For hop set by the proxy.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop[:MAX_IP_LENGTH]
    return request.client.host if request.client else None


def extract_client_metadata(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract IP address and user agent from request.

    Args:
        request: FastAPI Request object

    Returns:
        Tuple of (ip_address, user_agent), both trimmed to what the audit log stores
    """
    user_agent = request.headers.get("user-agent")
    if user_agent:
        user_agent = user_agent[:MAX_USER_AGENT_LENGTH]
    return client_ip(request), user_agent
