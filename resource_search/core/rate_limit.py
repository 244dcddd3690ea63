"""Rate limiting for login and search endpoints using slowapi."""

import ipaddress
from functools import lru_cache

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from resource_search.core.config import get_settings

DEFAULT_RETRY_AFTER_SECONDS = 60

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


@lru_cache(maxsize=1)
def _get_trusted_proxies() -> tuple[IPNetwork, ...]:
    """Trusted proxies from settings; single addresses become /32 or /128 networks."""
    entries = (entry.strip() for entry in get_settings().trusted_proxies.split(","))
    return tuple(ipaddress.ip_network(entry, strict=False) for entry in entries if entry)


def _is_trusted_proxy(ip: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(addr in network for network in _get_trusted_proxies())


def _forwarded_ip(request: Request) -> str | None:
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return None


def get_client_ip(request: Request) -> str:
    """Rate-limit key: the peer address, or the forwarded client when the peer is a proxy."""
    peer_ip = get_remote_address(request)
    if _is_trusted_proxy(peer_ip):
        return _forwarded_ip(request) or peer_ip
    return peer_ip


limiter = Limiter(key_func=get_client_ip, enabled=get_settings().is_rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please slow down.",
            "retry_after": DEFAULT_RETRY_AFTER_SECONDS,
        },
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER_SECONDS)},
    )
