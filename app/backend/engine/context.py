from typing import Optional

from fastapi import Request


def client_address(request: Request) -> Optional[str]:
    """First hop of X-Forwarded-For, else X-Real-IP."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    return real_ip or None


def client_signature(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")
