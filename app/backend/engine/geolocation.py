"""Best-effort address geolocation. Any failure yields None."""
import ipaddress
from typing import Optional

import requests
import structlog

from app.backend.config import get_settings
from app.backend.engine.security import mask_address

log = structlog.get_logger()


def _is_public(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return ip.is_global


def format_location(payload: dict) -> Optional[str]:
    """Join city, region and country into "City, Region, Country"."""
    parts = [
        payload.get("city"),
        payload.get("region"),
        payload.get("country_name") or payload.get("country"),
    ]
    parts = [str(p).strip() for p in parts if p and str(p).strip()]
    return ", ".join(parts) or None


def lookup_location(address: Optional[str]) -> Optional[str]:
    settings = get_settings()
    if not settings.geolocation_enabled or not address or not _is_public(address):
        return None

    url = settings.geolocation_url.format(address=address)
    try:
        resp = requests.get(url, timeout=settings.geolocation_timeout_sec)
        if resp.status_code != 200:
            log.warning("geolocation_http_error", status=resp.status_code, address=mask_address(address))
            return None
        payload = resp.json()
        if not isinstance(payload, dict) or payload.get("error"):
            return None
        return format_location(payload)
    except Exception as exc:  # noqa: BLE001
        log.warning("geolocation_failed", address=mask_address(address), error=str(exc))
        return None
