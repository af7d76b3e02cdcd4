"""Privacy helpers for logs: address masking, free-text redaction, audit events."""
import ipaddress
import json
import re
from typing import Any, Dict, Optional

import structlog

log = structlog.get_logger()


# --- PII Redaction (Simple Pattern-Based) ---

PII_PATTERNS = {
    "email": r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b",
    "phone": r"\b(\+\d{1,2}\s?)?(\d{3}[-.\s]??\d{3}[-.\s]??\d{4}|\(\d{3}\)\s*\d{3}[-.\s]??\d{4})\b",
}


def redact_pii_simple(text: str) -> str:
    redacted = text
    for pii_type, pattern in PII_PATTERNS.items():
        redacted = re.sub(pattern, f"[{pii_type.upper()}_REDACTED]", redacted, flags=re.IGNORECASE)
    return redacted


def sanitize_for_logging(data: Any, max_length: int = 200) -> str:
    """Sanitize data for safe logging (redact PII, truncate)."""
    try:
        text = json.dumps(data) if not isinstance(data, str) else data
        redacted = redact_pii_simple(text)
        if len(redacted) > max_length:
            redacted = redacted[:max_length] + "... [truncated]"
        return redacted
    except Exception:  # noqa: BLE001
        return "[UNSERIALIZABLE]"


def mask_address(address: Optional[str]) -> Optional[str]:
    """Drop the host part of an address: last IPv4 octet, last 80 bits of IPv6."""
    if not address:
        return None
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return "[INVALID_ADDRESS]"
    prefix = 24 if ip.version == 4 else 48
    return str(ipaddress.ip_network(f"{ip}/{prefix}", strict=False))


# --- Audit Logging ---

def log_audit_event(
    event_type: str,
    submission_id: Optional[str] = None,
    survey_id: Optional[str] = None,
    address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Emit a structured audit event.

    Args:
        event_type: Type of event (e.g., 'response_created', 'bot_override')
        submission_id: Response UUID
        survey_id: Survey UUID
        address: Raw network address; only the masked form is logged
        metadata: Additional metadata
    """
    # Audit logging must never break the request
    try:
        log.info(
            "audit",
            event_type=event_type,
            submission_id=submission_id,
            survey_id=survey_id,
            address=mask_address(address),
            metadata=metadata or {},
        )
    except Exception as exc:  # noqa: BLE001
        log.warning("audit_log_failed", event_type=event_type, error=str(exc))
