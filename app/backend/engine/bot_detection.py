"""User-agent based bot classification.

Email security gateways follow every link in a message before the recipient
sees it, so the first "click" on an answer link is frequently a scanner. The
verdict here is deterministic: the reconciler recomputes it on every request
and compares it with the flag stored on an earlier record.
"""
import re
from typing import Optional, Pattern, Tuple

MIN_SIGNATURE_LENGTH = 20

# Ordered (category, pattern) table, first match wins.
BOT_PATTERNS: Tuple[Tuple[str, Pattern], ...] = tuple(
    (category, re.compile(pattern, re.IGNORECASE))
    for category, pattern in (
        # Email security scanners
        ("email_scanner", r"safelinks"),
        ("email_scanner", r"barracuda"),
        ("email_scanner", r"proofpoint"),
        ("email_scanner", r"mimecast"),
        ("email_scanner", r"googleimageproxy"),
        ("email_scanner", r"fortiguard"),
        ("email_scanner", r"symantec"),
        ("email_scanner", r"fireeye"),
        ("email_scanner", r"trendmicro"),
        # Generic bot identifiers
        ("generic_bot", r"bot\b"),
        ("generic_bot", r"crawler"),
        ("generic_bot", r"spider"),
        ("generic_bot", r"\bscan"),
        ("generic_bot", r"preview"),
        ("generic_bot", r"prefetch"),
        ("generic_bot", r"slurp"),
        ("generic_bot", r"archiver"),
        # Automated HTTP clients
        ("http_client", r"\bcurl\b"),
        ("http_client", r"\bwget\b"),
        ("http_client", r"python-requests"),
        ("http_client", r"python-urllib"),
        ("http_client", r"Go-http-client"),
        ("http_client", r"Java/"),
        ("http_client", r"Apache-HttpClient"),
        ("http_client", r"node-fetch"),
        ("http_client", r"axios/"),
        ("http_client", r"libwww-perl"),
        ("http_client", r"http_request"),
        ("http_client", r"okhttp"),
    )
)


def explain(user_agent: Optional[str]) -> Optional[str]:
    """Return why ``user_agent`` looks automated, or None for a likely human."""
    if not user_agent or not user_agent.strip():
        return "missing"
    if len(user_agent.strip()) < MIN_SIGNATURE_LENGTH:
        return "too_short"
    for category, pattern in BOT_PATTERNS:
        if pattern.search(user_agent):
            return category
    return None


def classify(user_agent: Optional[str]) -> bool:
    return explain(user_agent) is not None
