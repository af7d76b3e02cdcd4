"""Respondent identity: which earlier response, if any, is "the same person"."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from sqlalchemy.orm import Session

from app.database import crud, models


@dataclass(frozen=True)
class ByHash:
    """Stable content hash from the email link; matches regardless of age."""

    content_hash: str


@dataclass(frozen=True)
class ByAddress:
    """Network address, only matching responses inside ``window``."""

    address: str
    window: timedelta


Identity = Union[ByHash, ByAddress]


def derive_identity(
    content_hash: Optional[str], network_address: Optional[str], window: timedelta
) -> Optional[Identity]:
    content_hash = (content_hash or "").strip()
    if content_hash:
        return ByHash(content_hash)
    if network_address:
        return ByAddress(network_address, window)
    return None


def resolve_identity(
    db: Session, survey_id: str, identity: Optional[Identity], now: Optional[datetime] = None
) -> Optional[models.Submission]:
    if isinstance(identity, ByHash):
        return crud.find_by_hash(db, survey_id=survey_id, hash_md5=identity.content_hash)
    if isinstance(identity, ByAddress):
        since = (now or datetime.utcnow()) - identity.window
        return crud.find_recent_by_address(db, survey_id=survey_id, ip_address=identity.address, since=since)
    return None
