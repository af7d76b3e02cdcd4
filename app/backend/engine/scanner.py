"""Behavioral scanner detection over recent same-address responses.

Link scanners that spoof a browser user agent still give themselves away by
following several answer links (or several surveys' links) from one address
within minutes. This runs after a new response is committed and only ever
adds bot flags.
"""
from datetime import datetime, timedelta
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from app.backend.config import get_settings
from app.backend.engine.security import log_audit_event, mask_address
from app.database import crud
from app.database.db import SessionLocal

log = structlog.get_logger()


def detect_scanner_pattern(
    db: Session,
    survey_id: str,
    network_address: Optional[str],
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> List[str]:
    """Flag recent responses from ``network_address`` that look automated.

    Returns the ids that were flagged (possibly empty).
    """
    if not network_address:
        return []

    if window is None:
        window = timedelta(minutes=get_settings().scanner_window_minutes)
    since = (now or datetime.utcnow()) - window
    recent = crud.list_recent_from_address(db, ip_address=network_address, since=since)
    if len(recent) < 2:
        return []

    answers = {s.answer_value for s in recent if s.survey_id == survey_id}
    surveys = {s.survey_id for s in recent}
    if len(answers) <= 1 and len(surveys) <= 1:
        return []

    # A written comment is proof of a human, whatever the surrounding traffic.
    to_flag = [s.id for s in recent if not (s.free_response or "").strip()]
    if not to_flag:
        return []

    crud.flag_as_bots(db, sub_ids=to_flag)
    log.info(
        "scanner_pattern_flagged",
        survey_id=survey_id,
        address=mask_address(network_address),
        distinct_answers=len(answers),
        distinct_surveys=len(surveys),
        flagged=len(to_flag),
    )
    log_audit_event(
        event_type="scanner_pattern_flagged",
        survey_id=survey_id,
        address=network_address,
        metadata={"flagged_ids": to_flag},
    )
    return to_flag


def run_scanner_detection(survey_id: str, network_address: Optional[str]) -> None:
    """Background entry point: own session, errors logged and dropped."""
    if not network_address:
        return
    db = SessionLocal()
    try:
        detect_scanner_pattern(db, survey_id, network_address)
    except Exception as exc:  # noqa: BLE001
        db.rollback()
        log.error(
            "scanner_detection_failed",
            survey_id=survey_id,
            address=mask_address(network_address),
            error=str(exc),
        )
    finally:
        db.close()
