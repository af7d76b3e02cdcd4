"""Decide what an incoming answer click does to the stored responses.

A click either creates a new response, replays an existing one unchanged, or
(when the earlier record was judged a bot and this request looks human)
takes over the bot's record in place. Lookup and insert are not wrapped in a
transaction: two simultaneous first clicks for one identity may both insert.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from app.backend.config import get_settings
from app.backend.engine import bot_detection
from app.backend.engine.errors import (
    AddressMismatch,
    NothingToUpdate,
    SubmissionNotFound,
    SurveyInactive,
    SurveyNotFound,
)
from app.backend.engine.geolocation import lookup_location
from app.backend.engine.identity import derive_identity, resolve_identity
from app.backend.engine.security import log_audit_event, mask_address, sanitize_for_logging
from app.database import crud, models

log = structlog.get_logger()

CREATED = "created"
DEDUPLICATED = "deduplicated"
BOT_OVERRIDE = "bot_override"


@dataclass
class ReconcileResult:
    submission: models.Submission
    outcome: str

    @property
    def created(self) -> bool:
        return self.outcome == CREATED


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def submit_response(
    db: Session,
    *,
    survey_id: str,
    answer_value: str,
    free_response: Optional[str] = None,
    respondent_name: Optional[str] = None,
    content_hash: Optional[str] = None,
    network_address: Optional[str] = None,
    client_signature: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ReconcileResult:
    now = now or datetime.utcnow()

    survey = crud.get_survey(db, survey_id=survey_id)
    if not survey:
        raise SurveyNotFound()
    if not survey.is_active:
        raise SurveyInactive()

    window = timedelta(hours=get_settings().dedup_window_hours)
    identity = derive_identity(content_hash, network_address, window)
    existing = resolve_identity(db, survey_id, identity, now=now)

    bot_reason = bot_detection.explain(client_signature)
    suspected_bot = bot_reason is not None

    if existing is None:
        submission = crud.create_submission(
            db,
            survey_id=survey_id,
            answer_value=answer_value.strip(),
            free_response=_clean(free_response),
            respondent_name=_clean(respondent_name),
            hash_md5=_clean(content_hash),
            ip_address=network_address,
            user_agent=client_signature,
            location=lookup_location(network_address),
            is_suspected_bot=suspected_bot,
            created_at=now,
        )
        log.info(
            "response_created",
            id=submission.id,
            survey_id=survey_id,
            suspected_bot=suspected_bot,
            bot_reason=bot_reason,
        )
        log_audit_event(
            event_type="response_created",
            submission_id=submission.id,
            survey_id=survey_id,
            address=network_address,
            metadata={"suspected_bot": suspected_bot, "identity": type(identity).__name__ if identity else None},
        )
        return ReconcileResult(submission, CREATED)

    if existing.is_suspected_bot and not suspected_bot:
        previous_answer = existing.answer_value
        existing.answer_value = answer_value.strip()
        existing.ip_address = network_address
        existing.user_agent = client_signature
        existing.location = lookup_location(network_address)
        existing.is_suspected_bot = False
        submission = crud.save(db, existing)
        log.info("bot_override", id=submission.id, survey_id=survey_id)
        log_audit_event(
            event_type="bot_override",
            submission_id=submission.id,
            survey_id=survey_id,
            address=network_address,
            metadata={"previous_answer": previous_answer, "answer": submission.answer_value},
        )
        return ReconcileResult(submission, BOT_OVERRIDE)

    log.info("response_deduplicated", id=existing.id, survey_id=survey_id)
    return ReconcileResult(existing, DEDUPLICATED)


def update_details(
    db: Session,
    *,
    submission_id: str,
    free_response: Optional[str] = None,
    respondent_name: Optional[str] = None,
    network_address: Optional[str] = None,
) -> models.Submission:
    """Attach a comment and/or name to an existing response."""
    free_response = _clean(free_response)
    respondent_name = _clean(respondent_name)
    if not free_response and not respondent_name:
        raise NothingToUpdate()

    submission = crud.get_submission(db, sub_id=submission_id)
    if not submission:
        raise SubmissionNotFound()

    if network_address and network_address != submission.ip_address:
        log.warning(
            "detail_update_rejected",
            id=submission_id,
            address=mask_address(network_address),
            stored_address=mask_address(submission.ip_address),
        )
        log_audit_event(
            event_type="detail_update_rejected",
            submission_id=submission_id,
            survey_id=submission.survey_id,
            address=network_address,
        )
        raise AddressMismatch()

    if free_response:
        submission.free_response = free_response
        # A written comment overrides any earlier bot verdict.
        submission.is_suspected_bot = False
    if respondent_name and not submission.respondent_name:
        submission.respondent_name = respondent_name

    submission = crud.save(db, submission)
    log.info(
        "response_details_updated",
        id=submission.id,
        has_comment=bool(submission.free_response),
        comment_preview=sanitize_for_logging(submission.free_response or "", max_length=80),
    )
    return submission


def delete_response(db: Session, *, submission_id: str) -> None:
    if not crud.delete_submission(db, sub_id=submission_id):
        raise SubmissionNotFound()
    log.info("response_deleted", id=submission_id)
    log_audit_event(event_type="response_deleted", submission_id=submission_id)
