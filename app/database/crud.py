from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from . import models


def get_survey(db: Session, *, survey_id: str) -> Optional[models.Survey]:
    return db.query(models.Survey).filter(models.Survey.id == survey_id).first()


def get_survey_by_link(db: Session, *, link_id: str) -> Optional[models.Survey]:
    return db.query(models.Survey).filter(models.Survey.unique_link_id == link_id).first()


def create_survey(
    db: Session,
    *,
    title: str,
    unique_link_id: str,
    require_name: bool = False,
    is_active: bool = True,
) -> models.Survey:
    survey = models.Survey(
        title=title,
        unique_link_id=unique_link_id,
        require_name=require_name,
        is_active=is_active,
    )
    db.add(survey)
    db.commit()
    db.refresh(survey)
    return survey


def create_submission(
    db: Session,
    *,
    survey_id: str,
    answer_value: str,
    free_response: Optional[str],
    respondent_name: Optional[str],
    hash_md5: Optional[str],
    ip_address: Optional[str],
    user_agent: Optional[str],
    location: Optional[str],
    is_suspected_bot: bool,
    created_at: datetime,
) -> models.Submission:
    submission = models.Submission(
        survey_id=survey_id,
        answer_value=answer_value,
        free_response=free_response,
        respondent_name=respondent_name,
        hash_md5=hash_md5,
        ip_address=ip_address,
        user_agent=user_agent,
        location=location,
        is_suspected_bot=is_suspected_bot,
        created_at=created_at,
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def get_submission(db: Session, *, sub_id: str) -> Optional[models.Submission]:
    return db.query(models.Submission).filter(models.Submission.id == sub_id).first()


def find_by_hash(db: Session, *, survey_id: str, hash_md5: str) -> Optional[models.Submission]:
    return (
        db.query(models.Submission)
        .filter(models.Submission.survey_id == survey_id, models.Submission.hash_md5 == hash_md5)
        .order_by(models.Submission.created_at.asc())
        .first()
    )


def find_recent_by_address(
    db: Session, *, survey_id: str, ip_address: str, since: datetime
) -> Optional[models.Submission]:
    return (
        db.query(models.Submission)
        .filter(
            models.Submission.survey_id == survey_id,
            models.Submission.ip_address == ip_address,
            models.Submission.created_at >= since,
        )
        .order_by(models.Submission.created_at.desc())
        .first()
    )


def list_recent_from_address(db: Session, *, ip_address: str, since: datetime) -> List[models.Submission]:
    return (
        db.query(models.Submission)
        .filter(models.Submission.ip_address == ip_address, models.Submission.created_at >= since)
        .all()
    )


def list_submissions(db: Session, *, survey_id: str, include_bots: bool = False) -> List[models.Submission]:
    query = db.query(models.Submission).filter(models.Submission.survey_id == survey_id)
    if not include_bots:
        query = query.filter(models.Submission.is_suspected_bot.is_(False))
    return query.order_by(models.Submission.created_at.desc()).all()


def save(db: Session, submission: models.Submission) -> models.Submission:
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def flag_as_bots(db: Session, *, sub_ids: Iterable[str]) -> int:
    ids = list(sub_ids)
    if not ids:
        return 0
    count = (
        db.query(models.Submission)
        .filter(models.Submission.id.in_(ids))
        .update({models.Submission.is_suspected_bot: True}, synchronize_session=False)
    )
    db.commit()
    return count


def delete_submission(db: Session, *, sub_id: str) -> bool:
    submission = get_submission(db, sub_id=sub_id)
    if not submission:
        return False
    db.delete(submission)
    db.commit()
    return True
