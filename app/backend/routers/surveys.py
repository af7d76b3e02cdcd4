from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.backend.routers.responses import require_api_key
from app.database import crud
from app.database.db import get_db


class PublicSurvey(BaseModel):
    id: str
    title: str
    require_name: bool
    is_active: bool


class ResponseRecord(BaseModel):
    id: str
    created_at: datetime
    answer_value: str
    free_response: Optional[str]
    respondent_name: Optional[str]
    hash_md5: Optional[str]
    location: Optional[str]
    is_suspected_bot: bool


class ResponseList(BaseModel):
    survey_id: str
    responses: List[ResponseRecord]


class SurveySummary(BaseModel):
    survey_id: str
    total: int
    suspected_bots: int
    answers: Dict[str, int]


router = APIRouter(prefix="/api/surveys", tags=["surveys"])


@router.get("/{link_id}", response_model=PublicSurvey)
def get_public_survey(link_id: str, db: Session = Depends(get_db)) -> PublicSurvey:
    survey = crud.get_survey_by_link(db, link_id=link_id)
    if not survey:
        raise HTTPException(status_code=404, detail="Survey not found")
    return PublicSurvey(
        id=survey.id,
        title=survey.title,
        require_name=survey.require_name,
        is_active=survey.is_active,
    )


@router.get("/{survey_id}/responses", response_model=ResponseList, dependencies=[Depends(require_api_key)])
def list_responses(survey_id: str, include_bots: bool = False, db: Session = Depends(get_db)) -> ResponseList:
    """Newest first. Suspected bots are hidden unless ``include_bots`` is set."""
    if not crud.get_survey(db, survey_id=survey_id):
        raise HTTPException(status_code=404, detail="Survey not found")

    records = crud.list_submissions(db, survey_id=survey_id, include_bots=include_bots)
    return ResponseList(
        survey_id=survey_id,
        responses=[
            ResponseRecord(
                id=r.id,
                created_at=r.created_at,
                answer_value=r.answer_value,
                free_response=r.free_response,
                respondent_name=r.respondent_name,
                hash_md5=r.hash_md5,
                location=r.location,
                is_suspected_bot=r.is_suspected_bot,
            )
            for r in records
        ],
    )


@router.get("/{survey_id}/summary", response_model=SurveySummary, dependencies=[Depends(require_api_key)])
def survey_summary(survey_id: str, db: Session = Depends(get_db)) -> SurveySummary:
    if not crud.get_survey(db, survey_id=survey_id):
        raise HTTPException(status_code=404, detail="Survey not found")

    records = crud.list_submissions(db, survey_id=survey_id, include_bots=True)
    humans = [r for r in records if not r.is_suspected_bot]
    answers = Counter(r.answer_value for r in humans)
    return SurveySummary(
        survey_id=survey_id,
        total=len(humans),
        suspected_bots=len(records) - len(humans),
        answers=dict(answers.most_common()),
    )
