from typing import Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.backend.config import get_settings
from app.backend.engine import delete_response, run_scanner_detection, submit_response, update_details
from app.backend.engine.context import client_address, client_signature
from app.backend.engine.errors import ResponseError
from app.database.db import get_db

log = structlog.get_logger()


class ResponseForm(BaseModel):
    survey_id: Optional[str] = Field(None)
    answer_value: Optional[str] = Field(None, max_length=255)
    free_response: Optional[str] = Field(None, max_length=5000)
    respondent_name: Optional[str] = Field(None, max_length=255)
    hash_md5: Optional[str] = Field(None, max_length=128)


class DetailsForm(BaseModel):
    response_id: Optional[str] = Field(None)
    free_response: Optional[str] = Field(None, max_length=5000)
    respondent_name: Optional[str] = Field(None, max_length=255)


class SubmissionCreated(BaseModel):
    id: str
    answer_value: str
    has_details: bool


class SubmissionUpdated(BaseModel):
    id: str
    answer_value: str


router = APIRouter(prefix="/api/responses", tags=["responses"])

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_api_key(api_key: Optional[str] = Depends(API_KEY_HEADER)):
    expected = get_settings().api_key
    if expected and api_key != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    return True


def to_http_error(exc: ResponseError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("", response_model=SubmissionCreated, status_code=status.HTTP_201_CREATED)
def create_response(
    payload: ResponseForm,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> SubmissionCreated:
    """Record an answer-link click. Replays return the original response."""
    if not (payload.survey_id or "").strip() or not (payload.answer_value or "").strip():
        raise HTTPException(status_code=400, detail="Missing required fields")

    address = client_address(request)
    try:
        result = submit_response(
            db,
            survey_id=payload.survey_id.strip(),
            answer_value=payload.answer_value,
            free_response=payload.free_response,
            respondent_name=payload.respondent_name,
            content_hash=payload.hash_md5,
            network_address=address,
            client_signature=client_signature(request),
        )
    except ResponseError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("create_response_failed", survey_id=payload.survey_id, error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to record response")

    if result.created:
        background_tasks.add_task(run_scanner_detection, result.submission.survey_id, address)
    else:
        response.status_code = status.HTTP_200_OK

    submission = result.submission
    return SubmissionCreated(
        id=submission.id,
        answer_value=submission.answer_value,
        has_details=submission.has_details,
    )


@router.patch("", response_model=SubmissionUpdated)
def update_response(payload: DetailsForm, request: Request, db: Session = Depends(get_db)) -> SubmissionUpdated:
    if not (payload.response_id or "").strip():
        raise HTTPException(status_code=400, detail="Response ID is required")

    try:
        submission = update_details(
            db,
            submission_id=payload.response_id.strip(),
            free_response=payload.free_response,
            respondent_name=payload.respondent_name,
            network_address=client_address(request),
        )
    except ResponseError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("update_response_failed", id=payload.response_id, error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to update response")

    return SubmissionUpdated(id=submission.id, answer_value=submission.answer_value)


@router.delete("/{response_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_api_key)])
def remove_response(response_id: str, db: Session = Depends(get_db)) -> Response:
    try:
        delete_response(db, submission_id=response_id)
    except ResponseError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("delete_response_failed", id=response_id, error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to delete response")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
