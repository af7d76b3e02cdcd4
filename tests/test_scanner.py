from datetime import datetime, timedelta

from sqlalchemy.exc import OperationalError
from structlog.testing import capture_logs

from app.backend.engine import detect_scanner_pattern, run_scanner_detection, submit_response
from app.database import crud

from helpers import BROWSER_UA

T0 = datetime(2026, 3, 2, 9, 0, 0)
SCANNER_IP = "52.10.20.30"


def _click(db, survey, answer, content_hash, at, free_response=None, address=SCANNER_IP):
    return submit_response(
        db,
        survey_id=survey.id,
        answer_value=answer,
        free_response=free_response,
        content_hash=content_hash,
        network_address=address,
        client_signature=BROWSER_UA,
        now=at,
    ).submission


def _flags(db, records):
    db.expire_all()
    return [crud.get_submission(db, sub_id=r.id).is_suspected_bot for r in records]


def test_distinct_answers_flag_all(db, survey):
    records = [
        _click(db, survey, answer, f"h{i}", T0 + timedelta(seconds=i))
        for i, answer in enumerate(["very-satisfied", "satisfied", "unsatisfied"])
    ]
    assert _flags(db, records) == [False, False, False]

    flagged = detect_scanner_pattern(db, survey.id, SCANNER_IP, now=T0 + timedelta(minutes=1))
    assert sorted(flagged) == sorted(r.id for r in records)
    assert _flags(db, records) == [True, True, True]


def test_commented_record_is_never_flagged(db, survey):
    records = [
        _click(db, survey, answer, f"h{i}", T0 + timedelta(seconds=i))
        for i, answer in enumerate(["a", "b", "c"])
    ]
    commented = _click(db, survey, "a", "h-human", T0 + timedelta(seconds=10), free_response="Loved it")

    detect_scanner_pattern(db, survey.id, SCANNER_IP, now=T0 + timedelta(minutes=1))
    assert _flags(db, records) == [True, True, True]
    assert _flags(db, [commented]) == [False]


def test_single_answer_single_survey_is_left_alone(db, survey):
    records = [_click(db, survey, "yes", f"h{i}", T0 + timedelta(seconds=i)) for i in range(3)]
    assert detect_scanner_pattern(db, survey.id, SCANNER_IP, now=T0 + timedelta(minutes=1)) == []
    assert _flags(db, records) == [False, False, False]


def test_multiple_surveys_flag_even_with_same_answer(db, survey, other_survey):
    first = _click(db, survey, "yes", "h1", T0)
    second = _click(db, other_survey, "yes", "h2", T0 + timedelta(seconds=5))

    flagged = detect_scanner_pattern(db, other_survey.id, SCANNER_IP, now=T0 + timedelta(minutes=1))
    assert sorted(flagged) == sorted([first.id, second.id])
    assert _flags(db, [first, second]) == [True, True]


def test_answer_diversity_only_counts_triggering_survey(db, survey, other_survey):
    _click(db, survey, "yes", "h1", T0)
    _click(db, survey, "yes", "h2", T0 + timedelta(seconds=1))
    _click(db, other_survey, "no", "h3", T0 + timedelta(seconds=2))

    with capture_logs() as logs:
        flagged = detect_scanner_pattern(db, survey.id, SCANNER_IP, now=T0 + timedelta(minutes=1))

    assert len(flagged) == 3
    event = next(e for e in logs if e["event"] == "scanner_pattern_flagged")
    assert event["distinct_answers"] == 1
    assert event["distinct_surveys"] == 2


def test_old_activity_on_other_survey_is_ignored(db, survey, other_survey):
    _click(db, other_survey, "no", "h-old", T0 - timedelta(minutes=30))
    records = [_click(db, survey, "yes", f"h{i}", T0 + timedelta(seconds=i)) for i in range(2)]

    assert detect_scanner_pattern(db, survey.id, SCANNER_IP, now=T0 + timedelta(minutes=1)) == []
    assert _flags(db, records) == [False, False]


def test_window_is_relative_to_now(db, survey):
    records = [
        _click(db, survey, answer, f"h{i}", T0 + timedelta(seconds=i))
        for i, answer in enumerate(["a", "b"])
    ]
    assert detect_scanner_pattern(db, survey.id, SCANNER_IP, now=T0 + timedelta(minutes=11)) == []
    assert _flags(db, records) == [False, False]


def test_other_addresses_are_untouched(db, survey):
    bystander = _click(db, survey, "a", "h-by", T0, address="81.1.1.1")
    for i, answer in enumerate(["a", "b"]):
        _click(db, survey, answer, f"h{i}", T0 + timedelta(seconds=i))

    detect_scanner_pattern(db, survey.id, SCANNER_IP, now=T0 + timedelta(minutes=1))
    assert _flags(db, [bystander]) == [False]


def test_unknown_address_is_skipped(db, survey):
    assert detect_scanner_pattern(db, survey.id, None, now=T0) == []


def test_single_record_is_skipped(db, survey):
    _click(db, survey, "a", "h1", T0)
    assert detect_scanner_pattern(db, survey.id, SCANNER_IP, now=T0 + timedelta(minutes=1)) == []


def test_background_errors_are_swallowed(monkeypatch, survey):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(crud, "list_recent_from_address", boom)
    run_scanner_detection(survey.id, SCANNER_IP)
