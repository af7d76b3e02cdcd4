from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from app.backend.engine import submit_response
from app.backend.main import app

from helpers import BROWSER_UA

client = TestClient(app)

T0 = datetime(2026, 3, 2, 9, 0, 0)


def _seed(db, survey):
    """Two humans answering "yes", one "no", one bot."""
    for i, (answer, ua) in enumerate([("yes", BROWSER_UA), ("yes", BROWSER_UA), ("no", BROWSER_UA), ("no", "curl/8.0")]):
        submit_response(
            db,
            survey_id=survey.id,
            answer_value=answer,
            content_hash=f"h{i}",
            network_address=f"81.0.0.{i + 1}",
            client_signature=ua,
            now=T0 + timedelta(minutes=i),
        )


def test_public_lookup_by_link(survey):
    resp = client.get(f"/api/surveys/{survey.unique_link_id}")
    assert resp.status_code == 200
    assert resp.json() == {
        "id": survey.id,
        "title": "How did we do?",
        "require_name": False,
        "is_active": True,
    }


def test_public_lookup_unknown_link():
    assert client.get("/api/surveys/zzzzzzzz").status_code == 404


def test_list_hides_bots_by_default(db, survey):
    _seed(db, survey)
    resp = client.get(f"/api/surveys/{survey.id}/responses")
    assert resp.status_code == 200
    rows = resp.json()["responses"]
    assert len(rows) == 3
    assert all(not r["is_suspected_bot"] for r in rows)
    # newest first
    assert [r["answer_value"] for r in rows] == ["no", "yes", "yes"]
    assert "ip_address" not in rows[0]

    with_bots = client.get(f"/api/surveys/{survey.id}/responses", params={"include_bots": "true"})
    assert len(with_bots.json()["responses"]) == 4


def test_summary_counts_humans(db, survey):
    _seed(db, survey)
    resp = client.get(f"/api/surveys/{survey.id}/summary")
    assert resp.status_code == 200
    assert resp.json() == {
        "survey_id": survey.id,
        "total": 3,
        "suspected_bots": 1,
        "answers": {"yes": 2, "no": 1},
    }


def test_owner_endpoints_check_api_key(monkeypatch, survey):
    monkeypatch.setenv("API_KEY", "ownerkey")
    assert client.get(f"/api/surveys/{survey.id}/responses").status_code == 401
    assert client.get(f"/api/surveys/{survey.id}/summary", headers={"X-API-Key": "wrong"}).status_code == 401
    ok = client.get(f"/api/surveys/{survey.id}/summary", headers={"X-API-Key": "ownerkey"})
    assert ok.status_code == 200


def test_owner_endpoints_unknown_survey():
    assert client.get("/api/surveys/missing/responses").status_code == 404
    assert client.get("/api/surveys/missing/summary").status_code == 404
