"""Tests for the HTTP layer."""

import pytest

from conftest import REACT_QUESTIONS
from question_bank import generate_questions


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "sandbox": "local"}


@pytest.mark.asyncio
async def test_questions_endpoint(client):
    resp = await client.post("/api/questions", json={"type": "skill", "topic": "react"})
    assert resp.status_code == 200
    assert resp.json()["questions"] == generate_questions("skill", "react")


@pytest.mark.asyncio
async def test_questions_endpoint_uses_resume_for_hr(client):
    resp = await client.post(
        "/api/questions",
        json={"type": "hr", "topic": "behavioral", "resumeText": "Kubernetes platform engineer running Kubernetes clusters"},
    )
    assert resp.status_code == 200
    assert "kubernetes" in resp.json()["questions"][0]


@pytest.mark.asyncio
async def test_questions_endpoint_rejects_unknown_type(client):
    resp = await client.post("/api/questions", json={"type": "trivia", "topic": "react"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_evaluate_requires_ten_questions(client):
    resp = await client.post(
        "/api/evaluate",
        json={"type": "skill", "topic": "react", "questions": REACT_QUESTIONS, "answers": []},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_evaluate_returns_camel_case_report(client):
    payload = {
        "type": "skill",
        "topic": "react",
        "questions": generate_questions("skill", "react"),
        "answers": [{"transcript": "", "speechMetrics": {"clarityScore": 0}}] * 10,
        "durationSec": 420,
        "proctoringSignals": {"tabSwitches": 1},
    }
    resp = await client.post("/api/evaluate", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert body["overallScore"] == 0
    assert body["unansweredCount"] == 10
    assert body["durationSec"] == 420
    assert len(body["questionBreakdown"]) == 10
    assert body["questionBreakdown"][0]["status"] == "unanswered"
    assert "eyeContact" in body["breakdown"]


@pytest.mark.asyncio
async def test_grade_code_unsupported_language(client):
    resp = await client.post(
        "/api/grade-code",
        json={
            "code": "function solve(nums) { return [...new Set(nums)]; }",
            "language": "javascript",
            "questionIndex": 3,
            "questionText": "Write solve(nums) that returns a deduplicated array.",
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 0
    assert body["questionNumber"] == 4
    assert body["testPassPercent"] == 0


@pytest.mark.asyncio
async def test_score_theory_empty_answer(client):
    resp = await client.post("/api/score-theory", json={"question": "Explain closures", "answer": {"transcript": "  "}})
    assert resp.status_code == 200
    assert resp.json()["status"] == "unanswered"
    assert resp.json()["score"] == 0


@pytest.mark.asyncio
async def test_grade_code_accepts_unknown_language_and_null_note(client):
    resp = await client.post(
        "/api/grade-code",
        json={
            "code": "func solve(nums []int) []int { return nums }",
            "language": "go",
            "questionIndex": 3,
            "questionText": "Write solve(nums) that returns a deduplicated array.",
            "complexityNote": None,
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 0
    assert "validates only Python" in body["feedback"][0]


@pytest.mark.asyncio
async def test_evaluate_accepts_null_transcripts(client):
    payload = {
        "type": "skill",
        "topic": "react",
        "questions": generate_questions("skill", "react"),
        "answers": [{"transcript": None, "speechMetrics": None}] * 10,
    }
    resp = await client.post("/api/evaluate", json=payload)
    assert resp.status_code == 200
    assert resp.json()["unansweredCount"] == 10
