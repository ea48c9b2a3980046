"""
AI helpers degrade to fixed fallbacks instead of raising.
"""
import asyncio

import pytest

from services import ai_service
from conftest import register


@pytest.fixture
def failing_openai(monkeypatch):
    async def boom(prompt, json_mode=False):
        raise RuntimeError("OpenAI unavailable")

    monkeypatch.setattr(ai_service, "openai_chat", boom)


@pytest.fixture
def canned_openai(monkeypatch):
    calls = []

    def install(reply):
        async def fake_chat(prompt, json_mode=False):
            calls.append({"prompt": prompt, "json_mode": json_mode})
            return reply

        monkeypatch.setattr(ai_service, "openai_chat", fake_chat)
        return calls

    return install


def run(coro):
    return asyncio.run(coro)


def test_analysis_fallback(failing_openai):
    result = run(ai_service.analyze_complaint("Roof", "Leaks", "Infrastructure"))
    assert result == ai_service.complaint_analysis_fallback("Infrastructure")
    assert result["priority"] == "medium"
    assert result["recommendedActions"] == ["Manual review required"]


def test_analysis_parses_json_reply(canned_openai):
    calls = canned_openai('{"priority": "high", "summary": "Urgent"}')
    result = run(ai_service.analyze_complaint("Roof", "Leaks", "Infrastructure"))
    assert result == {"priority": "high", "summary": "Urgent"}
    assert calls[0]["json_mode"] is True


def test_invalid_json_falls_back(canned_openai):
    canned_openai("not json")
    result = run(ai_service.analyze_complaint("Roof", "Leaks", "Infrastructure"))
    assert result["summary"] == "AI analysis unavailable"


def test_match_fallback(failing_openai):
    result = run(ai_service.find_alumni_matches("Q", "D", "Science", []))
    assert result == {
        "suggestedAlumni": [],
        "relevanceScores": {},
        "recommendedExpertiseAreas": ["Science"],
        "queryClassification": "Science",
    }


def test_match_prompt_lists_alumni(canned_openai):
    calls = canned_openai('{"suggestedAlumni": [7]}')
    alumni = [{"id": 7, "expertiseAreas": ["Medicine"], "currentOccupation": "Doctor"}]
    result = run(ai_service.find_alumni_matches("Q", "D", "Medicine", alumni))
    assert result["suggestedAlumni"] == [7]
    assert "Alumni ID: 7, Expertise: Medicine, Occupation: Doctor" in calls[0]["prompt"]


def test_insights_fallback(failing_openai):
    result = run(ai_service.generate_district_insights("Mysuru", {"totalSchools": 60}))
    assert result == ai_service.INSIGHTS_FALLBACK


def test_translation_returns_input_on_failure(failing_openai):
    assert run(ai_service.translate_text("Good morning", "kn")) == "Good morning"


def test_translation_direction(canned_openai):
    calls = canned_openai("ಶುಭೋದಯ")
    assert run(ai_service.translate_text("Good morning", "kn")) == "ಶುಭೋದಯ"
    assert "English to Kannada" in calls[0]["prompt"]


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.setattr(ai_service, "_client", None)
    monkeypatch.setattr(ai_service.config, "OPENAI_API_KEY", None)
    with pytest.raises(RuntimeError):
        ai_service.get_openai_client()


def test_insights_endpoint_requires_login(client, monkeypatch):
    async def fake_insights(district, stats):
        return f"{district} has {stats['totalComplaints']} complaints."

    monkeypatch.setattr("routers.districts.generate_district_insights", fake_insights)
    assert client.get("/api/districts/Mysuru/insights").status_code == 401

    register(client, "deo", "authority", district="Mysuru")
    resp = client.get("/api/districts/Mysuru/insights")
    assert resp.status_code == 200
    assert resp.json() == {"district": "Mysuru", "insights": "Mysuru has 0 complaints."}


@pytest.mark.parametrize("reply", ['["Infrastructure"]', '"high"', "42"])
def test_non_object_json_falls_back(canned_openai, reply):
    canned_openai(reply)
    analysis = run(ai_service.analyze_complaint("Roof", "Leaks", "Infrastructure"))
    assert analysis == ai_service.complaint_analysis_fallback("Infrastructure")

    matches = run(ai_service.find_alumni_matches("Q", "D", "Science", []))
    assert matches == ai_service.alumni_matches_fallback("Science")
