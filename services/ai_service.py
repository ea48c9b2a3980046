"""
OpenAI-backed helpers: complaint triage, alumni matching, district insights
and English/Kannada translation.

Every helper returns a fixed fallback instead of raising, so callers never
have to handle AI failures. There is no retry.
"""
import json
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from core.logger import logger
import config


_client: Optional[AsyncOpenAI] = None


def get_openai_client() -> AsyncOpenAI:
    """Lazily build the shared client. Raises RuntimeError when no API key is configured."""
    global _client
    if _client is None:
        if not config.OPENAI_API_KEY:
            raise RuntimeError("OPENAI_API_KEY is not set")
        _client = AsyncOpenAI(api_key=config.OPENAI_API_KEY, timeout=config.OPENAI_TIMEOUT)
    return _client


async def openai_chat(prompt: str, json_mode: bool = False) -> str:
    """Single-turn chat completion; returns the message content (may be empty)."""
    kwargs = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    resp = await get_openai_client().chat.completions.create(
        model=config.OPENAI_MODEL,
        messages=[{"role": "user", "content": prompt}],
        **kwargs
    )
    return resp.choices[0].message.content or ""


def complaint_analysis_fallback(category: str) -> Dict[str, Any]:
    return {
        "priority": "medium",
        "suggestedCategory": category,
        "sentiment": "neutral",
        "keyIssues": ["Could not analyze with AI"],
        "recommendedActions": ["Manual review required"],
        "summary": "AI analysis unavailable",
    }


def alumni_matches_fallback(category: str) -> Dict[str, Any]:
    return {
        "suggestedAlumni": [],
        "relevanceScores": {},
        "recommendedExpertiseAreas": [category],
        "queryClassification": category,
    }


INSIGHTS_FALLBACK = "Unable to generate insights at this time. Please try again later."


def _json_object(reply: str) -> Dict[str, Any]:
    """Parse a JSON-mode reply; anything but an object is an error."""
    parsed = json.loads(reply or "{}")
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


async def analyze_complaint(title: str, description: str, category: str) -> Dict[str, Any]:
    """Priority, sentiment, key issues and recommended actions for a complaint."""
    prompt = (
        "You are assisting Karnataka's education department. Analyze this complaint "
        "and answer in JSON with keys priority (high|medium|low), suggestedCategory, "
        "sentiment (negative|neutral|positive), keyIssues (up to 3), "
        "recommendedActions (up to 3) and summary (one sentence).\n\n"
        f"Title: {title}\nDescription: {description}\nCategory: {category}"
    )
    try:
        return _json_object(await openai_chat(prompt, json_mode=True))
    except Exception as e:
        logger.error(f"OpenAI complaint analysis failed: {e}")
        return complaint_analysis_fallback(category)


async def find_alumni_matches(
    question_title: str,
    question_details: str,
    category: str,
    available_alumni: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """Rank alumni (serialized dicts) for a student's question."""
    alumni_text = "\n".join(
        f"Alumni ID: {a['id']}, Expertise: {', '.join(a.get('expertiseAreas') or [])}, "
        f"Occupation: {a.get('currentOccupation')}"
        for a in available_alumni
    )
    prompt = (
        "Match this student question with the most suitable alumni. Answer in JSON with "
        "keys suggestedAlumni (up to 3 alumni IDs), relevanceScores (alumni ID -> 0-100), "
        "recommendedExpertiseAreas and queryClassification.\n\n"
        f"Question Title: {question_title}\nQuestion Details: {question_details}\n"
        f"Category: {category}\n\nAvailable Alumni:\n{alumni_text}"
    )
    try:
        return _json_object(await openai_chat(prompt, json_mode=True))
    except Exception as e:
        logger.error(f"OpenAI alumni matching failed: {e}")
        return alumni_matches_fallback(category)


async def generate_district_insights(district_name: str, stats: Dict[str, Any]) -> str:
    """A short paragraph of actionable observations on a district's rollup."""
    prompt = (
        "Give 3-5 sentences of actionable insights on this Karnataka district's school "
        "complaint data: performance, areas of concern, and recommendations.\n\n"
        f"District: {district_name}\n"
        f"Total Schools: {stats.get('totalSchools')}\n"
        f"Total Complaints: {stats.get('totalComplaints')}\n"
        f"Resolved Complaints: {stats.get('resolvedComplaints')}\n"
        f"Pending Complaints: {stats.get('pendingComplaints')}\n"
        f"Average Resolution Time: {stats.get('avgResolutionTime')} days\n"
        f"Top Categories: {json.dumps(stats.get('topCategories'))}"
    )
    try:
        return await openai_chat(prompt) or "Unable to generate insights at this time."
    except Exception as e:
        logger.error(f"OpenAI district insights failed: {e}")
        return INSIGHTS_FALLBACK


async def translate_text(text: str, target_language: str) -> str:
    """Translate between English ("en") and Kannada ("kn"). Returns the input on failure."""
    direction = "Kannada to English" if target_language == "en" else "English to Kannada"
    prompt = (
        f"Translate the following text from {direction}. "
        f"Reply with the translation only.\n\nText: {text}"
    )
    try:
        return await openai_chat(prompt) or text
    except Exception as e:
        logger.error(f"OpenAI translation failed: {e}")
        return text
