from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

import google.generativeai as genai
import requests
from google.api_core import exceptions as google_exceptions

from .dates import day_name
from .emotions import emotion_profile
from .models import SOURCE_AI, MoodSample, Recommendation, RecommendationContext
from .techniques import TECHNIQUES, Technique

logger = logging.getLogger(__name__)

ANTHROPIC_ENDPOINT = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"
LOCAL_ENDPOINT = "http://localhost:1234/v1/chat/completions"

PROVIDERS = ("anthropic", "gemini", "openai", "local")

JOURNAL_PROMPT_MAX_WORDS = 20


@dataclass(frozen=True)
class AISettings:
    provider: str = "anthropic"
    api_key: str = ""
    model: str = "claude-sonnet-4-20250514"
    endpoint: str = ""
    timeout_seconds: float = 30.0
    max_tokens: int = 500

    @property
    def is_configured(self) -> bool:
        if self.provider not in PROVIDERS or not self.model.strip():
            return False
        if self.provider == "local":
            return True
        return bool(self.api_key.strip())


@dataclass(frozen=True)
class AIResult:
    text: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None

    @classmethod
    def success(cls, text: str) -> "AIResult":
        return cls(text=text)

    @classmethod
    def failure(cls, error: str) -> "AIResult":
        return cls(error=error)


class AIRecommendationClient:
    """Single-shot access to a remote language model.

    ``complete`` never raises for transport or provider problems; they come
    back as ``AIResult.failure`` so callers can branch on the result.
    """

    def __init__(self, settings: AISettings):
        self.settings = settings

    def is_configured(self) -> bool:
        return self.settings.is_configured

    def complete(self, prompt: str) -> AIResult:
        if not prompt.strip():
            return AIResult.failure("Prompt cannot be empty.")
        if not self.is_configured():
            return AIResult.failure("AI provider is not configured.")

        provider = self.settings.provider
        try:
            if provider == "anthropic":
                text = self._call_anthropic(prompt)
            elif provider == "gemini":
                text = self._call_gemini(prompt)
            else:
                text = self._call_openai_style(prompt)
        except RuntimeError as exc:
            logger.warning("AI request via %s failed: %s", provider, exc)
            return AIResult.failure(str(exc))
        except Exception as exc:
            # SDK auth errors, header encoding errors and the like
            logger.warning("AI request via %s failed unexpectedly: %r", provider, exc)
            return AIResult.failure(f"{type(exc).__name__}: {exc}")
        return AIResult.success(text)

    def _call_anthropic(self, prompt: str) -> str:
        settings = self.settings
        payload = {
            "model": settings.model.strip(),
            "max_tokens": settings.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": settings.api_key.strip(),
            "anthropic-version": ANTHROPIC_VERSION,
        }
        data = _http_post_json(
            settings.endpoint.strip() or ANTHROPIC_ENDPOINT,
            payload,
            headers=headers,
            timeout=settings.timeout_seconds,
        )
        return _extract_anthropic_text(data)

    def _call_gemini(self, prompt: str) -> str:
        settings = self.settings
        try:
            genai.configure(api_key=settings.api_key.strip())
            model = genai.GenerativeModel(settings.model.strip())
            response = model.generate_content(
                prompt,
                generation_config={
                    "temperature": 0.2,
                    "max_output_tokens": settings.max_tokens,
                    "response_mime_type": "application/json",
                },
                request_options={"timeout": settings.timeout_seconds},
            )
            text = response.text
        except google_exceptions.GoogleAPIError as exc:
            raise RuntimeError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            # response.text raises when the candidate was blocked or empty
            raise RuntimeError(f"Gemini response did not include text output: {exc}") from exc
        if not isinstance(text, str) or not text.strip():
            raise RuntimeError("Gemini response did not include text output.")
        return text

    def _call_openai_style(self, prompt: str) -> str:
        settings = self.settings
        payload = {
            "model": settings.model.strip(),
            "temperature": 0.2,
            "max_tokens": settings.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if settings.provider == "openai":
            payload["response_format"] = {"type": "json_object"}
        data = _http_post_json(
            _resolve_openai_endpoint(settings.provider, settings.endpoint),
            payload,
            headers=_auth_headers(settings.api_key),
            timeout=settings.timeout_seconds,
        )
        return _extract_openai_text(data)


def build_recommendation_prompt(context: RecommendationContext) -> str:
    mood = context.mood
    profile = emotion_profile(mood.emotion)
    effectiveness = {
        technique.value: (stats.to_dict() if stats is not None else None)
        for technique, stats in context.effectiveness.items()
    }
    recent = [session.to_dict() for session in context.recent_sessions]

    return (
        "You are a breathing exercise advisor for a mindfulness app called \"Aiding Mindfulness\".\n"
        "\n"
        "Current Context:\n"
        f"- Mood: {mood.emotion.value} (intensity: {mood.intensity}/10)\n"
        f"- Arousal: {profile.arousal.value}, valence: {profile.valence.value}\n"
        f"- Emotional state: {profile.context}\n"
        f"- Time: {context.time_of_day.replace('_', ' ')} ({day_name(context.day_of_week)})\n"
        f"- Sessions completed: {context.total_sessions}\n"
        f"- Current streak: {context.current_streak} days\n"
        f"- Recent patterns: {json.dumps(context.patterns.to_dict(), indent=2)}\n"
        f"- What's worked before: {json.dumps(effectiveness, indent=2)}\n"
        f"- Last 7 days: {json.dumps(recent)}\n"
        "\n"
        "Available Techniques:\n"
        f"{_technique_catalog()}\n"
        "\n"
        "Recommendation Rules:\n"
        "- Consider their current emotional state AND intensity, arousal and valence\n"
        "- Respect contraindications: never pair a very-low arousal state (numb, tired) with 4-7-8, "
        "its long active exhale deepens low-arousal states\n"
        "- Factor in time of day (e.g., coherent better for morning routine, 4-7-8 for bedtime)\n"
        "- Use past effectiveness data - if a technique consistently works for them in this state, prioritize it\n"
        "- Detect patterns (e.g., \"stressed every Monday afternoon\" -> proactive recommendation)\n"
        "- Balance variety and what works (don't always recommend the same technique)\n"
        "- For first-time users, start with the technique that matches mood best\n"
        "\n"
        "Return ONLY valid JSON (no markdown, no explanation):\n"
        "{\n"
        "  \"technique\": \"4-7-8\" | \"box\" | \"coherent\",\n"
        "  \"reasoning\": \"One clear sentence why this is best right now\",\n"
        "  \"personalNote\": \"One sentence connecting to their history or patterns "
        "(or encouraging note for first session)\",\n"
        "  \"confidence\": integer from 0 to 100\n"
        "}"
    )


def _technique_catalog() -> str:
    lines: list[str] = []
    for index, (technique, profile) in enumerate(TECHNIQUES.items(), start=1):
        minutes = profile.duration_seconds // 60
        lines.append(
            f"{index}. {profile.name} [{technique.value}] ({minutes} min, {profile.cycles} cycles)"
        )
        lines.append(f"   - Best for: {', '.join(profile.best_for)}")
        lines.append(f"   - Mechanism: {profile.mechanism}")
        lines.append(f"   - Evidence: {profile.evidence}")
        lines.append(f"   - Contraindications: {profile.contraindications}")
    return "\n".join(lines)


def build_journal_prompt(
    mood_before: MoodSample,
    mood_after: MoodSample,
    technique: Technique,
    time_of_day: str,
    recent_themes: list[str] | None = None,
) -> str:
    improvement = mood_before.intensity - mood_after.intensity
    direction = "improved" if improvement > 0 else "worsened" if improvement < 0 else "unchanged"
    themes = ", ".join(theme for theme in (recent_themes or []) if theme.strip()) or "First session"
    return (
        "You are a trauma-informed, compassionate journal prompt generator for a mindfulness app.\n"
        "\n"
        "SESSION CONTEXT:\n"
        f"- Emotion BEFORE: {mood_before.emotion.value} (intensity {mood_before.intensity}/10)\n"
        f"- Emotion AFTER: {mood_after.emotion.value} (intensity {mood_after.intensity}/10)\n"
        f"- Mood change: {direction} by {abs(improvement)} points\n"
        f"- Breathing technique: {technique.value}\n"
        f"- Time of day: {time_of_day.replace('_', ' ')}\n"
        f"- Recent journal themes: {themes}\n"
        "\n"
        "Guidelines:\n"
        "- If the mood improved, acknowledge the shift and explore what helped.\n"
        "- If it did not, validate the difficulty without toxic positivity.\n"
        "- Low arousal states get gentle exploration; positive states get savoring.\n"
        "- Offer choice and autonomy, avoid judgment language (\"should\", \"need to\").\n"
        f"- Maximum {JOURNAL_PROMPT_MAX_WORDS} words, one clear question or invitation.\n"
        "\n"
        "Return ONLY valid JSON (no markdown, no backticks):\n"
        "{\"prompt\": \"...\", \"isOptional\": true}"
    )


def fallback_journal_prompt(mood_before: MoodSample, mood_after: MoodSample) -> str:
    improvement = mood_before.intensity - mood_after.intensity
    after = emotion_profile(mood_after.emotion)
    if improvement <= 0:
        return "What might you need beyond breathing right now?"
    if after.valence.value == "positive":
        return "What are you savoring in this calmer moment?"
    if after.arousal.is_low:
        return "What would being gentle with yourself look like right now?"
    if improvement >= 6:
        return "What does this relief tell you about what you needed?"
    return "What small thing shifted during your practice?"


def normalize_journal_prompt(data: Mapping[str, Any]) -> str | None:
    prompt = str(data.get("prompt") or "").strip()
    if not prompt or len(prompt.split()) > JOURNAL_PROMPT_MAX_WORDS:
        return None
    return prompt


def normalize_recommendation(data: Any) -> Recommendation | None:
    if not isinstance(data, Mapping):
        return None
    try:
        technique = Technique(str(data.get("technique", "")).strip().lower())
    except ValueError:
        return None

    reasoning = str(data.get("reasoning") or "").strip()
    if not reasoning:
        return None
    personal_note = str(data.get("personalNote") or "").strip()

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return None
    if isinstance(confidence, float) and not confidence.is_integer():
        return None
    if not 0 <= confidence <= 100:
        return None

    return Recommendation(
        technique=technique,
        reasoning=reasoning,
        personal_note=personal_note,
        confidence=int(confidence),
        source=SOURCE_AI,
    )


def _resolve_openai_endpoint(provider: str, endpoint: str) -> str:
    custom = endpoint.strip()
    if custom:
        return custom
    if provider == "local":
        return LOCAL_ENDPOINT
    return OPENAI_ENDPOINT


def _auth_headers(api_key: str) -> dict[str, str]:
    if not api_key.strip():
        return {}
    return {"Authorization": f"Bearer {api_key.strip()}"}


def _http_post_json(
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
) -> dict[str, Any]:
    try:
        response = requests.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json", **headers},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise RuntimeError(f"AI request failed: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise RuntimeError(f"AI request failed ({response.status_code}): {response.text[:500]}")

    try:
        data = response.json()
    except ValueError as exc:
        raise RuntimeError("AI provider returned non-JSON response.") from exc
    if not isinstance(data, dict):
        raise RuntimeError("AI provider returned an unexpected payload.")
    return data


def _extract_anthropic_text(data: dict[str, Any]) -> str:
    content = data.get("content")
    if not isinstance(content, list) or not content:
        raise RuntimeError("Anthropic response missing content.")
    for block in content:
        if isinstance(block, dict):
            text = block.get("text")
            if isinstance(text, str) and text.strip():
                return text
    raise RuntimeError("Anthropic response did not include text output.")


def _extract_openai_text(data: dict[str, Any]) -> str:
    choices = data.get("choices")
    first = choices[0] if isinstance(choices, list) and choices else None
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise RuntimeError("Chat completion response missing a message.")

    content = message.get("content")
    if isinstance(content, list):
        # some local servers return content parts instead of a plain string
        content = "\n".join(
            part["text"] for part in content if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
    if isinstance(content, str) and content.strip():
        return content
    raise RuntimeError("Chat completion response did not include text content.")


def parse_ai_json(text: str) -> dict[str, Any]:
    """Return the first JSON object in ``text``; models often wrap it in prose or fences."""
    trimmed = text.strip()
    if not trimmed:
        raise ValueError("AI response was empty.")
    decoder = json.JSONDecoder()
    start = trimmed.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(trimmed, start)
        except json.JSONDecodeError:
            start = trimmed.find("{", start + 1)
            continue
        return parsed
    raise ValueError("AI response did not contain a JSON object.")
