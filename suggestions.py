"""
💡 SUGGESTIONS - Best-effort AI hints for form fields
=====================================================
Asks a chat-completions API for short lists (school names, subjects,
room types...). If anything goes wrong you just get an empty list and
the form keeps working.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from config import Settings


logger = logging.getLogger(__name__)

_BULLET = re.compile(r"^[-*•]\s*")


def parse_suggestions(content: str) -> List[str]:
    """
    Reply text -> list of suggestions.
    Accepts a JSON array, a JSON object with a "suggestions" array,
    or plain lines (bullets stripped).
    """
    try:
        parsed = json.loads(content)
    except (TypeError, ValueError):
        parsed = None

    if isinstance(parsed, dict):
        parsed = parsed.get("suggestions")
    if isinstance(parsed, list):
        return [str(item).strip() for item in parsed if str(item).strip()]

    lines = (content or "").split("\n")
    cleaned = [_BULLET.sub("", line.strip()).strip() for line in lines if line.strip()]
    return [item for item in cleaned if item]


class SuggestionClient:
    def __init__(self, settings: Settings):
        self.api_url = settings.groq_api_url
        self.api_key = settings.groq_api_key
        self.model = settings.groq_model
        self.timeout = settings.suggestion_timeout

    def _payload(self, prompt: str, context: Optional[Dict[str, Any]], kind: str) -> dict:
        user_content = prompt
        if context:
            user_content = f"{prompt} Context: {json.dumps(context)}"
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": (
                        "You are an AI assistant specialized in school management setup. "
                        f"Generate relevant suggestions for {kind}. Respond with a JSON array "
                        "of options. Keep suggestions practical and region-appropriate."
                    ),
                },
                {"role": "user", "content": user_content},
            ],
            "temperature": 0.7,
            "max_tokens": 500,
        }

    def suggest(self, prompt: str, context: Optional[Dict[str, Any]] = None, kind: str = "general") -> List[str]:
        """Suggestions for a prompt, or [] if the service is unavailable."""
        if not self.api_key:
            logger.warning("GROQ_API_KEY is not configured; no suggestions for %s", kind)
            return []
        try:
            response = requests.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=self._payload(prompt, context, kind),
                timeout=self.timeout,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except requests.RequestException as e:
            logger.error("Error getting suggestions: %s", e)
            return []
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected suggestion response: %s", e)
            return []
        return parse_suggestions(content)

    def school_names(self, location: Optional[str] = None) -> List[str]:
        where = f"for schools in {location}" if location else ""
        prompt = (
            f"Generate 5 professional school name suggestions {where}. "
            "Include various types like Public School, High School, Academy, etc."
        )
        return self.suggest(prompt, {"location": location}, "school_names")

    def subjects(self, grade: Optional[str] = None, school_type: Optional[str] = None) -> List[str]:
        prompt = (
            f"Generate subject suggestions for {grade or 'general'} grade in "
            f"{school_type or 'general'} school. Include core and optional subjects."
        )
        return self.suggest(prompt, {"grade": grade, "schoolType": school_type}, "subjects")

    def events(self, event_type: Optional[str] = None, month: Optional[str] = None) -> List[str]:
        when = f"in {month}" if month else ""
        prompt = (
            f"Generate academic calendar events for {event_type or 'school'} {when}. "
            "Include holidays, exams, activities, etc."
        )
        return self.suggest(prompt, {"eventType": event_type, "month": month}, "events")

    def room_types(self, school_type: Optional[str] = None) -> List[str]:
        prompt = (
            f"Generate room types for {school_type or 'general'} school infrastructure. "
            "Include classrooms, labs, facilities, etc."
        )
        return self.suggest(prompt, {"schoolType": school_type}, "room_types")

    def class_names(self, grade: Optional[str] = None, school_type: Optional[str] = None) -> List[str]:
        prompt = (
            f"Generate class/section names for {grade or 'general'} grade in "
            f"{school_type or 'general'} school. Include section naming conventions."
        )
        return self.suggest(prompt, {"grade": grade, "schoolType": school_type}, "class_names")
