"""
Insight Service - Short motivational feedback on recent work.

The text comes from a third-party text generation API. The calendar never
depends on it: any failure is logged and replaced with a fixed message.
"""

import asyncio
import json
import logging
from typing import Awaitable, Callable, Iterable, List, Optional

import requests

from worklog.domain.errors import ExternalServiceFailure
from worklog.domain.models import WorkEntry

logger = logging.getLogger(__name__)

NO_ENTRIES_MESSAGE = "Start logging your hours to get AI insights!"
EMPTY_REPLY_MESSAGE = "Keep up the great work!"
FALLBACK_MESSAGE = "Your work schedule looks solid. Stay focused!"

RECENT_ENTRY_LIMIT = 7

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

PROMPT_TEMPLATE = """
Analyze my recent work log and provide a short, motivating 2-sentence feedback:
{entries}

Rules:
- Keep it under 200 characters.
- Be professional yet encouraging.
- Focus on consistency and productivity.
"""

TextGenerator = Callable[[str], Awaitable[str]]


def recent_entries(entries: Iterable[WorkEntry], limit: int = RECENT_ENTRY_LIMIT) -> List[WorkEntry]:
    """The `limit` most recent entries, oldest first"""
    ordered = sorted(entries, key=lambda e: e.date)
    return ordered[-limit:] if limit > 0 else []


def build_prompt(entries: Iterable[WorkEntry]) -> str:
    records = [entry.to_record() for entry in recent_entries(entries)]
    return PROMPT_TEMPLATE.format(entries=json.dumps(records))


class InsightService:
    """
    Requests a one or two sentence insight for the latest entries.

    A custom async `generate(prompt) -> str` can be injected; by default the
    Gemini generateContent REST endpoint is called.
    """

    def __init__(self, api_key: Optional[str] = None,
                 model: str = "gemini-3-flash-preview",
                 timeout: float = 15.0,
                 generate: Optional[TextGenerator] = None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._generate = generate or self._call_gemini

    @classmethod
    def from_settings(cls, settings) -> 'InsightService':
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.insight_model,
            timeout=settings.insight_timeout_seconds
        )

    async def get_insight(self, entries: Iterable[WorkEntry]) -> str:
        """
        Get insight text for the given entries.

        Never raises: an empty log short-circuits to a prompt to start
        logging, and failed calls return FALLBACK_MESSAGE.
        """
        entries = list(entries)
        if not entries:
            return NO_ENTRIES_MESSAGE

        prompt = build_prompt(entries)
        try:
            text = await asyncio.wait_for(self._generate(prompt), timeout=self.timeout)
            text = "" if text is None else str(text).strip()
        except asyncio.TimeoutError:
            logger.warning("Insight request timed out after %.1fs", self.timeout)
            return FALLBACK_MESSAGE
        except Exception as e:
            logger.warning("Insight request failed: %s", e)
            return FALLBACK_MESSAGE

        return text or EMPTY_REPLY_MESSAGE

    async def _call_gemini(self, prompt: str) -> str:
        """Run the blocking HTTP call in a worker thread"""
        return await asyncio.to_thread(self._post_generate_content, prompt)

    def _post_generate_content(self, prompt: str) -> str:
        if not self.api_key:
            raise ExternalServiceFailure("No Gemini API key configured (WORKLOG_GEMINI_API_KEY)")

        url = GEMINI_ENDPOINT.format(model=self.model)
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        logger.debug("Requesting insight from %s", url)
        try:
            response = requests.post(
                url,
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ExternalServiceFailure(f"Gemini request failed: {e}") from e

        if response.status_code != 200:
            raise ExternalServiceFailure(
                f"Gemini API error {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
            parts = data["candidates"][0]["content"].get("parts", [])
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ExternalServiceFailure("Gemini returned an unexpected response shape") from e

        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
