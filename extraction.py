import json
import logging
import re
from typing import Any, List

from openai import OpenAIError
from pydantic import ValidationError

from errors import DependencyUnavailable, ExtractionFailure
from models import ExtractedItem

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """
Analyze the following meeting transcript and extract all action items.
Return ONLY a valid JSON array of objects.
Do not include any other conversational text or markdown formatting.
Each object must have exactly these keys:
- "taskDescription" (string, the action item)
- "owner" (string, who is responsible, or null if unknown)
- "dueDate" (string, the deadline, or null if unknown)

Transcript:
\"\"\"
{transcript}
\"\"\"
"""

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def build_prompt(transcript: str) -> str:
    return PROMPT_TEMPLATE.format(transcript=transcript)


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw or "").strip()


def parse_action_items(raw: str) -> List[ExtractedItem]:
    """
    Turn raw model output into validated action items.

    The text is decoded to a plain JSON tree first and each entry is then
    checked against the three-key item shape. Any mismatch fails the whole
    extraction; partial results are never returned.
    """
    cleaned = strip_code_fences(raw)
    try:
        parsed: Any = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ExtractionFailure(f"Model response is not valid JSON: {exc}") from exc

    if not isinstance(parsed, list):
        raise ExtractionFailure(f"Expected a JSON array, got {type(parsed).__name__}")

    items = []
    for index, entry in enumerate(parsed):
        if not isinstance(entry, dict):
            raise ExtractionFailure(f"Item {index} is not an object")
        try:
            items.append(ExtractedItem.model_validate(entry))
        except ValidationError as exc:
            raise ExtractionFailure(f"Item {index} has the wrong shape: {exc}") from exc
    return items


class ActionItemExtractor:
    """Talks to an OpenAI-compatible chat completions backend."""

    def __init__(self, client, model: str, health_model: str, temperature: float = 0.2):
        self.client = client
        self.model = model
        self.health_model = health_model
        self.temperature = temperature

    def complete(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except OpenAIError as exc:
            raise DependencyUnavailable(f"LLM request failed: {exc}") from exc
        return response.choices[0].message.content or ""

    def extract(self, transcript: str) -> List[ExtractedItem]:
        raw = self.complete(build_prompt(transcript))
        items = parse_action_items(raw)
        logger.info("Extracted %d action item(s) with %s", len(items), self.model)
        return items

    def ping(self) -> None:
        """One-token request against the health model; raises on any failure."""
        self.client.chat.completions.create(
            model=self.health_model,
            messages=[{"role": "user", "content": "ping"}],
            max_tokens=1,
        )
