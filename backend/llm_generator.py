# LLM-based survey question generation
from __future__ import annotations
import json
import logging
from openai import OpenAI, APIConnectionError, APIStatusError, RateLimitError

import config
from errors import GenerationError
from models import QUESTION_TYPES

logger = logging.getLogger(__name__)

_client = None

def _get_client() -> OpenAI | None:
    global _client
    if _client is None and config.OPENAI_API_KEY:
        _client = OpenAI(api_key=config.OPENAI_API_KEY)
    return _client

_SYSTEM_PROMPT = (
    "You design employee feedback surveys. Output ONLY JSON of the form "
    '{"questions": [{"type": string, "text": string, "options": [string], '
    '"required": boolean, "order_index": integer}]}. '
    "type MUST be one of: multiple_choice, rating, short_text, long_text, dropdown. "
    "Include options (3-6 short labels) only for multiple_choice and dropdown. "
    "rating questions are answered on a 1-5 scale. "
    "Produce 5 to 10 questions, ordered from general to specific."
)


def generate_questions(prompt: str) -> list[dict]:
    """
    Ask the model for a question list matching `prompt`.

    Returns a list of raw question dicts (type/text/options/required/order_index).
    Raises GenerationError on a missing key, API failure, or an unusable reply;
    the message from the API is kept when there is one.
    """
    client = _get_client()
    if not client:
        raise GenerationError("AI generation is not configured")

    try:
        resp = client.chat.completions.create(
            model=config.LLM_MODEL,
            temperature=0.7,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
        data = json.loads(resp.choices[0].message.content)
    except (RateLimitError, APIStatusError) as e:
        logger.warning("question generation rejected by API: %s", e)
        raise GenerationError(getattr(e, "message", None) or "Failed to generate questions") from e
    except APIConnectionError as e:
        logger.warning("question generation could not reach API: %s", e)
        raise GenerationError("Failed to generate questions") from e
    except (json.JSONDecodeError, TypeError, IndexError) as e:
        raise GenerationError("Generator returned invalid JSON") from e

    return parse_generated(data)


def parse_generated(data) -> list[dict]:
    """Check the generator payload shape and return its question list."""
    questions = data.get("questions") if isinstance(data, dict) else None
    return check_questions(questions)


def check_questions(questions) -> list[dict]:
    """Reject generated question lists the builder could not turn into drafts."""
    if not isinstance(questions, list) or not questions:
        raise GenerationError("Generator returned no questions")
    for i, q in enumerate(questions):
        n = i + 1
        if not isinstance(q, dict):
            raise GenerationError(f"Generated question {n} is malformed")
        if q.get("type") not in QUESTION_TYPES:
            raise GenerationError(f"Generated question {n} has unknown type {q.get('type')!r}")
        if not isinstance(q.get("text"), str):
            raise GenerationError(f"Generated question {n} has no text")
        if "required" in q and not isinstance(q["required"], bool):
            raise GenerationError(f"Generated question {n} has a non-boolean required flag")
        options = q.get("options")
        if options is not None and not (isinstance(options, list) and all(isinstance(o, str) for o in options)):
            raise GenerationError(f"Generated question {n} has malformed options")
    return questions
