"""
Thin wrapper around the Groq SDK.

All chat calls run in JSON mode with a bounded timeout. Provider failures are
translated into ``EvaluationUnavailable`` so callers only deal with one error
type whose ``kind`` says whether a retry makes sense.
"""
import json
import logging
import re

import groq
from django.conf import settings

from .exceptions import EvaluationUnavailable

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def get_client():
    if not settings.GROQ_API_KEY:
        logger.error("GROQ_API_KEY is not set; AI features are unavailable.")
        raise EvaluationUnavailable(EvaluationUnavailable.UNAVAILABLE)
    return groq.Groq(
        api_key=settings.GROQ_API_KEY,
        timeout=settings.AI_TIMEOUT_SECONDS,
        max_retries=settings.AI_MAX_RETRIES,
    )


def translate_error(exc, error_class=EvaluationUnavailable):
    """Map a Groq SDK exception onto the retryable domain error."""
    if isinstance(exc, groq.APITimeoutError):
        return error_class(error_class.TIMEOUT)
    if isinstance(exc, groq.RateLimitError):
        return error_class(error_class.QUOTA, "The AI service quota was exceeded. Please try again shortly.")
    return error_class(error_class.UNAVAILABLE)


def complete_json(system, prompt, max_tokens=2000, temperature=0.2):
    """Run one JSON-mode chat completion and return the decoded object."""
    client = get_client()
    try:
        response = client.chat.completions.create(
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            model=settings.GROQ_MODEL,
            response_format={"type": "json_object"},
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except groq.GroqError as e:
        logger.error(f"Groq chat completion failed: {str(e)}")
        raise translate_error(e) from e

    content = response.choices[0].message.content or ""
    return parse_json_content(content)


def parse_json_content(content):
    cleaned = content.strip()
    fenced = _FENCE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        try:
            # Raw control characters inside strings are the usual culprit
            parsed = json.loads(re.sub(r"[\x00-\x1F\x7F]", " ", cleaned))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse Groq response: {content[:500]}")
            raise EvaluationUnavailable(EvaluationUnavailable.MALFORMED) from e

    if not isinstance(parsed, dict):
        logger.warning(f"Groq response is not a JSON object: {content[:500]}")
        raise EvaluationUnavailable(EvaluationUnavailable.MALFORMED)
    return parsed
