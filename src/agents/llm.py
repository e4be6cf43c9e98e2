"""
Shared LLM plumbing: Gemini model construction and strict output parsing.

DESIGN DECISION: When we ask an LLM for structured data we validate the
WHOLE response against a Pydantic schema. We never dig a JSON-looking
substring out of surrounding prose. If the output does not match the
schema exactly, the caller falls back to its local rules.
"""

import re
from typing import Optional, TypeVar

import google.generativeai as genai
from pydantic import BaseModel, ValidationError

from src.config import GeminiSettings

M = TypeVar("M", bound=BaseModel)

# A response that is nothing but one fenced block.
_WHOLE_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


class MalformedOutputError(ValueError):
    """LLM output did not match the expected schema."""
    pass


def build_gemini_model(
    settings: GeminiSettings,
    *,
    temperature: float,
    max_output_tokens: int,
    json_output: bool = False,
    system_instruction: Optional[str] = None,
) -> Optional["genai.GenerativeModel"]:
    """
    Configure Google Generative AI and build a model.

    Returns None when no API key is configured, so callers can go
    straight to their local fallback.
    """
    if not settings.is_configured:
        return None

    genai.configure(api_key=settings.api_key)
    generation_config = {
        "temperature": temperature,
        "max_output_tokens": max_output_tokens,
    }
    if json_output:
        generation_config["response_mime_type"] = "application/json"

    return genai.GenerativeModel(
        model_name=settings.model_name,
        generation_config=generation_config,
        system_instruction=system_instruction,
    )


def parse_structured_output(text: str, schema: type[M]) -> M:
    """
    Validate an LLM response against a schema.

    The response may be wrapped in a single markdown code fence and
    nothing else; any other surrounding text is a mismatch.

    Raises:
        MalformedOutputError: If the response does not match the schema
    """
    if text is None:
        raise MalformedOutputError("Empty response")

    cleaned = text.strip()
    fenced = _WHOLE_FENCE.fullmatch(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()

    if not cleaned:
        raise MalformedOutputError("Empty response")

    try:
        return schema.model_validate_json(cleaned)
    except ValidationError as e:
        raise MalformedOutputError(
            f"Response does not match {schema.__name__}: {e.error_count()} errors"
        ) from e
