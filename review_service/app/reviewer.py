"""
reviewer.py — one review request, start to finish.

Validating → Building Prompt → Calling Provider → Extracting Text → Succeeded | Failed(kind)
Nothing is kept between calls.
"""
import logging
import re

from .config import GEMINI_MODEL
from .errors import (
    ContentPolicyError,
    EmptyResponseError,
    ReviewValidationError,
    classify_error,
    error_for,
)
from .extraction import dump_response, extract_text, get_prompt_feedback
from .logging_setup import safe_for_log
from .models import ReviewRequest, ReviewResult
from .prompts import build_prompt
from .validation import validate_review_input

logger = logging.getLogger("ReviewService")

_WHITESPACE = re.compile(r"\s")


def count_characters(text: str) -> int:
    """Non-whitespace character count, the unit the 380–420 target is measured in."""
    return len(_WHITESPACE.sub("", text))


async def generate_review(req: ReviewRequest, client, debug: bool = False) -> ReviewResult:
    """
    Input: a ReviewRequest and anything with `async generate(prompt)`
    Output: ReviewResult, or raises a ReviewServiceError subclass
    """
    # ── VALIDATING ────────────────────────────────────────────────
    violations = validate_review_input(req.title, req.author, req.focus)
    if violations:
        logger.info(f"Rejected review request: {violations}")
        raise ReviewValidationError(violations)

    # ── BUILDING PROMPT ───────────────────────────────────────────
    prompt = build_prompt(req.title, req.author, req.focus)
    logger.info(f"Generating review for: {safe_for_log(req.title)}")

    # ── CALLING PROVIDER ──────────────────────────────────────────
    try:
        result = await client.generate(prompt)
    except Exception as e:
        kind = classify_error(e)
        logger.exception(f"Gemini call failed ({kind.value}): {safe_for_log(e, limit=500)}")
        raise error_for(e) from e

    if debug:
        logger.debug(f"Full response: {dump_response(result)}")

    # Prompt feedback means the input itself was blocked — a client problem, not ours
    feedback = get_prompt_feedback(result)
    if feedback:
        logger.error(f"Prompt feedback: {feedback}")
        raise ContentPolicyError.from_prompt_feedback(feedback)

    # ── EXTRACTING TEXT ───────────────────────────────────────────
    text = extract_text(result)
    if not text or not text.strip():
        logger.error("Empty response from Gemini API")
        logger.error(f"Response structure: {dump_response(result)}")
        raise EmptyResponseError(details="Gemini APIから有効なテキストが返されませんでした")

    char_count = count_characters(text)
    logger.info(f"Generated {char_count} characters")

    return ReviewResult(
        text=text.strip(),
        character_count=char_count,
        model_identifier=getattr(client, "model_name", GEMINI_MODEL),
        search_used=getattr(client, "search_enabled", True),
    )
