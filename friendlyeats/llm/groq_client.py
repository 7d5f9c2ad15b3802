from __future__ import annotations

import logging
from typing import Any

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

REVIEW_SEPARATOR = "@"

SYSTEM_PROMPT = (
    "You summarise restaurant reviews. "
    "Reply with exactly one sentence describing what people think of the restaurant. "
    "Do not invent details that are not in the reviews."
)


def _build_user_message(reviews: list[dict[str, Any]]) -> str:
    joined = REVIEW_SEPARATOR.join(str(r.get("text", "")) for r in reviews)
    return (
        "Based on the following restaurant reviews, "
        f"where each review is separated by a '{REVIEW_SEPARATOR}' character, "
        "create a one-sentence summary of what people think of the restaurant.\n\n"
        f"Here are the reviews: {joined}"
    )


def summarize_reviews(
    reviews: list[dict[str, Any]],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str | None:
    """
    Ask Groq for a one-sentence summary of ``reviews``.

    Returns None when the LLM is disabled or unconfigured, when there is
    nothing to summarise, or on any API failure.
    """
    if not config.enabled or not config.api_key:
        return None

    if not reviews:
        return None

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _build_user_message(reviews)},
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

        content = (response.choices[0].message.content or "").strip()
        return content or None

    except Exception:
        logger.warning("Groq review summary failed", exc_info=True)
        return None
