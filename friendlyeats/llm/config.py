from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class LLMConfig:
    """Settings for the one-sentence review summary."""

    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    timeout: float = float(os.getenv("FRIENDLYEATS_SUMMARY_TIMEOUT", "10"))
    # A single sentence never needs more than this.
    max_tokens: int = 96
    temperature: float = 0.3
    enabled: bool = _env_flag("FRIENDLYEATS_SUMMARY_ENABLED", True)


DEFAULT_LLM_CONFIG = LLMConfig()
