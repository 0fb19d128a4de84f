"""Prompt validation and API key masking."""

from __future__ import annotations

MAX_PROMPT_LENGTH = 4000


def validate_prompt(prompt: object, max_length: int = MAX_PROMPT_LENGTH) -> str:
    """Return the stripped prompt, or raise ValueError if empty or too long."""
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValueError("Prompt is required")
    if len(prompt) > max_length:
        raise ValueError(f"Prompt too long (max {max_length} characters)")
    return prompt.strip()


def mask_api_key(api_key: str) -> str:
    """Keep the first three and last four characters of a key."""
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:3]}...{api_key[-4:]}"
