"""Cost calculation for OpenAI chat usage and video generation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from brand_forge.media.providers.base import VideoModelPricing
from brand_forge.media.providers.registry import get_video_provider

# USD per 1M tokens
MODEL_PRICING: dict[str, dict[str, Any]] = {
    "gpt-5.2": {"input": 1.75, "output": 14.0, "type": "text", "display_name": "GPT-5.2"},
    "gpt-5.1": {"input": 1.25, "output": 10.0, "type": "text", "display_name": "GPT-5.1"},
    "gpt-5": {"input": 1.25, "output": 10.0, "type": "text", "display_name": "GPT-5"},
    "gpt-5-mini": {"input": 0.25, "output": 2.0, "type": "text", "display_name": "GPT-5 mini"},
    "gpt-5-nano": {"input": 0.05, "output": 0.4, "type": "text", "display_name": "GPT-5 nano"},
    "gpt-4.1": {"input": 2.0, "output": 8.0, "type": "text", "display_name": "GPT-4.1"},
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60, "type": "text", "display_name": "GPT-4.1 mini"},
    "gpt-4.1-nano": {"input": 0.10, "output": 0.40, "type": "text", "display_name": "GPT-4.1 nano"},
    "gpt-4o": {"input": 2.5, "output": 10.0, "type": "text", "display_name": "GPT-4o"},
    "gpt-4o-2024-11-20": {"input": 2.5, "output": 10.0, "type": "text", "display_name": "GPT-4o"},
    "gpt-4o-2024-08-06": {"input": 2.5, "output": 10.0, "type": "text", "display_name": "GPT-4o"},
    "gpt-4o-mini": {"input": 0.15, "output": 0.6, "type": "text", "display_name": "GPT-4o mini"},
    "gpt-4o-mini-2024-07-18": {"input": 0.15, "output": 0.6, "type": "text", "display_name": "GPT-4o mini"},
    "o4-mini": {"input": 1.10, "output": 4.40, "type": "text", "display_name": "o4-mini"},
    "o3": {"input": 2.0, "output": 8.0, "type": "text", "display_name": "o3"},
    "o3-mini": {"input": 1.10, "output": 4.40, "type": "text", "display_name": "o3 mini"},
    "o1": {"input": 15.0, "output": 60.0, "type": "text", "display_name": "o1"},
    "gpt-4-turbo": {"input": 10.0, "output": 30.0, "type": "text", "display_name": "GPT-4 Turbo"},
    "gpt-4": {"input": 30.0, "output": 60.0, "type": "text", "display_name": "GPT-4"},
    "gpt-3.5-turbo": {"input": 0.5, "output": 1.5, "type": "text", "display_name": "GPT-3.5 Turbo"},
    "gpt-realtime": {"input": 4.0, "output": 16.0, "type": "voice", "display_name": "GPT Realtime"},
    "gpt-realtime-mini": {"input": 0.60, "output": 2.40, "type": "voice", "display_name": "GPT Realtime mini"},
    "gpt-4o-realtime-preview": {"input": 5.0, "output": 20.0, "type": "voice", "display_name": "GPT-4o Realtime"},
    "gpt-4o-mini-realtime-preview": {
        "input": 0.60,
        "output": 2.40,
        "type": "voice",
        "display_name": "GPT-4o mini Realtime",
    },
}

# Unknown models are priced as gpt-4o
DEFAULT_PRICING: dict[str, Any] = {"input": 2.5, "output": 10.0, "type": "text", "display_name": "Unknown Model"}


@dataclass
class CostResult:
    model: str
    display_name: str
    input_tokens: int
    output_tokens: int
    input_cost: float
    output_cost: float

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def total_cost(self) -> float:
        return self.input_cost + self.output_cost


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> CostResult:
    pricing = MODEL_PRICING.get(model, DEFAULT_PRICING)
    return CostResult(
        model=model,
        display_name=pricing["display_name"],
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        input_cost=input_tokens / 1_000_000 * pricing["input"],
        output_cost=output_tokens / 1_000_000 * pricing["output"],
    )


def format_cost(cost: float) -> str:
    """Dollar string, with more precision for sub-cent amounts."""
    if cost == 0:
        return "$0.00"
    if cost < 0.0001:
        return "<$0.0001"
    if cost < 0.01:
        return f"${cost:.4f}"
    return f"${cost:.2f}"


def format_cost_details(result: CostResult) -> str:
    return "\n".join(
        [
            f"Model: {result.display_name}",
            f"Input: {result.input_tokens:,} tokens ({format_cost(result.input_cost)})",
            f"Output: {result.output_tokens:,} tokens ({format_cost(result.output_cost)})",
            f"Total: {result.total_tokens:,} tokens ({format_cost(result.total_cost)})",
        ]
    )


def estimate_tokens(text: str) -> int:
    """Rough token count (~4 characters per token) for when usage is unavailable."""
    return math.ceil(len(text) / 4)


def get_model_display_name(model: str) -> str:
    pricing = MODEL_PRICING.get(model)
    return pricing["display_name"] if pricing else model


def is_voice_model(model: str) -> bool:
    pricing = MODEL_PRICING.get(model)
    return bool(pricing) and pricing["type"] == "voice"


def calculate_video_cost_from_pricing(
    pricing: VideoModelPricing | None, duration_seconds: float | None, resolution: str | None = None
) -> float:
    """Cost of one video from a model's pricing.

    A resolution-specific rate overrides the top-level one. Per-second pricing
    wins over per-generation pricing; no usable rate costs 0.
    """
    if pricing is None:
        return 0.0

    per_second = pricing.estimated_cost_per_second
    per_generation = pricing.estimated_cost_per_generation

    overrides = pricing.pricing_by_resolution.get(resolution) if resolution else None
    if overrides:
        if overrides.get("estimated_cost_per_second") is not None:
            per_second = overrides["estimated_cost_per_second"]
        if overrides.get("estimated_cost_per_generation") is not None:
            per_generation = overrides["estimated_cost_per_generation"]

    if per_second:
        return (duration_seconds or 0) * per_second
    if per_generation:
        return per_generation
    return 0.0


def lookup_video_model_cost(
    provider_name: str, model_id: str, duration_seconds: float | None, resolution: str | None = None
) -> float:
    """Registry-backed cost lookup; 0 for unknown providers or models."""
    provider = get_video_provider(provider_name)
    if provider is None:
        return 0.0
    model = provider.get_model(model_id)
    if model is None or model.pricing is None:
        return 0.0
    return calculate_video_cost_from_pricing(model.pricing, duration_seconds, resolution)
