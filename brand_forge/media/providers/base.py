"""Video provider contract shared by every vendor adapter.

Adapters normalize vendor responses onto a small status lattice::

    queued -> processing -> complete | error

and never raise for vendor or network failures: those come back as a result
with ``status=error`` and a message.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx


class VideoStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (VideoStatus.COMPLETE, VideoStatus.ERROR)


@dataclass
class VideoGenerationRequest:
    prompt: str
    model: str
    aspect_ratio: str | None = None
    duration: int | None = None
    resolution: str | None = None


@dataclass
class VideoGenerationResult:
    status: VideoStatus
    provider_job_id: str = ""
    video_url: str | None = None
    thumbnail_url: str | None = None
    duration: float | None = None
    progress: int | None = None
    error: str | None = None
    cost: float | None = None


# Same shape as a generation result; status polls just never carry a new job ID
VideoStatusResult = VideoGenerationResult


@dataclass
class VideoModelPricing:
    currency: str = "USD"
    estimated_cost_per_second: float | None = None
    estimated_cost_per_generation: float | None = None
    pricing_by_resolution: dict[str, dict[str, float]] = field(default_factory=dict)


@dataclass
class VideoModel:
    id: str
    display_name: str
    provider: str
    type: str = "text-to-video"
    max_duration: int | None = None
    supported_durations: list[int] = field(default_factory=list)
    supported_aspect_ratios: list[str] = field(default_factory=list)
    supported_resolutions: list[str] = field(default_factory=list)
    # (aspect ratio, resolution) -> vendor-encoded size
    valid_sizes: dict[tuple[str, str], str] = field(default_factory=dict)
    pricing: VideoModelPricing | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "displayName": self.display_name,
            "provider": self.provider,
            "type": self.type,
            "maxDuration": self.max_duration,
            "supportedDurations": self.supported_durations,
            "supportedAspectRatios": self.supported_aspect_ratios,
            "supportedResolutions": self.supported_resolutions,
            "pricing": None,
        }
        if self.pricing:
            data["pricing"] = {
                "currency": self.pricing.currency,
                "estimatedCostPerSecond": self.pricing.estimated_cost_per_second,
                "estimatedCostPerGeneration": self.pricing.estimated_cost_per_generation,
                "pricingByResolution": {
                    res: {
                        "estimatedCostPerSecond": rates.get("estimated_cost_per_second"),
                        "estimatedCostPerGeneration": rates.get("estimated_cost_per_generation"),
                    }
                    for res, rates in self.pricing.pricing_by_resolution.items()
                },
            }
        return data


DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_RESOLUTION = "720p"


def resolve_size(model: VideoModel, aspect_ratio: str | None, resolution: str | None) -> str | None:
    """Vendor size for an (aspect ratio, resolution) pair.

    Unsupported combinations fall back to 720p at 16:9, then to whatever the
    model lists first, so a cosmetic parameter never blocks a generation.
    """
    if not model.valid_sizes:
        return None
    key = (aspect_ratio or DEFAULT_ASPECT_RATIO, resolution or DEFAULT_RESOLUTION)
    if key in model.valid_sizes:
        return model.valid_sizes[key]
    fallback = (DEFAULT_ASPECT_RATIO, DEFAULT_RESOLUTION)
    if fallback in model.valid_sizes:
        return model.valid_sizes[fallback]
    return next(iter(model.valid_sizes.values()))


def error_message(resp: httpx.Response, fallback: str) -> str:
    """Vendor ``error.message`` from a JSON error body, else ``fallback``."""
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return fallback


def exception_message(exc: BaseException, fallback: str) -> str:
    return str(exc) or fallback


class VideoProvider(ABC):
    """A vendor video generation API."""

    name: str = ""

    def __init__(
        self,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @abstractmethod
    async def generate_video(self, api_key: str, request: VideoGenerationRequest) -> VideoGenerationResult:
        """Start a generation job."""

    @abstractmethod
    async def get_status(self, api_key: str, provider_job_id: str) -> VideoStatusResult:
        """Check a job's progress."""

    @abstractmethod
    def get_available_models(self) -> list[VideoModel]:
        """Models this provider offers."""

    def get_model(self, model_id: str) -> VideoModel | None:
        return next((m for m in self.get_available_models() if m.id == model_id), None)

    async def download_video(self, api_key: str, video_url: str) -> bytes:
        """Fetch the finished asset. Raises RuntimeError on non-2xx."""
        async with self._client() as client:
            resp = await client.get(video_url, follow_redirects=True)
        if resp.status_code >= 400:
            raise RuntimeError(f"Failed to download video: {resp.status_code}")
        return resp.content
