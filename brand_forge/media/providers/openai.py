"""OpenAI video adapter (Sora)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from brand_forge.media.providers.base import (
    VideoGenerationRequest,
    VideoGenerationResult,
    VideoModel,
    VideoModelPricing,
    VideoProvider,
    VideoStatus,
    VideoStatusResult,
    error_message,
    exception_message,
    resolve_size,
)

logger = structlog.get_logger()

OPENAI_API_BASE = "https://api.openai.com/v1"
DEFAULT_VIDEO_MODEL = "sora-2"

STATUS_MAP: dict[str, VideoStatus] = {
    "queued": VideoStatus.QUEUED,
    "in_progress": VideoStatus.PROCESSING,
    "processing": VideoStatus.PROCESSING,
    "completed": VideoStatus.COMPLETE,
    "failed": VideoStatus.ERROR,
    "cancelled": VideoStatus.ERROR,
}

OPENAI_VIDEO_MODELS = [
    VideoModel(
        id="sora-2",
        display_name="Sora 2",
        provider="openai",
        max_duration=12,
        supported_durations=[4, 8, 12],
        supported_aspect_ratios=["16:9", "9:16"],
        supported_resolutions=["720p"],
        valid_sizes={
            ("16:9", "720p"): "1280x720",
            ("9:16", "720p"): "720x1280",
        },
        pricing=VideoModelPricing(
            estimated_cost_per_second=0.10,
            pricing_by_resolution={"720p": {"estimated_cost_per_second": 0.10}},
        ),
    ),
    VideoModel(
        id="sora-2-pro",
        display_name="Sora 2 Pro",
        provider="openai",
        max_duration=12,
        supported_durations=[4, 8, 12],
        supported_aspect_ratios=["16:9", "9:16"],
        supported_resolutions=["720p", "1080p"],
        valid_sizes={
            ("16:9", "720p"): "1280x720",
            ("9:16", "720p"): "720x1280",
            ("16:9", "1080p"): "1792x1024",
            ("9:16", "1080p"): "1024x1792",
        },
        pricing=VideoModelPricing(
            estimated_cost_per_second=0.30,
            pricing_by_resolution={
                "720p": {"estimated_cost_per_second": 0.30},
                "1080p": {"estimated_cost_per_second": 0.50},
            },
        ),
    ),
]


def map_status(vendor_status: str | None) -> VideoStatus:
    return STATUS_MAP.get(vendor_status or "", VideoStatus.PROCESSING)


def _first_url(data: dict[str, Any]) -> str | None:
    items = data.get("data") or []
    if items and isinstance(items[0], dict):
        return items[0].get("url")
    return None


class OpenAIVideoProvider(VideoProvider):
    name = "openai"

    def __init__(
        self,
        base_url: str = OPENAI_API_BASE,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")

    def get_available_models(self) -> list[VideoModel]:
        return OPENAI_VIDEO_MODELS

    def _size_for(self, request: VideoGenerationRequest) -> str:
        model = self.get_model(request.model) or OPENAI_VIDEO_MODELS[0]
        return resolve_size(model, request.aspect_ratio, request.resolution) or "1280x720"

    async def generate_video(self, api_key: str, request: VideoGenerationRequest) -> VideoGenerationResult:
        body: dict[str, Any] = {
            "model": request.model or DEFAULT_VIDEO_MODEL,
            "prompt": request.prompt,
            "size": self._size_for(request),
            "n": 1,
        }
        if request.duration:
            body["duration"] = request.duration

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/videos/generations",
                    headers={"Authorization": f"Bearer {api_key}"},
                    json=body,
                )
            if resp.status_code >= 400:
                return VideoGenerationResult(
                    status=VideoStatus.ERROR,
                    error=error_message(resp, f"OpenAI API error: {resp.status_code}"),
                )
            return _start_result(resp.json())
        except Exception as exc:
            logger.warning("openai_video.request_failed", error=str(exc))
            return VideoGenerationResult(
                status=VideoStatus.ERROR,
                error=exception_message(exc, "Failed to start video generation"),
            )

    async def get_status(self, api_key: str, provider_job_id: str) -> VideoStatusResult:
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{self.base_url}/videos/generations/{provider_job_id}",
                    headers={"Authorization": f"Bearer {api_key}"},
                )
            if resp.status_code >= 400:
                return VideoStatusResult(
                    status=VideoStatus.ERROR,
                    error=error_message(resp, f"Status check failed: {resp.status_code}"),
                )
            return _status_result(resp.json())
        except Exception as exc:
            logger.warning("openai_video.status_failed", job_id=provider_job_id, error=str(exc))
            return VideoStatusResult(
                status=VideoStatus.ERROR,
                error=exception_message(exc, "Failed to check video status"),
            )


def _start_result(data: dict[str, Any]) -> VideoGenerationResult:
    url = _first_url(data)
    if url:
        return VideoGenerationResult(
            status=VideoStatus.COMPLETE,
            provider_job_id=data.get("id") or "direct",
            video_url=url,
            progress=100,
        )

    status = map_status(data.get("status"))
    # Only an inline URL counts as immediate completion
    if status == VideoStatus.COMPLETE:
        status = VideoStatus.PROCESSING
    return VideoGenerationResult(status=status, provider_job_id=data.get("id") or "")


def _status_result(data: dict[str, Any]) -> VideoStatusResult:
    status = map_status(data.get("status"))
    vendor_error = data.get("error")

    if status == VideoStatus.ERROR or vendor_error:
        message = vendor_error.get("message") if isinstance(vendor_error, dict) else None
        return VideoStatusResult(status=VideoStatus.ERROR, error=message or "Video generation failed")

    if status == VideoStatus.COMPLETE:
        url = _first_url(data)
        if url:
            return VideoStatusResult(status=VideoStatus.COMPLETE, video_url=url, progress=100)
        # Completed without an asset yet; keep polling
        return VideoStatusResult(status=VideoStatus.PROCESSING, progress=90)

    if status == VideoStatus.QUEUED:
        return VideoStatusResult(status=VideoStatus.QUEUED, progress=0)

    # No granular progress from this endpoint
    return VideoStatusResult(status=VideoStatus.PROCESSING, progress=50)
