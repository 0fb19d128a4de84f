"""WaveSpeed AI video adapter.

Submit a task to ``/wavespeed-ai/<model>``, then poll
``/predictions/<id>/result`` until it settles.
"""

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
    exception_message,
)

logger = structlog.get_logger()

WAVESPEED_API_BASE = "https://api.wavespeed.ai/api/v3"
MODEL_PREFIX = "wavespeed-ai/"

STATUS_MAP: dict[str, VideoStatus] = {
    "created": VideoStatus.QUEUED,
    "pending": VideoStatus.QUEUED,
    "processing": VideoStatus.PROCESSING,
    "completed": VideoStatus.COMPLETE,
    "failed": VideoStatus.ERROR,
}

_ASPECTS = ["16:9", "9:16", "1:1"]


def _model(model_id: str, display_name: str, type_: str, cost: float) -> VideoModel:
    return VideoModel(
        id=model_id,
        display_name=display_name,
        provider="wavespeed",
        type=type_,
        supported_durations=[5, 8] if type_ != "image" else [],
        supported_aspect_ratios=list(_ASPECTS),
        pricing=VideoModelPricing(estimated_cost_per_generation=cost),
    )


# Fallback estimates; live pricing comes from the vendor
WAVESPEED_VIDEO_MODELS = [
    _model("wan-2.1/t2v-720p", "Wan 2.1 Text-to-Video 720p", "text-to-video", 0.03),
    _model("wan-2.1/i2v-720p", "Wan 2.1 Image-to-Video 720p", "image-to-video", 0.04),
    _model("wan-2.1/t2v-480p", "Wan 2.1 Text-to-Video 480p", "text-to-video", 0.02),
    _model("wan-2.2/t2v-720p", "Wan 2.2 Text-to-Video 720p", "text-to-video", 0.04),
    _model("wan-2.2/i2v-480p", "Wan 2.2 Image-to-Video 480p", "image-to-video", 0.03),
    _model("flux-dev", "FLUX Dev", "image", 0.025),
    _model("flux-schnell", "FLUX Schnell", "image", 0.015),
    _model("hunyuan-video/t2v", "Hunyuan Video Text-to-Video", "text-to-video", 0.05),
    _model("ltx-video/ltx-2-19b-text-to-video", "LTX 2 Text-to-Video", "text-to-video", 0.03),
    _model("ltx-video/ltx-2-19b-image-to-video", "LTX 2 Image-to-Video", "image-to-video", 0.035),
    _model("framepack/framepack-f1", "Framepack", "image-to-video", 0.04),
]


def map_status(vendor_status: str | None) -> VideoStatus:
    return STATUS_MAP.get(vendor_status or "", VideoStatus.PROCESSING)


def model_path(model_id: str) -> str:
    """URL path for a model; IDs may contain slashes for sub-paths."""
    return model_id if model_id.startswith(MODEL_PREFIX) else f"{MODEL_PREFIX}{model_id}"


def _vendor_error(resp: httpx.Response) -> str:
    return f"WaveSpeed API error {resp.status_code}: {resp.text or 'Unknown error'}"


class WaveSpeedVideoProvider(VideoProvider):
    name = "wavespeed"

    def __init__(
        self,
        base_url: str = WAVESPEED_API_BASE,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")

    def get_available_models(self) -> list[VideoModel]:
        return WAVESPEED_VIDEO_MODELS

    async def generate_video(self, api_key: str, request: VideoGenerationRequest) -> VideoGenerationResult:
        body: dict[str, Any] = {"prompt": request.prompt}
        if request.aspect_ratio:
            body["aspect_ratio"] = request.aspect_ratio
        if request.duration:
            body["duration"] = request.duration
        if request.resolution:
            body["resolution"] = request.resolution

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/{model_path(request.model)}",
                    headers={"Authorization": f"Bearer {api_key}"},
                    json=body,
                )
            if resp.status_code >= 400:
                return VideoGenerationResult(status=VideoStatus.ERROR, error=_vendor_error(resp))
            return _start_result(resp.json().get("data") or {})
        except Exception as exc:
            logger.warning("wavespeed.request_failed", error=str(exc))
            return VideoGenerationResult(
                status=VideoStatus.ERROR,
                error=exception_message(exc, "Failed to start video generation"),
            )

    async def get_status(self, api_key: str, provider_job_id: str) -> VideoStatusResult:
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{self.base_url}/predictions/{provider_job_id}/result",
                    headers={"Authorization": f"Bearer {api_key}"},
                )
            if resp.status_code >= 400:
                return VideoStatusResult(status=VideoStatus.ERROR, error=_vendor_error(resp))
            return _status_result(resp.json().get("data") or {})
        except Exception as exc:
            logger.warning("wavespeed.status_failed", job_id=provider_job_id, error=str(exc))
            return VideoStatusResult(
                status=VideoStatus.ERROR,
                error=exception_message(exc, "Failed to check video status"),
            )


def _start_result(task: dict[str, Any]) -> VideoGenerationResult:
    status = map_status(task.get("status"))
    if status == VideoStatus.COMPLETE and not task.get("outputs"):
        status = VideoStatus.PROCESSING
    result = VideoGenerationResult(status=status, provider_job_id=task.get("id") or "")
    if status == VideoStatus.COMPLETE:
        result.video_url = task["outputs"][0]
        result.progress = 100
    elif status == VideoStatus.ERROR:
        result.error = task.get("error") or "Unknown error"
    return result


def _status_result(task: dict[str, Any]) -> VideoStatusResult:
    result = VideoStatusResult(status=map_status(task.get("status")))
    outputs = task.get("outputs") or []
    if result.status == VideoStatus.COMPLETE and outputs:
        result.video_url = outputs[0]
        result.progress = 100
    if result.status == VideoStatus.ERROR:
        result.error = task.get("error") or "Unknown error"
    return result
