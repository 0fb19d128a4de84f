"""Server-sent event relay for video generation progress.

The relay holds the HTTP response open and polls the provider on a fixed
cadence, forwarding each status as an SSE ``data:`` frame until the job
settles or polling gives up.
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable

import structlog

from brand_forge.core.archive import FileArchive
from brand_forge.db.models import FileSource, FileType, GenerationStatus
from brand_forge.media.generation import MediaGenerationService, StatusUpdate
from brand_forge.media.providers.base import VideoProvider, VideoStatus, VideoStatusResult
from brand_forge.storage.objects import ObjectStorage
from brand_forge.utils.cost import lookup_video_model_cost
from brand_forge.utils.sse import format_sse

logger = structlog.get_logger()

POLL_INTERVAL_SECONDS = 5
MAX_POLL_ATTEMPTS = 120


def video_file_url(key: str) -> str:
    return f"/api/video/file/{key}"


def terminal_event(generation: dict[str, Any]) -> dict[str, Any]:
    """The single event sent for a generation that has already settled."""
    complete = generation["status"] == GenerationStatus.COMPLETE.value
    return {
        "status": VideoStatus.COMPLETE.value if complete else VideoStatus.ERROR.value,
        "videoUrl": generation.get("resultUrl"),
        "progress": 100 if complete else 0,
    }


def _poll_event(result: VideoStatusResult) -> dict[str, Any]:
    return {
        "status": result.status.value,
        "progress": result.progress or 0,
        "videoUrl": result.video_url,
        "thumbnailUrl": result.thumbnail_url,
        "duration": result.duration,
        "error": result.error,
    }


class VideoPollRelay:
    """Polls one video generation and yields SSE frames.

    ``is_disconnected`` is checked before every poll; once it reports true
    the relay stops without contacting the provider again.
    """

    def __init__(
        self,
        service: MediaGenerationService,
        generation: dict[str, Any],
        provider: VideoProvider,
        api_key: str,
        storage: ObjectStorage | None = None,
        archive: FileArchive | None = None,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        self.service = service
        self.generation = generation
        self.provider = provider
        self.api_key = api_key
        self.storage = storage
        self.archive = archive
        self._is_disconnected = is_disconnected
        self._sleep = sleep
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts

    async def _disconnected(self) -> bool:
        if self._is_disconnected is None:
            return False
        return await self._is_disconnected()

    async def stream(self) -> AsyncIterator[str]:
        generation_id = self.generation["id"]

        if GenerationStatus(self.generation["status"]).is_terminal:
            yield format_sse(terminal_event(self.generation))
            return

        for attempt in range(self.max_attempts):
            if attempt:
                await self._sleep(self.poll_interval)
            if await self._disconnected():
                logger.info("video.client_disconnected", generation_id=generation_id, attempts=attempt)
                return

            try:
                result = await self.provider.get_status(self.api_key, self.generation["providerJobId"])
            except Exception as e:
                logger.warning("video.poll_error", generation_id=generation_id, error=str(e))
                yield format_sse(
                    {"status": VideoStatus.PROCESSING.value, "progress": 0, "error": "Temporary polling error"}
                )
                continue

            event = _poll_event(result)
            if result.status == VideoStatus.COMPLETE:
                cached_url = await self._settle_complete(result)
                if cached_url:
                    event["videoUrl"] = cached_url
                yield format_sse(event)
                return
            if result.status == VideoStatus.ERROR:
                self._settle_error(result)
                yield format_sse(event)
                return

            yield format_sse(event)

        logger.warning("video.poll_timeout", generation_id=generation_id, attempts=self.max_attempts)
        yield format_sse({"status": VideoStatus.ERROR.value, "error": "Video generation timed out"})

    async def _settle_complete(self, result: VideoStatusResult) -> str | None:
        """Record completion and cache the asset; returns the cached URL if any."""
        generation_id = self.generation["id"]
        params = self.generation.get("parameters") or {}
        cost = lookup_video_model_cost(
            self.generation["provider"],
            self.generation["model"],
            result.duration or params.get("duration"),
            params.get("resolution"),
        )
        try:
            self.service.update_generation_status(
                generation_id,
                StatusUpdate(
                    status=GenerationStatus.COMPLETE,
                    result_url=result.video_url,
                    cost=cost,
                    progress=100,
                ),
            )
        except Exception as e:
            logger.error("video.record_update_failed", generation_id=generation_id, error=str(e))

        if not (result.video_url and self.storage):
            return None

        key = f"videos/{self.generation['userId']}/{generation_id}.mp4"
        try:
            data = await self.provider.download_video(self.api_key, result.video_url)
            await self.storage.put(key, data, content_type="video/mp4")
            self.service.update_generation_status(
                generation_id,
                StatusUpdate(status=GenerationStatus.COMPLETE, r2_key=key, result_url=video_file_url(key)),
            )
            if self.archive and self.generation.get("brandProfileId"):
                self.archive.create_entry(
                    brand_profile_id=self.generation["brandProfileId"],
                    user_id=self.generation["userId"],
                    file_name=f"{generation_id}.mp4",
                    mime_type="video/mp4",
                    file_size=len(data),
                    r2_key=key,
                    file_type=FileType.VIDEO,
                    source=FileSource.AI_GENERATED,
                    ai_prompt=self.generation["prompt"],
                    ai_model=self.generation["model"],
                    ai_generation_id=generation_id,
                )
        except Exception as e:
            logger.error("video.cache_failed", generation_id=generation_id, error=str(e))
            return None
        logger.info("video.cached", generation_id=generation_id, key=key)
        return video_file_url(key)

    def _settle_error(self, result: VideoStatusResult) -> None:
        generation_id = self.generation["id"]
        try:
            self.service.update_generation_status(
                generation_id,
                StatusUpdate(status=GenerationStatus.FAILED, error_message=result.error or "Unknown error"),
            )
        except Exception as e:
            logger.error("video.record_update_failed", generation_id=generation_id, error=str(e))
