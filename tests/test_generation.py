"""Tests for the media generation service."""

import json

import httpx
import pytest

from brand_forge.db.models import GenerationStatus
from brand_forge.media.generation import (
    MediaGenerationService,
    StatusUpdate,
    map_row_to_generation,
    normalize_video_duration,
)
from brand_forge.media.providers.base import (
    VideoGenerationResult,
    VideoProvider,
    VideoStatus,
)
from brand_forge.media.providers.openai import OPENAI_VIDEO_MODELS


class ScriptedProvider(VideoProvider):
    """Returns a fixed start result and records the request."""

    name = "openai"

    def __init__(self, result: VideoGenerationResult):
        super().__init__()
        self.result = result
        self.requests = []

    async def generate_video(self, api_key, request):
        self.requests.append(request)
        return self.result

    async def get_status(self, api_key, provider_job_id):
        raise NotImplementedError

    def get_available_models(self):
        return OPENAI_VIDEO_MODELS


@pytest.fixture
def media(services):
    return services["media"]


class TestJobRecords:
    def test_image_record(self, media, mock_db):
        gen = media.generate_image("p1", "A logo", user_id="u1", size="1024x1024", name="Logo")
        assert gen["status"] == "pending"
        assert gen["model"] == "dall-e-3"
        assert gen["provider"] == "openai"
        assert gen["parameters"] == {"size": "1024x1024", "name": "Logo"}
        assert gen["progress"] == 0
        row = mock_db.select_one("ai_generations", {"id": gen["id"]})
        assert json.loads(row["parameters"]) == {"size": "1024x1024", "name": "Logo"}

    def test_audio_record_always_has_voice(self, media):
        gen = media.generate_audio("p1", "Hello", user_id="u1")
        assert gen["model"] == "tts-1"
        assert gen["parameters"] == {"voice": "alloy"}

    def test_video_record_defaults(self, media):
        gen = media.request_video_generation("A fox", brand_profile_id="p1", user_id="u1")
        assert gen["provider"] == "openai"
        assert gen["model"] == "sora-2"
        assert gen["parameters"] is None

    def test_list_generations_newest_first(self, media, mock_db):
        first = media.generate_image("p1", "one")
        media.generate_audio("p1", "two")
        second = media.generate_image("p1", "three")
        for i, row in enumerate(mock_db._tables["ai_generations"]):
            row["created_at"] = f"2026-01-0{i + 1}T00:00:00+00:00"
        images = media.list_generations("p1", "image")
        assert [g["id"] for g in images] == [second["id"], first["id"]]
        assert len(media.list_generations("p1")) == 3

    def test_zero_cost_reads_as_absent(self):
        row = {
            "id": "g",
            "generation_type": "image",
            "provider": "openai",
            "model": "dall-e-3",
            "prompt": "x",
            "status": "complete",
            "cost": 0,
            "progress": None,
        }
        gen = map_row_to_generation(row)
        assert gen["cost"] is None
        assert gen["progress"] == 0

    def test_normalize_video_duration(self):
        assert normalize_video_duration(8) == 8
        assert normalize_video_duration(5) is None
        assert normalize_video_duration(None) is None


class TestStatusUpdates:
    def test_partial_update_keeps_other_columns(self, media):
        gen = media.request_video_generation("A fox")
        media.update_generation_status(gen["id"], StatusUpdate(status="processing", provider_job_id="job"))
        updated = media.update_generation_status(gen["id"], StatusUpdate(status="processing", progress=40))
        assert updated["providerJobId"] == "job"
        assert updated["progress"] == 40
        assert updated["completedAt"] is None

    def test_terminal_stamps_completed_at_once(self, media):
        gen = media.request_video_generation("A fox")
        done = media.update_generation_status(gen["id"], StatusUpdate(status=GenerationStatus.COMPLETE))
        stamp = done["completedAt"]
        assert stamp is not None
        again = media.update_generation_status(gen["id"], StatusUpdate(status="complete", r2_key="k"))
        assert again["completedAt"] == stamp
        assert again["r2Key"] == "k"

    def test_failed_is_terminal(self, media):
        gen = media.request_video_generation("A fox")
        failed = media.update_generation_status(gen["id"], StatusUpdate(status="failed", error_message="boom"))
        assert failed["completedAt"] is not None
        assert failed["errorMessage"] == "boom"

    def test_unknown_generation(self, media):
        with pytest.raises(ValueError, match="not found"):
            media.update_generation_status("missing", StatusUpdate(status="complete"))


class TestImageGeneration:
    @pytest.mark.asyncio
    async def test_success_stores_image(self, media, vendor, storage):
        vendor.on("POST", "/images/generations", httpx.Response(200, json={"data": [{"url": "https://img.test/x.png"}]}))
        vendor.on("GET", "/x.png", httpx.Response(200, content=b"png-bytes"))
        gen = media.generate_image("p1", "A logo", quality="hd")
        done = await media.run_image_generation(gen, "sk", quality="hd")
        assert done["status"] == "complete"
        assert done["resultUrl"] == "https://img.test/x.png"
        assert done["r2Key"] == f"brands/p1/image/{gen['id']}.png"
        assert done["cost"] == 0.08
        assert done["progress"] == 100
        assert storage.objects[done["r2Key"]] == (b"png-bytes", "image/png")

    @pytest.mark.asyncio
    async def test_vendor_error(self, media, vendor):
        vendor.on(
            "POST",
            "/images/generations",
            httpx.Response(400, json={"error": {"message": "Your request was rejected"}}),
        )
        gen = media.generate_image("p1", "A logo")
        failed = await media.run_image_generation(gen, "sk")
        assert failed["status"] == "failed"
        assert failed["errorMessage"] == "Your request was rejected"

    @pytest.mark.asyncio
    async def test_vendor_error_without_message(self, media, vendor):
        vendor.on("POST", "/images/generations", httpx.Response(500, text="oops"))
        failed = await media.run_image_generation(media.generate_image("p1", "A logo"), "sk")
        assert failed["errorMessage"] == "API error: 500"

    @pytest.mark.asyncio
    async def test_missing_url(self, media, vendor):
        vendor.on("POST", "/images/generations", httpx.Response(200, json={"data": []}))
        failed = await media.run_image_generation(media.generate_image("p1", "A logo"), "sk")
        assert failed["errorMessage"] == "No image URL in response"

    @pytest.mark.asyncio
    async def test_storage_failure_fails_job(self, media, vendor, storage):
        storage.fail_puts = True
        vendor.on("POST", "/images/generations", httpx.Response(200, json={"data": [{"url": "https://img.test/x.png"}]}))
        vendor.on("GET", "/x.png", httpx.Response(200, content=b"png"))
        failed = await media.run_image_generation(media.generate_image("p1", "A logo"), "sk")
        assert failed["status"] == "failed"
        assert failed["errorMessage"] == "bucket unavailable"


class TestAudioGeneration:
    @pytest.mark.asyncio
    async def test_success(self, media, vendor, storage):
        vendor.on("POST", "/audio/speech", httpx.Response(200, content=b"mp3-bytes"))
        gen = media.generate_audio("p1", "x" * 1000, model="tts-1-hd")
        done = await media.run_audio_generation(gen, "sk", response_format="opus")
        assert done["status"] == "complete"
        assert done["r2Key"] == f"brands/p1/audio/{gen['id']}.opus"
        assert done["cost"] == pytest.approx(0.03)
        assert storage.objects[done["r2Key"]] == (b"mp3-bytes", "audio/opus")
        assert vendor.last_json()["voice"] == "alloy"

    @pytest.mark.asyncio
    async def test_vendor_error(self, media, vendor):
        vendor.on("POST", "/audio/speech", httpx.Response(401, json={"error": {"message": "Invalid key"}}))
        failed = await media.run_audio_generation(media.generate_audio("p1", "hi"), "sk")
        assert failed["errorMessage"] == "Invalid key"


class TestVideoStart:
    @pytest.mark.asyncio
    async def test_queued_is_pending(self, media):
        provider = ScriptedProvider(VideoGenerationResult(status=VideoStatus.QUEUED, provider_job_id="job_1"))
        gen = media.request_video_generation("A fox", duration=5, aspect_ratio="9:16")
        started = await media.start_video_generation(gen, provider, "sk")
        assert started["status"] == "pending"
        assert started["providerJobId"] == "job_1"
        assert provider.requests[0].duration is None
        assert provider.requests[0].aspect_ratio == "9:16"

    @pytest.mark.asyncio
    async def test_processing(self, media):
        provider = ScriptedProvider(VideoGenerationResult(status=VideoStatus.PROCESSING, provider_job_id="j"))
        started = await media.start_video_generation(media.request_video_generation("A fox"), provider, "sk")
        assert started["status"] == "processing"
        assert provider.requests[0].aspect_ratio == "16:9"

    @pytest.mark.asyncio
    async def test_immediate_completion_is_priced(self, media):
        provider = ScriptedProvider(
            VideoGenerationResult(
                status=VideoStatus.COMPLETE, provider_job_id="direct", video_url="https://v", progress=100
            )
        )
        gen = media.request_video_generation("A fox", duration=8)
        started = await media.start_video_generation(gen, provider, "sk")
        assert started["status"] == "complete"
        assert started["cost"] == pytest.approx(0.8)
        assert started["resultUrl"] == "https://v"
        assert started["completedAt"] is not None

    @pytest.mark.asyncio
    async def test_error_fails_job(self, media):
        provider = ScriptedProvider(VideoGenerationResult(status=VideoStatus.ERROR, error="Rate limited"))
        started = await media.start_video_generation(media.request_video_generation("A fox"), provider, "sk")
        assert started["status"] == "failed"
        assert started["errorMessage"] == "Rate limited"
