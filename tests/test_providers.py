"""Tests for the video provider adapters."""

import httpx
import pytest

from brand_forge.db.models import AIKeyRecord
from brand_forge.media.providers.base import VideoGenerationRequest, VideoStatus, resolve_size
from brand_forge.media.providers.openai import OPENAI_VIDEO_MODELS, OpenAIVideoProvider
from brand_forge.media.providers.openai import map_status as openai_status
from brand_forge.media.providers.registry import get_all_video_models, get_models_for_key, get_video_provider
from brand_forge.media.providers.wavespeed import WaveSpeedVideoProvider, model_path
from brand_forge.media.providers.wavespeed import map_status as wavespeed_status


def _request(**overrides):
    values = {"prompt": "A fox in snow", "model": "sora-2", "aspect_ratio": "16:9", "duration": 8}
    values.update(overrides)
    return VideoGenerationRequest(**values)


class TestStatusMapping:
    @pytest.mark.parametrize(
        "vendor,expected",
        [
            ("queued", VideoStatus.QUEUED),
            ("in_progress", VideoStatus.PROCESSING),
            ("completed", VideoStatus.COMPLETE),
            ("failed", VideoStatus.ERROR),
            ("cancelled", VideoStatus.ERROR),
            ("something_new", VideoStatus.PROCESSING),
            (None, VideoStatus.PROCESSING),
        ],
    )
    def test_openai(self, vendor, expected):
        assert openai_status(vendor) == expected

    @pytest.mark.parametrize(
        "vendor,expected",
        [
            ("created", VideoStatus.QUEUED),
            ("pending", VideoStatus.QUEUED),
            ("processing", VideoStatus.PROCESSING),
            ("completed", VideoStatus.COMPLETE),
            ("failed", VideoStatus.ERROR),
        ],
    )
    def test_wavespeed(self, vendor, expected):
        assert wavespeed_status(vendor) == expected


class TestResolveSize:
    def test_exact_match(self):
        pro = OPENAI_VIDEO_MODELS[1]
        assert resolve_size(pro, "9:16", "1080p") == "1024x1792"

    def test_falls_back_to_default_pair(self):
        sora = OPENAI_VIDEO_MODELS[0]
        assert resolve_size(sora, "1:1", "4k") == "1280x720"

    def test_defaults_when_missing(self):
        assert resolve_size(OPENAI_VIDEO_MODELS[0], None, None) == "1280x720"


class TestOpenAIVideoProvider:
    @pytest.mark.asyncio
    async def test_generate_queued(self, vendor):
        vendor.on("POST", "/videos/generations", httpx.Response(200, json={"id": "vid_1", "status": "queued"}))
        provider = OpenAIVideoProvider(transport=vendor.transport)
        result = await provider.generate_video("sk-test", _request())
        assert result.status == VideoStatus.QUEUED
        assert result.provider_job_id == "vid_1"
        body = vendor.last_json()
        assert body["size"] == "1280x720"
        assert body["duration"] == 8
        assert vendor.requests[-1].headers["authorization"] == "Bearer sk-test"

    @pytest.mark.asyncio
    async def test_generate_inline_url_is_complete(self, vendor):
        vendor.on(
            "POST",
            "/videos/generations",
            httpx.Response(200, json={"data": [{"url": "https://cdn/v.mp4"}]}),
        )
        result = await OpenAIVideoProvider(transport=vendor.transport).generate_video("k", _request())
        assert result.status == VideoStatus.COMPLETE
        assert result.provider_job_id == "direct"
        assert result.video_url == "https://cdn/v.mp4"
        assert result.progress == 100

    @pytest.mark.asyncio
    async def test_completed_without_url_is_processing(self, vendor):
        vendor.on("POST", "/videos/generations", httpx.Response(200, json={"id": "v", "status": "completed"}))
        result = await OpenAIVideoProvider(transport=vendor.transport).generate_video("k", _request())
        assert result.status == VideoStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_vendor_error_message(self, vendor):
        vendor.on("POST", "/videos/generations", httpx.Response(429, json={"error": {"message": "Rate limited"}}))
        result = await OpenAIVideoProvider(transport=vendor.transport).generate_video("k", _request())
        assert result.status == VideoStatus.ERROR
        assert result.error == "Rate limited"

    @pytest.mark.asyncio
    async def test_vendor_error_without_body(self, vendor):
        vendor.on("POST", "/videos/generations", httpx.Response(500, text="oops"))
        result = await OpenAIVideoProvider(transport=vendor.transport).generate_video("k", _request())
        assert result.error == "OpenAI API error: 500"

    @pytest.mark.asyncio
    async def test_network_failure_does_not_raise(self):
        def boom(request):
            raise httpx.ConnectError("connection refused")

        provider = OpenAIVideoProvider(transport=httpx.MockTransport(boom))
        result = await provider.generate_video("k", _request())
        assert result.status == VideoStatus.ERROR
        assert result.error == "connection refused"

    @pytest.mark.asyncio
    async def test_status_complete(self, vendor):
        vendor.on(
            "GET",
            "/videos/generations/vid_1",
            httpx.Response(200, json={"status": "completed", "data": [{"url": "https://cdn/v.mp4"}]}),
        )
        result = await OpenAIVideoProvider(transport=vendor.transport).get_status("k", "vid_1")
        assert result.status == VideoStatus.COMPLETE
        assert result.video_url == "https://cdn/v.mp4"
        assert result.progress == 100

    @pytest.mark.asyncio
    async def test_status_complete_without_url_keeps_polling(self, vendor):
        vendor.on("GET", "/videos/generations/v", httpx.Response(200, json={"status": "completed"}))
        result = await OpenAIVideoProvider(transport=vendor.transport).get_status("k", "v")
        assert result.status == VideoStatus.PROCESSING
        assert result.progress == 90

    @pytest.mark.asyncio
    async def test_status_progress(self, vendor):
        vendor.on("GET", "/videos/generations/q", httpx.Response(200, json={"status": "queued"}))
        vendor.on("GET", "/videos/generations/p", httpx.Response(200, json={"status": "in_progress"}))
        provider = OpenAIVideoProvider(transport=vendor.transport)
        assert (await provider.get_status("k", "q")).progress == 0
        assert (await provider.get_status("k", "p")).progress == 50

    @pytest.mark.asyncio
    async def test_status_failed(self, vendor):
        vendor.on(
            "GET",
            "/videos/generations/v",
            httpx.Response(200, json={"status": "failed", "error": {"message": "Content policy"}}),
        )
        result = await OpenAIVideoProvider(transport=vendor.transport).get_status("k", "v")
        assert result.status == VideoStatus.ERROR
        assert result.error == "Content policy"

    @pytest.mark.asyncio
    async def test_status_http_error(self, vendor):
        vendor.on("GET", "/videos/generations/v", httpx.Response(503, text=""))
        result = await OpenAIVideoProvider(transport=vendor.transport).get_status("k", "v")
        assert result.error == "Status check failed: 503"

    @pytest.mark.asyncio
    async def test_generate_non_json_body(self, vendor):
        vendor.on("POST", "/videos/generations", httpx.Response(200, text="<html>Bad gateway</html>"))
        result = await OpenAIVideoProvider(transport=vendor.transport).generate_video("k", _request())
        assert result.status == VideoStatus.ERROR
        assert result.error

    @pytest.mark.asyncio
    async def test_generate_unexpected_json_shape(self, vendor):
        vendor.on("POST", "/videos/generations", httpx.Response(200, json=["vid_1"]))
        result = await OpenAIVideoProvider(transport=vendor.transport).generate_video("k", _request())
        assert result.status == VideoStatus.ERROR
        assert result.error

    @pytest.mark.asyncio
    async def test_status_non_json_body(self, vendor):
        vendor.on("GET", "/videos/generations/v", httpx.Response(200, text="not json"))
        result = await OpenAIVideoProvider(transport=vendor.transport).get_status("k", "v")
        assert result.status == VideoStatus.ERROR
        assert result.error

    @pytest.mark.asyncio
    async def test_download_video(self, vendor):
        vendor.on("GET", "/files/v.mp4", httpx.Response(200, content=b"mp4"))
        vendor.on("GET", "/files/gone.mp4", httpx.Response(410))
        provider = OpenAIVideoProvider(transport=vendor.transport)
        assert await provider.download_video("k", "https://cdn.example.com/files/v.mp4") == b"mp4"
        with pytest.raises(RuntimeError, match="Failed to download video: 410"):
            await provider.download_video("k", "https://cdn.example.com/files/gone.mp4")


class TestWaveSpeedVideoProvider:
    def test_model_path(self):
        assert model_path("wan-2.1/t2v-720p") == "wavespeed-ai/wan-2.1/t2v-720p"
        assert model_path("wavespeed-ai/wan-2.1/t2v-720p") == "wavespeed-ai/wan-2.1/t2v-720p"

    @pytest.mark.asyncio
    async def test_generate(self, vendor):
        vendor.on(
            "POST",
            "/wavespeed-ai/wan-2.1/t2v-720p",
            httpx.Response(200, json={"data": {"id": "task_1", "status": "created"}}),
        )
        provider = WaveSpeedVideoProvider(transport=vendor.transport)
        result = await provider.generate_video("ws", _request(model="wan-2.1/t2v-720p", resolution="720p"))
        assert result.status == VideoStatus.QUEUED
        assert result.provider_job_id == "task_1"
        assert vendor.last_json() == {
            "prompt": "A fox in snow",
            "aspect_ratio": "16:9",
            "duration": 8,
            "resolution": "720p",
        }

    @pytest.mark.asyncio
    async def test_generate_vendor_error(self, vendor):
        vendor.on("POST", "/wavespeed-ai/flux-dev", httpx.Response(401, text="bad key"))
        result = await WaveSpeedVideoProvider(transport=vendor.transport).generate_video(
            "ws", _request(model="flux-dev")
        )
        assert result.status == VideoStatus.ERROR
        assert result.error == "WaveSpeed API error 401: bad key"

    @pytest.mark.asyncio
    async def test_status_complete(self, vendor):
        vendor.on(
            "GET",
            "/predictions/task_1/result",
            httpx.Response(200, json={"data": {"status": "completed", "outputs": ["https://ws/out.mp4"]}}),
        )
        result = await WaveSpeedVideoProvider(transport=vendor.transport).get_status("ws", "task_1")
        assert result.status == VideoStatus.COMPLETE
        assert result.video_url == "https://ws/out.mp4"

    @pytest.mark.asyncio
    async def test_status_failed(self, vendor):
        vendor.on(
            "GET",
            "/predictions/task_1/result",
            httpx.Response(200, json={"data": {"status": "failed", "error": "NSFW"}}),
        )
        result = await WaveSpeedVideoProvider(transport=vendor.transport).get_status("ws", "task_1")
        assert result.status == VideoStatus.ERROR
        assert result.error == "NSFW"

    @pytest.mark.asyncio
    async def test_generate_non_json_body(self, vendor):
        vendor.on("POST", "/wavespeed-ai/flux-dev", httpx.Response(200, text="<html>Bad gateway</html>"))
        result = await WaveSpeedVideoProvider(transport=vendor.transport).generate_video(
            "ws", _request(model="flux-dev")
        )
        assert result.status == VideoStatus.ERROR
        assert result.error

    @pytest.mark.asyncio
    async def test_status_non_json_body(self, vendor):
        vendor.on("GET", "/predictions/task_1/result", httpx.Response(200, text="not json"))
        result = await WaveSpeedVideoProvider(transport=vendor.transport).get_status("ws", "task_1")
        assert result.status == VideoStatus.ERROR
        assert result.error

    @pytest.mark.asyncio
    async def test_status_unexpected_json_shape(self, vendor):
        vendor.on("GET", "/predictions/task_1/result", httpx.Response(200, json={"data": "done"}))
        result = await WaveSpeedVideoProvider(transport=vendor.transport).get_status("ws", "task_1")
        assert result.status == VideoStatus.ERROR
        assert result.error


class TestRegistry:
    def test_lookup(self):
        assert get_video_provider("openai").name == "openai"
        assert get_video_provider("wavespeed").name == "wavespeed"
        assert get_video_provider("runway") is None

    def test_all_models(self):
        ids = {m.id for m in get_all_video_models()}
        assert {"sora-2", "sora-2-pro", "flux-dev"} <= ids

    def test_models_for_key_allow_list(self):
        key = AIKeyRecord(id="k", provider="openai", api_key="sk", video_enabled=True, video_models=["sora-2"])
        assert [m.id for m in get_models_for_key(key)] == ["sora-2"]

    def test_models_for_unknown_provider(self):
        key = AIKeyRecord(id="k", provider="runway", api_key="x")
        assert get_models_for_key(key) == []

    def test_model_dict_pricing(self):
        data = OPENAI_VIDEO_MODELS[1].to_dict()
        assert data["displayName"] == "Sora 2 Pro"
        assert data["pricing"]["pricingByResolution"]["1080p"]["estimatedCostPerSecond"] == 0.50
