"""Provider lookup by name."""

from __future__ import annotations

from brand_forge.db.models import AIKeyRecord
from brand_forge.media.providers.base import VideoModel, VideoProvider
from brand_forge.media.providers.openai import OpenAIVideoProvider
from brand_forge.media.providers.wavespeed import WaveSpeedVideoProvider

_PROVIDERS: dict[str, VideoProvider] = {
    "openai": OpenAIVideoProvider(),
    "wavespeed": WaveSpeedVideoProvider(),
}


def get_video_provider(name: str) -> VideoProvider | None:
    return _PROVIDERS.get(name)


def get_all_video_models() -> list[VideoModel]:
    models: list[VideoModel] = []
    for provider in _PROVIDERS.values():
        models.extend(provider.get_available_models())
    return models


def get_models_for_key(key: AIKeyRecord) -> list[VideoModel]:
    """Models a key may use; a key with a model allow-list is restricted to it."""
    provider = get_video_provider(key.provider)
    if provider is None:
        return []
    models = provider.get_available_models()
    if key.video_models:
        return [m for m in models if m.id in key.video_models]
    return models
