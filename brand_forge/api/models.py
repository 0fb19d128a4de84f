"""Pydantic request models for the API.

Bodies use camelCase keys on the wire.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from brand_forge.db.models import ChangeSource


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Brand ---


class DuplicateProfileRequest(_Body):
    source_profile_id: str = Field(..., alias="sourceProfileId", min_length=1)


class UpdateFieldRequest(_Body):
    """Set one brand field and record a version."""

    profile_id: str = Field(..., alias="profileId", min_length=1)
    field_name: str = Field(..., alias="fieldName", min_length=1)
    new_value: Any = Field(default=None, alias="newValue")
    change_source: ChangeSource = Field(default=ChangeSource.MANUAL, alias="changeSource")
    change_reason: str | None = Field(default=None, alias="changeReason")


class RevertFieldRequest(_Body):
    profile_id: str = Field(..., alias="profileId", min_length=1)
    field_name: str = Field(..., alias="fieldName", min_length=1)
    version_id: str = Field(..., alias="versionId", min_length=1)


# --- Onboarding ---


class ProfileUpdateRequest(_Body):
    profile_id: str = Field(..., alias="profileId", min_length=1)
    updates: dict[str, Any]


class Attachment(_Body):
    type: str
    name: str = ""
    url: str | None = None
    r2_key: str | None = Field(default=None, alias="r2Key")
    mime_type: str | None = Field(default=None, alias="mimeType")


class ChatRequest(_Body):
    profile_id: str = Field(..., alias="profileId", min_length=1)
    message: str = Field(..., min_length=1)
    step: str = Field(..., min_length=1)
    attachments: list[Attachment] = Field(default_factory=list)


# --- Assets ---


class GenerateAssetRequest(_Body):
    """Image, audio or video generation request; fields apply per type."""

    type: Literal["image", "audio", "video"]
    brand_profile_id: str = Field(..., alias="brandProfileId", min_length=1)
    prompt: str = Field(..., min_length=1)
    model: str | None = None
    name: str | None = None
    category: str | None = None
    # image
    negative_prompt: str | None = Field(default=None, alias="negativePrompt")
    size: str | None = None
    style: str | None = None
    quality: str | None = None
    # audio
    voice: str | None = None
    speed: float | None = None
    response_format: str | None = Field(default=None, alias="responseFormat")
    # video
    provider: str | None = None
    aspect_ratio: str | None = Field(default=None, alias="aspectRatio")
    duration: int | None = None
    resolution: str | None = None


# --- Video ---


class VideoGenerateRequest(_Body):
    prompt: Any = None
    model: str | None = None
    provider: str | None = None
    aspect_ratio: str | None = Field(default=None, alias="aspectRatio")
    duration: int | None = None
    resolution: str | None = None
    brand_profile_id: str | None = Field(default=None, alias="brandProfileId")


# --- Archive ---


class ArchiveEntryCreate(_Body):
    brand_profile_id: str = Field(..., alias="brandProfileId", min_length=1)
    file_name: str = Field(..., alias="fileName", min_length=1)
    mime_type: str = Field(..., alias="mimeType")
    file_size: int = Field(default=0, alias="fileSize")
    r2_key: str = Field(..., alias="r2Key", min_length=1)
    file_type: Literal["image", "video", "audio", "document"] = Field(..., alias="fileType")
    source: Literal["user_upload", "ai_generated", "ai_referenced"]
    context: Literal["onboarding", "chat", "brand_assets"] | None = None
    conversation_id: str | None = Field(default=None, alias="conversationId")
    message_id: str | None = Field(default=None, alias="messageId")
    onboarding_step: str | None = Field(default=None, alias="onboardingStep")
    ai_prompt: str | None = Field(default=None, alias="aiPrompt")
    ai_model: str | None = Field(default=None, alias="aiModel")
    ai_generation_id: str | None = Field(default=None, alias="aiGenerationId")
    folder: str | None = None
    tags: list[str] = Field(default_factory=list)
    description: str | None = None


class ArchiveEntryUpdate(_Body):
    file_name: str | None = Field(default=None, alias="fileName")
    description: str | None = None
    folder: str | None = None
    tags: list[str] | None = None
