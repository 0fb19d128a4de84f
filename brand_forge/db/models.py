"""Database models / type definitions.

Enumerations for the status and category columns, plus the records stored
as JSON blobs in the key-value store.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ProfileStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChangeSource(str, Enum):
    MANUAL = "manual"
    AI = "ai"
    IMPORT = "import"


class GenerationType(str, Enum):
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


class GenerationStatus(str, Enum):
    """Lifecycle of an ``ai_generations`` row. complete and failed are terminal."""

    PENDING = "pending"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.COMPLETE, GenerationStatus.FAILED)


class AIKeyRecord(BaseModel):
    """Provider API key stored under ``ai_key:<id>`` in the KV store."""

    id: str
    name: str = ""
    provider: str
    api_key: str = Field(alias="apiKey")
    enabled: bool = True
    video_enabled: bool = Field(default=False, alias="videoEnabled")
    video_models: list[str] = Field(default_factory=list, alias="videoModels")

    model_config = {"populate_by_name": True}


class FileType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


class FileSource(str, Enum):
    USER_UPLOAD = "user_upload"
    AI_GENERATED = "ai_generated"
    AI_REFERENCED = "ai_referenced"


class FileContext(str, Enum):
    ONBOARDING = "onboarding"
    CHAT = "chat"
    BRAND_ASSETS = "brand_assets"
