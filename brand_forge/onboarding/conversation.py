"""Onboarding conversation: message log, model context and the streamed chat turn."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, AsyncIterator

import structlog

from brand_forge.core.archive import FileArchive, get_file_archive
from brand_forge.core.profiles import BrandProfileRegistry, get_profile_registry
from brand_forge.core.versions import FieldVersionControl, get_field_versions
from brand_forge.db.client import SupabaseClient, get_supabase_client
from brand_forge.db.models import GenerationType, MessageRole
from brand_forge.llm.openai_chat import OpenAIChatClient, get_chat_client
from brand_forge.onboarding.extraction import build_extraction_prompt, parse_extraction_response
from brand_forge.onboarding.steps import STEP_COMPLETE_MARKER, get_next_step, get_system_prompt_for_step
from brand_forge.utils.cost import calculate_cost, get_model_display_name
from brand_forge.utils.sse import DONE_FRAME, format_sse

logger = structlog.get_logger()

MESSAGES_TABLE = "onboarding_messages"

CHAT_MODEL = "gpt-4o"
EXTRACTION_MODEL = "gpt-4o-mini"
EXTRACTION_WINDOW = 6

WELCOME_REQUEST = (
    "I'm starting the brand onboarding process. Please welcome me and ask whether "
    "I have an existing brand or am starting from scratch."
)


def _parse_json(raw: Any) -> Any:
    if raw is None or not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def map_row_to_message(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "brandProfileId": row["brand_profile_id"],
        "userId": row.get("user_id"),
        "role": row["role"],
        "content": row["content"],
        "step": row.get("step"),
        "metadata": _parse_json(row.get("metadata")),
        "attachments": _parse_json(row.get("attachments")) or None,
        "createdAt": row.get("created_at"),
    }


def _footnotes(attachments: list[dict[str, Any]]) -> str:
    return "\n".join(f"[Attached {a.get('type')}: {a.get('name')}]" for a in attachments)


def build_conversation_context(
    step: str,
    messages: list[dict[str, Any]],
    brand_data: dict[str, Any] | None = None,
    content_context: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """Chat messages for the model: the step's system prompt, then the dialogue.

    Images a user attached are sent as vision parts; anything else attached is
    named in a footnote under the message text. System rows are dropped.
    """
    result: list[dict[str, Any]] = [
        {"role": "system", "content": get_system_prompt_for_step(step, brand_data, content_context)}
    ]

    for msg in messages:
        role = msg["role"]
        if role not in (MessageRole.USER.value, MessageRole.ASSISTANT.value):
            continue

        attachments = msg.get("attachments") or []
        images = [a for a in attachments if a.get("type") == "image"]
        others = [a for a in attachments if a.get("type") != "image"]

        if images and role == MessageRole.USER.value:
            text = msg["content"]
            if others:
                text += "\n\n" + _footnotes(others)
            parts: list[dict[str, Any]] = [{"type": "text", "text": text}]
            for img in images:
                parts.append({"type": "image_url", "image_url": {"url": img.get("url"), "detail": "auto"}})
            result.append({"role": role, "content": parts})
        elif attachments:
            result.append({"role": role, "content": msg["content"] + "\n\n" + _footnotes(images + others)})
        else:
            result.append({"role": role, "content": msg["content"]})

    return result


class OnboardingConversation:
    """Drives the guided brand-building chat for one profile at a time."""

    def __init__(
        self,
        db: SupabaseClient,
        profiles: BrandProfileRegistry,
        versions: FieldVersionControl,
        chat: OpenAIChatClient,
        archive: FileArchive | None = None,
    ) -> None:
        self.db = db
        self.profiles = profiles
        self.versions = versions
        self.chat = chat
        self.archive = archive

    def add_message(
        self,
        profile_id: str,
        user_id: str,
        role: MessageRole | str,
        content: str,
        step: str | None = None,
        metadata: dict[str, Any] | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        row = self.db.insert(
            MESSAGES_TABLE,
            {
                "brand_profile_id": profile_id,
                "user_id": user_id,
                "role": MessageRole(role).value,
                "content": content,
                "step": step,
                "metadata": json.dumps(metadata) if metadata else None,
                "attachments": json.dumps(attachments) if attachments else None,
            },
        )
        return map_row_to_message(row)

    def get_messages(self, profile_id: str, step: str | None = None) -> list[dict[str, Any]]:
        """Messages for a profile in the order they were written."""
        filters: dict[str, Any] = {"brand_profile_id": profile_id}
        if step:
            filters["step"] = step
        rows = self.db.select(MESSAGES_TABLE, filters=filters, order_by="created_at", ascending=True)
        return [map_row_to_message(r) for r in rows]

    def build_content_context(self, profile_id: str) -> dict[str, Any]:
        """Inventory of generated and archived media for the prompt."""
        generations = self.db.select("ai_generations", filters={"brand_profile_id": profile_id})
        by_type = self.archive.get_stats(profile_id)["byType"] if self.archive else {}
        return {
            "texts": [],
            "asset_summary": {
                "total_count": sum(by_type.values()),
                "image_count": by_type.get("image", 0),
                "audio_count": by_type.get("audio", 0),
                "video_count": by_type.get("video", 0),
                "video_generations_count": sum(
                    1 for g in generations if g.get("generation_type") == GenerationType.VIDEO.value
                ),
            },
        }

    async def start(self, user_id: str, api_key: str | None) -> dict[str, Any]:
        """Create a profile and greet the user.

        The profile is created even when no model is reachable; the result
        then carries ``message=None`` and an ``error``.
        """
        profile = self.profiles.create_profile(user_id)
        if not api_key:
            return {"profile": profile, "message": None, "error": "No AI provider configured"}

        messages = [
            {"role": "system", "content": get_system_prompt_for_step("welcome")},
            {"role": "user", "content": WELCOME_REQUEST},
        ]
        try:
            welcome = ""
            async for chunk in self.chat.stream_chat_completion(
                api_key, messages, model=CHAT_MODEL, temperature=0.8, max_tokens=800
            ):
                if chunk.type == "content":
                    welcome += chunk.content
        except Exception as e:
            logger.error("onboarding.welcome_failed", profile_id=profile["id"], error=str(e))
            return {"profile": profile, "message": None, "error": "Failed to generate welcome message"}

        saved = self.add_message(profile["id"], user_id, MessageRole.ASSISTANT, welcome, step="welcome")
        logger.info("onboarding.started", profile_id=profile["id"], user_id=user_id)
        return {"profile": profile, "message": saved}

    async def chat_turn(
        self,
        profile: dict[str, Any],
        user_id: str,
        message: str,
        step: str,
        api_key: str,
        attachments: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[str]:
        """One user turn as SSE frames.

        Frames, in order: ``{content}`` deltas, ``{usage}``, ``{stepAdvance}``
        when the reply carries the completion marker, ``{brandDataExtracted}``
        when extraction finds fields, then ``[DONE]``. The reply, the step
        advance and the extracted fields are persisted after ``[DONE]``.
        """
        profile_id = profile["id"]
        self.add_message(profile_id, user_id, MessageRole.USER, message, step=step, attachments=attachments)
        history = self.get_messages(profile_id)
        context = build_conversation_context(step, history, profile, self.build_content_context(profile_id))

        full_content = ""
        usage: dict[str, Any] | None = None
        try:
            async for chunk in self.chat.stream_chat_completion(
                api_key, context, model=CHAT_MODEL, temperature=0.8, max_tokens=1500
            ):
                if chunk.type == "content" and chunk.content:
                    full_content += chunk.content
                    yield format_sse({"content": chunk.content})
                elif chunk.type == "usage":
                    model = chunk.model or CHAT_MODEL
                    cost = calculate_cost(model, chunk.prompt_tokens, chunk.completion_tokens)
                    usage = {
                        "inputTokens": chunk.prompt_tokens,
                        "outputTokens": chunk.completion_tokens,
                        "totalCost": cost.total_cost,
                        "model": model,
                        "displayName": get_model_display_name(model),
                    }
                    yield format_sse({"usage": usage})
        except Exception as e:
            logger.error("onboarding.stream_failed", profile_id=profile_id, error=str(e))
            yield format_sse({"error": "Stream failed"})
            return

        advance = STEP_COMPLETE_MARKER in full_content
        clean_content = full_content.replace(STEP_COMPLETE_MARKER, "", 1).rstrip()
        next_step = get_next_step(step) if advance else None
        if next_step:
            yield format_sse({"stepAdvance": next_step})

        extracted = await self._extract(step, history[:-1], message, clean_content, api_key)
        if extracted:
            yield format_sse({"brandDataExtracted": extracted})

        yield DONE_FRAME

        self._persist_turn(profile_id, user_id, step, clean_content, usage, next_step, extracted)

    async def _extract(
        self,
        step: str,
        previous: list[dict[str, Any]],
        message: str,
        reply: str,
        api_key: str,
    ) -> dict[str, Any] | None:
        """Structured fields from the latest exchange; None on any failure."""
        recent = [
            {"role": m["role"], "content": m["content"]}
            for m in previous
            if m["role"] in (MessageRole.USER.value, MessageRole.ASSISTANT.value)
        ][-EXTRACTION_WINDOW:]
        recent.append({"role": MessageRole.USER.value, "content": message})
        recent.append({"role": MessageRole.ASSISTANT.value, "content": reply})

        prompt = build_extraction_prompt(step, recent)
        if not prompt:
            return None
        try:
            response = await self.chat.chat_completion(
                api_key,
                [{"role": "system", "content": prompt}],
                model=EXTRACTION_MODEL,
                temperature=0.1,
                max_tokens=512,
                json_mode=True,
            )
        except Exception as e:
            logger.warning("onboarding.extraction_failed", step=step, error=str(e))
            return None
        return parse_extraction_response(response)

    def _persist_turn(
        self,
        profile_id: str,
        user_id: str,
        step: str,
        reply: str,
        usage: dict[str, Any] | None,
        next_step: str | None,
        extracted: dict[str, Any] | None,
    ) -> None:
        """Best-effort writes once the client has the full reply."""
        if not reply:
            return
        try:
            self.add_message(
                profile_id,
                user_id,
                MessageRole.ASSISTANT,
                reply,
                step=step,
                metadata={"usage": usage} if usage else None,
            )
            if next_step:
                self.profiles.update_profile(profile_id, {"onboardingStep": next_step})
        except Exception as e:
            logger.error("onboarding.persist_failed", profile_id=profile_id, error=str(e))

        if extracted:
            try:
                self.versions.apply_extracted_fields(profile_id, user_id, step, extracted)
            except Exception as e:
                logger.error("onboarding.extracted_persist_failed", profile_id=profile_id, error=str(e))


@lru_cache
def get_conversation() -> OnboardingConversation:
    """Get cached onboarding conversation instance."""
    return OnboardingConversation(
        get_supabase_client(),
        get_profile_registry(),
        get_field_versions(),
        get_chat_client(),
        get_file_archive(),
    )
