"""Shared request dependencies: session resolution and ownership checks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import Depends, HTTPException, Request

from brand_forge.config import Settings, get_settings
from brand_forge.core.profiles import BrandProfileRegistry
from brand_forge.db.client import SupabaseClient, get_supabase_client

logger = structlog.get_logger()


def session_token(request: Request, settings: Settings) -> str | None:
    """Session token from the session cookie, else a Bearer header."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def _expired(session: dict[str, Any]) -> bool:
    expires_at = session.get("expires_at")
    if not expires_at:
        return False
    expires = datetime.fromisoformat(expires_at)
    if expires.tzinfo is None:
        # Timestamps without an offset are stored in UTC
        expires = expires.replace(tzinfo=timezone.utc)
    return expires <= datetime.now(timezone.utc)


def get_current_user(
    request: Request,
    db: SupabaseClient = Depends(get_supabase_client),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """The signed-in user. Raises 401 without a live session."""
    token = session_token(request, settings)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    session = db.select_one("sessions", {"token": token})
    if not session or _expired(session):
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = db.select_one("users", {"id": session["user_id"]})
    if not user:
        logger.warning("auth.orphan_session", session_id=session["id"])
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_owned_profile(
    registry: BrandProfileRegistry, profile_id: str, user: dict[str, Any]
) -> dict[str, Any]:
    """The profile, if it belongs to the user. Raises 404 or 403."""
    profile = registry.get_profile(profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    if profile["userId"] != user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return profile
