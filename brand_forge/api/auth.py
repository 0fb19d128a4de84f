"""Session endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from brand_forge.api.deps import get_current_user, session_token
from brand_forge.config import Settings, get_settings
from brand_forge.db.client import SupabaseClient, get_supabase_client

logger = structlog.get_logger()

router = APIRouter()


@router.get("/session")
async def get_session(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    """The signed-in user."""
    return {
        "user": {
            "id": user["id"],
            "name": user.get("name"),
            "email": user.get("email"),
            "avatarUrl": user.get("avatar_url"),
            "isAdmin": bool(user.get("is_admin")),
        }
    }


@router.post("/logout")
async def logout(
    request: Request,
    db: SupabaseClient = Depends(get_supabase_client),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """End the session and send the browser home."""
    token = session_token(request, settings)
    if token:
        session = db.select_one("sessions", {"token": token})
        if session:
            db.delete("sessions", session["id"])
            logger.info("auth.logged_out", user_id=session["user_id"])

    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response
