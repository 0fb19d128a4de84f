"""Brand profile and field-version endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from brand_forge.api.deps import get_current_user, require_owned_profile
from brand_forge.api.models import DuplicateProfileRequest, RevertFieldRequest, UpdateFieldRequest
from brand_forge.core.fields import is_known_field
from brand_forge.core.profiles import BrandProfileRegistry, get_brand_fields_summary, get_profile_registry
from brand_forge.core.versions import FieldVersionControl, get_field_versions

router = APIRouter()


@router.get("/profiles")
async def list_profiles(
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> dict[str, Any]:
    """Active profiles for the signed-in user, most recently updated first."""
    return {"profiles": registry.list_profiles_by_user(user["id"])}


@router.post("/profiles", status_code=201)
async def create_profile(
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> dict[str, Any]:
    return {"profile": registry.create_profile(user["id"])}


@router.post("/profiles/duplicate", status_code=201)
async def duplicate_profile(
    data: DuplicateProfileRequest,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> dict[str, Any]:
    try:
        profile = registry.duplicate_profile(data.source_profile_id, user["id"])
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"profile": profile}


@router.get("/profiles/{profile_id}")
async def get_profile(
    profile_id: str,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> dict[str, Any]:
    return {"profile": require_owned_profile(registry, profile_id, user)}


@router.delete("/profiles/{profile_id}", status_code=204)
async def archive_profile(
    profile_id: str,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> None:
    """Archive (soft delete) a profile."""
    require_owned_profile(registry, profile_id, user)
    registry.archive_profile(profile_id)


@router.get("/profiles/{profile_id}/summary")
async def profile_summary(
    profile_id: str,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
) -> dict[str, Any]:
    """Profile fields grouped into display sections."""
    profile = require_owned_profile(registry, profile_id, user)
    return {"profileId": profile_id, "sections": get_brand_fields_summary(profile)}


@router.patch("/update-field")
async def update_field(
    data: UpdateFieldRequest,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    versions: FieldVersionControl = Depends(get_field_versions),
) -> dict[str, Any]:
    """Set one field and append a version record."""
    require_owned_profile(registry, data.profile_id, user)
    try:
        version = versions.update_field(
            profile_id=data.profile_id,
            user_id=user["id"],
            field_name=data.field_name,
            new_value=data.new_value,
            change_source=data.change_source,
            change_reason=data.change_reason,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "version": version, "profile": registry.get_profile(data.profile_id)}


@router.post("/revert-field")
async def revert_field(
    data: RevertFieldRequest,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    versions: FieldVersionControl = Depends(get_field_versions),
) -> dict[str, Any]:
    """Re-apply a historical value as a new version."""
    require_owned_profile(registry, data.profile_id, user)
    try:
        version = versions.revert(data.profile_id, user["id"], data.field_name, data.version_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "version": version, "profile": registry.get_profile(data.profile_id)}


@router.get("/field-history/{profile_id}/{field_name}")
async def field_history(
    profile_id: str,
    field_name: str,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    versions: FieldVersionControl = Depends(get_field_versions),
) -> dict[str, Any]:
    require_owned_profile(registry, profile_id, user)
    if not is_known_field(field_name):
        raise HTTPException(status_code=400, detail=f"Unknown brand field: {field_name}")
    return {"history": versions.history(profile_id, field_name)}
