"""File archive endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response

from brand_forge.api.deps import get_current_user, require_owned_profile
from brand_forge.api.models import ArchiveEntryCreate, ArchiveEntryUpdate
from brand_forge.core.archive import DEFAULT_PAGE_SIZE, FileArchive, get_file_archive
from brand_forge.core.profiles import BrandProfileRegistry, get_profile_registry
from brand_forge.storage.objects import ObjectStorage, get_object_storage

logger = structlog.get_logger()

router = APIRouter()


def _with_url(entry: dict[str, Any]) -> dict[str, Any]:
    return {**entry, "url": f"/api/archive/file/{entry['r2Key']}"}


def _owned_entry(archive: FileArchive, entry_id: str, user: dict[str, Any]) -> dict[str, Any]:
    entry = archive.get_entry(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="File not found")
    if entry["userId"] != user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return entry


@router.get("")
async def list_files(
    brandProfileId: str,
    fileType: str | None = None,
    source: str | None = None,
    context: str | None = None,
    folder: str | None = None,
    search: str | None = None,
    starred: bool | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    archive: FileArchive = Depends(get_file_archive),
) -> dict[str, Any]:
    """One page of a brand's files, newest first."""
    require_owned_profile(registry, brandProfileId, user)
    result = archive.list_entries(
        brandProfileId,
        file_type=fileType,
        source=source,
        context=context,
        folder=folder,
        is_starred=starred,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {"files": [_with_url(e) for e in result["files"]], "total": result["total"]}


@router.post("", status_code=201)
async def create_file(
    data: ArchiveEntryCreate,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    archive: FileArchive = Depends(get_file_archive),
) -> dict[str, Any]:
    """File an already-stored object in the archive."""
    require_owned_profile(registry, data.brand_profile_id, user)
    entry = archive.create_entry(user_id=user["id"], **data.model_dump(exclude_none=True))
    return {"file": _with_url(entry)}


@router.get("/folders")
async def list_folders(
    brandProfileId: str,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    archive: FileArchive = Depends(get_file_archive),
) -> dict[str, Any]:
    require_owned_profile(registry, brandProfileId, user)
    return {"folders": archive.get_folders(brandProfileId)}


@router.get("/stats")
async def archive_stats(
    brandProfileId: str,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    archive: FileArchive = Depends(get_file_archive),
) -> dict[str, Any]:
    require_owned_profile(registry, brandProfileId, user)
    return {"stats": archive.get_stats(brandProfileId)}


@router.get("/file/{key:path}")
async def get_file(
    key: str,
    user: dict[str, Any] = Depends(get_current_user),
    registry: BrandProfileRegistry = Depends(get_profile_registry),
    storage: ObjectStorage | None = Depends(get_object_storage),
) -> Response:
    """Serve an archived object. Brand keys are checked against profile ownership."""
    if storage is None:
        raise HTTPException(status_code=500, detail="Object storage not configured")
    parts = key.split("/")
    if parts[0] == "brands" and len(parts) > 1:
        require_owned_profile(registry, parts[1], user)
    elif parts[0] == "videos" and (len(parts) < 2 or parts[1] != user["id"]):
        raise HTTPException(status_code=404, detail="File not found")

    found = await storage.get(key)
    if found is None:
        raise HTTPException(status_code=404, detail="File not found")
    body, content_type = found
    return Response(
        content=body,
        media_type=content_type or "application/octet-stream",
        headers={"Cache-Control": "private, max-age=31536000, immutable"},
    )


@router.patch("/{entry_id}")
async def update_file(
    entry_id: str,
    data: ArchiveEntryUpdate,
    user: dict[str, Any] = Depends(get_current_user),
    archive: FileArchive = Depends(get_file_archive),
) -> dict[str, Any]:
    """Rename, re-describe, re-tag or move a file."""
    _owned_entry(archive, entry_id, user)
    entry = archive.update_entry(entry_id, data.model_dump(by_alias=True, exclude_none=True))
    if not entry:
        raise HTTPException(status_code=404, detail="File not found")
    return {"file": _with_url(entry)}


@router.post("/{entry_id}/star")
async def toggle_star(
    entry_id: str,
    user: dict[str, Any] = Depends(get_current_user),
    archive: FileArchive = Depends(get_file_archive),
) -> dict[str, Any]:
    _owned_entry(archive, entry_id, user)
    try:
        starred = archive.toggle_star(entry_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"isStarred": starred}


@router.delete("/{entry_id}")
async def delete_file(
    entry_id: str,
    user: dict[str, Any] = Depends(get_current_user),
    archive: FileArchive = Depends(get_file_archive),
    storage: ObjectStorage | None = Depends(get_object_storage),
) -> dict[str, Any]:
    """Remove the entry and, when storage is bound, its object."""
    entry = _owned_entry(archive, entry_id, user)
    if storage is not None:
        try:
            await storage.delete(entry["r2Key"])
        except Exception as e:
            logger.error("archive.object_delete_failed", key=entry["r2Key"], error=str(e))
    archive.delete_entry(entry_id)
    return {"success": True}
