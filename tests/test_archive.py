"""Tests for the file archive."""

import pytest

from brand_forge.core.archive import FileArchive, determine_folder


@pytest.fixture
def archive(mock_db):
    return FileArchive(mock_db)


def add(archive, name="logo.png", file_type="image", source="user_upload", **kwargs):
    return archive.create_entry(
        brand_profile_id=kwargs.pop("brand_profile_id", "p1"),
        user_id="u1",
        file_name=name,
        mime_type=kwargs.pop("mime_type", "image/png"),
        r2_key=f"brands/p1/{name}",
        file_type=file_type,
        source=source,
        **kwargs,
    )


class TestDetermineFolder:
    def test_onboarding_with_step(self):
        assert determine_folder("onboarding", "image", "user_upload", "visual_identity") == (
            "/onboarding/visual-identity/images"
        )

    def test_onboarding_without_step(self):
        assert determine_folder("onboarding", "document", "user_upload") == "/onboarding/documents"

    def test_brand_assets(self):
        assert determine_folder("brand_assets", "audio", "ai_generated") == "/brand-assets/audios"

    def test_chat_generated(self):
        assert determine_folder("chat", "video", "ai_generated") == "/ai-generated/videos"

    def test_chat_upload(self):
        assert determine_folder("chat", "image", "ai_referenced") == "/uploads/images"

    def test_chat_audio(self):
        assert determine_folder("chat", "audio", "ai_generated") == "/ai-generated/audios"
        assert determine_folder("chat", "audio", "user_upload") == "/uploads/audios"

    def test_unknown_context(self):
        with pytest.raises(ValueError):
            determine_folder("elsewhere", "image", "user_upload")


class TestArchive:
    def test_create_defaults(self, archive):
        entry = add(archive)
        assert entry["context"] == "chat"
        assert entry["folder"] == "/uploads/images"
        assert entry["tags"] == []
        assert entry["isStarred"] is False

    def test_explicit_folder_and_tags(self, archive):
        entry = add(archive, folder="/campaigns", tags=["launch", "q3"])
        assert entry["folder"] == "/campaigns"
        assert archive.get_entry(entry["id"])["tags"] == ["launch", "q3"]

    def test_list_filters(self, archive):
        add(archive, "a.png")
        add(archive, "b.mp4", file_type="video", source="ai_generated", mime_type="video/mp4")
        add(archive, "c.png", context="onboarding", onboarding_step="visual_identity")
        add(archive, "other.png", brand_profile_id="p2")

        assert archive.list_entries("p1")["total"] == 3
        assert [f["fileName"] for f in archive.list_entries("p1", file_type="video")["files"]] == ["b.mp4"]
        assert archive.list_entries("p1", source="ai_generated")["total"] == 1
        assert archive.list_entries("p1", context="onboarding")["total"] == 1
        assert archive.list_entries("p1", folder="/onboarding")["total"] == 1

    def test_search_matches_name_description_and_tags(self, archive):
        add(archive, "Logo-Final.png")
        add(archive, "x.png", description="Hero banner for launch")
        add(archive, "y.png", tags=["moodboard"])
        assert archive.list_entries("p1", search="logo")["total"] == 1
        assert archive.list_entries("p1", search="BANNER")["total"] == 1
        assert archive.list_entries("p1", search="mood")["total"] == 1

    def test_pagination_reports_unpaged_total(self, archive):
        for i in range(5):
            add(archive, f"{i}.png")
        page = archive.list_entries("p1", limit=2, offset=4)
        assert page["total"] == 5
        assert len(page["files"]) == 1

    def test_star_toggle_and_filter(self, archive):
        entry = add(archive)
        add(archive, "other.png")
        assert archive.toggle_star(entry["id"]) is True
        starred = archive.list_entries("p1", is_starred=True)
        assert [f["id"] for f in starred["files"]] == [entry["id"]]
        assert archive.toggle_star(entry["id"]) is False

    def test_star_unknown(self, archive):
        with pytest.raises(ValueError):
            archive.toggle_star("missing")

    def test_update_editable_fields_only(self, archive):
        entry = add(archive)
        updated = archive.update_entry(
            entry["id"], {"fileName": "renamed.png", "tags": ["a"], "r2Key": "elsewhere", "folder": None}
        )
        assert updated["fileName"] == "renamed.png"
        assert updated["tags"] == ["a"]
        assert updated["r2Key"] == entry["r2Key"]
        assert updated["folder"] == entry["folder"]

    def test_update_unknown(self, archive):
        assert archive.update_entry("missing", {"fileName": "x"}) is None

    def test_delete(self, archive):
        entry = add(archive)
        assert archive.delete_entry(entry["id"]) is True
        assert archive.get_entry(entry["id"]) is None
        assert archive.delete_entry(entry["id"]) is False

    def test_folders(self, archive):
        add(archive, "a.png")
        add(archive, "b.png")
        add(archive, "c.mp4", file_type="video", source="ai_generated", mime_type="video/mp4")
        folders = archive.get_folders("p1")
        assert folders == [
            {"path": "/ai-generated/videos", "name": "videos", "fileCount": 1},
            {"path": "/uploads/images", "name": "images", "fileCount": 2},
        ]

    def test_stats(self, archive):
        add(archive, "a.png", file_size=100)
        add(archive, "b.mp4", file_type="video", source="ai_generated", mime_type="video/mp4", file_size=900)
        stats = archive.get_stats("p1")
        assert stats["totalFiles"] == 2
        assert stats["totalSize"] == 1000
        assert stats["byType"] == {"image": 1, "video": 1}
        assert stats["bySource"] == {"user_upload": 1, "ai_generated": 1}
        assert stats["byContext"] == {"chat": 2}
