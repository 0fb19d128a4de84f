"""Tests for onboarding endpoints."""

import pytest

from brand_forge.storage.ai_keys import add_ai_key

from conftest import parse_sse


@pytest.fixture
def openai_key(services):
    return add_ai_key(services["kv"], "openai", "sk-test")


@pytest.fixture
def profile(services, user):
    return services["registry"].create_profile(user["id"])


class TestOnboardingProfile:
    def test_latest_profile(self, client, profile):
        resp = client.get("/api/onboarding/profile")
        assert resp.json()["profile"]["id"] == profile["id"]

    def test_no_profile_yet(self, client):
        assert client.get("/api/onboarding/profile").json()["profile"] is None

    def test_update_profile(self, client, profile):
        resp = client.patch(
            "/api/onboarding/profile",
            json={"profileId": profile["id"], "updates": {"brandName": "Oat Co", "industry": "Food"}},
        )
        updated = resp.json()["profile"]
        assert updated["brandName"] == "Oat Co"
        assert updated["brandNameConfirmed"] is True
        assert updated["industry"] == "Food"

    def test_update_foreign_profile(self, client, services, other_user):
        foreign = services["registry"].create_profile(other_user["id"])
        resp = client.patch("/api/onboarding/profile", json={"profileId": foreign["id"], "updates": {}})
        assert resp.status_code == 403


class TestStartAPI:
    def test_start_without_key_still_creates_profile(self, client):
        data = client.post("/api/onboarding/start").json()
        assert data["profile"]["onboardingStep"] == "welcome"
        assert data["message"] is None
        assert data["error"] == "No AI provider configured"

    def test_start_with_key(self, client, openai_key, chat_client):
        data = client.post("/api/onboarding/start").json()
        assert data["message"]["content"] == "Hello there!"
        assert chat_client.stream_calls[0]["api_key"] == "sk-test"

    def test_messages(self, client, openai_key):
        profile_id = client.post("/api/onboarding/start").json()["profile"]["id"]
        messages = client.get(f"/api/onboarding/messages/{profile_id}").json()["messages"]
        assert [m["role"] for m in messages] == ["assistant"]
        assert client.get(f"/api/onboarding/messages/{profile_id}?step=brand_story").json()["messages"] == []


class TestChatAPI:
    def test_streams_reply(self, client, profile, openai_key):
        resp = client.post(
            "/api/onboarding/chat",
            json={"profileId": profile["id"], "message": "Hi", "step": "welcome"},
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        events = parse_sse(resp.text)
        assert events[0] == {"content": "Hello "}
        assert events[-1] == "[DONE]"

    def test_unknown_step(self, client, profile, openai_key):
        resp = client.post(
            "/api/onboarding/chat",
            json={"profileId": profile["id"], "message": "Hi", "step": "elsewhere"},
        )
        assert resp.status_code == 400

    def test_missing_profile(self, client, openai_key):
        resp = client.post(
            "/api/onboarding/chat",
            json={"profileId": "missing", "message": "Hi", "step": "welcome"},
        )
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Brand profile not found"

    def test_no_key(self, client, profile):
        resp = client.post(
            "/api/onboarding/chat",
            json={"profileId": profile["id"], "message": "Hi", "step": "welcome"},
        )
        assert resp.status_code == 503

    def test_empty_message_rejected(self, client, profile, openai_key):
        resp = client.post(
            "/api/onboarding/chat",
            json={"profileId": profile["id"], "message": "", "step": "welcome"},
        )
        assert resp.status_code == 422

    def test_attachments_reach_the_model(self, client, profile, openai_key, chat_client):
        client.post(
            "/api/onboarding/chat",
            json={
                "profileId": profile["id"],
                "message": "Our logo",
                "step": "visual_identity",
                "attachments": [{"type": "image", "name": "logo.png", "url": "https://cdn/logo.png"}],
            },
        )
        last = chat_client.stream_calls[0]["messages"][-1]
        assert last["content"][1]["image_url"]["url"] == "https://cdn/logo.png"
