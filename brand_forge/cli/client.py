"""API client for the BrandForge REST API."""

from __future__ import annotations

import json
from typing import Any, Iterator

import httpx


class BrandClient:
    """HTTP client wrapping the BrandForge API endpoints the CLI needs."""

    def __init__(self, base_url: str = "http://localhost:8400", session_token: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        headers = {}
        if session_token:
            headers["Authorization"] = f"Bearer {session_token}"
        self._client = httpx.Client(base_url=f"{self.base_url}/api", headers=headers, timeout=30)

    def _handle(self, resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except Exception:
                detail = resp.text
            raise RuntimeError(f"API error ({resp.status_code}): {detail}")
        return resp.json()

    # --- Profiles ---

    def list_profiles(self) -> list[dict]:
        return self._handle(self._client.get("/brand/profiles"))["profiles"]

    def get_profile(self, profile_id: str) -> dict:
        return self._handle(self._client.get(f"/brand/profiles/{profile_id}"))["profile"]

    def duplicate_profile(self, profile_id: str) -> dict:
        return self._handle(
            self._client.post("/brand/profiles/duplicate", json={"sourceProfileId": profile_id})
        )["profile"]

    # --- Fields ---

    def field_history(self, profile_id: str, field_name: str) -> list[dict]:
        return self._handle(self._client.get(f"/brand/field-history/{profile_id}/{field_name}"))["history"]

    def update_field(
        self, profile_id: str, field_name: str, value: Any, reason: str | None = None
    ) -> dict:
        return self._handle(self._client.patch(
            "/brand/update-field",
            json={
                "profileId": profile_id,
                "fieldName": field_name,
                "newValue": value,
                "changeSource": "manual",
                "changeReason": reason,
            },
        ))

    def revert_field(self, profile_id: str, field_name: str, version_id: str) -> dict:
        return self._handle(self._client.post(
            "/brand/revert-field",
            json={"profileId": profile_id, "fieldName": field_name, "versionId": version_id},
        ))

    # --- Video ---

    def generate_video(self, data: dict) -> dict:
        return self._handle(self._client.post("/video/generate", json=data))

    def watch_video(self, generation_id: str) -> Iterator[dict]:
        """Yield decoded progress events until the server closes the stream."""
        with self._client.stream("GET", f"/video/{generation_id}/stream", timeout=None) as resp:
            if resp.status_code >= 400:
                resp.read()
                self._handle(resp)
            for line in resp.iter_lines():
                if not line.startswith("data: "):
                    continue
                payload = line[len("data: "):]
                if payload == "[DONE]":
                    return
                yield json.loads(payload)

    # --- Archive ---

    def list_archive(self, profile_id: str, **params: Any) -> dict:
        return self._handle(self._client.get("/archive", params={"brandProfileId": profile_id, **params}))
