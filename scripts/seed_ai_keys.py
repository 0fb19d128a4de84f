#!/usr/bin/env python3
"""Seed provider API keys into the BrandForge key-value store.

Usage:
    python scripts/seed_ai_keys.py --provider openai --api-key sk-...
    python scripts/seed_ai_keys.py --provider wavespeed --api-key ws-... --video --model wan-2.2/t2v-720p
"""

from __future__ import annotations

import argparse

from brand_forge.storage.ai_keys import add_ai_key, list_ai_keys
from brand_forge.storage.kv import get_kv_store
from brand_forge.utils.security import mask_api_key


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed provider API keys into BrandForge")
    parser.add_argument("--provider", required=True, choices=["openai", "wavespeed"])
    parser.add_argument("--api-key", required=True)
    parser.add_argument("--name", default="")
    parser.add_argument("--video", action="store_true", help="Enable the key for video generation")
    parser.add_argument(
        "--model",
        action="append",
        default=[],
        help="Restrict video generation to this model (repeatable)",
    )
    args = parser.parse_args()

    kv = get_kv_store()
    existing = [r for r in list_ai_keys(kv) if r.api_key == args.api_key]
    if existing:
        print(f"  Skipped (exists): {existing[0].name} {mask_api_key(args.api_key)}")
        return

    record = add_ai_key(
        kv,
        provider=args.provider,
        api_key=args.api_key,
        name=args.name,
        video_enabled=args.video,
        video_models=args.model,
    )
    print(f"  Added {record.provider} key {record.id}: {mask_api_key(record.api_key)}")


if __name__ == "__main__":
    main()
