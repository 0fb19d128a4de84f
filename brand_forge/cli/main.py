"""BrandForge command-line client."""

from __future__ import annotations

import json
import sys
from typing import Any

import click

from brand_forge.cli.client import BrandClient


def _format_table(rows: list[dict], columns: list[str]) -> str:
    """Simple table formatter."""
    if not rows:
        return "No results."
    widths = {c: len(c) for c in columns}
    for row in rows:
        for c in columns:
            widths[c] = max(widths[c], len(str(row.get(c, ""))))

    header = "  ".join(c.upper().ljust(widths[c]) for c in columns)
    separator = "  ".join("-" * widths[c] for c in columns)
    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(str(row.get(c, "")).ljust(widths[c]) for c in columns))
    return "\n".join(lines)


@click.group()
@click.option("--api", default="http://localhost:8400", envvar="BRANDFORGE_API", help="API base URL")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.option("--token", default=None, envvar="BRANDFORGE_TOKEN", help="Session token")
@click.pass_context
def cli(ctx: click.Context, api: str, output_format: str, token: str | None) -> None:
    """Manage brand profiles, field history and video jobs."""
    ctx.ensure_object(dict)
    ctx.obj = BrandClient(base_url=api, session_token=token)
    ctx.meta["output_format"] = output_format


def _output(ctx: click.Context, data: Any, columns: list[str] | None = None) -> None:
    fmt = ctx.meta.get("output_format", "table")
    if fmt != "json" and isinstance(data, list) and columns:
        click.echo(_format_table(data, columns))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


def _parse_value(raw: str) -> Any:
    """JSON when it parses (lists, objects, numbers), the raw string otherwise."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


# --- Profile commands ---


@cli.group()
def profiles() -> None:
    """Manage brand profiles."""


@profiles.command("list")
@click.pass_context
def profiles_list(ctx: click.Context) -> None:
    """List your active profiles."""
    client: BrandClient = ctx.obj
    _output(ctx, client.list_profiles(), ["id", "brandName", "status", "onboardingStep"])


@profiles.command("show")
@click.argument("profile_id")
@click.pass_context
def profiles_show(ctx: click.Context, profile_id: str) -> None:
    """Show a profile."""
    client: BrandClient = ctx.obj
    _output(ctx, client.get_profile(profile_id))


@profiles.command("duplicate")
@click.argument("profile_id")
@click.pass_context
def profiles_duplicate(ctx: click.Context, profile_id: str) -> None:
    """Copy a profile's brand data into a new profile."""
    client: BrandClient = ctx.obj
    profile = client.duplicate_profile(profile_id)
    click.echo(f"Created {profile['brandName']} ({profile['id']})")


# --- Field commands ---


@cli.group()
def field() -> None:
    """Inspect and edit versioned brand fields."""


@field.command("history")
@click.argument("profile_id")
@click.argument("field_name")
@click.pass_context
def field_history(ctx: click.Context, profile_id: str, field_name: str) -> None:
    """Show a field's version history."""
    client: BrandClient = ctx.obj
    data = client.field_history(profile_id, field_name)
    _output(ctx, data, ["versionNumber", "id", "changeSource", "newValue", "changeReason"])


@field.command("set")
@click.argument("profile_id")
@click.argument("field_name")
@click.argument("value")
@click.option("--reason", default=None)
@click.pass_context
def field_set(ctx: click.Context, profile_id: str, field_name: str, value: str, reason: str | None) -> None:
    """Set a field. VALUE is parsed as JSON when possible."""
    client: BrandClient = ctx.obj
    result = client.update_field(profile_id, field_name, _parse_value(value), reason)
    click.echo(f"Updated {field_name} → version {result['version']['versionNumber']}")


@field.command("revert")
@click.argument("profile_id")
@click.argument("field_name")
@click.argument("version_id")
@click.pass_context
def field_revert(ctx: click.Context, profile_id: str, field_name: str, version_id: str) -> None:
    """Re-apply an old version of a field."""
    client: BrandClient = ctx.obj
    result = client.revert_field(profile_id, field_name, version_id)
    click.echo(f"Reverted {field_name} → version {result['version']['versionNumber']}")


# --- Video commands ---


@cli.group()
def video() -> None:
    """Generate and follow videos."""


def _watch(client: BrandClient, generation_id: str) -> None:
    for event in client.watch_video(generation_id):
        status = event.get("status")
        if event.get("error"):
            click.echo(f"[{status}] {event['error']}")
        else:
            click.echo(f"[{status}] {event.get('progress', 0)}%")
        if status == "complete":
            click.echo(f"Video: {event.get('videoUrl')}")
        if status == "error":
            sys.exit(1)


@video.command("generate")
@click.argument("prompt")
@click.option("--model", default=None)
@click.option("--provider", default=None)
@click.option("--aspect-ratio", default=None)
@click.option("--duration", type=int, default=None)
@click.option("--resolution", default=None)
@click.option("--profile", "profile_id", default=None, help="Brand profile to attach the video to")
@click.option("--watch/--no-watch", default=False, help="Follow progress until the job settles")
@click.pass_context
def video_generate(
    ctx: click.Context,
    prompt: str,
    model: str | None,
    provider: str | None,
    aspect_ratio: str | None,
    duration: int | None,
    resolution: str | None,
    profile_id: str | None,
    watch: bool,
) -> None:
    """Start a video generation."""
    client: BrandClient = ctx.obj
    data = {
        "prompt": prompt,
        "model": model,
        "provider": provider,
        "aspectRatio": aspect_ratio,
        "duration": duration,
        "resolution": resolution,
        "brandProfileId": profile_id,
    }
    result = client.generate_video({k: v for k, v in data.items() if v is not None})
    click.echo(f"Started {result['id']} ({result['status']})")
    if watch:
        _watch(client, result["id"])


@video.command("watch")
@click.argument("generation_id")
@click.pass_context
def video_watch(ctx: click.Context, generation_id: str) -> None:
    """Follow a video generation's progress."""
    _watch(ctx.obj, generation_id)


# --- Archive commands ---


@cli.group()
def archive() -> None:
    """Browse the file archive."""


@archive.command("list")
@click.argument("profile_id")
@click.option("--type", "file_type", default=None)
@click.option("--folder", default=None)
@click.option("--search", default=None)
@click.option("--starred", is_flag=True, default=False)
@click.pass_context
def archive_list(
    ctx: click.Context,
    profile_id: str,
    file_type: str | None,
    folder: str | None,
    search: str | None,
    starred: bool,
) -> None:
    """List archived files for a profile."""
    client: BrandClient = ctx.obj
    params: dict[str, Any] = {}
    if file_type:
        params["fileType"] = file_type
    if folder:
        params["folder"] = folder
    if search:
        params["search"] = search
    if starred:
        params["starred"] = "true"
    data = client.list_archive(profile_id, **params)
    _output(ctx, data["files"], ["id", "fileName", "fileType", "folder", "isStarred"])


if __name__ == "__main__":
    cli()
