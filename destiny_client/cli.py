"""
Destiny client — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Resolve the player (where the command takes a display name).
  4. Run one ``BungieClient`` query.
  5. Report result to stdout.

Install and run::

    pip install -e .
    destiny-client --help
    destiny-client validate-config
    destiny-client find-player MyGamertag --platform xbox
    destiny-client profile MyGamertag
    destiny-client raids MyGamertag
    destiny-client clan-roster 12345 --platform playstation
    destiny-client xur
    destiny-client weekly
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

app = typer.Typer(
    name="destiny-client",
    help="Read-only Destiny player, clan and weekly-rotation lookups via the Bungie API.",
    add_completion=False,
)

T = TypeVar("T")

_PLATFORM_NAMES = {"xbox": 1, "xbl": 1, "playstation": 2, "psn": 2}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from destiny_client.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _setup(config_path: Optional[str]):
    """Load config, configure logging and check that an API key is present."""
    from destiny_client.utils.logging import configure_logging

    config = _load_config_or_exit(config_path)
    configure_logging(config.logging)
    if not config.api.api_key:
        typer.echo("[ERROR] BUNGIE_API_KEY is not set (add it to .env).", err=True)
        raise typer.Exit(code=1)
    return config


def _parse_platform(name: Optional[str]):
    from destiny_client.taxonomy.platform import Platform

    if name is None:
        return None
    code = _PLATFORM_NAMES.get(name.lower())
    if code is None:
        typer.echo(
            f"[ERROR] Unknown platform '{name}'. Use one of: {', '.join(_PLATFORM_NAMES)}.",
            err=True,
        )
        raise typer.Exit(code=1)
    return Platform(code)


def _run(config, query: Callable[[Any], Awaitable[T]]) -> T:
    """Open a client from ``config``, run ``query(client)`` and close it."""
    from destiny_client.ingestion.bungie_client import BungieClient

    async def _main() -> T:
        async with BungieClient.from_config(config) as client:
            return await query(client)

    return asyncio.run(_main())


def _player_not_found(name: str) -> None:
    typer.echo(f"[ERROR] Player '{name}' not found.", err=True)
    raise typer.Exit(code=1)


_PLATFORM_OPTION = typer.Option(
    None, "--platform", "-p", help="xbox or playstation (default: search both, Xbox first)."
)
_CONFIG_OPTION = typer.Option(None, "--config", help="Path to TOML config file.")


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = _CONFIG_OPTION,
    show_full: bool = typer.Option(False, "--full", help="Print full config as JSON."),
) -> None:
    """Validate the configuration file and print parsed values."""
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  API base URL:     {config.api.base_url}")
    typer.echo(f"  API key set:      {bool(config.api.api_key)}")
    typer.echo(f"  Timeout (s):      {config.api.timeout_seconds}")
    typer.echo(f"  Max roster pages: {config.roster.max_pages}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        dumped = config.model_dump()
        if dumped["api"]["api_key"]:
            dumped["api"]["api_key"] = "***"
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("find-player")
def find_player(
    name: str = typer.Argument(..., help="Gamertag or PSN id."),
    platform: Optional[str] = _PLATFORM_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Resolve a display name to a Destiny membership id."""
    config = _setup(config_path)
    target = _parse_platform(platform)

    async def query(client):
        destiny_id = await client.get_destiny_id(name, target)
        if destiny_id is None:
            return None, None
        return destiny_id, client.get_player_profile_url(destiny_id)

    destiny_id, url = _run(config, query)
    if destiny_id is None:
        _player_not_found(name)
    typer.echo(f"{name}: platform={destiny_id.platform.name.lower()} id={destiny_id.token}")
    typer.echo(f"  {url}")


@app.command("profile")
def profile(
    name: str = typer.Argument(..., help="Gamertag or PSN id."),
    platform: Optional[str] = _PLATFORM_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show grimoire score and characters."""
    config = _setup(config_path)
    target = _parse_platform(platform)

    async def query(client):
        destiny_id = await client.get_destiny_id(name, target)
        if destiny_id is None:
            return None, None
        return destiny_id, await client.get_player_profile(destiny_id)

    destiny_id, result = _run(config, query)
    if destiny_id is None:
        _player_not_found(name)
    if result is None:
        typer.echo(f"[ERROR] Could not load profile for '{name}'.", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"{name} | grimoire={result.grimoire} | characters={len(result.characters)}")
    last = result.last_played_character
    for character in result.characters:
        marker = "*" if last is not None and character == last else " "
        typer.echo(
            f" {marker} {character.character_id} | {character.class_type.name.lower():<7} "
            f"| last played {character.last_played.isoformat()}"
        )


@app.command("current-activity")
def current_activity(
    name: str = typer.Argument(..., help="Gamertag or PSN id."),
    platform: Optional[str] = _PLATFORM_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show the activity the player is currently in."""
    config = _setup(config_path)
    target = _parse_platform(platform)

    async def query(client):
        destiny_id = await client.get_destiny_id(name, target)
        if destiny_id is None:
            return None, None
        return destiny_id, await client.get_current_activity(destiny_id)

    destiny_id, activity = _run(config, query)
    if destiny_id is None:
        _player_not_found(name)
    if activity is None:
        typer.echo(f"{name} is not in an activity.")
    else:
        typer.echo(f"{name} is in activity {activity.activity_hash}.")


@app.command("raids")
def raids(
    name: str = typer.Argument(..., help="Gamertag or PSN id."),
    platform: Optional[str] = _PLATFORM_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """List raid completions of the last played character."""
    config = _setup(config_path)
    target = _parse_platform(platform)

    async def query(client):
        destiny_id = await client.get_destiny_id(name, target)
        if destiny_id is None:
            return None, None
        character = await client.get_last_played_character(destiny_id)
        if character is None:
            return destiny_id, None
        return destiny_id, await client.get_raid_completions(character)

    destiny_id, completions = _run(config, query)
    if destiny_id is None:
        _player_not_found(name)
    if completions is None:
        typer.echo(f"[ERROR] Could not load raid history for '{name}'.", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"{name}: {len(completions)} raid completion(s)")
    for ref in completions:
        typer.echo(f"  instance={ref.activity_hash} type={ref.type_hash}")


@app.command("inventory")
def inventory(
    name: str = typer.Argument(..., help="Gamertag or PSN id."),
    platform: Optional[str] = _PLATFORM_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Count the items held by the last played character."""
    config = _setup(config_path)
    target = _parse_platform(platform)

    async def query(client):
        destiny_id = await client.get_destiny_id(name, target)
        if destiny_id is None:
            return None, None
        character = await client.get_last_played_character(destiny_id)
        if character is None:
            return destiny_id, None
        return destiny_id, await client.get_inventory(destiny_id, character.character_id)

    destiny_id, result = _run(config, query)
    if destiny_id is None:
        _player_not_found(name)
    if result is None:
        typer.echo(f"{name}: no inventory available.")
    else:
        typer.echo(f"{name}: {len(result.items)} item(s) on last played character.")


@app.command("clan-roster")
def clan_roster(
    clan_id: str = typer.Argument(..., help="Bungie group id of the clan."),
    platform: str = typer.Option("xbox", "--platform", "-p", help="xbox or playstation."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """List clan members on one platform."""
    config = _setup(config_path)
    target = _parse_platform(platform)

    members = _run(config, lambda client: client.get_clan_roster(clan_id, target))
    typer.echo(f"Clan {clan_id} | {target.name.lower()} | {len(members)} member(s)")
    for member in members:
        typer.echo(f"  {member.name} ({member.id.token})")


@app.command("xur")
def xur(config_path: Optional[str] = _CONFIG_OPTION) -> None:
    """Show the exotics Xur is selling."""
    config = _setup(config_path)

    items = _run(config, lambda client: client.get_xur_inventory())
    if items is None:
        typer.echo("[ERROR] Could not load Xur's inventory.", err=True)
        raise typer.Exit(code=1)
    if not items:
        typer.echo("Xur is not around.")
        return
    for item in items:
        typer.echo(f"  {item.item_id} | {'armor' if item.is_armor else 'weapon'}")


@app.command("weekly")
def weekly(config_path: Optional[str] = _CONFIG_OPTION) -> None:
    """Show this week's featured activities and their modifiers."""
    config = _setup(config_path)

    program = _run(config, lambda client: client.get_weekly_activities())
    if program is None:
        typer.echo("[ERROR] Could not load weekly activities.", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Nightfall       {program.nightfall.activity_hash}: "
               f"{', '.join(program.nightfall_skulls)}")
    typer.echo(f"Featured raid   {program.featured_raid.activity_hash}: "
               f"{', '.join(program.featured_raid_skulls)}")
    typer.echo(f"Elder challenge: {', '.join(program.elder_challenge_skulls)}")
    typer.echo(f"Weekly crucible {program.weekly_crucible.activity_hash}")
    typer.echo(f"Heroic strikes: {', '.join(program.heroic_strike_skulls)}")


@app.command("triumphs")
def triumphs(
    name: str = typer.Argument(..., help="Gamertag or PSN id."),
    platform: Optional[str] = _PLATFORM_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show Age of Triumph completion percentage."""
    from destiny_client.exceptions import EmptyRecordBookError

    config = _setup(config_path)
    target = _parse_platform(platform)

    async def query(client):
        destiny_id = await client.get_destiny_id(name, target)
        if destiny_id is None:
            return None, None, None
        return (
            destiny_id,
            await client.get_triumphs_progress(destiny_id),
            client.get_player_triumphs_url(destiny_id),
        )

    try:
        destiny_id, progress, url = _run(config, query)
    except EmptyRecordBookError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    if destiny_id is None:
        _player_not_found(name)
    if progress is None:
        typer.echo(f"{name}: no Age of Triumph progress available.")
        return
    typer.echo(f"{name}: Age of Triumph {progress}% complete")
    typer.echo(f"  {url}")
