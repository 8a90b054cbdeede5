# src/parlaypro/cli.py
"""
ParlayPro command-line interface.

Commands:
- ``stats``     counts and sizes per namespace, plus storage mode
- ``keys``      cached keys for a namespace (both tiers)
- ``prune``     evict the oldest local entries
- ``clear``     delete local entries
- ``verify``    probe the remote tier (the only way to leave local mode)
- ``schedule``  fetch (or load cached) weekly schedule
- ``analyze``   fetch (or load cached) matchup analysis

Usage:
    parlaypro stats
    parlaypro --json keys matchup
    parlaypro analyze Chiefs Raiders --game-id kc-lv
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from .analysis.gemini_client import MatchupAnalyst
from .config import AppConfig, load_config
from .desk import ParlayDesk
from .exceptions import AnalysisError, ConfigError
from .logging_config import configure_logging
from .models import Game
from .storage import Namespace, StorageService

logger = logging.getLogger(__name__)


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

class OutputFormatter:
    """Formats CLI output as colored text or JSON."""

    def __init__(self, use_color: bool = True, json_output: bool = False):
        self.use_color = use_color and sys.stdout.isatty()
        self.json_output = json_output

    def _color(self, text: str, color: str) -> str:
        if not self.use_color:
            return text
        colors = {
            'green': '\033[92m',
            'red': '\033[91m',
            'yellow': '\033[93m',
            'bold': '\033[1m',
            'reset': '\033[0m'
        }
        return f"{colors.get(color, '')}{text}{colors['reset']}"

    def success(self, text: str) -> str:
        return self._color(f"✓ {text}", 'green')

    def error(self, text: str) -> str:
        return self._color(f"✗ {text}", 'red')

    def warning(self, text: str) -> str:
        return self._color(f"⚠ {text}", 'yellow')

    def header(self, text: str) -> str:
        return self._color(text, 'bold')

    def mode(self, remote_active: bool) -> str:
        if remote_active:
            return self.success("Cloud Connected")
        return self.warning("Local Storage Mode")

    def emit(self, data: Any) -> None:
        print(json.dumps(data, indent=2, default=str))


def _namespaces(name: str | None) -> list[Namespace]:
    return [Namespace(name)] if name else list(Namespace)


# =============================================================================
# CLI COMMANDS
# =============================================================================

async def cmd_stats(service: StorageService, namespace: str | None, formatter: OutputFormatter) -> int:
    results = [await service.stats(ns) for ns in _namespaces(namespace)]
    if formatter.json_output:
        formatter.emit({
            "remote_active": service.is_remote_active(),
            "circuit": service.circuit_status(),
            "namespaces": [r.to_dict() for r in results],
        })
        return 0

    print(formatter.header("Cache Statistics"))
    print("=" * 45)
    print(f"Mode: {formatter.mode(service.is_remote_active())}")
    for r in results:
        print()
        print(formatter.header(f"{r.namespace}:"))
        print(f"  local entries:  {r.local_count}")
        print(f"  local bytes:    {r.local_byte_size}")
        print(f"  remote entries: {r.remote_count}")
    return 0


async def cmd_keys(service: StorageService, namespace: str, formatter: OutputFormatter) -> int:
    keys = sorted(await service.list_keys(Namespace(namespace)))
    if formatter.json_output:
        formatter.emit(keys)
    else:
        for key in keys:
            print(key)
    return 0


async def cmd_prune(
    service: StorageService, namespace: str | None, count: int | None, formatter: OutputFormatter
) -> int:
    ns = Namespace(namespace) if namespace else None
    removed = await service.prune(ns, count)
    if formatter.json_output:
        formatter.emit({"removed": removed})
    else:
        print(formatter.success(f"Pruned {len(removed)} entries"))
        for key in removed:
            print(f"  {key}")
    return 0


async def cmd_clear(service: StorageService, namespace: str | None, formatter: OutputFormatter) -> int:
    ns = Namespace(namespace) if namespace else None
    removed = await service.clear_local(ns)
    if formatter.json_output:
        formatter.emit({"removed": removed})
    else:
        print(formatter.success(f"Cleared {removed} local entries"))
    return 0


async def cmd_verify(service: StorageService, formatter: OutputFormatter) -> int:
    connected = await service.verify_connection()
    if formatter.json_output:
        formatter.emit({"connected": connected, "circuit": service.circuit_status()})
    else:
        print(f"Mode: {formatter.mode(connected)}")
    return 0 if connected else 1


async def cmd_schedule(
    desk: ParlayDesk, week: str | None, refresh: bool, formatter: OutputFormatter
) -> int:
    schedule = await desk.load_schedule(week, refresh=refresh)
    cached = await desk.cached_game_ids()
    if formatter.json_output:
        formatter.emit({**schedule.to_payload(), "cachedGameIds": sorted(cached)})
        return 0
    print(formatter.header(schedule.week))
    print("=" * 45)
    for game in schedule.games:
        marker = "*" if game.id in cached else " "
        print(f"{marker} {game.away_team} @ {game.home_team}  {game.date} {game.time}  [{game.id}]")
    return 0


async def cmd_analyze(
    desk: ParlayDesk,
    home: str,
    away: str,
    game_id: str | None,
    refresh: bool,
    formatter: OutputFormatter,
) -> int:
    game = Game(id=game_id or f"{home}-{away}".lower().replace(" ", "-"), home_team=home, away_team=away)
    result = await desk.load_matchup(game, refresh=refresh)
    if formatter.json_output:
        formatter.emit(result.to_payload())
        return 0

    analysis = result.analysis
    if analysis is None:
        print(formatter.warning("No structured analysis; raw reply follows"))
        print(result.raw_text)
        return 0
    print(formatter.header(analysis.matchup or f"{home} vs {away}"))
    print("=" * 45)
    if analysis.summary:
        print(analysis.summary)
        print()
    for leg in analysis.legs:
        print(f"  [{leg.confidence:>3}%] {leg.player} {leg.prop_type} > {leg.line}  ({leg.reasoning})")
    if result.sources:
        print()
        print(formatter.header("Sources:"))
        for source in result.sources:
            print(f"  {source.title} - {source.uri}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ParlayPro CLI."""
    parser = argparse.ArgumentParser(
        prog="parlaypro",
        description="ParlayPro NFL research and cache management CLI"
    )
    parser.add_argument("--config", "-c", help="Path to configuration file", default=None)
    parser.add_argument("--json", help="Output in JSON format", action="store_true")
    parser.add_argument("--no-color", help="Disable colored output", action="store_true")
    parser.add_argument("--verbose", "-v", help="Log to the console", action="store_true")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    namespaces = [ns.value for ns in Namespace]

    stats_parser = subparsers.add_parser("stats", help="Show cache statistics")
    stats_parser.add_argument("--namespace", "-n", choices=namespaces, default=None)

    keys_parser = subparsers.add_parser("keys", help="List cached keys")
    keys_parser.add_argument("namespace", choices=namespaces)

    prune_parser = subparsers.add_parser("prune", help="Evict the oldest local entries")
    prune_parser.add_argument("--namespace", "-n", choices=namespaces, default=None)
    prune_parser.add_argument("--count", type=int, default=None, help="Entries to evict")

    clear_parser = subparsers.add_parser("clear", help="Delete local cache entries")
    clear_parser.add_argument("--namespace", "-n", choices=namespaces, default=None)

    subparsers.add_parser("verify", help="Probe the remote store")

    schedule_parser = subparsers.add_parser("schedule", help="Show the weekly schedule")
    schedule_parser.add_argument("--week", "-w", default=None, help='e.g. "Week 12"')
    schedule_parser.add_argument("--refresh", action="store_true", help="Bypass the cache")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a matchup")
    analyze_parser.add_argument("home", help="Home team")
    analyze_parser.add_argument("away", help="Away team")
    analyze_parser.add_argument("--game-id", default=None, help="Cache key for the game")
    analyze_parser.add_argument("--refresh", action="store_true", help="Bypass the cache")

    return parser


async def _run(parsed: argparse.Namespace, config: AppConfig, formatter: OutputFormatter) -> int:
    service = StorageService.from_config(config)
    desk = ParlayDesk(service, MatchupAnalyst(config.gemini))
    try:
        await desk.start()
        if parsed.command == "stats":
            return await cmd_stats(service, parsed.namespace, formatter)
        elif parsed.command == "keys":
            return await cmd_keys(service, parsed.namespace, formatter)
        elif parsed.command == "prune":
            return await cmd_prune(service, parsed.namespace, parsed.count, formatter)
        elif parsed.command == "clear":
            return await cmd_clear(service, parsed.namespace, formatter)
        elif parsed.command == "verify":
            return await cmd_verify(service, formatter)
        elif parsed.command == "schedule":
            return await cmd_schedule(desk, parsed.week, parsed.refresh, formatter)
        elif parsed.command == "analyze":
            return await cmd_analyze(
                desk, parsed.home, parsed.away, parsed.game_id, parsed.refresh, formatter
            )
        return 0
    finally:
        await service.close()


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)
    if parsed.command is None:
        parser.print_help()
        return 0

    formatter = OutputFormatter(use_color=not parsed.no_color, json_output=parsed.json)
    try:
        config = load_config(parsed.config)
    except ConfigError as e:
        print(formatter.error(str(e)), file=sys.stderr)
        return 2

    configure_logging(app_name="parlaypro", config=config.logging, verbose=parsed.verbose)

    try:
        return asyncio.run(_run(parsed, config, formatter))
    except (AnalysisError, ConfigError) as e:
        print(formatter.error(str(e)), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
