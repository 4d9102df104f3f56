#!/usr/bin/env python3
"""Diagnose why player loading from API-Sports returns 0 players.

Runs connection, league, teams and players calls step by step, then loads
every players page and prints position / team statistics.

Usage:
    python scripts/probe_api_players.py
    python scripts/probe_api_players.py 2024
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.api_football import CURRENT_SEASON, FALLBACK_SEASON, LA_LIGA, ApiFootballClient
from fantasy_ops.config import get_api_football_key, load_env_files
from fantasy_ops.services.player_probe import ProbeReport, count_by, probe_players, top_n

RULE = "=" * 60


def print_report(report: ProbeReport) -> None:
    for position, step in enumerate(report.steps, start=1):
        print(RULE)
        print(f"TEST {position}: {step.name}")
        print(RULE)
        icon = "✅" if step.ok else "❌"
        print(f"{icon} {step.detail}")
        if step.name.startswith("players_") and step.ok:
            for player in (step.data or [])[:5]:
                print(f"  - {player['name']} ({player['team']['name'] or 'no team'}) - {player['position'] or 'no position'}")
        print()

    if report.players:
        print("📊 Players by position:")
        for position, count in sorted(count_by(report.players, "position").items()):
            print(f"  - {position}: {count}")
        print("\nTop 5 teams by player count:")
        for team, count in top_n(count_by(report.players, "team"), 5):
            print(f"  - {team}: {count} players")
        print()


async def main() -> None:
    parser = argparse.ArgumentParser(description="Diagnose API-Sports player loading")
    parser.add_argument("season", nargs="?", type=int, default=CURRENT_SEASON, help="Season (default: 2025)")
    parser.add_argument("--league", type=int, default=LA_LIGA, help="League id (default: 140, La Liga)")
    args = parser.parse_args()

    load_env_files()
    try:
        client = ApiFootballClient(get_api_football_key())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("🔍 Diagnosing player loading from API-Sports...\n")
    print("⏳ The full load can take several minutes (1 request/second)...\n")
    try:
        report = await probe_players(client, args.league, args.season, FALLBACK_SEASON)
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()

    print_report(report)
    print(RULE)
    print("✅ Diagnosis completed" if report.ok else "⚠️  Diagnosis completed with failures")
    print(RULE)
    if report.steps and not report.steps[0].ok:
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
