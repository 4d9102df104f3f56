"""API-Football player-loading diagnosis.

Used when the fantasy backend suddenly loads 0 players: runs the same calls
the backend makes, step by step, and records which step breaks. A failed
connection stops the probe; every other step is recorded and the probe
continues.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import structlog

from fantasy_ops.clients.api_football import (
    CURRENT_SEASON,
    FALLBACK_SEASON,
    LA_LIGA,
    ApiFootballClient,
)

log = structlog.get_logger(__name__)

NO_POSITION = "(no position)"
NO_TEAM = "(no team)"


@dataclass
class ProbeStep:
    """Result of one diagnosis step."""

    name: str
    ok: bool
    detail: str = ""
    data: Any = None


@dataclass
class ProbeReport:
    """All steps of a probe plus the loaded players."""

    league: int
    season: int
    steps: list[ProbeStep] = field(default_factory=list)
    players: list[dict[str, Any]] = field(default_factory=list)
    pages: int = 0

    @property
    def ok(self) -> bool:
        return all(step.ok for step in self.steps)

    def add(self, name: str, ok: bool, detail: str = "", data: Any = None) -> ProbeStep:
        step = ProbeStep(name, ok, detail, data)
        self.steps.append(step)
        log.info("probe_step", step=name, ok=ok, detail=detail)
        return step


def count_by(players: list[dict[str, Any]], key: str) -> Counter:
    """Count players by "position" or "team" (team name)."""
    counter: Counter = Counter()
    for player in players:
        if key == "team":
            value = (player.get("team") or {}).get("name") or NO_TEAM
        elif key == "position":
            value = player.get("position") or NO_POSITION
        else:
            value = player.get(key)
        counter[value] += 1
    return counter


def top_n(counter: Counter, n: int = 5) -> list[tuple[str, int]]:
    """Most common entries, highest count first."""
    return counter.most_common(n)


async def probe_players(
    client: ApiFootballClient,
    league: int = LA_LIGA,
    season: int = CURRENT_SEASON,
    fallback_season: int = FALLBACK_SEASON,
) -> ProbeReport:
    """Run the player-loading diagnosis.

    Steps: connection, league info, teams, first players page, fallback
    season first page, full player load.
    """
    report = ProbeReport(league=league, season=season)

    status = await client.test_connection()
    if not status.success:
        report.add("connection", False, status.error or "connection failed")
        return report
    account = status.data or {}
    requests_info = account.get("requests") if isinstance(account, dict) else None
    report.add("connection", True, f"requests today: {(requests_info or {}).get('current', 'N/A')}", account)

    league_info = await client.get_league_info(league, season)
    if league_info.success and league_info.data:
        league_name = (league_info.data.get("league") or {}).get("name", "")
        report.add("league_info", True, league_name, league_info.data)
    else:
        report.add("league_info", False, league_info.error or "league not found")

    teams = await client.get_teams(league, season)
    if teams.success:
        report.add("teams", bool(teams.data), f"{teams.count} teams", teams.data)
    else:
        report.add("teams", False, teams.error or "")

    first_page = await client.get_players(league, season, page=1)
    paging = first_page.pagination or {}
    report.add(
        "players_page_1",
        first_page.success and bool(first_page.data),
        f"{first_page.count} players, page {paging.get('current', '?')}/{paging.get('total', '?')}"
        if first_page.success else first_page.error or "",
        first_page.data,
    )

    fallback = await client.get_players(league, fallback_season, page=1)
    report.add(
        f"players_season_{fallback_season}",
        fallback.success and bool(fallback.data),
        f"{fallback.count} players" if fallback.success else fallback.error or "",
        fallback.data,
    )

    players, pages = await client.get_all_players(league, season)
    report.players = players
    report.pages = pages
    report.add("all_players", bool(players), f"{len(players)} players in {pages} pages")

    return report
