"""
Data model for Gametime.

Teams are immutable reference data, games are point-in-time snapshots of a
contest, and DisplayEntry is what the widget surface hands to a renderer.
Everything here serialises to plain dicts so it can live in the JSON cache
and the settings store.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class GameStatus(Enum):
    """Lifecycle state of a game."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    CANCELED = "canceled"

    @property
    def priority(self) -> int:
        """Sort priority, lower shows first."""
        return _STATUS_PRIORITY[self]


_STATUS_PRIORITY = {
    GameStatus.IN_PROGRESS: 0,
    GameStatus.SCHEDULED: 1,
    GameStatus.COMPLETED: 2,
    GameStatus.POSTPONED: 3,
    GameStatus.CANCELED: 4,
}

SOCCER_PERIOD_LEAGUES = {"eng.1", "eng.2", "usa.usl.1"}

# ESPN sport slug for each supported league
LEAGUE_SPORTS = {
    "nba": "basketball",
    "nfl": "football",
    "mlb": "baseball",
    "nhl": "hockey",
    "eng.1": "soccer",
    "eng.2": "soccer",
    "usa.usl.1": "soccer",
}


def sport_for_league(league: str) -> Optional[str]:
    """ESPN sport slug for a league, None if unknown."""
    league = league.lower()
    if league in LEAGUE_SPORTS:
        return LEAGUE_SPORTS[league]
    # Soccer leagues use dot notation
    if "." in league:
        return "soccer"
    return None


class WidgetError(Enum):
    """Closed set of error states a renderer may show."""
    NO_TEAMS_SELECTED = "no_teams_selected"
    NETWORK_ERROR = "network_error"
    NO_GAMES = "no_games"

    @property
    def message(self) -> str:
        return {
            WidgetError.NO_TEAMS_SELECTED: "No teams selected",
            WidgetError.NETWORK_ERROR: "Unable to fetch schedule",
            WidgetError.NO_GAMES: "No upcoming games",
        }[self]


@dataclass(frozen=True)
class Team:
    """A followable team. Identity is the (id, league) pair."""
    id: str
    name: str
    abbreviation: str
    sport: str
    league: str
    logo_url: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.id}|{self.league}"

    @property
    def display_name(self) -> str:
        return f"{self.abbreviation} - {self.name}"

    def same_team(self, other: "Team") -> bool:
        return self.id == other.id and self.league == other.league

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Team":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            abbreviation=data["abbreviation"],
            sport=data["sport"],
            league=data["league"],
            logo_url=data.get("logo_url"),
        )


@dataclass(frozen=True)
class Game:
    """
    Snapshot of one scheduled, live or finished contest.

    user_team_abbr names the followed team this record was derived for. It is
    empty for league-fallback records that are not tied to a followed team.
    """
    id: str
    home_team: str
    home_abbr: str
    away_team: str
    away_abbr: str
    start_time: datetime
    status: GameStatus
    league: str
    user_team_abbr: str = ""
    is_home_game: bool = False
    home_logo_url: Optional[str] = None
    away_logo_url: Optional[str] = None
    venue: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    period_number: Optional[int] = None
    period_half: Optional[str] = None
    clock: Optional[str] = None

    # Perspective helpers

    @property
    def opponent(self) -> str:
        return self.away_abbr if self.is_home_game else self.home_abbr

    @property
    def opponent_full_name(self) -> str:
        return self.away_team if self.is_home_game else self.home_team

    @property
    def game_description(self) -> str:
        if self.is_home_game:
            return f"{self.user_team_abbr} vs {self.away_abbr}"
        return f"{self.user_team_abbr} @ {self.home_abbr}"

    # Score display

    @property
    def has_score(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    @property
    def user_team_score(self) -> Optional[int]:
        return self.home_score if self.is_home_game else self.away_score

    @property
    def opponent_score(self) -> Optional[int]:
        return self.away_score if self.is_home_game else self.home_score

    @property
    def score_display(self) -> Optional[str]:
        if not self.has_score:
            return None
        return f"{self.home_score} - {self.away_score}"

    @property
    def should_show_score(self) -> bool:
        return self.has_score and self.status in (GameStatus.IN_PROGRESS, GameStatus.COMPLETED)

    @property
    def formatted_period(self) -> Optional[str]:
        """Period label by sport, e.g. Q3, 2nd, ↑7, ET."""
        period = self.period_number
        if period is None:
            return None

        league = self.league.lower()
        if league in ("nba", "nfl"):
            return f"Q{period}" if period <= 4 else "OT"
        if league == "nhl":
            return {1: "1st", 2: "2nd", 3: "3rd"}.get(period, "OT")
        if league == "mlb":
            arrow = "↑" if (self.period_half or "").lower() == "top" else "↓"
            return f"{arrow}{period}"
        if league in SOCCER_PERIOD_LEAGUES:
            return {1: "1st", 2: "2nd"}.get(period, "ET")
        return f"P{period}"

    def status_display(self, now: Optional[datetime] = None, tz=None) -> str:
        """Short status for a widget cell: FINAL, Q3, PPD, 7:30P, 2/1 7:30P."""
        if self.status == GameStatus.COMPLETED:
            return "FINAL"
        if self.status == GameStatus.IN_PROGRESS:
            return self.formatted_period or "LIVE"
        if self.status == GameStatus.POSTPONED:
            return "PPD"
        if self.status == GameStatus.CANCELED:
            return "CAN"
        return self.compact_date_time(now, tz)

    def compact_date_time(self, now: Optional[datetime] = None, tz=None) -> str:
        tz = tz or timezone.utc
        local_start = self.start_time.astimezone(tz)
        local_now = (now or datetime.now(timezone.utc)).astimezone(tz)

        time_str = local_start.strftime("%I:%M%p").lstrip("0")
        time_str = time_str.replace("AM", "A").replace("PM", "P")
        if local_start.date() == local_now.date():
            return time_str
        return f"{local_start.month}/{local_start.day} {time_str}"

    # Serialisation

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["start_time"] = self.start_time.isoformat()
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Game":
        start_time = datetime.fromisoformat(data["start_time"])
        if start_time.tzinfo is None:
            start_time = start_time.replace(tzinfo=timezone.utc)
        return cls(
            id=str(data["id"]),
            home_team=data.get("home_team", ""),
            home_abbr=data.get("home_abbr", ""),
            away_team=data.get("away_team", ""),
            away_abbr=data.get("away_abbr", ""),
            start_time=start_time,
            status=GameStatus(data.get("status", GameStatus.SCHEDULED.value)),
            league=data.get("league", ""),
            user_team_abbr=data.get("user_team_abbr", ""),
            is_home_game=bool(data.get("is_home_game", False)),
            home_logo_url=data.get("home_logo_url"),
            away_logo_url=data.get("away_logo_url"),
            venue=data.get("venue"),
            home_score=data.get("home_score"),
            away_score=data.get("away_score"),
            period_number=data.get("period_number"),
            period_half=data.get("period_half"),
            clock=data.get("clock"),
        )


@dataclass
class FetchResult:
    """
    Outcome of a remote fetch.

    Failures are carried as data rather than raised, so callers that continue
    past a failed fetch do so visibly.
    """
    success: bool
    games: List[Game] = field(default_factory=list)
    error: Optional[str] = None
    failed_requests: int = 0
    total_requests: int = 0

    @classmethod
    def failure(cls, error: str, failed_requests: int = 1, total_requests: int = 1) -> "FetchResult":
        return cls(success=False, error=error, failed_requests=failed_requests, total_requests=total_requests)


@dataclass
class DisplayEntry:
    """One snapshot of what the widget should show."""
    date: datetime
    games: List[Game]
    last_updated: datetime
    error: Optional[WidgetError] = None
    page_index: int = 0
    total_pages: int = 1

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def formatted_last_updated(self, tz=None) -> str:
        local = self.last_updated.astimezone(tz or timezone.utc)
        return f"Updated {local.strftime('%I:%M %p').lstrip('0')}"
