"""
ESPN Scoreboard Extraction Layer

Turns raw scoreboard events into Game records. The generic extractor handles
fields every sport shares; sport-specific subclasses add the extras (inning
half for baseball). Extraction never raises: an event that can't be read is
logged and skipped.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from gametime.models import Game, GameStatus, Team

COMPLETED_KEYWORDS = ("final", "post", "full time", "fulltime", "after extra", "ended", "complete")
COMPLETED_EXACT = ("ft", "aet")
IN_PROGRESS_KEYWORDS = ("progress", "in_progress", "halftime", "half", "live")
IN_PROGRESS_EXACT = ("in", "ht", "1h", "2h")
POSTPONED_KEYWORDS = ("postpone",)
CANCELED_KEYWORDS = ("cancel", "abandon")

ISO_DATE_FORMATS = ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z")
# ESPN often drops seconds, e.g. "2026-01-31T00:00Z" or "2026-01-31T00:00+00:00"
CUSTOM_DATE_FORMATS = ("%Y-%m-%dT%H:%M%z", "%Y-%m-%dT%H:%M:%SZ")

BASEBALL_LEAGUES = {"mlb"}


def parse_status(status_type: Optional[Dict[str, Any]]) -> GameStatus:
    """Derive a GameStatus from an ESPN status.type block."""
    if not isinstance(status_type, dict) or not status_type:
        return GameStatus.SCHEDULED

    # The completed flag is the most reliable signal
    if status_type.get("completed") is True:
        return GameStatus.COMPLETED

    state = str(status_type.get("state") or "").lower()
    if state == "post":
        return GameStatus.COMPLETED
    if state == "in":
        return GameStatus.IN_PROGRESS
    if state == "pre":
        return GameStatus.SCHEDULED

    texts = [text.lower() for text in (status_type.get("name"), status_type.get("shortDetail"))
             if isinstance(text, str) and text]
    for text in texts:
        # "postponed" contains "post", so check it before the completion keywords
        if any(k in text for k in POSTPONED_KEYWORDS):
            return GameStatus.POSTPONED
        if any(k in text for k in CANCELED_KEYWORDS):
            return GameStatus.CANCELED
        if any(k in text for k in COMPLETED_KEYWORDS) or text in COMPLETED_EXACT:
            return GameStatus.COMPLETED
        if any(k in text for k in IN_PROGRESS_KEYWORDS) or text in IN_PROGRESS_EXACT:
            return GameStatus.IN_PROGRESS

    return GameStatus.SCHEDULED


def parse_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parse an ESPN event date into an aware UTC datetime, None if unreadable."""
    if not date_str or not isinstance(date_str, str):
        return None

    for fmt in ISO_DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).astimezone(timezone.utc)
        except ValueError:
            continue

    for fmt in CUSTOM_DATE_FORMATS:
        try:
            parsed = datetime.strptime(date_str, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    return None


def _team_block(competitor: Dict[str, Any]) -> Dict[str, Any]:
    team = competitor.get("team")
    return team if isinstance(team, dict) else {}


def _competitor_abbr(competitor: Dict[str, Any]) -> str:
    team = _team_block(competitor)
    abbreviation = team.get("abbreviation")
    return abbreviation if isinstance(abbreviation, str) else ""


def parse_score(score: Any) -> Optional[int]:
    if score is None:
        return None
    if isinstance(score, dict):
        # Some endpoints wrap the score as {"value": 3.0, "displayValue": "3"}
        score = score.get("displayValue", score.get("value"))
    try:
        return int(str(score).strip())
    except (TypeError, ValueError):
        return None


class ESPNGameExtractor:
    """Extractor for sports with no extra per-sport fields."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def _extract_common_details(self, event: Dict) -> Optional[Dict[str, Any]]:
        """Pull out the competitors, start time and status shared by all sports."""
        if not isinstance(event, dict) or not event:
            return None

        competitions = event.get("competitions")
        if not isinstance(competitions, list) or not competitions or not isinstance(competitions[0], dict):
            self.logger.debug(f"Event {event.get('id')} has no competitions, skipping")
            return None
        competition = competitions[0]
        competitors = competition.get("competitors")
        if not isinstance(competitors, list):
            competitors = []
        competitors = [c for c in competitors if isinstance(c, dict)]

        home = next((c for c in competitors if c.get("homeAway") == "home"), None)
        away = next((c for c in competitors if c.get("homeAway") == "away"), None)
        if not home or not away:
            self.logger.warning(f"Could not find home or away team in event: {event.get('id')}")
            return None

        start_time = parse_date(event.get("date"))
        if start_time is None:
            self.logger.warning(f"Could not parse game date: {event.get('date')}")
            return None

        # The status block sits on the event; fall back to the competition copy
        status = event.get("status")
        if not isinstance(status, dict):
            status = competition.get("status")
        if not isinstance(status, dict):
            status = {}
        status_type = status.get("type")
        if not isinstance(status_type, dict):
            if status_type is not None:
                self.logger.warning(f"Unexpected status type in event {event.get('id')}: {status_type!r}")
            status_type = {}
        venue = competition.get("venue")
        if not isinstance(venue, dict):
            venue = {}

        return {
            "competition": competition,
            "competitors": competitors,
            "home": home,
            "away": away,
            "start_time": start_time,
            "status": status,
            "status_type": status_type,
            "venue": venue.get("fullName"),
        }

    def get_sport_specific_fields(self, status_type: Dict[str, Any], league: str) -> Dict[str, Any]:
        return {"period_half": None}

    def _build_game(self, event: Dict, common: Dict[str, Any], league: str,
                    user_team_abbr: str, is_home_game: bool) -> Optional[Game]:
        try:
            home_team = _team_block(common["home"])
            away_team = _team_block(common["away"])
            status_type = common["status_type"]
            game_status = parse_status(status_type)

            period = common["status"].get("period")
            period_number = period if game_status == GameStatus.IN_PROGRESS and isinstance(period, int) else None

            return Game(
                id=str(event["id"]),
                home_team=home_team.get("displayName", ""),
                home_abbr=home_team.get("abbreviation", ""),
                away_team=away_team.get("displayName", ""),
                away_abbr=away_team.get("abbreviation", ""),
                start_time=common["start_time"],
                status=game_status,
                league=league,
                user_team_abbr=user_team_abbr,
                is_home_game=is_home_game,
                home_logo_url=home_team.get("logo"),
                away_logo_url=away_team.get("logo"),
                venue=common["venue"],
                home_score=parse_score(common["home"].get("score")),
                away_score=parse_score(common["away"].get("score")),
                period_number=period_number,
                clock=common["status"].get("displayClock"),
                **self.get_sport_specific_fields(status_type, league),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            self.logger.error(f"Error extracting game details: {e} from event: {event.get('id')}")
            return None

    def extract_games_for_team(self, scoreboard: Dict, team: Team,
                               not_before: Optional[datetime] = None) -> List[Game]:
        """Games in the scoreboard that involve the given team, seen from its side."""
        games = []
        abbr = team.abbreviation.lower()
        for event in scoreboard.get("events") or []:
            common = self._extract_common_details(event)
            if not common:
                continue

            user_competitor = next(
                (c for c in common["competitors"] if _competitor_abbr(c).lower() == abbr),
                None,
            )
            if user_competitor is None:
                continue
            if not_before is not None and common["start_time"] < not_before:
                continue

            game = self._build_game(
                event, common, team.league,
                user_team_abbr=team.abbreviation,
                is_home_game=user_competitor.get("homeAway") == "home",
            )
            if game:
                games.append(game)

        games.sort(key=lambda g: g.start_time)
        return games

    def extract_league_games(self, scoreboard: Dict, league: str) -> List[Game]:
        """Every game in the scoreboard, not tied to a followed team."""
        games = []
        for event in scoreboard.get("events") or []:
            common = self._extract_common_details(event)
            if not common:
                continue
            game = self._build_game(event, common, league, user_team_abbr="", is_home_game=False)
            if game:
                games.append(game)

        games.sort(key=lambda g: g.start_time)
        return games


class ESPNBaseballExtractor(ESPNGameExtractor):
    """Adds the inning half ("top"/"bottom") read from the status detail."""

    def get_sport_specific_fields(self, status_type: Dict[str, Any], league: str) -> Dict[str, Any]:
        return {"period_half": parse_inning_half(status_type.get("shortDetail"), league)}


def parse_inning_half(short_detail: Optional[str], league: str) -> Optional[str]:
    """ESPN reports e.g. "Top 5th" or "Bot 7th"."""
    if league.lower() not in BASEBALL_LEAGUES or not isinstance(short_detail, str):
        return None
    detail = short_detail.lower()
    if "top" in detail:
        return "top"
    if "bot" in detail or "bottom" in detail:
        return "bottom"
    return None


def get_extractor(sport: str, league: str, logger: Optional[logging.Logger] = None) -> ESPNGameExtractor:
    if league.lower() in BASEBALL_LEAGUES:
        return ESPNBaseballExtractor(logger)
    return ESPNGameExtractor(logger)
