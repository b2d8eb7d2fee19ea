"""
ESPN scoreboard client.

Issues scoreboard queries keyed by (sport, league, date) and turns the
responses into Game records. Each date or league request stands alone: a
failure is logged and left out of the aggregate, and only an operation where
every request failed reports failure. There are no automatic retries; the
next refresh tick is the retry.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests
from requests.adapters import HTTPAdapter

from gametime.base_classes.api_extractors import get_extractor
from gametime.clock import Clock
from gametime.models import FetchResult, Game, Team

logger = logging.getLogger(__name__)

ESPN_BASE_URL = "https://site.api.espn.com/apis/site/v2/sports"
DEFAULT_DATE_WINDOW_DAYS = 7


class ESPNAPIError(Exception):
    """A scoreboard request failed (network, HTTP status or undecodable body)."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ESPNClient:
    """Fetches scoreboards and extracts games for followed teams."""

    def __init__(self,
                 base_url: str = ESPN_BASE_URL,
                 connect_timeout: float = 10,
                 read_timeout: float = 30,
                 max_workers: int = 4,
                 date_window_days: int = DEFAULT_DATE_WINDOW_DAYS,
                 clock: Optional[Clock] = None,
                 session: Optional[requests.Session] = None):
        self.logger = logger
        self.base_url = base_url.rstrip("/")
        self.timeout = (connect_timeout, read_timeout)
        self.max_workers = max(1, int(max_workers))
        self.date_window_days = date_window_days
        self.clock = clock or Clock()
        self.session = session or self._build_session()

        # Set up headers
        self.headers = {
            'User-Agent': 'Gametime/1.0',
            'Accept': 'application/json',
            'Accept-Language': 'en-US,en;q=0.9',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive'
        }

    @classmethod
    def from_config(cls, espn_config: Dict[str, Any], clock: Optional[Clock] = None) -> "ESPNClient":
        return cls(
            base_url=espn_config.get("base_url", ESPN_BASE_URL),
            connect_timeout=espn_config.get("connect_timeout", 10),
            read_timeout=espn_config.get("read_timeout", 30),
            max_workers=espn_config.get("max_workers", 4),
            date_window_days=espn_config.get("date_window_days", DEFAULT_DATE_WINDOW_DAYS),
            clock=clock,
        )

    def _build_session(self) -> requests.Session:
        session = requests.Session()
        # No transport-level retries, a failed request is simply left out
        adapter = HTTPAdapter(max_retries=0, pool_maxsize=max(10, self.max_workers))
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def close(self) -> None:
        self.session.close()

    def scoreboard_url(self, sport: str, league: str) -> str:
        return f"{self.base_url}/{sport}/{league}/scoreboard"

    def get_scoreboard(self, sport: str, league: str, date_str: str) -> Dict[str, Any]:
        """
        Fetch one scoreboard.

        Args:
            sport: ESPN sport slug, e.g. 'basketball'
            league: ESPN league slug, e.g. 'nba' or 'eng.1'
            date_str: Date in YYYYMMDD format

        Returns:
            Decoded scoreboard with an 'events' list (empty when ESPN omits it)

        Raises:
            ESPNAPIError: on network errors, non-200 responses or bad JSON
        """
        url = self.scoreboard_url(sport, league)
        try:
            response = self.session.get(url, params={"dates": date_str}, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ESPNAPIError(f"Request failed for {sport}/{league} on {date_str}: {e}", url=url) from e

        if response.status_code != 200:
            raise ESPNAPIError(
                f"HTTP {response.status_code} for {sport}/{league} on {date_str}",
                url=url,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ESPNAPIError(f"Could not decode scoreboard for {sport}/{league} on {date_str}: {e}", url=url) from e

        if not isinstance(data, dict):
            raise ESPNAPIError(f"Expected object response for {sport}/{league}, got {type(data).__name__}", url=url)
        events = data.get("events")
        if not isinstance(events, list):
            data["events"] = []
        return data

    def _fetch_scoreboards(self, queries: Sequence[Tuple[str, str, str]]) -> List[Tuple[Tuple[str, str, str], Optional[Dict]]]:
        """
        Run scoreboard queries in parallel.

        Results come back in query order. A failed query yields None in place
        of its scoreboard and does not affect the others.
        """
        if not queries:
            return []

        def run(query: Tuple[str, str, str]) -> Optional[Dict]:
            sport, league, date_str = query
            try:
                return self.get_scoreboard(sport, league, date_str)
            except ESPNAPIError as e:
                self.logger.warning(f"Failed to fetch games for {league} on {date_str}: {e}")
                return None

        workers = min(self.max_workers, len(queries))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ESPNFetch") as executor:
            futures = [executor.submit(run, query) for query in queries]
            return [(query, future.result()) for query, future in zip(queries, futures)]

    def fetch_games_for_team(self, team: Team, date_window_days: Optional[int] = None) -> FetchResult:
        """Games for one team over today and the following days."""
        return self.fetch_games_for_teams([team], date_window_days)

    def fetch_games_for_teams(self, teams: Sequence[Team], date_window_days: Optional[int] = None) -> FetchResult:
        """
        Games for several teams, querying each league/date once.

        An event involving two followed teams yields one record per team. The
        same event seen twice for the same team is kept once.
        """
        if not teams:
            return FetchResult(success=True)

        window = date_window_days or self.date_window_days
        # Dates are fixed once so every league sees the same window
        dates = self.clock.date_strings(window)
        start_of_today = self.clock.start_of_today()

        teams_by_league: Dict[Tuple[str, str], List[Team]] = {}
        for team in teams:
            teams_by_league.setdefault((team.sport, team.league), []).append(team)

        queries = [(sport, league, date_str)
                   for (sport, league) in teams_by_league
                   for date_str in dates]
        results = self._fetch_scoreboards(queries)

        all_games: List[Game] = []
        failed = 0
        for (sport, league, date_str), scoreboard in results:
            if scoreboard is None:
                failed += 1
                continue
            extractor = get_extractor(sport, league, self.logger)
            try:
                board_games = []
                for team in teams_by_league[(sport, league)]:
                    board_games.extend(extractor.extract_games_for_team(scoreboard, team, not_before=start_of_today))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                # An unreadable board counts as a failed request
                self.logger.warning(f"Could not parse scoreboard for {league} on {date_str}: {e}")
                failed += 1
                continue
            all_games.extend(board_games)

        if failed == len(queries):
            self.logger.error(f"All {failed} scoreboard requests failed for {len(teams)} team(s)")
            return FetchResult.failure("network_error", failed_requests=failed, total_requests=len(queries))

        games = self._dedupe(all_games)
        games.sort(key=lambda g: g.start_time)
        self.logger.info(f"Fetched {len(games)} games for {len(teams)} team(s) "
                         f"({failed}/{len(queries)} requests failed)")
        return FetchResult(success=True, games=games, failed_requests=failed, total_requests=len(queries))

    def fetch_league_games(self, sport: str, league: str) -> FetchResult:
        """Every game in a league today, not tied to any followed team."""
        date_str = self.clock.today_string()
        try:
            scoreboard = self.get_scoreboard(sport, league, date_str)
        except ESPNAPIError as e:
            self.logger.warning(f"Failed to fetch league games for {league} on {date_str}: {e}")
            return FetchResult.failure(str(e))

        try:
            games = get_extractor(sport, league, self.logger).extract_league_games(scoreboard, league)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            self.logger.warning(f"Could not parse league scoreboard for {league} on {date_str}: {e}")
            return FetchResult.failure(f"Unreadable scoreboard for {league}")
        self.logger.debug(f"Fetched {len(games)} league games for {sport}/{league}")
        return FetchResult(success=True, games=games, total_requests=1)

    @staticmethod
    def _dedupe(games: List[Game]) -> List[Game]:
        seen = set()
        unique = []
        for game in games:
            key = (game.id, game.user_team_abbr.lower())
            if key in seen:
                continue
            seen.add(key)
            unique.append(game)
        return unique
