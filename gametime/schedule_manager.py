"""
Schedule Manager

Decides whether cached games are good enough or a remote fetch is needed,
writes fresh results through the cache, and applies the game-day display
rules:

- today's games all stay visible, finished ones included
- a followed team with no game today gets the rest of its league's games
  for today instead (league fallback)
- today's games sort ahead of future ones, by status and then start time
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Set, Tuple

from gametime.cache_manager import CacheManager
from gametime.clock import Clock
from gametime.espn_client import ESPNClient
from gametime.game_selector import status_sort_key
from gametime.models import FetchResult, Game, Team

logger = logging.getLogger(__name__)


@dataclass
class ScheduleResult:
    """Games for the display plus whether fetching failed with nothing cached."""
    games: List[Game] = field(default_factory=list)
    network_failed: bool = False


class ScheduleManager:
    def __init__(self,
                 client: ESPNClient,
                 cache_manager: CacheManager,
                 clock: Optional[Clock] = None,
                 prefetch_threshold: timedelta = timedelta(hours=22)):
        self.client = client
        self.cache_manager = cache_manager
        self.clock = clock or Clock()
        self.prefetch_threshold = prefetch_threshold
        self.logger = logger

    def refresh_games(self, teams: Sequence[Team]) -> FetchResult:
        """Fetch fresh games and write them through the cache on success."""
        result = self.client.fetch_games_for_teams(teams)
        if result.success:
            self.cache_manager.save_games(result.games)
        else:
            self.logger.warning(f"Refresh failed for {len(teams)} team(s): {result.error}")
        return result

    def get_games(self, teams: Sequence[Team], force_refresh: bool = False) -> List[Game]:
        """Cached or fresh games for the teams, with display rules applied."""
        return self.get_schedule(teams, force_refresh).games

    def get_schedule(self, teams: Sequence[Team], force_refresh: bool = False) -> ScheduleResult:
        if not teams:
            return ScheduleResult()

        team_abbrs = {team.abbreviation.lower() for team in teams}

        if force_refresh or self.cache_manager.is_stale():
            reason = "forced" if force_refresh else "cache stale"
            self.logger.info(f"Refreshing games ({reason})")
            result = self.refresh_games(teams)
            if result.success:
                user_team_games = self._filter_games(result.games, team_abbrs)
                return ScheduleResult(self.apply_display_logic(user_team_games, teams))

            cached = self._filter_games(self.cache_manager.load_games(), team_abbrs)
            return ScheduleResult(self.apply_display_logic(cached, teams), network_failed=not cached)

        cached = self._filter_games(self.cache_manager.load_games(), team_abbrs)
        if cached:
            return ScheduleResult(self.apply_display_logic(cached, teams))

        # Nothing cached for these teams yet (e.g. a team was just added)
        self.logger.info("No cached games for selected teams, fetching")
        result = self.refresh_games(teams)
        if not result.success:
            return ScheduleResult(network_failed=True)
        user_team_games = self._filter_games(result.games, team_abbrs)
        return ScheduleResult(self.apply_display_logic(user_team_games, teams))

    def apply_display_logic(self, user_team_games: List[Game], teams: Sequence[Team]) -> List[Game]:
        start_of_today = self.clock.start_of_today()
        start_of_tomorrow = self.clock.start_of_tomorrow()

        def is_today(game: Game) -> bool:
            return start_of_today <= game.start_time < start_of_tomorrow

        today_games = [g for g in user_team_games if is_today(g)]
        future_games = [g for g in user_team_games if g.start_time >= start_of_tomorrow]

        today_games.extend(self._league_fallback_games(today_games, teams))

        today_games.sort(key=status_sort_key)
        future_games.sort(key=lambda g: g.start_time)
        return today_games + future_games

    def _league_fallback_games(self, today_games: List[Game], teams: Sequence[Team]) -> List[Game]:
        """Today's league games for leagues where no followed team plays today."""
        leagues_with_games = {g.league.lower() for g in today_games}
        seen_ids = {g.id for g in today_games}

        leagues_to_fetch: Dict[str, Tuple[str, str]] = {}
        for team in teams:
            if team.league.lower() in leagues_with_games:
                continue
            leagues_to_fetch.setdefault(f"{team.sport}/{team.league}", (team.sport, team.league))

        fallback_games = []
        for sport, league in leagues_to_fetch.values():
            result = self.client.fetch_league_games(sport, league)
            if not result.success:
                # League fallback is optional
                self.logger.debug(f"Skipping league fallback for {league}: {result.error}")
                continue
            for game in result.games:
                if game.id in seen_ids or not self.clock.is_today(game.start_time):
                    continue
                seen_ids.add(game.id)
                fallback_games.append(game)
        return fallback_games

    def prefetch_games(self, teams: Sequence[Team]) -> bool:
        """Refresh ahead of the staleness deadline. True if a refresh ran and succeeded."""
        if not teams:
            return False
        last_fetch = self.cache_manager.last_fetch_date
        if last_fetch is not None and self.clock.now() - last_fetch <= self.prefetch_threshold:
            return False
        result = self.refresh_games(teams)
        return result.success

    @staticmethod
    def _filter_games(games: List[Game], team_abbrs: Set[str]) -> List[Game]:
        if not team_abbrs:
            return list(games)
        return [g for g in games if g.user_team_abbr.lower() in team_abbrs]
