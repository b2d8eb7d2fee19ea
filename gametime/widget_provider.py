"""
Widget surface for Gametime.

Builds DisplayEntry snapshots for a widget family (small, medium, large) out
of the schedule, the selection rules and the user's settings. Every problem a
renderer needs to know about arrives as a WidgetError code on the entry;
nothing here raises to the caller.
"""

import argparse
import logging
import math
import time
from datetime import timedelta
from typing import List, Optional

from gametime import team_catalog
from gametime.cache_manager import CacheManager
from gametime.clock import Clock
from gametime.config_manager import ConfigManager
from gametime.espn_client import ESPNClient
from gametime.game_selector import GameSelector
from gametime.models import DisplayEntry, Game, GameStatus, Team, WidgetError, sport_for_league
from gametime.schedule_manager import ScheduleManager
from gametime.settings_store import SettingsStore

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 4


class WidgetProvider:
    def __init__(self,
                 schedule_manager: ScheduleManager,
                 cache_manager: CacheManager,
                 settings_store: SettingsStore,
                 selector: Optional[GameSelector] = None,
                 config_manager: Optional[ConfigManager] = None,
                 clock: Optional[Clock] = None):
        self.schedule_manager = schedule_manager
        self.cache_manager = cache_manager
        self.settings_store = settings_store
        self.clock = clock or Clock()
        self.selector = selector or GameSelector(clock=self.clock)
        self.config_manager = config_manager
        self.logger = logger

    @classmethod
    def from_config(cls, config_manager: ConfigManager, clock: Optional[Clock] = None) -> "WidgetProvider":
        """Wire up the full service graph from a loaded ConfigManager."""
        clock = clock or Clock(config_manager.get_timezone())
        cache_config = config_manager.get_cache_config()
        selection_config = config_manager.get_selection_config()

        settings_store = SettingsStore(config_manager.get_settings_path())
        cache_manager = CacheManager.from_config(cache_config, settings_store, clock)
        client = ESPNClient.from_config(config_manager.get_espn_config(), clock)
        schedule_manager = ScheduleManager(
            client,
            cache_manager,
            clock=clock,
            prefetch_threshold=timedelta(hours=cache_config.get("prefetch_threshold_hours", 22)),
        )
        selector = GameSelector(
            recent_window=timedelta(hours=selection_config.get("recent_window_hours", 12)),
            clock=clock,
        )
        return cls(schedule_manager, cache_manager, settings_store, selector, config_manager, clock)

    def capacity_for(self, family: str) -> int:
        """Games the family can show, capped by the max_games_to_show setting."""
        capacity = None
        if self.config_manager is not None:
            capacity = self.config_manager.get_capacity(family)
        if capacity is None:
            capacity = 1 if family == "small" else DEFAULT_CAPACITY
        return min(capacity, self.settings_store.max_games_to_show)

    def games_for_family(self, family: str, games: List[Game]) -> List[Game]:
        """Restrict the small family to the pinned team, if there is one."""
        if family != "small":
            return games
        pinned = self.settings_store.small_widget_team
        if pinned is None:
            return games
        abbr = pinned.abbreviation.lower()
        return [g for g in games if g.user_team_abbr.lower() == abbr]

    def fetch_current_entry(self, family: str = "small", force_refresh: bool = False,
                            page_index: int = 0) -> DisplayEntry:
        now = self.clock.now()
        teams = self.settings_store.selected_teams
        if not teams:
            self.logger.info("No teams selected")
            return self.empty_entry(WidgetError.NO_TEAMS_SELECTED)

        schedule = self.schedule_manager.get_schedule(teams, force_refresh)
        last_updated = self.cache_manager.last_fetch_date or now

        if not schedule.games:
            error = WidgetError.NETWORK_ERROR if schedule.network_failed else WidgetError.NO_GAMES
            self.logger.info(f"Nothing to show for {family} widget: {error.value}")
            return DisplayEntry(date=now, games=[], last_updated=last_updated, error=error)

        games = self.games_for_family(family, schedule.games)
        best = self.selector.select_best_per_team(games, now)
        capacity = self.capacity_for(family)
        if not best or capacity <= 0:
            return DisplayEntry(date=now, games=[], last_updated=last_updated, error=WidgetError.NO_GAMES)

        total_pages = max(1, math.ceil(len(best) / capacity))
        page_index = page_index % total_pages
        page = best[page_index * capacity:]
        games = self.selector.select_for_display(page, capacity)

        self.logger.debug(f"{family} widget showing {len(games)} of {len(best)} games "
                          f"(page {page_index + 1}/{total_pages})")
        return DisplayEntry(
            date=now,
            games=games,
            last_updated=last_updated,
            page_index=page_index,
            total_pages=total_pages,
        )

    def placeholder_entry(self) -> DisplayEntry:
        """Sample content for widget galleries, never touches the network."""
        now = self.clock.now()
        sample = Game(
            id="placeholder",
            home_team="Los Angeles Lakers",
            home_abbr="LAL",
            away_team="Boston Celtics",
            away_abbr="BOS",
            start_time=now + timedelta(hours=2),
            status=GameStatus.SCHEDULED,
            league="nba",
            user_team_abbr="LAL",
            is_home_game=True,
        )
        return DisplayEntry(date=now, games=[sample], last_updated=now)

    def empty_entry(self, error: Optional[WidgetError] = None) -> DisplayEntry:
        now = self.clock.now()
        return DisplayEntry(date=now, games=[], last_updated=now, error=error)


def parse_team_arg(value: str) -> Team:
    """Parse LEAGUE:ABBR (looked up in the catalog) or ID:ABBR:LEAGUE[:NAME] into a Team."""
    parts = value.split(":", 3)
    if len(parts) == 2 and all(parts):
        league, key = parts
        if team_catalog.normalize_league(league) not in team_catalog.TEAMS:
            key, league = parts
        if team_catalog.normalize_league(league) not in team_catalog.TEAMS:
            raise argparse.ArgumentTypeError(f"No team catalog for '{value}', expected LEAGUE:ABBR")
        team = team_catalog.find_team(league, key)
        if team is None:
            raise argparse.ArgumentTypeError(
                f"No team '{key}' in league '{league}', try --list-catalog {league}")
        return team

    if len(parts) < 3 or not all(parts[:3]):
        raise argparse.ArgumentTypeError(f"Expected LEAGUE:ABBR or ID:ABBR:LEAGUE[:NAME], got '{value}'")
    team_id, abbreviation, league = parts[0], parts[1].upper(), team_catalog.normalize_league(parts[2])
    sport = sport_for_league(league)
    if sport is None:
        raise argparse.ArgumentTypeError(f"Unknown league '{league}'")
    known = team_catalog.find_team(league, team_id)
    if len(parts) == 4:
        name = parts[3]
    elif known is not None:
        name = known.name
    else:
        name = abbreviation
    return Team(id=team_id, name=name, abbreviation=abbreviation, sport=sport, league=league,
                logo_url=known.logo_url if known is not None else None)


def format_entry(entry: DisplayEntry, tz=None, use_24_hour_time: bool = False) -> str:
    lines = []
    if entry.error is not None:
        lines.append(entry.error_message)
    for game in entry.games:
        if game.user_team_abbr:
            line = f"{game.game_description:<14} {game.status_display(entry.date, tz)}"
        else:
            line = f"{game.away_abbr} @ {game.home_abbr:<8} {game.status_display(entry.date, tz)}"
        if game.should_show_score:
            line += f"  {game.score_display}"
        lines.append(line)
    if entry.total_pages > 1:
        lines.append(f"Page {entry.page_index + 1}/{entry.total_pages}")
    local = entry.last_updated.astimezone(tz) if tz else entry.last_updated
    stamp = local.strftime("%H:%M") if use_24_hour_time else local.strftime("%I:%M %p").lstrip("0")
    lines.append(f"Updated {stamp}")
    return "\n".join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Show the Gametime widget for your followed teams')
    parser.add_argument('--config', '-c', type=str, default=None,
                        help='Path to config.json (default: config/config.json)')
    parser.add_argument('--family', '-f', choices=['small', 'medium', 'large'], default='medium',
                        help='Widget family to render')
    parser.add_argument('--refresh', '-r', action='store_true',
                        help='Ignore the cache and fetch fresh games')
    parser.add_argument('--page', '-p', type=int, default=0,
                        help='Page to show when there are more games than fit')
    parser.add_argument('--add-team', type=parse_team_arg, metavar='LEAGUE:ABBR',
                        help='Follow a team, e.g. nba:LAL or 13:LAL:nba:Los Angeles Lakers')
    parser.add_argument('--remove-team', type=parse_team_arg, metavar='LEAGUE:ABBR',
                        help='Stop following a team')
    parser.add_argument('--list-teams', '-l', action='store_true',
                        help='List followed teams')
    parser.add_argument('--list-catalog', metavar='LEAGUE', type=str,
                        help=f"List known teams for a league ({', '.join(team_catalog.supported_leagues())})")
    args = parser.parse_args(argv)

    if args.list_catalog:
        teams = team_catalog.teams_for_league(args.list_catalog)
        if not teams:
            print(f"No team catalog for '{args.list_catalog}'")
        for team in teams:
            print(f"  - {team.display_name} ({team.league}:{team.abbreviation}, id {team.id})")
        return

    start_time = time.time()
    config_manager = ConfigManager(args.config)
    config_manager.load_config()
    provider = WidgetProvider.from_config(config_manager)
    settings = provider.settings_store
    logger.info(f"Widget provider initialized in {time.time() - start_time:.3f} seconds")

    if args.add_team:
        if settings.add_team(args.add_team):
            print(f"✓ Following {args.add_team.display_name}")
        else:
            print(f"Already following {args.add_team.display_name}")
        return
    if args.remove_team:
        if settings.remove_team(args.remove_team):
            print(f"✓ No longer following {args.remove_team.abbreviation}")
        else:
            print(f"Not following {args.remove_team.abbreviation}")
        return
    if args.list_teams:
        teams = settings.selected_teams
        if not teams:
            print("No teams selected")
        for team in teams:
            print(f"  - {team.display_name} ({team.league}, id {team.id})")
        return

    entry = provider.fetch_current_entry(args.family, force_refresh=args.refresh, page_index=args.page)
    print(format_entry(entry, provider.clock.timezone, settings.use_24_hour_time))


if __name__ == "__main__":
    main()
