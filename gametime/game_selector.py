import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from gametime.clock import Clock
from gametime.models import Game, GameStatus

logger = logging.getLogger(__name__)


def status_sort_key(game: Game):
    """Status priority first, then start time."""
    return (game.status.priority, game.start_time)


class GameSelector:
    """
    Picks the games worth showing on a widget.

    Stateless: every call depends only on the games passed in and the
    current time, so a refresh tick can always rebuild the selection.
    """

    def __init__(self, recent_window: timedelta = timedelta(hours=12), clock: Optional[Clock] = None):
        self.recent_window = recent_window
        self.clock = clock or Clock()
        self.logger = logger

    def select_best_per_team(self, games: List[Game], now: Optional[datetime] = None) -> List[Game]:
        """One game per subject team: live, else just finished, else next up."""
        now = now or self.clock.now()
        recent_cutoff = now - self.recent_window

        games_by_team: Dict[str, List[Game]] = {}
        for game in games:
            games_by_team.setdefault(game.user_team_abbr.lower(), []).append(game)

        selected = []
        for team_abbr, team_games in games_by_team.items():
            best = self._select_best_game(team_games, now, recent_cutoff)
            if best is not None:
                selected.append(best)
            else:
                self.logger.debug(f"No displayable game for team '{team_abbr}'")

        selected.sort(key=status_sort_key)
        return selected

    def _select_best_game(self, games: List[Game], now: datetime, recent_cutoff: datetime) -> Optional[Game]:
        # 1. In-progress games have highest priority
        in_progress = next((g for g in games if g.status == GameStatus.IN_PROGRESS), None)
        if in_progress:
            return in_progress

        # 2. Recently completed, most recent first
        recently_completed = [g for g in games
                              if g.status == GameStatus.COMPLETED and g.start_time >= recent_cutoff]
        if recently_completed:
            return max(recently_completed, key=lambda g: g.start_time)

        # 3. Next scheduled game
        scheduled = [g for g in games if g.status == GameStatus.SCHEDULED and g.start_time >= now]
        if scheduled:
            return min(scheduled, key=lambda g: g.start_time)

        # 4. Anything still ahead, e.g. a postponed game awaiting a new date
        upcoming = [g for g in games if g.start_time >= now]
        if upcoming:
            return min(upcoming, key=lambda g: g.start_time)
        return None

    @staticmethod
    def select_for_display(games: List[Game], capacity: int) -> List[Game]:
        """First `capacity` games of an already-sorted list."""
        if capacity <= 0:
            return []
        return list(games[:capacity])
