"""
Key-value settings store shared by the app and the widget.

Values live in a single JSON document on disk. Every write replaces the file
atomically so a reader never sees a half-written document, even if the
process dies mid-write. The cache uses this store as its last-resort tier.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from gametime.models import Team

logger = logging.getLogger(__name__)


class SettingsKeys:
    SELECTED_TEAMS = "selected_teams"
    CACHED_GAMES = "cached_games"
    LAST_FETCH_DATE = "last_fetch_date"
    USE_24_HOUR_TIME = "use_24_hour_time"
    MAX_GAMES_TO_SHOW = "max_games_to_show"
    SCROLL_INTERVAL = "scroll_interval"
    SMALL_WIDGET_TEAM_ID = "small_widget_team_id"


class SettingsStore:
    """Generic JSON-file key-value store with typed accessors for app settings."""

    def __init__(self, path: str):
        self.path = path
        self.logger = logger
        self._lock = threading.RLock()

    # Generic key-value interface

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data
            self.logger.error(f"Settings file {self.path} does not hold an object, ignoring it")
        except json.JSONDecodeError as e:
            self.logger.error(f"Error parsing settings file {self.path}: {e}")
        except OSError as e:
            self.logger.error(f"Error reading settings file {self.path}: {e}")
        return {}

    def _write_all(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(self.path)}.", dir=directory)
        try:
            with os.fdopen(fd, 'w') as tmp_file:
                json.dump(data, tmp_file, indent=4)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serialisable value. Raises OSError if the file can't be written."""
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def set_many(self, values: Dict[str, Any]) -> None:
        with self._lock:
            data = self._read_all()
            data.update(values)
            self._write_all(data)

    def remove(self, *keys: str) -> None:
        with self._lock:
            data = self._read_all()
            if not any(key in data for key in keys):
                return
            for key in keys:
                data.pop(key, None)
            self._write_all(data)

    # Timestamps

    def get_datetime(self, key: str) -> Optional[datetime]:
        value = self.get(key)
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(value)
        except (TypeError, ValueError):
            self.logger.warning(f"Ignoring unreadable timestamp for {key}: {value!r}")
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def set_datetime(self, key: str, value: datetime) -> None:
        self.set(key, value.isoformat())

    # Followed teams

    @property
    def selected_teams(self) -> List[Team]:
        raw = self.get(SettingsKeys.SELECTED_TEAMS, [])
        teams = []
        for item in raw or []:
            try:
                teams.append(Team.from_dict(item))
            except (KeyError, TypeError) as e:
                self.logger.warning(f"Skipping unreadable team entry {item!r}: {e}")
        return teams

    @selected_teams.setter
    def selected_teams(self, teams: List[Team]) -> None:
        self.set(SettingsKeys.SELECTED_TEAMS, [team.to_dict() for team in teams])

    def add_team(self, team: Team) -> bool:
        with self._lock:
            teams = self.selected_teams
            if any(t.same_team(team) for t in teams):
                return False
            teams.append(team)
            self.selected_teams = teams
            return True

    def remove_team(self, team: Team) -> bool:
        with self._lock:
            teams = self.selected_teams
            remaining = [t for t in teams if not t.same_team(team)]
            if len(remaining) == len(teams):
                return False
            self.selected_teams = remaining
            return True

    def is_team_selected(self, team: Team) -> bool:
        return any(t.same_team(team) for t in self.selected_teams)

    # Display settings

    @property
    def use_24_hour_time(self) -> bool:
        return bool(self.get(SettingsKeys.USE_24_HOUR_TIME, False))

    @use_24_hour_time.setter
    def use_24_hour_time(self, value: bool) -> None:
        self.set(SettingsKeys.USE_24_HOUR_TIME, bool(value))

    @property
    def max_games_to_show(self) -> int:
        value = self.get(SettingsKeys.MAX_GAMES_TO_SHOW, 0)
        return value if isinstance(value, int) and value > 0 else 5

    @max_games_to_show.setter
    def max_games_to_show(self, value: int) -> None:
        self.set(SettingsKeys.MAX_GAMES_TO_SHOW, int(value))

    @property
    def scroll_interval(self) -> int:
        """Seconds between page flips on a multi-page widget."""
        value = self.get(SettingsKeys.SCROLL_INTERVAL, 0)
        return value if isinstance(value, int) and value > 0 else 10

    @scroll_interval.setter
    def scroll_interval(self, value: int) -> None:
        self.set(SettingsKeys.SCROLL_INTERVAL, int(value))

    @property
    def small_widget_team(self) -> Optional[Team]:
        """Team pinned to the small widget, None means next game across all teams."""
        team_id = self.get(SettingsKeys.SMALL_WIDGET_TEAM_ID)
        if not team_id:
            return None
        return next((t for t in self.selected_teams if t.key == team_id), None)

    @small_widget_team.setter
    def small_widget_team(self, team: Optional[Team]) -> None:
        if team is None:
            self.remove(SettingsKeys.SMALL_WIDGET_TEAM_ID)
        else:
            self.set(SettingsKeys.SMALL_WIDGET_TEAM_ID, team.key)
