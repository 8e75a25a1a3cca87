"""Data loader for season tables (JSON or CSV)."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from ..errors import DataShapeError
from .dataset import SeasonData

logger = logging.getLogger(__name__)


def _json_default(value):
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class DataLoader:
    """Loads roster, game and injury tables from JSON or CSV files."""

    @staticmethod
    def load_table(file_path: str, key: str) -> List[Dict]:
        """
        Load one table as a list of row dictionaries.

        JSON files may hold either a bare list of rows or an object with the
        rows under ``key``. CSV files are read with pandas; empty cells become
        missing values.

        Args:
            file_path: Path to a ``.json`` or ``.csv`` file
            key: Top-level key to read from a JSON object

        Returns:
            List of row dictionaries
        """
        path = Path(file_path)
        if path.suffix.lower() == ".csv":
            frame = pd.read_csv(path)
            rows = frame.astype(object).where(pd.notna(frame), None).to_dict(orient="records")
        else:
            with open(path, 'r') as f:
                data = json.load(f)
            rows = data if isinstance(data, list) else data.get(key, [])

        if not isinstance(rows, list):
            raise DataShapeError(f"{file_path}: '{key}' must be a list of rows")
        logger.debug("Loaded %d %s rows from %s", len(rows), key, file_path)
        return rows

    @staticmethod
    def load_season(
        teams_path: str,
        games_path: Optional[str] = None,
        upcoming_path: Optional[str] = None,
        injuries_path: Optional[str] = None,
    ) -> SeasonData:
        """
        Load a season from separate table files.

        When ``games_path`` is omitted, ``teams_path`` must be a single JSON
        file holding ``teams``, ``games`` and optionally ``upcoming``,
        ``injuries`` and ``aliases``.

        Args:
            teams_path: Roster table (or combined season JSON)
            games_path: Completed-game table, or a full schedule when
                ``upcoming_path`` is omitted (rows without scores are upcoming)
            upcoming_path: Upcoming-game table
            injuries_path: Per-week injury table

        Returns:
            SeasonData
        """
        if games_path is None:
            return DataLoader.load_season_from_json(teams_path)

        teams = DataLoader.load_table(teams_path, "teams")
        games = DataLoader.load_table(games_path, "games")
        injuries = DataLoader.load_table(injuries_path, "injuries") if injuries_path else None

        if upcoming_path is None:
            return SeasonData.from_schedule(teams, games, injuries=injuries)
        upcoming = DataLoader.load_table(upcoming_path, "upcoming")
        return SeasonData.from_records(teams, games, upcoming, injuries=injuries)

    @staticmethod
    def load_season_from_json(file_path: str) -> SeasonData:
        """
        Load a complete season from one JSON file.

        Args:
            file_path: Path to JSON file

        Returns:
            SeasonData
        """
        with open(file_path, 'r') as f:
            data = json.load(f)

        if "teams" not in data or "games" not in data:
            raise DataShapeError(f"{file_path}: season file needs 'teams' and 'games'")

        return SeasonData.from_records(
            data["teams"],
            data["games"],
            data.get("upcoming"),
            injuries=data.get("injuries"),
            aliases=data.get("aliases"),
        )

    @staticmethod
    def save_forecast_to_json(forecast, file_path: str) -> None:
        """
        Save forecast tables and diagnostics to a JSON file.

        Args:
            forecast: ``ForecastResult``
            file_path: Output file path
        """
        with open(file_path, 'w') as f:
            json.dump(forecast.to_dict(), f, indent=2, default=_json_default, allow_nan=False)

    @staticmethod
    def save_samples_to_csv(forecast, file_path: str) -> None:
        """Write the raw posterior draws, one row per draw."""
        names = forecast.team_table["team_name"].tolist()
        forecast.samples.to_dataframe(team_names=names).to_csv(file_path, index=False)

    @staticmethod
    def create_sample_data(output_path: str) -> None:
        """
        Create a small sample season for experimentation.

        Args:
            output_path: Path to save sample data
        """
        sample_data = {
            "teams": [
                {"team_name": "Kansas City", "preseason_rank": 1},
                {"team_name": "Buffalo", "preseason_rank": 2},
                {"team_name": "Philadelphia", "preseason_rank": 3},
                {"team_name": "San Francisco", "preseason_rank": 4},
                {"team_name": "Detroit", "preseason_rank": 5},
                {"team_name": "Baltimore", "preseason_rank": 6},
            ],
            "games": [
                {"week": 1, "home_team": "Kansas City", "home_score": 27,
                 "visiting_team": "Baltimore", "visiting_score": 20,
                 "home_injuries": 2, "visiting_injuries": 3},
                {"week": 1, "home_team": "Buffalo", "home_score": 31,
                 "visiting_team": "Detroit", "visiting_score": 24,
                 "home_injuries": 1, "visiting_injuries": 1},
                {"week": 1, "home_team": "Philadelphia", "home_score": 17,
                 "visiting_team": "San Francisco", "visiting_score": 20,
                 "home_injuries": 4, "visiting_injuries": 2},
                {"week": 2, "home_team": "Detroit", "home_score": 34,
                 "visiting_team": "Kansas City", "visiting_score": 30},
                {"week": 2, "home_team": "San Francisco", "home_score": 24,
                 "visiting_team": "Buffalo", "visiting_score": 24,
                 "home_injuries": 1, "visiting_injuries": 2},
                {"week": 2, "home_team": "Baltimore", "home_score": 38,
                 "visiting_team": "Philadelphia", "visiting_score": 10,
                 "home_injuries": 0, "visiting_injuries": 5},
            ],
            "upcoming": [
                {"week": 3, "home_team": "Kansas City", "visiting_team": "Philadelphia"},
                {"week": 3, "home_team": "Baltimore", "visiting_team": "Buffalo",
                 "home_injuries": 2, "visiting_injuries": 0},
                {"week": 3, "home_team": "San Francisco", "visiting_team": "Detroit"},
            ],
        }

        with open(output_path, 'w') as f:
            json.dump(sample_data, f, indent=2)
