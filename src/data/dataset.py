"""Season data assembly: roster, completed games and upcoming fixtures.

Turns the flat row tables produced by the scrapers (or loaded from disk) into
resolved, validated model inputs. Everything here is materialized in memory
before the inference engine sees it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..errors import DataShapeError
from ..inference.priors import prior_scores_from_ranks
from ..models.game import GameObservation, UpcomingGame
from ..models.team import Team
from .team_name_resolver import RosterResolver

logger = logging.getLogger(__name__)

Row = Mapping[str, object]


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _as_int(value, field_name: str, row_label: str) -> int:
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        raise DataShapeError(f"{row_label}: field '{field_name}' is not numeric: {value!r}")
    if not np.isfinite(as_float) or as_float != int(as_float):
        raise DataShapeError(f"{row_label}: field '{field_name}' must be an integer, got {value!r}")
    return int(as_float)


def _optional_int(row: Row, field_name: str, row_label: str) -> Optional[int]:
    value = row.get(field_name)
    if _is_missing(value):
        return None
    return _as_int(value, field_name, row_label)


def _required(row: Row, field_name: str, row_label: str):
    value = row.get(field_name)
    if _is_missing(value):
        raise DataShapeError(f"{row_label}: missing required field '{field_name}'")
    return value


def _records(rows) -> List[Row]:
    """Accept a list of dicts or a DataFrame."""
    if rows is None:
        return []
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict(orient="records")
    return list(rows)


@dataclass(frozen=True)
class SeasonData:
    """Resolved roster, completed games and upcoming games for one season."""

    teams: Tuple[Team, ...]
    games: Tuple[GameObservation, ...]
    upcoming: Tuple[UpcomingGame, ...] = ()
    resolver: Optional[RosterResolver] = field(default=None, compare=False, repr=False)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_records(
        cls,
        teams,
        games,
        upcoming=None,
        injuries=None,
        aliases: Optional[Dict[str, Iterable[str]]] = None,
    ) -> "SeasonData":
        """
        Build season data from row tables.

        Args:
            teams: Rows with ``team_name`` and ``preseason_rank``
            games: Completed games with ``week``, ``home_team``, ``home_score``,
                ``visiting_team``, ``visiting_score`` and optional
                ``home_injuries`` / ``visiting_injuries``
            upcoming: Unplayed games with ``week``, ``home_team``,
                ``visiting_team`` and optional injury counts
            injuries: Optional per-week injury table with ``week``, ``team``,
                ``injuries``; fills injury counts the game rows leave empty
            aliases: Roster display name -> alternative spellings

        Returns:
            SeasonData

        Raises:
            DataShapeError: Malformed rows or an invalid rank list
            UnresolvedTeamNameError: A team name not on the roster
        """
        roster = build_roster(_records(teams))
        resolver = RosterResolver([t.name for t in roster], aliases=aliases)
        injury_lookup = _injury_lookup(_records(injuries), resolver)

        completed = tuple(
            _parse_completed(row, idx, resolver, injury_lookup)
            for idx, row in enumerate(_records(games))
        )
        pending = tuple(
            _parse_upcoming(row, idx, resolver, injury_lookup)
            for idx, row in enumerate(_records(upcoming))
        )
        logger.info(
            "Season data: %d teams, %d completed games, %d upcoming games",
            len(roster), len(completed), len(pending),
        )
        return cls(teams=tuple(roster), games=completed, upcoming=pending, resolver=resolver)

    @classmethod
    def from_schedule(
        cls,
        teams,
        schedule,
        injuries=None,
        aliases: Optional[Dict[str, Iterable[str]]] = None,
    ) -> "SeasonData":
        """
        Build season data from a full schedule.

        Rows with both scores present are completed games; every other row is
        an upcoming game.
        """
        completed: List[Row] = []
        pending: List[Row] = []
        for row in _records(schedule):
            if _is_missing(row.get("home_score")) or _is_missing(row.get("visiting_score")):
                pending.append(row)
            else:
                completed.append(row)
        return cls.from_records(teams, completed, pending, injuries=injuries, aliases=aliases)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def n_teams(self) -> int:
        return len(self.teams)

    @property
    def n_games(self) -> int:
        return len(self.games)

    @property
    def team_names(self) -> List[str]:
        return [t.name for t in self.teams]

    @property
    def prior_scores(self) -> np.ndarray:
        return np.array([t.prior_score for t in self.teams], dtype=float)

    def through_week(self, week: int) -> "SeasonData":
        """Keep only completed games played in or before ``week``."""
        kept = tuple(g for g in self.games if g.week <= week)
        return replace(self, games=kept)

    def for_week(self, week: int) -> "SeasonData":
        """Keep only upcoming games scheduled in ``week``."""
        kept = tuple(g for g in self.upcoming if g.week == week)
        return replace(self, upcoming=kept)

    def observation_arrays(self) -> Dict[str, np.ndarray]:
        """Completed games as aligned arrays for the inference engine."""
        return {
            "home_idx": np.array([g.home_index for g in self.games], dtype=int),
            "away_idx": np.array([g.away_index for g in self.games], dtype=int),
            "y": np.array([g.transformed_differential for g in self.games], dtype=float),
            "injury_diff": np.array([g.injury_differential for g in self.games], dtype=float),
        }

    def upcoming_arrays(self) -> Dict[str, np.ndarray]:
        """Upcoming games as aligned arrays for the predictive generator."""
        return {
            "home_idx": np.array([g.home_index for g in self.upcoming], dtype=int),
            "away_idx": np.array([g.away_index for g in self.upcoming], dtype=int),
            "injury_diff": np.array([g.injury_differential for g in self.upcoming], dtype=float),
        }


# ----------------------------------------------------------------------
# Row parsing
# ----------------------------------------------------------------------


def build_roster(rows: Sequence[Row]) -> List[Team]:
    """
    Build the roster with prior scores.

    Args:
        rows: ``team_name`` / ``preseason_rank`` rows in roster order

    Returns:
        Teams indexed by their position in ``rows``
    """
    if not rows:
        raise DataShapeError("Team roster is empty")
    names: List[str] = []
    ranks: List[int] = []
    for idx, row in enumerate(rows):
        label = f"teams[{idx}]"
        names.append(str(_required(row, "team_name", label)).strip())
        ranks.append(_as_int(_required(row, "preseason_rank", label), "preseason_rank", label))

    priors = prior_scores_from_ranks(ranks)
    return [
        Team(name=name, index=idx, preseason_rank=rank, prior_score=float(prior))
        for idx, (name, rank, prior) in enumerate(zip(names, ranks, priors))
    ]


def _injury_lookup(rows: Sequence[Row], resolver: RosterResolver) -> Dict[Tuple[int, int], int]:
    lookup: Dict[Tuple[int, int], int] = {}
    for idx, row in enumerate(rows):
        label = f"injuries[{idx}]"
        week = _as_int(_required(row, "week", label), "week", label)
        team = resolver.resolve(str(_required(row, "team", label)), source=label)
        count = _optional_int(row, "injuries", label)
        lookup[(week, team)] = count or 0
    return lookup


def _injury_count(
    row: Row,
    field_name: str,
    week: int,
    team: int,
    label: str,
    lookup: Dict[Tuple[int, int], int],
) -> Optional[int]:
    explicit = _optional_int(row, field_name, label)
    if explicit is not None:
        return explicit
    return lookup.get((week, team))


def _parse_teams(row: Row, label: str, resolver: RosterResolver) -> Tuple[int, int]:
    home = resolver.resolve(str(_required(row, "home_team", label)), source=label)
    away = resolver.resolve(str(_required(row, "visiting_team", label)), source=label)
    if home == away:
        raise DataShapeError(f"{label}: team cannot play itself ({resolver.name(home)})")
    return home, away


def _parse_completed(
    row: Row,
    idx: int,
    resolver: RosterResolver,
    injuries: Dict[Tuple[int, int], int],
) -> GameObservation:
    label = f"games[{idx}]"
    home, away = _parse_teams(row, label, resolver)
    week = _optional_int(row, "week", label) or 0
    return GameObservation(
        home_index=home,
        away_index=away,
        home_score=_as_int(_required(row, "home_score", label), "home_score", label),
        away_score=_as_int(_required(row, "visiting_score", label), "visiting_score", label),
        week=week,
        home_injuries=_injury_count(row, "home_injuries", week, home, label, injuries),
        away_injuries=_injury_count(row, "visiting_injuries", week, away, label, injuries),
    )


def _parse_upcoming(
    row: Row,
    idx: int,
    resolver: RosterResolver,
    injuries: Dict[Tuple[int, int], int],
) -> UpcomingGame:
    label = f"upcoming[{idx}]"
    home, away = _parse_teams(row, label, resolver)
    week = _optional_int(row, "week", label) or 0
    return UpcomingGame(
        home_index=home,
        away_index=away,
        week=week,
        home_injuries=_injury_count(row, "home_injuries", week, home, label, injuries),
        away_injuries=_injury_count(row, "visiting_injuries", week, away, label, injuries),
    )
