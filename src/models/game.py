"""Game models: completed observations and upcoming fixtures."""

from dataclasses import dataclass
from typing import Optional

from ..inference.transform import transform_differential


def _count(value: Optional[int]) -> int:
    """Missing injury counts are treated as zero."""
    if value is None:
        return 0
    return int(value)


@dataclass(frozen=True)
class GameObservation:
    """A completed game. Team indices are 0-based roster slots."""
    
    home_index: int
    away_index: int
    home_score: int
    away_score: int
    week: int = 0
    home_injuries: Optional[int] = None
    away_injuries: Optional[int] = None
    
    @property
    def raw_differential(self) -> int:
        """Home score minus visiting score."""
        return self.home_score - self.away_score
    
    @property
    def transformed_differential(self) -> float:
        return transform_differential(self.raw_differential)
    
    @property
    def injury_differential(self) -> int:
        """Home injured-player count minus visiting count."""
        return _count(self.home_injuries) - _count(self.away_injuries)
    
    def to_dict(self) -> dict:
        """Convert game to dictionary."""
        return {
            "week": self.week,
            "home_index": self.home_index,
            "away_index": self.away_index,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "home_injuries": _count(self.home_injuries),
            "away_injuries": _count(self.away_injuries),
            "transformed_differential": self.transformed_differential,
        }


@dataclass(frozen=True)
class UpcomingGame:
    """An unplayed fixture used only for prediction."""
    
    home_index: int
    away_index: int
    week: int = 0
    home_injuries: Optional[int] = None
    away_injuries: Optional[int] = None
    
    @property
    def injury_differential(self) -> int:
        return _count(self.home_injuries) - _count(self.away_injuries)
    
    def to_dict(self) -> dict:
        """Convert fixture to dictionary."""
        return {
            "week": self.week,
            "home_index": self.home_index,
            "away_index": self.away_index,
            "home_injuries": _count(self.home_injuries),
            "away_injuries": _count(self.away_injuries),
        }
