"""Team model for season quality estimation."""

from dataclasses import dataclass


@dataclass
class Team:
    """A roster entry: identity, roster slot and preseason prior."""
    
    name: str
    index: int
    preseason_rank: int
    prior_score: float = 0.0
    
    def __post_init__(self):
        """Validate team data."""
        if not self.name or not str(self.name).strip():
            raise ValueError("Team name must be non-empty")
        
        if self.index < 0:
            raise ValueError(f"Roster index must be non-negative, got {self.index}")
        
        if self.preseason_rank < 1:
            raise ValueError(f"Preseason rank must be >= 1, got {self.preseason_rank}")
    
    def to_dict(self) -> dict:
        """Convert team to dictionary."""
        return {
            "name": self.name,
            "index": self.index,
            "preseason_rank": self.preseason_rank,
            "prior_score": self.prior_score,
        }
    
    @classmethod
    def from_dict(cls, data: dict) -> "Team":
        """Create team from dictionary."""
        return cls(
            name=data["name"],
            index=data["index"],
            preseason_rank=data["preseason_rank"],
            prior_score=data.get("prior_score", 0.0),
        )
