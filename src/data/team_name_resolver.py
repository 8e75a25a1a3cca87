"""
Roster-bound team name resolution.

Scores, schedules and injury reports come from different sites, and each
spells team names its own way ("St. Louis" vs "St Louis", "Texas A&amp;M").
``RosterResolver`` maps any of those spellings onto exactly one roster index:

1. Exact display-name match
2. Normalized match (case, punctuation, accents, HTML entities)
3. Explicit alias table supplied by the caller

There is deliberately no fuzzy pass. A name that fails all three is an input
error and raises ``UnresolvedTeamNameError``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import DataShapeError, UnresolvedTeamNameError
from .normalize import normalize_team_name

logger = logging.getLogger(__name__)


class RosterResolver:
    """
    Resolves team name strings to 0-based roster indices.

    Thread-safe for reads after construction.
    """

    def __init__(
        self,
        team_names: Sequence[str],
        aliases: Optional[Dict[str, Iterable[str]]] = None,
    ):
        """
        Args:
            team_names: Display names in roster order
            aliases: Mapping of roster display name -> alternative spellings

        Raises:
            DataShapeError: If two roster names collide after normalization
        """
        self._names: List[str] = [str(n).strip() for n in team_names]
        self._exact: Dict[str, int] = {}
        self._normalized: Dict[str, int] = {}

        for idx, name in enumerate(self._names):
            norm = normalize_team_name(name)
            if name in self._exact or norm in self._normalized:
                raise DataShapeError(f"Duplicate team in roster: {name!r}")
            self._exact[name] = idx
            self._normalized[norm] = idx

        for canonical, alternatives in (aliases or {}).items():
            idx = self.resolve(canonical, source="alias table")
            for alias in alternatives:
                self.add_alias(idx, alias)

    def __len__(self) -> int:
        return len(self._names)

    def resolve(self, name: str, source: str = "") -> int:
        """
        Resolve a team name to its roster index.

        Args:
            name: Any spelling of a roster team
            source: Where the name came from, used in the error message

        Returns:
            0-based roster index

        Raises:
            UnresolvedTeamNameError: If the name matches no roster entry
        """
        if name is None:
            raise UnresolvedTeamNameError("", source)
        raw = str(name).strip()
        if raw in self._exact:
            return self._exact[raw]
        norm = normalize_team_name(raw)
        if norm and norm in self._normalized:
            return self._normalized[norm]
        raise UnresolvedTeamNameError(raw, source)

    def add_alias(self, index: int, alias: str) -> None:
        """Register an alternative spelling for a roster slot."""
        if not 0 <= index < len(self._names):
            raise DataShapeError(f"Alias target index {index} out of range")
        norm = normalize_team_name(alias)
        existing = self._normalized.get(norm)
        if existing is not None and existing != index:
            raise DataShapeError(
                f"Alias {alias!r} already refers to {self._names[existing]!r}"
            )
        self._normalized[norm] = index
        logger.debug("Alias %r -> %s", alias, self._names[index])

    def name(self, index: int) -> str:
        """Display name for a roster index."""
        return self._names[index]

    @property
    def names(self) -> List[str]:
        return list(self._names)
