"""Error taxonomy shared across the forecasting pipeline."""

from __future__ import annotations

from typing import Dict, Optional


class DataShapeError(ValueError):
    """Raised when input data is malformed or internally inconsistent."""


class UnresolvedTeamNameError(ValueError):
    """Raised when a team name does not match any roster entry."""

    def __init__(self, name: str, source: str = ""):
        self.name = name
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Unresolved team name{where}: {name!r}")


class ConvergenceWarning(UserWarning):
    """Emitted when sampling diagnostics indicate the chains have not mixed.

    The fit still returns samples; callers detect the degraded case through
    ``FitResult.converged`` or by filtering this warning class.
    """

    def __init__(self, message: str, diagnostics: Optional[Dict[str, float]] = None):
        super().__init__(message)
        self.diagnostics = dict(diagnostics or {})
