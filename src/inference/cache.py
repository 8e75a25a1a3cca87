"""Process-scoped cache of model fits keyed by configuration and data."""

from __future__ import annotations

import hashlib
import json
import logging
from collections import OrderedDict
from typing import Callable, Dict, Mapping, Optional

import numpy as np

logger = logging.getLogger(__name__)

# Settings that change how sampling runs but not which posterior it targets.
_NON_SEMANTIC_KEYS = ("cores", "progressbar")


def fit_key(config, arrays: Mapping[str, np.ndarray]) -> str:
    """
    SHA-256 over the model config and every input array.

    Any change to data or configuration yields a different key.
    """
    digest = hashlib.sha256()
    settings = {k: v for k, v in config.to_dict().items() if k not in _NON_SEMANTIC_KEYS}
    digest.update(json.dumps(settings, sort_keys=True, default=str).encode("utf-8"))
    for name in sorted(arrays):
        arr = np.ascontiguousarray(arrays[name])
        digest.update(name.encode("utf-8"))
        digest.update(str(arr.dtype).encode("utf-8"))
        digest.update(str(arr.shape).encode("utf-8"))
        digest.update(arr.tobytes())
    return digest.hexdigest()


class FitCache:
    """
    Bounded in-memory store of ``FitResult`` objects.

    Owned explicitly by whoever creates it (typically a ``SeasonForecaster``);
    there is no module-level instance. Oldest entries are evicted first.
    """

    def __init__(self, max_entries: int = 8):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, object]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str):
        if key in self._entries:
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def put(self, key: str, fit) -> None:
        self._entries[key] = fit
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cached fit %s", evicted[:12])

    def clear(self) -> None:
        self._entries.clear()

    def get_or_fit(self, config, arrays: Dict[str, np.ndarray], fit_fn: Callable[[], object]):
        """Return the cached fit for (config, arrays) or run ``fit_fn`` and store it."""
        key = fit_key(config, arrays)
        cached = self.get(key)
        if cached is not None:
            logger.info("Reusing cached fit %s", key[:12])
            return cached
        fit = fit_fn()
        self.put(key, fit)
        return fit
