"""Team name normalization shared by the roster resolver and loaders."""

from __future__ import annotations

import html as _html
import re
import unicodedata


def normalize_team_name(name: str) -> str:
    """Normalize a team display name for matching.

    Steps:
    1. Decode HTML entities (``&amp;`` -> ``&``)
    2. NFKD-normalize Unicode and strip combining marks (``é`` -> ``e``)
    3. Lowercase, ``&`` -> ``and``
    4. Replace non-alphanumeric characters with spaces and collapse them

    Examples::

        >>> normalize_team_name("Texas A&amp;M")
        'texas a and m'
        >>> normalize_team_name("  San José   State ")
        'san jose state'
    """
    if not name:
        return ""
    s = _html.unescape(str(name))
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = s.lower().replace("&", " and ")
    s = re.sub(r"[^a-z0-9]", " ", s)
    return re.sub(r"\s+", " ", s).strip()
