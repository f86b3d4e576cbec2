from __future__ import annotations

import re
from typing import Dict

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9\-_]+")
_DASH_RUN = re.compile(r"-{2,}")


def clean_id(raw: str) -> str:
    """
    Turn an arbitrary string into a valid HTML id.

    Lower-cases, maps ` `, `_` and `[` to `-`, drops `]` and any other
    character outside `[A-Za-z0-9-_]`, then collapses runs of dashes.
    """
    t = str(raw or "").strip().lower()
    t = t.replace(" ", "-").replace("_", "-").replace("[", "-").replace("]", "")
    t = _INVALID_ID_CHARS.sub("", t)
    t = _DASH_RUN.sub("-", t)
    return t


class HtmlIdRegistry:
    """Hands out ids that are unique within one build pass."""

    def __init__(self) -> None:
        self._seen: Dict[str, int] = {}

    def reset(self) -> None:
        self._seen.clear()

    def get_unique_id(self, raw: str) -> str:
        base = clean_id(raw)
        if base not in self._seen:
            self._seen[base] = 1
            return base
        counter = self._seen[base] + 1
        candidate = f"{base}--{counter}"
        while candidate in self._seen:
            counter += 1
            candidate = f"{base}--{counter}"
        self._seen[base] = counter
        self._seen[candidate] = 1
        return candidate
