"""
Occupation keyword table.

The table is JSON data (faceboard/data/occupations.json by default, or the
file named by BIOGRAPHY_KEYWORDS_FILE) so keywords and languages can be
added without touching the resolver:

    {
      "occupations": [{"label": "Singer", "keywords": ["singer", "가수"]}, ...],
      "work_markers": ["studio album", "앨범이다", ...]
    }

Occupation order matters: the first rule with a matching keyword wins.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

DEFAULT_KEYWORDS_FILE = Path(__file__).resolve().parent.parent / "data" / "occupations.json"


def _keyword_pattern(keyword: str) -> str:
    # Latin keywords match whole words; Hangul keywords take attached particles
    escaped = re.escape(keyword.lower())
    if keyword.isascii():
        return rf"\b{escaped}\b"
    return escaped


@dataclass(frozen=True)
class OccupationRule:
    """One label and the localized keywords that map to it."""

    label: str
    keywords: tuple[str, ...]
    pattern: re.Pattern[str] = field(repr=False, compare=False)

    @classmethod
    def build(cls, label: str, keywords: list[str]) -> "OccupationRule":
        if not label or not keywords:
            raise ValueError("occupation rules need a label and at least one keyword")
        pattern = re.compile("|".join(_keyword_pattern(k) for k in keywords))
        return cls(label=label, keywords=tuple(keywords), pattern=pattern)


@dataclass(frozen=True)
class KeywordTable:
    """Ordered occupation rules plus markers that identify creative works."""

    occupations: tuple[OccupationRule, ...]
    work_markers: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KeywordTable":
        rules = tuple(
            OccupationRule.build(entry["label"], list(entry["keywords"]))
            for entry in data.get("occupations", [])
        )
        markers = tuple(m.lower() for m in data.get("work_markers", []) if m)
        return cls(occupations=rules, work_markers=markers)

    @classmethod
    def from_file(cls, path: str | Path) -> "KeywordTable":
        with open(path, encoding="utf-8") as fh:
            return cls.from_dict(json.load(fh))

    def is_creative_work(self, summary: str) -> bool:
        """True when the summary describes an album, song, film, series, novel or game."""
        text = summary.lower()
        return any(marker in text for marker in self.work_markers)

    def occupation_for(self, summary: str) -> str | None:
        """Label of the first rule whose keyword appears in the summary."""
        text = summary.lower()
        for rule in self.occupations:
            if rule.pattern.search(text):
                return rule.label
        return None


@lru_cache(maxsize=8)
def load_keyword_table(path: str | None = None) -> KeywordTable:
    """Load (and cache) the keyword table, defaulting to the bundled file."""
    return KeywordTable.from_file(path or DEFAULT_KEYWORDS_FILE)
