"""
Biography Resolver - Wikipedia title enrichment.

Turns a normalized display name into the short ``title`` shown under a
face. Two strategies are supported:

- simple: first opensearch hit per backend, its summary clamped to 120
  characters.
- ranked: up to five opensearch hits plus the name itself, ranked by
  canonical match; summaries describing creative works are skipped and an
  occupation label ("Singer", "Actor", ...) is extracted from the first
  acceptable summary.

Backends (Korean, then English Wikipedia by default) are tried in order.
Network failures, non-2xx responses and unreadable bodies only mean "no
summary here"; resolve() never raises and falls back to a generic title.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable
from urllib.parse import quote

import httpx

from ..config import Settings
from .keywords import KeywordTable, load_keyword_table
from .names import canonicalize, sentence_clamp

logger = logging.getLogger(__name__)

STRATEGY_SIMPLE = "simple"
STRATEGY_RANKED = "ranked"

SIMPLE_SEARCH_LIMIT = 1
RANKED_SEARCH_LIMIT = 5

PUBLIC_FIGURE_TITLE = "Public Figure"
SIMPLE_FALLBACK_TEMPLATE = "{name}에 대한 평가 항목"

# Ranking weights
SCORE_EXACT_MATCH = 100
SCORE_NO_PARENTHETICAL = 10
SCORE_DISAMBIGUATION = -50

_PARENTHETICAL_RE = re.compile(r"\(.*\)")


@dataclass(frozen=True)
class WikiBackend:
    """One language edition of Wikipedia."""

    language: str
    base_url: str

    @property
    def search_url(self) -> str:
        return f"{self.base_url}/w/api.php"

    def summary_url(self, title: str) -> str:
        return f"{self.base_url}/api/rest_v1/page/summary/{quote(title, safe='')}"

    @classmethod
    def for_language(cls, language: str, template: str) -> "WikiBackend":
        return cls(language=language, base_url=template.format(lang=language).rstrip("/"))


# =============================================================================
# Candidate ranking
# =============================================================================


def score_candidate(query_key: str, title: str) -> int:
    """Score one article title against the canonical query name."""
    score = 0
    if canonicalize(title) == query_key:
        score += SCORE_EXACT_MATCH
    if not _PARENTHETICAL_RE.search(title):
        score += SCORE_NO_PARENTHETICAL
    if "disambiguation" in title.lower():
        score += SCORE_DISAMBIGUATION
    return score


def rank_candidates(name: str, titles: Iterable[str]) -> list[str]:
    """
    Deduplicate ``[name, *titles]`` and sort by descending score.

    The sort is stable, so equally scored titles keep search order.
    """
    candidates: list[str] = []
    for title in (name, *titles):
        if title and title not in candidates:
            candidates.append(title)

    query_key = canonicalize(name)
    return sorted(candidates, key=lambda t: score_candidate(query_key, t), reverse=True)


# =============================================================================
# Resolver
# =============================================================================


class BiographyResolver:
    """
    Resolves a display name to a short descriptor using Wikipedia.

    The HTTP client is injected so callers control its lifetime (one
    client per request or CLI run) and tests can swap the transport.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        backends: list[WikiBackend],
        strategy: str = STRATEGY_RANKED,
        keywords: KeywordTable | None = None,
        user_agent: str | None = None,
    ):
        if strategy not in (STRATEGY_SIMPLE, STRATEGY_RANKED):
            raise ValueError(f"Unknown biography strategy: {strategy!r}")
        self.client = client
        self.backends = backends
        self.strategy = strategy
        self.keywords = keywords or load_keyword_table()
        self.headers = {"Accept": "application/json"}
        if user_agent:
            self.headers["User-Agent"] = user_agent

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> "BiographyResolver":
        backends = [
            WikiBackend.for_language(lang, settings.WIKI_BASE_TEMPLATE)
            for lang in settings.wiki_languages
        ]
        return cls(
            client,
            backends=backends,
            strategy=settings.BIOGRAPHY_STRATEGY,
            keywords=load_keyword_table(settings.BIOGRAPHY_KEYWORDS_FILE),
            user_agent=settings.WIKI_USER_AGENT,
        )

    async def resolve(self, name: str, accept_untagged_summary: bool = False) -> str:
        """
        Produce the ``title`` for a face.

        Args:
            name: Normalized display name
            accept_untagged_summary: Ranked strategy only. Use the clamped
                summary when no occupation keyword matches instead of moving
                on to the next candidate.
        """
        if self.strategy == STRATEGY_SIMPLE:
            return await self._resolve_simple(name)
        return await self._resolve_ranked(name, accept_untagged_summary)

    async def _resolve_simple(self, name: str) -> str:
        for backend in self.backends:
            titles = await self.search(backend, name, SIMPLE_SEARCH_LIMIT)
            if not titles:
                continue
            summary = await self.fetch_summary(backend, titles[0])
            if not summary:
                continue
            return sentence_clamp(summary)

        logger.debug("No Wikipedia summary for %r; using fallback title", name)
        return SIMPLE_FALLBACK_TEMPLATE.format(name=name)

    async def _resolve_ranked(self, name: str, accept_untagged_summary: bool) -> str:
        for backend in self.backends:
            titles = await self.search(backend, name, RANKED_SEARCH_LIMIT)
            for candidate in rank_candidates(name, titles):
                summary = await self.fetch_summary(backend, candidate)
                if not summary:
                    continue
                if self.keywords.is_creative_work(summary):
                    logger.debug("Skipping %r on %s: describes a work", candidate, backend.language)
                    continue
                label = self.keywords.occupation_for(summary)
                if label:
                    return label
                if accept_untagged_summary:
                    return sentence_clamp(summary)

        logger.debug("No occupation found for %r; using fallback title", name)
        return PUBLIC_FIGURE_TITLE

    async def search(self, backend: WikiBackend, name: str, limit: int) -> list[str]:
        """Opensearch title lookup. Returns [] when the backend cannot answer."""
        params = {
            "action": "opensearch",
            "search": name,
            "limit": str(limit),
            "namespace": "0",
            "format": "json",
        }
        data = await self._get_json(backend.search_url, params=params)
        if not isinstance(data, list) or len(data) < 2 or not isinstance(data[1], list):
            return []
        return [title for title in data[1] if isinstance(title, str) and title]

    async def fetch_summary(self, backend: WikiBackend, title: str) -> str | None:
        """Page summary text (extract, else description) or None."""
        data = await self._get_json(backend.summary_url(title))
        if not isinstance(data, dict):
            return None
        summary = data.get("extract") or data.get("description")
        if isinstance(summary, str) and summary.strip():
            return summary
        return None

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        try:
            response = await self.client.get(url, params=params, headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning("Wikipedia request failed: %s %s", url, type(e).__name__)
            return None
        if not response.is_success:
            logger.debug("Wikipedia returned %s for %s", response.status_code, url)
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug("Wikipedia returned non-JSON body for %s", url)
            return None
