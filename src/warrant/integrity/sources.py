# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Source completeness scoring.

Scores how well an article's attached citations support it, on a 0-100
scale built from additive credits:

    +20  at least one source (otherwise 0 and stop)
    +30  any PRIMARY-quality source
    +20  every non-anonymous source carries a URL
         (+10 instead when every source is anonymous/unverifiable)
    +15  more than one source
    +15  more than one distinct source type

An article is "complete" at 50 or above. The function is pure and total:
problems are reported in ``issues`` rather than raised.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class SourceQuality(StrEnum):
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    ANONYMOUS = "ANONYMOUS"
    UNVERIFIABLE = "UNVERIFIABLE"


COMPLETE_THRESHOLD = 50

PRESENCE_CREDIT = 20
PRIMARY_CREDIT = 30
URL_CREDIT = 20
ANONYMOUS_PARTIAL_CREDIT = 10
MULTIPLE_SOURCES_CREDIT = 15
DIVERSE_TYPES_CREDIT = 15

ISSUE_NO_SOURCES = "No sources attached"
ISSUE_NO_PRIMARY = "No primary sources"
ISSUE_ALL_ANONYMOUS = "All sources are anonymous or unverifiable"
ISSUE_MISSING_URLS = "Some non-anonymous sources missing URLs"
ISSUE_SINGLE_SOURCE = "Single source only"

_ANONYMOUS_QUALITIES = frozenset({SourceQuality.ANONYMOUS, SourceQuality.UNVERIFIABLE})


@dataclass(frozen=True)
class SourceInput:
    """A citation attached to an article."""

    source_type: str
    quality: str
    url: str | None = None
    is_anonymous: bool = False

    @property
    def anonymous(self) -> bool:
        return self.is_anonymous or self.quality in _ANONYMOUS_QUALITIES

    @classmethod
    def coerce(cls, value: SourceInput | Mapping[str, Any]) -> SourceInput:
        """Accept a SourceInput, a DB row, or a camelCase API payload."""
        if isinstance(value, SourceInput):
            return value
        return cls(
            source_type=str(value.get("source_type") or value.get("sourceType") or ""),
            quality=str(value.get("quality") or "").upper(),
            url=value.get("url") or None,
            is_anonymous=bool(value.get("is_anonymous") or value.get("isAnonymous") or False),
        )


@dataclass
class SourceAssessment:
    score: int
    complete: bool
    issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "complete": self.complete, "issues": list(self.issues)}


def assess_source_completeness(sources: Iterable[SourceInput | Mapping[str, Any]] | None) -> SourceAssessment:
    """Score the sourcing of an article.

    Args:
        sources: Attached sources, as ``SourceInput`` objects or mappings with
            ``source_type``/``sourceType``, ``quality``, ``url`` and
            ``is_anonymous``/``isAnonymous`` keys.

    Returns:
        SourceAssessment with score in [0, 100], the completeness verdict and
        the list of human-readable issues found.
    """
    items = [SourceInput.coerce(s) for s in (sources or [])]
    if not items:
        return SourceAssessment(score=0, complete=False, issues=[ISSUE_NO_SOURCES])

    issues: list[str] = []
    score = PRESENCE_CREDIT

    if any(s.quality == SourceQuality.PRIMARY for s in items):
        score += PRIMARY_CREDIT
    else:
        issues.append(ISSUE_NO_PRIMARY)

    named = [s for s in items if not s.anonymous]
    if named and all(s.url for s in named):
        score += URL_CREDIT
    elif not named:
        score += ANONYMOUS_PARTIAL_CREDIT
        issues.append(ISSUE_ALL_ANONYMOUS)
    else:
        issues.append(ISSUE_MISSING_URLS)

    if len(items) > 1:
        score += MULTIPLE_SOURCES_CREDIT
    else:
        issues.append(ISSUE_SINGLE_SOURCE)

    if len({s.source_type for s in items}) > 1:
        score += DIVERSE_TYPES_CREDIT

    score = min(100, score)
    return SourceAssessment(score=score, complete=score >= COMPLETE_THRESHOLD, issues=issues)
