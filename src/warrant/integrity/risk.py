# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Content risk assessment for editorial submissions.

Allegation language combined with weak sourcing is the one case that
routes an article to HELD instead of PUBLISHED. Detection is rule-based and
sits behind ``RiskClassifier`` so a different detector can be dropped in
without touching the publish workflow.

Policy (``source_score`` in [0, 100]):

    allegation  sourcing                        level   hold
    no          >= very_weak threshold          low     no
    no          <  very_weak threshold          medium  no
    yes         >= insufficient threshold       medium  no
    yes         <  insufficient threshold       high    yes
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

DEFAULT_VERY_WEAK_THRESHOLD = 20.0
DEFAULT_INSUFFICIENT_THRESHOLD = 50.0

TRIGGER_WEAK_SOURCING = "Very weak sourcing"
TRIGGER_ALLEGATION = "Contains allegation language"
TRIGGER_ALLEGATION_UNSOURCED = "Allegation with insufficient sourcing"

DEFAULT_ALLEGATION_PATTERNS: tuple[str, ...] = (
    r"\balleg(?:e|ed|es|edly|ation|ations)\b",
    r"\baccus(?:e|ed|es|ing|ation|ations)\b",
    r"\binvestigat(?:e|ed|es|ing|ion|ions)\b",
    r"\bcorrupt(?:ion|ed)?\b",
    r"\bcriminal\b",
    r"\bcharged with\b",
    r"\bindict(?:ed|ment)\b",
    r"\bharass(?:ed|ing|ment)\b",
    r"\bcover[- ]?ups?\b",
    r"\bfraud(?:ulent)?\b",
    r"\bmisconduct\b",
    r"\bbrib(?:e|ed|es|ery)\b",
    r"\bembezzl(?:e|ed|ing|ement)\b",
    r"\bkickbacks?\b",
    r"\babuse of power\b",
    r"\bwrongdoing\b",
)


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class RiskSignal:
    """What a classifier found in a piece of text."""

    allegation: bool
    matches: list[str] = field(default_factory=list)


@runtime_checkable
class RiskClassifier(Protocol):
    def classify(self, text: str) -> RiskSignal: ...


class KeywordRiskClassifier:
    """Regex-based allegation detector.

    Args:
        patterns: Regexes replacing the default list.
        extra_patterns: Regexes appended to the (default or given) list.
    """

    def __init__(
        self,
        patterns: Iterable[str] | None = None,
        extra_patterns: Iterable[str] | None = None,
    ):
        sources = list(patterns if patterns is not None else DEFAULT_ALLEGATION_PATTERNS)
        sources.extend(extra_patterns or ())
        self._patterns = [re.compile(p, re.IGNORECASE) for p in sources]

    def classify(self, text: str) -> RiskSignal:
        matches = []
        for pattern in self._patterns:
            found = pattern.search(text or "")
            if found:
                matches.append(found.group(0).lower())
        return RiskSignal(allegation=bool(matches), matches=matches)


@dataclass
class RiskAssessment:
    risk_level: RiskLevel
    should_hold: bool
    triggers: list[str] = field(default_factory=list)
    matches: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "should_hold": self.should_hold,
            "triggers": list(self.triggers),
        }


_default_classifier: KeywordRiskClassifier | None = None


def _get_default_classifier() -> KeywordRiskClassifier:
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = KeywordRiskClassifier()
    return _default_classifier


def assess_content_risk(
    title: str,
    body: str,
    source_score: float,
    *,
    classifier: RiskClassifier | None = None,
    very_weak_threshold: float = DEFAULT_VERY_WEAK_THRESHOLD,
    insufficient_threshold: float = DEFAULT_INSUFFICIENT_THRESHOLD,
) -> RiskAssessment:
    """Assess the editorial risk of an article.

    Never raises; a missing title or body is treated as empty text.
    """
    signal = (classifier or _get_default_classifier()).classify(f"{title or ''}\n{body or ''}")

    if not signal.allegation:
        if source_score < very_weak_threshold:
            return RiskAssessment(RiskLevel.MEDIUM, False, [TRIGGER_WEAK_SOURCING])
        return RiskAssessment(RiskLevel.LOW, False)

    if source_score < insufficient_threshold:
        return RiskAssessment(RiskLevel.HIGH, True, [TRIGGER_ALLEGATION_UNSOURCED], signal.matches)
    return RiskAssessment(RiskLevel.MEDIUM, False, [TRIGGER_ALLEGATION], signal.matches)


def classifier_from_settings(settings: Any) -> KeywordRiskClassifier:
    """Build the default classifier extended with configured patterns."""
    extra = getattr(settings, "extra_allegation_patterns", None) or []
    if not extra:
        return _get_default_classifier()
    return KeywordRiskClassifier(extra_patterns=extra)
