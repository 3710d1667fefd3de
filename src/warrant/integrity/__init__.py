"""Integrity signals: sourcing, content risk, reputation and labels."""

from .labels import LABEL_PENALTIES, IntegrityLabelRegistry, label_penalty
from .reputation import (
    DEFAULT_SCORE,
    REPUTATION_DELTAS,
    ReputationEventType,
    ReputationLedger,
    clamp_score,
    fold_reputation,
)
from .risk import (
    KeywordRiskClassifier,
    RiskAssessment,
    RiskClassifier,
    RiskLevel,
    RiskSignal,
    assess_content_risk,
)
from .sources import SourceAssessment, SourceInput, SourceQuality, assess_source_completeness

__all__ = [
    "DEFAULT_SCORE",
    "LABEL_PENALTIES",
    "REPUTATION_DELTAS",
    "IntegrityLabelRegistry",
    "KeywordRiskClassifier",
    "ReputationEventType",
    "ReputationLedger",
    "RiskAssessment",
    "RiskClassifier",
    "RiskLevel",
    "RiskSignal",
    "SourceAssessment",
    "SourceInput",
    "SourceQuality",
    "assess_content_risk",
    "assess_source_completeness",
    "clamp_score",
    "fold_reputation",
    "label_penalty",
]
