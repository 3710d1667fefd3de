# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Shared domain enums and records for the trust engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class ArticleStatus(StrEnum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    PUBLISHED = "PUBLISHED"
    HELD = "HELD"
    REMOVED = "REMOVED"


class LabelType(StrEnum):
    SUPPORTED = "SUPPORTED"
    DISPUTED = "DISPUTED"
    NEEDS_SOURCE = "NEEDS_SOURCE"
    CORRECTION_ISSUED = "CORRECTION_ISSUED"
    UNDER_REVIEW = "UNDER_REVIEW"


class CorrectionSeverity(StrEnum):
    TYPO = "TYPO"
    CLARIFICATION = "CLARIFICATION"
    FACTUAL_ERROR = "FACTUAL_ERROR"
    MATERIAL_ERROR = "MATERIAL_ERROR"
    RETRACTION = "RETRACTION"


class ModerationOutcome(StrEnum):
    """Resolution of a flag or dispute."""

    UPHELD = "UPHELD"
    OVERTURNED = "OVERTURNED"
    DISMISSED = "DISMISSED"


class RevenueStatus(StrEnum):
    CALCULATED = "CALCULATED"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    FAILED = "FAILED"


class Role(StrEnum):
    READER = "READER"
    JOURNALIST = "JOURNALIST"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Actor:
    """The authenticated user a workflow runs on behalf of."""

    id: str
    role: Role = Role.READER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass
class ReputationEvent:
    """One immutable entry of the reputation log."""

    id: str
    user_id: str
    type: str
    delta: float
    reason: str | None = None
    related_article_id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ReputationEvent:
        related = row.get("related_article_id")
        return cls(
            id=str(row["id"]),
            user_id=row["user_id"],
            type=row["type"],
            delta=float(row["delta"]),
            reason=row.get("reason"),
            related_article_id=str(related) if related else None,
            created_at=row.get("created_at"),
        )


@dataclass
class IntegrityLabel:
    """A trust annotation on an article; removal only flips ``active``."""

    id: str
    article_id: str
    label_type: LabelType
    applied_by: str
    active: bool = True
    reason: str | None = None
    created_at: datetime | None = None
    removed_by: str | None = None
    removed_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> IntegrityLabel:
        return cls(
            id=str(row["id"]),
            article_id=str(row["article_id"]),
            label_type=LabelType(row["label_type"]),
            applied_by=row["applied_by"],
            active=bool(row.get("active", True)),
            reason=row.get("reason"),
            created_at=row.get("created_at"),
            removed_by=row.get("removed_by"),
            removed_at=row.get("removed_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "article_id": self.article_id,
            "label_type": self.label_type.value,
            "active": self.active,
            "applied_by": self.applied_by,
            "reason": self.reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "removed_by": self.removed_by,
            "removed_at": self.removed_at.isoformat() if self.removed_at else None,
        }


@dataclass
class JournalistProfile:
    user_id: str
    reputation_score: float = 50.0
    verification_status: str = "PENDING"
    article_count: int = 0
    pseudonym: str | None = None
    payout_account_ref: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> JournalistProfile:
        known = {
            "user_id",
            "reputation_score",
            "verification_status",
            "article_count",
            "pseudonym",
            "payout_account_ref",
        }
        return cls(
            user_id=row["user_id"],
            reputation_score=float(row.get("reputation_score", 50.0)),
            verification_status=row.get("verification_status") or "PENDING",
            article_count=int(row.get("article_count") or 0),
            pseudonym=row.get("pseudonym"),
            payout_account_ref=row.get("payout_account_ref"),
            extra={k: v for k, v in row.items() if k not in known},
        )
