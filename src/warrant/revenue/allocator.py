# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Period-based revenue allocation and payout bookkeeping.

For a closed billing month the journalist pool (a configured share of
succeeded subscription payments) is split across authors in proportion to
their integrity-weighted readership:

    weighted_reads(author) = deduplicated_reads(author) * integrity_multiplier(author)

Generation is idempotent per period. A transaction-scoped advisory lock
serializes concurrent runs, a pre-check raises ``ConflictError`` when the
period already has entries, and ``UNIQUE (journalist_id, period)`` backs
both with ``ON CONFLICT DO NOTHING``.

Payout runs claim entries (CALCULATED -> PROCESSING) before any transfer
and settle each one to PAID or FAILED afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_DOWN, Decimal
from typing import Any

from ..core.audit import AuditAction
from ..core.collaborators import best_effort
from ..core.context import TrustContext
from ..core.exceptions import ConflictError, ValidationException
from ..core.models import RevenueStatus
from ..integrity.reputation import DEFAULT_SCORE
from .multiplier import IntegrityHistory, integrity_multiplier

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
_PERIOD_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

# PROCESSING entries are claimed by a payout run but not yet settled
EARNING_STATUSES = frozenset({RevenueStatus.CALCULATED, RevenueStatus.PROCESSING, RevenueStatus.PAID})


@dataclass
class RevenueEntry:
    id: str
    journalist_id: str
    period: str
    amount: Decimal
    status: RevenueStatus = RevenueStatus.CALCULATED
    weighted_reads: float = 0.0
    integrity_multiplier: float = 1.0
    transfer_ref: str | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> RevenueEntry:
        return cls(
            id=str(row["id"]),
            journalist_id=row["journalist_id"],
            period=row["period"],
            amount=Decimal(str(row["amount"])),
            status=RevenueStatus(row.get("status", RevenueStatus.CALCULATED)),
            weighted_reads=float(row.get("weighted_reads") or 0.0),
            integrity_multiplier=float(row.get("integrity_multiplier") or 1.0),
            transfer_ref=row.get("transfer_ref"),
            paid_at=row.get("paid_at"),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "journalist_id": self.journalist_id,
            "period": self.period,
            "amount": str(self.amount),
            "status": self.status.value,
            "weighted_reads": self.weighted_reads,
            "integrity_multiplier": self.integrity_multiplier,
            "transfer_ref": self.transfer_ref,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }


@dataclass
class JournalistRevenue:
    entries: list[RevenueEntry] = field(default_factory=list)
    total_earnings: Decimal = Decimal("0.00")

    def to_dict(self) -> dict[str, Any]:
        return {"entries": [e.to_dict() for e in self.entries], "total_earnings": str(self.total_earnings)}


@dataclass
class PayoutSummary:
    period: str
    paid: int = 0
    failed: int = 0
    unsettled: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"period": self.period, "paid": self.paid, "failed": self.failed}
        if self.unsettled:
            data["unsettled"] = list(self.unsettled)
        return data


def parse_period(period: str) -> tuple[datetime, datetime]:
    """Return the [start, end) UTC bounds of a ``YYYY-MM`` period.

    Raises:
        ValidationException: If the period is malformed.
    """
    match = _PERIOD_RE.match(period or "")
    if not match:
        raise ValidationException("Period must be formatted YYYY-MM", field="period", value=period)
    year, month = int(match.group(1)), int(match.group(2))
    start = datetime(year, month, 1, tzinfo=UTC)
    end = datetime(year + 1, 1, 1, tzinfo=UTC) if month == 12 else datetime(year, month + 1, 1, tzinfo=UTC)
    return start, end


def previous_period(now: datetime) -> str:
    """The most recent closed period relative to ``now``."""
    if now.month == 1:
        return f"{now.year - 1}-12"
    return f"{now.year}-{now.month - 1:02d}"


def allocate_pool(pool: Decimal, weights: dict[str, float]) -> dict[str, Decimal]:
    """Split ``pool`` proportionally to ``weights`` in whole cents.

    Uses the largest-remainder method so the shares always sum to the pool
    exactly. Keys with non-positive weight receive nothing.
    """
    positive = {k: Decimal(str(w)) for k, w in weights.items() if w > 0}
    if not positive or pool <= 0:
        return {k: Decimal("0.00") for k in positive}

    total_weight = sum(positive.values())
    cents = int((pool / CENT).to_integral_value(rounding=ROUND_DOWN))

    floors: dict[str, int] = {}
    remainders: list[tuple[Decimal, str]] = []
    for key, weight in positive.items():
        exact = Decimal(cents) * weight / total_weight
        whole = int(exact.to_integral_value(rounding=ROUND_DOWN))
        floors[key] = whole
        remainders.append((exact - whole, key))

    leftover = cents - sum(floors.values())
    # Largest fractional part first; key order breaks ties deterministically
    remainders.sort(key=lambda item: (-item[0], item[1]))
    for _, key in remainders[:leftover]:
        floors[key] += 1

    return {key: (Decimal(c) * CENT).quantize(CENT) for key, c in floors.items()}


class RevenueAllocator:
    """Computes per-period revenue entries and settles them."""

    def __init__(self, ctx: TrustContext):
        self.ctx = ctx

    def _check_closed(self, period: str) -> tuple[datetime, datetime]:
        start, end = parse_period(period)
        if self.ctx.now() < end:
            raise ValidationException(f"Period {period} has not closed yet", field="period", value=period)
        return start, end

    def _load_histories(
        self, cur: Any, authors: list[str], start: datetime, end: datetime
    ) -> dict[str, IntegrityHistory]:
        histories = {author: IntegrityHistory() for author in authors}

        cur.execute(
            """
            SELECT a.author_id, COUNT(*) AS upheld
            FROM disputes d
            JOIN articles a ON a.id = d.article_id
            WHERE d.status = 'UPHELD' AND d.resolved_at >= %s AND d.resolved_at < %s
              AND a.author_id = ANY(%s)
            GROUP BY a.author_id
            """,
            (start, end, authors),
        )
        for row in cur.fetchall():
            histories[row["author_id"]].upheld_disputes = int(row["upheld"])

        cur.execute(
            """
            SELECT a.author_id,
                   COUNT(*) FILTER (WHERE c.severity IN ('TYPO', 'CLARIFICATION')) AS minor,
                   COUNT(*) FILTER (WHERE c.severity NOT IN ('TYPO', 'CLARIFICATION')) AS major
            FROM corrections c
            JOIN articles a ON a.id = c.article_id
            WHERE c.created_at >= %s AND c.created_at < %s AND a.author_id = ANY(%s)
            GROUP BY a.author_id
            """,
            (start, end, authors),
        )
        for row in cur.fetchall():
            histories[row["author_id"]].minor_corrections = int(row["minor"])
            histories[row["author_id"]].major_corrections = int(row["major"])

        cur.execute(
            """
            SELECT a.author_id,
                   COUNT(*) FILTER (WHERE l.label_type = 'DISPUTED') AS disputed,
                   COUNT(*) FILTER (WHERE l.label_type IN ('NEEDS_SOURCE', 'UNDER_REVIEW')) AS review
            FROM integrity_labels l
            JOIN articles a ON a.id = l.article_id
            WHERE l.active AND a.author_id = ANY(%s)
            GROUP BY a.author_id
            """,
            (authors,),
        )
        for row in cur.fetchall():
            histories[row["author_id"]].disputed_labels = int(row["disputed"])
            histories[row["author_id"]].review_labels = int(row["review"])

        return histories

    async def generate_revenue_entries(self, period: str, triggered_by: str | None = None) -> list[RevenueEntry]:
        """Create one CALCULATED entry per journalist with readership in ``period``.

        Raises:
            ValidationException: Malformed or still-open period.
            ConflictError: Entries already exist for the period.
        """
        start, end = self._check_closed(period)
        return await asyncio.to_thread(self._generate_sync, period, start, end, triggered_by)

    def _generate_sync(
        self, period: str, start: datetime, end: datetime, triggered_by: str | None
    ) -> list[RevenueEntry]:
        share = Decimal(str(self.ctx.settings.journalist_pool_share))

        with self.ctx.cursor() as cur:
            cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (f"revenue:{period}",))

            cur.execute("SELECT COUNT(*) AS existing FROM revenue_entries WHERE period = %s", (period,))
            if int(cur.fetchone()["existing"]) > 0:
                raise ConflictError(f"Revenue entries already exist for period {period}")

            cur.execute(
                """
                SELECT COALESCE(SUM(amount), 0) AS revenue
                FROM subscription_payments
                WHERE status = 'SUCCEEDED' AND paid_at >= %s AND paid_at < %s
                """,
                (start, end),
            )
            revenue = Decimal(str(cur.fetchone()["revenue"]))
            pool = (revenue * share).quantize(CENT, rounding=ROUND_DOWN)

            cur.execute(
                """
                SELECT a.author_id, COUNT(DISTINCT (r.article_id, r.reader_id, r.read_on)) AS reads
                FROM read_events r
                JOIN articles a ON a.id = r.article_id
                WHERE r.reader_id IS NOT NULL AND r.read_on >= %s AND r.read_on < %s
                GROUP BY a.author_id
                """,
                (start.date(), end.date()),
            )
            reads = {row["author_id"]: int(row["reads"]) for row in cur.fetchall() if int(row["reads"]) > 0}

            entries: list[RevenueEntry] = []
            if reads:
                authors = sorted(reads)
                cur.execute(
                    "SELECT user_id, reputation_score FROM journalist_profiles WHERE user_id = ANY(%s)",
                    (authors,),
                )
                scores = {row["user_id"]: float(row["reputation_score"]) for row in cur.fetchall()}
                histories = self._load_histories(cur, authors, start, end)

                multipliers = {a: integrity_multiplier(scores.get(a, DEFAULT_SCORE), histories[a]) for a in authors}
                weighted = {a: reads[a] * multipliers[a] for a in authors}
                shares = allocate_pool(pool, weighted)

                for author in authors:
                    cur.execute(
                        """
                        INSERT INTO revenue_entries
                            (journalist_id, period, amount, weighted_reads, integrity_multiplier, status)
                        VALUES (%s, %s, %s, %s, %s, %s)
                        ON CONFLICT (journalist_id, period) DO NOTHING
                        RETURNING *
                        """,
                        (
                            author,
                            period,
                            shares.get(author, Decimal("0.00")),
                            weighted[author],
                            multipliers[author],
                            RevenueStatus.CALCULATED.value,
                        ),
                    )
                    row = cur.fetchone()
                    if row:
                        entries.append(RevenueEntry.from_row(row))

        logger.info(
            "Generated %d revenue entries for %s: revenue=%s pool=%s",
            len(entries),
            period,
            revenue,
            pool,
        )
        self.ctx.audit.log(
            action=AuditAction.REVENUE_GENERATED,
            entity="RevenueEntry",
            entity_id=period,
            details={"entries": len(entries), "revenue": str(revenue), "pool": str(pool)},
            user_id=triggered_by,
        )
        return entries

    async def ensure_revenue_entries(self, period: str, triggered_by: str | None = None) -> bool:
        """Generate entries unless the period already has them.

        Returns True when entries were generated by this call.
        """
        try:
            await self.generate_revenue_entries(period, triggered_by)
        except ConflictError as e:
            logger.info("Skipping revenue generation: %s", e.message)
            return False
        return True

    async def get_journalist_revenue(self, user_id: str) -> JournalistRevenue:
        rows = await asyncio.to_thread(self._journalist_rows_sync, user_id)
        entries = [RevenueEntry.from_row(r) for r in rows]
        total = sum((e.amount for e in entries if e.status in EARNING_STATUSES), Decimal("0.00"))
        return JournalistRevenue(entries=entries, total_earnings=total)

    def _journalist_rows_sync(self, user_id: str) -> list[dict[str, Any]]:
        with self.ctx.cursor() as cur:
            cur.execute(
                "SELECT * FROM revenue_entries WHERE journalist_id = %s ORDER BY period DESC",
                (user_id,),
            )
            return cur.fetchall()

    async def execute_payouts(self, period: str, triggered_by: str | None = None) -> PayoutSummary:
        """Transfer every CALCULATED entry of ``period``.

        Entries are first claimed (moved to PROCESSING) in one transaction
        that skips rows another run has locked, so two concurrent runs never
        transfer the same entry. Each claimed entry then settles
        independently: a missing payout account, a failed transfer or a
        provider error marks it FAILED and the batch continues. Zero-amount
        entries are marked PAID without a transfer.

        When recording an outcome fails, the entry stays PROCESSING for
        manual reconciliation, is counted as failed and is listed in
        ``PayoutSummary.unsettled``. It is never picked up by a later run.
        """
        parse_period(period)
        rows = await asyncio.to_thread(self._claim_sync, period)

        summary = PayoutSummary(period=period)
        for row in rows:
            entry = RevenueEntry.from_row(row)
            status, transfer_ref = await self._transfer(entry, row.get("payout_account_ref"))

            try:
                await asyncio.to_thread(self._settle, entry.id, status, transfer_ref)
            except Exception:
                logger.exception(
                    "Could not record %s for entry %s (transfer %s); left PROCESSING",
                    status.value,
                    entry.id,
                    transfer_ref,
                )
                summary.failed += 1
                summary.unsettled.append(entry.id)
                continue

            if status == RevenueStatus.PAID:
                summary.paid += 1
            else:
                summary.failed += 1

        logger.info("Payout run for %s: %d paid, %d failed", period, summary.paid, summary.failed)
        await asyncio.to_thread(
            self.ctx.audit.log,
            action=AuditAction.PAYOUT_RUN,
            entity="RevenueEntry",
            entity_id=period,
            details=summary.to_dict(),
            user_id=triggered_by,
        )
        return summary

    def _claim_sync(self, period: str) -> list[dict[str, Any]]:
        """Move the period's CALCULATED entries to PROCESSING and return them."""
        with self.ctx.cursor() as cur:
            cur.execute(
                """
                SELECT r.*, p.payout_account_ref
                FROM revenue_entries r
                LEFT JOIN journalist_profiles p ON p.user_id = r.journalist_id
                WHERE r.period = %s AND r.status = %s
                ORDER BY r.journalist_id
                FOR UPDATE OF r SKIP LOCKED
                """,
                (period, RevenueStatus.CALCULATED.value),
            )
            rows = cur.fetchall()
            if rows:
                cur.execute(
                    "UPDATE revenue_entries SET status = %s WHERE id = ANY(%s::uuid[])",
                    (RevenueStatus.PROCESSING.value, [str(r["id"]) for r in rows]),
                )
        return rows

    async def _transfer(self, entry: RevenueEntry, account_ref: str | None) -> tuple[RevenueStatus, str | None]:
        if entry.amount <= 0:
            return RevenueStatus.PAID, None
        if not account_ref:
            logger.warning("No payout account for %s; entry %s failed", entry.journalist_id, entry.id)
            return RevenueStatus.FAILED, None

        result = await best_effort(
            self.ctx.payouts.transfer(
                account_ref,
                entry.amount,
                self.ctx.settings.payout_currency,
                f"Warrant revenue share {entry.period}",
            ),
            f"payout of entry {entry.id}",
        )
        if result is not None and result.success:
            return RevenueStatus.PAID, result.transfer_ref

        logger.warning(
            "Payout failed for %s (entry %s): %s",
            entry.journalist_id,
            entry.id,
            result.error if result else "provider error",
        )
        return RevenueStatus.FAILED, None

    def _settle(self, entry_id: str, status: RevenueStatus, transfer_ref: str | None) -> None:
        paid_at = self.ctx.now() if status == RevenueStatus.PAID else None
        with self.ctx.cursor() as cur:
            cur.execute(
                """
                UPDATE revenue_entries
                SET status = %s, transfer_ref = %s, paid_at = %s
                WHERE id = %s AND status = %s
                """,
                (status.value, transfer_ref, paid_at, entry_id, RevenueStatus.PROCESSING.value),
            )
            if cur.rowcount == 0:
                logger.warning("Entry %s was no longer PROCESSING; %s not recorded", entry_id, status.value)
