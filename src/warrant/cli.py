#!/usr/bin/env python3
"""
Warrant CLI - operator tooling for the trust engine.

Commands:
  warrant init                          Initialize database (creates schema)
  warrant reputation show <user>        Show a journalist's current score
  warrant reputation history <user>     List recent reputation events
  warrant reputation replay <user>      Rebuild a score from the event log
  warrant revenue generate [period]     Generate revenue entries for a closed month
  warrant revenue execute <period>      Pay out CALCULATED entries
  warrant revenue show <user>           Show a journalist's revenue
  warrant feed                          Print the ranked (or chronological) feed
  warrant serve                         Run the HTTP feed server
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from .core.exceptions import WarrantException

logger = logging.getLogger(__name__)


def _context():
    from .core.context import default_context

    return default_context()


def _emit(args: argparse.Namespace, data: Any, text: str) -> None:
    if getattr(args, "json", False):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(text)


def cmd_init(args: argparse.Namespace) -> int:
    """Create the schema if it does not exist."""
    from .core.db import init_schema

    init_schema(args.schema)
    print("Schema initialized")
    return 0


def cmd_reputation(args: argparse.Namespace) -> int:
    from .integrity.reputation import ReputationLedger

    ledger = ReputationLedger(_context())

    if args.reputation_command == "show":
        score = asyncio.run(ledger.get_score(args.user_id))
        _emit(args, {"user_id": args.user_id, "score": score}, f"{args.user_id}: {score:.1f}")
        return 0

    if args.reputation_command == "replay":
        score = asyncio.run(ledger.replay(args.user_id))
        _emit(args, {"user_id": args.user_id, "score": score}, f"{args.user_id}: replayed score {score:.1f}")
        return 0

    events = asyncio.run(ledger.get_history(args.user_id, limit=args.limit))
    rows = [
        {
            "type": e.type,
            "delta": e.delta,
            "reason": e.reason,
            "article_id": e.related_article_id,
            "created_at": e.created_at,
        }
        for e in events
    ]
    lines = [f"{r['created_at']}  {r['type']:<26} {r['delta']:+.1f}  {r['reason'] or ''}" for r in rows]
    _emit(args, rows, "\n".join(lines) or "No events")
    return 0


def cmd_revenue(args: argparse.Namespace) -> int:
    from .revenue.allocator import RevenueAllocator, previous_period

    ctx = _context()
    allocator = RevenueAllocator(ctx)

    if args.revenue_command == "generate":
        period = args.period or previous_period(ctx.now())
        entries = asyncio.run(allocator.generate_revenue_entries(period))
        lines = [f"{e.journalist_id:<24} {e.amount:>10}  x{e.integrity_multiplier:.2f}" for e in entries]
        _emit(args, [e.to_dict() for e in entries], "\n".join(lines) or f"No readership in {period}")
        return 0

    if args.revenue_command == "execute":
        summary = asyncio.run(allocator.execute_payouts(args.period))
        _emit(args, summary.to_dict(), f"{summary.period}: {summary.paid} paid, {summary.failed} failed")
        return 0 if summary.failed == 0 else 2

    revenue = asyncio.run(allocator.get_journalist_revenue(args.user_id))
    lines = [f"{e.period}  {e.amount:>10}  {e.status.value}" for e in revenue.entries]
    lines.append(f"Total earnings: {revenue.total_earnings}")
    _emit(args, revenue.to_dict(), "\n".join(lines))
    return 0


def cmd_feed(args: argparse.Namespace) -> int:
    from .distribution.feed import FeedService

    feed = FeedService(_context())
    offset = (args.page - 1) * args.limit
    if args.chronological:
        page = asyncio.run(feed.get_chronological_feed(limit=args.limit, offset=offset, author_id=args.author))
    else:
        page = asyncio.run(feed.get_feed(limit=args.limit, offset=offset, author_id=args.author))

    lines = []
    for a in page.articles:
        labels = f", {', '.join(a.integrity_labels)}" if a.integrity_labels else ""
        lines.append(f"{a.distribution_score:6.2f}  {a.title}  ({a.author_pseudonym}{labels})")
    lines.append(f"{page.total} published")
    _emit(args, page.to_dict(), "\n".join(lines))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .server.app import run

    run()
    return 0


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(prog="warrant", description="Warrant trust engine")
    parser.add_argument("--json", action="store_true", help="Emit JSON output")
    parser.add_argument("--log-level", help="Override WARRANT_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    init_parser = subparsers.add_parser("init", help="Initialize database schema")
    init_parser.add_argument("--schema", help="Path to an alternate schema file")

    rep_parser = subparsers.add_parser("reputation", help="Inspect and rebuild reputation scores")
    rep_sub = rep_parser.add_subparsers(dest="reputation_command", required=True)
    rep_sub.add_parser("show", help="Current score").add_argument("user_id")
    rep_sub.add_parser("replay", help="Rebuild score from the event log").add_argument("user_id")
    history_parser = rep_sub.add_parser("history", help="Recent events, newest first")
    history_parser.add_argument("user_id")
    history_parser.add_argument("--limit", "-n", type=int, default=20)

    rev_parser = subparsers.add_parser("revenue", help="Revenue allocation and payouts")
    rev_sub = rev_parser.add_subparsers(dest="revenue_command", required=True)
    rev_sub.add_parser("generate", help="Generate entries for a closed period").add_argument(
        "period", nargs="?", help="YYYY-MM (default: last month)"
    )
    rev_sub.add_parser("execute", help="Pay out CALCULATED entries").add_argument("period", help="YYYY-MM")
    rev_sub.add_parser("show", help="A journalist's entries and total").add_argument("user_id")

    feed_parser = subparsers.add_parser("feed", help="Print a feed page")
    feed_parser.add_argument("--page", type=int, default=1)
    feed_parser.add_argument("--limit", "-n", type=int, default=20)
    feed_parser.add_argument("--author", help="Only this author's articles")
    feed_parser.add_argument("--chronological", action="store_true", help="Newest first, unranked")

    subparsers.add_parser("serve", help="Run the HTTP feed server")

    return parser


COMMANDS = {
    "init": cmd_init,
    "reputation": cmd_reputation,
    "revenue": cmd_revenue,
    "feed": cmd_feed,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    from .core.logging import configure_logging

    parser = app()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except WarrantException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        logger.debug("Command %s failed", args.command, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
