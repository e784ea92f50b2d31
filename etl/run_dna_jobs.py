# etl/run_dna_jobs.py
"""
Batch recomputation of the DNA aggregates.

Sub-commands:
    party-stats   group_stats for every party (or --party-id)
    pivot         pivot score + survey alerts for every representative (or --actor-id)
    flips         decision-flip alerts for items (or --item-id)
    forecast      item_forecasts for items (or --item-id)

One failing target is logged and counted; the run continues. A store
failure while listing targets aborts the run.
"""

from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from services import dna_repository as repo
from services import dna_service
from services.dna_repository import StoreFailure

logger = logging.getLogger("run_dna_jobs")


def _run_each(name: str, targets: Iterable[str], fn: Callable[[str], object]) -> int:
    processed = 0
    failed = 0
    for target in targets:
        try:
            fn(target)
            processed += 1
        except (ValueError, StoreFailure) as e:
            failed += 1
            logger.error("[%s] %s failed: %s", name, target, e)
    logger.info("[%s] Done. processed=%d, failed=%d", name, processed, failed)
    return failed


# ---------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------
def run_party_stats(party_ids: List[str], *, since: Optional[datetime], until: Optional[datetime]) -> int:
    window = dna_service.window_label(since, until)
    targets = party_ids or repo.list_party_ids()
    logger.info("[party-stats] parties=%d window=%s", len(targets), window)
    return _run_each(
        "party-stats",
        targets,
        lambda pid: dna_service.compute_party_stats(pid, since=since, until=until),
    )


def run_pivot(actor_ids: List[str]) -> int:
    targets = actor_ids or [a.actor_id for a in repo.list_actors(kinds=dna_service.PARLIAMENT_KINDS)]
    logger.info("[pivot] actors=%d", len(targets))
    return _run_each("pivot", targets, lambda aid: dna_service.compute_actor_pivot(aid))


def run_flips(item_ids: List[str], *, limit: int, offset: int) -> int:
    targets = item_ids or repo.list_item_ids(limit=limit, offset=offset)
    logger.info("[flips] items=%d", len(targets))
    return _run_each("flips", targets, lambda iid: dna_service.detect_item_flips(iid))


def run_forecast(item_ids: List[str], *, limit: int, offset: int) -> int:
    targets = item_ids or repo.list_item_ids(limit=limit, offset=offset)
    logger.info("[forecast] items=%d", len(targets))
    return _run_each("forecast", targets, lambda iid: dna_service.forecast_for_item(iid))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Recompute political DNA aggregates.")
    sub = p.add_subparsers(dest="command", required=True)

    ps = sub.add_parser("party-stats", help="Recompute group_stats.")
    ps.add_argument("--party-id", action="append", default=[], help="Limit to one party (repeatable).")
    ps.add_argument("--since", default=None, help="Window start (ISO date).")
    ps.add_argument("--until", default=None, help="Window end, exclusive (ISO date).")

    pv = sub.add_parser("pivot", help="Recompute pivot scores and survey alerts.")
    pv.add_argument("--actor-id", action="append", default=[], help="Limit to one actor (repeatable).")

    for name, help_text in (("flips", "Recompute decision-flip alerts."), ("forecast", "Recompute item forecasts.")):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("--item-id", action="append", default=[], help="Limit to one item (repeatable).")
        sp.add_argument("--limit", type=int, default=500, help="Pagination limit when scanning items.")
        sp.add_argument("--offset", type=int, default=0, help="Pagination offset when scanning items.")

    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "party-stats":
        failed = run_party_stats(
            args.party_id,
            since=dna_service.parse_window_date(args.since),
            until=dna_service.parse_window_date(args.until),
        )
    elif args.command == "pivot":
        failed = run_pivot(args.actor_id)
    elif args.command == "flips":
        failed = run_flips(args.item_id, limit=args.limit, offset=args.offset)
    else:
        failed = run_forecast(args.item_id, limit=args.limit, offset=args.offset)

    return 1 if failed else 0


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    raise SystemExit(main())
