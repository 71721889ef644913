# src/devlink/scripts/recount.py
"""
Recompute denormalized counters from their fact tables.

Counters and facts are written in one transaction, so drift only appears after
manual data fixes or restores. Run this script after such an operation:

    python -m devlink.scripts.recount [--dry-run]
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import InstrumentedAttribute, Session

from devlink.db.session import SessionLocal
from devlink.models import Account, BlogPost, Endorsement, Follow, Like, ProfileView, Project

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterSpec:
    """A counter column and the fact column whose group counts it mirrors."""

    name: str
    counter: InstrumentedAttribute[int]
    key: InstrumentedAttribute[object]
    fact_key: InstrumentedAttribute[object]


COUNTERS: tuple[CounterSpec, ...] = (
    CounterSpec("followers_count", Account.followers_count, Account.id, Follow.following_id),
    CounterSpec("endorsements_count", Account.endorsements_count, Account.id, Endorsement.user_id),
    CounterSpec("profile_views", Account.profile_views, Account.id, ProfileView.user_id),
    CounterSpec("project.likes_count", Project.likes_count, Project.id, Like.project_id),
    CounterSpec("blog_post.likes_count", BlogPost.likes_count, BlogPost.id, Like.post_id),
)


def recount(db: Session, spec: CounterSpec, *, dry_run: bool = False) -> int:
    """Reset ``spec``'s counter to the fact count for every drifted row.

    Returns:
        Number of rows whose stored value differed.
    """
    actual = dict(
        db.execute(
            select(spec.fact_key, func.count())
            .where(spec.fact_key.is_not(None))
            .group_by(spec.fact_key)
        ).all()
    )
    stored = db.execute(select(spec.key, spec.counter)).all()

    drifted = 0
    for key, value in stored:
        expected = int(actual.get(key, 0))
        if value == expected:
            continue
        drifted += 1
        logger.info("%s drift on %s: stored=%s actual=%s", spec.name, key, value, expected)
        if not dry_run:
            db.execute(
                update(spec.key.class_)
                .where(spec.key == key)
                .values({spec.counter.key: expected})
                .execution_options(synchronize_session=False)
            )
    return drifted


def recount_all(db: Session, *, dry_run: bool = False) -> dict[str, int]:
    """Reconcile every counter in one transaction."""
    report = {spec.name: recount(db, spec, dry_run=dry_run) for spec in COUNTERS}
    if dry_run:
        db.rollback()
    else:
        db.commit()
    return report


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Recompute denormalized DevLink counters.")
    parser.add_argument("--dry-run", action="store_true", help="report drift without fixing it")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    db = SessionLocal()
    try:
        report = recount_all(db, dry_run=args.dry_run)
    finally:
        db.close()
    for name, drifted in report.items():
        print(f"{name}: {drifted} row(s) {'drifted' if args.dry_run else 'fixed'}")


if __name__ == "__main__":
    main()
