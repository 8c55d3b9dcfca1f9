# cosynq/commands/migrate_space_capacity.py
"""
Normalize capacity settings on existing spaces.

- spaces whose pooling flag was never set become exclusive
  (capacity 1, no pooled units)
- virtual products (Virtual Address / Virtual Office) become unlimited

Then prints how spaces are distributed across capacity values.

Usage:
    python -m cosynq.commands.migrate_space_capacity --dry-run
    python -m cosynq.commands.migrate_space_capacity
"""

import argparse
from dataclasses import dataclass, field
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..database import SessionLocal
from ..repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


@dataclass
class CapacityMigrationReport:
    dry_run: bool
    defaulted_space_ids: List[str] = field(default_factory=list)
    unlimited_space_ids: List[str] = field(default_factory=list)
    capacity_distribution: Dict[str, int] = field(default_factory=dict)
    pooled_distribution: Dict[str, int] = field(default_factory=dict)

    @property
    def updated(self) -> int:
        return len(self.defaulted_space_ids) + len(self.unlimited_space_ids)


def migrate_space_capacity(db: Session, dry_run: bool = False) -> CapacityMigrationReport:
    """
    Apply the capacity defaults.

    Args:
        db: Database session
        dry_run: If True, roll back instead of committing

    Returns:
        What changed (or would change) and the resulting distribution
    """
    repository = RepositoryFactory.create_space_repository(db)
    report = CapacityMigrationReport(dry_run=dry_run)

    for space in repository.find_unconfigured_spaces():
        space.capacity = 1
        space.has_pooled_units = False
        report.defaulted_space_ids.append(space.id)
    logger.info(f"Defaulted {len(report.defaulted_space_ids)} unconfigured spaces to capacity 1")
    repository.flush()

    for space in repository.find_limited_virtual_spaces():
        space.capacity = None
        report.unlimited_space_ids.append(space.id)
    logger.info(f"Set {len(report.unlimited_space_ids)} virtual spaces to unlimited capacity")

    repository.flush()
    report.capacity_distribution = repository.capacity_distribution()
    report.pooled_distribution = repository.pooled_distribution()

    if dry_run:
        db.rollback()
        logger.info(f"DRY RUN: would update {report.updated} spaces")
    else:
        db.commit()
        logger.info(f"Committed {report.updated} space updates")

    return report


def _print_report(report: CapacityMigrationReport) -> None:
    print("\nCapacity distribution:")
    for capacity, count in report.capacity_distribution.items():
        print(f"  {capacity}: {count} spaces")
    print("\nPooled units:")
    for key, count in report.pooled_distribution.items():
        print(f"  {key}: {count} spaces")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Normalize space capacity settings")
    parser.add_argument(
        "--dry-run", action="store_true", help="Report changes without committing them"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    db = SessionLocal()
    try:
        report = migrate_space_capacity(db, dry_run=args.dry_run)
    except Exception:
        logger.exception("Space capacity migration failed")
        db.rollback()
        return 1
    finally:
        db.close()

    _print_report(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
