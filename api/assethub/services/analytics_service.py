"""Daily asset analytics counters."""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from assethub.models.analytics import AssetAnalytics

logger = logging.getLogger(__name__)

COUNTERS = ("views", "downloads")

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def record_asset_event(db: Session, asset_id: int, counter: str, day: Optional[date] = None) -> None:
    """Increment a daily counter with a single atomic upsert.

    ``INSERT ... ON CONFLICT (asset_id, date) DO UPDATE SET counter = counter + 1``
    so concurrent callers never lose an increment. Does not commit.
    """
    if counter not in COUNTERS:
        raise ValueError(f"Unknown analytics counter: {counter}")

    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Atomic analytics upsert not supported on {dialect}")

    day = day or datetime.utcnow().date()
    column = getattr(AssetAnalytics.__table__.c, counter)
    values = {"asset_id": asset_id, "date": day, "views": 0, "downloads": 0}
    values[counter] = 1

    stmt = insert(AssetAnalytics.__table__).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["asset_id", "date"],
        set_={counter: column + 1},
    )
    db.execute(stmt)


def get_daily_counts(db: Session, asset_id: int, day: Optional[date] = None) -> Tuple[int, int]:
    day = day or datetime.utcnow().date()
    row = (
        db.query(AssetAnalytics)
        .filter(AssetAnalytics.asset_id == asset_id, AssetAnalytics.date == day)
        .first()
    )
    if not row:
        return 0, 0
    return row.views, row.downloads


def get_totals(db: Session, asset_id: int) -> Tuple[int, int]:
    """All-time (views, downloads) for an asset."""
    views, downloads = (
        db.query(
            func.coalesce(func.sum(AssetAnalytics.views), 0),
            func.coalesce(func.sum(AssetAnalytics.downloads), 0),
        )
        .filter(AssetAnalytics.asset_id == asset_id)
        .one()
    )
    return int(views), int(downloads)


def get_asset_analytics(db: Session, asset_id: int, days: int = 30) -> List[AssetAnalytics]:
    """Daily rows for the trailing window, oldest first."""
    since = datetime.utcnow().date() - timedelta(days=days - 1)
    return (
        db.query(AssetAnalytics)
        .filter(AssetAnalytics.asset_id == asset_id, AssetAnalytics.date >= since)
        .order_by(AssetAnalytics.date.asc())
        .all()
    )
