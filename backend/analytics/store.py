"""Persistence for per-(profile, day) aggregates.

Counter columns, histogram entries and the visitor set are all written with
the dialect's ``INSERT ... ON CONFLICT`` so concurrent ingestion calls for
the same day cannot lose increments.
"""
from __future__ import annotations

from typing import List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from .models import DailyAggregate, DailyCounter, DailyVisitor, HistogramField

_UPSERT_DIALECTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class UnsupportedStoreError(RuntimeError):
    """Raised when the bound database has no native upsert we can use."""


class DailyAggregateStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def _insert(self, table):
        dialect = self._db.get_bind().dialect.name
        try:
            insert = _UPSERT_DIALECTS[dialect]
        except KeyError as exc:
            raise UnsupportedStoreError(f"No upsert support for dialect {dialect!r}") from exc
        return insert(table)

    def upsert_baseline(
        self,
        profile_id: str,
        day: int,
        create: Mapping[str, int],
        increment: Mapping[str, int],
    ) -> None:
        """Create the day's record from ``create`` or add ``increment`` to it."""

        table = DailyAggregate.__table__
        stmt = self._insert(table).values(profile_id=profile_id, day=day, **create)
        if increment:
            stmt = stmt.on_conflict_do_update(
                index_elements=["profile_id", "day"],
                set_={name: table.c[name] + amount for name, amount in increment.items()},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=["profile_id", "day"])
        self._db.execute(stmt)

    def get_record_id(self, profile_id: str, day: int) -> Optional[int]:
        return self._db.execute(
            select(DailyAggregate.id).where(
                DailyAggregate.profile_id == profile_id,
                DailyAggregate.day == day,
            )
        ).scalar_one_or_none()

    def add_visitor(self, record_id: int, fingerprint: str) -> bool:
        """Add ``fingerprint`` to the day's visitor set; True if it was not there yet."""

        stmt = (
            self._insert(DailyVisitor.__table__)
            .values(aggregate_id=record_id, fingerprint=fingerprint)
            .on_conflict_do_nothing(index_elements=["aggregate_id", "fingerprint"])
        )
        result = self._db.execute(stmt)
        return result.rowcount == 1

    def apply_histogram_delta(
        self,
        record_id: int,
        field: HistogramField,
        key: str,
        increment: int = 1,
    ) -> None:
        table = DailyCounter.__table__
        stmt = (
            self._insert(table)
            .values(aggregate_id=record_id, histogram=field.value, label=key, count=increment)
            .on_conflict_do_update(
                index_elements=["aggregate_id", "histogram", "label"],
                set_={"count": table.c.count + increment},
            )
        )
        self._db.execute(stmt)

    def query(self, profile_id: str, start_day: int, end_day: int) -> List[DailyAggregate]:
        """Return the profile's records with ``start_day <= day <= end_day``, oldest first."""

        stmt = (
            select(DailyAggregate)
            .where(
                DailyAggregate.profile_id == profile_id,
                DailyAggregate.day >= start_day,
                DailyAggregate.day <= end_day,
            )
            .order_by(DailyAggregate.day.asc())
            .execution_options(populate_existing=True)
        )
        return list(self._db.execute(stmt).scalars().all())

    def sum_views(self, profile_id: str, start_day: int, end_day: int) -> int:
        total = self._db.execute(
            select(func.coalesce(func.sum(DailyAggregate.views), 0)).where(
                DailyAggregate.profile_id == profile_id,
                DailyAggregate.day >= start_day,
                DailyAggregate.day <= end_day,
            )
        ).scalar_one()
        return int(total)
