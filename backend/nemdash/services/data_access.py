"""Row queries against the market tables.

Every fetch returns a ``FetchResult``; backend failures are logged and
reported through ``FetchResult.error`` instead of being raised, so callers
always have an empty-or-rows result to render.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, load_only

from nemdash.config import LATEST_READINGS_LIMIT, MAX_CHART_POINTS, ROW_LIMIT
from nemdash.models.generator import Generator
from nemdash.models.market import RegionPrice, RevenueInterval, ScadaReading

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    rows: List[Any] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def map(self, fn) -> "FetchResult":
        return FetchResult(rows=[fn(r) for r in self.rows], error=self.error)


class RowQuery:
    """select -> filter -> order -> limit over one table."""

    def __init__(self, db: Session, model):
        self.db = db
        self.model = model
        self._query = db.query(model)

    def _column(self, name: str):
        column = getattr(self.model, name, None)
        if column is None:
            raise ValueError(f"{self.model.__tablename__} has no column {name!r}")
        return column

    def select(self, *columns: str) -> "RowQuery":
        if columns:
            self._query = self._query.options(load_only(*[self._column(c) for c in columns]))
        return self

    def filter_eq(self, column: str, value) -> "RowQuery":
        self._query = self._query.filter(self._column(column) == value)
        return self

    def filter_range(self, column: str, start=None, end=None) -> "RowQuery":
        col = self._column(column)
        if start is not None:
            self._query = self._query.filter(col >= start)
        if end is not None:
            self._query = self._query.filter(col <= end)
        return self

    def filter_in(self, column: str, values: Iterable) -> "RowQuery":
        values = list(values or [])
        if values:
            self._query = self._query.filter(self._column(column).in_(values))
        return self

    def order(self, column: str, ascending: bool = True) -> "RowQuery":
        col = self._column(column)
        self._query = self._query.order_by(col.asc() if ascending else col.desc())
        return self

    def limit(self, n: Optional[int]) -> "RowQuery":
        if n is not None:
            self._query = self._query.limit(n)
        return self

    def fetch(self) -> FetchResult:
        try:
            return FetchResult(rows=self._query.all())
        except SQLAlchemyError as e:
            logger.error(f"Query on {self.model.__tablename__} failed: {e}")
            self.db.rollback()
            return FetchResult(error=str(e))


def fetch_interval_records(db: Session, generator_id: str, start: datetime, end: datetime,
                           limit: int = ROW_LIMIT) -> FetchResult:
    """Revenue rows for one unit, oldest first."""
    return (
        RowQuery(db, RevenueInterval)
        .select("duid", "settlementdate", "scada_mw", "rrp", "revenue_5min", "regionid")
        .filter_eq("duid", generator_id)
        .filter_range("settlementdate", start, end)
        .order("settlementdate", ascending=True)
        .limit(limit)
        .fetch()
        .map(RevenueInterval.to_record)
    )


def fetch_window_records(db: Session, start: datetime, end: datetime,
                         regions: Sequence[str] = ()) -> FetchResult:
    """Revenue rows for every unit inside the window, optionally limited to regions."""
    return (
        RowQuery(db, RevenueInterval)
        .select("duid", "settlementdate", "scada_mw", "rrp", "revenue_5min", "regionid")
        .filter_range("settlementdate", start, end)
        .filter_in("regionid", regions)
        .order("settlementdate", ascending=True)
        .fetch()
        .map(RevenueInterval.to_record)
    )


def fetch_generator_meta(db: Session, generator_ids: Optional[Sequence[str]] = None) -> FetchResult:
    query = RowQuery(db, Generator)
    if generator_ids is not None:
        if not generator_ids:
            return FetchResult()
        query = query.filter_in("duid", generator_ids)
    return query.order("duid").fetch().map(Generator.to_meta)


def fetch_generator(db: Session, generator_id: str) -> FetchResult:
    return RowQuery(db, Generator).filter_eq("duid", generator_id).limit(1).fetch().map(Generator.to_meta)


def fetch_latest_readings(db: Session, limit: int = LATEST_READINGS_LIMIT) -> FetchResult:
    """Most recent telemetry, one row per unit (the newest seen)."""
    result = (
        RowQuery(db, ScadaReading)
        .select("duid", "settlementdate", "scadavalue")
        .order("settlementdate", ascending=False)
        .limit(limit)
        .fetch()
    )
    if not result.ok:
        return result
    seen = set()
    unique = []
    for row in result.rows:
        if row.duid in seen:
            continue
        seen.add(row.duid)
        unique.append(row.to_point())
    return FetchResult(rows=unique)


def fetch_scada(db: Session, generator_id: str, start: datetime, end: datetime,
                limit: int = ROW_LIMIT) -> FetchResult:
    return (
        RowQuery(db, ScadaReading)
        .select("duid", "settlementdate", "scadavalue")
        .filter_eq("duid", generator_id)
        .filter_range("settlementdate", start, end)
        .order("settlementdate", ascending=True)
        .limit(limit)
        .fetch()
        .map(ScadaReading.to_point)
    )


def fetch_prices(db: Session, region: str, start: datetime, end: datetime) -> FetchResult:
    return (
        RowQuery(db, RegionPrice)
        .select("regionid", "settlementdate", "rrp")
        .filter_eq("regionid", region)
        .filter_range("settlementdate", start, end)
        .order("settlementdate", ascending=True)
        .fetch()
        .map(RegionPrice.to_point)
    )


def downsample(rows: Sequence, max_points: int = MAX_CHART_POINTS) -> list:
    """Keep every k-th row, k = ceil(n / max_points); the first row is always kept."""
    if max_points <= 0:
        raise ValueError("max_points must be positive")
    n = len(rows)
    if n == 0:
        return []
    stride = math.ceil(n / max_points)
    return [row for i, row in enumerate(rows) if i % stride == 0]
