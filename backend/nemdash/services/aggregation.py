from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from nemdash.config import INTERVALS_PER_HOUR
from nemdash.models.records import GeneratorMeta, IntervalRecord, PricePoint, ScadaPoint

# Composite score weights. REVENUE_SCALE brings $/MW into the same range as a percentage;
# rankings depend on these exact values.
CAPACITY_FACTOR_WEIGHT = 0.6
REVENUE_WEIGHT = 0.4
REVENUE_SCALE = 1000.0
CAPACITY_FACTOR_CAP = 100.0


@dataclass(frozen=True)
class GeneratorSummary:
    generator_id: str
    total_revenue: float
    total_energy_mwh: float
    avg_power_mw: float
    capacity_factor_pct: float
    utilization_pct: float
    revenue_per_mw: float
    performance_score: float
    sample_count: int

    def to_dict(self):
        return {
            "duid": self.generator_id,
            "total_revenue": round(self.total_revenue, 2),
            "total_mwh": round(self.total_energy_mwh, 3),
            "avg_mw": round(self.avg_power_mw, 3),
            "capacity_factor_pct": round(self.capacity_factor_pct, 3),
            "utilization_pct": round(self.utilization_pct, 3),
            "revenue_per_mw": round(self.revenue_per_mw, 3),
            "performance_score": round(self.performance_score, 4),
            "data_points": self.sample_count,
        }


@dataclass(frozen=True)
class ChartTotals:
    total_revenue: float
    avg_mw: float
    avg_rrp: float
    data_points: int

    def to_dict(self):
        return {
            "total_revenue": round(self.total_revenue, 2),
            "avg_mw": round(self.avg_mw, 3),
            "avg_rrp": round(self.avg_rrp, 2),
            "data_points": self.data_points,
        }


def _capacity(meta: Optional[GeneratorMeta]) -> float:
    if meta is None or meta.max_capacity_mw is None:
        return 0.0
    return float(meta.max_capacity_mw)


def performance_score(capacity_factor_pct: float, revenue_per_mw: float) -> float:
    """0.6 x capacity factor (capped at 100) + 0.4 x revenue per MW / 1000."""
    return (CAPACITY_FACTOR_WEIGHT * min(capacity_factor_pct, CAPACITY_FACTOR_CAP)
            + REVENUE_WEIGHT * (revenue_per_mw / REVENUE_SCALE))


def summarize(
    records: Sequence[IntervalRecord],
    meta: Mapping[str, GeneratorMeta],
    window_hours: float,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Dict[str, GeneratorSummary]:
    """Reduce interval rows into one summary per generator.

    Rows without metadata, or whose metadata has no positive max capacity, are
    dropped, as are rows outside ``[start, end]`` when bounds are given.
    Generators that earned nothing in the window are left out of the result.
    Average power is the mean of the observed samples, so gaps in telemetry do
    not pull it down.
    """
    if window_hours < 0:
        raise ValueError(f"window_hours must be non-negative, got {window_hours}")
    if not records:
        return {}

    groups = defaultdict(lambda: {"revenue": 0.0, "energy_mwh": 0.0, "power_sum": 0.0, "count": 0})
    for r in records:
        if _capacity(meta.get(r.generator_id)) <= 0:
            continue
        if start is not None and r.timestamp < start:
            continue
        if end is not None and r.timestamp > end:
            continue
        power = float(r.power_mw or 0.0)
        g = groups[r.generator_id]
        g["revenue"] += float(r.revenue_for_interval or 0.0)
        g["energy_mwh"] += power / INTERVALS_PER_HOUR
        g["power_sum"] += power
        g["count"] += 1

    out = {}
    for gid, g in groups.items():
        capacity = _capacity(meta[gid])
        if g["revenue"] <= 0:
            continue
        avg_power = g["power_sum"] / g["count"] if g["count"] else 0.0
        max_possible_mwh = capacity * window_hours
        capacity_factor = 100.0 * g["energy_mwh"] / max_possible_mwh if max_possible_mwh > 0 else 0.0
        revenue_per_mw = g["revenue"] / capacity
        out[gid] = GeneratorSummary(
            generator_id=gid,
            total_revenue=g["revenue"],
            total_energy_mwh=g["energy_mwh"],
            avg_power_mw=avg_power,
            capacity_factor_pct=capacity_factor,
            utilization_pct=100.0 * avg_power / capacity,
            revenue_per_mw=revenue_per_mw,
            performance_score=performance_score(capacity_factor, revenue_per_mw),
            sample_count=g["count"],
        )
    return out


def market_total(summaries: Sequence[GeneratorSummary]) -> float:
    return sum(s.total_revenue for s in summaries)


def share_pct(summary: GeneratorSummary, total: float) -> float:
    return 100.0 * summary.total_revenue / total if total > 0 else 0.0


def chart_totals(records: Sequence[IntervalRecord]) -> ChartTotals:
    """Totals over every fetched row, before any downsampling."""
    n = len(records)
    if n == 0:
        return ChartTotals(total_revenue=0.0, avg_mw=0.0, avg_rrp=0.0, data_points=0)
    return ChartTotals(
        total_revenue=sum(float(r.revenue_for_interval or 0.0) for r in records),
        avg_mw=sum(float(r.power_mw or 0.0) for r in records) / n,
        avg_rrp=sum(float(r.price_per_mwh or 0.0) for r in records) / n,
        data_points=n,
    )


def revenue_from_telemetry(scada: Sequence[ScadaPoint], prices: Sequence[PricePoint]) -> List[IntervalRecord]:
    """Rebuild interval revenue from raw MW and regional price: mw * rrp / 12.

    Prices are matched on exact settlement timestamp; an interval without a
    price is valued at 0.
    """
    price_map = {p.timestamp: p.price_per_mwh for p in prices}
    region = prices[0].region if prices else None
    out = []
    for point in scada:
        mw = float(point.power_mw or 0.0)
        rrp = float(price_map.get(point.timestamp) or 0.0)
        out.append(IntervalRecord(
            generator_id=point.generator_id,
            timestamp=point.timestamp,
            power_mw=mw,
            price_per_mwh=rrp,
            revenue_for_interval=mw * rrp / INTERVALS_PER_HOUR,
            region=region,
        ))
    return out
