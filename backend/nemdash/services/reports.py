"""Response builders for the dashboard views: generator list, unit chart and leaderboards."""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from nemdash.config import MAX_CHART_POINTS, PERFORMANCE_LEADERBOARD_SIZE, REVENUE_LEADERBOARD_SIZE
from nemdash.models.records import GeneratorMeta
from nemdash.services.aggregation import chart_totals, market_total, revenue_from_telemetry, share_pct, summarize
from nemdash.services.data_access import (
    downsample,
    fetch_generator,
    fetch_generator_meta,
    fetch_interval_records,
    fetch_latest_readings,
    fetch_prices,
    fetch_scada,
    fetch_window_records,
)
from nemdash.services.filtering import filter_generators, filter_summaries, rank
from nemdash.services.state import DashboardState, resolve_window, window_hours

logger = logging.getLogger(__name__)


def cache_key(kind: str, state: DashboardState, **extra) -> str:
    parts = [kind, state.date_range]
    if state.date_range == "custom":
        parts += [state.start.isoformat(), state.end.isoformat()]
    parts += [",".join(state.regions), ",".join(state.fuel_types), state.search.strip().lower()]
    parts += [f"{k}={v}" for k, v in sorted(extra.items())]
    return ":".join(parts)


def _meta_fields(meta: Optional[GeneratorMeta]) -> Dict:
    return {
        "station_name": meta.display_name if meta else None,
        "participant": meta.owner if meta else None,
        "region": meta.region if meta else None,
        "fuel_source": meta.fuel_type if meta else None,
    }


def generator_dict(meta: GeneratorMeta) -> Dict:
    """Full metadata for one unit, keyed the same way as list and leaderboard entries."""
    return {
        "duid": meta.generator_id,
        **_meta_fields(meta),
        "registered_capacity_mw": meta.registered_capacity_mw,
        "max_capacity_mw": meta.max_capacity_mw,
    }


def default_leaderboard_keys() -> Dict[str, str]:
    """Cache keys of the unfiltered 24h leaderboards, by board."""
    state = DashboardState()
    return {
        "revenue": cache_key("leaderboard:revenue", state),
        "performance": cache_key("leaderboard:performance", state, sort="performance_score",
                                 limit=PERFORMANCE_LEADERBOARD_SIZE),
    }


def build_generator_list(db: Session, state: DashboardState) -> Dict:
    """Units with recent telemetry and their latest MW, narrowed by the active filters."""
    latest = fetch_latest_readings(db)
    if not latest.ok:
        return {"data": [], "count": 0, "error": latest.error}
    meta_result = fetch_generator_meta(db, [r.generator_id for r in latest.rows])
    if not meta_result.ok:
        return {"data": [], "count": 0, "error": meta_result.error}
    meta = {m.generator_id: m for m in meta_result.rows}
    readings = {r.generator_id: r for r in latest.rows}
    candidates = [meta.get(gid) or GeneratorMeta(generator_id=gid) for gid in readings]
    out = []
    for g in filter_generators(candidates, state.regions, state.fuel_types, state.search):
        reading = readings[g.generator_id]
        out.append({
            "duid": g.generator_id,
            **_meta_fields(meta.get(g.generator_id)),
            "latest_mw": reading.power_mw,
            "settlementdate": reading.timestamp.isoformat(),
        })
    return {"data": out, "count": len(out), "error": None}


def _point_label(ts: datetime, date_range: str) -> str:
    return ts.strftime("%H:%M" if date_range == "24h" else "%b %d %H:%M")


def build_chart(db: Session, duid: str, state: DashboardState, now: Optional[datetime] = None) -> Dict:
    """Power, price and revenue series for one unit.

    Uses the precomputed revenue table; when that errors or has no rows for the
    window, revenue is rebuilt from SCADA MW and the unit's regional price.
    """
    start, end = resolve_window(state.date_range, state.start, state.end, now=now)
    meta_result = fetch_generator(db, duid)
    meta = meta_result.rows[0] if meta_result.rows else None

    source = "revenue"
    error = None
    primary = fetch_interval_records(db, duid, start, end)
    records = primary.rows
    if not records:
        logger.warning(f"No revenue rows for {duid} ({primary.error or 'empty'}); rebuilding from telemetry")
        source = "telemetry"
        records, error = _records_from_telemetry(db, duid, meta, start, end)
        if not records and error is None:
            error = primary.error

    points = [{
        "time": _point_label(r.timestamp, state.date_range),
        "full_time": r.timestamp.strftime("%b %d, %Y %H:%M:%S"),
        "mw": r.power_mw or 0,
        "rrp": r.price_per_mwh or 0,
        "revenue": r.revenue_for_interval or 0,
    } for r in downsample(records, MAX_CHART_POINTS)]

    return {
        "duid": duid,
        "generator": generator_dict(meta) if meta else None,
        "range": state.date_range,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "source": source,
        "points": points,
        "totals": chart_totals(records).to_dict(),
        "error": error or meta_result.error,
    }


def _records_from_telemetry(db: Session, duid: str, meta: Optional[GeneratorMeta], start, end):
    scada = fetch_scada(db, duid, start, end)
    if not scada.ok:
        return [], scada.error
    if not scada.rows or meta is None or not meta.region:
        return [], None
    prices = fetch_prices(db, meta.region, start, end)
    if not prices.ok:
        return [], prices.error
    return revenue_from_telemetry(scada.rows, prices.rows), None


def build_leaderboard(db: Session, state: DashboardState, sort_key: str, limit: int,
                      now: Optional[datetime] = None) -> Dict:
    start, end = resolve_window(state.date_range, state.start, state.end, now=now)
    out = {
        "range": state.date_range,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "sort": sort_key,
        "data": [],
        "total_market_revenue": 0.0,
        "error": None,
    }
    records = fetch_window_records(db, start, end, state.regions)
    if not records.ok:
        out["error"] = records.error
        return out
    meta_result = fetch_generator_meta(db, sorted({r.generator_id for r in records.rows}))
    if not meta_result.ok:
        out["error"] = meta_result.error
        return out
    meta = {m.generator_id: m for m in meta_result.rows}

    summaries = summarize(records.rows, meta, window_hours(start, end), start=start, end=end)
    filtered = filter_summaries(summaries.values(), meta, state.regions, state.fuel_types, state.search)
    total = market_total(filtered)
    entries: List[Dict] = []
    for position, s in enumerate(rank(filtered, sort_key, limit), start=1):
        entries.append({
            "rank": position,
            **s.to_dict(),
            **_meta_fields(meta.get(s.generator_id)),
            "share_pct": round(share_pct(s, total), 2),
        })
    out["data"] = entries
    out["total_market_revenue"] = round(total, 2)
    return out


def build_revenue_leaderboard(db: Session, state: DashboardState, now: Optional[datetime] = None) -> Dict:
    return build_leaderboard(db, state, "total_revenue", REVENUE_LEADERBOARD_SIZE, now=now)


def build_performance_leaderboard(db: Session, state: DashboardState, sort_key: str = "performance_score",
                                  limit: int = PERFORMANCE_LEADERBOARD_SIZE, now: Optional[datetime] = None) -> Dict:
    return build_leaderboard(db, state, sort_key, limit, now=now)
