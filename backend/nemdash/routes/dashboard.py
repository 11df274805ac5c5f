from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from nemdash.config import (
    CACHE_TTL_CHART,
    CACHE_TTL_GENERATORS,
    CACHE_TTL_LEADERBOARD,
    PERFORMANCE_LEADERBOARD_SIZE,
)
from nemdash.database import get_db
from nemdash.services.cache import get_cache, set_cache
from nemdash.services.data_access import fetch_generator
from nemdash.services.filtering import SORT_KEYS
from nemdash.services.reports import (
    build_chart,
    build_generator_list,
    build_performance_leaderboard,
    build_revenue_leaderboard,
    cache_key,
    generator_dict,
)
from nemdash.services.state import DashboardState, DashboardStore

router = APIRouter()


def _split(values: Optional[List[str]]) -> List[str]:
    # ?regions=NSW1&regions=VIC1 and ?regions=NSW1,VIC1 are equivalent
    out = []
    for v in values or []:
        out.extend(p.strip() for p in v.split(",") if p.strip())
    return out


def dashboard_state(
    date_range: str = Query("24h", alias="range"),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    regions: Optional[List[str]] = Query(None),
    fuel_types: Optional[List[str]] = Query(None),
    search: Optional[str] = Query(None),
) -> DashboardState:
    store = DashboardStore()
    try:
        store.update(
            date_range=date_range,
            start=start,
            end=end,
            regions=_split(regions),
            fuel_types=_split(fuel_types),
            search=(search or "").strip(),
        )
        store.window()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return store.state


def _cached(key: str, ttl: int, build):
    data = get_cache(key)
    if data is not None:
        return data
    out = build()
    if not out.get("error"):
        set_cache(key, out, ex=ttl)
    return out


@router.get("/generators")
def list_generators(state: DashboardState = Depends(dashboard_state), db: Session = Depends(get_db)):
    """Units with recent telemetry, latest MW first seen per DUID."""
    key = cache_key("generators", state)
    return _cached(key, CACHE_TTL_GENERATORS, lambda: build_generator_list(db, state))


@router.get("/generators/{duid}")
def get_generator(duid: str, db: Session = Depends(get_db)):
    result = fetch_generator(db, duid)
    if not result.ok:
        return {"data": None, "error": result.error}
    if not result.rows:
        raise HTTPException(status_code=404, detail=f"Generator {duid} not found")
    return {"data": generator_dict(result.rows[0]), "error": None}


@router.get("/generators/{duid}/chart")
def get_generator_chart(duid: str, state: DashboardState = Depends(dashboard_state), db: Session = Depends(get_db)):
    """Downsampled MW / RRP / revenue series with totals over the full window."""
    key = cache_key(f"chart:{duid}", state)
    return _cached(key, CACHE_TTL_CHART, lambda: build_chart(db, duid, state))


@router.get("/leaderboard/revenue")
def revenue_leaderboard(state: DashboardState = Depends(dashboard_state), db: Session = Depends(get_db)):
    key = cache_key("leaderboard:revenue", state)
    return _cached(key, CACHE_TTL_LEADERBOARD, lambda: build_revenue_leaderboard(db, state))


@router.get("/leaderboard/performance")
def performance_leaderboard(
    sort: str = Query("performance_score", pattern=f"^({'|'.join(SORT_KEYS)})$"),
    limit: int = Query(PERFORMANCE_LEADERBOARD_SIZE, ge=1, le=100),
    state: DashboardState = Depends(dashboard_state),
    db: Session = Depends(get_db),
):
    key = cache_key("leaderboard:performance", state, sort=sort, limit=limit)
    return _cached(key, CACHE_TTL_LEADERBOARD, lambda: build_performance_leaderboard(db, state, sort, limit))
