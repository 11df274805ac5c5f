import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from celery import Celery
from sqlalchemy import func
from sqlalchemy.orm import Session

from interval_simulator import DispatchSimulator
from nemdash.config import (
    AUTO_REFRESH_ENABLED,
    CACHE_TTL_LEADERBOARD,
    CELERY_BROKER_URL,
    REFRESH_INTERVAL_SECONDS,
    SIMULATOR_ENABLED,
)
from nemdash.database import SessionLocal
from nemdash.models.market import RevenueInterval
from nemdash.seeding import store_generators, store_simulated_intervals
from nemdash.services.cache import invalidate_cache, next_generation, set_cache_if_current
from nemdash.services.reports import build_performance_leaderboard, build_revenue_leaderboard, default_leaderboard_keys
from nemdash.services.state import DashboardState, utc_now

logger = logging.getLogger(__name__)

celery_app = Celery('nemdash', broker=CELERY_BROKER_URL)
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
)

celery_app.conf.beat_schedule = {}
if AUTO_REFRESH_ENABLED:
    celery_app.conf.beat_schedule['refresh-leaderboards'] = {
        'task': 'nemdash.tasks.refresh_leaderboards',
        'schedule': float(REFRESH_INTERVAL_SECONDS),
    }
if SIMULATOR_ENABLED:
    celery_app.conf.beat_schedule['simulate-dispatch-intervals'] = {
        'task': 'nemdash.tasks.simulate_dispatch_intervals',
        'schedule': 300.0,  # one settlement interval
    }


def refresh_leaderboard_cache(db: Session, now: Optional[datetime] = None) -> Dict[str, bool]:
    """Recompute the default (24h, unfiltered) leaderboards and cache them.

    Each refresh takes a generation number first; a refresh that finishes after
    a newer one has started leaves the cache alone.
    """
    state = DashboardState()
    keys = default_leaderboard_keys()
    jobs = {
        keys["revenue"]: lambda: build_revenue_leaderboard(db, state, now=now),
        keys["performance"]: lambda: build_performance_leaderboard(db, state, now=now),
    }
    written = {}
    for key, build in jobs.items():
        generation = next_generation(key)
        out = build()
        if out.get("error"):
            logger.warning(f"Skipping cache refresh of {key}: {out['error']}")
            written[key] = False
            continue
        written[key] = set_cache_if_current(key, generation, out, ex=CACHE_TTL_LEADERBOARD)
    return written


@celery_app.task(bind=True, max_retries=3)
def refresh_leaderboards(self):
    db = SessionLocal()
    try:
        written = refresh_leaderboard_cache(db)
        logger.info(f"Leaderboard refresh: {written}")
        return written
    except Exception as e:
        logger.error(f"Leaderboard refresh failed: {e}")
        raise self.retry(exc=e, countdown=10)
    finally:
        db.close()


def simulate_since_last_interval(db: Session, simulator: DispatchSimulator, now: Optional[datetime] = None) -> Dict[str, int]:
    """Fill simulated intervals from the last stored settlement date up to now."""
    now = now or utc_now()
    last = db.query(func.max(RevenueInterval.settlementdate)).scalar()
    start = last + timedelta(minutes=5) if last else now - timedelta(hours=1)
    store_generators(db, simulator)
    counts = store_simulated_intervals(db, simulator, start, now)
    db.commit()
    if counts["revenue"]:
        for key in default_leaderboard_keys().values():
            invalidate_cache(key)
    return counts


@celery_app.task(bind=True, max_retries=3)
def simulate_dispatch_intervals(self):
    db = SessionLocal()
    try:
        counts = simulate_since_last_interval(db, DispatchSimulator())
        logger.info(f"Stored simulated intervals: {counts}")
        return counts
    except Exception as e:
        db.rollback()
        logger.error(f"Simulation task error: {e}")
        raise self.retry(exc=e, countdown=60)
    finally:
        db.close()
