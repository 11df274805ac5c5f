"""
Shared pytest fixtures.

The database is an in-memory SQLite engine shared by the app and the tests;
Redis is replaced by a small dict-backed double so no live services are needed.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
import redis  # noqa: E402

from nemdash.database import Base, SessionLocal, engine  # noqa: E402
from nemdash.models.generator import Generator  # noqa: E402
from nemdash.models.market import RegionPrice, RevenueInterval, ScadaReading  # noqa: E402
from nemdash.services.state import utc_now  # noqa: E402


class FakePipeline:
    """WATCH/MULTI/EXEC over FakeRedis: execute fails if a watched key changed."""

    def __init__(self, fake):
        self.fake = fake
        self.watched = {}
        self.commands = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def watch(self, *keys):
        for key in keys:
            self.watched[key] = self.fake.store.get(key)

    def get(self, key):
        return self.fake.get(key)

    def multi(self):
        pass

    def set(self, key, value, ex=None):
        self.commands.append((key, value))

    def execute(self):
        for key, seen in self.watched.items():
            if self.fake.store.get(key) != seen:
                raise redis.WatchError(f"{key} changed")
        for key, value in self.commands:
            self.fake.set(key, value)
        return [True] * len(self.commands)


class FakeRedis:
    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)

    def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

    def ping(self):
        return True

    def pipeline(self):
        return FakePipeline(self)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr("nemdash.services.cache.redis_client", fake)
    return fake


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db, fake_redis, monkeypatch):
    from fastapi.testclient import TestClient
    from nemdash.main import app

    monkeypatch.setattr("nemdash.main.redis_client", fake_redis)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def now():
    return utc_now().replace(second=0, microsecond=0)


def add_generator(db, duid, region="NSW1", fuel="Black Coal", max_mw=100.0, name=None, participant=None):
    gen = Generator(
        duid=duid,
        station_name=name or f"{duid} Station",
        participant=participant or "Test Energy",
        region=region,
        fuel_source_primary=fuel,
        registered_capacity_mw=max_mw,
        max_capacity_mw=max_mw,
    )
    db.add(gen)
    db.commit()
    return gen


def add_intervals(db, duid, end, count, mw=100.0, rrp=60.0, region="NSW1", revenue=None):
    """``count`` revenue rows at 5-minute spacing, the last one at ``end``."""
    for i in range(count):
        ts = end - timedelta(minutes=5 * (count - 1 - i))
        db.add(RevenueInterval(
            duid=duid,
            settlementdate=ts,
            regionid=region,
            scada_mw=mw,
            rrp=rrp,
            revenue_5min=revenue if revenue is not None else mw * rrp / 12,
        ))
    db.commit()


def add_telemetry(db, duid, end, count, mw=50.0, rrp=120.0, region="NSW1", with_prices=True):
    for i in range(count):
        ts = end - timedelta(minutes=5 * (count - 1 - i))
        db.add(ScadaReading(duid=duid, settlementdate=ts, scadavalue=mw))
        if with_prices:
            db.add(RegionPrice(regionid=region, settlementdate=ts, rrp=rrp))
    db.commit()
