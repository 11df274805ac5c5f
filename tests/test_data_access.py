from datetime import timedelta

import pytest

from conftest import add_generator, add_intervals, add_telemetry
from nemdash.database import Base, engine
from nemdash.models.market import RevenueInterval
from nemdash.services.data_access import (
    RowQuery,
    downsample,
    fetch_generator,
    fetch_generator_meta,
    fetch_interval_records,
    fetch_latest_readings,
    fetch_prices,
    fetch_scada,
    fetch_window_records,
)


class TestDownsample:
    def test_2000_rows_to_300_points(self):
        rows = list(range(2000))
        out = downsample(rows, 300)
        assert len(out) == 286
        assert out[0] == 0
        assert out[1] == 7

    def test_small_input_untouched(self):
        assert downsample([1, 2, 3], 300) == [1, 2, 3]

    def test_empty(self):
        assert downsample([], 300) == []

    def test_invalid_max_points(self):
        with pytest.raises(ValueError):
            downsample([1], 0)


def test_interval_records_ordered_and_capped(db, now):
    add_generator(db, "G1")
    add_intervals(db, "G1", now, 30)
    add_intervals(db, "G2", now, 5)
    result = fetch_interval_records(db, "G1", now - timedelta(hours=3), now, limit=20)
    assert result.ok
    assert len(result.rows) == 20
    stamps = [r.timestamp for r in result.rows]
    assert stamps == sorted(stamps)
    # the cap keeps the oldest rows of the window
    assert stamps[0] == now - timedelta(minutes=5 * 29)
    assert stamps[-1] == now - timedelta(minutes=5 * 10)
    assert {r.generator_id for r in result.rows} == {"G1"}


def test_window_records_region_filter(db, now):
    add_intervals(db, "G1", now, 3, region="NSW1")
    add_intervals(db, "G2", now, 3, region="VIC1")
    start = now - timedelta(hours=1)
    assert len(fetch_window_records(db, start, now).rows) == 6
    only_vic = fetch_window_records(db, start, now, regions=["VIC1"]).rows
    assert {r.generator_id for r in only_vic} == {"G2"}


def test_window_bounds_are_inclusive(db, now):
    add_intervals(db, "G1", now, 3)
    rows = fetch_window_records(db, now - timedelta(minutes=5), now).rows
    assert len(rows) == 2


def test_generator_meta(db):
    add_generator(db, "G1", region="SA1", fuel="Wind", max_mw=50)
    add_generator(db, "G2")
    assert [m.generator_id for m in fetch_generator_meta(db).rows] == ["G1", "G2"]
    assert [m.generator_id for m in fetch_generator_meta(db, ["G2"]).rows] == ["G2"]
    assert fetch_generator_meta(db, []).rows == []
    g1 = fetch_generator(db, "G1").rows[0]
    assert (g1.region, g1.fuel_type, g1.max_capacity_mw) == ("SA1", "Wind", 50)
    assert fetch_generator(db, "NOPE").rows == []


def test_latest_readings_one_per_unit(db, now):
    add_telemetry(db, "G1", now, 4, mw=10.0, with_prices=False)
    add_telemetry(db, "G2", now - timedelta(minutes=5), 2, mw=20.0, with_prices=False)
    result = fetch_latest_readings(db)
    assert [r.generator_id for r in result.rows] == ["G1", "G2"]
    assert result.rows[0].timestamp == now


def test_scada_and_prices(db, now):
    add_telemetry(db, "G1", now, 3, mw=40.0, rrp=90.0, region="QLD1")
    start = now - timedelta(hours=1)
    assert [p.power_mw for p in fetch_scada(db, "G1", start, now).rows] == [40.0] * 3
    assert [p.price_per_mwh for p in fetch_prices(db, "QLD1", start, now).rows] == [90.0] * 3
    assert fetch_prices(db, "NSW1", start, now).rows == []


def test_query_failure_is_reported_not_raised(db, now):
    Base.metadata.tables["nem_revenue_reporting"].drop(bind=engine)
    result = fetch_interval_records(db, "G1", now - timedelta(hours=1), now)
    assert not result.ok
    assert result.rows == []
    assert result.error


def test_row_query_rejects_unknown_column(db):
    with pytest.raises(ValueError):
        RowQuery(db, RevenueInterval).filter_eq("nope", 1)
