import pytest

from nemdash.models.records import GeneratorMeta
from nemdash.services.aggregation import GeneratorSummary
from nemdash.services.filtering import filter_generators, filter_summaries, rank

GENERATORS = [
    GeneratorMeta("BW01", "Bayswater", "AGL Macquarie", "NSW1", "Black Coal", 660, 685),
    GeneratorMeta("LYA1", "Loy Yang A", "AGL Loy Yang", "VIC1", "Brown Coal", 560, 560),
    GeneratorMeta("HPRG1", "Hornsdale Power Reserve", "Neoen", "SA1", "Battery Storage", 150, 150),
    GeneratorMeta("HDWF1", "Hornsdale Wind Farm", "Neoen", "SA1", "Wind", 102, 102),
    GeneratorMeta("MACARTH1", "Macarthur Wind Farm", "AGL Energy", "VIC1", "Wind", 420, 420),
]


def ids(items):
    return [g.generator_id for g in items]


def summary(duid, **values):
    base = dict(total_revenue=0.0, total_energy_mwh=0.0, avg_power_mw=0.0, capacity_factor_pct=0.0,
                utilization_pct=0.0, revenue_per_mw=0.0, performance_score=0.0, sample_count=1)
    base.update(values)
    return GeneratorSummary(generator_id=duid, **base)


class TestFilterGenerators:
    def test_no_facets_keeps_everything(self):
        assert ids(filter_generators(GENERATORS)) == ids(GENERATORS)

    def test_region_set_matches_any(self):
        assert ids(filter_generators(GENERATORS, regions=["SA1", "NSW1"])) == ["BW01", "HPRG1", "HDWF1"]

    def test_facets_intersect(self):
        assert ids(filter_generators(GENERATORS, regions={"VIC1"}, fuel_types={"Wind"})) == ["MACARTH1"]

    @pytest.mark.parametrize("term,expected", [
        ("hornsdale", ["HPRG1", "HDWF1"]),
        ("agl", ["BW01", "LYA1", "MACARTH1"]),
        ("lya", ["LYA1"]),
        ("   ", ["BW01", "LYA1", "HPRG1", "HDWF1", "MACARTH1"]),
    ])
    def test_search_name_owner_and_duid(self, term, expected):
        assert ids(filter_generators(GENERATORS, search=term)) == expected

    def test_missing_fields_do_not_match_search(self):
        bare = [GeneratorMeta("X1")]
        assert filter_generators(bare, search="coal") == []
        assert ids(filter_generators(bare, search="x1")) == ["X1"]

    def test_idempotent(self):
        once = filter_generators(GENERATORS, regions=["SA1", "VIC1"], fuel_types=["Wind"], search="farm")
        twice = filter_generators(once, regions=["SA1", "VIC1"], fuel_types=["Wind"], search="farm")
        assert once == twice


def test_filter_summaries_uses_metadata():
    meta = {g.generator_id: g for g in GENERATORS}
    summaries = [summary("BW01"), summary("HDWF1"), summary("UNKNOWN")]
    assert ids(filter_summaries(summaries, meta, fuel_types=["Wind"])) == ["HDWF1"]
    assert ids(filter_summaries(summaries, meta)) == ["BW01", "HDWF1"]


class TestRank:
    def test_descending_with_duid_tiebreak(self):
        items = [summary("C", total_revenue=10), summary("A", total_revenue=10), summary("B", total_revenue=20)]
        assert ids(rank(items, "total_revenue")) == ["B", "A", "C"]

    def test_stable_under_reapplication(self):
        items = [summary(d, performance_score=s) for d, s in [("Z", 1), ("Y", 5), ("X", 5), ("W", 3)]]
        once = rank(items, "performance_score")
        assert rank(once, "performance_score") == once
        assert rank(list(reversed(items)), "performance_score") == once

    def test_limit(self):
        items = [summary(f"G{i:02d}", revenue_per_mw=i) for i in range(20)]
        top = rank(items, "revenue_per_mw", limit=15)
        assert len(top) == 15
        assert top[0].generator_id == "G19"

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            rank([summary("A")], "sample_count")
