from typing import Iterable, List, Mapping, Optional, Sequence

from nemdash.models.records import GeneratorMeta
from nemdash.services.aggregation import GeneratorSummary

SORT_KEYS = ("total_revenue", "capacity_factor_pct", "revenue_per_mw", "performance_score")


def _matches(meta: GeneratorMeta, regions: set, fuel_types: set, search: str) -> bool:
    if regions and meta.region not in regions:
        return False
    if fuel_types and meta.fuel_type not in fuel_types:
        return False
    if search:
        haystack = (meta.display_name, meta.owner, meta.generator_id)
        if not any(search in (v or "").lower() for v in haystack):
            return False
    return True


def filter_generators(
    generators: Iterable[GeneratorMeta],
    regions: Iterable[str] = (),
    fuel_types: Iterable[str] = (),
    search: Optional[str] = None,
) -> List[GeneratorMeta]:
    """Keep generators matching every non-empty facet.

    An empty region or fuel set places no restriction on that facet; otherwise
    the generator must match one of the values. Search is a case-insensitive
    substring match on name, owner and DUID.
    """
    regions = set(regions or ())
    fuel_types = set(fuel_types or ())
    search = (search or "").strip().lower()
    return [g for g in generators if _matches(g, regions, fuel_types, search)]


def filter_summaries(
    summaries: Iterable[GeneratorSummary],
    meta: Mapping[str, GeneratorMeta],
    regions: Iterable[str] = (),
    fuel_types: Iterable[str] = (),
    search: Optional[str] = None,
) -> List[GeneratorSummary]:
    summaries = list(summaries)
    allowed = {g.generator_id for g in filter_generators(
        [meta[s.generator_id] for s in summaries if s.generator_id in meta], regions, fuel_types, search
    )}
    return [s for s in summaries if s.generator_id in allowed]


def rank(summaries: Sequence[GeneratorSummary], sort_key: str = "performance_score",
         limit: Optional[int] = None) -> List[GeneratorSummary]:
    """Descending by sort_key, ties by DUID ascending, truncated to limit."""
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {sort_key!r}; expected one of {', '.join(SORT_KEYS)}")
    ordered = sorted(summaries, key=lambda s: (-getattr(s, sort_key), s.generator_id))
    return ordered if limit is None else ordered[:limit]
