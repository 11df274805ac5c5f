"""In-memory row types shared by the data access shim and the aggregation engine."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class IntervalRecord:
    """One 5-minute settlement interval for one generator."""
    generator_id: str
    timestamp: datetime
    power_mw: Optional[float]
    price_per_mwh: Optional[float]
    revenue_for_interval: Optional[float]
    region: Optional[str] = None


@dataclass(frozen=True)
class GeneratorMeta:
    generator_id: str
    display_name: Optional[str] = None
    owner: Optional[str] = None
    region: Optional[str] = None
    fuel_type: Optional[str] = None
    registered_capacity_mw: Optional[float] = None
    max_capacity_mw: Optional[float] = None


@dataclass(frozen=True)
class ScadaPoint:
    generator_id: str
    timestamp: datetime
    power_mw: Optional[float]


@dataclass(frozen=True)
class PricePoint:
    region: str
    timestamp: datetime
    price_per_mwh: Optional[float]
