# dispatch_generator.py
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .constants import (
    FUEL_PROFILES,
    INTERVAL_MINUTES,
    MARKET_PRICE_FLOOR,
    PRICE_SPIKE_PROBABILITY,
    PRICE_SPIKE_RANGE,
    REGION_PRICES,
    SAMPLE_GENERATORS,
)
from .utils import calculate_solar_elevation, daily_demand_shape, floor_to_interval, get_solar_intensity_factor


class DispatchSimulator:
    """
    Synthetic NEM dispatch data: regional prices, unit SCADA output and the
    5-minute revenue that follows from them. Seeded for reproducibility.
    """
    def __init__(self, seed: Optional[int] = None, generators=None, gap_probability: float = 0.0):
        self.rng = random.Random(seed)
        self.generators = list(generators or SAMPLE_GENERATORS)
        self.gap_probability = gap_probability
        self._wind_state: Dict[str, float] = {}

    def regional_price(self, region: str, ts: datetime) -> float:
        # Evening peak lifts price, midday solar pushes it down
        profile = REGION_PRICES[region]
        solar = get_solar_intensity_factor(calculate_solar_elevation(profile['latitude'], ts))
        price = (profile['base_rrp']
                 + profile['peak_uplift'] * daily_demand_shape(ts)
                 - profile['solar_trough'] * solar
                 + self.rng.gauss(0, 8))
        if self.rng.random() < PRICE_SPIKE_PROBABILITY:
            price = self.rng.uniform(*PRICE_SPIKE_RANGE)
        return round(max(MARKET_PRICE_FLOOR, price), 2)

    def wind_factor(self, duid: str, base: float, noise: float) -> float:
        # Mean-reverting random walk per unit
        prev = self._wind_state.get(duid, base)
        nxt = prev + 0.1 * (base - prev) + self.rng.gauss(0, noise * 0.3)
        nxt = min(1.0, max(0.0, nxt))
        self._wind_state[duid] = nxt
        return nxt

    def unit_output(self, unit, ts: datetime, price: float) -> float:
        duid, _, _, region, fuel, _, max_mw = unit
        profile = FUEL_PROFILES[fuel]
        base, noise = profile['base_factor'], profile['noise']
        if fuel == 'Solar':
            elevation = calculate_solar_elevation(REGION_PRICES[region]['latitude'], ts)
            factor = base * get_solar_intensity_factor(elevation)
        elif fuel == 'Wind':
            factor = self.wind_factor(duid, base, noise)
        elif fuel in ('Natural Gas', 'Hydro'):
            # Peaking plant dispatches harder when prices are high
            factor = base * (1 + min(price, 300.0) / 150.0)
        elif fuel == 'Battery Storage':
            factor = base * 4 * max(0.0, daily_demand_shape(ts) - 0.5) if price > 100 else 0.0
        else:
            factor = base
        if factor > 0:
            factor *= self.rng.gauss(1, noise)
        return round(max(0.0, min(factor, 1.0)) * max_mw, 3)

    def generator_metadata(self) -> List[Dict]:
        return [{
            'duid': duid,
            'station_name': name,
            'participant': participant,
            'region': region,
            'fuel_source_primary': fuel,
            'registered_capacity_mw': registered,
            'max_capacity_mw': max_mw,
        } for duid, name, participant, region, fuel, registered, max_mw in self.generators]

    def generate(self, start: datetime, end: datetime) -> Dict[str, List[Dict]]:
        """
        Rows for every settlement interval in [start, end]: 'prices', 'scada'
        and 'revenue' (revenue = mw * rrp / 12). With gap_probability set, some
        unit intervals are dropped to mimic missing telemetry.
        """
        step = timedelta(minutes=INTERVAL_MINUTES)
        regions = sorted({g[3] for g in self.generators})
        prices, scada, revenue = [], [], []
        ts = floor_to_interval(start, INTERVAL_MINUTES)
        if ts < start:
            ts += step
        while ts <= end:
            rrp = {r: self.regional_price(r, ts) for r in regions}
            for region in regions:
                prices.append({'regionid': region, 'settlementdate': ts, 'rrp': rrp[region]})
            for unit in self.generators:
                duid, region = unit[0], unit[3]
                mw = self.unit_output(unit, ts, rrp[region])
                if self.gap_probability and self.rng.random() < self.gap_probability:
                    continue
                scada.append({'duid': duid, 'settlementdate': ts, 'scadavalue': mw})
                revenue.append({
                    'duid': duid,
                    'settlementdate': ts,
                    'regionid': region,
                    'scada_mw': mw,
                    'rrp': rrp[region],
                    'revenue_5min': round(mw * rrp[region] / 12, 2),
                })
            ts += step
        return {'prices': prices, 'scada': scada, 'revenue': revenue}
