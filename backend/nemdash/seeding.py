from datetime import datetime
from typing import Dict

from sqlalchemy.orm import Session

from interval_simulator import DispatchSimulator
from nemdash.models.generator import Generator
from nemdash.models.market import RegionPrice, RevenueInterval, ScadaReading


def store_generators(db: Session, simulator: DispatchSimulator) -> int:
    """Insert metadata for units not yet registered; returns how many were added."""
    existing = {duid for (duid,) in db.query(Generator.duid).all()}
    added = 0
    for row in simulator.generator_metadata():
        if row['duid'] in existing:
            continue
        db.add(Generator(**row))
        added += 1
    return added


def store_simulated_intervals(db: Session, simulator: DispatchSimulator, start: datetime, end: datetime) -> Dict[str, int]:
    data = simulator.generate(start, end)
    db.bulk_insert_mappings(RegionPrice, data['prices'])
    db.bulk_insert_mappings(ScadaReading, data['scada'])
    db.bulk_insert_mappings(RevenueInterval, data['revenue'])
    return {name: len(rows) for name, rows in data.items()}
