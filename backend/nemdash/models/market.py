from sqlalchemy import Column, Float, String, DateTime, Integer, Index
from nemdash.database import Base
from nemdash.models.records import IntervalRecord, PricePoint, ScadaPoint


class RevenueInterval(Base):
    """Precomputed revenue per DUID per 5-minute settlement interval."""
    __tablename__ = "nem_revenue_reporting"
    __table_args__ = (Index("ix_revenue_duid_settlementdate", "duid", "settlementdate"),)

    id = Column(Integer, primary_key=True, index=True)
    duid = Column(String(32), nullable=False, index=True)
    settlementdate = Column(DateTime, nullable=False, index=True)
    regionid = Column(String(16), index=True)
    scada_mw = Column(Float)
    rrp = Column(Float)  # $/MWh
    revenue_5min = Column(Float)

    def to_record(self) -> IntervalRecord:
        return IntervalRecord(
            generator_id=self.duid,
            timestamp=self.settlementdate,
            power_mw=self.scada_mw,
            price_per_mwh=self.rrp,
            revenue_for_interval=self.revenue_5min,
            region=self.regionid,
        )


class ScadaReading(Base):
    """Raw unit telemetry (MW) per dispatch interval."""
    __tablename__ = "dispatch_unit_scada"
    __table_args__ = (Index("ix_scada_duid_settlementdate", "duid", "settlementdate"),)

    id = Column(Integer, primary_key=True, index=True)
    duid = Column(String(32), nullable=False, index=True)
    settlementdate = Column(DateTime, nullable=False, index=True)
    scadavalue = Column(Float)

    def to_point(self) -> ScadaPoint:
        return ScadaPoint(generator_id=self.duid, timestamp=self.settlementdate, power_mw=self.scadavalue)


class RegionPrice(Base):
    """Regional reference price per dispatch interval."""
    __tablename__ = "dispatch_prices"
    __table_args__ = (Index("ix_prices_region_settlementdate", "regionid", "settlementdate"),)

    id = Column(Integer, primary_key=True, index=True)
    regionid = Column(String(16), nullable=False, index=True)
    settlementdate = Column(DateTime, nullable=False, index=True)
    rrp = Column(Float)

    def to_point(self) -> PricePoint:
        return PricePoint(region=self.regionid, timestamp=self.settlementdate, price_per_mwh=self.rrp)
