from sqlalchemy import Column, Integer, String, Float
from nemdash.database import Base
from nemdash.models.records import GeneratorMeta


class Generator(Base):
    __tablename__ = "nem_generators"

    id = Column(Integer, primary_key=True, index=True)
    duid = Column(String(32), unique=True, index=True, nullable=False)
    station_name = Column(String(255), index=True)
    participant = Column(String(255))
    region = Column(String(16), index=True)  # e.g., "NSW1"
    fuel_source_primary = Column(String(64), index=True)
    registered_capacity_mw = Column(Float)
    max_capacity_mw = Column(Float)

    def to_meta(self) -> GeneratorMeta:
        return GeneratorMeta(
            generator_id=self.duid,
            display_name=self.station_name,
            owner=self.participant,
            region=self.region,
            fuel_type=self.fuel_source_primary,
            registered_capacity_mw=self.registered_capacity_mw,
            max_capacity_mw=self.max_capacity_mw,
        )
