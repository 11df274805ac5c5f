from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from nemdash.database import SessionLocal
from nemdash.models.generator import Generator
from nemdash.models.market import RevenueInterval

def check_db():
    db = SessionLocal()
    try:
        generators = db.query(Generator).order_by(Generator.region, Generator.duid).all()
        if generators:
            counts = dict(
                db.query(RevenueInterval.duid, func.count(RevenueInterval.id))
                .group_by(RevenueInterval.duid)
                .all()
            )
            print(f"Found {len(generators)} generators:")
            for gen in generators:
                print(f"- {gen.duid} {gen.station_name} ({gen.region}, {gen.fuel_source_primary}): "
                      f"{counts.get(gen.duid, 0)} intervals")
        else:
            print("No generators found in database!")
    except SQLAlchemyError as e:
        print(f"Error checking database: {e}")
    finally:
        db.close()

if __name__ == "__main__":
    check_db()
