from datetime import timedelta

from interval_simulator import DispatchSimulator
from nemdash.database import SessionLocal, Base, engine

# Import all models to ensure they are registered with SQLAlchemy
from nemdash.models.generator import Generator
from nemdash.models import market  # noqa: F401
from nemdash.seeding import store_generators, store_simulated_intervals
from nemdash.services.state import utc_now

SEED_DAYS = 7


def init_db(days: int = SEED_DAYS, seed: int = 42):
    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        simulator = DispatchSimulator(seed=seed, gap_probability=0.002)
        existing = db.query(Generator).first()
        if existing is None:
            added = store_generators(db, simulator)
            end = utc_now()
            counts = store_simulated_intervals(db, simulator, end - timedelta(days=days), end)
            db.commit()
            print(f"Registered {added} generators and stored {counts['revenue']} revenue intervals "
                  f"({counts['scada']} SCADA, {counts['prices']} price rows)")
        else:
            print("Database already contains generators. Skipping initialization.")

    except Exception as e:
        print(f"Error initializing database: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    print("Initializing database...")
    init_db()
    print("Database initialization completed!")
