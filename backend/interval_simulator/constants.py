# Constants for simulating NEM dispatch telemetry, prices and revenue

INTERVAL_MINUTES = 5

# Regional reference price shape ($/MWh): base level, evening peak uplift, midday solar trough
REGION_PRICES = {
    'NSW1': {'latitude': -33.87, 'base_rrp': 95.0, 'peak_uplift': 120.0, 'solar_trough': 60.0},
    'QLD1': {'latitude': -27.47, 'base_rrp': 85.0, 'peak_uplift': 140.0, 'solar_trough': 75.0},
    'VIC1': {'latitude': -37.81, 'base_rrp': 80.0, 'peak_uplift': 100.0, 'solar_trough': 55.0},
    'SA1':  {'latitude': -34.93, 'base_rrp': 105.0, 'peak_uplift': 180.0, 'solar_trough': 90.0},
    'TAS1': {'latitude': -42.88, 'base_rrp': 70.0, 'peak_uplift': 60.0, 'solar_trough': 20.0},
}

# Chance of a price spike in any interval, and its range ($/MWh)
PRICE_SPIKE_PROBABILITY = 0.004
PRICE_SPIKE_RANGE = (1000.0, 5000.0)
MARKET_PRICE_FLOOR = -1000.0

# Typical output as a share of max capacity, and interval-to-interval noise
FUEL_PROFILES = {
    'Black Coal': {'base_factor': 0.78, 'noise': 0.02},
    'Brown Coal': {'base_factor': 0.85, 'noise': 0.015},
    'Natural Gas': {'base_factor': 0.25, 'noise': 0.10},
    'Hydro': {'base_factor': 0.35, 'noise': 0.08},
    'Wind': {'base_factor': 0.38, 'noise': 0.12},
    'Solar': {'base_factor': 0.95, 'noise': 0.05},
    'Battery Storage': {'base_factor': 0.20, 'noise': 0.15},
}

# Sample units: duid, station name, participant, region, fuel, registered MW, max MW
SAMPLE_GENERATORS = [
    ('BW01', 'Bayswater', 'AGL Macquarie', 'NSW1', 'Black Coal', 660.0, 685.0),
    ('ER01', 'Eraring', 'Origin Energy', 'NSW1', 'Black Coal', 720.0, 720.0),
    ('TUMUT3', 'Tumut 3', 'Snowy Hydro', 'NSW1', 'Hydro', 1800.0, 1800.0),
    ('DARLSF1', 'Darlington Point Solar Farm', 'Edify Energy', 'NSW1', 'Solar', 275.0, 275.0),
    ('STAN-1', 'Stanwell', 'Stanwell Corporation', 'QLD1', 'Black Coal', 365.0, 365.0),
    ('CALL_B_1', 'Callide B', 'CS Energy', 'QLD1', 'Black Coal', 350.0, 350.0),
    ('COOPGWF1', 'Coopers Gap Wind Farm', 'AGL Energy', 'QLD1', 'Wind', 453.0, 440.0),
    ('LYA1', 'Loy Yang A', 'AGL Loy Yang', 'VIC1', 'Brown Coal', 560.0, 560.0),
    ('MACARTH1', 'Macarthur Wind Farm', 'AGL Energy', 'VIC1', 'Wind', 420.0, 420.0),
    ('MURRAY', 'Murray', 'Snowy Hydro', 'VIC1', 'Hydro', 1500.0, 1550.0),
    ('HPRG1', 'Hornsdale Power Reserve', 'Neoen', 'SA1', 'Battery Storage', 150.0, 150.0),
    ('TORRB1', 'Torrens Island B', 'AGL Energy', 'SA1', 'Natural Gas', 200.0, 200.0),
    ('HDWF1', 'Hornsdale Wind Farm', 'Neoen', 'SA1', 'Wind', 102.0, 102.0),
    ('GORDON', 'Gordon', 'Hydro Tasmania', 'TAS1', 'Hydro', 432.0, 432.0),
]
