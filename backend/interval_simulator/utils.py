# utility functions for dispatch interval simulation

import math
from datetime import datetime


def calculate_solar_elevation(latitude: float, ts: datetime) -> float:
    """
    Sun elevation angle in degrees (0-90) for a latitude at a given time.

    Simplified solar position algorithm; the fractional hour keeps 5-minute
    intervals smooth.
    """
    day_of_year = ts.timetuple().tm_yday

    # Declination angle (Earth's tilt effect)
    declination = 23.45 * math.sin(math.radians((360 / 365) * (day_of_year - 81)))

    # Hour angle: 15 degrees per hour, noon = 0
    hour = ts.hour + ts.minute / 60.0
    hour_angle = 15 * (hour - 12)

    elevation = math.asin(
        math.sin(math.radians(latitude)) * math.sin(math.radians(declination)) +
        math.cos(math.radians(latitude)) * math.cos(math.radians(declination)) *
        math.cos(math.radians(hour_angle))
    )

    return max(0, math.degrees(elevation))


def get_solar_intensity_factor(elevation_angle: float) -> float:
    """
    Convert sun elevation angle to intensity factor (0-1) with air mass attenuation.
    """
    if elevation_angle <= 0:
        return 0

    air_mass = 1 / math.sin(math.radians(elevation_angle))
    return math.pow(0.7, air_mass - 1)


def daily_demand_shape(ts: datetime) -> float:
    """
    Relative demand (roughly -1..1): morning shoulder and an evening peak around 18:30.
    """
    hour = ts.hour + ts.minute / 60.0
    evening = math.exp(-((hour - 18.5) ** 2) / 4.0)
    morning = 0.5 * math.exp(-((hour - 8.0) ** 2) / 3.0)
    overnight = -0.4 * math.exp(-((hour - 3.0) ** 2) / 6.0)
    return evening + morning + overnight


def floor_to_interval(ts: datetime, minutes: int = 5) -> datetime:
    """Align a timestamp down to the start of its settlement interval."""
    return ts.replace(minute=ts.minute - ts.minute % minutes, second=0, microsecond=0)
