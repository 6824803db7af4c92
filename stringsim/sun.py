"""
Sun geometry for the time/heading sweep.

Coordinates are y-up; at heading 0 the vehicle's -z axis points north and
+x points east. The solar position follows the simplified NOAA method with
an approximate day of year and a standard timezone derived from longitude
(no daylight saving).
"""
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

DOWN = np.array([0.0, -1.0, 0.0])
MAX_LATITUDE_DEG = 89.0


@dataclass(frozen=True)
class SunPosition:
    direction: np.ndarray   # unit vector toward the sun, DOWN below the horizon
    altitude_deg: float
    azimuth_deg: float      # clockwise from north

    @property
    def is_daytime(self) -> bool:
        return self.altitude_deg > 0


def day_of_year(month: int, day: int) -> int:
    doy = (int(month) - 1) * 30 + int(day)
    return min(max(doy, 1), 365)


def sun_position(latitude: float, longitude: float, month: int, day: int, hour: float) -> SunPosition:
    """Solar altitude/azimuth and direction at local standard clock ``hour``."""
    lat = math.radians(min(max(latitude, -MAX_LATITUDE_DEG), MAX_LATITUDE_DEG))
    gamma = 2.0 * math.pi / 365.0 * (day_of_year(month, day) - 1)

    # equation of time (minutes) and declination (rad)
    eqtime = 229.18 * (0.000075 + 0.001868 * math.cos(gamma) - 0.032077 * math.sin(gamma)
                       - 0.014615 * math.cos(2 * gamma) - 0.040849 * math.sin(2 * gamma))
    decl = (0.006918 - 0.399912 * math.cos(gamma) + 0.070257 * math.sin(gamma)
            - 0.006758 * math.cos(2 * gamma) + 0.000907 * math.sin(2 * gamma)
            - 0.002697 * math.cos(3 * gamma) + 0.00148 * math.sin(3 * gamma))

    tz_hours = round(longitude / 15.0)
    solar_minutes = hour * 60.0 + 4.0 * (longitude - tz_hours * 15.0) + eqtime
    ha = solar_minutes / 4.0 - 180.0  # hour angle, degrees (0 at solar noon)

    cos_zen = math.sin(lat) * math.sin(decl) + math.cos(lat) * math.cos(decl) * math.cos(math.radians(ha))
    cos_zen = min(max(cos_zen, -1.0), 1.0)
    zenith = math.acos(cos_zen)
    altitude = 90.0 - math.degrees(zenith)

    sin_zen = math.sin(zenith)
    if abs(sin_zen) > 0.001:
        cos_az = (math.sin(decl) - math.sin(lat) * cos_zen) / (math.cos(lat) * sin_zen)
        azimuth = math.degrees(math.acos(min(max(cos_az, -1.0), 1.0)))
        if ha > 0:
            azimuth = 360.0 - azimuth
    else:
        azimuth = 180.0

    if altitude <= 0:
        return SunPosition(DOWN.copy(), altitude, azimuth)

    alt_r, az_r = math.radians(altitude), math.radians(azimuth)
    direction = np.array([
        math.cos(alt_r) * math.sin(az_r),
        math.sin(alt_r),
        -math.cos(alt_r) * math.cos(az_r),
    ])
    return SunPosition(direction / np.linalg.norm(direction), altitude, azimuth)


def atmospheric_factor(altitude_deg: float) -> float:
    """Clear-sky transmittance 0.7^(AM^0.678); 0 with the sun down."""
    if altitude_deg <= 0:
        return 0.0
    air_mass = 1.0 / max(math.sin(math.radians(altitude_deg)), 0.01)
    return 0.7 ** (air_mass ** 0.678)


def rotate_heading(direction: Sequence[float], heading_deg: float) -> np.ndarray:
    """Sun direction seen from a vehicle turned ``heading_deg`` about +y."""
    h = math.radians(-heading_deg)
    x, y, z = (float(c) for c in direction)
    return np.array([x * math.cos(h) - z * math.sin(h), y, x * math.sin(h) + z * math.cos(h)])


def irradiance_ratio(normal: Sequence[float], sun_dir: Sequence[float], irradiance: float,
                     attenuation: float = 1.0, shaded: bool = False) -> float:
    """Fraction of STC irradiance landing on a cell with outward ``normal``."""
    if shaded:
        return 0.0
    facing = float(np.dot(normal, sun_dir))
    if facing <= 0:
        return 0.0
    ratio = (irradiance / 1000.0) * attenuation * facing
    return min(max(ratio, 0.0), 1.0)
