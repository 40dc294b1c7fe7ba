"""horizons_units.py

Attach astropy units to decoded Horizons records.

The numbers are left exactly as Horizons printed them; only the unit implied
by the query's OUT_UNITS setting is attached. Asking for 'AU-D' when the
report was produced in 'KM-S' gives wrong quantities, so pass the same
setting that was used for the query.
"""

from typing import Dict

import astropy.units as u
from astropy.time import Time

from horizons_parser import raw_quantities

UNIT_NAMES = {
    '': u.dimensionless_unscaled,
    'km': u.km,
    'AU': u.au,
    'km/s': u.km / u.s,
    'km/d': u.km / u.day,
    'AU/d': u.au / u.day,
    's': u.s,
    'd': u.day,
    'deg': u.deg,
    'deg/s': u.deg / u.s,
    'deg/d': u.deg / u.day,
    # Time of periapsis is a Julian Day Number, kept as a count of days.
    'JD': u.day,
}


# Horizons time-scale tags -> astropy scale names. Older reports print TDB as CT.
TIME_SCALES = {'TDB': 'tdb', 'CT': 'tdb', 'TT': 'tt', 'UT': 'utc', 'UTC': 'utc'}


def epoch_time(epoch) -> Time:
    """Epoch as an astropy Time built from the reported Julian Day Number."""
    try:
        scale = TIME_SCALES[epoch.time_scale]
    except KeyError:
        raise ValueError(f'unsupported time scale {epoch.time_scale!r}') from None
    return Time(epoch.jd, format='jd', scale=scale)


def project(record, out_units: str = 'KM-S') -> Dict[str, u.Quantity]:
    """Map every scalar field of `record` to an astropy Quantity."""
    return {name: value * UNIT_NAMES[unit] for name, value, unit in raw_quantities(record, out_units)}


def project_all(records, out_units: str = 'KM-S'):
    return [(epoch_time(r.epoch), project(r, out_units)) for r in records]
