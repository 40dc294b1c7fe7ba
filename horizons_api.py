#Fetches ephemeris reports from the JPL Horizons API. Returns the raw text report; parsing lives in horizons_parser.py.

import logging
import os
from datetime import date, datetime

import requests

from horizons_parser import STATE_VECTORS, parse_report
from major_bodies import parse_major_bodies, parse_mass

logger = logging.getLogger(__name__)

HORIZONS_URL = os.getenv("HORIZONS_URL", "https://ssd.jpl.nasa.gov/api/horizons.api")
HORIZONS_TIMEOUT = float(os.getenv("HORIZONS_TIMEOUT", "30"))
USER_AGENT = os.getenv("HORIZONS_USER_AGENT", "horizons-ephemeris/1.0")

# Heliocentric, ecliptic, km and km/s; VEC_TABLE=3 adds the LT/RG/RR line.
DEFAULT_CENTER = "500@10"
DEFAULT_OUT_UNITS = "KM-S"
DEFAULT_REF_PLANE = "ECLIPTIC"
VEC_TABLE = "3"


class HorizonsFetchError(RuntimeError):
    """The Horizons request failed. `status` is the HTTP status when a response arrived."""

    def __init__(self, message, status=None, text=None):
        super().__init__(message)
        self.status = status
        self.text = text


def format_time(value):
    """Horizons START_TIME/STOP_TIME text for a str, date or datetime."""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def quote(value):
    # Horizons wants values containing blanks wrapped in single quotes
    value = str(value)
    if " " in value and not value.startswith("'"):
        return f"'{value}'"
    return value


def build_ephemeris_params(command, start, stop, step="1d", ephem_type="VECTORS",
                           center=DEFAULT_CENTER, out_units=DEFAULT_OUT_UNITS,
                           ref_plane=DEFAULT_REF_PLANE):
    # Horizons rejects '1 d', so drop the blanks from the step
    params = {
        "format": "text",
        "COMMAND": quote(command),
        "OBJ_DATA": "NO",
        "MAKE_EPHEM": "YES",
        "EPHEM_TYPE": ephem_type.upper(),
        "CENTER": quote(center),
        "START_TIME": quote(format_time(start)),
        "STOP_TIME": quote(format_time(stop)),
        "STEP_SIZE": str(step).replace(" ", ""),
        "OUT_UNITS": out_units,
        "REF_PLANE": ref_plane,
    }
    if params["EPHEM_TYPE"] == "VECTORS":
        params["VEC_TABLE"] = VEC_TABLE
    return params


def query_horizons(params, timeout=None):
    """GET the Horizons API with `params` and return the response text."""
    timeout = HORIZONS_TIMEOUT if timeout is None else timeout
    logger.debug("Horizons query %s", params)
    try:
        response = requests.get(HORIZONS_URL, params=params, timeout=timeout,
                                headers={"User-Agent": USER_AGENT})
    except requests.RequestException as e:
        logger.error("Horizons request error: %s", e)
        raise HorizonsFetchError(f"Horizons request failed: {e}") from e
    if response.status_code != 200:
        logger.error("Horizons Error: %s - %s", response.status_code, response.text[:200])
        raise HorizonsFetchError(f"Horizons returned HTTP {response.status_code}",
                                 status=response.status_code, text=response.text)
    return response.text


def fetch_horizons(command, start, stop, step="1d", ephem_type="VECTORS", center=DEFAULT_CENTER,
                   out_units=DEFAULT_OUT_UNITS, ref_plane=DEFAULT_REF_PLANE, timeout=None):
    """Raw text report for one target over [start, stop] every `step`."""
    params = build_ephemeris_params(command, start, stop, step, ephem_type, center, out_units, ref_plane)
    return query_horizons(params, timeout=timeout)


def fetch_ephemeris(command, start, stop, step="1d", schema=STATE_VECTORS, center=DEFAULT_CENTER,
                    out_units=DEFAULT_OUT_UNITS, ref_plane=DEFAULT_REF_PLANE, timeout=None):
    """Fetch and parse. An empty list means Horizons had no data for the window."""
    text = fetch_horizons(command, start, stop, step, schema.ephem_type, center,
                          out_units, ref_plane, timeout)
    records = parse_report(text, schema)
    if not records:
        logger.warning("No %s records in Horizons response for %s", schema.name, command)
    return records


def fetch_major_bodies(timeout=None):
    text = query_horizons({"format": "text", "COMMAND": "MB"}, timeout=timeout)
    return parse_major_bodies(text)


def fetch_geophysical_mass(command, timeout=None):
    """Mass in kg from the body's data header, None if Horizons does not list one."""
    params = {"format": "text", "COMMAND": quote(command), "OBJ_DATA": "YES", "MAKE_EPHEM": "NO"}
    return parse_mass(query_horizons(params, timeout=timeout))


if __name__ == "__main__":
    # Preview one day of Earth's heliocentric state vectors
    from datetime import timedelta
    from tabulate import tabulate

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    today = date.today()
    vectors = fetch_ephemeris("399", today - timedelta(days=1), today, step="6h")
    rows = [v.as_row() for v in vectors]
    print(tabulate(rows, headers="keys", tablefmt="fancy_grid"))
