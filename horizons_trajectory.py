#!/usr/bin/env python3
"""
Query JPL Horizons for state VECTORS or osculating ELEMENTS of a body and export them to CSV.

Usage examples:
  python horizons_trajectory.py --id 399
  python horizons_trajectory.py --id 433 --center 500@399 --start 2025-01-01 --stop 2025-12-31 --step 1d
  python horizons_trajectory.py --id 499 --type elements --out mars_elements.csv

The CSV holds one row per epoch (jd, calendar, then the record fields). Values are
written exactly as Horizons reported them in the requested --out-units; nothing is
converted. For vectors the closest approach to the center body is printed.
"""
from pathlib import Path
import argparse
import csv
import logging
import re
import sys

import numpy as np
from tabulate import tabulate

from horizons_api import DEFAULT_CENTER, DEFAULT_OUT_UNITS, HorizonsFetchError, fetch_horizons
from horizons_parser import STATE_VECTORS, HorizonsParseError, get_schema, parse_report

ROOT = Path(__file__).resolve().parent
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def write_records_csv(records, out_path):
    """Write records as CSV rows; returns the number of rows written."""
    rows = [r.as_row() for r in records]
    if not rows:
        return 0
    with open(out_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0]))
        writer.writeheader()
        writer.writerows(rows)
    return len(rows)


def closest_approach(vectors):
    """(record, distance) of the state vector nearest the coordinate center."""
    positions = np.array([v.position for v in vectors], dtype=float)
    distances = np.linalg.norm(positions, axis=1)
    i = int(np.argmin(distances))
    return vectors[i], float(distances[i])


def main(argv=None):
    p = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    p.add_argument('--id', required=True, help='Horizons COMMAND: body id or designation (e.g. 399 or "433;")')
    p.add_argument('--start', default='2025-01-01', help='Start time (YYYY-MM-DD)')
    p.add_argument('--stop', default='2025-01-02', help='Stop time (YYYY-MM-DD)')
    p.add_argument('--step', default='1h', help='STEP_SIZE for Horizons (e.g. 1d, 1h)')
    p.add_argument('--center', default=DEFAULT_CENTER, help=f'Coordinate center (default {DEFAULT_CENTER}, the Sun)')
    p.add_argument('--type', default='vectors', choices=['vectors', 'elements'], help='Report kind')
    p.add_argument('--out-units', default=DEFAULT_OUT_UNITS, choices=['KM-S', 'AU-D', 'KM-D'])
    p.add_argument('--out', help='Output CSV (default <type>_<id>.csv next to this script)')
    p.add_argument('--verbose', action='store_true')
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)
    schema = get_schema(args.type)
    safe_id = re.sub(r'[^\w-]', '_', args.id)

    try:
        txt = fetch_horizons(args.id, args.start, args.stop, args.step, schema.ephem_type,
                             center=args.center, out_units=args.out_units)
    except HorizonsFetchError as e:
        print(f'Horizons request failed: {e}')
        return 1

    try:
        records = parse_report(txt, schema)
    except HorizonsParseError as e:
        raw_path = ROOT / f'horizons_{safe_id}.txt'
        raw_path.write_text(txt, encoding='utf-8')
        logger.error('Could not parse record %s: %s', e.record_index, e)
        print(f'Malformed Horizons report; raw response saved to {raw_path}')
        return 1

    if not records:
        raw_path = ROOT / f'horizons_{safe_id}.txt'
        raw_path.write_text(txt, encoding='utf-8')
        print(f'No {schema.name} rows in Horizons response. Raw response saved to {raw_path}')
        return 0

    out_path = Path(args.out) if args.out else ROOT / f'{schema.name}_{safe_id}.csv'
    count = write_records_csv(records, out_path)

    preview = [r.as_row() for r in records[:10]]
    print(tabulate(preview, headers='keys', tablefmt='fancy_grid'))
    if schema is STATE_VECTORS:
        nearest, distance = closest_approach(records)
        unit = 'AU' if args.out_units == 'AU-D' else 'km'
        print(f'Points: {count}; closest approach {distance:.6g} {unit} at {nearest.epoch}')
    print('Wrote', out_path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
