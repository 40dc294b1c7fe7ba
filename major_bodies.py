"""major_bodies.py

Read the Horizons major-body listing (COMMAND=MB) and the geophysical
properties header of a body's report.

The listing is a fixed-width table:

  ID#      Name                               Designation  IAU/aliases/other
  -------  ---------------------------------- -----------  -------------------
        0  Solar System Barycenter                         SSB
      399  Earth                                           Geocenter
   -78000  Chang'e_5-T1_booster (spacecraft)  WE0913A      2014-065B

Names longer than the column are truncated by Horizons, so columns are
sliced by position rather than split on whitespace.
"""

import re
from typing import List, NamedTuple, Optional

ID_WIDTH = 9
NAME_WIDTH = 35
DESIGNATION_WIDTH = 13

# "Mass x10^24 (kg)= 5.97219+-0.0006", "Mass x10^22 (kg)      = 4.799844 +- 0.000013",
# "Mass, 10^20 kg = ~1.08"
MASS_RE = re.compile(r'Mass,?\s*x?\s*10\^(\d+)\s*\(?kg\)?\s*=\s*~?\s*(\d+(?:\.\d*)?)')


class Body(NamedTuple):
    """Planet, natural satellite, spacecraft, Sun, barycenter or other
    object with a pre-computed trajectory."""
    id: int
    name: str
    designation: str = ''
    aliases: str = ''


def parse_major_body(line: str) -> Body:
    """Parse one row of the listing. Raises ValueError when the ID column is not an integer."""
    id_text = line[:ID_WIDTH]
    rest = line[ID_WIDTH:]
    name = rest[:NAME_WIDTH]
    designation = rest[NAME_WIDTH:NAME_WIDTH + DESIGNATION_WIDTH]
    aliases = rest[NAME_WIDTH + DESIGNATION_WIDTH:]
    return Body(int(id_text.strip()), name.strip(), designation.strip(), aliases.strip())


def parse_major_bodies(text: str) -> List[Body]:
    """Every row of the listing that parses; headers and rulers are skipped."""
    bodies = []
    for line in text.splitlines():
        try:
            bodies.append(parse_major_body(line))
        except ValueError:
            continue
    return bodies


def find_body(bodies, name: str) -> Optional[Body]:
    """First body whose name matches `name` (case-insensitive), else None."""
    wanted = name.strip().lower()
    for body in bodies:
        if body.name.lower() == wanted:
            return body
    return None


def parse_mass(text: str) -> Optional[float]:
    """Body mass in kg from the GEOPHYSICAL PROPERTIES header, None if absent."""
    m = MASS_RE.search(text)
    if not m:
        return None
    exponent, mantissa = m.groups()
    return float(mantissa) * 10 ** int(exponent)


if __name__ == "__main__":
    from tabulate import tabulate
    from horizons_api import fetch_major_bodies

    bodies = fetch_major_bodies()
    print(tabulate(bodies, headers=list(Body._fields), tablefmt="fancy_grid"))
    print(f"{len(bodies)} major bodies")
