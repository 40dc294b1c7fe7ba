"""horizons_parser.py

Parse the plain-text report returned by the JPL Horizons API into typed records.

A Horizons report is free text with a machine-readable region between the
`$$SOE` and `$$EOE` markers. Inside it every record starts with an epoch line

  2459805.330509259 = A.D. 2022-Aug-13 19:55:56.0000 TDB

followed by a fixed number of `TAG= value` lines, e.g. for VECTORS

   X = 1.870010427985840E+02 Y = 2.484687803242536E+03 Z =-5.861602653492581E+03
   VX=-3.362664133558439E-01 VY= 1.344100266143978E-02 VZ=-5.030275220358716E-03
   LT= 2.124546508316426E-02 RG= 6.369222045049627E+03 RR= 1.733066620005232E-06

Values may touch the `=` (and the sign may touch it too), so lines are
tokenized by locating tags rather than by splitting on whitespace.

Parsing is all-or-nothing: a single bad record aborts the whole block.
"""

import re
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional, Tuple

SOE_MARKER = '$$SOE'
EOE_MARKER = '$$EOE'

# 2459805.330509259 = A.D. 2022-Aug-13 19:55:56.0000 TDB
EPOCH_RE = re.compile(
    r'^\s*(?P<jd>\d+\.\d*)\s*=\s*'
    r'(?P<calendar>(?:A\.D\.|B\.C\.)\s+\d{4}-[A-Za-z]{3}-\d{2}\s+\d{2}:\d{2}:\d{2}(?:\.\d+)?)'
    r'\s+(?P<scale>[A-Z]{2,3})\s*$'
)
# A tag is a run of letters followed by optional blanks and '='.
# The lookbehind keeps the 'X' in 'VX' from matching on its own.
TAG_RE = re.compile(r'(?<![A-Za-z])([A-Za-z]+)\s*=')
FLOAT_RE = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[Ee][+-]?\d+)?$')


class HorizonsParseError(ValueError):
    """Base error for a report that cannot be decoded.

    `record_index` is the 0-based record within the block, `line` the
    offending text and `tag` the field involved, where known.
    """

    def __init__(self, message, record_index=None, line=None, tag=None):
        super().__init__(message)
        self.record_index = record_index
        self.line = line
        self.tag = tag


class MalformedBlockError(HorizonsParseError):
    pass


class UnknownFieldError(HorizonsParseError):
    pass


class MissingFieldError(HorizonsParseError):
    pass


class NumericParseError(HorizonsParseError):
    pass


class TimestampParseError(HorizonsParseError):
    pass


class Epoch(NamedTuple):
    """Record epoch as reported: Julian Day Number plus the calendar text."""
    jd: float
    calendar: str
    time_scale: str = 'TDB'

    def to_datetime(self) -> datetime:
        """Calendar text as a naive datetime in `time_scale` (A.D. dates only)."""
        era, stamp = self.calendar.split(None, 1)
        if era != 'A.D.':
            raise ValueError(f'cannot represent {self.calendar!r} as datetime')
        fmt = '%Y-%b-%d %H:%M:%S.%f' if '.' in stamp else '%Y-%b-%d %H:%M:%S'
        return datetime.strptime(stamp, fmt)

    def __str__(self):
        return f'{self.jd:.9f} = {self.calendar} {self.time_scale}'


class Vector3(NamedTuple):
    x: float
    y: float
    z: float


class StateVectorRecord(NamedTuple):
    """Position (X, Y, Z), velocity (VX, VY, VZ), light-time (LT), range (RG)
    and range-rate (RR) of the target relative to the coordinate center."""
    epoch: Epoch
    position: Vector3
    velocity: Vector3
    light_time: float
    range: float
    range_rate: float

    def as_row(self) -> Dict[str, object]:
        return {
            'jd': self.epoch.jd,
            'calendar': self.epoch.calendar,
            'x': self.position.x, 'y': self.position.y, 'z': self.position.z,
            'vx': self.velocity.x, 'vy': self.velocity.y, 'vz': self.velocity.z,
            'light_time': self.light_time,
            'range': self.range,
            'range_rate': self.range_rate,
        }


class OrbitalElementsRecord(NamedTuple):
    """Osculating orbital elements at one epoch."""
    epoch: Epoch
    eccentricity: float
    periapsis_distance: float
    inclination: float
    longitude_of_ascending_node: float
    argument_of_periapsis: float
    time_of_periapsis: float
    mean_motion: float
    mean_anomaly: float
    true_anomaly: float
    semi_major_axis: float
    apoapsis_distance: float
    orbital_period: float

    def as_row(self) -> Dict[str, object]:
        row = {'jd': self.epoch.jd, 'calendar': self.epoch.calendar}
        row.update((name, getattr(self, name)) for name in self._fields[1:])
        return row


class Schema(NamedTuple):
    """One Horizons report kind: its tags (in print order) and record layout."""
    name: str
    ephem_type: str
    lines_per_record: int
    tags: Tuple[str, ...]
    fields: Tuple[str, ...]


STATE_VECTORS = Schema(
    name='vectors',
    ephem_type='VECTORS',
    lines_per_record=4,
    tags=('X', 'Y', 'Z', 'VX', 'VY', 'VZ', 'LT', 'RG', 'RR'),
    fields=('x', 'y', 'z', 'vx', 'vy', 'vz', 'light_time', 'range', 'range_rate'),
)

ORBITAL_ELEMENTS = Schema(
    name='elements',
    ephem_type='ELEMENTS',
    lines_per_record=5,
    tags=('EC', 'QR', 'IN', 'OM', 'W', 'Tp', 'N', 'MA', 'TA', 'A', 'AD', 'PR'),
    fields=OrbitalElementsRecord._fields[1:],
)

SCHEMAS = (STATE_VECTORS, ORBITAL_ELEMENTS)

# Record field name of every tag, per schema name.
FIELD_FOR_TAG = {schema.name: dict(zip(schema.tags, schema.fields)) for schema in SCHEMAS}

# Unit of every tag for each Horizons OUT_UNITS setting.
_UNITS = {
    'KM-S': {'length': 'km', 'velocity': 'km/s', 'time': 's', 'rate': 'deg/s'},
    'AU-D': {'length': 'AU', 'velocity': 'AU/d', 'time': 'd', 'rate': 'deg/d'},
    'KM-D': {'length': 'km', 'velocity': 'km/d', 'time': 'd', 'rate': 'deg/d'},
}
_TAG_DIMENSIONS = {
    'X': 'length', 'Y': 'length', 'Z': 'length',
    'VX': 'velocity', 'VY': 'velocity', 'VZ': 'velocity',
    'LT': 'time', 'RG': 'length', 'RR': 'velocity',
    'EC': None, 'QR': 'length', 'IN': 'deg', 'OM': 'deg', 'W': 'deg',
    'Tp': 'jd', 'N': 'rate', 'MA': 'deg', 'TA': 'deg',
    'A': 'length', 'AD': 'length', 'PR': 'time',
}


def get_schema(name: str) -> Schema:
    """Resolve 'vectors'/'elements' (or VECTORS/ELEMENTS) to a schema."""
    for schema in SCHEMAS:
        if name.lower() in (schema.name, schema.ephem_type.lower()):
            return schema
    raise ValueError(f'unknown report kind {name!r}; expected one of {[s.name for s in SCHEMAS]}')


def unit_conventions(schema: Schema, out_units: str = 'KM-S') -> Dict[str, str]:
    """Map each tag of `schema` to its unit for the requested OUT_UNITS.

    Eccentricity maps to '' (dimensionless) and Tp to 'JD'.
    """
    try:
        units = _UNITS[out_units.upper()]
    except KeyError:
        raise ValueError(f'unsupported OUT_UNITS {out_units!r}; expected one of {sorted(_UNITS)}') from None
    result = {}
    for tag in schema.tags:
        dimension = _TAG_DIMENSIONS[tag]
        if dimension is None:
            result[tag] = ''
        elif dimension == 'deg':
            result[tag] = 'deg'
        elif dimension == 'jd':
            result[tag] = 'JD'
        else:
            result[tag] = units[dimension]
    return result


def schema_of(record) -> Schema:
    if isinstance(record, StateVectorRecord):
        return STATE_VECTORS
    if isinstance(record, OrbitalElementsRecord):
        return ORBITAL_ELEMENTS
    raise TypeError(f'not a Horizons record: {type(record).__name__}')


def record_values(record) -> Dict[str, float]:
    """Tag -> scalar for a decoded record, in the schema's tag order."""
    schema = schema_of(record)
    if schema is STATE_VECTORS:
        values = tuple(record.position) + tuple(record.velocity) + (
            record.light_time, record.range, record.range_rate)
    else:
        values = tuple(record[1:])
    return dict(zip(schema.tags, values))


def raw_quantities(record, out_units: str = 'KM-S') -> List[Tuple[str, float, str]]:
    """(field name, value, unit) for every scalar of `record`. No conversion is done."""
    schema = schema_of(record)
    units = unit_conventions(schema, out_units)
    names = FIELD_FOR_TAG[schema.name]
    return [(names[tag], value, units[tag]) for tag, value in record_values(record).items()]


def extract_block(text: str) -> List[str]:
    """Return the lines between the first $$SOE and the following $$EOE.

    No markers (or no closing marker) means the report has no data: [].
    """
    lines = text.splitlines()
    start = None
    for i, line in enumerate(lines):
        marker = line.strip()
        if start is None:
            if marker == SOE_MARKER:
                start = i + 1
        elif marker == EOE_MARKER:
            return lines[start:i]
    return []


def parse_epoch(line: str, record_index: Optional[int] = None) -> Epoch:
    m = EPOCH_RE.match(line)
    if not m:
        raise TimestampParseError(f'cannot parse epoch line {line!r}', record_index, line)
    calendar = ' '.join(m.group('calendar').split())
    return Epoch(float(m.group('jd')), calendar, m.group('scale'))


def tokenize_fields(lines, vocabulary, record_index: Optional[int] = None) -> Dict[str, str]:
    """Split `TAG= value` lines into {tag: raw value text}.

    Tags outside `vocabulary` are rejected; so is any text that is not part
    of a tag assignment.
    """
    allowed = set(vocabulary)
    fields = {}
    for line in lines:
        matches = list(TAG_RE.finditer(line))
        if not matches or line[:matches[0].start()].strip():
            raise MalformedBlockError(f'expected TAG=value fields, got {line!r}', record_index, line)
        for m, following in zip(matches, matches[1:] + [None]):
            tag = m.group(1)
            if tag not in allowed:
                raise UnknownFieldError(f'unexpected field {tag!r}', record_index, line, tag)
            if tag in fields:
                raise MalformedBlockError(f'field {tag!r} repeated', record_index, line, tag)
            end = following.start() if following else len(line)
            fields[tag] = line[m.end():end].strip()
    return fields


def tokenize_record(lines, vocabulary, record_index: Optional[int] = None) -> Tuple[Epoch, Dict[str, str]]:
    """Epoch from the first line, field map from the rest."""
    epoch = parse_epoch(lines[0], record_index)
    return epoch, tokenize_fields(lines[1:], vocabulary, record_index)


def parse_float(tag: str, text: str, record_index: Optional[int] = None) -> float:
    if not FLOAT_RE.match(text):
        raise NumericParseError(f'field {tag!r} is not a number: {text!r}', record_index, text, tag)
    return float(text)


def decode_record(epoch: Epoch, fields: Dict[str, str], schema: Schema, record_index: Optional[int] = None):
    values = {}
    for tag, name in zip(schema.tags, schema.fields):
        if tag not in fields:
            raise MissingFieldError(f'field {tag!r} missing', record_index, tag=tag)
        values[name] = parse_float(tag, fields[tag], record_index)

    if schema is STATE_VECTORS:
        return StateVectorRecord(
            epoch=epoch,
            position=Vector3(values['x'], values['y'], values['z']),
            velocity=Vector3(values['vx'], values['vy'], values['vz']),
            light_time=values['light_time'],
            range=values['range'],
            range_rate=values['range_rate'],
        )
    return OrbitalElementsRecord(epoch=epoch, **values)


def decode_block(lines: List[str], schema: Schema) -> list:
    """Decode extracted block lines, one `schema.lines_per_record` chunk at a time."""
    size = schema.lines_per_record
    records = []
    cursor = 0
    while cursor < len(lines):
        chunk = lines[cursor:cursor + size]
        index = len(records)
        if len(chunk) < size:
            raise MalformedBlockError(
                f'record {index} has {len(chunk)} of {size} lines', index, chunk[0])
        epoch, fields = tokenize_record(chunk, schema.tags, index)
        records.append(decode_record(epoch, fields, schema, index))
        cursor += size
    return records


def parse_report(text: str, schema: Schema) -> list:
    """Parse a complete Horizons text report. Empty list when it carries no data."""
    return decode_block(extract_block(text), schema)


def parse_vectors(text: str) -> List[StateVectorRecord]:
    return parse_report(text, STATE_VECTORS)


def parse_elements(text: str) -> List[OrbitalElementsRecord]:
    return parse_report(text, ORBITAL_ELEMENTS)


def _format_value(tag, value):
    if tag == 'Tp':
        return f'{value:>22.12f}'
    return f'{value:22.15E}'


def format_record(record) -> List[str]:
    """Render a record in the Horizons report layout (epoch line + 3 tags per line)."""
    lines = [f'{record.epoch} ']
    items = list(record_values(record).items())
    for i in range(0, len(items), 3):
        parts = [f'{tag:<2}={_format_value(tag, value)}' for tag, value in items[i:i + 3]]
        lines.append(' ' + ' '.join(parts))
    return lines


def format_report(records, header: str = '') -> str:
    """Wrap formatted records between the block markers."""
    body = [line for record in records for line in format_record(record)]
    return '\n'.join(([header] if header else []) + [SOE_MARKER] + body + [EOE_MARKER]) + '\n'
