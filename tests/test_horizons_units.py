from pathlib import Path

import astropy.units as u
import pytest

from horizons_parser import Epoch, parse_elements, parse_epoch, parse_vectors
from horizons_units import epoch_time, project, project_all

DATA = Path(__file__).parent / "data"


def test_vectors_get_kilometres_by_default():
    first = parse_vectors((DATA / "vector.txt").read_text(encoding="utf-8"))[0]

    quantities = project(first)
    assert quantities["x"].unit == u.km
    assert quantities["x"].value == 187.0010427985840
    assert quantities["vz"].unit == u.km / u.s
    assert quantities["light_time"].unit == u.s


def test_units_follow_requested_output_units():
    first = parse_vectors((DATA / "vector.txt").read_text(encoding="utf-8"))[0]

    quantities = project(first, "AU-D")
    # the number is untouched, only the unit differs
    assert quantities["x"].unit == u.au
    assert quantities["x"].value == 187.0010427985840
    assert quantities["vx"].unit == u.au / u.day


def test_elements_projection():
    first = parse_elements((DATA / "orbital_elements.txt").read_text(encoding="utf-8"))[0]

    quantities = project(first)
    assert quantities["eccentricity"].unit == u.dimensionless_unscaled
    assert quantities["inclination"].unit == u.deg
    assert quantities["mean_motion"].unit == u.deg / u.s
    assert quantities["semi_major_axis"].to_value(u.au) == pytest.approx(0.99966, abs=1e-4)
    assert quantities["time_of_periapsis"].value == 2459584.392523936927


def test_epoch_time():
    t = epoch_time(Epoch(2459805.330509259, "A.D. 2022-Aug-13 19:55:56.0000", "TDB"))

    assert t.scale == "tdb"
    assert t.jd == pytest.approx(2459805.330509259, abs=1e-9)


def test_epoch_time_reads_ct_as_tdb():
    t = epoch_time(parse_epoch("2451545.000000000 = A.D. 2000-Jan-01 12:00:00.0000 CT"))

    assert t.scale == "tdb"
    assert t.jd == pytest.approx(2451545.0, abs=1e-9)


def test_epoch_time_rejects_unknown_scale():
    with pytest.raises(ValueError):
        epoch_time(Epoch(2459805.5, "A.D. 2022-Aug-14 00:00:00.0000", "XYZ"))


def test_project_all_pairs_times_with_quantities():
    vectors = parse_vectors((DATA / "vector.txt").read_text(encoding="utf-8"))

    projected = project_all(vectors)
    assert len(projected) == 4
    assert projected[1][0].jd == pytest.approx(2459805.372175926, abs=1e-9)
    assert projected[1][1]["range"].unit == u.km
