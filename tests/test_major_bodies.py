from pathlib import Path

import pytest

from major_bodies import Body, find_body, parse_major_bodies, parse_major_body, parse_mass

DATA = Path(__file__).parent / "data"


def test_reading_major_body_rows():
    assert parse_major_body("        0  Solar System Barycenter                         SSB") == Body(
        0, "Solar System Barycenter", "", "SSB")
    assert parse_major_body("      699  Saturn") == Body(699, "Saturn")
    assert parse_major_body(
        "  -78000  Chang'e_5-T1_booster (spacecraft)  WE0913A      2014-065B"
    ) == Body(-78000, "Chang'e_5-T1_booster (spacecraft)", "WE0913A", "2014-065B")


@pytest.mark.parametrize("line", ["****************", "", "  ID#      Name", "  -------  -----"])
def test_rows_without_integer_id_are_rejected(line):
    with pytest.raises(ValueError):
        parse_major_body(line)


def test_listing_skips_headers():
    bodies = parse_major_bodies((DATA / "major_bodies.txt").read_text(encoding="utf-8"))

    assert len(bodies) == 9
    assert [b.id for b in bodies[:3]] == [0, 1, 10]
    assert bodies[2] == Body(10, "Sun", "", "Sol")
    assert bodies[-1].designation == "WE0913A"


def test_find_body():
    bodies = parse_major_bodies((DATA / "major_bodies.txt").read_text(encoding="utf-8"))

    assert find_body(bodies, "Earth").id == 399
    assert find_body(bodies, "moon").id == 301
    assert find_body(bodies, "Pluto") is None


def test_mass_from_geophysical_header():
    assert parse_mass((DATA / "vector.txt").read_text(encoding="utf-8")) == pytest.approx(5.97219e24)
    assert parse_mass((DATA / "geophysical.txt").read_text(encoding="utf-8")) == pytest.approx(4.799844e22)
    assert parse_mass(" Mass, 10^20 kg = ~1.08   Density = 1.9") == pytest.approx(1.08e20)


def test_mass_missing():
    assert parse_mass((DATA / "orbital_elements.txt").read_text(encoding="utf-8")) is None
