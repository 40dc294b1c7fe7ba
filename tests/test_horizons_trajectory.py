import csv
from pathlib import Path

import horizons_trajectory
from horizons_parser import parse_vectors
from horizons_trajectory import closest_approach, main, write_records_csv

DATA = Path(__file__).parent / "data"


def serve(monkeypatch, name):
    text = (DATA / name).read_text(encoding="utf-8")
    monkeypatch.setattr(horizons_trajectory, "fetch_horizons", lambda *args, **kwargs: text)


def read_rows(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.reader(f))


def test_closest_approach_picks_smallest_range():
    vectors = parse_vectors((DATA / "vector.txt").read_text(encoding="utf-8"))

    nearest, distance = closest_approach(vectors)
    assert nearest is vectors[0]
    assert abs(distance - 6369.22) < 0.1


def test_write_records_csv(tmp_path):
    vectors = parse_vectors((DATA / "vector.txt").read_text(encoding="utf-8"))
    out_csv = tmp_path / "vectors.csv"

    assert write_records_csv(vectors, out_csv) == 4
    rows = read_rows(out_csv)
    # header + 4 rows
    assert len(rows) == 1 + 4
    assert rows[0][:5] == ["jd", "calendar", "x", "y", "z"]
    assert float(rows[1][2]) == 187.0010427985840


def test_write_records_csv_with_no_records(tmp_path):
    out_csv = tmp_path / "empty.csv"

    assert write_records_csv([], out_csv) == 0
    assert not out_csv.exists()


def test_main_writes_vectors_csv(monkeypatch, tmp_path, capsys):
    serve(monkeypatch, "vector.txt")
    out_csv = tmp_path / "earth.csv"

    assert main(["--id", "399", "--out", str(out_csv)]) == 0
    assert len(read_rows(out_csv)) == 5
    assert "closest approach" in capsys.readouterr().out


def test_main_writes_elements_csv(monkeypatch, tmp_path):
    serve(monkeypatch, "orbital_elements.txt")
    out_csv = tmp_path / "elements.csv"

    assert main(["--id", "399", "--type", "elements", "--out", str(out_csv)]) == 0
    rows = read_rows(out_csv)
    assert "eccentricity" in rows[0]
    assert len(rows) == 5


def test_main_saves_raw_report_when_malformed(monkeypatch, tmp_path):
    text = (DATA / "vector.txt").read_text(encoding="utf-8").replace(" RR=", " QQ=", 1)
    monkeypatch.setattr(horizons_trajectory, "fetch_horizons", lambda *args, **kwargs: text)
    monkeypatch.setattr(horizons_trajectory, "ROOT", tmp_path)

    assert main(["--id", "399", "--out", str(tmp_path / "out.csv")]) == 1
    assert (tmp_path / "horizons_399.txt").read_text(encoding="utf-8") == text
    assert not (tmp_path / "out.csv").exists()


def test_main_without_data(monkeypatch, tmp_path):
    monkeypatch.setattr(horizons_trajectory, "fetch_horizons", lambda *args, **kwargs: "no data\n")
    monkeypatch.setattr(horizons_trajectory, "ROOT", tmp_path)

    assert main(["--id", "399", "--out", str(tmp_path / "out.csv")]) == 0
    assert (tmp_path / "horizons_399.txt").exists()
    assert not (tmp_path / "out.csv").exists()


def test_raw_report_name_is_file_safe(monkeypatch, tmp_path):
    monkeypatch.setattr(horizons_trajectory, "fetch_horizons", lambda *args, **kwargs: "no data\n")
    monkeypatch.setattr(horizons_trajectory, "ROOT", tmp_path)

    assert main(["--id", "'433/Eros'; DES=2000433", "--out", str(tmp_path / "out.csv")]) == 0
    assert [p.name for p in tmp_path.iterdir()] == ["horizons__433_Eros___DES_2000433.txt"]
