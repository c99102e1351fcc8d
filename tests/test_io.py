import logging
from pathlib import Path

import pandas as pd
import pytest

from gedcom_csv.reader import Node, read_gedcom
from gedcom_csv.tables import Table
from gedcom_csv.writer import write_csv_tables
from gedcom_to_csv import main

SAMPLE_GEDCOM = """0 HEAD
1 CHAR UTF-8
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 4 JUL 1776
2 PLAC Boston
1 OCCU Farmer
1 FAMS @F1@
1 NOTE First line
2 CONT second line con
2 CONC tinued
0 @I2@ INDI
1 NAME Jane /Doe/
1 OCCU Farmer
1 FAMS @F1@
0 @I3@ INDI
1 NAME Jack /Smith/
1 FAMC @F1@
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
0 TRLR
"""


@pytest.fixture
def gedcom_file(tmp_path: Path) -> Path:
    path = tmp_path / "family.ged"
    path.write_text(SAMPLE_GEDCOM, encoding="utf-8")
    return path


def test_read_gedcom_builds_nodes(gedcom_file: Path):
    records = read_gedcom(gedcom_file)

    assert [record.tag for record in records] == ["HEAD", "INDI", "INDI", "INDI", "FAM", "TRLR"]
    head, john = records[0], records[1]
    assert head.pointer is None
    assert head.value is None
    assert john.pointer == "@I1@"
    assert john.children[0] == Node(tag="NAME", value="John /Smith/")
    birth = john.children[2]
    assert birth.value is None
    assert [child.tag for child in birth.children] == ["DATE", "PLAC"]


def test_read_gedcom_folds_continuation_lines(gedcom_file: Path):
    note = read_gedcom(gedcom_file)[1].children[-1]

    assert note.tag == "NOTE"
    assert note.value == "First line\nsecond line continued"
    assert note.children == ()


def test_read_gedcom_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_gedcom(tmp_path / "missing.ged")


def test_write_csv_tables_uses_column_order(tmp_path: Path):
    table = Table(name="INDI")
    table.add_columns(["id"])
    table.add_row({"id": "@I1@", "NAME": "John"})
    table.add_row({"id": "@I2@", "SEX": "F"})
    empty = Table(name="PARENTS")
    empty.add_columns(["child", "parent"])

    report = write_csv_tables([table, empty], tmp_path / "out")

    assert report.ok
    assert sorted(report.written) == ["INDI", "PARENTS"]
    lines = (tmp_path / "out" / "INDI.csv").read_text(encoding="utf-8").splitlines()
    assert lines == ["id,NAME,SEX", "@I1@,John,", "@I2@,,F"]
    assert (tmp_path / "out" / "PARENTS.csv").read_text(encoding="utf-8").strip() == "child,parent"


def test_write_csv_tables_reports_failures_per_table(tmp_path: Path):
    good = Table(name="FAM")
    good.add_row({"id": "@F1@"})
    bad = Table(name="missing_dir/INDI")
    bad.add_row({"id": "@I1@"})

    report = write_csv_tables([bad, good], tmp_path)

    assert not report.ok
    assert list(report.failed) == ["missing_dir/INDI"]
    assert report.written == {"FAM": tmp_path / "FAM.csv"}
    assert (tmp_path / "FAM.csv").exists()


def test_cli_writes_relational_tables(gedcom_file: Path, tmp_path: Path):
    out_dir = tmp_path / "csv"

    assert main(["-i", str(gedcom_file), "-c", str(out_dir), "-p", "-n"]) == 0

    written = sorted(path.name for path in out_dir.glob("*.csv"))
    for name in ["FAM.csv", "FAM_INDI.csv", "INDI.csv", "INDI_FAM.csv", "OCCU.csv", "PARENTS.csv", "BIRT.csv"]:
        assert name in written

    fam_indi = pd.read_csv(out_dir / "FAM_INDI.csv")
    assert fam_indi.to_dict("records") == [{"FAM": "@F1@", "INDI": "@I3@"}]

    occu = pd.read_csv(out_dir / "OCCU.csv")
    assert occu.to_dict("records") == [{"id": "@gedcom-to-csv_generated_OCCU0@", "OCCU": "Farmer"}]

    birth = pd.read_csv(out_dir / "BIRT.csv")
    assert birth.loc[0, "DATE"] == "1776-07-04"

    parents = pd.read_csv(out_dir / "PARENTS.csv")
    assert parents.to_dict("records") == [
        {"child": "@I3@", "parent": "@I2@"},
        {"child": "@I3@", "parent": "@I1@"},
    ]


def test_cli_missing_input_fails(tmp_path: Path):
    assert main(["-i", str(tmp_path / "missing.ged")]) == 1


def test_read_gedcom_wraps_undecodable_file(tmp_path: Path):
    path = tmp_path / "latin1.ged"
    path.write_bytes(b"0 HEAD\n1 NOTE \xff\xfe\n0 TRLR\n")

    with pytest.raises(RuntimeError):
        read_gedcom(path)


def test_cli_directory_input_fails(tmp_path: Path):
    directory = tmp_path / "dir.ged"
    directory.mkdir()

    assert main(["-i", str(directory)]) == 1


def test_cli_undecodable_input_fails(tmp_path: Path, caplog):
    path = tmp_path / "latin1.ged"
    path.write_bytes(b"\xff\xfe")

    assert main(["-i", str(path)]) == 1
    assert "Failed to read input" in caplog.text


def test_cli_rdf_is_reported_but_not_fatal(gedcom_file: Path, tmp_path: Path, caplog):
    rdf_path = tmp_path / "family.rdf"
    out_dir = tmp_path / "csv"

    with caplog.at_level(logging.INFO):
        assert main(["-i", str(gedcom_file), "-r", str(rdf_path), "-c", str(out_dir)]) == 0

    assert "RDF output not yet supported" in caplog.text
    assert not rdf_path.exists()
    assert (out_dir / "INDI.csv").exists()


def test_cli_invalid_config_fails(gedcom_file: Path, tmp_path: Path):
    config_path = tmp_path / "convert.json"
    config_path.write_text('{"unknown": 1}', encoding="utf-8")

    assert main(["-i", str(gedcom_file), "--config", str(config_path)]) == 1
