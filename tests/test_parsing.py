"""Tests for date normalisation and GEDCOM import."""

import pytest

from database import fetch_owned_records, store_records
from parsing import extract_numeric_id, parse_date_string, read_gedcom, records_from_gedcom


@pytest.mark.parametrize(
    "text, expected",
    [
        ("25 NOV 1954", "1954-11-25"),
        ("1698", "1698-01-01"),
        ("ABOUT 1905", "1905-01-01"),
        ("JAN 1905", "1905-01-01"),
        ("(01-27-1920)", "1920-01-27"),
        ("(02 May1838)", "1838-05-02"),
        ("(04 05 1911)", "1911-04-05"),
        ("(1839-08-29)", "1839-08-29"),
        ("(SEPT. 17,1910)", "1910-09-17"),
        ("(Oct.12,1929)", "1929-10-12"),
        ("(May, 1837)", "1837-05-01"),
        ("(1789?)", "1789-01-01"),
        ("(About:1746-00-00)", "1746-01-01"),
        ("(11 Aug. 1968)", "1968-08-11"),
        ("(April 17, 1850)", "1850-04-17"),
    ],
)
def test_parse_date_string(text, expected):
    assert parse_date_string(text) == expected


@pytest.mark.parametrize("text", [None, "", "unknown", "31 FEB 1900", "13/45/1900", "BEF"])
def test_unparseable_dates(text):
    assert parse_date_string(text) is None


def test_extract_numeric_id():
    assert extract_numeric_id("@I_347421849@") == 347421849
    with pytest.raises(ValueError):
        extract_numeric_id("@F@")


def test_records_from_gedcom():
    individuals = [
        {"id": "1", "name": "John Smith", "sex": "M", "birth_date": "1 JAN 1900"},
        {"id": "2", "name": "Mary Jones", "sex": "F", "birth_date": "1902"},
        {"id": "3", "name": "Tom Smith", "sex": "M", "birth_date": "MAR 1930"},
        {"id": "4", "name": "Nameless", "sex": None, "birth_date": None},
        {"id": "5", "name": "Lee Smith", "sex": "U", "birth_date": "1935"},
    ]
    families = [
        {"husb": "1", "wife": "2", "children": ["3", "5"]},
        {"husb": None, "wife": "4", "children": ["1"]},
    ]
    records, warnings = records_from_gedcom(individuals, families, "alice")

    assert [(r.id, r.parent_id, r.spouse_id, r.gender) for r in records] == [
        ("alice:1", "alice:4", "alice:2", "male"),
        ("alice:2", None, "alice:1", "female"),
        ("alice:3", "alice:1", None, "male"),
        ("alice:5", "alice:1", None, "other"),
    ]
    assert records[2].date_of_birth == "1930-03-01"
    assert all(r.owner_id == "alice" for r in records)
    assert warnings == ["Skipped Nameless: no usable birth date"]


def test_same_gedcom_for_two_owners_keeps_ids_apart(conn):
    individuals = [{"id": "1", "name": "John Smith", "sex": "M", "birth_date": "1900"}]
    alice, _ = records_from_gedcom(individuals, [], "alice")
    bob, _ = records_from_gedcom(individuals, [], "bob")
    store_records(conn, alice)
    store_records(conn, bob)

    assert [r.id for r in fetch_owned_records(conn, "alice")] == ["alice:1"]
    assert [r.id for r in fetch_owned_records(conn, "bob")] == ["bob:1"]


def test_record_the_store_would_reject_is_skipped():
    individuals = [
        {"id": "1", "name": "John Smith", "sex": "M", "birth_date": "1900"},
        {"id": "2", "name": "Mary Smith", "sex": "F", "birth_date": "1925"},
    ]
    families = [{"husb": "1", "wife": "2", "children": ["2"]}]
    records, warnings = records_from_gedcom(individuals, families, "alice")

    assert [r.id for r in records] == ["alice:1"]
    assert warnings == ["Skipped Mary Smith: Parent and spouse must be different people."]


GEDCOM = """\
0 HEAD
1 SOUR TEST
1 GEDC
2 VERS 5.5.1
2 FORM LINEAGE-LINKED
1 CHAR UTF-8
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 1 JAN 1900
0 @I2@ INDI
1 NAME Mary /Jones/
1 SEX F
1 BIRT
2 DATE 1902
0 @I3@ INDI
1 NAME Tom /Smith/
1 SEX M
1 BIRT
2 DATE MAR 1930
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
0 TRLR
"""


def test_read_gedcom(tmp_path):
    path = tmp_path / "family.ged"
    path.write_text(GEDCOM, encoding="utf-8")
    individuals, families = read_gedcom(path)

    assert [i["id"] for i in individuals] == ["1", "2", "3"]
    assert individuals[0]["sex"] == "M"
    assert "Smith" in individuals[0]["name"]
    assert families == [{"husb": "1", "wife": "2", "children": ["3"]}]

    assert all(i["birth_date"] for i in individuals)


def test_qualifier_words_are_not_cut_short():
    assert parse_date_string("BEFORE 1900") == "1900-01-01"
    assert parse_date_string("AFTER MAR 1900") == "1900-03-01"
