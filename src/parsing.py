"""GEDCOM import and date handling utilities."""

from datetime import date
from pathlib import Path
import re

from ged4py import GedcomReader

from database import RecordValidationError, validate_fields
from models import PersonRecord

# Month name mappings (handle abbreviations and full names)
MONTH_MAP = {
    "JAN": 1, "JANUARY": 1,
    "FEB": 2, "FEBRUARY": 2,
    "MAR": 3, "MARCH": 3,
    "APR": 4, "APRIL": 4,
    "MAY": 5,
    "JUN": 6, "JUNE": 6,
    "JUL": 7, "JULY": 7,
    "AUG": 8, "AUGUST": 8,
    "SEP": 9, "SEPT": 9, "SEPTEMBER": 9,
    "OCT": 10, "OCTOBER": 10,
    "NOV": 11, "NOVEMBER": 11,
    "DEC": 12, "DECEMBER": 12,
}

QUALIFIERS = re.compile(
    r"^(ABOUT|ABT\.?|BEFORE|BEF\.?|AFTER|AFT\.?|EST\.?|CAL\.?|CIRCA|CA\.?|AROUND):?\s*",
    re.IGNORECASE,
)

# (pattern, order of the captured groups); "M" may be a month name or number
DATE_PATTERNS = [
    (re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"), "YMD"),  # 1839-08-29
    (re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$"), "DMY"),  # 25 NOV 1954, 02 May1838
    (re.compile(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$"), "MDY"),  # April 17, 1850
    (re.compile(r"^([A-Za-z]+)\.?,?\s*(\d{4})$"), "MY"),  # NOV 1954, May, 1837
    (re.compile(r"^(\d{1,2})[-/\s](\d{1,2})[-/\s](\d{4})$"), "MDY"),  # 01/27/1920
    (re.compile(r"^(\d{4})$"), "Y"),  # 1698
]


def extract_numeric_id(xref_id: str) -> int:
    """Extract numeric part from GEDCOM xref_id like '@I_347421849@' or 'I674624289'."""
    digits = re.sub(r"[^0-9]", "", xref_id)
    if not digits:
        raise ValueError(f"No numeric ID found in: {xref_id}")
    return int(digits)


def _month(value: str) -> int | None:
    if value.isdigit():
        return int(value)
    return MONTH_MAP.get(value.upper().rstrip("."))


def parse_date_string(date_str: str | None) -> str | None:
    """
    Parse a free-form or GEDCOM date string into ISO format (YYYY-MM-DD).
    Missing month or day default to 1. Returns None if the date cannot be parsed.
    """
    if not date_str:
        return None

    s = date_str.strip().strip("()").rstrip("?")
    s = QUALIFIERS.sub("", s).strip()
    if not s:
        return None

    for pattern, order in DATE_PATTERNS:
        match = pattern.match(s)
        if not match:
            continue
        parts = dict(zip(order, match.groups()))
        year = int(parts["Y"])
        month = _month(parts["M"]) if "M" in parts else 1
        day = int(parts["D"]) if "D" in parts else 1
        # "00" placeholders mean unknown
        if month == 0:
            month = 1
        if day == 0:
            day = 1
        if month is None:
            return None
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return None

    return None


def extract_name(indi) -> str:
    """Extract the full display name from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return "Unknown"

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_rec.value, tuple):
        parts = [p for p in name_rec.value if p]
        return " ".join(parts) if parts else "Unknown"

    # Fallback: string format "Given /Surname/"
    return " ".join(str(name_rec.value).replace("/", " ").split()) or "Unknown"


def extract_event_date(indi, tag: str) -> str | None:
    """Extract the date text of an event tag (BIRT, DEAT, etc.)."""
    event = indi.sub_tag(tag)
    if event is None:
        return None
    date_rec = event.sub_tag("DATE")
    # ged4py may return DateValue objects
    return str(date_rec.value) if date_rec and date_rec.value else None


def read_gedcom(filepath: Path) -> tuple[list[dict], list[dict]]:
    """
    Read individuals and families from a GEDCOM file.
    Ignores non-standard Ancestry-specific tags (starting with _).

    Returns:
        (individuals, families) as plain dicts, in file order
    """
    individuals: list[dict] = []
    families: list[dict] = []

    with GedcomReader(str(filepath)) as reader:
        for rec in reader.records0("INDI"):
            if rec.xref_id is None:
                continue
            sex = rec.sub_tag("SEX")
            individuals.append(
                {
                    "id": str(extract_numeric_id(rec.xref_id)),
                    "name": extract_name(rec),
                    "sex": sex.value if sex else None,
                    "birth_date": extract_event_date(rec, "BIRT"),
                }
            )

        for rec in reader.records0("FAM"):
            if rec.xref_id is None:
                continue
            husb = rec.sub_tag("HUSB")
            wife = rec.sub_tag("WIFE")
            families.append(
                {
                    "husb": str(extract_numeric_id(husb.xref_id)) if husb and husb.xref_id else None,
                    "wife": str(extract_numeric_id(wife.xref_id)) if wife and wife.xref_id else None,
                    "children": [
                        str(extract_numeric_id(c.xref_id))
                        for c in rec.sub_tags("CHIL")
                        if c.xref_id
                    ],
                }
            )

    return individuals, families


def records_from_gedcom(
    individuals: list[dict], families: list[dict], owner_id: str
) -> tuple[list[PersonRecord], list[str]]:
    """
    Turn GEDCOM individuals and families into person records.

    A record holds a single parent reference, so the father of the first
    family listing the person as a child is used, or the mother when there is
    no father. The spouse is the partner in the first family the person heads.
    Individuals without a usable birth date, or whose record the store
    would reject, are skipped. Ids are prefixed with the owner so imports by
    different owners never share a row.

    Returns:
        (records, warnings)
    """

    def scoped(xref: str | None) -> str | None:
        return f"{owner_id}:{xref}" if xref else None

    parent_of: dict[str, str] = {}
    spouse_of: dict[str, str] = {}
    for fam in families:
        husb, wife = fam["husb"], fam["wife"]
        if husb and wife:
            spouse_of.setdefault(husb, wife)
            spouse_of.setdefault(wife, husb)
        parent = husb or wife
        if parent:
            for child in fam["children"]:
                parent_of.setdefault(child, parent)

    records: list[PersonRecord] = []
    warnings: list[str] = []
    for indi in individuals:
        birth = parse_date_string(indi.get("birth_date"))
        if birth is None:
            warnings.append(f"Skipped {indi['name']}: no usable birth date")
            continue
        sex = (indi.get("sex") or "").upper()
        record = PersonRecord(
            id=scoped(indi["id"]),
            name=indi["name"],
            date_of_birth=birth,
            gender={"M": "male", "F": "female"}.get(sex, "other"),
            owner_id=owner_id,
            parent_id=scoped(parent_of.get(indi["id"])),
            spouse_id=scoped(spouse_of.get(indi["id"])),
        )
        try:
            validate_fields(record)
        except RecordValidationError as e:
            warnings.append(f"Skipped {indi['name']}: {e}")
            continue
        records.append(record)
    return records, warnings
