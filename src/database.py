"""SQLite record store for family member records."""

from dataclasses import asdict, fields, replace
from datetime import date, datetime, timezone
from pathlib import Path
import sqlite3
import uuid

from models import GENDERS, PersonRecord

COLUMNS = tuple(f.name for f in fields(PersonRecord))
EDITABLE = tuple(c for c in COLUMNS if c not in ("id", "owner_id", "created_at", "updated_at"))


class StoreError(Exception):
    """The record store could not complete an operation."""


class RecordNotFoundError(StoreError):
    pass


class RecordValidationError(ValueError):
    """A record was rejected before being written."""


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Create SQLite database with the person table."""
    try:
        conn = sqlite3.connect(db_path)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS person (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                date_of_birth TEXT NOT NULL,
                gender TEXT NOT NULL,
                owner_id TEXT NOT NULL,
                parent_id TEXT,
                spouse_id TEXT,
                email TEXT,
                phone TEXT,
                address TEXT,
                occupation TEXT,
                bio TEXT,
                image_ref TEXT,
                created_at TEXT,
                updated_at TEXT
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS person_owner ON person (owner_id)")
        conn.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Could not open database {db_path}: {e}") from e
    return conn


def validate_fields(record: PersonRecord, today: date | None = None):
    """Reject records that would break the stored schema."""
    if not record.name or not record.name.strip():
        raise RecordValidationError("Name is required.")
    if not record.date_of_birth:
        raise RecordValidationError("Date of birth is required.")
    try:
        born = date.fromisoformat(record.date_of_birth)
    except ValueError:
        raise RecordValidationError(
            f"Date of birth must be YYYY-MM-DD, got {record.date_of_birth!r}."
        ) from None
    if born > (today or date.today()):
        raise RecordValidationError("Date of birth cannot be in the future.")
    if record.gender not in GENDERS:
        raise RecordValidationError(f"Gender must be one of {', '.join(GENDERS)}.")
    if record.parent_id and record.parent_id == record.id:
        raise RecordValidationError("A person cannot be their own parent.")
    if record.spouse_id and record.spouse_id == record.id:
        raise RecordValidationError("A person cannot be their own spouse.")
    if record.parent_id and record.parent_id == record.spouse_id:
        raise RecordValidationError("Parent and spouse must be different people.")


def _clean(value):
    # Blank optional fields are stored as NULL
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def record_from_row(row: sqlite3.Row | tuple) -> PersonRecord:
    """Build a record from a row in COLUMNS order, filling in legacy gaps."""
    data = dict(zip(COLUMNS, row))
    if data.get("gender") not in GENDERS:
        data["gender"] = "other"
    return PersonRecord(**data)


def _rollback(conn: sqlite3.Connection):
    try:
        conn.rollback()
    except sqlite3.ProgrammingError:
        pass  # connection already closed


def _execute(conn: sqlite3.Connection, sql: str, params=()) -> sqlite3.Cursor:
    try:
        cursor = conn.execute(sql, params)
        conn.commit()
    except sqlite3.Error as e:
        _rollback(conn)
        raise StoreError(str(e)) from e
    return cursor


def fetch_owned_records(conn: sqlite3.Connection, owner_id: str) -> list[PersonRecord]:
    """Return every record owned by `owner_id`, in insertion order."""
    try:
        rows = conn.execute(
            f"SELECT {', '.join(COLUMNS)} FROM person WHERE owner_id = ? ORDER BY rowid",
            (owner_id,),
        ).fetchall()
    except sqlite3.Error as e:
        raise StoreError(f"Could not fetch records for {owner_id}: {e}") from e
    return [record_from_row(row) for row in rows]


def get_record(conn: sqlite3.Connection, record_id: str) -> PersonRecord:
    try:
        row = conn.execute(
            f"SELECT {', '.join(COLUMNS)} FROM person WHERE id = ?", (record_id,)
        ).fetchone()
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e
    if row is None:
        raise RecordNotFoundError(f"No record with id {record_id}")
    return record_from_row(row)


def store_records(conn: sqlite3.Connection, records: list[PersonRecord]):
    """
    Insert or replace records as given (used for imports).

    A row may only be replaced by a record with the same owner; the whole
    batch is refused otherwise.
    """
    for record in records:
        validate_fields(record)
    try:
        for record in records:
            row = conn.execute(
                "SELECT owner_id FROM person WHERE id = ?", (record.id,)
            ).fetchone()
            if row is not None and row[0] != record.owner_id:
                raise StoreError(f"Record {record.id} belongs to another owner")
        conn.executemany(
            f"INSERT OR REPLACE INTO person ({', '.join(COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in COLUMNS)})",
            [tuple(asdict(r)[c] for c in COLUMNS) for r in records],
        )
        conn.commit()
    except sqlite3.Error as e:
        _rollback(conn)
        raise StoreError(str(e)) from e


def create_record(conn: sqlite3.Connection, owner_id: str, **values) -> PersonRecord:
    """
    Validate and insert a new record owned by `owner_id`.

    Args:
        conn: Open database connection
        owner_id: The creating user
        **values: Any of the editable PersonRecord fields

    Returns:
        The stored record with its generated id and timestamps
    """
    unknown = set(values) - set(EDITABLE)
    if unknown:
        raise RecordValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    stamp = _now()
    data = {c: _clean(values.get(c)) for c in EDITABLE}
    record = PersonRecord(
        id=uuid.uuid4().hex, owner_id=owner_id, created_at=stamp, updated_at=stamp, **data
    )
    validate_fields(record)
    _execute(
        conn,
        f"INSERT INTO person ({', '.join(COLUMNS)}) VALUES ({', '.join('?' for _ in COLUMNS)})",
        tuple(asdict(record)[c] for c in COLUMNS),
    )
    return record


def update_record(conn: sqlite3.Connection, record_id: str, **changes) -> PersonRecord:
    """Apply `changes` to an existing record. Ownership never changes."""
    unknown = set(changes) - set(EDITABLE)
    if unknown:
        raise RecordValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    current = get_record(conn, record_id)
    updated = replace(
        current, updated_at=_now(), **{k: _clean(v) for k, v in changes.items()}
    )
    validate_fields(updated)

    assignments = ", ".join(f"{c} = ?" for c in EDITABLE + ("updated_at",))
    params = tuple(asdict(updated)[c] for c in EDITABLE + ("updated_at",))
    _execute(conn, f"UPDATE person SET {assignments} WHERE id = ?", params + (record_id,))
    return updated


def delete_record(conn: sqlite3.Connection, record_id: str):
    """
    Delete a record. References to it held by other records are left alone;
    their children are promoted as orphans on the next build.
    """
    cursor = _execute(conn, "DELETE FROM person WHERE id = ?", (record_id,))
    if cursor.rowcount == 0:
        raise RecordNotFoundError(f"No record with id {record_id}")


def resolve_image(media_root: Path, image_ref: str | None) -> Path | None:
    """Resolve an opaque image reference to a file under `media_root`."""
    if not image_ref:
        return None
    root = media_root.resolve()
    candidate = (root / image_ref).resolve()
    if not candidate.is_relative_to(root) or not candidate.is_file():
        return None
    return candidate
