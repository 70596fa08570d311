"""Edit authorization and the fetch, build and layout cycle for one user."""

from collections.abc import Callable
from enum import Enum
import sqlite3

from database import (
    StoreError,
    create_record,
    delete_record,
    fetch_owned_records,
    update_record,
)
from forest import build_forest
from layout import Layout, layout_forest
from models import PersonRecord, Session, TreeNode


class AuthorizationError(PermissionError):
    pass


def can_edit(session: Session, record: PersonRecord) -> bool:
    """Admins may edit anything; everyone else only the records they created."""
    return session.is_admin or session.owner_id == record.owner_id


class LoadState(Enum):
    NOT_LOADED = "not_loaded"
    LOADED = "loaded"
    FAILED = "failed"


class FamilyTreeView:
    """
    The family tree of the signed-in user.

    The forest is rebuilt from a fresh fetch after every successful mutation;
    it is never patched in place. A failed fetch leaves the view in the
    FAILED state with the error message kept for a retry and no records,
    forest or layout, which is distinct from a successful fetch that
    returned no records.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        session: Session,
        can_edit: Callable[[Session, PersonRecord], bool] = can_edit,
        promote_cycles: bool = False,
    ):
        self.conn = conn
        self.session = session
        self.can_edit = can_edit
        self.promote_cycles = promote_cycles
        self.state = LoadState.NOT_LOADED
        self.error: str | None = None
        self.records: list[PersonRecord] = []
        self.forest: list[TreeNode] = []
        self.layout: Layout | None = None

    @property
    def is_empty(self) -> bool:
        return self.state is LoadState.LOADED and not self.records

    def refresh(self) -> LoadState:
        """Fetch the owner's records and rebuild the forest and its layout."""
        try:
            records = fetch_owned_records(self.conn, self.session.owner_id)
        except StoreError as e:
            self.state = LoadState.FAILED
            self.error = str(e)
            self.records = []
            self.forest = []
            self.layout = None
            return self.state

        self.records = records
        self.forest = build_forest(records, promote_cycles=self.promote_cycles)
        self.layout = layout_forest(self.forest)
        self.state = LoadState.LOADED
        self.error = None
        return self.state

    def find(self, record_id: str) -> PersonRecord | None:
        return next((r for r in self.records if r.id == record_id), None)

    def editable(self, record: PersonRecord) -> bool:
        return self.can_edit(self.session, record)

    def _require_editable(self, record_id: str) -> PersonRecord:
        record = self.find(record_id)
        if record is None:
            raise KeyError(record_id)
        if not self.editable(record):
            raise AuthorizationError(f"{self.session.owner_id} may not edit {record.name}")
        return record

    def add_member(self, **values) -> PersonRecord:
        record = create_record(self.conn, self.session.owner_id, **values)
        self.refresh()
        return record

    def edit_member(self, record_id: str, **changes) -> PersonRecord:
        self._require_editable(record_id)
        record = update_record(self.conn, record_id, **changes)
        self.refresh()
        return record

    def delete_member(self, record_id: str):
        self._require_editable(record_id)
        delete_record(self.conn, record_id)
        self.refresh()

    def available_parents(self, editing: PersonRecord | None = None) -> list[PersonRecord]:
        """Records that may be picked as parent: anyone but the record itself."""
        return [r for r in self.records if editing is None or r.id != editing.id]

    def available_spouses(
        self, editing: PersonRecord | None = None, parent_id: str | None = None
    ) -> list[PersonRecord]:
        """Unpartnered records other than the record itself and its chosen parent."""
        return [
            r
            for r in self.records
            if (editing is None or r.id != editing.id)
            and r.id != parent_id
            and not r.spouse_id
        ]
