"""Tests for edit authorization and the fetch and rebuild cycle."""

import pytest

from conftest import person
from database import StoreError, create_record
from models import Session
from session import AuthorizationError, FamilyTreeView, LoadState, can_edit

ALICE = Session(owner_id="alice")
ADMIN = Session(owner_id="root", is_admin=True)


def add(view, name, **extra):
    return view.add_member(name=name, date_of_birth="1960-01-01", gender="other", **extra)


def test_can_edit():
    record = person(1)
    assert can_edit(ALICE, record)
    assert can_edit(ADMIN, record)
    assert not can_edit(Session(owner_id="bob"), record)


def test_three_distinct_states(conn):
    view = FamilyTreeView(conn, ALICE)
    assert view.state is LoadState.NOT_LOADED
    assert not view.is_empty

    assert view.refresh() is LoadState.LOADED
    assert view.is_empty
    assert view.forest == []
    assert view.layout.is_empty

    conn.close()
    assert view.refresh() is LoadState.FAILED
    assert view.error
    assert not view.is_empty


def test_failed_refresh_drops_the_previous_tree(conn):
    view = FamilyTreeView(conn, ALICE)
    add(view, "Ann")
    assert view.forest

    conn.close()
    assert view.refresh() is LoadState.FAILED
    assert view.records == []
    assert view.forest == []
    assert view.layout is None


def test_mutations_rebuild_the_forest(conn):
    view = FamilyTreeView(conn, ALICE)
    view.refresh()
    ann = add(view, "Ann")
    kid = add(view, "Kid", parent_id=ann.id)
    assert [root.member.name for root in view.forest] == ["Ann"]
    assert [c.member.name for c in view.forest[0].children] == ["Kid"]

    view.edit_member(kid.id, parent_id=None)
    assert [root.member.name for root in view.forest] == ["Ann", "Kid"]

    view.delete_member(ann.id)
    assert [r.name for r in view.records] == ["Kid"]
    assert len(view.layout.boxes) == 1


def test_delete_of_parent_promotes_children(conn):
    view = FamilyTreeView(conn, ALICE)
    ann = add(view, "Ann")
    add(view, "Kid", parent_id=ann.id)
    view.delete_member(ann.id)
    assert [root.member.name for root in view.forest] == ["Kid"]


def test_edit_requires_permission(conn):
    theirs = create_record(conn, "alice", name="Ann", date_of_birth="1960-01-01", gender="female")
    strict = FamilyTreeView(conn, ALICE, can_edit=lambda session, record: False)
    strict.refresh()
    with pytest.raises(AuthorizationError):
        strict.edit_member(theirs.id, name="Anne")
    with pytest.raises(AuthorizationError):
        strict.delete_member(theirs.id)


def test_edit_of_unknown_record(conn):
    view = FamilyTreeView(conn, ALICE)
    view.refresh()
    with pytest.raises(KeyError):
        view.edit_member("missing", name="X")


def test_store_errors_propagate_from_mutations(conn):
    view = FamilyTreeView(conn, ALICE)
    view.refresh()
    conn.close()
    with pytest.raises(StoreError):
        add(view, "Ann")


def test_cycle_promotion_flag(conn):
    view = FamilyTreeView(conn, ALICE, promote_cycles=True)
    a = add(view, "A")
    b = add(view, "B", parent_id=a.id)
    view.edit_member(a.id, parent_id=b.id)
    assert [root.member.name for root in view.forest] == ["A"]

    plain = FamilyTreeView(conn, ALICE)
    plain.refresh()
    assert plain.forest == []
    assert len(plain.records) == 2


def test_form_choices(conn):
    view = FamilyTreeView(conn, ALICE)
    ann = add(view, "Ann")
    bob = add(view, "Bob", spouse_id=ann.id)
    cid = add(view, "Cid", parent_id=ann.id)
    dee = add(view, "Dee")

    assert [r.name for r in view.available_parents(editing=view.find(cid.id))] == ["Ann", "Bob", "Dee"]
    spouses = view.available_spouses(editing=view.find(cid.id), parent_id=ann.id)
    assert [r.name for r in spouses] == ["Dee"]
    assert bob.spouse_id == ann.id
    assert dee.id not in {r.id for r in view.available_spouses(editing=dee)}
