"""Building a forest of tree nodes from a flat list of person records."""

from collections.abc import Iterable, Sequence

from models import PersonRecord, TreeNode


def index_records(records: Iterable[PersonRecord]) -> dict[str, PersonRecord]:
    """Map record id to record. The first record seen with an id wins."""
    lookup: dict[str, PersonRecord] = {}
    for record in records:
        lookup.setdefault(record.id, record)
    return lookup


def index_children(records: Iterable[PersonRecord]) -> dict[str, list[PersonRecord]]:
    """Map parent id to its child records, keeping input order."""
    children: dict[str, list[PersonRecord]] = {}
    for record in records:
        if record.parent_id:
            children.setdefault(record.parent_id, []).append(record)
    return children


def resolve_spouse(
    record: PersonRecord, lookup: dict[str, PersonRecord]
) -> PersonRecord | None:
    """Return the spouse record, or None when the id is empty or dangling."""
    if not record.spouse_id:
        return None
    return lookup.get(record.spouse_id)


def _expand(
    root: PersonRecord,
    lookup: dict[str, PersonRecord],
    children_by_parent: dict[str, list[PersonRecord]],
    visited: set[str],
) -> TreeNode:
    """
    Grow the subtree under `root` depth-first.

    Each child is marked visited before it is descended into, so a record is
    placed at most once even when parent references loop back on themselves.
    """
    top = TreeNode(member=root, spouse=resolve_spouse(root, lookup))
    stack = [(top, iter(children_by_parent.get(root.id, ())))]
    while stack:
        node, pending = stack[-1]
        for child in pending:
            if child.id in visited:
                continue
            visited.add(child.id)
            child_node = TreeNode(member=child, spouse=resolve_spouse(child, lookup))
            node.children.append(child_node)
            stack.append((child_node, iter(children_by_parent.get(child.id, ()))))
            break
        else:
            stack.pop()
    return top


def build_forest(
    records: Sequence[PersonRecord], promote_cycles: bool = False
) -> list[TreeNode]:
    """
    Build the forest of family trees for one owner's records.

    Roots are taken in two passes over the input order: first records with
    no parent, then orphans whose parent id does not resolve in the set.
    Records caught in a parent cycle with no root above them are left out,
    unless `promote_cycles` is set, in which case a third pass makes each
    still-unplaced record a root in input order.

    Args:
        records: The complete record set for a single owner
        promote_cycles: Promote records stuck in parent cycles to roots

    Returns:
        Forest roots in pass order; children keep input order
    """
    lookup = index_records(records)
    children_by_parent = index_children(records)
    visited: set[str] = set()
    forest: list[TreeNode] = []

    def plant(record: PersonRecord):
        visited.add(record.id)
        forest.append(_expand(record, lookup, children_by_parent, visited))

    # Pass 1: declared roots
    for record in records:
        if not record.parent_id and record.id not in visited:
            plant(record)

    # Pass 2: orphans whose parent is missing from the set
    for record in records:
        if record.id in visited or not record.parent_id:
            continue
        if record.parent_id not in lookup:
            plant(record)

    # Pass 3: break parent cycles that have no root above them
    if promote_cycles:
        for record in records:
            if record.id not in visited:
                plant(record)

    return forest


def unplaced_records(
    records: Sequence[PersonRecord], forest: Sequence[TreeNode]
) -> list[PersonRecord]:
    """Records that appear nowhere in `forest` as a member, in input order."""
    placed = {member.id for root in forest for member in root.iter_members()}
    seen: set[str] = set()
    missing = []
    for record in records:
        if record.id not in placed and record.id not in seen:
            missing.append(record)
        seen.add(record.id)
    return missing
