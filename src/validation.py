"""Relationship validation for family member records."""

from collections.abc import Sequence

import networkx as nx

from forest import build_forest, index_records, unplaced_records
from graph import build_graph, parent_graph
from models import PersonRecord


def validate_records(
    records: Sequence[PersonRecord], promote_cycles: bool = False
) -> list[str]:
    """
    Validate a record set for:
    - Cycles in parent-child relationships
    - Records the tree cannot reach (caught in such a cycle)
    - Parent and spouse references that point nowhere
    - Spouse links that are not returned
    - Impossible ages (child born before parent, parent younger than 12)

    Pass the same `promote_cycles` used to build the displayed forest, so
    records promoted out of a cycle are not reported as hidden.

    Returns a list of warning messages.
    """
    warnings: list[str] = []
    lookup = index_records(records)
    G = build_graph(records)

    # Check for cycles
    for cycle in nx.simple_cycles(parent_graph(G)):
        names = [G.nodes[n]["person_name"] for n in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {names}")

    hidden = unplaced_records(records, build_forest(records, promote_cycles=promote_cycles))
    if hidden:
        names = [r.name for r in hidden]
        warnings.append(f"Not shown in the tree (no root above them): {names}")

    for record in lookup.values():
        if record.parent_id and record.parent_id not in lookup:
            warnings.append(f"Parent of {record.name} is missing; shown as a separate tree")
        if record.spouse_id and record.spouse_id not in lookup:
            warnings.append(f"Spouse of {record.name} is missing")
        elif record.spouse_id and record.spouse_id != record.id:
            spouse = lookup[record.spouse_id]
            if spouse.spouse_id != record.id:
                warnings.append(
                    f"{record.name} lists {spouse.name} as spouse, but not the other way round"
                )

    # Check for impossible ages
    # date_of_birth is ISO format (YYYY-MM-DD) which can be compared as strings
    for parent, child, data in G.edges(data=True):
        if data.get("relationship_type") != "PARENT_OF" or parent == child:
            continue

        parent_data = G.nodes[parent]
        child_data = G.nodes[child]
        parent_birth = parent_data.get("birth_date")
        child_birth = child_data.get("birth_date")
        if not parent_birth or not child_birth:
            continue

        if child_birth < parent_birth:
            warnings.append(
                f"Impossible: {child_data['person_name']} born before parent "
                f"{parent_data['person_name']}"
            )
            continue

        try:
            age_at_birth = lookup[parent].age(today=lookup[child].birth_date())
        except ValueError:
            continue
        if age_at_birth < 12:
            warnings.append(
                f"Suspicious: {parent_data['person_name']} was less than 12 years "
                f"old when {child_data['person_name']} was born"
            )

    return warnings
