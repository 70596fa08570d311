"""NetworkX relationship graph built from person records."""

from collections.abc import Sequence

import networkx as nx

from forest import index_records
from models import PersonRecord


def build_graph(records: Sequence[PersonRecord]) -> nx.DiGraph:
    """
    Build a directed graph of the records.

    PARENT_OF edges go from parent to child and SPOUSE_OF edges from a record
    to the spouse it names. References that do not resolve are left out.
    """
    G = nx.DiGraph()
    lookup = index_records(records)

    # Note: use 'person_name' instead of 'name' to avoid conflict with pydot
    for record in lookup.values():
        G.add_node(
            record.id,
            person_name=record.name,
            gender=record.gender,
            birth_date=record.date_of_birth,
        )

    for record in lookup.values():
        if record.parent_id in lookup:
            G.add_edge(record.parent_id, record.id, relationship_type="PARENT_OF")

    # Spouse edges never replace a parent edge between the same pair
    for record in lookup.values():
        if record.spouse_id not in lookup or record.spouse_id == record.id:
            continue
        if not G.has_edge(record.id, record.spouse_id):
            G.add_edge(record.id, record.spouse_id, relationship_type="SPOUSE_OF")

    return G


def parent_graph(G: nx.DiGraph) -> nx.DiGraph:
    """The subgraph of G holding only PARENT_OF edges (all nodes kept)."""
    H = nx.DiGraph()
    H.add_nodes_from(G.nodes(data=True))
    H.add_edges_from(
        (u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == "PARENT_OF"
    )
    return H
