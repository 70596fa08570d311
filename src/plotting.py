"""Visualization functions for family forests."""

from collections.abc import Sequence
from datetime import date
from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch
import pydot

from layout import Layout
from models import TreeNode

FILL_COLORS = {"male": "lightblue", "female": "lightpink"}
DEFAULT_FILL = "lightgray"

LINE_STYLES = {
    "spouse": {"color": "darkgray", "linewidth": 1.5},
    "drop": {"color": "gray", "linewidth": 1.0},
    "sibling_bar": {"color": "gray", "linewidth": 1.0},
    "tick": {"color": "gray", "linewidth": 1.0},
    "divider": {"color": "lightgray", "linewidth": 1.0, "linestyle": "--"},
}


def fill_color(gender: str | None) -> str:
    return FILL_COLORS.get(gender or "", DEFAULT_FILL)


def plot_layout(
    layout: Layout,
    output_path: Path | None = None,
    ages: dict[str, int] | None = None,
):
    """
    Draw a laid-out family forest with matplotlib.

    Root members get a thicker outline and a star. An empty layout draws a
    "No family members yet" placeholder instead of a tree.

    Args:
        layout: Result of layout.layout_forest
        output_path: Path to save the image (format from the suffix). If None, displays interactively.
        ages: Optional record id -> age, shown under each name
    """
    ages = ages or {}
    width = max(layout.width, 4.0)
    height = max(layout.height, 2.0)
    fig, ax = plt.subplots(figsize=(min(2 + width * 0.8, 60), min(2 + height * 0.8, 60)))

    if layout.is_empty:
        ax.text(width / 2, height / 2, "No family members yet", ha="center", va="center",
                fontsize=14, color="gray")

    for c in layout.connectors:
        ax.plot([c.x1, c.x2], [c.y1, c.y2], zorder=1, **LINE_STYLES.get(c.kind, {}))

    for box in layout.boxes:
        ax.add_patch(
            FancyBboxPatch(
                (box.x, box.y),
                box.width,
                box.height,
                boxstyle="round,pad=0.02,rounding_size=0.15",
                facecolor=fill_color(box.gender),
                edgecolor="black" if box.is_root else "dimgray",
                linewidth=2.0 if box.is_root else 0.8,
                zorder=2,
            )
        )
        label = f"★ {box.name}" if box.is_root else box.name
        if box.record_id in ages:
            label += f"\n{ages[box.record_id]} yrs"
        ax.text(box.center_x, box.y + box.height / 2, label, ha="center", va="center",
                fontsize=8, zorder=3)

    ax.set_xlim(-0.5, width + 0.5)
    ax.set_ylim(height + 0.5, -0.5)  # top-down, ancestors at top
    ax.set_aspect("equal")
    ax.axis("off")
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        print(f"Tree saved to {output_path}")
    else:
        plt.show()


def ages_for(forest: Sequence[TreeNode], today: date | None = None) -> dict[str, int]:
    """Age of every member and spouse shown in the forest, keyed by record id."""
    ages: dict[str, int] = {}
    stack = list(forest)
    while stack:
        node = stack.pop()
        for record in (node.member, node.spouse):
            if record is None or record.id in ages:
                continue
            try:
                ages[record.id] = record.age(today)
            except ValueError:
                pass  # unparseable date: show the name only
        stack.extend(node.children)
    return ages


def forest_to_dot(forest: Sequence[TreeNode]) -> pydot.Dot:
    """
    Build a Graphviz graph of the forest.

    Spouse pairs share a rank=same subgraph and a point-shaped family node
    that the children hang from. A spouse gets its own DOT node per
    appearance, since the same record may also be a member elsewhere.
    """
    P = pydot.Dot(graph_type="digraph")
    P.set("rankdir", "TB")  # Top-to-bottom (ancestors at top)
    P.set("splines", "ortho")  # Orthogonal edges for cleaner tree look
    P.set("nodesep", "0.4")  # Horizontal spacing between nodes
    P.set("ranksep", "0.6")  # Vertical spacing between ranks

    def person_node(name: str, record, is_root: bool) -> pydot.Node:
        return pydot.Node(
            name,
            label=record.name,
            shape="box",
            style="rounded,filled,bold" if is_root else "rounded,filled",
            fillcolor=fill_color(record.gender),
            fontsize="10",
        )

    stack = [(root, None, True) for root in reversed(forest)]
    couple = 0
    while stack:
        node, parent_anchor, is_root = stack.pop()
        member_name = f"p_{node.member.id}"
        P.add_node(person_node(member_name, node.member, is_root))
        if parent_anchor is not None:
            P.add_edge(pydot.Edge(parent_anchor, member_name, color="darkgray"))

        anchor = member_name
        if node.spouse is not None:
            spouse_name = f"s_{node.member.id}_{node.spouse.id}"
            family_name = f"f_{node.member.id}"
            P.add_node(person_node(spouse_name, node.spouse, False))
            P.add_node(pydot.Node(family_name, shape="point", width="0.1", height="0.1", label=""))
            P.add_edge(pydot.Edge(member_name, family_name, dir="none", color="darkgray"))
            P.add_edge(pydot.Edge(spouse_name, family_name, dir="none", color="darkgray"))

            sg = pydot.Subgraph(f"couple_{couple}", rank="same")
            sg.add_node(pydot.Node(member_name))
            sg.add_node(pydot.Node(spouse_name))
            P.add_subgraph(sg)
            couple += 1
            anchor = family_name

        stack.extend((child, anchor, False) for child in reversed(node.children))

    return P


def write_dot(forest: Sequence[TreeNode], output_path: Path):
    """Write the forest as raw DOT text (no Graphviz install needed)."""
    forest_to_dot(forest).write(str(output_path), format="raw")
