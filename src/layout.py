"""
Layout of a family forest as positioned boxes and connector lines.

Coordinates are in abstract card units with the origin at the top left and
y growing downwards. Each tree is laid out as its own block; blocks are
stacked vertically in forest order with a divider between them.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from models import PersonRecord, TreeNode

CARD_WIDTH = 2.0
CARD_HEIGHT = 1.0
SPOUSE_LINK = 0.5  # horizontal gap bridged by the spouse connector
SIBLING_GAP = 0.75  # horizontal gap between neighbouring subtrees
ROW_GAP = 1.0  # vertical gap between a parent row and its children row
BLOCK_GAP = 1.5  # vertical gap between two root blocks

ROW_HEIGHT = CARD_HEIGHT + ROW_GAP


@dataclass(frozen=True)
class Box:
    record_id: str
    name: str
    gender: str
    role: str  # member, spouse
    is_root: bool
    depth: int
    x: float  # left edge
    y: float  # top edge
    width: float = CARD_WIDTH
    height: float = CARD_HEIGHT

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2


@dataclass(frozen=True)
class Connector:
    kind: str  # spouse, drop, sibling_bar, tick, divider
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Block:
    root_id: str
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class Layout:
    boxes: tuple[Box, ...]
    connectors: tuple[Connector, ...]
    blocks: tuple[Block, ...]
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return not self.blocks


def unit_width(node: TreeNode) -> float:
    """Width of the member card, or of the member and spouse pair."""
    if node.spouse is None:
        return CARD_WIDTH
    return 2 * CARD_WIDTH + SPOUSE_LINK


def subtree_widths(root: TreeNode) -> dict[int, float]:
    """
    Width needed by every subtree under `root`, keyed by node identity.

    A subtree is as wide as its own unit or as its row of children plus the
    gaps between them, whichever is larger.
    """
    widths: dict[int, float] = {}
    stack = [(root, False)]
    while stack:
        node, children_done = stack.pop()
        if not children_done:
            stack.append((node, True))
            stack.extend((child, False) for child in node.children)
            continue
        row = sum(widths[id(child)] for child in node.children)
        row += SIBLING_GAP * max(len(node.children) - 1, 0)
        widths[id(node)] = max(unit_width(node), row)
    return widths


def _place_tree(root: TreeNode, top: float, boxes: list, connectors: list) -> float:
    """Lay out one tree with its top edge at `top`. Returns the block width."""
    widths = subtree_widths(root)
    stack = [(root, 0.0, 0)]
    while stack:
        node, left, depth = stack.pop()
        span = widths[id(node)]
        center = left + span / 2
        y = top + depth * ROW_HEIGHT

        unit_left = center - unit_width(node) / 2
        boxes.append(_box(node.member, "member", depth, unit_left, y))
        if node.spouse is not None:
            spouse_left = unit_left + CARD_WIDTH + SPOUSE_LINK
            boxes.append(_box(node.spouse, "spouse", depth, spouse_left, y))
            link_y = y + CARD_HEIGHT / 2
            connectors.append(
                Connector("spouse", unit_left + CARD_WIDTH, link_y, spouse_left, link_y)
            )

        if not node.children:
            continue

        row = sum(widths[id(child)] for child in node.children)
        row += SIBLING_GAP * (len(node.children) - 1)
        child_top = y + ROW_HEIGHT
        bar_y = y + CARD_HEIGHT + ROW_GAP / 2
        connectors.append(Connector("drop", center, y + CARD_HEIGHT, center, bar_y))

        child_left = center - row / 2
        centers = []
        placed = []
        for child in node.children:
            child_center = child_left + widths[id(child)] / 2
            centers.append(child_center)
            placed.append((child, child_left, depth + 1))
            child_left += widths[id(child)] + SIBLING_GAP

        if len(centers) > 1:
            connectors.append(Connector("sibling_bar", centers[0], bar_y, centers[-1], bar_y))
        for child_center in centers:
            connectors.append(Connector("tick", child_center, bar_y, child_center, child_top))

        # Reversed so children are visited left to right
        stack.extend(reversed(placed))

    return widths[id(root)]


def _box(record: PersonRecord, role: str, depth: int, x: float, y: float) -> Box:
    return Box(
        record_id=record.id,
        name=record.name,
        gender=record.gender,
        role=role,
        is_root=(depth == 0 and role == "member"),
        depth=depth,
        x=x,
        y=y,
    )


def layout_forest(forest: Sequence[TreeNode]) -> Layout:
    """
    Position every tree of the forest.

    The same forest always produces the same layout; the forest itself is
    only read.
    """
    boxes: list[Box] = []
    connectors: list[Connector] = []
    blocks: list[Block] = []

    top = 0.0
    for i, root in enumerate(forest):
        if i > 0:
            divider_y = top - BLOCK_GAP / 2
            connectors.append(Connector("divider", 0.0, divider_y, 0.0, divider_y))
        width = _place_tree(root, top, boxes, connectors)
        height = root.depth() * ROW_HEIGHT - ROW_GAP
        blocks.append(Block(root_id=root.member.id, top=top, width=width, height=height))
        top += height + BLOCK_GAP

    total_width = max((b.width for b in blocks), default=0.0)
    total_height = top - BLOCK_GAP if blocks else 0.0

    # Dividers span the widest block, known only once all blocks are placed
    connectors = [
        Connector(c.kind, 0.0, c.y1, total_width, c.y2) if c.kind == "divider" else c
        for c in connectors
    ]

    return Layout(
        boxes=tuple(boxes),
        connectors=tuple(connectors),
        blocks=tuple(blocks),
        width=total_width,
        height=total_height,
    )


def format_outline(forest: Sequence[TreeNode]) -> str:
    """
    Render the forest as indented text, one line per node.

    Roots are marked with `*`, spouses follow the member after `=`, and trees
    are separated by a blank line. An empty forest gives "(no members)".
    """
    if not forest:
        return "(no members)"

    lines: list[str] = []
    for i, root in enumerate(forest):
        if i > 0:
            lines.append("")
        stack = [(root, 0)]
        while stack:
            node, depth = stack.pop()
            marker = "* " if depth == 0 else "- "
            text = "    " * depth + marker + node.member.name
            if node.spouse is not None:
                text += f" = {node.spouse.name}"
            lines.append(text)
            stack.extend((child, depth + 1) for child in reversed(node.children))
    return "\n".join(lines)
