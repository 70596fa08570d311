"""Data classes for family tree entities."""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterator

GENDERS = ("male", "female", "other")


@dataclass(frozen=True)
class PersonRecord:
    id: str
    name: str
    date_of_birth: str  # ISO format YYYY-MM-DD
    gender: str  # male, female, other
    owner_id: str
    parent_id: str | None = None
    spouse_id: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    occupation: str | None = None
    bio: str | None = None
    image_ref: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def birth_date(self) -> date:
        return date.fromisoformat(self.date_of_birth)

    def age(self, today: date | None = None) -> int:
        """Whole years since birth, counting the birthday only once it has passed."""
        today = today or date.today()
        born = self.birth_date()
        years = today.year - born.year
        if (today.month, today.day) < (born.month, born.day):
            years -= 1
        return years


@dataclass
class TreeNode:
    member: PersonRecord
    children: list["TreeNode"] = field(default_factory=list)
    spouse: PersonRecord | None = None

    def iter_members(self) -> Iterator[PersonRecord]:
        """Yield the member of this node and of every descendant, pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node.member
            stack.extend(reversed(node.children))

    def depth(self) -> int:
        """Number of rows in this subtree (a leaf has depth 1)."""
        deepest = 0
        stack = [(self, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((child, level + 1) for child in node.children)
        return deepest


@dataclass(frozen=True)
class Session:
    owner_id: str
    is_admin: bool = False
