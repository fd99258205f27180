"""Descendancy (descendant tree) queries.

Starting from a person, every family where that person is a partner is
expanded: the other partner becomes a spouse entry of the node and every
child link becomes a child node one generation further down. Expansion
stops at the (clamped) generation bound.

Cycle safety is per path: a person may show up in two unrelated branches
(for instance through two marriage lines) but never below themselves. When
a child is already on the path from the root to the current node the child
is left out instead of raising, so cyclic source data degrades to a
truncated tree.

API:
    DescendancyService(store).get_descendancy(person_id, max_generations=4)
        -> DescendancyResult(root, total_descendants, max_generation)
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
import logging

from .errors import NotFoundError
from .models import Family, GenDate, Person
from .storage import RecordStore
from .traversal import check_cancelled, clamp_generations, drop_empty

logger = logging.getLogger(__name__)


@dataclass
class Spouse:
    id: str
    name: str
    marriage_date: Optional[GenDate] = None

    def to_dict(self) -> Dict[str, Any]:
        return drop_empty({
            "id": self.id,
            "name": self.name,
            "marriage_date": self.marriage_date.to_dict() if self.marriage_date else None,
        })


@dataclass
class DescendancyNode:
    id: str
    given_name: str
    surname: str
    full_name: str
    gender: str
    generation: int
    birth_date: Optional[GenDate] = None
    death_date: Optional[GenDate] = None
    spouses: List[Spouse] = field(default_factory=list)
    children: List["DescendancyNode"] = field(default_factory=list)

    @staticmethod
    def from_person(person: Person, generation: int) -> "DescendancyNode":
        return DescendancyNode(
            id=person.id,
            given_name=person.given_name,
            surname=person.surname,
            full_name=person.full_name,
            gender=person.gender,
            generation=generation,
            birth_date=person.birth_date,
            death_date=person.death_date,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = drop_empty({
            "id": self.id,
            "given_name": self.given_name,
            "surname": self.surname,
            "full_name": self.full_name,
            "gender": self.gender,
            "birth_date": self.birth_date.to_dict() if self.birth_date else None,
            "death_date": self.death_date.to_dict() if self.death_date else None,
        })
        d["generation"] = self.generation
        d["spouses"] = [s.to_dict() for s in self.spouses]
        d["children"] = [c.to_dict() for c in self.children]
        return d


@dataclass
class DescendancyResult:
    root: DescendancyNode
    total_descendants: int
    max_generation: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root.to_dict(),
            "total_descendants": self.total_descendants,
            "max_generation": self.max_generation,
        }


def count_descendants(node: DescendancyNode) -> Tuple[int, int]:
    """Return (number of nodes below `node`, deepest generation in the tree)."""
    total = 0
    deepest = node.generation
    for child in node.children:
        sub_total, sub_deepest = count_descendants(child)
        total += 1 + sub_total
        deepest = max(deepest, sub_deepest)
    return total, deepest


class DescendancyService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def get_descendancy(self, person_id: str, max_generations: Optional[int] = None, cancel_event: Any = None) -> DescendancyResult:
        max_gen = clamp_generations(max_generations)
        check_cancelled(cancel_event)
        person = self.store.get_person(person_id)
        if person is None:
            raise NotFoundError(person_id)

        logger.info("descendancy query for %s (max_generations=%d)", person_id, max_gen)
        root = self._build_node(person, 0, max_gen, frozenset(), cancel_event)
        total, deepest = count_descendants(root)
        logger.info("descendancy for %s: %d descendants, %d generations", person_id, total, deepest)
        return DescendancyResult(root=root, total_descendants=total, max_generation=deepest)

    def _build_node(self, person: Person, generation: int, max_gen: int, path: FrozenSet[str], cancel_event: Any) -> DescendancyNode:
        check_cancelled(cancel_event)
        node = DescendancyNode.from_person(person, generation)
        # each branch gets its own copy of the path
        path = path | {person.id}

        for family in self.store.families_for_person(person.id):
            spouse = self._spouse_of(family, person.id)
            if spouse is not None:
                node.spouses.append(spouse)

            if generation >= max_gen:
                continue

            for link in self.store.family_children(family.id):
                if link.person_id in path:
                    logger.debug("cycle: %s is already an ancestor of %s, branch truncated", link.person_id, person.id)
                    continue
                child = self.store.get_person(link.person_id)
                if child is None:
                    logger.debug("family %s lists unknown child %s", family.id, link.person_id)
                    continue
                node.children.append(self._build_node(child, generation + 1, max_gen, path, cancel_event))
        return node

    def _spouse_of(self, family: Family, person_id: str) -> Optional[Spouse]:
        other = family.other_partner(person_id)
        if other is None:
            return None
        spouse_id, name = other
        if not name:
            # partner names are denormalised; fall back to the person record
            spouse = self.store.get_person(spouse_id)
            name = spouse.full_name if spouse else ""
        return Spouse(id=spouse_id, name=name, marriage_date=family.marriage_date)
