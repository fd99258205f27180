"""Pedigree (ancestor tree) queries.

Each node has at most one father and one mother, taken from the single
family in which the person is recorded as a child. Missing parents simply
leave the slot empty; a pedigree is sparse near the edge of known ancestry.

Partners of the family of origin are placed by gender: a male partner is
the father, a female partner the mother. Partners whose gender does not
decide (unknown, or two partners of the same gender) fill whichever slot is
still free, mother first.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
import logging

from .errors import NotFoundError
from .models import FEMALE, MALE, GenDate, Person
from .storage import RecordStore
from .traversal import check_cancelled, clamp_generations, drop_empty

logger = logging.getLogger(__name__)


@dataclass
class PedigreeNode:
    id: str
    given_name: str
    surname: str
    full_name: str
    gender: str
    generation: int
    birth_date: Optional[GenDate] = None
    birth_place: Optional[str] = None
    death_date: Optional[GenDate] = None
    death_place: Optional[str] = None
    father: Optional["PedigreeNode"] = None
    mother: Optional["PedigreeNode"] = None

    @staticmethod
    def from_person(person: Person, generation: int) -> "PedigreeNode":
        return PedigreeNode(
            id=person.id,
            given_name=person.given_name,
            surname=person.surname,
            full_name=person.full_name,
            gender=person.gender,
            generation=generation,
            birth_date=person.birth_date,
            birth_place=person.birth_place or None,
            death_date=person.death_date,
            death_place=person.death_place or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = drop_empty({
            "id": self.id,
            "given_name": self.given_name,
            "surname": self.surname,
            "full_name": self.full_name,
            "gender": self.gender,
            "birth_date": self.birth_date.to_dict() if self.birth_date else None,
            "birth_place": self.birth_place,
            "death_date": self.death_date.to_dict() if self.death_date else None,
            "death_place": self.death_place,
            "father": self.father.to_dict() if self.father else None,
            "mother": self.mother.to_dict() if self.mother else None,
        })
        d["generation"] = self.generation
        return d


@dataclass
class PedigreeResult:
    root: PedigreeNode
    total_ancestors: int
    max_generation: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root.to_dict(),
            "total_ancestors": self.total_ancestors,
            "max_generation": self.max_generation,
        }


def count_ancestors(node: PedigreeNode) -> Tuple[int, int]:
    """Return (number of nodes above `node`, deepest generation in the tree)."""
    total = 0
    deepest = node.generation
    for parent in (node.father, node.mother):
        if parent is None:
            continue
        sub_total, sub_deepest = count_ancestors(parent)
        total += 1 + sub_total
        deepest = max(deepest, sub_deepest)
    return total, deepest


class PedigreeService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def _root(self, person_id: str, cancel_event: Any) -> Person:
        check_cancelled(cancel_event)
        person = self.store.get_person(person_id)
        if person is None:
            raise NotFoundError(person_id)
        return person

    def get_pedigree(self, person_id: str, max_generations: Optional[int] = None, cancel_event: Any = None) -> PedigreeResult:
        max_gen = clamp_generations(max_generations)
        person = self._root(person_id, cancel_event)
        logger.info("pedigree query for %s (max_generations=%d)", person_id, max_gen)
        root = self._build_node(person, 0, max_gen, frozenset(), cancel_event)
        total, deepest = count_ancestors(root)
        logger.info("pedigree for %s: %d ancestors, %d generations", person_id, total, deepest)
        return PedigreeResult(root=root, total_ancestors=total, max_generation=deepest)

    def get_ancestors(self, person_id: str, max_generations: Optional[int] = None, cancel_event: Any = None) -> List[Person]:
        """Flat list of ancestors, depth first, father before mother."""
        max_gen = clamp_generations(max_generations)
        person = self._root(person_id, cancel_event)
        ancestors: List[Person] = []
        self._collect(person, 0, max_gen, frozenset(), cancel_event, ancestors)
        return ancestors

    def parents_of(self, person_id: str) -> Tuple[Optional[Person], Optional[Person]]:
        """Return (father, mother) from the person's family of origin."""
        family = self.store.child_family(person_id)
        if family is None:
            return None, None
        partners = []
        for pid in family.partner_ids():
            p = self.store.get_person(pid)
            if p is None:
                logger.debug("family %s references unknown partner %s", family.id, pid)
                continue
            partners.append(p)

        father: Optional[Person] = None
        mother: Optional[Person] = None
        undecided: List[Person] = []
        for p in partners:
            if p.gender == MALE and father is None:
                father = p
            elif p.gender == FEMALE and mother is None:
                mother = p
            else:
                undecided.append(p)
        for p in undecided:
            if mother is None:
                mother = p
            elif father is None:
                father = p
        return father, mother

    def _build_node(self, person: Person, generation: int, max_gen: int, path: FrozenSet[str], cancel_event: Any) -> PedigreeNode:
        check_cancelled(cancel_event)
        node = PedigreeNode.from_person(person, generation)
        if generation >= max_gen:
            return node

        path = path | {person.id}
        father, mother = self.parents_of(person.id)
        if father is not None:
            if father.id in path:
                logger.debug("cycle: %s is already below %s, father slot left empty", father.id, person.id)
            else:
                node.father = self._build_node(father, generation + 1, max_gen, path, cancel_event)
        if mother is not None:
            if mother.id in path:
                logger.debug("cycle: %s is already below %s, mother slot left empty", mother.id, person.id)
            else:
                node.mother = self._build_node(mother, generation + 1, max_gen, path, cancel_event)
        return node

    def _collect(self, person: Person, generation: int, max_gen: int, path: FrozenSet[str], cancel_event: Any, out: List[Person]) -> None:
        check_cancelled(cancel_event)
        if generation >= max_gen:
            return
        path = path | {person.id}
        for parent in self.parents_of(person.id):
            if parent is None or parent.id in path:
                continue
            out.append(parent)
            self._collect(parent, generation + 1, max_gen, path, cancel_event, out)
