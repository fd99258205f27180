"""Ahnentafel (Sosa) numbering of a pedigree.

The subject is number 1; the father of person N is 2N and the mother 2N+1.
The pedigree tree is produced by a `PedigreeService` handed to the
constructor, then flattened breadth first and sorted by number. Unknown
ancestors leave gaps in the numbering, which is how the scheme works and
not an error.

API:
    AhnentafelService(pedigree).get_ahnentafel(person_id, max_generations=4)
        -> AhnentafelResult(entries, total_entries, max_generation)
    relation_label(number) -> "Father's Mother" style label
    AhnentafelService.render_text(result) -> plain-text report
"""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Deque, Dict, List, Optional, Tuple
import logging

from .models import GenDate
from .pedigree import PedigreeNode, PedigreeService
from .templating import render_template
from .traversal import drop_empty

logger = logging.getLogger(__name__)


def relation_label(number: int) -> str:
    """Relationship of ancestor `number` to the subject ('' for the subject)."""
    if number <= 1:
        return ""
    path: List[str] = []
    n = number
    while n > 1:
        path.append("Father" if n % 2 == 0 else "Mother")
        n //= 2
    path.reverse()
    return "'s ".join(path)


def event_line(prefix: str, when: Optional[GenDate], place: Optional[str]) -> str:
    date_str = str(when) if when else "-"
    if place:
        return f"{prefix} {date_str}, {place}"
    return f"{prefix} {date_str}"


@dataclass
class AhnentafelEntry:
    number: int
    generation: int
    id: str
    given_name: str
    surname: str
    full_name: str = ""
    gender: str = ""
    birth_date: Optional[GenDate] = None
    birth_place: Optional[str] = None
    death_date: Optional[GenDate] = None
    death_place: Optional[str] = None

    @property
    def relationship(self) -> str:
        return relation_label(self.number)

    @staticmethod
    def from_node(node: PedigreeNode, number: int) -> "AhnentafelEntry":
        return AhnentafelEntry(
            number=number,
            generation=node.generation,
            id=node.id,
            given_name=node.given_name,
            surname=node.surname,
            full_name=node.full_name,
            gender=node.gender,
            birth_date=node.birth_date,
            birth_place=node.birth_place,
            death_date=node.death_date,
            death_place=node.death_place,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {"number": self.number, "generation": self.generation}
        d.update(drop_empty({
            "relationship": self.relationship,
            "id": self.id,
            "given_name": self.given_name,
            "surname": self.surname,
            "full_name": self.full_name,
            "gender": self.gender,
            "birth_date": self.birth_date.to_dict() if self.birth_date else None,
            "birth_place": self.birth_place,
            "death_date": self.death_date.to_dict() if self.death_date else None,
            "death_place": self.death_place,
        }))
        return d


@dataclass
class AhnentafelResult:
    entries: List[AhnentafelEntry] = field(default_factory=list)
    total_entries: int = 0
    max_generation: int = 0

    @property
    def subject(self) -> Optional[AhnentafelEntry]:
        for e in self.entries:
            if e.number == 1:
                return e
        return None

    @property
    def known_count(self) -> int:
        return sum(1 for e in self.entries if e.id)

    def to_dict(self) -> Dict[str, Any]:
        subject = self.subject
        return {
            "subject": {"id": subject.id, "given_name": subject.given_name, "surname": subject.surname} if subject else None,
            "entries": [e.to_dict() for e in self.entries],
            "total_entries": self.total_entries,
            "known_count": self.known_count,
            "max_generation": self.max_generation,
        }


def number_pedigree(root: Optional[PedigreeNode]) -> List[AhnentafelEntry]:
    """Flatten a pedigree tree into entries sorted by Ahnentafel number."""
    if root is None:
        return []
    entries: List[AhnentafelEntry] = []
    q: Deque[Tuple[PedigreeNode, int]] = deque([(root, 1)])
    while q:
        node, number = q.popleft()
        entries.append(AhnentafelEntry.from_node(node, number))
        if node.father is not None:
            q.append((node.father, 2 * number))
        if node.mother is not None:
            q.append((node.mother, 2 * number + 1))
    entries.sort(key=lambda e: e.number)
    return entries


class AhnentafelService:
    def __init__(self, pedigree: PedigreeService) -> None:
        self.pedigree = pedigree

    def get_ahnentafel(self, person_id: str, max_generations: Optional[int] = None, cancel_event: Any = None) -> AhnentafelResult:
        tree = self.pedigree.get_pedigree(person_id, max_generations, cancel_event=cancel_event)
        entries = number_pedigree(tree.root)
        max_gen = max((e.generation for e in entries), default=0)
        logger.info("ahnentafel for %s: %d entries, %d generations", person_id, len(entries), max_gen)
        return AhnentafelResult(entries=entries, total_entries=len(entries), max_generation=max_gen)

    @staticmethod
    def render_text(result: AhnentafelResult, generated: Optional[date] = None) -> str:
        rows = [
            {
                "number": e.number,
                "name": f"{e.given_name} {e.surname}".strip(),
                "relationship": e.relationship,
                "birth": event_line("b.", e.birth_date, e.birth_place),
                "death": event_line("d.", e.death_date, e.death_place),
            }
            for e in result.entries
        ]
        subject = result.subject
        ctx = {
            "subject": f"{subject.given_name} {subject.surname}".strip() if subject else "",
            "entries": rows,
            "generated": (generated or date.today()).isoformat(),
            "total": result.total_entries,
            "generations": result.max_generation,
        }
        return render_template("ahnentafel.txt", ctx)
