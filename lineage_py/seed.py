"""Populate a read-model store from a JSON dump, or with a small demo family.

Dump format::

    {
      "persons": [{"id": ..., "given_name": ..., "gender": "male", ...}],
      "families": [{"id": ..., "partner1_id": ..., "partner2_id": ...}],
      "family_children": [{"family_id": ..., "person_id": ...}]
    }

Families are inserted in list order, which becomes their creation order.
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict
import json
import logging

from .models import FEMALE, MALE, Family, FamilyChild, Person

logger = logging.getLogger(__name__)


def load_dump(store, data: Dict[str, Any]) -> Dict[str, int]:
    """Insert persons, families and child links. Returns per-kind counts."""
    persons = [Person.from_dict(d) for d in data.get("persons", [])]
    families = [Family.from_dict(d) for d in data.get("families", [])]
    links = [FamilyChild.from_dict(d) for d in data.get("family_children", [])]

    by_id = {p.id: p for p in persons}
    for p in persons:
        store.add_person(p)
    for f in families:
        # fill denormalised partner names when the dump leaves them out
        if f.partner1_id and not f.partner1_name and f.partner1_id in by_id:
            f.partner1_name = by_id[f.partner1_id].full_name
        if f.partner2_id and not f.partner2_name and f.partner2_id in by_id:
            f.partner2_name = by_id[f.partner2_id].full_name
        f.child_count = 0
        store.add_family(f)
    for link in links:
        if not link.person_name and link.person_id in by_id:
            link.person_name = by_id[link.person_id].full_name
        store.add_family_child(link)

    counts = {"persons": len(persons), "families": len(families), "family_children": len(links)}
    logger.info("loaded %(persons)d persons, %(families)d families, %(family_children)d child links", counts)
    return counts


def load_json_file(store, path: Path) -> Dict[str, int]:
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at top level")
    return load_dump(store, data)


def _couple(store, husband: Person, wife: Person, marriage: str = "") -> Family:
    fam = Family(
        partner1_id=husband.id,
        partner1_name=husband.full_name,
        partner2_id=wife.id,
        partner2_name=wife.full_name,
        relationship_type="marriage",
        marriage_date_raw=marriage,
    )
    store.add_family(fam)
    return fam


def _child(store, fam: Family, child: Person, sequence: int) -> None:
    store.add_family_child(FamilyChild(family_id=fam.id, person_id=child.id, person_name=child.full_name, sequence=sequence))


def seed_demo(store) -> Dict[str, str]:
    """Create a three-generation Smith family and return name -> id."""
    people = {
        "george": Person(given_name="George", surname="Smith", gender=MALE, birth_date_raw="1 JAN 1940", birth_place="Springfield"),
        "martha": Person(given_name="Martha", surname="Brown", gender=FEMALE, birth_date_raw="ABT 1942"),
        "walter": Person(given_name="Walter", surname="Doe", gender=MALE, birth_date_raw="1938", death_date_raw="2010"),
        "john": Person(given_name="John", surname="Smith", gender=MALE, birth_date_raw="1 JAN 1970"),
        "jane": Person(given_name="Jane", surname="Doe", gender=FEMALE, birth_date_raw="1 JAN 1975"),
        "junior": Person(given_name="Junior", surname="Smith", gender=MALE, birth_date_raw="1 JAN 2000"),
        "jenny": Person(given_name="Jenny", surname="Smith", gender=FEMALE, birth_date_raw="1 JAN 2002"),
        "baby": Person(given_name="Baby", surname="Smith", gender=MALE, birth_date_raw="1 JAN 2025"),
    }
    for p in people.values():
        store.add_person(p)

    smith_brown = _couple(store, people["george"], people["martha"], "JUN 1965")
    _child(store, smith_brown, people["john"], 1)

    doe = Family(partner1_id=people["walter"].id, partner1_name=people["walter"].full_name)
    store.add_family(doe)
    _child(store, doe, people["jane"], 1)

    smith_doe = _couple(store, people["john"], people["jane"], "15 JUN 1995")
    _child(store, smith_doe, people["junior"], 1)
    _child(store, smith_doe, people["jenny"], 2)

    junior_fam = Family(partner1_id=people["junior"].id, partner1_name=people["junior"].full_name)
    store.add_family(junior_fam)
    _child(store, junior_fam, people["baby"], 1)

    logger.info("seeded demo family with %d persons", len(people))
    return {k: p.id for k, p in people.items()}
