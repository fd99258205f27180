from datetime import date

import pytest

from lineage_py.ahnentafel import AhnentafelService, number_pedigree, relation_label
from lineage_py.errors import NotFoundError
from lineage_py.models import Person, MALE, FEMALE
from lineage_py.pedigree import PedigreeService

from helpers import add_people, add_family


def _service(store):
    return AhnentafelService(PedigreeService(store))


def test_full_three_generation_numbering(store):
    # Setup a small pedigree:
    #    D   E   F   G
    #     \ /     \ /
    #      B       C
    #       \     /
    #        A (root)
    p = {k: Person(given_name=k, gender=g) for k, g in (
        ("A", MALE), ("B", MALE), ("C", FEMALE), ("D", MALE), ("E", FEMALE), ("F", MALE), ("G", FEMALE))}
    add_people(store, *p.values())
    add_family(store, p["D"], p["E"], children=[p["B"]])
    add_family(store, p["F"], p["G"], children=[p["C"]])
    add_family(store, p["B"], p["C"], children=[p["A"]])

    res = _service(store).get_ahnentafel(p["A"].id, 3)
    mp = {e.id: e.number for e in res.entries}
    assert mp[p["A"].id] == 1
    assert mp[p["B"].id] == 2
    assert mp[p["C"].id] == 3
    assert mp[p["D"].id] == 4
    assert mp[p["E"].id] == 5
    assert mp[p["F"].id] == 6
    assert mp[p["G"].id] == 7
    assert [e.number for e in res.entries] == [1, 2, 3, 4, 5, 6, 7]
    assert res.total_entries == 7
    assert res.max_generation == 2


def test_unknown_mother_leaves_gap(store):
    subject = Person(given_name="Sub")
    father = Person(given_name="Pa", gender=MALE)
    add_people(store, subject, father)
    add_family(store, father, children=[subject])
    res = _service(store).get_ahnentafel(subject.id, 4)
    assert [e.number for e in res.entries] == [1, 2]
    assert res.total_entries == 2
    assert res.max_generation == 1


def test_unknown_grandparent_gaps(store):
    subject = Person(given_name="Sub")
    father = Person(given_name="Pa", gender=MALE)
    mother = Person(given_name="Ma", gender=FEMALE)
    pgm = Person(given_name="PatGran", gender=FEMALE)
    mgf = Person(given_name="MatGrandpa", gender=MALE)
    add_people(store, subject, father, mother, pgm, mgf)
    add_family(store, father, mother, children=[subject])
    add_family(store, pgm, children=[father])
    add_family(store, mgf, children=[mother])
    res = _service(store).get_ahnentafel(subject.id, 2)
    numbers = {e.number: e.id for e in res.entries}
    assert sorted(numbers) == [1, 2, 3, 5, 6]
    assert numbers[5] == pgm.id
    assert numbers[6] == mgf.id


def test_subject_only(store):
    p = Person(given_name="Alone", surname="Person")
    store.add_person(p)
    res = _service(store).get_ahnentafel(p.id, 4)
    assert len(res.entries) == 1
    assert res.subject.id == p.id
    assert res.known_count == 1
    assert res.max_generation == 0


def test_not_found(store):
    with pytest.raises(NotFoundError):
        _service(store).get_ahnentafel("missing", 4)


def test_number_pedigree_empty():
    assert number_pedigree(None) == []


@pytest.mark.parametrize(
    "n,label",
    [
        (1, ""),
        (2, "Father"),
        (3, "Mother"),
        (4, "Father's Father"),
        (5, "Father's Mother"),
        (6, "Mother's Father"),
        (7, "Mother's Mother"),
        (13, "Mother's Father's Mother"),
    ],
)
def test_relation_label(n, label):
    assert relation_label(n) == label


def test_to_dict(store):
    subject = Person(given_name="Sub", surname="Ject")
    father = Person(given_name="Pa", surname="Ject", gender=MALE, birth_date_raw="3 MAR 1901")
    add_people(store, subject, father)
    add_family(store, father, children=[subject])
    d = _service(store).get_ahnentafel(subject.id, 4).to_dict()
    assert d["subject"] == {"id": subject.id, "given_name": "Sub", "surname": "Ject"}
    assert [e["number"] for e in d["entries"]] == [1, 2]
    assert d["entries"][1]["relationship"] == "Father"
    assert d["entries"][1]["birth_date"]["day"] == 3
    assert d["total_entries"] == 2
    assert d["known_count"] == 2
    assert d["max_generation"] == 1


def test_render_text(store):
    subject = Person(given_name="Junior", surname="Smith")
    father = Person(given_name="John", surname="Smith", gender=MALE, birth_date_raw="1 JAN 1970", birth_place="Springfield")
    add_people(store, subject, father)
    add_family(store, father, children=[subject])
    svc = _service(store)
    text = svc.render_text(svc.get_ahnentafel(subject.id, 4), generated=date(2024, 5, 1))
    lines = text.splitlines()
    assert lines[0] == "AHNENTAFEL REPORT"
    assert "Subject: Junior Smith" in lines
    assert "1. Junior Smith" in lines
    assert "2. John Smith (Father)" in lines
    assert "   b. 1 JAN 1970, Springfield" in lines
    assert "   d. -" in lines
    assert "Generated: 2024-05-01" in lines
    assert "Total ancestors: 2" in lines
    assert "Generations: 1" in lines


def test_shared_ancestor_gets_both_numbers(store):
    a = Person(given_name="A", gender=MALE)
    b = Person(given_name="B", gender=MALE)
    c = Person(given_name="C", gender=FEMALE)
    g = Person(given_name="G", gender=MALE)
    add_people(store, a, b, c, g)
    add_family(store, g, children=[b, c])
    add_family(store, b, c, children=[a])
    res = _service(store).get_ahnentafel(a.id, 4)
    assert [(e.number, e.id) for e in res.entries] == [(1, a.id), (2, b.id), (3, c.id), (4, g.id), (6, g.id)]


def test_generation_clamping_matches_pedigree(store):
    people = [Person(given_name=f"P{i}", gender=MALE) for i in range(14)]
    add_people(store, *people)
    for child, father in zip(people, people[1:]):
        add_family(store, father, children=[child])
    svc = _service(store)
    for requested in (0, -2, None):
        res = svc.get_ahnentafel(people[0].id, requested)
        assert res.max_generation == 4
        assert res.total_entries == 5
    capped = svc.get_ahnentafel(people[0].id, 99)
    assert capped.max_generation == 10
    assert [e.number for e in capped.entries] == [2 ** k for k in range(11)]
