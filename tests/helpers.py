from lineage_py.models import Family, FamilyChild, Person


def add_people(store, *people):
    for p in people:
        store.add_person(p)


def add_family(store, partner1=None, partner2=None, children=(), marriage=""):
    fam = Family(
        partner1_id=partner1.id if partner1 else None,
        partner1_name=partner1.full_name if partner1 else "",
        partner2_id=partner2.id if partner2 else None,
        partner2_name=partner2.full_name if partner2 else "",
        marriage_date_raw=marriage,
    )
    store.add_family(fam)
    for c in children:
        store.add_family_child(FamilyChild(family_id=fam.id, person_id=c.id, person_name=c.full_name))
    return fam


def chain(store, length):
    """Create a single line of descent of `length` persons; returns them root first."""
    people = [Person(given_name=f"G{i}", surname="Line") for i in range(length)]
    add_people(store, *people)
    for parent, child in zip(people, people[1:]):
        add_family(store, parent, children=[child])
    return people
