"""Read-model record stores.

The query services only need four lookups (person by id, families where a
person is a partner, the family where a person is a child, and the children
of a family). `RecordStore` names that capability set; two implementations
are provided:

- `Storage`: an SQLite database at ``<root>/lineage.db``. Every lookup runs
  a query; a lock guards the shared connection so the store can be used
  from several threads (uvicorn runs sync handlers in a worker pool).
- `MemoryStore`: the same contract backed by plain dicts, handy for tests
  and demos.

Families come back in creation order. Family children come back ordered by
their birth-order `sequence` when one is recorded, then by insertion order.
Any `sqlite3.Error` is re-raised as `StoreError`.
"""
from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol
import logging
import sqlite3
import threading

from .errors import StoreError
from .models import Family, FamilyChild, Person

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def get_person(self, pid: str) -> Optional[Person]: ...

    def get_family(self, fid: str) -> Optional[Family]: ...

    def families_for_person(self, pid: str) -> List[Family]: ...

    def child_family(self, pid: str) -> Optional[Family]: ...

    def family_children(self, fid: str) -> List[FamilyChild]: ...


_SCHEMA = """
CREATE TABLE IF NOT EXISTS persons(
    id TEXT PRIMARY KEY,
    given_name TEXT,
    surname TEXT,
    full_name TEXT,
    gender TEXT,
    birth_date_raw TEXT,
    death_date_raw TEXT,
    birth_place TEXT,
    death_place TEXT
);
CREATE TABLE IF NOT EXISTS families(
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    partner1_id TEXT,
    partner1_name TEXT,
    partner2_id TEXT,
    partner2_name TEXT,
    relationship_type TEXT,
    marriage_date_raw TEXT,
    marriage_place TEXT,
    child_count INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_families_partner1 ON families(partner1_id);
CREATE INDEX IF NOT EXISTS idx_families_partner2 ON families(partner2_id);
CREATE TABLE IF NOT EXISTS family_children(
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    family_id TEXT NOT NULL,
    person_id TEXT NOT NULL,
    person_name TEXT,
    relationship_type TEXT,
    sequence INTEGER,
    UNIQUE(family_id, person_id)
);
CREATE INDEX IF NOT EXISTS idx_family_children_person ON family_children(person_id);
"""

_FAMILY_COLUMNS = (
    "id, partner1_id, partner1_name, partner2_id, partner2_name, "
    "relationship_type, marriage_date_raw, marriage_place, child_count"
)


def _row_to_person(row: sqlite3.Row) -> Person:
    return Person.from_dict(dict(row))


def _row_to_family(row: sqlite3.Row) -> Family:
    return Family.from_dict(dict(row))


def _row_to_child(row: sqlite3.Row) -> FamilyChild:
    return FamilyChild.from_dict(dict(row))


class Storage:
    DB_NAME = "lineage.db"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._db_file = self.root / self.DB_NAME
        try:
            # handlers may run in worker threads; access is serialised by self._lock
            self._conn = sqlite3.connect(str(self._db_file), check_same_thread=False)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open {self._db_file}: {exc}") from exc
        self._conn.row_factory = sqlite3.Row
        with self._cursor() as cur:
            cur.executescript(_SCHEMA)

    @contextmanager
    def _cursor(self, commit: bool = False) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            try:
                cur = self._conn.cursor()
                yield cur
                if commit:
                    self._conn.commit()
            except sqlite3.Error as exc:
                if commit:
                    self._conn.rollback()
                raise StoreError(str(exc)) from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # Read side
    def get_person(self, pid: str) -> Optional[Person]:
        with self._cursor() as cur:
            cur.execute(
                "SELECT id, given_name, surname, full_name, gender, birth_date_raw, death_date_raw, birth_place, death_place FROM persons WHERE id = ?",
                (pid,),
            )
            row = cur.fetchone()
        return _row_to_person(row) if row else None

    def list_persons(self) -> List[Person]:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM persons ORDER BY surname, given_name")
            return [_row_to_person(r) for r in cur.fetchall()]

    def get_family(self, fid: str) -> Optional[Family]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_FAMILY_COLUMNS} FROM families WHERE id = ?", (fid,))
            row = cur.fetchone()
        return _row_to_family(row) if row else None

    def families_for_person(self, pid: str) -> List[Family]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_FAMILY_COLUMNS} FROM families WHERE partner1_id = ? OR partner2_id = ? ORDER BY seq",
                (pid, pid),
            )
            return [_row_to_family(r) for r in cur.fetchall()]

    def child_family(self, pid: str) -> Optional[Family]:
        cols = ", ".join(f"f.{c.strip()}" for c in _FAMILY_COLUMNS.split(","))
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {cols} FROM family_children fc JOIN families f ON f.id = fc.family_id WHERE fc.person_id = ? ORDER BY fc.seq LIMIT 1",
                (pid,),
            )
            row = cur.fetchone()
        return _row_to_family(row) if row else None

    def family_children(self, fid: str) -> List[FamilyChild]:
        with self._cursor() as cur:
            cur.execute(
                "SELECT family_id, person_id, person_name, relationship_type, sequence FROM family_children "
                "WHERE family_id = ? ORDER BY sequence IS NULL, sequence, seq",
                (fid,),
            )
            return [_row_to_child(r) for r in cur.fetchall()]

    # Write side (populating the read model)
    def add_person(self, person: Person) -> None:
        d = person.to_dict()
        with self._cursor(commit=True) as cur:
            cur.execute(
                "INSERT OR REPLACE INTO persons(id, given_name, surname, full_name, gender, birth_date_raw, death_date_raw, birth_place, death_place) "
                "VALUES(:id, :given_name, :surname, :full_name, :gender, :birth_date_raw, :death_date_raw, :birth_place, :death_place)",
                d,
            )

    def add_family(self, family: Family) -> None:
        # upsert keeps the original seq, so re-saving a family does not reorder it
        with self._cursor(commit=True) as cur:
            cur.execute(
                f"INSERT INTO families({_FAMILY_COLUMNS}) "
                "VALUES(:id, :partner1_id, :partner1_name, :partner2_id, :partner2_name, :relationship_type, :marriage_date_raw, :marriage_place, :child_count) "
                "ON CONFLICT(id) DO UPDATE SET "
                "partner1_id = excluded.partner1_id, partner1_name = excluded.partner1_name, "
                "partner2_id = excluded.partner2_id, partner2_name = excluded.partner2_name, "
                "relationship_type = excluded.relationship_type, marriage_date_raw = excluded.marriage_date_raw, "
                "marriage_place = excluded.marriage_place",
                family.to_dict(),
            )

    def add_family_child(self, link: FamilyChild) -> None:
        with self._cursor(commit=True) as cur:
            cur.execute(
                "INSERT OR IGNORE INTO family_children(family_id, person_id, person_name, relationship_type, sequence) "
                "VALUES(:family_id, :person_id, :person_name, :relationship_type, :sequence)",
                link.to_dict(),
            )
            if cur.rowcount:
                cur.execute("UPDATE families SET child_count = child_count + 1 WHERE id = ?", (link.family_id,))
            else:
                cur.execute(
                    "UPDATE family_children SET person_name = ?, relationship_type = ?, sequence = ? WHERE family_id = ? AND person_id = ?",
                    (link.person_name, link.relationship_type, link.sequence, link.family_id, link.person_id),
                )


class MemoryStore:
    """Dict-backed record store with the same ordering rules as `Storage`."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.persons: Dict[str, Person] = {}
        # dicts keep insertion order, which is the family creation order
        self.families: Dict[str, Family] = {}
        self.children: Dict[str, List[FamilyChild]] = {}
        # person id -> family ids, in the order the child links were stored
        self.child_of: Dict[str, List[str]] = {}

    def get_person(self, pid: str) -> Optional[Person]:
        return self.persons.get(pid)

    def list_persons(self) -> List[Person]:
        return sorted(self.persons.values(), key=lambda p: (p.surname, p.given_name))

    def get_family(self, fid: str) -> Optional[Family]:
        return self.families.get(fid)

    def families_for_person(self, pid: str) -> List[Family]:
        with self._lock:
            return [f for f in self.families.values() if pid in (f.partner1_id, f.partner2_id)]

    def child_family(self, pid: str) -> Optional[Family]:
        with self._lock:
            for fid in self.child_of.get(pid, []):
                if fid in self.families:
                    return self.families[fid]
        return None

    def family_children(self, fid: str) -> List[FamilyChild]:
        with self._lock:
            links = list(self.children.get(fid, []))
        # sorted() is stable, so unsequenced links keep insertion order
        return sorted(links, key=lambda c: (c.sequence is None, c.sequence or 0))

    def add_person(self, person: Person) -> None:
        self.persons[person.id] = person

    def add_family(self, family: Family) -> None:
        with self._lock:
            existing = self.families.get(family.id)
            if existing is not None:
                family.child_count = existing.child_count
            self.families[family.id] = family

    def add_family_child(self, link: FamilyChild) -> None:
        with self._lock:
            links = self.children.setdefault(link.family_id, [])
            for i, c in enumerate(links):
                if c.person_id == link.person_id:
                    links[i] = link
                    return
            links.append(link)
            self.child_of.setdefault(link.person_id, []).append(link.family_id)
            fam = self.families.get(link.family_id)
            if fam is not None:
                fam.child_count += 1
