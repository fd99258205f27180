from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Iterator, Tuple
import re
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


# gender is stored as a plain string everywhere: 'male', 'female' or 'unknown'
MALE = "male"
FEMALE = "female"
UNKNOWN = "unknown"
GENDERS = (MALE, FEMALE, UNKNOWN)

# child-to-family relationship tags
CHILD_BIOLOGICAL = "biological"
CHILD_ADOPTED = "adopted"
CHILD_STEP = "step"
CHILD_FOSTER = "foster"
CHILD_UNKNOWN = "unknown"
CHILD_RELATIONS = (CHILD_BIOLOGICAL, CHILD_ADOPTED, CHILD_STEP, CHILD_FOSTER, CHILD_UNKNOWN)

# GEDCOM SEX values
_GENDER_ALIASES = {"m": MALE, "f": FEMALE, "u": UNKNOWN}

MONTHS = {
    "JAN": 1,
    "FEB": 2,
    "MAR": 3,
    "APR": 4,
    "MAY": 5,
    "JUN": 6,
    "JUL": 7,
    "AUG": 8,
    "SEP": 9,
    "OCT": 10,
    "NOV": 11,
    "DEC": 12,
}
MONTH_NAMES = {v: k for k, v in MONTHS.items()}

# prefix -> qualifier; longer prefixes first so ABOUT wins over ABT-like matches
_QUALIFIER_PREFIXES = (
    ("ABOUT ", "abt"),
    ("ABT ", "abt"),
    ("CAL ", "cal"),
    ("EST ", "est"),
    ("BEFORE ", "bef"),
    ("BEF ", "bef"),
    ("AFTER ", "aft"),
    ("AFT ", "aft"),
    ("BET ", "bet"),
    ("FROM ", "from"),
)

_ISO_RE = re.compile(r"^(\d{3,4})(?:-(\d{1,2})(?:-(\d{1,2}))?)?$")


def _parse_simple(txt: str) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """Parse '1850', 'JAN 1850', '1 JAN 1850' or ISO 'YYYY-MM-DD' into (year, month, day)."""
    txt = txt.strip()
    m = _ISO_RE.match(txt)
    if m:
        year = int(m.group(1))
        month = int(m.group(2)) if m.group(2) else None
        day = int(m.group(3)) if m.group(3) else None
        return year, month, day
    parts = txt.split()
    year = month = day = None
    if len(parts) == 1:
        if parts[0].isdecimal():
            year = int(parts[0])
    elif len(parts) == 2:
        month = MONTHS.get(parts[0][:3])
        if month and parts[1].isdecimal():
            year = int(parts[1])
    elif len(parts) == 3:
        if parts[0].isdecimal():
            day = int(parts[0])
        month = MONTHS.get(parts[1][:3])
        if parts[2].isdecimal():
            year = int(parts[2])
    return year, month, day


def _format_simple(year: Optional[int], month: Optional[int], day: Optional[int]) -> str:
    if year is None:
        return ""
    out = []
    if day is not None and month is not None:
        out.append(str(day))
    if month is not None:
        out.append(MONTH_NAMES.get(month, ""))
    out.append(str(year))
    return " ".join(p for p in out if p)


@dataclass
class GenDate:
    """A genealogical date with flexible precision (GEDCOM 5.5 style)."""

    raw: str = ""
    qualifier: str = "exact"  # exact|abt|cal|est|bef|aft|bet|from
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    # end of range for 'bet' and 'from'
    year2: Optional[int] = None
    month2: Optional[int] = None
    day2: Optional[int] = None
    calendar: str = "DGREGORIAN"

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"raw": self.raw, "qualifier": self.qualifier}
        for key in ("year", "month", "day", "year2", "month2", "day2"):
            val = getattr(self, key)
            if val is not None:
                d[key] = val
        if self.calendar:
            d["calendar"] = self.calendar
        return d

    @staticmethod
    def from_dict(d: Optional[Dict[str, Any]]) -> Optional["GenDate"]:
        if not d:
            return None
        return GenDate(
            raw=d.get("raw", ""),
            qualifier=d.get("qualifier", "exact"),
            year=d.get("year"),
            month=d.get("month"),
            day=d.get("day"),
            year2=d.get("year2"),
            month2=d.get("month2"),
            day2=d.get("day2"),
            calendar=d.get("calendar", "DGREGORIAN"),
        )

    @staticmethod
    def parse(s: Optional[str]) -> Optional["GenDate"]:
        if not s:
            return None
        raw = s.strip()
        if not raw:
            return None
        gd = GenDate(raw=raw)
        txt = raw.upper()
        for prefix, qual in _QUALIFIER_PREFIXES:
            if txt.startswith(prefix):
                gd.qualifier = qual
                txt = txt[len(prefix):]
                break

        if gd.qualifier in ("bet", "from"):
            sep = " AND " if gd.qualifier == "bet" else " TO "
            if sep in txt:
                lo, hi = txt.split(sep, 1)
                gd.year, gd.month, gd.day = _parse_simple(lo)
                gd.year2, gd.month2, gd.day2 = _parse_simple(hi)
                return gd

        gd.year, gd.month, gd.day = _parse_simple(txt)
        return gd

    def format(self) -> str:
        """Build the GEDCOM representation from the parsed components."""
        if self.year is None:
            return ""
        if self.qualifier == "bet":
            return f"BET {_format_simple(self.year, self.month, self.day)} AND {_format_simple(self.year2, self.month2, self.day2)}"
        if self.qualifier == "from":
            return f"FROM {_format_simple(self.year, self.month, self.day)} TO {_format_simple(self.year2, self.month2, self.day2)}"
        prefix = {"abt": "ABT ", "cal": "CAL ", "est": "EST ", "bef": "BEF ", "aft": "AFT "}.get(self.qualifier, "")
        return prefix + _format_simple(self.year, self.month, self.day)

    def __str__(self) -> str:
        return self.raw or self.format()


@dataclass
class Person:
    id: str = field(default_factory=_new_id)
    given_name: str = ""
    surname: str = ""
    full_name: str = ""
    gender: str = UNKNOWN
    birth_date_raw: str = ""
    death_date_raw: str = ""
    birth_place: str = ""
    death_place: str = ""

    def __post_init__(self) -> None:
        if not self.full_name:
            self.full_name = f"{self.given_name} {self.surname}".strip()
        gender = (self.gender or "").strip().lower()
        gender = _GENDER_ALIASES.get(gender, gender)
        self.gender = gender if gender in GENDERS else UNKNOWN

    # dates are kept raw in the read model and parsed on access
    @property
    def birth_date(self) -> Optional[GenDate]:
        return GenDate.parse(self.birth_date_raw)

    @property
    def death_date(self) -> Optional[GenDate]:
        return GenDate.parse(self.death_date_raw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "given_name": self.given_name,
            "surname": self.surname,
            "full_name": self.full_name,
            "gender": self.gender,
            "birth_date_raw": self.birth_date_raw,
            "death_date_raw": self.death_date_raw,
            "birth_place": self.birth_place,
            "death_place": self.death_place,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Person":
        return Person(
            id=d.get("id") or _new_id(),
            given_name=d.get("given_name") or "",
            surname=d.get("surname") or "",
            full_name=d.get("full_name") or "",
            gender=d.get("gender") or UNKNOWN,
            birth_date_raw=d.get("birth_date_raw") or "",
            death_date_raw=d.get("death_date_raw") or "",
            birth_place=d.get("birth_place") or "",
            death_place=d.get("death_place") or "",
        )


@dataclass
class Family:
    id: str = field(default_factory=_new_id)
    partner1_id: Optional[str] = None
    partner1_name: str = ""
    partner2_id: Optional[str] = None
    partner2_name: str = ""
    relationship_type: str = "unknown"
    marriage_date_raw: str = ""
    marriage_place: str = ""
    child_count: int = 0

    @property
    def marriage_date(self) -> Optional[GenDate]:
        return GenDate.parse(self.marriage_date_raw)

    def partner_ids(self) -> Iterator[str]:
        for pid in (self.partner1_id, self.partner2_id):
            if pid:
                yield pid

    def other_partner(self, person_id: str) -> Optional[Tuple[str, str]]:
        """Return (id, name) of the partner who is not `person_id`, if any."""
        if self.partner1_id and self.partner1_id != person_id:
            return self.partner1_id, self.partner1_name
        if self.partner2_id and self.partner2_id != person_id:
            return self.partner2_id, self.partner2_name
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "partner1_id": self.partner1_id,
            "partner1_name": self.partner1_name,
            "partner2_id": self.partner2_id,
            "partner2_name": self.partner2_name,
            "relationship_type": self.relationship_type,
            "marriage_date_raw": self.marriage_date_raw,
            "marriage_place": self.marriage_place,
            "child_count": self.child_count,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Family":
        return Family(
            id=d.get("id") or _new_id(),
            partner1_id=d.get("partner1_id"),
            partner1_name=d.get("partner1_name") or "",
            partner2_id=d.get("partner2_id"),
            partner2_name=d.get("partner2_name") or "",
            relationship_type=d.get("relationship_type") or "unknown",
            marriage_date_raw=d.get("marriage_date_raw") or "",
            marriage_place=d.get("marriage_place") or "",
            child_count=int(d.get("child_count") or 0),
        )


@dataclass
class FamilyChild:
    family_id: str
    person_id: str
    person_name: str = ""
    relationship_type: str = CHILD_BIOLOGICAL
    sequence: Optional[int] = None

    def __post_init__(self) -> None:
        rel = (self.relationship_type or "").strip().lower()
        self.relationship_type = rel if rel in CHILD_RELATIONS else CHILD_UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family_id": self.family_id,
            "person_id": self.person_id,
            "person_name": self.person_name,
            "relationship_type": self.relationship_type,
            "sequence": self.sequence,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "FamilyChild":
        seq = d.get("sequence")
        return FamilyChild(
            family_id=d["family_id"],
            person_id=d["person_id"],
            person_name=d.get("person_name") or "",
            relationship_type=d.get("relationship_type") or CHILD_BIOLOGICAL,
            sequence=int(seq) if seq is not None else None,
        )
