"""
Recognised sensor variables and lake roles.

Stages select variables through these enums instead of raw column names.
"""

from enum import Enum
from typing import Dict, Iterable, List

from timescales.core._errors import InvalidArgument


class Variable(str, Enum):
    """Sonde variables. The value is the canonical column name."""

    CHLOROPHYLL = 'chla'
    PHYCOCYANIN = 'bga'
    TEMPERATURE = 'wtr'

    @property
    def column(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _LABELS[self][0]

    @property
    def short_label(self) -> str:
        return _LABELS[self][1]

    @classmethod
    def parse(cls, name) -> 'Variable':
        """Accept an enum member, its column name or its member name."""
        if isinstance(name, cls):
            return name
        key = str(name).strip()
        for member in cls:
            if key.lower() in (member.value, member.name.lower()):
                return member
        raise InvalidArgument(
            f"unknown variable {name!r}; expected one of {[m.value for m in cls]}"
        )

    @classmethod
    def parse_many(cls, names: Iterable) -> List['Variable']:
        out = []
        for name in names:
            var = cls.parse(name)
            if var not in out:
                out.append(var)
        return out


_LABELS: Dict[Variable, tuple] = {
    Variable.CHLOROPHYLL: ('Chlorophyll', 'Chl-a'),
    Variable.PHYCOCYANIN: ('Phycocyanin', 'Phyco'),
    Variable.TEMPERATURE: ('Temperature', 'Temp'),
}


class LakeRole(str, Enum):
    """Role of a lake in the whole-ecosystem experiment."""

    REFERENCE = 'reference'
    MANIPULATED = 'manipulated'


def parse_lakes(lakes: Dict[str, str]) -> Dict[str, LakeRole]:
    """
    Map lake name -> LakeRole.

    Exactly one reference and one manipulated lake are required.
    """
    roles = {}
    for name, role in (lakes or {}).items():
        try:
            roles[str(name)] = LakeRole(str(role).lower())
        except ValueError:
            raise InvalidArgument(
                f"lake {name!r} has unknown role {role!r}; "
                f"expected one of {[r.value for r in LakeRole]}"
            ) from None

    for role in LakeRole:
        n = sum(1 for r in roles.values() if r is role)
        if n != 1:
            raise InvalidArgument(f"need exactly one {role.value} lake, got {n}")
    return roles


def lake_for(roles: Dict[str, LakeRole], role: LakeRole) -> str:
    """Name of the lake playing `role`."""
    return next(name for name, r in roles.items() if r is role)
