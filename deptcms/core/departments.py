"""
Department vocabulary

Content is tagged with a set of departments; users belong to one. ALL is a
wildcard that makes content visible to every department.
"""
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Union

from deptcms.core.errors import DataIntegrityError, InvalidInputError


class Department(str, Enum):
    """Closed department vocabulary"""
    CSE = "CSE"
    ECE = "ECE"
    EEE = "EEE"
    IT = "IT"
    MECH = "MECH"
    CIVIL = "CIVIL"
    ALL = "ALL"

    @classmethod
    def parse(cls, value: Union[str, "Department"]) -> "Department":
        """
        Parse a single label (case-insensitive, surrounding whitespace ignored)

        Raises:
            InvalidInputError: the label is empty or not in the vocabulary
        """
        if isinstance(value, Department):
            return value
        label = (value or "").strip().upper()
        if not label:
            raise InvalidInputError("department is required")
        try:
            return cls(label)
        except ValueError:
            raise InvalidInputError(f"unknown department: {label}")


# Stored order follows declaration order
_ORDER = {dept: index for index, dept in enumerate(Department)}


def _split(value: Union[str, Iterable[str], None]) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [part for part in (p.strip() for p in value.split(",")) if part]
    labels = []
    for item in value:
        labels.extend(_split(item.value if isinstance(item, Department) else item))
    return labels


class DepartmentSet:
    """
    Immutable set of departments attached to a content record

    Membership is tested per label, so "CSE" never matches inside another
    label the way a substring search over the stored string would.
    """

    __slots__ = ("_members",)

    def __init__(self, members: Iterable[Department] = ()):
        members = frozenset(members)
        # ALL clears any specific selection
        if Department.ALL in members:
            members = frozenset({Department.ALL})
        self._members: FrozenSet[Department] = members

    @classmethod
    def parse(cls, value: Union[str, Iterable[str], None]) -> "DepartmentSet":
        """
        Parse submitted labels, strictly

        Args:
            value: comma-joined string or iterable of labels

        Raises:
            InvalidInputError: an unknown label, or no label at all
        """
        members = [Department.parse(label) for label in _split(value)]
        if not members:
            raise InvalidInputError("at least one department is required")
        return cls(members)

    @classmethod
    def from_stored(cls, raw: Optional[str]) -> "DepartmentSet":
        """
        Parse a stored column value, dropping labels outside the vocabulary

        Raises:
            DataIntegrityError: nothing usable is left
        """
        members = []
        for label in _split(raw):
            try:
                members.append(Department(label.upper()))
            except ValueError:
                continue
        if not members:
            raise DataIntegrityError(f"content has no valid departments: {raw!r}")
        return cls(members)

    def to_stored(self) -> str:
        """Uppercase, comma-joined, duplicate-free, in vocabulary order"""
        return ",".join(dept.value for dept in sorted(self._members, key=_ORDER.__getitem__))

    @property
    def is_all(self) -> bool:
        return Department.ALL in self._members

    def covers(self, department: Department) -> bool:
        """True when content tagged with this set is visible to `department`"""
        return self.is_all or department in self._members

    def __contains__(self, department: object) -> bool:
        return department in self._members

    def __iter__(self):
        return iter(sorted(self._members, key=_ORDER.__getitem__))

    def __len__(self) -> int:
        return len(self._members)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DepartmentSet):
            return NotImplemented
        return self._members == other._members

    def __hash__(self) -> int:
        return hash(self._members)

    def __repr__(self) -> str:
        return f"DepartmentSet({self.to_stored()!r})"
