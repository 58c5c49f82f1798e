"""
Value types for functional dependencies.

An attribute is a plain string. A functional dependency holds both sides as
frozensets so that dependencies built from lists, tuples or sets compare and
hash the same way. FDSet keeps set semantics but iterates in insertion order,
which keeps decompositions reproducible from run to run.
"""
from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Set, TypeVar, Union

T = TypeVar("T")

Attribute = str
AttributeSet = FrozenSet[Attribute]


def as_attribute_set(attrs: Union[Attribute, Iterable[Attribute]]) -> AttributeSet:
    """Collapse any iterable of attributes to a frozenset. A bare string is one attribute."""
    if isinstance(attrs, str):
        return frozenset((attrs,))
    return frozenset(attrs)


def format_attributes(attrs: Iterable[Attribute]) -> str:
    return "{" + ", ".join(sorted(attrs)) + "}"


def power_set(items: Iterable[T]) -> Set[FrozenSet[T]]:
    """Return every subset of `items`, the empty set and `items` itself included."""
    pool = list(dict.fromkeys(items))
    return {frozenset(combo) for size in range(len(pool) + 1) for combo in combinations(pool, size)}


# --------------------------------------------------------------------------------------
# Functional dependency
# --------------------------------------------------------------------------------------
@dataclass(frozen=True)
class FunctionalDependency:
    left: AttributeSet
    right: AttributeSet

    def __post_init__(self) -> None:
        # Sequences and sets land on the same canonical form.
        object.__setattr__(self, "left", as_attribute_set(self.left))
        object.__setattr__(self, "right", as_attribute_set(self.right))

    @property
    def attributes(self) -> AttributeSet:
        return self.left | self.right

    @property
    def is_trivial(self) -> bool:
        return self.right <= self.left

    def __str__(self) -> str:
        return f"{format_attributes(self.left)} -> {format_attributes(self.right)}"


FD = FunctionalDependency


# --------------------------------------------------------------------------------------
# FD set
# --------------------------------------------------------------------------------------
class FDSet:
    """Set of functional dependencies with insertion-ordered iteration.

    `FDSet(other)` copies another FDSet (or any iterable of FDs). The FDs are
    immutable, so the copy shares them with the source.
    """

    def __init__(self, fds: Optional[Iterable[FunctionalDependency]] = None) -> None:
        self._fds: Dict[FunctionalDependency, None] = {}
        if fds is not None:
            self.update(fds)

    def add(self, fd: FunctionalDependency) -> None:
        if not isinstance(fd, FunctionalDependency):
            raise TypeError(f"FDSet only holds FunctionalDependency objects, got {type(fd).__name__}")
        self._fds.setdefault(fd, None)

    def update(self, fds: Iterable[FunctionalDependency]) -> None:
        for fd in fds:
            self.add(fd)

    def copy(self) -> "FDSet":
        return FDSet(self)

    def attributes(self) -> AttributeSet:
        """Every attribute mentioned on either side of any FD."""
        found: Set[Attribute] = set()
        for fd in self._fds:
            found.update(fd.left)
            found.update(fd.right)
        return frozenset(found)

    def issubset(self, other: "FDSet") -> bool:
        return all(fd in other for fd in self._fds)

    def __iter__(self) -> Iterator[FunctionalDependency]:
        return iter(list(self._fds))

    def __len__(self) -> int:
        return len(self._fds)

    def __contains__(self, fd: object) -> bool:
        return fd in self._fds

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FDSet):
            return NotImplemented
        return self._fds.keys() == other._fds.keys()

    __hash__ = None  # mutable

    def __or__(self, other: Iterable[FunctionalDependency]) -> "FDSet":
        result = self.copy()
        result.update(other)
        return result

    def __sub__(self, other: Iterable[FunctionalDependency]) -> "FDSet":
        removed = set(other)
        return FDSet(fd for fd in self._fds if fd not in removed)

    def __le__(self, other: "FDSet") -> bool:
        return self.issubset(other)

    def __repr__(self) -> str:
        return "FDSet([" + ", ".join(str(fd) for fd in self._fds) + "])"
