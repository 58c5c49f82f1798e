"""
BCNF test and decomposition.

A relation is a set of attribute names. `bcnf_decompose` splits it on a
violating functional dependency, projects the closure F+ onto both halves and
recurses until every piece is in BCNF. Splitting on L -> R' keeps L in both
halves, so the halves always re-join to the original relation.
"""
from __future__ import annotations

from typing import FrozenSet, Iterable, Optional, Set

from fd_closure import attribute_closure, fd_set_closure
from fd_types import AttributeSet, FDSet, FunctionalDependency, as_attribute_set, format_attributes, power_set
from normalization_config import CONFIG


SUPERKEY_STRATEGIES = ("attribute_closure", "fd_closure")
VIOLATION_SEARCHES = ("input", "closure")


class AttributeNotInRelationError(ValueError):
    """The FD set mentions attributes that the relation does not have."""

    def __init__(self, missing: Iterable[str], relation: Iterable[str]) -> None:
        self.missing = frozenset(missing)
        self.relation = frozenset(relation)
        super().__init__(
            f"Attributes {format_attributes(self.missing)} in FD set not present in relation "
            f"{format_attributes(self.relation)}"
        )


class NormalizationInvariantError(RuntimeError):
    """The relation failed the BCNF test but no FD violating BCNF could be found."""


def _trace(message: str) -> None:
    if CONFIG["TRACE"]["ENABLED"]:
        print(f"[TRACE] {message}")


def format_relations(relations: Iterable[Iterable[str]]) -> str:
    rendered = sorted(format_attributes(rel) for rel in relations)
    return "[" + ", ".join(rendered) + "]"


# --------------------------------------------------------------------------------------
# Superkeys
# --------------------------------------------------------------------------------------
def find_superkeys(relation: Iterable[str], fds: FDSet, strategy: Optional[str] = None) -> Set[AttributeSet]:
    """Return every subset K of `relation` with K+ == relation.

    Raises AttributeNotInRelationError when `fds` mentions an attribute outside
    the relation.
    """
    rel = as_attribute_set(relation)
    missing = fds.attributes() - rel
    if missing:
        raise AttributeNotInRelationError(missing, rel)

    strategy = strategy or CONFIG["SUPERKEYS"]["STRATEGY"]
    if strategy == "attribute_closure":
        return {candidate for candidate in power_set(rel) if attribute_closure(candidate, fds) == rel}
    if strategy == "fd_closure":
        return _superkeys_from_fd_closure(rel, fds)
    raise ValueError(f"Unknown superkey strategy {strategy!r}; expected one of {SUPERKEY_STRATEGIES}")


def _superkeys_from_fd_closure(rel: AttributeSet, fds: FDSet) -> Set[AttributeSet]:
    # Attributes no FD mentions still have to be reachable, so they determine themselves.
    lonely = rel - fds.attributes()
    completed = FDSet(fds)
    completed.update(FunctionalDependency((attr,), (attr,)) for attr in lonely)
    closure = fd_set_closure(completed)

    superkeys: Set[AttributeSet] = set()
    for candidate in power_set(rel):
        covered: Set[str] = set()
        for fd in closure:
            if fd.left <= candidate:
                covered.update(fd.attributes)
        if covered == rel:
            superkeys.add(candidate)
    return superkeys


# --------------------------------------------------------------------------------------
# BCNF test
# --------------------------------------------------------------------------------------
def _violates(fd: FunctionalDependency, superkeys: Set[AttributeSet]) -> bool:
    return not fd.is_trivial and fd.left not in superkeys


def is_bcnf(relation: Iterable[str], fds: FDSet) -> bool:
    """True when every non-trivial FD in `fds` has a superkey of `relation` as its left side."""
    superkeys = find_superkeys(relation, fds)
    return not any(_violates(fd, superkeys) for fd in fds)


def find_violating_fd(
    relation: Iterable[str], fds: FDSet, search: Optional[str] = None
) -> Optional[FunctionalDependency]:
    """Return the first FD (in insertion order) that breaks BCNF, or None."""
    search = search or CONFIG["DECOMPOSITION"]["VIOLATION_SEARCH"]
    if search == "input":
        candidates = fds
    elif search == "closure":
        candidates = fd_set_closure(fds)
    else:
        raise ValueError(f"Unknown violation search {search!r}; expected one of {VIOLATION_SEARCHES}")

    superkeys = find_superkeys(relation, fds)
    for fd in candidates:
        if _violates(fd, superkeys):
            return fd
    return None


# --------------------------------------------------------------------------------------
# Decomposition
# --------------------------------------------------------------------------------------
def project_fds(fds: FDSet, relation: Iterable[str]) -> FDSet:
    """Keep only the FDs whose attributes all lie inside `relation`."""
    rel = as_attribute_set(relation)
    return FDSet(fd for fd in fds if fd.attributes <= rel)


def bcnf_decompose(relation: Iterable[str], fds: FDSet) -> Set[FrozenSet[str]]:
    """Decompose `relation` into sub-relations that are each in BCNF.

    Neither argument is modified. The union of the returned relations is
    always `relation`.
    """
    rel = as_attribute_set(relation)
    _trace(f"Current schema = {format_attributes(rel)}")
    if is_bcnf(rel, fds):
        _trace("Current schema is in BCNF")
        return {rel}

    if CONFIG["TRACE"]["ENABLED"]:
        _trace(f"Current schema's superkeys = {format_relations(find_superkeys(rel, fds))}")
    violating = find_violating_fd(rel, fds)
    if violating is None:
        raise NormalizationInvariantError(
            f"BCNF check failed for {format_attributes(rel)} but no violating dependency was found"
        )
    _trace(f"Splitting on {violating}")

    left_rel = frozenset(attr for attr in rel if attr in violating.left or attr in violating.right)
    right_rel = frozenset(attr for attr in rel if attr in violating.left or attr not in violating.right)

    closure = fd_set_closure(fds)
    left_fds = project_fds(closure, left_rel)
    right_fds = project_fds(closure, right_rel)
    if CONFIG["TRACE"]["ENABLED"]:
        for side, sub_rel, sub_fds in (("Left", left_rel, left_fds), ("Right", right_rel, right_fds)):
            superkeys = format_relations(find_superkeys(sub_rel, sub_fds))
            _trace(f"{side} schema = {format_attributes(sub_rel)}, superkeys = {superkeys}")

    return bcnf_decompose(left_rel, left_fds) | bcnf_decompose(right_rel, right_fds)
