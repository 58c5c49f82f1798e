"""
Armstrong-axiom machinery over FD sets.

`trivial`, `augment` and `transitive` each apply one inference rule;
`fd_set_closure` combines them into the closure F+. The closure can be computed
either by folding the three rules in until the set stops growing ("armstrong")
or directly from attribute closures ("attribute_closure"). Both strategies
produce the same set: every left side of F+ is a superset of some input left
side, and its right sides are all non-empty subsets of that left side's
attribute closure.
"""
from __future__ import annotations

from typing import Iterable, Optional

from fd_types import AttributeSet, FDSet, FunctionalDependency, as_attribute_set, power_set
from normalization_config import CONFIG


CLOSURE_STRATEGIES = ("attribute_closure", "armstrong")


def attribute_closure(attrs: Iterable[str], fds: FDSet) -> AttributeSet:
    """Compute K+ : every attribute functionally determined by `attrs` under `fds`."""
    closure = set(as_attribute_set(attrs))
    changed = True
    while changed:
        changed = False
        for fd in fds:
            if fd.left <= closure and not fd.right <= closure:
                closure.update(fd.right)
                changed = True
    return frozenset(closure)


# --------------------------------------------------------------------------------------
# Inference rules
# --------------------------------------------------------------------------------------
def trivial(fds: FDSet) -> FDSet:
    """Reflexivity: L -> X for every non-empty X contained in a left side L of `fds`."""
    result = FDSet()
    for fd in fds:
        for subset in power_set(fd.left):
            # L -> {} says nothing and would only bloat the closure.
            if subset:
                result.add(FunctionalDependency(fd.left, subset))
    return result


def augment(fds: FDSet, attrs: Iterable[str]) -> FDSet:
    """Augmentation: (L | attrs) -> (R | attrs) for every L -> R in `fds`."""
    extra = as_attribute_set(attrs)
    return FDSet(FunctionalDependency(fd.left | extra, fd.right | extra) for fd in fds)


def transitive(fds: FDSet) -> FDSet:
    """Chain FDs whose join sides are equal sets until nothing new appears.

    Only X -> Y, Y -> Z pairs with exactly matching Y are chained; chaining
    through subsets happens in `fd_set_closure` once augmentation has produced
    the matching left sides. The FDs already in `fds` are not returned.
    """
    working = FDSet(fds)
    derived = FDSet(fds)
    while True:
        start_size = len(derived)
        for first in working:
            for second in working:
                if first != second and first.right == second.left:
                    derived.add(FunctionalDependency(first.left, second.right))
        working.update(derived)
        if len(derived) == start_size:
            break
    return working - fds


# --------------------------------------------------------------------------------------
# Closure
# --------------------------------------------------------------------------------------
def fd_set_closure(fds: FDSet, strategy: Optional[str] = None) -> FDSet:
    """Return F+, the smallest superset of `fds` closed under the three rules above."""
    strategy = strategy or CONFIG["CLOSURE"]["STRATEGY"]
    universe = fds.attributes()
    if len(universe) > CONFIG["LIMITS"]["MAX_ATTRIBUTES"]:
        print(
            f"[WARN] Computing F+ over {len(universe)} attributes; "
            f"the power-set enumeration grows exponentially past {CONFIG['LIMITS']['MAX_ATTRIBUTES']}."
        )
    if strategy == "armstrong":
        return _armstrong_closure(fds, universe)
    if strategy == "attribute_closure":
        return _closure_from_attribute_closures(fds, universe)
    raise ValueError(f"Unknown closure strategy {strategy!r}; expected one of {CLOSURE_STRATEGIES}")


def _armstrong_closure(fds: FDSet, universe: AttributeSet) -> FDSet:
    closure = FDSet(fds)
    subsets = power_set(universe)
    while True:
        start_size = len(closure)
        closure.update(trivial(closure))
        for subset in subsets:
            closure.update(augment(closure, subset))
        closure.update(transitive(closure))
        if len(closure) == start_size:
            break
    return closure


def _closure_from_attribute_closures(fds: FDSet, universe: AttributeSet) -> FDSet:
    closure = FDSet(fds)
    lefts = {fd.left for fd in fds}
    # Sorted by size then name so the derived FDs come out in a stable order.
    for subset in sorted(power_set(universe), key=lambda s: (len(s), sorted(s))):
        if not any(left <= subset for left in lefts):
            continue
        reachable = attribute_closure(subset, fds)
        for dependents in sorted(power_set(reachable), key=lambda s: (len(s), sorted(s))):
            if dependents:
                closure.add(FunctionalDependency(subset, dependents))
    return closure
