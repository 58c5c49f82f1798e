import pytest

from fd_types import FD, FDSet, FunctionalDependency, as_attribute_set, power_set


def test_power_set_size_and_bounds():
    items = {"A", "B", "C"}
    subsets = power_set(items)

    assert len(subsets) == 2 ** len(items)
    assert frozenset() in subsets
    assert frozenset(items) in subsets
    assert all(s <= items for s in subsets)


def test_power_set_of_empty_set():
    assert power_set(set()) == {frozenset()}


def test_power_set_ignores_duplicates():
    assert power_set(["A", "A", "B"]) == {frozenset(), frozenset("A"), frozenset("B"), frozenset("AB")}


def test_power_set_does_not_mutate_input():
    items = {"A", "B"}
    power_set(items)
    assert items == {"A", "B"}


def test_fd_sides_collapse_to_sets():
    from_lists = FunctionalDependency(["A", "E", "A"], ["D"])
    from_sets = FunctionalDependency({"E", "A"}, {"D"})

    assert from_lists == from_sets
    assert hash(from_lists) == hash(from_sets)
    assert from_lists.left == frozenset({"A", "E"})


def test_bare_string_is_one_attribute():
    assert as_attribute_set("Zip") == frozenset({"Zip"})
    assert FD("Zip", "City").left == frozenset({"Zip"})


def test_fd_is_immutable():
    fd = FD(["A"], ["B"])
    with pytest.raises(AttributeError):
        fd.left = frozenset({"C"})


def test_fd_helpers():
    fd = FD(["A", "B"], ["A"])
    assert fd.is_trivial
    assert fd.attributes == frozenset({"A", "B"})
    assert not FD(["A"], ["B"]).is_trivial
    assert str(FD(["E", "A"], ["D"])) == "{A, E} -> {D}"


def test_fdset_has_set_semantics():
    fds = FDSet([FD(["A"], ["B"]), FD({"A"}, ("B",)), FD(["B"], ["C"])])

    assert len(fds) == 2
    assert FD(["A"], ["B"]) in fds
    assert FD(["C"], ["A"]) not in fds
    assert [str(fd) for fd in fds] == ["{A} -> {B}", "{B} -> {C}"]


def test_fdset_copy_is_independent():
    original = FDSet([FD(["A"], ["B"])])
    copied = FDSet(original)
    copied.add(FD(["B"], ["C"]))

    assert len(original) == 1
    assert len(copied) == 2
    assert original <= copied
    assert original.copy() == original


def test_fdset_set_operations():
    first = FDSet([FD(["A"], ["B"]), FD(["B"], ["C"])])
    second = FDSet([FD(["B"], ["C"]), FD(["C"], ["D"])])

    assert len(first | second) == 3
    assert first - second == FDSet([FD(["A"], ["B"])])
    assert (first | second).attributes() == frozenset("ABCD")
    assert FDSet([FD(["B"], ["C"]), FD(["A"], ["B"])]) == first


def test_fdset_rejects_non_fd():
    with pytest.raises(TypeError):
        FDSet().add(("A", "B"))
