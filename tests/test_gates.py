import pytest

from zkregex.backend import MockBackend
from zkregex.compiler import assign_witness, compile, witness_cells
from zkregex.errors import EmptyAcceptedSetError, NoMatchError, UnsatisfiedError
from zkregex.layout import plan
from zkregex.membership import assemble_membership
from zkregex.pattern import Config, Lit, Rng, Set, Section, parse
from zkregex.sequencing import finals, starts, successors
from zkregex.system import ConstraintSystem, Failure
from zkregex.types import degree
from zkregex.witness import PAD, Row, RowAssignment


def gates(compiled):
    return {gate.name: gate for gate in compiled.shape.gates}


def forge(compiled, owners, text):
    # cells for an arbitrary split of text over the sections, the remaining rows are padding
    k = len(compiled.sections)
    rows = [Row(i, tuple(int(j == i) for j in range(k)), ord(ch)) for i, ch in zip(owners, text, strict=True)]
    rows += [Row(None, (0,) * k, PAD)] * (compiled.shape.rows - len(rows))
    return witness_cells(compiled, RowAssignment(tuple(rows), len(text)))


def failures(compiled, assignment):
    backend = MockBackend()
    with pytest.raises(UnsatisfiedError) as info:
        backend.prove(backend.finalize(compiled.shape), assignment)
    return info.value.failures


def test_starts_and_successors():
    sections = parse("a?b?cd?", Config(4))
    assert list(starts(sections)) == [0, 1, 2]
    assert list(successors(sections, 0)) == [0, 1, 2]
    assert list(successors(sections, 1)) == [1, 2]
    assert list(successors(sections, 2)) == [2, 3]
    assert list(successors(sections, 3)) == [3]
    assert list(starts(parse("a?b?", Config(2)))) == [0, 1]


def test_successors_without_skippable_sections():
    sections = parse("a[0-9]{2}b", Config(4))
    assert [list(successors(sections, i)) for i in range(3)] == [[0, 1], [1, 2], [2]]


def test_finals():
    assert list(finals(parse("a?bc?d?", Config(4)))) == [1, 2, 3]
    assert list(finals(parse("a?b?", Config(2)))) == [0, 1]
    assert list(finals(parse("ab", Config(2)))) == [1]


def test_gate_names():
    compiled = compile("ab", Config(2))
    assert set(gates(compiled)) == {
        "boolean[0]", "membership[0]",
        "boolean[1]", "membership[1]",
        "done boolean", "selector sum", "accumulator", "start",
        "no padding", "span[0]", "span[1]",
        "done monotonic", "transition[0]", "transition[1]",
    }
    assert gates(compiled)["start"].rows == range(1)
    assert gates(compiled)["transition[0]"].rows == range(1)
    assert gates(compiled)["membership[0]"].rows == range(0, 1)
    assert gates(compiled)["membership[1]"].rows == range(1, 2)
    assert gates(compiled)["span[1]"].rows == range(1, 2)
    assert gates(compiled)["no padding"].rows == range(2)


def test_gate_names_with_padding():
    compiled = compile("ab?", Config(2, allow_padding=True))
    names = set(gates(compiled))
    assert "no padding" not in names and "span[0]" not in names
    assert {"empty match", "finish", "finish end", "count start[1]", "count[1]", "ceiling[1]", "floor[1]"} <= names
    assert gates(compiled)["membership[1]"].rows == range(2)
    assert gates(compiled)["finish end"].rows == range(1, 2)


def test_single_row_has_no_cross_row_gates():
    compiled = compile("a", Config(1))
    assert "done monotonic" not in gates(compiled)
    assert "transition[0]" not in gates(compiled)


def test_membership_degree():
    compiled = compile("[abc]x", Config(2))
    assert degree(gates(compiled)["membership[0]"].poly) == 4
    assert degree(gates(compiled)["membership[1]"].poly) == 2


def test_range_check_gates():
    compiled = compile("[a-z]{3}", Config(3))
    names = gates(compiled)
    assert "membership[0]" not in names
    assert degree(names["lower bound[0]"].poly) == 2
    assert degree(names["upper bound[0]"].poly) == 2
    assert "lower[0][0] boolean" in names and "upper[0][4] boolean" in names


def test_empty_accepted_set():
    for kind in (Set(frozenset()), Rng(0x35, 0x33)):
        sections = [Section(Lit(0x61), 1, 1, "a", 0), Section(kind, 1, 1, "[]", 1)]
        system = ConstraintSystem(2)
        layout = plan(sections, 2, system, 16)
        with pytest.raises(EmptyAcceptedSetError) as info:
            assemble_membership(system, sections, layout)
        assert info.value.position == 1


def test_value_outside_range_is_caught():
    compiled = compile("[a-z]{3}", Config(3))
    assignment = witness_cells(compiled, assign_witness(compiled, "cat"))
    assignment.assign_cell(compiled.shape.column("value[0]"), 1, ord("1"))
    result = failures(compiled, assignment)
    assert Failure("lower bound[0]", 1) in result
    assert Failure("upper bound[0]", 1) in result


def test_bits_are_checked():
    compiled = compile("[a-z]{3}", Config(3))
    assignment = witness_cells(compiled, assign_witness(compiled, "cat"))
    # 'c' - 'a' = 2 written as 0b10, replace it by 2·1 so the sum still works out
    assignment.assign_cell(compiled.shape.column("lower[0][0]"), 0, 2)
    assignment.assign_cell(compiled.shape.column("lower[0][1]"), 0, 0)
    assert failures(compiled, assignment) == [Failure("lower[0][0] boolean", 0)]


def test_value_outside_set_is_caught():
    compiled = compile("a[0-9]{2}b", Config(4))
    assignment = witness_cells(compiled, assign_witness(compiled, "a42b"))
    assignment.assign_cell(compiled.shape.column("value[1]"), 2, ord("x"))
    assert failures(compiled, assignment) == [Failure("membership[1]", 2)]


def test_two_selectors_are_caught():
    compiled = compile("a[0-9]{2}b", Config(4, allow_padding=True))
    assignment = witness_cells(compiled, assign_witness(compiled, "a42b"))
    assignment.assign_cell(compiled.shape.column("selector[0]"), 1, 2)
    result = failures(compiled, assignment)
    assert Failure("boolean[0]", 1) in result
    assert Failure("selector sum", 1) in result


def test_empty_grid_is_caught():
    compiled = compile("[a-z]{3}", Config(3))
    assignment = compiled.shape.assignment()
    for r in range(3):
        assignment.assign_cell(compiled.shape.column("done"), r, 1)
    result = failures(compiled, assignment)
    assert Failure("no padding", 0) in result
    assert Failure("span[0]", 0) in result


def test_empty_match_is_caught():
    compiled = compile("[a-z]{1,3}", Config(3, allow_padding=True))
    assert failures(compiled, forge(compiled, [], "")) == [Failure("empty match", 0)]


def test_section_beyond_its_span_is_caught():
    compiled = compile("a{1,2}b{1,2}", Config(4))
    with pytest.raises(NoMatchError):
        assign_witness(compiled, "aaab")
    assert failures(compiled, forge(compiled, [0, 0, 0, 1], "aaab")) == [Failure("span[1]", 2)]


def test_run_above_maximum_is_caught():
    compiled = compile("a{1,2}b{1,2}", Config(4, allow_padding=True))
    # the run of the first section is also too long to pass its lower bound check
    assert failures(compiled, forge(compiled, [0, 0, 0, 1], "aaab")) == [Failure("ceiling[0]", 2), Failure("floor[0]", 2)]


def test_run_below_minimum_is_caught():
    compiled = compile("a{2,3}b", Config(4, allow_padding=True))
    assert failures(compiled, forge(compiled, [0, 1], "ab")) == [Failure("floor[0]", 0)]


def test_missing_last_section_is_caught():
    compiled = compile("ab", Config(2, allow_padding=True))
    assert failures(compiled, forge(compiled, [0], "a")) == [Failure("finish", 0)]
    compiled = compile("a{1,2}b", Config(3, allow_padding=True))
    assert failures(compiled, forge(compiled, [0, 0, 0], "aaa")) == [Failure("finish end", 2), Failure("ceiling[0]", 2)]


def test_backwards_order_is_caught():
    compiled = compile("ab", Config(2, allow_padding=True))
    result = failures(compiled, forge(compiled, [1, 0], "ba"))
    assert Failure("start", 0) in result
    assert Failure("transition[1]", 0) in result


def test_skipping_a_required_section_is_caught():
    compiled = compile("abc", Config(3, allow_padding=True))
    assert failures(compiled, forge(compiled, [0, 2], "ac")) == [Failure("transition[0]", 0)]


def test_padding_must_be_a_suffix():
    compiled = compile("a{1,3}", Config(3, allow_padding=True))
    assignment = forge(compiled, [0], "a")
    column = compiled.shape.column
    assignment.assign_cell(column("selector[0]"), 2, 1)
    assignment.assign_cell(column("value[0]"), 2, ord("a"))
    assignment.assign_cell(column("count[0]"), 2, 1)
    assignment.assign_cell(column("ceiling[0][0]"), 2, 0)
    assignment.assign_cell(column("ceiling[0][1]"), 2, 1)
    assignment.assign_cell(column("done"), 2, 0)
    assert failures(compiled, assignment) == [Failure("done monotonic", 1)]


def test_accumulator_is_tied_to_selectors():
    compiled = compile("a[0-9]{2}b", Config(4))
    assignment = witness_cells(compiled, assign_witness(compiled, "a42b"))
    assignment.assign_cell(compiled.shape.column("acc"), 3, 1)
    assert Failure("accumulator", 3) in failures(compiled, assignment)
