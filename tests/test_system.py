import pytest
from pymcl import r as ρ

from zkregex.errors import AssignmentError
from zkregex.system import ConstraintSystem, Failure
from zkregex.types import Poly, degree, evaluate, queries


@pytest.fixture
def system():
    system = ConstraintSystem(3)
    system.x = system.declare_column("value", "x")
    system.s = system.declare_column("selector", "s")
    return system


def test_arithmetic(system):
    x = system.CELL(system.x)
    assert system.ADD(x, 0) == x
    assert system.SUB(x, x) == 0
    assert system.MUL(system.ADD(x, 1), system.SUB(x, 1)) == system.SUB(system.MUL(x, x), 1)
    assert system.SUB(0, 1) == ρ - 1
    assert system.PROD(()) == 1
    assert system.IS_BOOL(x) == Poly({((0, 0),): 1, ((0, 0), (0, 0)): ρ - 1})


def test_degree_and_queries(system):
    x = system.CELL(system.x)
    s = system.CELL(system.s, 1)
    poly = system.MUL(s, system.PROD(system.SUB(c, x) for c in (1, 2, 3)))
    assert degree(poly) == 4
    assert queries(poly) == {(0, 0), (1, 1)}
    assert degree(7) == 0


def test_evaluate(system):
    x = system.CELL(system.x)
    s = system.CELL(system.s, 1)
    poly = system.SUB(system.MUL(x, s), 6)
    grid = {(0, 0): 2, (1, 1): 3, (1, 0): 5}
    assert evaluate(poly, lambda c, r: grid[c, r], 0) == 0
    assert evaluate(poly, lambda c, r: grid.get((c, r), 0), 1) == ρ - 6


def test_bits(system):
    bits = [system.declare_column("value", "b{}".format(j)) for j in range(3)]
    poly = system.BITS(bits)
    cells = {2: 1, 3: 0, 4: 1}
    assert evaluate(poly, lambda c, r: cells[c], 0) == 5


def test_declare_column_errors(system):
    with pytest.raises(ValueError):
        system.declare_column("value", "x")
    system.finalize()
    with pytest.raises(RuntimeError):
        system.declare_column("value", "y")


def test_add_gate_validates_queries(system):
    x_next = system.CELL(system.x, 1)
    with pytest.raises(ValueError):
        system.add_gate("bad", x_next)
    system.add_gate("good", x_next, range(2))
    system.add_gate("trivial", 0)
    assert [gate.name for gate in system.gates] == ["good"]


def test_check_reports_failures(system):
    system.add_gate("bool", system.IS_BOOL(system.CELL(system.s)))
    shape = system.finalize()
    assignment = shape.assignment()
    assignment.assign_cell(shape.column("s"), 0, 1)
    assignment.assign_cell(shape.column("s"), 2, 2)
    assert shape.check(assignment) == [Failure("bool", 2)]


def test_assign_cell_errors(system):
    shape = system.finalize()
    assignment = shape.assignment()
    other = ConstraintSystem(3).declare_column("value", "y")
    with pytest.raises(AssignmentError):
        assignment.assign_cell(other, 0, 1)
    with pytest.raises(AssignmentError):
        assignment.assign_cell(shape.column("x"), 3, 1)
    with pytest.raises(AssignmentError):
        assignment.assign_cell(shape.column("x"), 0, "1")
    with pytest.raises(AssignmentError):
        assignment.assign_cell(shape.column("x"), 0, True)
    assignment.assign_cell(shape.column("x"), 0, -1)
    assert assignment.query(0, 0) == ρ - 1
    with pytest.raises(KeyError):
        shape.column("missing")
