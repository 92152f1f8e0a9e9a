from dataclasses import dataclass
from typing import Iterable, Literal

from pymcl import r as ρ

from .errors import AssignmentError
from .types import Fld, Poly, Gal, evaluate, queries


ColumnKind = Literal["value", "selector"]


@dataclass(frozen=True)
class Column:
    index: int
    kind: ColumnKind
    name: str


@dataclass(frozen=True)
class Gate:
    # A polynomial identity that has to evaluate to zero on every row in rows, queries with a non-zero
    # rotation refer to the neighbouring rows, so rows never includes a row whose neighbour is missing.
    name: str
    poly: Gal
    rows: range


@dataclass(frozen=True)
class Failure:
    gate: str
    row: int


class ConstraintSystem:
    # The ConstraintSystem class is used to build the shape of a circuit, it provides methods to declare
    # the columns of the grid, to register gates, and to perform arithmetic on the polynomials queried
    # from the cells. Once finalized, the shape is immutable and shared by every proof.

    rows: int  # height of the grid
    columns: list[Column]
    gates: list[Gate]
    final: bool

    def __init__(self, rows: int) -> None:
        self.rows = rows
        self.columns = []
        self.gates = []
        self.final = False

    def declare_column(self, kind: ColumnKind, name: str) -> Column:
        if self.final:
            raise RuntimeError("cannot declare a column after finalization")
        if any(column.name == name for column in self.columns):
            raise ValueError("duplicate column name: {}".format(name))
        column = Column(len(self.columns), kind, name)
        self.columns.append(column)
        return column

    def add_gate(self, name: str, poly: Gal, rows: range | None = None) -> None:
        if self.final:
            raise RuntimeError("cannot add a gate after finalization")
        rows = range(self.rows) if rows is None else rows
        if isinstance(poly, Fld):
            # a constant gate is either trivially satisfied or never satisfiable
            assert poly % ρ == 0x00 or len(rows) == 0, name
            return
        for c, k in queries(poly):
            if not 0 <= c < len(self.columns):
                raise ValueError("gate {} queries an undeclared column".format(name))
            if len(rows) and not (0 <= rows[0] + k and rows[-1] + k < self.rows):
                raise ValueError("gate {} queries outside the grid".format(name))
        self.gates.append(Gate(name, poly, rows))

    def finalize(self) -> "Shape":
        self.final = True
        return Shape(self.rows, tuple(self.columns), tuple(self.gates))

    # arithmetic operations on polynomials

    def CELL(self, column: Column, rotation: int = 0) -> Poly:
        return Poly({((column.index, rotation),): 0x01})

    def NORM(self, data: dict) -> Gal:
        rGal = Poly({k: t for k, v in data.items() if (t := v % ρ)})
        return rGal.data.get((), 0x00) if rGal.data.keys() <= {()} else rGal

    def ADD(self, xGal: Gal, yGal: Gal) -> Gal:
        return self.SUM((xGal, yGal))

    def SUB(self, xGal: Gal, yGal: Gal) -> Gal:
        return self.SUM((xGal, self.MUL(yGal, ρ - 1)))

    def SUM(self, iLst: Iterable[Gal], rGal: Gal = 0x00) -> Gal:
        data: dict = {}
        for iGal in (rGal, *iLst):
            for k, v in ({(): iGal} if isinstance(iGal, Fld) else iGal.data).items():
                data[k] = data.get(k, 0x00) + v
        return self.NORM(data)

    def MUL(self, xGal: Gal, yGal: Gal) -> Gal:
        if isinstance(xGal, Fld) and isinstance(yGal, Fld):
            return xGal * yGal % ρ
        data: dict = {}
        for xk, xv in ({(): xGal} if isinstance(xGal, Fld) else xGal.data).items():
            for yk, yv in ({(): yGal} if isinstance(yGal, Fld) else yGal.data).items():
                k = tuple(sorted(xk + yk))
                data[k] = data.get(k, 0x00) + xv * yv
        return self.NORM(data)

    def PROD(self, iLst: Iterable[Gal], rGal: Gal = 0x01) -> Gal:
        for iGal in iLst:
            rGal = self.MUL(rGal, iGal)
        return rGal

    def IS_BOOL(self, xGal: Gal) -> Gal:
        # x · (1 - x), zero exactly when x is 0 or 1
        return self.MUL(xGal, self.SUB(0x01, xGal))

    def BITS(self, bLst: list[Column]) -> Gal:
        # Σⱼ 2ʲ·bⱼ, the value represented by little-endian bit columns
        return self.SUM(self.MUL(self.CELL(b), 0x02**j) for j, b in enumerate(bLst))


class Assignment:
    # The cell values of one proof attempt, unassigned cells are 0.

    def __init__(self, shape: "Shape") -> None:
        self.shape = shape
        self.cells: list[list[Fld]] = [[0x00] * shape.rows for _ in shape.columns]

    def assign_cell(self, column: Column, row: int, value: Fld) -> None:
        if not (isinstance(column, Column) and 0 <= column.index < len(self.shape.columns) and self.shape.columns[column.index] == column):
            raise AssignmentError("unknown column", getattr(column, "name", column), row)
        if not 0 <= row < self.shape.rows:
            raise AssignmentError("row out of range", column.name, row)
        if not isinstance(value, int) or isinstance(value, bool):
            raise AssignmentError("value is not a field element: {!r}".format(value), column.name, row)
        self.cells[column.index][row] = value % ρ

    def query(self, c: int, row: int) -> Fld:
        return self.cells[c][row]


@dataclass(frozen=True)
class Shape:
    rows: int
    columns: tuple[Column, ...]
    gates: tuple[Gate, ...]

    def assignment(self) -> Assignment:
        return Assignment(self)

    def column(self, name: str) -> Column:
        for column in self.columns:
            if column.name == name:
                return column
        raise KeyError(name)

    def check(self, assignment: Assignment) -> list[Failure]:
        # Evaluate every gate on every row it is enabled on, and collect those that do not vanish.
        return [Failure(gate.name, row) for gate in self.gates for row in gate.rows if evaluate(gate.poly, assignment.query, row)]
