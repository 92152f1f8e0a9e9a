from dataclasses import dataclass, field
from typing import Callable, Iterable

from pymcl import r as ρ

from .system import Shape
from .types import Fld


@dataclass
class Var:
    # All variables of the rank-1 constraint system are linear combinations of the entries in its witness
    # vector, so they are represented by a dictionary that maps the indices of the entries to their
    # coefficients, for example, x = w₀ + 5w₂ + 7w₃ is {0: 1, 2: 5, 3: 7}, note that the entries with
    # coefficient 0 are always omitted. Constants are always represented by the integer itself.

    data: dict[int, Fld] = field(default_factory=lambda: {})


Gal = Var | Fld


Gate = tuple[Gal, Gal, Gal, str]
Getw = Callable[[Gal], Fld]
Args = dict[str, Fld]
Func = Callable[[Getw, Args], Fld]


class Witness:
    def __init__(self, funcs: list[Func], args: Args) -> None:
        self.vec: list[Fld] = []
        for func in funcs:
            self.vec.append(func(self.apply, args))

    def apply(self, xGal: Gal) -> Fld:
        return xGal if isinstance(xGal, Fld) else sum(self.vec[m] * a for m, a in xGal.data.items()) % ρ  # <w, t> = Σₘ₌₀ᴹ⁻¹ wₘtₘ


def tag(name: str, row: int) -> str:
    # cells and constraints are both named after a grid name and a row
    return "{}@{}".format(name, row)


def untag(msg: str) -> tuple[str, int]:
    name, _, row = msg.rpartition("@")
    return name, int(row)


class R1CS:
    # The R1CS class lowers the polynomial gates of a shape to constraints of the form x · y = z, where x,
    # y and z are linear combinations of the entries in the witness vector. Every cell of the grid becomes
    # one private entry whose value is looked up by name in the args dictionary when the witness vector is
    # generated, and every monomial over the cells becomes a chain of multiplications.

    wire_count: int  # dimension of the witness vector
    funcs: list[Func]  # functions to generate the witness vector entries
    stmts: dict[int, str]  # the public entries, keys are their indices in the witness vector, and values are their names
    gates: list[Gate]  # the constraints, see the MKGATE method for details
    prods: dict[tuple[tuple[int, int], ...], Gal]  # memoization of the products of cells

    def __init__(self) -> None:
        self.wire_count = 0
        self.funcs = []
        self.stmts = {}
        self.gates = []
        self.prods = {}
        # add a constant 1 to the witness vector
        [self.one] = self.MKWIRE(lambda getw, args: 0x01, "ONE").data

    def MKWIRE(self, func: Func, name: str | None = None) -> Var:
        # Add a new entry defined by the given function to the witness vector, if name is specified, the
        # entry will be treated as public.
        i = self.wire_count
        self.funcs.append(func)
        self.wire_count += 1
        if name is not None:
            self.stmts[i] = name
        return Var({i: 0x01})

    def MKGATE(self, xGal: Gal, yGal: Gal, zGal: Gal, *, msg="assertion error") -> None:
        # Add the constraint x * y = z to the system, msg names the constraint when it is not satisfied.
        if isinstance(xGal, Fld) or isinstance(yGal, Fld):
            zGal = self.SUB(zGal, self.MUL(xGal, yGal))
            if isinstance(zGal, Fld):
                assert zGal == 0x00, msg
                return
            xGal = 0x00
            yGal = 0x00
        self.gates.append((xGal, yGal, zGal, msg))

    def PARAM(self, name: str, public: bool = False) -> Var:
        # Add a new entry whose value is the one named name in the args dictionary at runtime.
        return self.MKWIRE(lambda getw, args: args[name] % ρ, name if public else None)

    def SUM(self, iLst: Iterable[Gal], rGal: Gal = 0x00) -> Gal:
        rGal = Var({self.one: rGal}) if isinstance(rGal, Fld) else Var(rGal.data.copy())
        for iGal in iLst:
            for k, v in ({self.one: iGal} if isinstance(iGal, Fld) else iGal.data).items():
                rGal.data[k] = rGal.data.get(k, 0x00) + v
        rGal = Var({k: t for k, v in rGal.data.items() if (t := v % ρ)})
        return rGal.data.get(self.one, 0x00) if rGal.data.keys() <= {self.one} else rGal

    def SUB(self, xGal: Gal, yGal: Gal) -> Gal:
        return self.SUM((xGal, self.MUL(yGal, ρ - 1)))

    def MUL(self, xGal: Gal, yGal: Gal, *, msg="multiplication error") -> Gal:
        if isinstance(xGal, Fld) and isinstance(yGal, Fld):
            return xGal * yGal % ρ
        if xGal == 0x00 or yGal == 0x00:
            return 0x00
        if isinstance(yGal, Fld) and isinstance(xGal, Var):
            return Var({k: v * yGal % ρ for k, v in xGal.data.items()})
        if isinstance(xGal, Fld) and isinstance(yGal, Var):
            return Var({k: v * xGal % ρ for k, v in yGal.data.items()})
        zGal = self.MKWIRE(lambda getw, args: getw(xGal) * getw(yGal) % ρ)
        self.MKGATE(xGal, yGal, zGal, msg=msg)
        return zGal

    def ASSERT_EQZ(self, xGal: Gal, *, msg="EQZ assertion failed") -> None:
        self.MKGATE(0x00, 0x00, xGal, msg=msg)

    def PRODUCT(self, cLst: tuple[tuple[int, int], ...], cells: list[list[Var]], *, msg: str) -> Gal:
        # The product of the given (column, row) cells, built one factor at a time so that monomials
        # sharing a prefix share their multiplications.
        if not cLst:
            return 0x01
        rGal = self.prods.get(cLst)
        if rGal is None:
            c, r = cLst[-1]
            rGal = self.MUL(self.PRODUCT(cLst[:-1], cells, msg=msg), cells[c][r], msg=msg)
            self.prods[cLst] = rGal
        return rGal

    def LOWER(self, shape: Shape) -> None:
        cells = [[self.PARAM(tag(column.name, r)) for r in range(shape.rows)] for column in shape.columns]
        for gate in shape.gates:
            for row in gate.rows:
                msg = tag(gate.name, row)
                terms = []
                for mono, coef in gate.poly.data.items():
                    cLst = tuple(sorted((c, row + k) for c, k in mono))
                    terms.append(self.MUL(self.PRODUCT(cLst, cells, msg=msg), coef))
                self.ASSERT_EQZ(self.SUM(terms), msg=msg)

    def arguments(self, shape: Shape, cells: list[list[Fld]]) -> Args:
        return {tag(column.name, r): cells[column.index][r] for column in shape.columns for r in range(shape.rows)}
