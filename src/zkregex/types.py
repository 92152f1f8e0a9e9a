from dataclasses import dataclass, field
from typing import Callable

from pymcl import r as ρ


Fld = int


Query = tuple[int, int]  # (column index, row rotation)
Mono = tuple[Query, ...]  # sorted, repeated queries represent powers


@dataclass
class Poly:
    # A polynomial over the cells of the grid, represented by a dictionary that maps monomials to their
    # coefficients, for example, 3 + 2·v(r)·s(r) - s(r+1)² with v = column 0 and s = column 1 is
    # {(): 3, ((0, 0), (1, 0)): 2, ((1, 1), (1, 1)): ρ - 1}. The entries with coefficient 0 are always
    # omitted, and constants are always represented by the integer itself.

    data: dict[Mono, Fld] = field(default_factory=lambda: {})


Gal = Poly | Fld


Getc = Callable[[int, int], Fld]  # (column index, row) -> cell value


def degree(xGal: Gal) -> int:
    return 0 if isinstance(xGal, Fld) else max(len(mono) for mono in xGal.data)


def queries(xGal: Gal) -> set[Query]:
    return set() if isinstance(xGal, Fld) else {query for mono in xGal.data for query in mono}


def evaluate(xGal: Gal, getc: Getc, row: int) -> Fld:
    # Evaluate the polynomial with every query (c, k) replaced by the value of the cell (c, row + k).
    if isinstance(xGal, Fld):
        return xGal % ρ
    total = 0x00
    for mono, coef in xGal.data.items():
        for c, k in mono:
            coef = coef * getc(c, row + k) % ρ
        total += coef
    return total % ρ
