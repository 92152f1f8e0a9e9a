from dataclasses import dataclass
from typing import Iterable

from .errors import LengthMismatchError, NoMatchError
from .layout import CircuitLayout
from .pattern import Section
from .system import Assignment, Column, Shape
from .types import Fld


PAD = 0x00  # value of the trailing rows after the match has terminated


@dataclass(frozen=True)
class Row:
    section: int | None  # None on padding rows
    selectors: tuple[int, ...]
    value: Fld


@dataclass(frozen=True)
class RowAssignment:
    rows: tuple[Row, ...]
    length: int  # number of input characters consumed

    @property
    def accumulator(self) -> list[int]:
        return [0 if row.section is None else row.section for row in self.rows]

    @property
    def done(self) -> list[int]:
        return [int(row.section is None) for row in self.rows]


def codepoints(text: str | Iterable[int]) -> list[int]:
    return [ord(ch) for ch in text] if isinstance(text, str) else list(text)


def assign(sections: list[Section], layout: CircuitLayout, text: str | Iterable[int], allow_padding: bool = False) -> RowAssignment:
    # A single forward pass without backtracking: every section greedily takes as many characters as
    # it accepts, up to its maximum. A shorter match that would have let a later section succeed is
    # never tried, so for ambiguous patterns the greedy split is the one the witness proves.
    codes = codepoints(text)
    n = len(codes)
    L = layout.rows
    least = sum(section.min for section in sections) if allow_padding else L
    if not least <= n <= L:
        raise LengthMismatchError("input length does not fit the row budget", None, 0, L, n)
    owners: list[int] = []
    pos = 0
    for i, section in enumerate(sections):
        count = 0
        while count < section.max and pos < n and section.accepts(codes[pos]):
            owners.append(i)
            count += 1
            pos += 1
        if count < section.min:
            raise NoMatchError("section {!r} matched {} of at least {} characters".format(section.fragment, count, section.min), i, pos)
    if pos != n:
        raise LengthMismatchError("input continues after the last section", len(sections) - 1, pos, n, pos)
    k = len(sections)
    rows = []
    for r in range(L):
        if r < n:
            rows.append(Row(owners[r], tuple(int(j == owners[r]) for j in range(k)), codes[r]))
        else:
            rows.append(Row(None, (0x00,) * k, PAD))
    return RowAssignment(tuple(rows), n)


def assign_bits(assignment: Assignment, columns: tuple[Column, ...], row: int, value: int) -> None:
    for j, column in enumerate(columns):
        assignment.assign_cell(column, row, value >> j & 0x01)


def synthesize(sections: list[Section], layout: CircuitLayout, shape: Shape, assigned: RowAssignment) -> Assignment:
    # Fill every cell of the grid from the row assignment: the value and selector of each column pair,
    # the bits of the range checks, the run counters when inputs may be padded, and the acc and done
    # columns.
    assignment = shape.assignment()
    runs = [0x00] * len(layout.pairs)
    for r, row in enumerate(assigned.rows):
        after = assigned.rows[r + 1].section if r + 1 < len(assigned.rows) else None
        for section, pair, bit in zip(sections, layout.pairs, row.selectors, strict=True):
            active = row.section == pair.section
            runs[pair.section] = runs[pair.section] + 1 if active else 0x00
            assignment.assign_cell(pair.selector, r, bit)
            assignment.assign_cell(pair.value, r, row.value if active else PAD)
            if pair.bound is not None:
                assign_bits(assignment, pair.lower, r, row.value - pair.bound.start if active else 0x00)
                assign_bits(assignment, pair.upper, r, pair.bound.stop - 1 - row.value if active else 0x00)
            if pair.count is not None:
                run = runs[pair.section]
                assignment.assign_cell(pair.count, r, run)
                assign_bits(assignment, pair.ceiling, r, section.max - run)
                assign_bits(assignment, pair.floor, r, run - section.min if active and after != pair.section else 0x00)
        assignment.assign_cell(layout.acc, r, 0 if row.section is None else row.section)
        assignment.assign_cell(layout.done, r, int(row.section is None))
    return assignment
