from dataclasses import dataclass

from .errors import LayoutOverflowError
from .pattern import Section, contiguous
from .system import Column, ConstraintSystem


@dataclass(frozen=True)
class ColumnPair:
    # The value and selector columns owned by one section. When the accepted set of the section is a
    # long run of consecutive code points, the membership is enforced by two range checks, and the bit
    # columns of v - lo and hi - v are kept here as well. When inputs may be padded, the section can
    # start on any row, and the length of its run is tracked by a counter with the bits of max - count
    # and, on the last row of the run, of count - min.
    section: int
    value: Column
    selector: Column
    bound: range | None = None
    lower: tuple[Column, ...] = ()
    upper: tuple[Column, ...] = ()
    count: Column | None = None
    ceiling: tuple[Column, ...] = ()
    floor: tuple[Column, ...] = ()


@dataclass(frozen=True)
class CircuitLayout:
    rows: int
    pairs: tuple[ColumnPair, ...]
    spans: tuple[range, ...]  # row capacity [start, end) of each section, partitioning [0, rows)
    acc: Column  # index of the active section on each row
    done: Column  # 1 on the padding rows after the match has terminated
    padding: bool = False  # whether inputs shorter than rows are accepted

    def owner(self, row: int) -> int:
        # Return the section whose row capacity contains the given row.
        for i, span in enumerate(self.spans):
            if row in span:
                return i
        raise IndexError("row {} is outside the grid of {} rows".format(row, self.rows))


def bits(system: ConstraintSystem, name: str, n: int) -> tuple[Column, ...]:
    return tuple(system.declare_column("value", "{}[{}]".format(name, j)) for j in range(n))


def plan(sections: list[Section], rows: int, system: ConstraintSystem, threshold: int, padding: bool = False) -> CircuitLayout:
    # Give every section a row capacity equal to its maximum repeat count, the capacities are laid out
    # back to back and have to fill the row budget exactly.
    spans = []
    start = 0
    for section in sections:
        end = start + section.max
        if end > rows:
            raise LayoutOverflowError("row capacity {} exceeds the row budget {}".format(end, rows), section.fragment, section.position)
        spans.append(range(start, end))
        start = end
    if start != rows:
        last = sections[-1] if sections else None
        raise LayoutOverflowError(
            "total row capacity {} falls short of the row budget {}".format(start, rows),
            last.fragment if last else "",
            last.position if last else 0,
        )
    # one column pair per section, trading width for a gate set that is simple to assemble
    pairs = []
    for i, section in enumerate(sections):
        value = system.declare_column("value", "value[{}]".format(i))
        selector = system.declare_column("selector", "selector[{}]".format(i))
        bound = contiguous(section.codes)
        if bound is not None and len(bound) <= threshold:
            bound = None
        bLen = 0 if bound is None else (len(bound) - 1).bit_length()
        lower = bits(system, "lower[{}]".format(i), bLen)
        upper = bits(system, "upper[{}]".format(i), bLen)
        count, ceiling, floor = None, (), ()
        if padding:
            count = system.declare_column("value", "count[{}]".format(i))
            ceiling = bits(system, "ceiling[{}]".format(i), section.max.bit_length())
            floor = bits(system, "floor[{}]".format(i), (section.max - section.min).bit_length())
        pairs.append(ColumnPair(i, value, selector, bound, lower, upper, count, ceiling, floor))
    acc = system.declare_column("value", "acc")
    done = system.declare_column("value", "done")
    return CircuitLayout(rows, tuple(pairs), tuple(spans), acc, done, padding)
