from .errors import EmptyAcceptedSetError
from .layout import CircuitLayout
from .pattern import Section
from .system import ConstraintSystem


def assemble_membership(system: ConstraintSystem, sections: list[Section], layout: CircuitLayout) -> None:
    # Register the per-column gates of every column pair (v, s):
    #     s · (1 - s) = 0                  the selector is boolean
    #     s · Πⱼ (cⱼ - v) = 0              v is an accepted code point whenever s is on
    # The membership gate has degree k + 1 for k accepted code points. For a run [lo, hi] of more than
    # range_threshold code points it is replaced by two range checks on bit decompositions,
    #     s · (v - lo - Σⱼ 2ʲ·bⱼ) = 0
    #     s · (hi - v - Σⱼ 2ʲ·uⱼ) = 0
    # with (hi - lo).bit_length() boolean bits each. Both differences being below 2ᵏ and summing up to
    # hi - lo (far below the field order) forces lo <= v <= hi.
    # The gates hold on the row range of the section. With padding, a section may be shifted towards
    # the start of the grid by the shorter sections before it, so they hold on every row instead.
    for section, pair, span in zip(sections, layout.pairs, layout.spans, strict=True):
        i = pair.section
        rows = None if layout.padding else span
        codes = section.codes
        if len(codes) == 0:
            raise EmptyAcceptedSetError("section {} accepts no character".format(i), section.fragment, section.position)
        s = system.CELL(pair.selector)
        v = system.CELL(pair.value)
        system.add_gate("boolean[{}]".format(i), system.IS_BOOL(s), rows)
        if pair.bound is None:
            system.add_gate("membership[{}]".format(i), system.MUL(s, system.PROD(system.SUB(c, v) for c in sorted(codes))), rows)
            continue
        lo = pair.bound.start
        hi = pair.bound.stop - 1
        for b in pair.lower + pair.upper:
            system.add_gate("{} boolean".format(b.name), system.IS_BOOL(system.CELL(b)), rows)
        system.add_gate("lower bound[{}]".format(i), system.MUL(s, system.SUB(system.SUB(v, lo), system.BITS(list(pair.lower)))), rows)
        system.add_gate("upper bound[{}]".format(i), system.MUL(s, system.SUB(system.SUB(hi, v), system.BITS(list(pair.upper)))), rows)
