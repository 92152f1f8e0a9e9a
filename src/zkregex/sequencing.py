from .layout import CircuitLayout
from .pattern import Section
from .system import ConstraintSystem


def starts(sections: list[Section]) -> range:
    # The sections a match may begin with: the first one that has to appear at least once, and all the
    # skippable ones before it.
    for i, section in enumerate(sections):
        if section.min > 0:
            return range(i + 1)
    return range(len(sections))


def finals(sections: list[Section]) -> range:
    # The sections a match may end with: the last one that has to appear at least once, and all the
    # skippable ones after it.
    for i in reversed(range(len(sections))):
        if sections[i].min > 0:
            return range(i, len(sections))
    return range(len(sections))


def successors(sections: list[Section], i: int) -> range:
    # The sections the row after a row of section i may belong to: section i itself, or any later one as
    # long as every section jumped over is skippable. This widens the single step {i, i + 1} on purpose,
    # a section whose minimum is zero could never be left out otherwise. Without skippable sections in
    # between, it is exactly {i, i + 1}.
    for j in range(i + 1, len(sections)):
        if sections[j].min > 0:
            return range(i, j + 1)
    return range(i, len(sections))


def assemble_sequencing(system: ConstraintSystem, sections: list[Section], layout: CircuitLayout) -> None:
    # Register the cross-row gates that turn the column pairs into a forward-only automaton:
    #     d · (1 - d) = 0                              done is boolean
    #     Σᵢ sᵢ + d = 1                                exactly one selector is on until done, none after
    #     d(r) · (1 - d(r + 1)) = 0                    once done, done forever (padding is a suffix)
    #     acc - Σᵢ i·sᵢ = 0                            acc is the index of the active section
    #     Πₖ (acc(0) - k) = 0, k ∈ starts              the first row belongs to a legal first section
    #     sᵢ(r) · (1 - d(r + 1)) · Πₖ (acc(r + 1) - k) = 0, k ∈ successors(i)
    #                                                  sections never go backwards or skip a required one
    # Without padding every row holds a character and each section holds exactly the rows of its span:
    #     d = 0                                        on every row
    #     sᵢ - 1 = 0                                   on the rows of the span of section i
    rows = layout.rows
    d = system.CELL(layout.done)
    acc = system.CELL(layout.acc)
    sLst = [system.CELL(pair.selector) for pair in layout.pairs]
    system.add_gate("done boolean", system.IS_BOOL(d))
    system.add_gate("selector sum", system.SUB(system.SUM(sLst, d), 0x01))
    system.add_gate("accumulator", system.SUB(acc, system.SUM(system.MUL(s, i) for i, s in enumerate(sLst))))
    system.add_gate("start", system.PROD(system.SUB(acc, k) for k in starts(sections)), range(min(rows, 1)))
    if not layout.padding:
        system.add_gate("no padding", d)
        for i, (s, span) in enumerate(zip(sLst, layout.spans, strict=True)):
            system.add_gate("span[{}]".format(i), system.SUB(s, 0x01), span)
    if rows < 2:
        return
    steps = range(rows - 1)
    d_next = system.CELL(layout.done, 1)
    acc_next = system.CELL(layout.acc, 1)
    system.add_gate("done monotonic", system.MUL(d, system.SUB(0x01, d_next)), steps)
    for i, s in enumerate(sLst):
        step = system.PROD(system.SUB(acc_next, k) for k in successors(sections, i))
        system.add_gate("transition[{}]".format(i), system.PROD((s, system.SUB(0x01, d_next), step)), steps)


def assemble_counting(system: ConstraintSystem, sections: list[Section], layout: CircuitLayout) -> None:
    # With padding the sections float, so the gates of the spans are replaced by run lengths. The runs
    # are contiguous because acc never decreases, and the counter of section i is
    #     cᵢ(0) = sᵢ(0),  cᵢ(r + 1) = sᵢ(r + 1) · (cᵢ(r) + 1)
    # which is bounded on every row and, on the last row of a run that ends before the grid does, from
    # below. A run reaching the last row needs no lower bound, since the capacities sum up to the rows
    # and every run is already at its maximum then:
    #     maxᵢ - cᵢ - Σⱼ 2ʲ·uⱼ = 0                      with maxᵢ.bit_length() boolean bits
    #     sᵢ(r) · (1 - sᵢ(r + 1)) · (cᵢ - minᵢ - Σⱼ 2ʲ·lⱼ) = 0
    #                                                  with (maxᵢ - minᵢ).bit_length() boolean bits
    # The match also has to end in a legal last section, either on the row before done rises or on the
    # last row of the grid, and it may only be empty if every section is skippable:
    #     (1 - d(r)) · d(r + 1) · Πₖ (acc(r) - k) = 0, k ∈ finals
    if not layout.padding:
        return
    rows = layout.rows
    first = range(min(rows, 1))
    last = range(rows - 1, rows)
    steps = range(rows - 1)
    d = system.CELL(layout.done)
    d_next = system.CELL(layout.done, 1)
    tail = system.PROD(system.SUB(system.CELL(layout.acc), k) for k in finals(sections))
    if any(section.min > 0 for section in sections):
        system.add_gate("empty match", d, first)
    system.add_gate("finish", system.PROD((system.SUB(0x01, d), d_next, tail)), steps)
    system.add_gate("finish end", system.MUL(system.SUB(0x01, d), tail), last)
    for section, pair in zip(sections, layout.pairs, strict=True):
        i = pair.section
        s = system.CELL(pair.selector)
        s_next = system.CELL(pair.selector, 1)
        c = system.CELL(pair.count)
        c_next = system.CELL(pair.count, 1)
        for b in pair.ceiling + pair.floor:
            system.add_gate("{} boolean".format(b.name), system.IS_BOOL(system.CELL(b)))
        system.add_gate("count start[{}]".format(i), system.SUB(c, s), first)
        system.add_gate("count[{}]".format(i), system.SUB(c_next, system.MUL(s_next, system.ADD(c, 0x01))), steps)
        system.add_gate("ceiling[{}]".format(i), system.SUB(system.SUB(section.max, c), system.BITS(list(pair.ceiling))))
        excess = system.SUB(system.SUB(c, section.min), system.BITS(list(pair.floor)))
        system.add_gate("floor[{}]".format(i), system.PROD((s, system.SUB(0x01, s_next), excess)), steps)
