from dataclasses import dataclass
from typing import Iterable

from .layout import CircuitLayout, plan
from .membership import assemble_membership
from .pattern import Config, Section, parse
from .sequencing import assemble_counting, assemble_sequencing
from .system import Assignment, ConstraintSystem, Shape
from .witness import RowAssignment, assign, synthesize


@dataclass(frozen=True)
class CompiledLayout:
    # Everything derived from a (pattern, configuration) pair. It is never mutated after compile returns,
    # so one instance can serve any number of witness computations and proofs.
    pattern: str
    config: Config
    sections: tuple[Section, ...]
    layout: CircuitLayout
    shape: Shape


def compile(pattern: str, config: Config) -> CompiledLayout:
    sections = parse(pattern, config)
    system = ConstraintSystem(config.max_input_length)
    layout = plan(sections, config.max_input_length, system, config.range_threshold, config.allow_padding)
    assemble_membership(system, sections, layout)
    assemble_sequencing(system, sections, layout)
    assemble_counting(system, sections, layout)
    return CompiledLayout(pattern, config, tuple(sections), layout, system.finalize())


def assign_witness(compiled: CompiledLayout, text: str | Iterable[int]) -> RowAssignment:
    return assign(list(compiled.sections), compiled.layout, text, compiled.config.allow_padding)


def witness_cells(compiled: CompiledLayout, assigned: RowAssignment) -> Assignment:
    return synthesize(list(compiled.sections), compiled.layout, compiled.shape, assigned)
