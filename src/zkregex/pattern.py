from dataclasses import dataclass

from .errors import CompileError, ParseError, UnboundedRepetitionError


# configuration of a compilation


QUANTIFIERS = ("?", "+", "*", "{m,}")
DEFAULT_BOUNDS = {"?": (0, 1)}


Bounds = tuple[tuple[str, tuple[int, int]], ...] | dict[str, tuple[int, int]]


@dataclass(frozen=True)
class Config:
    max_input_length: int  # the row budget L of the circuit
    quantifier_bounds: Bounds = ()  # (min, max) for ?, +, * and {m,}, given as a dict or as pairs
    range_threshold: int = 16  # accepted sets larger than this use range checks instead of a product gate
    allow_padding: bool = False  # accept inputs shorter than L, the remaining rows become padding

    def __post_init__(self) -> None:
        if not isinstance(self.max_input_length, int) or self.max_input_length <= 0:
            raise ValueError("max_input_length must be a positive integer")
        if not isinstance(self.range_threshold, int) or self.range_threshold < 1:
            raise ValueError("range_threshold must be a positive integer")
        pairs = dict(self.quantifier_bounds)
        for key, bounds in pairs.items():
            if key not in QUANTIFIERS:
                raise ValueError("unknown quantifier {!r}, expected one of {}".format(key, ", ".join(QUANTIFIERS)))
            if len(bounds) != 2 or not all(isinstance(b, int) for b in bounds):
                raise ValueError("bounds of {!r} must be a pair of integers".format(key))
            if not 0 <= bounds[0] <= bounds[1]:
                raise ValueError("bounds of {!r} must satisfy 0 <= min <= max, got {}".format(key, bounds))
        # normalized to sorted pairs
        object.__setattr__(self, "quantifier_bounds", tuple(sorted((key, tuple(bounds)) for key, bounds in pairs.items())))

    def bounds(self, key: str) -> tuple[int, int] | None:
        return dict(self.quantifier_bounds).get(key, DEFAULT_BOUNDS.get(key))


# section kinds, a flat tagged variant matched by value


@dataclass(frozen=True)
class Lit:
    code: int


@dataclass(frozen=True)
class Rng:
    lo: int
    hi: int


@dataclass(frozen=True)
class Set:
    codes: frozenset[int]


Kind = Lit | Rng | Set
Codes = frozenset[int] | range


def accepted(kind: Kind) -> Codes:
    if isinstance(kind, Lit):
        return frozenset({kind.code})
    if isinstance(kind, Rng):
        return range(kind.lo, kind.hi + 1)
    if isinstance(kind, Set):
        return kind.codes
    raise TypeError("unsupported section kind")


def contiguous(codes: Codes) -> range | None:
    # Return the accepted set as a range if it is a single run of consecutive code points.
    if isinstance(codes, range):
        return codes if len(codes) else None
    if codes and max(codes) - min(codes) + 1 == len(codes):
        return range(min(codes), max(codes) + 1)
    return None


@dataclass(frozen=True)
class Section:
    kind: Kind
    min: int
    max: int
    fragment: str = ""  # the source text of the atom and its quantifier
    position: int = 0  # offset of the fragment in the pattern

    @property
    def codes(self) -> Codes:
        return accepted(self.kind)

    def accepts(self, code: int) -> bool:
        return code in accepted(self.kind)


# the parser


SPECIALS = frozenset("[]{}()|.^$*+?\\")
CLASSES: dict[str, Codes] = {
    "d": range(0x30, 0x3A),
    "w": frozenset(range(0x30, 0x3A)) | frozenset(range(0x41, 0x5B)) | frozenset(range(0x61, 0x7B)) | {0x5F},
    "s": frozenset(map(ord, " \t\n\r\f\v")),
}


class Parser:
    # A recursive descent parser for the pattern language, a pattern is a concatenation of atoms, each of
    # them optionally followed by a single quantifier, and every (atom, quantifier) becomes one section.

    def __init__(self, pattern: str, config: Config) -> None:
        self.pattern = pattern
        self.config = config
        self.pos = 0

    def peek(self, ahead: int = 0) -> str | None:
        i = self.pos + ahead
        return self.pattern[i] if i < len(self.pattern) else None

    def fail(self, msg: str, beg: int, end: int | None = None) -> ParseError:
        return ParseError(msg, self.pattern[beg : beg + 1 if end is None else end], beg)

    def parse(self) -> list[Section]:
        sections = []
        while self.pos < len(self.pattern):
            beg = self.pos
            kind = self.atom()
            lo, hi = self.quantifier(beg)
            sections.append(Section(kind, lo, hi, self.pattern[beg : self.pos], beg))
        return sections

    def atom(self) -> Kind:
        beg = self.pos
        ch = self.pattern[beg]
        if ch == "[":
            return self.bracket()
        if ch == "\\":
            item = self.escape()
            if isinstance(item, int):
                return Lit(item)
            if isinstance(item, range):
                return Rng(item.start, item.stop - 1)
            return Set(item)
        if ch in "?+*{":
            raise self.fail("quantifier without a preceding atom", beg)
        if ch in SPECIALS:
            raise self.fail("unescaped special character", beg)
        self.pos += 1
        return Lit(ord(ch))

    def escape(self) -> int | Codes:
        # Consume an escape sequence, return the code point it stands for, or the set of code points for
        # the shorthand classes \d, \w and \s.
        beg = self.pos
        ch = self.peek(1)
        if ch is None:
            raise self.fail("dangling escape", beg)
        self.pos += 2
        if ch in CLASSES:
            return CLASSES[ch]
        if ch.isalnum() or ch.isspace():
            raise self.fail("unknown escape", beg, self.pos)
        return ord(ch)

    def member(self, beg: int) -> int | Codes:
        ch = self.peek()
        if ch is None:
            raise self.fail("unterminated bracket expression", beg, self.pos)
        if ch == "\\":
            return self.escape()
        self.pos += 1
        return ord(ch)

    def bracket(self) -> Kind:
        beg = self.pos
        self.pos += 1
        if self.peek() == "^":
            raise self.fail("negated bracket expressions are not supported", self.pos)
        items: list[Codes] = []
        while self.peek() != "]":
            if self.peek() is None:
                raise self.fail("unterminated bracket expression", beg, self.pos)
            start = self.pos
            lo = self.member(beg)
            if self.peek() == "-" and self.peek(1) not in ("]", None):
                self.pos += 1
                hi = self.member(beg)
                if not isinstance(lo, int) or not isinstance(hi, int):
                    raise self.fail("character class used as a range bound", start, self.pos)
                if lo > hi:
                    raise self.fail("inverted range", start, self.pos)
                items.append(range(lo, hi + 1))
            else:
                items.append(frozenset({lo}) if isinstance(lo, int) else lo)
        self.pos += 1
        if not items:
            raise self.fail("empty bracket expression", beg, self.pos)
        if len(items) == 1 and isinstance(items[0], range):
            return Rng(items[0].start, items[0].stop - 1)
        return Set(frozenset().union(*items))

    def bounds(self, key: str, beg: int) -> tuple[int, int]:
        bounds = self.config.bounds(key)
        if bounds is None:
            raise UnboundedRepetitionError("no upper bound configured for quantifier {!r}".format(key), self.pattern[beg : self.pos], beg)
        return bounds

    def braces(self, beg: int) -> tuple[int, int]:
        start = self.pos
        end = self.pattern.find("}", start)
        if end < 0:
            raise self.fail("unterminated repetition", start, len(self.pattern))
        lo, sep, hi = self.pattern[start + 1 : end].partition(",")
        self.pos = end + 1
        if not (lo.isascii() and lo.isdigit()) or hi and not (hi.isascii() and hi.isdigit()):
            raise self.fail("malformed repetition", start, self.pos)
        if not sep:
            return int(lo), int(lo)
        if not hi:
            _, top = self.bounds("{m,}", beg)
            if top < int(lo):
                raise UnboundedRepetitionError("configured upper bound {} is below the minimum {}".format(top, lo), self.pattern[beg : self.pos], beg)
            return int(lo), top
        if int(lo) > int(hi):
            raise self.fail("inverted repetition bounds", start, self.pos)
        return int(lo), int(hi)

    def quantifier(self, beg: int) -> tuple[int, int]:
        ch = self.peek()
        if ch in ("?", "+", "*"):
            self.pos += 1
            bounds = self.bounds(ch, beg)
        elif ch == "{":
            bounds = self.braces(beg)
        else:
            return 1, 1
        if self.peek() in ("?", "+", "*", "{"):
            raise self.fail("quantifier follows another quantifier", self.pos)
        return bounds


def parse(pattern: str, config: Config) -> list[Section]:
    try:
        return Parser(pattern, config).parse()
    except CompileError as e:
        e.add_note("while parsing pattern {!r}".format(pattern))
        raise
