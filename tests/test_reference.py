import random

import pytest

from zkregex.compiler import assign_witness, compile
from zkregex.errors import MatchError, NoMatchError
from zkregex.pattern import Config, Section, Set, parse
from zkregex.reference import reference_match, translate


CASES = [
    ("a[0-9]{2}b", Config(4), "ab0123456789x", [4]),
    ("[a-z]{1,3}[0-9]{0,2}X", Config(6, allow_padding=True), "ab1X", range(0, 8)),
    ("\\d{2}[-/]?\\d{2}", Config(5, allow_padding=True), "12-/a", range(3, 7)),
    ("x?y?z", Config(3, allow_padding=True), "xyz", range(0, 5)),
    # adjacent sections sharing characters
    ("[a-z]{0,3}a", Config(4, allow_padding=True), "abc", range(0, 6)),
    ("a?[ab]{1,2}", Config(3, allow_padding=True), "ab", range(0, 5)),
    ("[0-9]{1,2}[0-5]{2}", Config(4), "0169", [4]),
]


def test_translate():
    assert translate(parse("a[0-9]{2}", Config(3))) == "[a]{1,1}+[0123456789]{2,2}+"
    assert translate(parse("\\.?", Config(1))) == "[\\.]{0,1}+"
    assert translate([Section(Set(frozenset()), 1, 1)]) == "(?!)"


def test_reference_match():
    sections = parse("a[0-9]{2}b", Config(4))
    assert reference_match(sections, "a42b")
    assert not reference_match(sections, "a4b")
    assert not reference_match(sections, "a42bb")


def test_repetition_never_gives_back():
    # a backtracking matcher would split "bca" as "bc" + "a"
    compiled = compile("[a-z]{0,3}a", Config(4, allow_padding=True))
    assert not reference_match(compiled.sections, "bca")
    with pytest.raises(NoMatchError):
        assign_witness(compiled, "bca")
    assert reference_match(compiled.sections, "bcaa")
    assert assign_witness(compiled, "bcaa").length == 4


def test_exact_length():
    sections = parse("a?b", Config(2))
    assert reference_match(sections, "b")
    assert not reference_match(sections, "b", 2)
    assert reference_match(sections, "ab", 2)


@pytest.mark.parametrize("pattern, config, alphabet, lengths", CASES)
def test_agrees_with_reference(pattern, config, alphabet, lengths):
    rand = random.Random(pattern)
    compiled = compile(pattern, config)
    length = None if config.allow_padding else config.max_input_length
    for _ in range(200):
        text = "".join(rand.choice(alphabet) for _ in range(rand.choice(lengths)))
        try:
            assigned = assign_witness(compiled, text)
        except MatchError:
            assert not reference_match(compiled.sections, text, length), text
        else:
            assert reference_match(compiled.sections, text, length), text
            assert assigned.length == len(text)
            assert all(sum(row.selectors) == 1 - done for row, done in zip(assigned.rows, assigned.done))
