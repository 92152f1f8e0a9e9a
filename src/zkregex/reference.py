import re
from typing import Iterable

from .pattern import Section


# A matcher that does not go through the circuit at all: the sections are turned back into a Python
# regular expression and full-matched by the re module. Every repetition is possessive, so a section
# takes as many characters as it can and never gives any back, which is the matching policy of the
# witness assigner.


def translate(sections: Iterable[Section]) -> str:
    parts = []
    for section in sections:
        codes = sorted(section.codes)
        klass = "".join(re.escape(chr(c)) for c in codes)
        parts.append("[{}]{{{},{}}}+".format(klass, section.min, section.max) if codes else "(?!)")
    return "".join(parts)


def reference_match(sections: Iterable[Section], text: str, length: int | None = None) -> bool:
    # length, when given, is the exact number of characters a match must have
    if length is not None and len(text) != length:
        return False
    return re.fullmatch(translate(sections), text, re.DOTALL) is not None
