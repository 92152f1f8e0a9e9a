# Exceptions raised by the compiler pipeline, the witness assigner and the backends.
#
# Compile-stage errors are terminal for a (pattern, configuration) pair and carry the offending pattern
# fragment and its position. Witness-stage errors only concern one input and carry the index of the
# section that failed and the input position reached. Backend errors only concern one proof attempt,
# the compiled shape stays usable.


class CompileError(Exception):
    def __init__(self, msg: str, fragment: str = "", position: int = 0) -> None:
        super().__init__("{} (fragment {!r} at position {})".format(msg, fragment, position))
        self.fragment = fragment
        self.position = position


class ParseError(CompileError):
    pass


class UnboundedRepetitionError(CompileError):
    pass


class LayoutOverflowError(CompileError):
    pass


class EmptyAcceptedSetError(CompileError):
    pass


class MatchError(Exception):
    def __init__(self, msg: str, section: int | None, position: int) -> None:
        super().__init__("{} (section {}, input position {})".format(msg, section, position))
        self.section = section
        self.position = position


class NoMatchError(MatchError):
    pass


class LengthMismatchError(MatchError):
    def __init__(self, msg: str, section: int | None, position: int, expected: int, actual: int) -> None:
        super().__init__("{}: expected {}, got {}".format(msg, expected, actual), section, position)
        self.expected = expected
        self.actual = actual


class BackendError(Exception):
    pass


class AssignmentError(BackendError):
    def __init__(self, msg: str, column: object, row: int) -> None:
        super().__init__("{} (column {}, row {})".format(msg, column, row))
        self.column = column
        self.row = row


class UnsatisfiedError(BackendError):
    def __init__(self, failures: list) -> None:
        head = ", ".join("{} at row {}".format(failure.gate, failure.row) for failure in failures[:8])
        more = "" if len(failures) <= 8 else " and {} more".format(len(failures) - 8)
        super().__init__("constraints not satisfied: {}{}".format(head, more))
        self.failures = failures
