"""Exception hierarchy for enumeration.

Two families are kept apart:

    MalformedInstanceError  -- the input is wrong (cyclic precedences,
                               negative weights, unreachable vertices ...).
    InvariantViolationError -- the code is wrong (e.g. a lazy array rule
                               that depends on itself).

Exhaustion of an enumerator is not an error and never raised; see
``incremental.models.EXHAUSTED``.
"""


class EnumerationError(Exception):
    """Base class of all errors raised by the package."""


class MalformedInstanceError(EnumerationError, ValueError):
    """Instance violates the preconditions of its problem family."""


class InvariantViolationError(EnumerationError, RuntimeError):
    """Internal invariant broken; indicates a programming error."""


class LazyArrayError(InvariantViolationError):
    """Misuse of a :class:`~incremental.lazy_array.LazyArray`."""


class CyclicDependencyError(LazyArrayError):
    """Computing an entry transitively required the entry itself."""

    def __init__(self, index: int):
        super().__init__(f"cyclic dependency while computing lazy array entry {index}")
        self.index = index


class WriteOnceError(LazyArrayError):
    """An entry that is already memoized (or being computed) was written."""

    def __init__(self, index: int):
        super().__init__(f"lazy array entry {index} is write-once and already set")
        self.index = index


class MissingRuleError(LazyArrayError):
    """An unforced entry was read from an array without a computation rule."""

    def __init__(self, index: int):
        super().__init__(f"lazy array entry {index} is unset and the array has no rule")
        self.index = index
