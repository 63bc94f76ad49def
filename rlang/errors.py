"""Error values and source locations.

Every user-facing failure is an ``RLangError``: one of a closed set of error
kinds plus the ``FileLocation`` it was detected at. Errors are returned
inside ``Err`` and never raised through the builders.

Violations of the binder/scope contracts that the parser must uphold are a
different category: they raise ``ContractViolation`` subclasses and are not
meant to be caught.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileLocation:
    """A 1-based line/column position inside a named file."""

    filename: str
    line: int
    col: int

    def full_string(self) -> str:
        return f"{self.filename}:{self.line}:{self.col}"


PRELUDE = FileLocation("<prelude>", 0, 0)


# ---------------------------------------------------------------------------
# Error kinds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileOpenFailure:
    filename: str
    reason: str


@dataclass(frozen=True)
class FileReadFailure:
    filename: str
    line: int
    reason: str


@dataclass(frozen=True)
class UnexpectedToken:
    found: str
    expected: tuple[str, ...]


@dataclass(frozen=True)
class NoBinding:
    name: str


@dataclass(frozen=True)
class BindingExists:
    name: str


@dataclass(frozen=True)
class ITypeMismatch:
    """Mismatch between two internal (term-level) types."""

    found: str
    expected: str


@dataclass(frozen=True)
class MTypeMismatch:
    """Mismatch between two meta-types."""

    found: str
    expected: str


@dataclass(frozen=True)
class UnboundImplication:
    """An implication (or negation) over a formula with pending arguments."""


@dataclass(frozen=True)
class UnboundTheorem:
    """An axiom or theorem that still takes term arguments."""


ErrorKind = (
    FileOpenFailure
    | FileReadFailure
    | UnexpectedToken
    | NoBinding
    | BindingExists
    | ITypeMismatch
    | MTypeMismatch
    | UnboundImplication
    | UnboundTheorem
)


def _message(kind: ErrorKind) -> str:
    match kind:
        case FileOpenFailure(filename, reason):
            return f'could not open source file "{filename}" because of error `{reason}`'
        case FileReadFailure(filename, line, reason):
            return (
                f'could not read source file "{filename}" at line {line} '
                f"because of error `{reason}`"
            )
        case UnexpectedToken(found, expected):
            return f'found token "{found}", expected one of {list(expected)}'
        case NoBinding(name):
            return f"no binding found for `{name}`"
        case BindingExists(name):
            return f"duplicate binding of `{name}`"
        case ITypeMismatch(found, expected):
            return f"found type `{found}`, expected type `{expected}`"
        case MTypeMismatch(found, expected):
            return (
                f"found metalogical type `{found}`, "
                f"expected metalogical type `{expected}`"
            )
        case UnboundImplication():
            return "implication between non-nullary formulae"
        case UnboundTheorem():
            return "axiom/theorem accepts logical arguments"


@dataclass
class RLangError(Exception):
    """Not frozen: raising sets ``__traceback__`` and friends on the instance."""

    kind: ErrorKind
    location: FileLocation

    @property
    def kind_name(self) -> str:
        return type(self.kind).__name__

    @property
    def message(self) -> str:
        return _message(self.kind)

    @property
    def location_string(self) -> str:
        return self.location.full_string()

    def __str__(self) -> str:
        return f"{self.kind_name} at {self.location_string}: {self.message}"


# ---------------------------------------------------------------------------
# Contract violations (fatal)
# ---------------------------------------------------------------------------


class ContractViolation(Exception):
    """The caller broke a pairing or ordering contract of the environment."""


class BinderContractError(ContractViolation):
    """A local binder was inserted twice, or closed out of order."""


class ScopeError(ContractViolation):
    """A scope or identifier was popped that is not the innermost one."""
