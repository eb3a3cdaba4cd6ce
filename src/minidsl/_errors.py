"""Error taxonomy for reading, validating and lowering DSL blocks."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._expr import SourcePos


class DSLError(Exception):
    """Base class for every DSL error.

    Attributes:
        code: Short machine-readable error code.
        statement_index: Index of the offending statement in its block, if known.
        position: Source position of the offending statement, if known.

    """

    default_code = "EDSL"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        statement_index: int | None = None,
        position: SourcePos | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.statement_index = statement_index
        self.position = position

    def __str__(self) -> str:
        context: list[str] = []
        if self.statement_index is not None:
            context.append(f"statement {self.statement_index}")
        if self.position is not None:
            context.append(str(self.position))
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ReadError(DSLError):
    """Source text could not be parsed into an expression tree."""

    default_code = "EREAD"


class ShapeError(DSLError):
    """A node does not match any shape the grammar accepts."""

    default_code = "ESHAPE"

    def __init__(
        self,
        message: str,
        *,
        expected: Sequence[str] = (),
        found: str | None = None,
        code: str | None = None,
        statement_index: int | None = None,
        position: SourcePos | None = None,
    ) -> None:
        self.expected = tuple(expected)
        self.found = found
        if expected:
            message += "; expected " + " or ".join(self.expected)
        if found is not None:
            message += f", found `{found}`"
        super().__init__(message, code=code, statement_index=statement_index, position=position)


class OperandTypeError(DSLError):
    """An operand has the wrong kind of expression."""

    default_code = "EOPERAND"


class UnboundReferenceError(DSLError):
    """An identifier is referenced but never bound."""

    default_code = "EUNBOUND"

    def __init__(
        self,
        name: str,
        *,
        referenced_by: str | None = None,
        statement_index: int | None = None,
        position: SourcePos | None = None,
    ) -> None:
        self.name = name
        self.referenced_by = referenced_by
        message = f"Unbound reference '{name}'"
        if referenced_by is not None:
            message += f" in '{referenced_by}'"
        super().__init__(message, statement_index=statement_index, position=position)


class CyclicDependencyError(DSLError):
    """The bindings of a block have no topological order."""

    default_code = "ECYCLE"

    def __init__(
        self,
        cycle: Sequence[str],
        *,
        statement_index: int | None = None,
        position: SourcePos | None = None,
    ) -> None:
        self.cycle = tuple(cycle)
        message = "Cyclic dependency"
        if self.cycle:
            message += ": " + " -> ".join((*self.cycle, self.cycle[0]))
        super().__init__(message, statement_index=statement_index, position=position)


class SamplingError(DSLError):
    """A sampler could not draw from a distribution."""

    default_code = "ESAMPLE"
