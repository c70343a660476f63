"""Error types for the type checker.

Every failure the inference pipeline can report is an ``InferenceError``.
Builder failures abort tree construction; solver failures stop the solve and
are stored on the Solution next to the partial trace.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typers.checker.constraints import Rule


@dataclass
class InferenceError(Exception):
    """Base class for all inference errors."""

    @property
    def message(self) -> str:
        return "inference failed"

    def __str__(self) -> str:
        return self.message


@dataclass
class BuildTreeFailure(InferenceError):
    """The builder could not construct a derivation node."""

    @property
    def message(self) -> str:
        return "could not build the derivation tree"


@dataclass
class UnboundVariable(BuildTreeFailure):
    """A variable is referenced outside any abstraction that binds it."""

    name: str

    @property
    def message(self) -> str:
        return f"{self.name} not found!"


@dataclass
class SolverError(InferenceError):
    """Base class for failures while simplifying rules."""


@dataclass
class IncompatibleConstraint(SolverError):
    """Two rules for the same variable have right-hand sides of different shape."""

    first: Rule
    second: Rule

    @property
    def message(self) -> str:
        return f"impossible to combine these rules: {self.first} and {self.second}"


@dataclass
class RecursiveDefinition(SolverError):
    """A variable is defined in terms of itself (occurs check)."""

    var: int

    @property
    def message(self) -> str:
        return f"recursive definition of t{self.var}!"


@dataclass
class CycleDetected(SolverError):
    """The rules define an infinite type through a chain of variables."""

    variables: tuple[int, ...] = ()

    @property
    def message(self) -> str:
        if not self.variables:
            return "detected cycle in constraints, cannot proceed ..."
        names = ", ".join(f"t{v}" for v in self.variables)
        return f"detected cycle in constraints involving {names}, cannot proceed ..."


@dataclass
class GoalNotFound(SolverError):
    """No rule has the goal variable on its left-hand side."""

    var: int

    @property
    def message(self) -> str:
        return f"could not find a constraint with t{self.var} on the left hand side"


@dataclass
class StepLimitExceeded(SolverError):
    """Simplification recorded more steps than the configured limit."""

    limit: int

    @property
    def message(self) -> str:
        return f"gave up after {self.limit} simplification steps"
