"""Trace of the solver's simplification steps.

Steps are kept in one list per kind, but every step draws its ID from a single
counter, so merging the lists by ID replays the solve in the order it ran.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from typers.checker.constraints import Rule


@dataclass(frozen=True)
class RemoveStep:
    """A trivial rule ``t_x = t_y`` was dropped and ``t_x`` renamed to ``t_y``."""

    id: int
    rules_before: tuple[Rule, ...]
    rules_after: tuple[Rule, ...]
    rules_removed: tuple[Rule, ...]
    replaced: int
    replacement: int

    kind = "remove"

    def describe(self) -> str:
        return f"Replacing t{self.replaced} with t{self.replacement} in all rules"


@dataclass(frozen=True)
class AccumulateStep:
    """Two rules with the same left-hand side were merged."""

    id: int
    rules_before: tuple[Rule, ...]
    rules_after: tuple[Rule, ...]
    rules_added: tuple[Rule, ...]
    rules_compared: tuple[Rule, Rule]

    kind = "accumulate"

    def describe(self) -> str:
        first, second = self.rules_compared
        return f"Comparing these rules\n{first}\n{second}"


@dataclass(frozen=True)
class SubstituteStep:
    """A rule was inlined into the goal rule."""

    id: int
    goal: int
    rules_available: tuple[Rule, ...]
    rule_goal_before: Rule
    rule_goal_after: Rule
    rule_used: Rule

    kind = "substitute"

    def describe(self) -> str:
        return f"Substituting t{self.rule_used.var} in the rule for t{self.goal}"


Step: TypeAlias = RemoveStep | AccumulateStep | SubstituteStep


def in_order(*groups: Iterable[Step]) -> list[Step]:
    """Merge per-kind step lists into the order the steps were taken."""
    return sorted((step for group in groups for step in group), key=lambda step: step.id)


@dataclass
class StepLog:
    """Records steps in per-kind lists under one global order."""

    remove: list[RemoveStep] = field(default_factory=list)
    accumulate: list[AccumulateStep] = field(default_factory=list)
    substitute: list[SubstituteStep] = field(default_factory=list)
    _next_id: int = 0

    def __len__(self) -> int:
        return len(self.remove) + len(self.accumulate) + len(self.substitute)

    def _take_id(self) -> int:
        step_id = self._next_id
        self._next_id += 1
        return step_id

    def record_remove(
        self,
        before: Sequence[Rule],
        after: Sequence[Rule],
        removed: Rule,
        replaced: int,
        replacement: int,
    ) -> RemoveStep:
        step = RemoveStep(
            id=self._take_id(),
            rules_before=tuple(before),
            rules_after=tuple(after),
            rules_removed=(removed,),
            replaced=replaced,
            replacement=replacement,
        )
        self.remove.append(step)
        return step

    def record_accumulate(
        self,
        before: Sequence[Rule],
        after: Sequence[Rule],
        added: Sequence[Rule],
        compared: tuple[Rule, Rule],
    ) -> AccumulateStep:
        step = AccumulateStep(
            id=self._take_id(),
            rules_before=tuple(before),
            rules_after=tuple(after),
            rules_added=tuple(added),
            rules_compared=compared,
        )
        self.accumulate.append(step)
        return step

    def record_substitute(
        self,
        goal: int,
        available: Sequence[Rule],
        before: Rule,
        after: Rule,
        used: Rule,
    ) -> SubstituteStep:
        step = SubstituteStep(
            id=self._take_id(),
            goal=goal,
            rules_available=tuple(available),
            rule_goal_before=before,
            rule_goal_after=after,
            rule_used=used,
        )
        self.substitute.append(step)
        return step

    def ordered(self) -> list[Step]:
        """All steps merged into the order they were taken."""
        return in_order(self.remove, self.accumulate, self.substitute)
