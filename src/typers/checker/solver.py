"""Constraint solver using iterative rule simplification.

This module implements Phase 2 of the type checker. Instead of building a
substitution by unification, it rewrites a working set of rules in small,
recorded steps so that the derivation of the answer can be replayed:

1. Accumulate: merge two rules that share a left-hand side, deriving
   equalities between their right-hand sides.
2. Remove: drop a trivial rule ``t_x = t_y`` by renaming one variable to the
   other everywhere.
3. Cycle check: reject rule sets that define an infinite type.
4. Substitute: inline rules into the goal variable's rule until no rule
   applies.

Rules are always picked greedily, first match in list order, so the exact
trace depends on the order of the input rules. A consumed rule is replaced by
the last rule of the working set rather than shifting the rest down.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from typers.checker.constraints import Rule, rules_variables
from typers.checker.errors import (
    CycleDetected,
    GoalNotFound,
    IncompatibleConstraint,
    RecursiveDefinition,
    SolverError,
    StepLimitExceeded,
)
from typers.checker.steps import (
    AccumulateStep,
    RemoveStep,
    Step,
    StepLog,
    SubstituteStep,
    in_order,
)
from typers.checker.types import TFun, TTuple, TVar, TypeExpr, occurs, variables

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10_000


def decompose(left: TypeExpr, right: TypeExpr) -> list[Rule] | None:
    """Derive the rules that make two type expressions equal.

    Identical expressions need no rules. A bare variable on either side
    yields one rule for it. Functions and pairs are compared componentwise,
    left to right.

    Args:
        left: Right-hand side of the first rule being compared
        right: Right-hand side of the second rule being compared

    Returns:
        The derived rules, or None if the shapes cannot be made equal.

    Raises:
        RecursiveDefinition: If a variable is equated with a structure
            that contains it

    """
    match (left, right):
        case (l, r) if l == r:
            return []
        case (TVar(id=vid), other) | (other, TVar(id=vid)):
            if occurs(vid, other):
                raise RecursiveDefinition(vid)
            return [Rule(vid, other)]
        case (TFun(domain=ld, codomain=lc), TFun(domain=rd, codomain=rc)):
            return _pairwise((ld, rd), (lc, rc))
        case (TTuple(first=lf, second=ls), TTuple(first=rf, second=rs)):
            return _pairwise((lf, rf), (ls, rs))
        case _:
            return None


def _pairwise(*pairs: tuple[TypeExpr, TypeExpr]) -> list[Rule] | None:
    result: list[Rule] = []
    for left, right in pairs:
        derived = decompose(left, right)
        if derived is None:
            return None
        result.extend(derived)
    return result


def _swap_remove(rules: list[Rule], index: int) -> Rule:
    """Remove ``rules[index]`` by moving the last rule into its place."""
    last = rules.pop()
    if index == len(rules):
        return last
    removed = rules[index]
    rules[index] = last
    return removed


@dataclass
class Solution:
    """Result of one solve.

    Attributes:
        rules: The rules the solve started from
        variables: Sorted IDs of every variable in those rules
        goal: The variable that was solved for
        remove_steps: Remove steps, in order
        accumulate_steps: Accumulate steps, in order
        substitute_steps: Substitute steps, in order
        goal_rule: The fully substituted goal rule (on success)
        error: The failure that stopped the solve (on failure)
        final_rules: The working set when the solve stopped; on success the
            goal rule in it is replaced by ``goal_rule``

    """

    rules: list[Rule]
    variables: list[int]
    goal: int
    remove_steps: list[RemoveStep] = field(default_factory=list)
    accumulate_steps: list[AccumulateStep] = field(default_factory=list)
    substitute_steps: list[SubstituteStep] = field(default_factory=list)
    goal_rule: Rule | None = None
    error: SolverError | None = None
    final_rules: list[Rule] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None and self.goal_rule is not None

    @property
    def result(self) -> TypeExpr | None:
        """The resolved type of the goal variable, or None on failure."""
        return self.goal_rule.rhs if self.goal_rule is not None else None

    @property
    def steps(self) -> list[Step]:
        """All steps merged into the order they were taken."""
        return in_order(self.remove_steps, self.accumulate_steps, self.substitute_steps)


class Solver:
    """Simplifies a set of rules to a closed type for one goal variable.

    The goal must be numerically the smallest variable: the remove phase
    always renames the larger ID to the smaller one, and this keeps the goal
    from being renamed away.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        goal: int = 0,
        *,
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> None:
        self.initial = list(rules)
        self.goal = goal
        self.max_steps = max_steps
        self.rules: list[Rule] = []
        self.log = StepLog()

        touched = rules_variables(self.initial)
        if touched and touched[0] < goal:
            msg = (
                f"Goal variable t{goal} must have the lowest ID, "
                f"but the rules mention t{touched[0]}"
            )
            raise ValueError(msg)

    def solve(self) -> Solution:
        """Run all phases and return the Solution.

        Solver errors are not raised; they are stored on the Solution along
        with every step recorded before the failure.
        """
        self.rules = list(self.initial)
        self.log = StepLog()
        goal_rule: Rule | None = None
        error: SolverError | None = None

        try:
            self._simplify()
            self._check_cycles()
            goal_rule = self._substitute_goal()
        except SolverError as exc:
            logger.debug("solving t%d failed: %s", self.goal, exc)
            error = exc

        if goal_rule is not None:
            final_rules = [
                goal_rule if rule.has_lhs(self.goal) else rule for rule in self.rules
            ]
        else:
            final_rules = list(self.rules)

        return Solution(
            rules=list(self.initial),
            variables=rules_variables(self.initial),
            goal=self.goal,
            remove_steps=self.log.remove,
            accumulate_steps=self.log.accumulate,
            substitute_steps=self.log.substitute,
            goal_rule=goal_rule,
            error=error,
            final_rules=final_rules,
        )

    def _check_budget(self) -> None:
        if len(self.log) > self.max_steps:
            raise StepLimitExceeded(self.max_steps)

    def _simplify(self) -> None:
        """Alternate accumulate and remove until nothing can be accumulated."""
        while self._accumulate() is not None:
            self._check_budget()
            self._remove()
            self._check_budget()

    def _accumulate(self) -> AccumulateStep | None:
        """Merge the first pair of rules that share a left-hand side.

        Raises:
            IncompatibleConstraint: If their right-hand sides cannot be equal
            RecursiveDefinition: If equating them defines an infinite type

        """
        for i, first in enumerate(self.rules):
            for j in range(i + 1, len(self.rules)):
                second = self.rules[j]
                if not first.has_same_lhs(second):
                    continue

                added = decompose(first.rhs, second.rhs)
                if added is None:
                    raise IncompatibleConstraint(first, second)

                before = list(self.rules)
                _swap_remove(self.rules, j)
                self.rules.extend(added)
                logger.debug("accumulate %s | %s -> %s", first, second, added)
                return self.log.record_accumulate(
                    before,
                    self.rules,
                    added,
                    (first, second),
                )
        return None

    def _remove(self) -> RemoveStep | None:
        """Eliminate the first rule of the form ``t_x = t_y``.

        Raises:
            RecursiveDefinition: If a rule has the form ``t_x = t_x``

        """
        for i, rule in enumerate(self.rules):
            target = rule.simple_target()
            if target is None:
                continue
            if target == rule.var:
                raise RecursiveDefinition(rule.var)

            replaced, replacement = max(rule.var, target), min(rule.var, target)
            before = list(self.rules)
            _swap_remove(self.rules, i)
            self.rules = [r.replace_var(replaced, replacement) for r in self.rules]
            logger.debug("remove %s, t%d becomes t%d", rule, replaced, replacement)
            return self.log.record_remove(
                before,
                self.rules,
                rule,
                replaced,
                replacement,
            )
        return None

    def _check_cycles(self) -> None:
        """Reject rule sets whose variable dependencies form a cycle.

        Uses Kahn's algorithm over edges from each rule's variable to the
        variables of its right-hand side.

        Raises:
            CycleDetected: If not every variable can be ordered topologically

        """
        edges: dict[int, set[int]] = {}
        for rule in self.rules:
            edges.setdefault(rule.var, set()).update(variables(rule.rhs))

        nodes = set(edges)
        for targets in edges.values():
            nodes |= targets

        in_degree = dict.fromkeys(nodes, 0)
        for targets in edges.values():
            for target in targets:
                in_degree[target] += 1

        queue = deque(sorted(node for node in nodes if in_degree[node] == 0))
        visited = 0
        while queue:
            node = queue.popleft()
            visited += 1
            for target in sorted(edges.get(node, ())):
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        if visited < len(nodes):
            stuck = tuple(sorted(node for node in nodes if in_degree[node] > 0))
            raise CycleDetected(stuck)

    def _substitute_goal(self) -> Rule:
        """Inline rules into the goal rule until none applies.

        Raises:
            GoalNotFound: If no rule defines the goal variable

        """
        goal_rule = next((r for r in self.rules if r.has_lhs(self.goal)), None)
        if goal_rule is None:
            raise GoalNotFound(self.goal)

        while True:
            used = next(
                (
                    r
                    for r in self.rules
                    if not r.has_lhs(self.goal) and occurs(r.var, goal_rule.rhs)
                ),
                None,
            )
            if used is None:
                return goal_rule

            after = goal_rule.substitute(used.var, used.rhs)
            logger.debug("substitute %s into %s", used, goal_rule)
            self.log.record_substitute(
                self.goal,
                self.rules,
                goal_rule,
                after,
                used,
            )
            goal_rule = after
            self._check_budget()


def solve_constraints(
    rules: Iterable[Rule],
    goal: int = 0,
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> Solution:
    """Solve ``rules`` for the variable ``goal``.

    Args:
        rules: Normalized rules, e.g. from ``normalize``
        goal: ID of the variable to solve for; must be the lowest ID
        max_steps: Upper bound on recorded simplification steps

    Returns:
        The Solution, holding either the goal rule or the error.

    Raises:
        ValueError: If a rule mentions a variable with a lower ID than ``goal``

    """
    return Solver(rules, goal, max_steps=max_steps).solve()
