"""Type constraints and their normalized form.

Constraints are produced by the derivation-tree builder and assert that two
type expressions must be equal. Before solving they are normalized into
rules, which always have a bare type variable on the left-hand side.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from typers.checker.types import (
    TVar,
    TypeExpr,
    max_var,
    replace_var,
    substitute,
    texpr_to_str,
    variables,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Constraint:
    """Two types must be equal.

    Neither side is privileged; normalization decides which side becomes
    the rule's left-hand side.
    """

    left: TypeExpr
    right: TypeExpr

    @property
    def is_trivial(self) -> bool:
        """True when both sides are syntactically identical."""
        return self.left == self.right

    def variables(self) -> set[int]:
        return variables(self.left) | variables(self.right)

    def __str__(self) -> str:
        return f"{texpr_to_str(self.left)} = {texpr_to_str(self.right)}"


@dataclass(frozen=True)
class Rule:
    """A normalized constraint ``t_var = rhs``.

    This is the only constraint representation the solver works with.
    """

    var: int
    rhs: TypeExpr

    @property
    def lhs(self) -> TVar:
        return TVar(self.var)

    def has_lhs(self, var_id: int) -> bool:
        return self.var == var_id

    def has_same_lhs(self, other: Rule) -> bool:
        return self.var == other.var

    def variables(self) -> set[int]:
        """All variable IDs on either side of the rule."""
        return {self.var} | variables(self.rhs)

    def simple_target(self) -> int | None:
        """For a rule of the form ``t_x = t_y`` return ``y``, else None."""
        if isinstance(self.rhs, TVar):
            return self.rhs.id
        return None

    def replace_var(self, old: int, new: int) -> Rule:
        """Rename ``old`` to ``new`` on both sides."""
        var = new if self.var == old else self.var
        return Rule(var, replace_var(self.rhs, old, new))

    def substitute(self, var_id: int, replacement: TypeExpr) -> Rule:
        """Inline ``replacement`` for ``var_id`` in the right-hand side."""
        return Rule(self.var, substitute(self.rhs, var_id, replacement))

    def __str__(self) -> str:
        return f"t{self.var} = {texpr_to_str(self.rhs)}"


def drop_trivial(constraints: Iterable[Constraint]) -> list[Constraint]:
    """Remove constraints whose two sides are syntactically identical."""
    return [c for c in constraints if not c.is_trivial]


def normalize(constraints: Iterable[Constraint]) -> list[Rule]:
    """Convert raw constraints into rules with a variable on the left.

    A constraint with a bare variable on either side becomes a single rule.
    A constraint between two non-variable types is split into two rules that
    share a freshly allocated variable, numbered above every variable that
    appears in the input. The solver's accumulate phase later compares the
    two halves.

    Args:
        constraints: Raw constraints, typically from the tree builder

    Returns:
        The rules, in constraint order

    Example:
        >>> normalize([Constraint(TInt(), TFun(TVar(0), TVar(1)))])
        [Rule(var=2, rhs=TInt()), Rule(var=2, rhs=TFun(domain=TVar(0), codomain=TVar(1)))]

    """
    constraints = list(constraints)
    highest = max_var(t for c in constraints for t in (c.left, c.right))
    next_id = 0 if highest is None else highest + 1

    rules: list[Rule] = []
    for constraint in constraints:
        match constraint:
            case Constraint(left=TVar(id=vid), right=right):
                rules.append(Rule(vid, right))
            case Constraint(left=left, right=TVar(id=vid)):
                rules.append(Rule(vid, left))
            case Constraint(left=left, right=right):
                logger.debug("splitting %s through fresh t%d", constraint, next_id)
                rules.append(Rule(next_id, left))
                rules.append(Rule(next_id, right))
                next_id += 1
    return rules


def rules_variables(rules: Iterable[Rule]) -> list[int]:
    """Sorted IDs of every variable touched by ``rules``."""
    found: set[int] = set()
    for rule in rules:
        found |= rule.variables()
    return sorted(found)
