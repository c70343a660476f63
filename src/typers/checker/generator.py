"""Derivation-tree construction and constraint generation.

This module implements Phase 1 of the type checker: a bidirectional,
syntax-directed walk over the expression tree. For each subexpression the
builder is given an expected type. Forms whose expected type already has the
right shape are checked against it; otherwise a fresh shape is synthesized and
equated to the expected type with a constraint.

The walk produces a derivation tree mirroring the typing judgement
``Γ ⊢ e :: t`` and a flat list of equality constraints for the solver.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TypeAlias, assert_never

from typers.ast import (
    Abs,
    App,
    BinOp,
    BoolLit,
    Expr,
    Fst,
    IfThenElse,
    IntLit,
    IsZero,
    Pair,
    Snd,
    Var,
)
from typers.checker.constraints import Constraint
from typers.checker.errors import UnboundVariable
from typers.checker.types import (
    TBool,
    TFun,
    TInt,
    TTuple,
    TVarFactory,
    TypeExpr,
    texpr_to_str,
)

logger = logging.getLogger(__name__)

Environment: TypeAlias = Mapping[str, TypeExpr]


@dataclass(frozen=True)
class Derivation:
    """One node of a typing derivation ``environment ⊢ expression :: type``.

    Attributes:
        environment: Snapshot of Γ used to type this subexpression
        expression: The subexpression being typed
        type: The type assigned to it
        children: Derivations of the premises, in rule order

    """

    environment: Environment
    expression: Expr
    type: TypeExpr
    children: tuple[Derivation, ...] = ()

    @property
    def rule(self) -> str:
        """Label of the typing rule applied at this node."""
        return self.expression.rule

    @property
    def size(self) -> int:
        return 1 + sum(child.size for child in self.children)

    def walk(self) -> Iterator[Derivation]:
        """Iterate over this node and all descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def judgement(self) -> str:
        gamma = ", ".join(
            f"{name}: {texpr_to_str(t)}" for name, t in self.environment.items()
        )
        return f"{gamma} ⊢ {self.expression} :: {texpr_to_str(self.type)}"


@dataclass
class TreeBuilder:
    """Builds a derivation tree and collects constraints for one expression.

    A builder is one inference session: it owns the fresh-variable counter,
    so variable IDs are unique within the session and never shared with
    another. Variable 0 is the type of the root expression (the goal).
    """

    variables: TVarFactory = field(default_factory=TVarFactory)
    constraints: list[Constraint] = field(default_factory=list)

    def build(self, expr: Expr) -> Derivation:
        """Build the derivation tree for ``expr`` in the empty environment.

        Raises:
            UnboundVariable: If ``expr`` references a variable no abstraction binds
            ValueError: If this builder has already been used

        """
        if self.variables.issued:
            msg = "TreeBuilder sessions are single-use; create a new builder"
            raise ValueError(msg)
        goal = self.variables.fresh()
        tree = self._build(expr, {}, goal)
        logger.debug(
            "built derivation with %d nodes and %d constraints",
            tree.size,
            len(self.constraints),
        )
        return tree

    def _constrain(self, left: TypeExpr, right: TypeExpr) -> None:
        self.constraints.append(Constraint(left, right))

    def _build(  # noqa: C901, PLR0911
        self,
        expr: Expr,
        env: Environment,
        expected: TypeExpr,
    ) -> Derivation:
        """Type ``expr`` under ``env`` against ``expected``."""
        match expr:
            case Var(name=name):
                if name not in env:
                    raise UnboundVariable(name)
                self._constrain(env[name], expected)
                return Derivation(dict(env), expr, expected)

            case Abs(param=param, body=body):
                if isinstance(expected, TFun):
                    sigma, tau = expected.domain, expected.codomain
                else:
                    sigma = self.variables.fresh()
                    tau = self.variables.fresh()
                    self._constrain(expected, TFun(sigma, tau))
                inner = {**env, param: sigma}
                child = self._build(body, inner, tau)
                return Derivation(dict(env), expr, expected, (child,))

            case App(fun=fun, arg=arg):
                sigma = self.variables.fresh()
                fun_tree = self._build(fun, env, TFun(sigma, expected))
                arg_tree = self._build(arg, env, sigma)
                return Derivation(dict(env), expr, expected, (fun_tree, arg_tree))

            case IsZero(operand=operand):
                child = self._build(operand, env, TInt())
                self._constrain(expected, TBool())
                return Derivation(dict(env), expr, TBool(), (child,))

            case IntLit():
                self._constrain(expected, TInt())
                return Derivation(dict(env), expr, expected)

            case BoolLit():
                self._constrain(expected, TBool())
                return Derivation(dict(env), expr, expected)

            case BinOp(left=left, right=right):
                self._constrain(expected, TInt())
                left_tree = self._build(left, env, TInt())
                right_tree = self._build(right, env, TInt())
                return Derivation(dict(env), expr, expected, (left_tree, right_tree))

            case IfThenElse(cond=cond, then=then, else_=else_):
                cond_tree = self._build(cond, env, TBool())
                then_tree = self._build(then, env, expected)
                else_tree = self._build(else_, env, expected)
                return Derivation(
                    dict(env),
                    expr,
                    expected,
                    (cond_tree, then_tree, else_tree),
                )

            case Pair(first=first, second=second):
                if isinstance(expected, TTuple):
                    result: TypeExpr = expected
                    first_type, second_type = expected.first, expected.second
                else:
                    first_type = self.variables.fresh()
                    second_type = self.variables.fresh()
                    result = TTuple(first_type, second_type)
                    self._constrain(expected, result)
                first_tree = self._build(first, env, first_type)
                second_tree = self._build(second, env, second_type)
                return Derivation(dict(env), expr, result, (first_tree, second_tree))

            case Fst(operand=operand):
                other = self.variables.fresh()
                child = self._build(operand, env, TTuple(expected, other))
                return Derivation(dict(env), expr, expected, (child,))

            case Snd(operand=operand):
                other = self.variables.fresh()
                child = self._build(operand, env, TTuple(other, expected))
                return Derivation(dict(env), expr, expected, (child,))

            case _:
                assert_never(expr)


def build_tree(expr: Expr) -> tuple[Derivation, list[Constraint]]:
    """Run one builder session over ``expr``.

    Returns:
        Tuple of (derivation tree, constraints in generation order)

    Raises:
        UnboundVariable: If ``expr`` references an unbound variable

    """
    builder = TreeBuilder()
    tree = builder.build(expr)
    return tree, builder.constraints
