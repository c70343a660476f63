"""Constraint-based type inference for mini-Haskell expressions.

This package provides a two-phase type checker:
1. Phase 1 (Tree building): Walk the expression bidirectionally, producing a
   typing derivation and equality constraints
2. Phase 2 (Solving): Normalize the constraints into rules and simplify them
   to a type for the root expression, recording every step

Example usage:
    from typers.parser import parse
    from typers.checker import infer

    result = infer(parse("\\\\x -> iszero x"))
    if result.solution.success:
        print(texpr_to_str(result.solution.result))   # Int -> Bool
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from typers.checker.constraints import Constraint, Rule, drop_trivial, normalize
from typers.checker.errors import (
    BuildTreeFailure,
    CycleDetected,
    GoalNotFound,
    IncompatibleConstraint,
    InferenceError,
    RecursiveDefinition,
    SolverError,
    StepLimitExceeded,
    UnboundVariable,
)
from typers.checker.generator import Derivation, TreeBuilder, build_tree
from typers.checker.solver import (
    DEFAULT_MAX_STEPS,
    Solution,
    Solver,
    decompose,
    solve_constraints,
)
from typers.checker.steps import (
    AccumulateStep,
    RemoveStep,
    Step,
    StepLog,
    SubstituteStep,
    in_order,
)
from typers.checker.types import (
    TBool,
    TFun,
    TInt,
    TTuple,
    TVar,
    TVarFactory,
    TypeExpr,
    texpr_to_str,
)

if TYPE_CHECKING:
    from typers.ast import Expr

__all__ = [
    "DEFAULT_MAX_STEPS",
    "AccumulateStep",
    "BuildTreeFailure",
    "Constraint",
    "CycleDetected",
    "Derivation",
    "GoalNotFound",
    "IncompatibleConstraint",
    "InferenceError",
    "InferenceResult",
    "RecursiveDefinition",
    "RemoveStep",
    "Rule",
    "Solution",
    "Solver",
    "SolverError",
    "Step",
    "StepLimitExceeded",
    "StepLog",
    "SubstituteStep",
    "TBool",
    "TFun",
    "TInt",
    "TTuple",
    "TVar",
    "TVarFactory",
    "TreeBuilder",
    "TypeExpr",
    "UnboundVariable",
    "build_tree",
    "decompose",
    "drop_trivial",
    "in_order",
    "infer",
    "normalize",
    "solve_constraints",
    "texpr_to_str",
]


@dataclass(frozen=True)
class InferenceResult:
    """Everything one inference run produced.

    Attributes:
        tree: The typing derivation of the expression
        constraints: Constraints in the order the builder emitted them
        filtered_constraints: The same list without syntactically-identical pairs
        rules: The normalized rules handed to the solver
        solution: The solver's result and trace

    """

    tree: Derivation
    constraints: list[Constraint]
    filtered_constraints: list[Constraint]
    rules: list[Rule]
    solution: Solution


def infer(
    expr: Expr,
    goal: int = 0,
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> InferenceResult:
    """Infer the type of an expression.

    Builds the derivation tree, normalizes every constraint it emitted and
    solves for ``goal``. The list without syntactically-identical pairs is
    kept alongside for display only.

    Args:
        expr: The expression to type
        goal: Variable to solve for; 0 is the type of ``expr`` itself
        max_steps: Upper bound on recorded simplification steps

    Returns:
        InferenceResult with the tree, constraints, rules and solution

    Raises:
        UnboundVariable: If ``expr`` references an unbound variable
        ValueError: If ``goal`` is not the lowest variable ID in the rules

    """
    tree, constraints = build_tree(expr)
    filtered = drop_trivial(constraints)
    rules = normalize(constraints)
    solution = solve_constraints(rules, goal, max_steps=max_steps)
    return InferenceResult(
        tree=tree,
        constraints=constraints,
        filtered_constraints=filtered,
        rules=rules,
        solution=solution,
    )
