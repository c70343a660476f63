"""Plain-text rendering of derivations, rules and solver traces."""

from __future__ import annotations

from typing import TYPE_CHECKING

from typers.checker.steps import AccumulateStep, RemoveStep, SubstituteStep
from typers.checker.types import texpr_to_str

if TYPE_CHECKING:
    from collections.abc import Iterable

    from typers.checker.constraints import Constraint, Rule
    from typers.checker.generator import Derivation
    from typers.checker.solver import Solution
    from typers.checker.steps import Step

_INDENT = "  "


def format_rules(rules: Iterable[Rule]) -> str:
    return ", ".join(str(rule) for rule in rules)


def format_constraints(constraints: Iterable[Constraint]) -> list[str]:
    return [str(constraint) for constraint in constraints]


def render_tree(tree: Derivation, depth: int = 0) -> str:
    """Render a derivation as an indented outline, one judgement per line.

    Each line shows the rule label in brackets followed by the judgement;
    premises are indented below their conclusion.
    """
    lines = [f"{_INDENT * depth}[{tree.rule}] {tree.judgement()}"]
    lines.extend(render_tree(child, depth + 1) for child in tree.children)
    return "\n".join(lines)


def format_step(step: Step) -> str:
    """Describe one solver step with its effect on the rules."""
    header = f"#{step.id} {step.kind}: {step.describe()}"
    match step:
        case AccumulateStep(rules_added=added, rules_after=after):
            return f"{header}\n  added: {format_rules(added) or '-'}\n  rules: {format_rules(after)}"
        case RemoveStep(rules_after=after):
            return f"{header}\n  rules: {format_rules(after)}"
        case SubstituteStep(rule_goal_before=before, rule_goal_after=after):
            return f"{header}\n  {before}  ==>  {after}"


def render_solution(solution: Solution) -> str:
    """Render a Solution: the starting rules, every step, then the outcome."""
    lines = [
        f"rules: {format_rules(solution.rules)}",
        "variables: " + ", ".join(f"t{v}" for v in solution.variables),
    ]
    lines.extend(format_step(step) for step in solution.steps)
    if solution.result is not None:
        lines.append(f"result: t{solution.goal} = {texpr_to_str(solution.result)}")
    elif solution.error is not None:
        lines.append(f"error: {solution.error}")
    return "\n".join(lines)
