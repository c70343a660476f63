"""End-to-end analysis of source text.

``analyze`` runs parser, tree builder and solver and collects every outcome
into one ``Analysis`` record. Parse and build failures are reported in the
record rather than raised, so a caller always gets a result it can display.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from typers.ast import Expr
from typers.checker import InferenceResult, infer
from typers.checker.constraints import Constraint, Rule
from typers.checker.errors import BuildTreeFailure
from typers.checker.generator import Derivation
from typers.checker.solver import Solution
from typers.config import InferenceConfig
from typers.parser import ParseError, parse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Analysis:
    """Outcome of analyzing one source string.

    Fields after ``source`` are independently None when the stage that
    produces them did not run.
    """

    source: str
    parse_error: str | None = None
    build_error: str | None = None
    expression: Expr | None = None
    tree: Derivation | None = None
    constraints: list[Constraint] | None = None
    filtered_constraints: list[Constraint] | None = None
    rules: list[Rule] | None = None
    solution: Solution | None = None

    @property
    def success(self) -> bool:
        return self.solution is not None and self.solution.success

    @property
    def error(self) -> str | None:
        """The message of whichever stage failed, if any."""
        if self.parse_error is not None:
            return self.parse_error
        if self.build_error is not None:
            return self.build_error
        if self.solution is not None and self.solution.error is not None:
            return self.solution.error.message
        return None


def analyze_expression(
    expr: Expr,
    config: InferenceConfig | None = None,
    *,
    source: str | None = None,
) -> Analysis:
    """Analyze an already-parsed expression, solving for its own type ``t0``."""
    config = config or InferenceConfig()
    text = source if source is not None else str(expr)
    try:
        result: InferenceResult = infer(expr, max_steps=config.max_steps)
    except BuildTreeFailure as exc:
        logger.info("could not build derivation for %r: %s", text, exc)
        return Analysis(source=text, expression=expr, build_error=exc.message)

    if result.solution.error is not None:
        logger.info("solving %r failed: %s", text, result.solution.error)
    return Analysis(
        source=text,
        expression=expr,
        tree=result.tree,
        constraints=result.constraints,
        filtered_constraints=result.filtered_constraints,
        rules=result.rules,
        solution=result.solution,
    )


def analyze(source: str, config: InferenceConfig | None = None) -> Analysis:
    """Parse ``source`` and infer its type.

    Args:
        source: Mini-Haskell expression text
        config: Settings; defaults are used when None

    Returns:
        Analysis with whichever stages completed

    """
    try:
        expr = parse(source)
    except ParseError as exc:
        logger.info("could not parse %r: %s", source, exc)
        return Analysis(source=source, parse_error=exc.message)
    return analyze_expression(expr, config, source=source)
