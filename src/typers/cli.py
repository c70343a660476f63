"""Command-line interface: infer the type of one expression.

Usage:
    typers "\\x -> iszero x"
    typers --json "fst (1, true)"

Prints the derivation tree, the constraints and the solver trace. Exits with
status 0 when a type was found and 1 on any parse, build or solve failure,
with the error written to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys

from typers import __version__
from typers.config import InferenceConfig, load_config
from typers.display import format_constraints, render_solution, render_tree
from typers.inference import Analysis, analyze
from typers.serialization import to_json

logger = logging.getLogger(__name__)

ERROR = "\x1b[31;1m[ERROR]\x1b[0m"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typers",
        description="Type inference for mini-Haskell expressions with a traced solver.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("expression", help="expression to type, e.g. '\\x -> iszero x'")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument(
        "--json",
        action="store_true",
        help="print the full analysis as JSON instead of text",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="log builder and solver activity to stderr",
    )
    return parser


def _configure_logging(config: InferenceConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else config.level
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        stream=sys.stderr,
    )


def print_analysis(analysis: Analysis) -> None:
    if analysis.tree is not None:
        print(render_tree(analysis.tree))
    if analysis.filtered_constraints is not None:
        print("\nconstraints:")
        for line in format_constraints(analysis.filtered_constraints):
            print(f"  {line}")
    if analysis.solution is not None:
        print()
        print(render_solution(analysis.solution))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        print(f"{ERROR}: {exc}", file=sys.stderr)
        return 1
    _configure_logging(config, args.verbose)

    analysis = analyze(args.expression, config)
    logger.debug("analysis of %r finished, success=%s", args.expression, analysis.success)

    if args.json:
        print(to_json(analysis))
    else:
        print_analysis(analysis)

    if not analysis.success:
        print(f"{ERROR}: {analysis.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
