"""Serialization of inference results to JSON-compatible builtins.

This is the single boundary between the internal dataclasses and any host
that consumes results as data. Every tagged object is encoded as a dict with
a ``"tag"`` key; expressions and type expressions can be decoded again.
"""

from __future__ import annotations

import json
from dataclasses import fields
from typing import TYPE_CHECKING, Any

from typers.ast import BinOpKind, Node, node_class
from typers.checker import InferenceResult
from typers.checker.constraints import Constraint, Rule
from typers.checker.errors import InferenceError
from typers.checker.generator import Derivation
from typers.checker.solver import Solution
from typers.checker.steps import AccumulateStep, RemoveStep, SubstituteStep
from typers.checker.types import TBool, TFun, TInt, TTuple, TVar, TypeExpr, texpr_to_str
from typers.inference import Analysis

if TYPE_CHECKING:
    from typers.ast import Expr

_TAG_KEY = "tag"

_TYPE_TAGS: dict[str, type[Any]] = {
    "var": TVar,
    "int": TInt,
    "bool": TBool,
    "function": TFun,
    "tuple": TTuple,
}


def type_to_builtins(texpr: TypeExpr) -> dict[str, Any]:
    match texpr:
        case TVar(id=vid):
            return {_TAG_KEY: "var", "id": vid}
        case TInt():
            return {_TAG_KEY: "int"}
        case TBool():
            return {_TAG_KEY: "bool"}
        case TFun(domain=domain, codomain=codomain):
            return {
                _TAG_KEY: "function",
                "domain": type_to_builtins(domain),
                "codomain": type_to_builtins(codomain),
            }
        case TTuple(first=first, second=second):
            return {
                _TAG_KEY: "tuple",
                "first": type_to_builtins(first),
                "second": type_to_builtins(second),
            }


def type_from_builtins(data: dict[str, Any]) -> TypeExpr:
    """Decode a type expression produced by ``type_to_builtins``.

    Raises:
        KeyError: If the 'tag' field or a component is missing
        ValueError: If the tag is not a type tag

    """
    tag = data[_TAG_KEY]
    if tag not in _TYPE_TAGS:
        msg = f"Unknown type tag '{tag}'. Available: {sorted(_TYPE_TAGS)}"
        raise ValueError(msg)
    match tag:
        case "var":
            return TVar(int(data["id"]))
        case "int":
            return TInt()
        case "bool":
            return TBool()
        case "function":
            return TFun(
                type_from_builtins(data["domain"]),
                type_from_builtins(data["codomain"]),
            )
        case _:
            return TTuple(
                type_from_builtins(data["first"]),
                type_from_builtins(data["second"]),
            )


def expr_to_builtins(expr: Expr) -> dict[str, Any]:
    result: dict[str, Any] = {_TAG_KEY: expr.tag}
    for f in fields(expr):
        value = getattr(expr, f.name)
        if isinstance(value, Node):
            result[f.name] = expr_to_builtins(value)
        elif isinstance(value, BinOpKind):
            result[f.name] = value.value
        else:
            result[f.name] = value
    return result


def expr_from_builtins(data: dict[str, Any]) -> Expr:
    """Decode an expression produced by ``expr_to_builtins``.

    Raises:
        KeyError: If the 'tag' field is missing
        ValueError: If the tag is not a registered node tag

    """
    if _TAG_KEY not in data:
        msg = "Missing required 'tag' field in data"
        raise KeyError(msg)
    cls = node_class(data[_TAG_KEY])
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        value = data[f.name]
        if isinstance(value, dict):
            kwargs[f.name] = expr_from_builtins(value)
        elif f.name == "op":
            kwargs[f.name] = BinOpKind(value)
        else:
            kwargs[f.name] = value
    return cls(**kwargs)


def _rule(rule: Rule) -> dict[str, Any]:
    return {"var": rule.var, "rhs": type_to_builtins(rule.rhs), "text": str(rule)}


def _rules(rules: Any) -> list[dict[str, Any]]:
    return [_rule(rule) for rule in rules]


def _error(error: InferenceError) -> dict[str, Any]:
    return {"kind": type(error).__name__, "message": error.message}


def to_builtins(obj: Any) -> Any:  # noqa: C901, PLR0911
    """Project an inference entity onto JSON-compatible builtins.

    Args:
        obj: An expression, type, constraint, rule, derivation, step,
            solution, error, InferenceResult or Analysis

    Returns:
        Nested dicts, lists, strings, numbers, booleans and None

    Raises:
        ValueError: If the object type cannot be serialized

    """
    match obj:
        case None:
            return None
        case Node():
            return expr_to_builtins(obj)
        case TVar() | TInt() | TBool() | TFun() | TTuple():
            return type_to_builtins(obj)
        case Constraint(left=left, right=right):
            return {
                "left": type_to_builtins(left),
                "right": type_to_builtins(right),
                "text": str(obj),
            }
        case Rule():
            return _rule(obj)
        case Derivation():
            return {
                "environment": {
                    name: type_to_builtins(t) for name, t in obj.environment.items()
                },
                "expression": str(obj.expression),
                "type": type_to_builtins(obj.type),
                "rule": obj.rule,
                "text": obj.judgement(),
                "children": [to_builtins(child) for child in obj.children],
            }
        case RemoveStep():
            return {
                "id": obj.id,
                "kind": obj.kind,
                "text": obj.describe(),
                "rules_before": _rules(obj.rules_before),
                "rules_after": _rules(obj.rules_after),
                "rules_removed": _rules(obj.rules_removed),
            }
        case AccumulateStep():
            return {
                "id": obj.id,
                "kind": obj.kind,
                "text": obj.describe(),
                "rules_before": _rules(obj.rules_before),
                "rules_after": _rules(obj.rules_after),
                "rules_added": _rules(obj.rules_added),
                "rules_compared": _rules(obj.rules_compared),
            }
        case SubstituteStep():
            return {
                "id": obj.id,
                "kind": obj.kind,
                "text": obj.describe(),
                "goal": obj.goal,
                "rules_available": _rules(obj.rules_available),
                "rule_goal_before": _rule(obj.rule_goal_before),
                "rule_goal_after": _rule(obj.rule_goal_after),
                "rule_used": _rule(obj.rule_used),
            }
        case Solution():
            return {
                "goal": obj.goal,
                "rules": _rules(obj.rules),
                "variables": list(obj.variables),
                "remove_steps": [to_builtins(s) for s in obj.remove_steps],
                "accumulate_steps": [to_builtins(s) for s in obj.accumulate_steps],
                "substitute_steps": [to_builtins(s) for s in obj.substitute_steps],
                "final_rules": _rules(obj.final_rules),
                "result": to_builtins(obj.result),
                "result_text": (
                    texpr_to_str(obj.result) if obj.result is not None else None
                ),
                "error": _error(obj.error) if obj.error is not None else None,
            }
        case InferenceError():
            return _error(obj)
        case InferenceResult():
            return {
                "tree": to_builtins(obj.tree),
                "constraints": [to_builtins(c) for c in obj.constraints],
                "filtered_constraints": [
                    to_builtins(c) for c in obj.filtered_constraints
                ],
                "rules": _rules(obj.rules),
                "solution": to_builtins(obj.solution),
            }
        case Analysis():
            return {
                "source": obj.source,
                "parse_error": obj.parse_error,
                "build_error": obj.build_error,
                "expression": to_builtins(obj.expression),
                "tree": to_builtins(obj.tree),
                "constraints": _optional_list(obj.constraints),
                "filtered_constraints": _optional_list(obj.filtered_constraints),
                "rules": _rules(obj.rules) if obj.rules is not None else None,
                "solution": to_builtins(obj.solution),
            }
    msg = f"Cannot serialize object of type {type(obj).__name__}"
    raise ValueError(msg)


def _optional_list(items: list[Any] | None) -> list[Any] | None:
    if items is None:
        return None
    return [to_builtins(item) for item in items]


def to_json(obj: Any, *, indent: int | None = 2) -> str:
    """Serialize an inference entity to a JSON string.

    Args:
        obj: Anything ``to_builtins`` accepts
        indent: JSON indentation level (default 2, None for compact)

    """
    return json.dumps(to_builtins(obj), indent=indent, ensure_ascii=False)


def expr_from_json(s: str) -> Expr:
    """Deserialize an expression from a JSON string.

    Raises:
        ValueError: If the JSON doesn't contain a tagged object

    """
    data = json.loads(s)
    if not isinstance(data, dict):
        msg = "Expected JSON object with 'tag' field"
        raise ValueError(msg)
    return expr_from_builtins(data)
