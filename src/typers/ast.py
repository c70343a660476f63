"""Expression tree for the mini-Haskell language.

Every language form is a frozen dataclass registered under a tag. The tag is
used by the serialization layer; the ``rule`` label names the typing rule that
applies to the form and is shown in derivation trees.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, TypeAlias, dataclass_transform


class BinOpKind(Enum):
    """Arithmetic operators. Both operands and the result are integers."""

    PLUS = "+"
    TIMES = "*"


@dataclass(frozen=True)
@dataclass_transform(frozen_default=True)
class Node:
    """Base for expression nodes."""

    tag: ClassVar[str]
    label: ClassVar[str]
    registry: ClassVar[dict[str, type[Node]]] = {}

    def __init_subclass__(cls, tag: str | None = None, label: str | None = None) -> None:
        """Register node subclass with automatic tag derivation."""
        dataclass(frozen=True)(cls)
        cls.tag = tag if tag is not None else cls.__name__.lower()
        cls.label = label if label is not None else cls.__name__

        if (existing := Node.registry.get(cls.tag)) and existing is not cls:
            msg = (
                f"Tag '{cls.tag}' already registered to {existing}. "
                "Choose a different tag."
            )
            raise ValueError(msg)

        Node.registry[cls.tag] = cls

    @property
    def rule(self) -> str:
        """Name of the typing rule for this form."""
        return self.label


class Var(Node, tag="var"):
    name: str

    def __str__(self) -> str:
        return self.name


class Abs(Node, tag="abs"):
    """Lambda abstraction ``\\param -> body``."""

    param: str
    body: Expr

    def __str__(self) -> str:
        return f"\\{self.param} -> {self.body}"


class App(Node, tag="app"):
    fun: Expr
    arg: Expr

    def __str__(self) -> str:
        return f"({self.fun} {self.arg})"


class IsZero(Node, tag="iszero", label="iszero"):
    operand: Expr

    def __str__(self) -> str:
        return f"iszero {self.operand}"


class IntLit(Node, tag="int", label="Int"):
    value: int

    def __str__(self) -> str:
        return str(self.value)


class BoolLit(Node, tag="bool", label="Bool"):
    value: bool

    @property
    def rule(self) -> str:
        return "True" if self.value else "False"

    def __str__(self) -> str:
        return "true" if self.value else "false"


class BinOp(Node, tag="binop", label="BinOp"):
    op: BinOpKind
    left: Expr
    right: Expr

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


class IfThenElse(Node, tag="if", label="if"):
    cond: Expr
    then: Expr
    else_: Expr

    def __str__(self) -> str:
        return f"if {self.cond} then {self.then} else {self.else_}"


class Pair(Node, tag="tuple", label="tuple"):
    first: Expr
    second: Expr

    def __str__(self) -> str:
        return f"({self.first}, {self.second})"


class Fst(Node, tag="fst", label="fst"):
    operand: Expr

    def __str__(self) -> str:
        return f"fst {self.operand}"


class Snd(Node, tag="snd", label="snd"):
    operand: Expr

    def __str__(self) -> str:
        return f"snd {self.operand}"


Expr: TypeAlias = Var | Abs | App | IsZero | IntLit | BoolLit | BinOp | IfThenElse | Pair | Fst | Snd
"""Union of all expression forms."""


def children(expr: Expr) -> tuple[Expr, ...]:
    """Direct subexpressions of ``expr`` in evaluation order."""
    match expr:
        case Var() | IntLit() | BoolLit():
            return ()
        case Abs(body=body):
            return (body,)
        case App(fun=fun, arg=arg):
            return (fun, arg)
        case IsZero(operand=operand) | Fst(operand=operand) | Snd(operand=operand):
            return (operand,)
        case BinOp(left=left, right=right):
            return (left, right)
        case IfThenElse(cond=cond, then=then, else_=else_):
            return (cond, then, else_)
        case Pair(first=first, second=second):
            return (first, second)


def free_variables(expr: Expr) -> set[str]:
    """Names referenced in ``expr`` that no enclosing abstraction binds."""
    match expr:
        case Var(name=name):
            return {name}
        case Abs(param=param, body=body):
            return free_variables(body) - {param}
        case _:
            result: set[str] = set()
            for child in children(expr):
                result |= free_variables(child)
            return result


def node_class(tag: str) -> type[Any]:
    """Look up a registered node class by tag."""
    if tag not in Node.registry:
        available = sorted(Node.registry)
        msg = f"Unknown tag '{tag}'. Available node tags: {available}"
        raise ValueError(msg)
    return Node.registry[tag]
