"""Type expressions for the constraint-based type checker.

This module defines the type algebra used by the derivation-tree builder and
the constraint solver: type variables, the two base types, functions and
pairs. All type expressions are immutable and compare structurally.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True)
class TVar:
    """A type variable for inference.

    Each TVar has an identifier that is unique within one inference session.
    Fresh TVars are created by a TVarFactory during tree building.
    """

    id: int

    def __repr__(self) -> str:
        return f"TVar({self.id})"


@dataclass(frozen=True)
class TInt:
    """The integer type."""

    def __repr__(self) -> str:
        return "TInt()"


@dataclass(frozen=True)
class TBool:
    """The boolean type."""

    def __repr__(self) -> str:
        return "TBool()"


@dataclass(frozen=True)
class TFun:
    """Function type ``domain -> codomain``."""

    domain: TypeExpr
    codomain: TypeExpr


@dataclass(frozen=True)
class TTuple:
    """Pair type ``(first, second)``."""

    first: TypeExpr
    second: TypeExpr


TypeExpr: TypeAlias = TVar | TInt | TBool | TFun | TTuple
"""Union type for type expressions."""


@dataclass
class TVarFactory:
    """Factory for generating fresh type variables with unique IDs.

    One factory belongs to one inference session; IDs are never reused.
    """

    _next_id: int = 0

    def fresh(self) -> TVar:
        """Create a fresh type variable with a unique ID."""
        var = TVar(self._next_id)
        self._next_id += 1
        return var

    @property
    def issued(self) -> int:
        """Number of variables handed out so far."""
        return self._next_id


def variables(texpr: TypeExpr) -> set[int]:
    """Collect the IDs of all type variables in a type expression."""
    match texpr:
        case TVar(id=vid):
            return {vid}
        case TInt() | TBool():
            return set()
        case TFun(domain=domain, codomain=codomain):
            return variables(domain) | variables(codomain)
        case TTuple(first=first, second=second):
            return variables(first) | variables(second)


def ordered_variables(texpr: TypeExpr) -> list[int]:
    """Variable IDs in left-to-right order of first occurrence."""
    seen: list[int] = []

    def visit(t: TypeExpr) -> None:
        match t:
            case TVar(id=vid):
                if vid not in seen:
                    seen.append(vid)
            case TFun(domain=left, codomain=right) | TTuple(first=left, second=right):
                visit(left)
                visit(right)
            case _:
                pass

    visit(texpr)
    return seen


def occurs(var_id: int, texpr: TypeExpr) -> bool:
    """Check if a variable occurs in a type expression.

    This is the "occurs check" that prevents infinite types such as
    ``t1 = t1 -> Int``.
    """
    match texpr:
        case TVar(id=vid):
            return vid == var_id
        case TInt() | TBool():
            return False
        case TFun(domain=domain, codomain=codomain):
            return occurs(var_id, domain) or occurs(var_id, codomain)
        case TTuple(first=first, second=second):
            return occurs(var_id, first) or occurs(var_id, second)


def substitute(texpr: TypeExpr, var_id: int, replacement: TypeExpr) -> TypeExpr:
    """Replace every occurrence of variable ``var_id`` with ``replacement``."""
    match texpr:
        case TVar(id=vid):
            return replacement if vid == var_id else texpr
        case TInt() | TBool():
            return texpr
        case TFun(domain=domain, codomain=codomain):
            return TFun(
                substitute(domain, var_id, replacement),
                substitute(codomain, var_id, replacement),
            )
        case TTuple(first=first, second=second):
            return TTuple(
                substitute(first, var_id, replacement),
                substitute(second, var_id, replacement),
            )


def replace_var(texpr: TypeExpr, old: int, new: int) -> TypeExpr:
    """Rename variable ``old`` to ``new``."""
    return substitute(texpr, old, TVar(new))


def max_var(texprs: Iterable[TypeExpr]) -> int | None:
    """Largest variable ID among ``texprs``, or None if there is none."""
    ids = [vid for t in texprs for vid in variables(t)]
    return max(ids) if ids else None


def needs_wrapping(texpr: TypeExpr) -> bool:
    """Whether ``texpr`` must be parenthesised as the left side of an arrow."""
    return isinstance(texpr, TFun)


def texpr_to_str(texpr: TypeExpr) -> str:
    """Convert a TypeExpr to a human-readable string.

    Arrows are right associative, so only a function on the left of an arrow
    (or inside a pair) gets parentheses.

    Examples:
        >>> texpr_to_str(TFun(TFun(TVar(1), TInt()), TBool()))
        '(t1 -> Int) -> Bool'

    """
    match texpr:
        case TVar(id=vid):
            return f"t{vid}"
        case TInt():
            return "Int"
        case TBool():
            return "Bool"
        case TFun(domain=domain, codomain=codomain):
            left = texpr_to_str(domain)
            if needs_wrapping(domain):
                left = f"({left})"
            return f"{left} -> {texpr_to_str(codomain)}"
        case TTuple(first=first, second=second):
            parts = []
            for part in (first, second):
                text = texpr_to_str(part)
                parts.append(f"({text})" if needs_wrapping(part) else text)
            return f"({parts[0]}, {parts[1]})"
