"""Recursive-descent parser for mini-Haskell source text.

Grammar, loosest binding first::

    expr    := "\\" IDENT "->" expr
             | "if" expr "then" expr "else" expr
             | sum
    sum     := product ("+" product)*
    product := app ("*" app)*
    app     := prefix prefix*
    prefix  := ("iszero" | "fst" | "snd") prefix | atom
    atom    := INT | "true" | "false" | IDENT
             | "(" expr ")" | "(" expr "," expr ")"

Application and the binary operators associate to the left. ``λ`` may be used
in place of the backslash.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from typers.ast import (
    Abs,
    App,
    BinOp,
    BinOpKind,
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
from typers.checker.errors import InferenceError


class TokenType(Enum):
    INT = auto()
    IDENT = auto()
    KEYWORD = auto()
    LAMBDA = auto()
    ARROW = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    PLUS = auto()
    TIMES = auto()
    EOF = auto()


KEYWORDS = frozenset({"if", "then", "else", "iszero", "fst", "snd", "true", "false"})

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<int>\d+)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_']*)
  | (?P<arrow>->)
  | (?P<lambda>[\\λ])
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<comma>,)
  | (?P<plus>\+)
  | (?P<times>\*)
    """,
    re.VERBOSE,
)

_GROUP_TYPES = {
    "int": TokenType.INT,
    "arrow": TokenType.ARROW,
    "lambda": TokenType.LAMBDA,
    "lparen": TokenType.LPAREN,
    "rparen": TokenType.RPAREN,
    "comma": TokenType.COMMA,
    "plus": TokenType.PLUS,
    "times": TokenType.TIMES,
}

_PREFIX_FORMS: dict[str, type[IsZero | Fst | Snd]] = {
    "iszero": IsZero,
    "fst": Fst,
    "snd": Snd,
}


@dataclass
class ParseError(InferenceError):
    """Source text is not a well-formed expression."""

    reason: str
    position: int

    @property
    def message(self) -> str:
        return f"{self.reason} at position {self.position}"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    position: int


def tokenize(source: str) -> list[Token]:
    """Split ``source`` into tokens, ending with an EOF token.

    Raises:
        ParseError: On a character that starts no token

    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            msg = f"unexpected character {source[pos]!r}"
            raise ParseError(msg, pos)
        kind = match.lastgroup
        text = match.group()
        if kind == "ident":
            token_type = TokenType.KEYWORD if text in KEYWORDS else TokenType.IDENT
            tokens.append(Token(token_type, text, pos))
        elif kind != "ws":
            tokens.append(Token(_GROUP_TYPES[kind], text, pos))
        pos = match.end()
    tokens.append(Token(TokenType.EOF, "", len(source)))
    return tokens


class Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self._current()
        if token.type is not TokenType.EOF:
            self.pos += 1
        return token

    def _at(self, token_type: TokenType, value: str | None = None) -> bool:
        token = self._current()
        return token.type is token_type and (value is None or token.value == value)

    def _expect(self, token_type: TokenType, value: str | None = None) -> Token:
        if not self._at(token_type, value):
            token = self._current()
            wanted = repr(value) if value is not None else token_type.name
            found = repr(token.value) if token.value else "end of input"
            msg = f"expected {wanted}, got {found}"
            raise ParseError(msg, token.position)
        return self._advance()

    def parse(self) -> Expr:
        expr = self._expr()
        self._expect(TokenType.EOF)
        return expr

    def _expr(self) -> Expr:
        if self._at(TokenType.LAMBDA):
            self._advance()
            param = self._expect(TokenType.IDENT).value
            self._expect(TokenType.ARROW)
            return Abs(param=param, body=self._expr())
        if self._at(TokenType.KEYWORD, "if"):
            self._advance()
            cond = self._expr()
            self._expect(TokenType.KEYWORD, "then")
            then = self._expr()
            self._expect(TokenType.KEYWORD, "else")
            return IfThenElse(cond=cond, then=then, else_=self._expr())
        return self._sum()

    def _sum(self) -> Expr:
        left = self._product()
        while self._at(TokenType.PLUS):
            self._advance()
            left = BinOp(op=BinOpKind.PLUS, left=left, right=self._product())
        return left

    def _product(self) -> Expr:
        left = self._app()
        while self._at(TokenType.TIMES):
            self._advance()
            left = BinOp(op=BinOpKind.TIMES, left=left, right=self._app())
        return left

    def _starts_prefix(self) -> bool:
        token = self._current()
        if token.type in (TokenType.INT, TokenType.IDENT, TokenType.LPAREN):
            return True
        return token.type is TokenType.KEYWORD and (
            token.value in _PREFIX_FORMS or token.value in ("true", "false")
        )

    def _app(self) -> Expr:
        fun = self._prefix()
        while self._starts_prefix():
            fun = App(fun=fun, arg=self._prefix())
        return fun

    def _prefix(self) -> Expr:
        token = self._current()
        if token.type is TokenType.KEYWORD and token.value in _PREFIX_FORMS:
            self._advance()
            return _PREFIX_FORMS[token.value](operand=self._prefix())
        return self._atom()

    def _atom(self) -> Expr:
        token = self._advance()
        match token.type:
            case TokenType.INT:
                return IntLit(value=int(token.value))
            case TokenType.IDENT:
                return Var(name=token.value)
            case TokenType.KEYWORD if token.value in ("true", "false"):
                return BoolLit(value=token.value == "true")
            case TokenType.LPAREN:
                first = self._expr()
                if self._at(TokenType.COMMA):
                    self._advance()
                    second = self._expr()
                    self._expect(TokenType.RPAREN)
                    return Pair(first=first, second=second)
                self._expect(TokenType.RPAREN)
                return first
            case _:
                found = repr(token.value) if token.value else "end of input"
                msg = f"expected an expression, got {found}"
                raise ParseError(msg, token.position)


def parse(source: str) -> Expr:
    """Parse mini-Haskell source text into an expression tree.

    Raises:
        ParseError: If ``source`` is not a well-formed expression

    """
    return Parser(tokenize(source)).parse()
