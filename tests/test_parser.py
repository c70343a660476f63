"""Tests for the mini-Haskell parser and the expression tree."""

import pytest

from typers.ast import (
    Abs,
    App,
    BinOp,
    BinOpKind,
    BoolLit,
    Fst,
    IfThenElse,
    IntLit,
    IsZero,
    Node,
    Pair,
    Snd,
    Var,
    children,
    free_variables,
    node_class,
)
from typers.parser import ParseError, TokenType, parse, tokenize


class TestTokenize:
    def test_token_types(self) -> None:
        tokens = tokenize("\\x -> (x, 1)")
        assert [t.type for t in tokens] == [
            TokenType.LAMBDA,
            TokenType.IDENT,
            TokenType.ARROW,
            TokenType.LPAREN,
            TokenType.IDENT,
            TokenType.COMMA,
            TokenType.INT,
            TokenType.RPAREN,
            TokenType.EOF,
        ]

    def test_keywords_are_not_identifiers(self) -> None:
        tokens = tokenize("iszero true x'")
        assert [(t.type, t.value) for t in tokens[:3]] == [
            (TokenType.KEYWORD, "iszero"),
            (TokenType.KEYWORD, "true"),
            (TokenType.IDENT, "x'"),
        ]

    def test_unknown_character(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            tokenize("1 $ 2")
        assert exc_info.value.position == 2
        assert str(exc_info.value) == "unexpected character '$' at position 2"


class TestParse:
    """Tests for the grammar's forms and precedence."""

    def test_lambda(self) -> None:
        assert parse("\\x -> iszero x") == Abs("x", IsZero(Var("x")))

    def test_unicode_lambda(self) -> None:
        assert parse("λy -> y") == Abs("y", Var("y"))

    def test_lambda_body_extends_right(self) -> None:
        assert parse("\\f -> \\x -> f x") == Abs(
            "f",
            Abs("x", App(Var("f"), Var("x"))),
        )

    def test_application_is_left_associative(self) -> None:
        assert parse("f x y") == App(App(Var("f"), Var("x")), Var("y"))

    def test_times_binds_tighter_than_plus(self) -> None:
        assert parse("1 + 2 * 3") == BinOp(
            BinOpKind.PLUS,
            IntLit(1),
            BinOp(BinOpKind.TIMES, IntLit(2), IntLit(3)),
        )

    def test_application_binds_tighter_than_operators(self) -> None:
        assert parse("f 1 + 2") == BinOp(
            BinOpKind.PLUS,
            App(Var("f"), IntLit(1)),
            IntLit(2),
        )

    def test_if_then_else(self) -> None:
        assert parse("if iszero 0 then 1 else 2") == IfThenElse(
            IsZero(IntLit(0)),
            IntLit(1),
            IntLit(2),
        )

    def test_pairs_and_projections(self) -> None:
        assert parse("fst (1, true)") == Fst(Pair(IntLit(1), BoolLit(True)))
        assert parse("snd (false, 2)") == Snd(Pair(BoolLit(False), IntLit(2)))

    def test_prefix_takes_one_argument(self) -> None:
        assert parse("iszero f x") == App(IsZero(Var("f")), Var("x"))
        assert parse("iszero (f x)") == IsZero(App(Var("f"), Var("x")))

    def test_parentheses(self) -> None:
        assert parse("((x))") == Var("x")

    @pytest.mark.parametrize(
        "source",
        [
            "\\x -> (x 1)",
            "if iszero 0 then (1 + 2) else (3 * 4)",
            "fst (1, true)",
            "\\p -> (snd p, fst p)",
        ],
    )
    def test_display_reparses(self, source: str) -> None:
        expr = parse(source)
        assert parse(str(expr)) == expr


class TestParseErrors:
    def test_empty_input(self) -> None:
        with pytest.raises(ParseError, match="expected an expression, got end of input"):
            parse("")

    def test_unclosed_paren(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("(1")
        assert exc_info.value.reason == "expected RPAREN, got end of input"
        assert exc_info.value.position == 2

    def test_lambda_needs_parameter(self) -> None:
        with pytest.raises(ParseError, match="expected IDENT, got '->'"):
            parse("\\ -> x")

    def test_missing_else(self) -> None:
        with pytest.raises(ParseError, match="expected 'else'"):
            parse("if true then 1")

    def test_trailing_tokens(self) -> None:
        with pytest.raises(ParseError, match="expected EOF"):
            parse("1 )")


class TestNodes:
    def test_display(self) -> None:
        assert str(Abs("x", App(Var("x"), IntLit(1)))) == "\\x -> (x 1)"
        assert str(BinOp(BinOpKind.TIMES, IntLit(2), IntLit(3))) == "(2 * 3)"
        assert str(Pair(BoolLit(True), IntLit(0))) == "(true, 0)"

    def test_rule_labels(self) -> None:
        assert IsZero(IntLit(0)).rule == "iszero"
        assert Pair(IntLit(0), IntLit(1)).rule == "tuple"
        assert IfThenElse(BoolLit(True), IntLit(0), IntLit(1)).rule == "if"

    def test_registry(self) -> None:
        assert node_class("abs") is Abs
        assert node_class("tuple") is Pair
        with pytest.raises(ValueError, match="Unknown tag"):
            node_class("let")

    def test_duplicate_tag_rejected(self) -> None:
        with pytest.raises(ValueError, match="already registered"):

            class Shadow(Node, tag="var"):
                name: str

    def test_children(self) -> None:
        expr = IfThenElse(Var("c"), IntLit(1), IntLit(2))
        assert children(expr) == (Var("c"), IntLit(1), IntLit(2))
        assert children(IntLit(1)) == ()

    def test_free_variables(self) -> None:
        expr = Abs("x", App(Var("x"), Pair(Var("y"), Var("z"))))
        assert free_variables(expr) == {"y", "z"}
