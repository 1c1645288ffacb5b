"""Tests for stream request and formula parsing."""

from decimal import Decimal

import pytest

from synthstream.exceptions import ParseError, UnsupportedOperatorError
from synthstream.formula.expression import Binary, Literal, Operator, Variable
from synthstream.formula.parser import ensure_supported, parse_formula, parse_stream_request


class TestParseStreamRequest:
    """Tests for splitting <formula>@<interval>."""

    def test_formula_and_interval(self) -> None:
        request = parse_stream_request("(btcusdt+ethusdt*ltcbtc)/bnbusdt@1m")
        assert request.candle_interval == "1m"
        assert request.text == "(btcusdt+ethusdt*ltcbtc)/bnbusdt@1m"
        assert request.expression == Binary(
            Operator.DIV,
            Binary(
                Operator.ADD,
                Variable("btcusdt"),
                Binary(Operator.MUL, Variable("ethusdt"), Variable("ltcbtc")),
            ),
            Variable("bnbusdt"),
        )

    def test_missing_interval_raises(self) -> None:
        with pytest.raises(ParseError, match="missing"):
            parse_stream_request("btcusdt+ethusdt")

    def test_empty_interval_raises(self) -> None:
        with pytest.raises(ParseError):
            parse_stream_request("btcusdt+ethusdt@")

    def test_unknown_interval_raises(self) -> None:
        with pytest.raises(ParseError, match="interval"):
            parse_stream_request("btcusdt@7m")

    def test_second_separator_is_part_of_interval(self) -> None:
        with pytest.raises(ParseError):
            parse_stream_request("btcusdt@1m@ethusdt")

    def test_monthly_interval_is_case_sensitive(self) -> None:
        assert parse_stream_request("btcusdt@1M").candle_interval == "1M"

    def test_literal_only_formula_raises(self) -> None:
        with pytest.raises(ParseError, match="no symbols"):
            parse_stream_request("2+3@1m")

    def test_literal_with_symbol_accepted(self) -> None:
        request = parse_stream_request("2*btcusdt@1m")
        assert request.expression == Binary(
            Operator.MUL, Literal(Decimal("2")), Variable("btcusdt")
        )

    def test_subscription_params(self) -> None:
        request = parse_stream_request("btcusdt/ethusdt@5m")
        params = request.subscription_params(["btcusdt", "ethusdt"])
        assert params == ["btcusdt@kline_5m", "ethusdt@kline_5m"]


class TestParseFormula:
    """Tests for adapting Python's expression grammar to the expression tree."""

    def test_single_variable(self) -> None:
        assert parse_formula("btcusdt") == Variable("btcusdt")

    def test_identifier_case_preserved(self) -> None:
        assert parse_formula("BTCusdt") == Variable("BTCusdt")

    def test_precedence(self) -> None:
        assert parse_formula("a+b*c") == Binary(
            Operator.ADD, Variable("a"), Binary(Operator.MUL, Variable("b"), Variable("c"))
        )

    def test_left_associative_subtraction(self) -> None:
        assert parse_formula("a-b-c") == Binary(
            Operator.SUB, Binary(Operator.SUB, Variable("a"), Variable("b")), Variable("c")
        )

    def test_decimal_literal_is_exact(self) -> None:
        node = parse_formula("5.9")
        assert node == Literal(Decimal("5.9"))
        # not the float's binary expansion
        assert node != Literal(Decimal(5.9))

    def test_integer_literal(self) -> None:
        assert parse_formula("2*btcusdt") == Binary(
            Operator.MUL, Literal(Decimal("2")), Variable("btcusdt")
        )

    def test_negative_literal_folds(self) -> None:
        assert parse_formula("-0.5") == Literal(Decimal("-0.5"))

    def test_surrounding_whitespace_ignored(self) -> None:
        assert parse_formula("  btcusdt + ethusdt ") == Binary(
            Operator.ADD, Variable("btcusdt"), Variable("ethusdt")
        )

    def test_empty_formula_raises(self) -> None:
        with pytest.raises(ParseError, match="no expressions"):
            parse_formula("   ")

    def test_assignment_raises(self) -> None:
        with pytest.raises(ParseError, match="must be an expression"):
            parse_formula("x = btcusdt")

    def test_multiple_statements_raise(self) -> None:
        with pytest.raises(ParseError, match="single expression"):
            parse_formula("btcusdt; ethusdt")

    def test_syntax_error_raises(self) -> None:
        with pytest.raises(ParseError, match="syntax"):
            parse_formula("btcusdt +")

    def test_function_call_raises(self) -> None:
        with pytest.raises(ParseError, match="function calls"):
            parse_formula("max(btcusdt, ethusdt)")

    def test_string_literal_raises(self) -> None:
        with pytest.raises(ParseError):
            parse_formula("'btcusdt'")

    def test_chained_comparison_raises(self) -> None:
        with pytest.raises(ParseError, match="chained"):
            parse_formula("a < b < c")

    def test_negated_variable_is_unsupported(self) -> None:
        with pytest.raises(UnsupportedOperatorError):
            parse_formula("-btcusdt")

    def test_deep_nesting_raises_parse_error(self) -> None:
        with pytest.raises(ParseError):
            parse_formula("(" * 500 + "btcusdt" + ")" * 500)

    def test_modulo_parses_as_binary(self) -> None:
        assert parse_formula("a % b") == Binary(Operator.MOD, Variable("a"), Variable("b"))

    def test_comparison_parses_as_binary(self) -> None:
        assert parse_formula("a > b") == Binary(Operator.GT, Variable("a"), Variable("b"))


class TestEnsureSupported:
    """Tests for the session-start operator check."""

    def test_arithmetic_passes(self) -> None:
        ensure_supported(parse_formula("(a+b)*c/d-e"))

    def test_nested_modulo_rejected(self) -> None:
        with pytest.raises(UnsupportedOperatorError) as exc_info:
            ensure_supported(parse_formula("a + (b % c)"))
        assert exc_info.value.operator == "%"

    def test_power_rejected(self) -> None:
        with pytest.raises(UnsupportedOperatorError):
            ensure_supported(parse_formula("a ** 2"))
