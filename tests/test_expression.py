"""
Tests for postfix expression reconstruction and rendering.

Tests cover:
  - Operand order for binary operators
  - Literal rendering (positive, negative, zero)
  - Unary operators
  - Every binary operator symbol
  - Malformed streams (empty, residual values, stack underflow)
  - Unsupported value kinds
"""

import pytest
from sleigh_guardgen.errors import MalformedExpressionError, UnsupportedValueKindError
from sleigh_guardgen.expression import (
    BinaryNode, UnaryNode, ValueNode, BINARY_SYMBOLS,
    reconstruct, render, render_expression, leaf_count,
)
from sleigh_guardgen.model import (
    BinaryOperator, UnaryOperator, IntegerValue, ValueElement, OpElement,
    UnaryElement, ConstraintValue, ContextRead, TokenFieldRead, InstStart,
    InstNext, LocalRead,
)


def _int(v: int) -> ValueElement:
    return ValueElement(IntegerValue(v))


def _op(name: str) -> OpElement:
    return OpElement(BinaryOperator(name))


# ─── Reconstruction ─────────────────────

class TestReconstruct:
    def test_single_value(self):
        node = reconstruct([_int(7)])
        assert node == ValueNode(IntegerValue(7))

    def test_binary_operand_order(self):
        node = reconstruct([_int(5), _int(3), _op("sub")])
        assert isinstance(node, BinaryNode)
        assert node.left == ValueNode(IntegerValue(5))
        assert node.right == ValueNode(IntegerValue(3))
        assert render(node) == "(0x5) - (0x3)"

    def test_nested(self):
        # (1 + 2) * 3
        node = reconstruct([_int(1), _int(2), _op("add"), _int(3), _op("mul")])
        assert render(node) == "((0x1) + (0x2)) * (0x3)"

    def test_right_nested(self):
        # 1 - (2 << 3)
        node = reconstruct([_int(1), _int(2), _int(3), _op("lsl"), _op("sub")])
        assert render(node) == "(0x1) - ((0x2) << (0x3))"

    def test_leaf_count_matches_values(self):
        elements = [_int(1), _int(2), _op("add"), _int(3), _int(4),
                    _op("xor"), _op("div"),
                    UnaryElement(UnaryOperator.NEGATE)]
        node = reconstruct(elements)
        assert leaf_count(node) == 4

    def test_unary_wraps_operand(self):
        node = reconstruct([_int(7), UnaryElement(UnaryOperator.COMPLEMENT)])
        assert isinstance(node, UnaryNode)
        assert node.operand == ValueNode(IntegerValue(7))


# ─── Rendering ─────────────────────

class TestRender:
    def test_positive_hex(self):
        assert render_expression([_int(255)]) == "0xff"

    def test_zero(self):
        assert render_expression([_int(0)]) == "0x0"

    def test_negative_hex(self):
        assert render_expression([_int(-10)]) == "-0xa"

    def test_complement(self):
        assert render_expression([_int(7), UnaryElement(UnaryOperator.COMPLEMENT)]) == "~(0x7)"

    def test_negate(self):
        assert render_expression([_int(1), UnaryElement(UnaryOperator.NEGATE)]) == "-(0x1)"

    def test_operator_symbols(self):
        expected = {
            "add": "+", "sub": "-", "mul": "*", "div": "/",
            "and": "&&", "or": "||", "xor": "^", "asr": ">>>", "lsl": "<<",
        }
        for name, sym in expected.items():
            text = render_expression([_int(2), _int(1), _op(name)])
            assert text == f"(0x2) {sym} (0x1)", name
        assert len(BINARY_SYMBOLS) == len(expected)

    def test_constraint_value_accepted(self):
        value = ConstraintValue((_int(4), _int(1), _op("asr")))
        assert render_expression(value) == "(0x4) >>> (0x1)"


# ─── Malformed input ─────────────────────

class TestMalformed:
    def test_empty_stream(self):
        with pytest.raises(MalformedExpressionError):
            reconstruct([])

    def test_two_residual_values(self):
        with pytest.raises(MalformedExpressionError):
            reconstruct([_int(1), _int(2)])

    def test_binary_underflow(self):
        with pytest.raises(MalformedExpressionError):
            reconstruct([_int(1), _op("add")])

    def test_unary_underflow(self):
        with pytest.raises(MalformedExpressionError):
            reconstruct([UnaryElement(UnaryOperator.NEGATE)])


# ─── Unsupported value kinds ─────────────────────

class TestUnsupportedValues:
    @pytest.mark.parametrize("value, kind", [
        (ContextRead(0), "context"),
        (TokenFieldRead(1), "token_field"),
        (InstStart(), "inst_start"),
        (InstNext(), "inst_next"),
        (LocalRead(2), "local"),
    ])
    def test_fails_loudly(self, value, kind):
        with pytest.raises(UnsupportedValueKindError) as exc:
            render_expression([ValueElement(value)])
        assert exc.value.kind == kind
        assert kind in str(exc.value)

    def test_nested_unsupported(self):
        with pytest.raises(UnsupportedValueKindError):
            render_expression([_int(1), ValueElement(InstNext()), _op("add")])

    def test_reconstruct_does_not_render(self):
        # tree building itself accepts any value kind
        node = reconstruct([ValueElement(InstStart())])
        assert node == ValueNode(InstStart())
