"""
Expression reconstruction for disassembly-time constraint values.

The description stores comparison values as a postfix stream of
values and operators. This module rebuilds the binary tree with an
explicit stack and renders it as fully parenthesized C-like text.

Only integer literals can be rendered. Reads of context registers,
token fields, instruction addresses or locals have no translation yet
and raise UnsupportedValueKindError instead of emitting bad text.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from .errors import MalformedExpressionError, UnsupportedValueKindError
from .model import (
    BinaryOperator, UnaryOperator, CmpOp,
    ValueElement, OpElement, UnaryElement, ExprElement,
    IntegerValue, ContextRead, TokenFieldRead, InstStart, InstNext, LocalRead,
    ReadScope, ConstraintValue,
)


# ──────────────────────────────────────────────
# Symbol tables
# ──────────────────────────────────────────────

# and/or intentionally use the logical tokens; the target's accessor
# macros expect them.
BINARY_SYMBOLS: Dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUB: "-",
    BinaryOperator.MUL: "*",
    BinaryOperator.DIV: "/",
    BinaryOperator.AND: "&&",
    BinaryOperator.OR: "||",
    BinaryOperator.XOR: "^",
    BinaryOperator.ASR: ">>>",
    BinaryOperator.LSL: "<<",
}

UNARY_SYMBOLS: Dict[UnaryOperator, str] = {
    UnaryOperator.NEGATE: "-",
    UnaryOperator.COMPLEMENT: "~",
}

CMP_SYMBOLS: Dict[CmpOp, str] = {
    CmpOp.EQ: "==",
    CmpOp.NE: "!=",
    CmpOp.LT: "<",
    CmpOp.GT: ">",
    CmpOp.LE: "<=",
    CmpOp.GE: ">=",
}

# Value kinds with no rendering rule yet.
UNSUPPORTED_VALUE_KINDS = {
    ContextRead: "context",
    TokenFieldRead: "token_field",
    InstStart: "inst_start",
    InstNext: "inst_next",
    LocalRead: "local",
}


# ──────────────────────────────────────────────
# Tree nodes
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class BinaryNode:
    op: BinaryOperator
    left: ExprNode
    right: ExprNode

@dataclass(frozen=True)
class UnaryNode:
    op: UnaryOperator
    operand: ExprNode

@dataclass(frozen=True)
class ValueNode:
    value: ReadScope

ExprNode = Union[BinaryNode, UnaryNode, ValueNode]


# ──────────────────────────────────────────────
# Reconstruction
# ──────────────────────────────────────────────

def _pop(stack: List[ExprNode], element: ExprElement) -> ExprNode:
    if not stack:
        raise MalformedExpressionError(
            f"operator {element.op.value!r} has no operand on the stack"
        )
    return stack.pop()


def reconstruct(elements: Iterable[ExprElement]) -> ExprNode:
    """Rebuild the expression tree from a postfix element stream.

    For a binary operator the first pop is the right operand, so
    ``[5, 3, sub]`` becomes ``5 - 3``.
    """
    stack: List[ExprNode] = []
    for element in elements:
        if isinstance(element, ValueElement):
            stack.append(ValueNode(element.value))
        elif isinstance(element, OpElement):
            right = _pop(stack, element)
            left = _pop(stack, element)
            stack.append(BinaryNode(element.op, left, right))
        elif isinstance(element, UnaryElement):
            stack.append(UnaryNode(element.op, _pop(stack, element)))
        else:
            raise MalformedExpressionError(
                f"unknown expression element {element!r}"
            )

    if len(stack) != 1:
        raise MalformedExpressionError(
            f"expression left {len(stack)} values on the stack, expected 1"
        )
    return stack[0]


# ──────────────────────────────────────────────
# Rendering
# ──────────────────────────────────────────────

def render_value(value: ReadScope) -> str:
    if isinstance(value, IntegerValue):
        if value.value < 0:
            return f"-0x{-value.value:x}"
        return f"0x{value.value:x}"
    kind = UNSUPPORTED_VALUE_KINDS.get(type(value), type(value).__name__)
    raise UnsupportedValueKindError(kind)


def render(node: ExprNode) -> str:
    """Render a tree as parenthesized infix text."""
    if isinstance(node, BinaryNode):
        return f"({render(node.left)}) {BINARY_SYMBOLS[node.op]} ({render(node.right)})"
    if isinstance(node, UnaryNode):
        return f"{UNARY_SYMBOLS[node.op]}({render(node.operand)})"
    return render_value(node.value)


def render_expression(value: Union[ConstraintValue, Iterable[ExprElement]]) -> str:
    """Reconstruct and render in one step."""
    if isinstance(value, ConstraintValue):
        value = value.elements
    return render(reconstruct(value))


def leaf_count(node: ExprNode) -> int:
    if isinstance(node, BinaryNode):
        return leaf_count(node.left) + leaf_count(node.right)
    if isinstance(node, UnaryNode):
        return leaf_count(node.operand)
    return 1
