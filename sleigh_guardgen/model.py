"""
Instruction-set object model consumed by the guard generator.

Mirrors the structure produced by the external SLEIGH parser: tokens,
token fields, tables, constructors, and the postfix disassembly
expressions attached to pattern verifications. Nothing in here is
mutated during a generation pass.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .errors import ModelError


# ──────────────────────────────────────────────
# Operators
# ──────────────────────────────────────────────

class BinaryOperator(enum.Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    AND = "and"
    OR = "or"
    XOR = "xor"
    ASR = "asr"
    LSL = "lsl"


class UnaryOperator(enum.Enum):
    NEGATE = "negate"
    COMPLEMENT = "complement"


class CmpOp(enum.Enum):
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    GT = "gt"
    LE = "le"
    GE = "ge"


# ──────────────────────────────────────────────
# Disassembly values (read scopes)
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class IntegerValue:
    """Literal integer; negative numbers keep their sign."""
    value: int = 0

@dataclass(frozen=True)
class ContextRead:
    """Read of a context register."""
    context: int = 0

@dataclass(frozen=True)
class TokenFieldRead:
    """Read of a token field at disassembly time."""
    field: int = 0

@dataclass(frozen=True)
class InstStart:
    """Address of the current instruction."""
    pass

@dataclass(frozen=True)
class InstNext:
    """Address of the following instruction."""
    pass

@dataclass(frozen=True)
class LocalRead:
    """Read of a disassembly-local variable."""
    local: int = 0

ReadScope = Union[
    IntegerValue, ContextRead, TokenFieldRead,
    InstStart, InstNext, LocalRead,
]


# ──────────────────────────────────────────────
# Postfix expression elements
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class ValueElement:
    value: ReadScope = field(default_factory=IntegerValue)

@dataclass(frozen=True)
class OpElement:
    op: BinaryOperator = BinaryOperator.ADD

@dataclass(frozen=True)
class UnaryElement:
    op: UnaryOperator = UnaryOperator.NEGATE

ExprElement = Union[ValueElement, OpElement, UnaryElement]


@dataclass(frozen=True)
class ConstraintValue:
    """Postfix expression compared against a field or table."""
    elements: Tuple[ExprElement, ...] = ()


# ──────────────────────────────────────────────
# Pattern: verifications and blocks
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class ContextCheck:
    context: int = 0
    op: CmpOp = CmpOp.EQ
    value: ConstraintValue = ConstraintValue()

@dataclass(frozen=True)
class TableBuild:
    """Sub-table decode, optionally compared against a value."""
    table: int = 0
    verification: Optional[Tuple[CmpOp, ConstraintValue]] = None

@dataclass(frozen=True)
class TokenFieldCheck:
    field: int = 0
    op: CmpOp = CmpOp.EQ
    value: ConstraintValue = ConstraintValue()

@dataclass(frozen=True)
class SubPattern:
    pattern: Pattern = None  # type: ignore

Verification = Union[ContextCheck, TableBuild, TokenFieldCheck, SubPattern]


@dataclass(frozen=True)
class AndBlock:
    """Conjunction of verifications."""
    verifications: Tuple[Verification, ...] = ()
    token_fields: Tuple[int, ...] = ()

@dataclass(frozen=True)
class OrBlock:
    """Disjunction of alternative verification groups."""
    branches: Tuple[Tuple[Verification, ...], ...] = ()

Block = Union[AndBlock, OrBlock]


@dataclass(frozen=True)
class Pattern:
    blocks: Tuple[Block, ...] = ()


# ──────────────────────────────────────────────
# Display template
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class MnemonicElement:
    pass

@dataclass(frozen=True)
class LiteralElement:
    text: str = ""

@dataclass(frozen=True)
class SpaceElement:
    pass

@dataclass(frozen=True)
class TableElement:
    table: int = 0

@dataclass(frozen=True)
class TokenFieldElement:
    field: int = 0

@dataclass(frozen=True)
class VarnodeElement:
    varnode: int = 0

@dataclass(frozen=True)
class ContextElement:
    context: int = 0

@dataclass(frozen=True)
class InstStartElement:
    pass

@dataclass(frozen=True)
class InstNextElement:
    pass

@dataclass(frozen=True)
class DisassemblyElement:
    variable: int = 0

DisplayElement = Union[
    MnemonicElement, LiteralElement, SpaceElement,
    TableElement, TokenFieldElement, VarnodeElement,
    ContextElement, InstStartElement, InstNextElement,
    DisassemblyElement,
]


@dataclass(frozen=True)
class Display:
    mnemonic: Optional[str] = None
    elements: Tuple[DisplayElement, ...] = ()


# ──────────────────────────────────────────────
# Constructors, tables, fields
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Constructor:
    """One encoding variant: pattern plus display template."""
    pattern: Pattern = field(default_factory=Pattern)
    display: Display = field(default_factory=Display)

    @property
    def mnemonic(self) -> Optional[str]:
        return self.display.mnemonic

@dataclass(frozen=True)
class Table:
    name: str = ""
    constructors: Tuple[Constructor, ...] = ()

@dataclass(frozen=True)
class TokenField:
    name: str = ""
    token: Optional[str] = None
    bits: Optional[Tuple[int, int]] = None

@dataclass(frozen=True)
class Context:
    name: str = ""

@dataclass(frozen=True)
class Varnode:
    name: str = ""


def _lookup(items: tuple, index: int, what: str):
    # negative ids must not wrap around to the end
    if not isinstance(index, int) or not 0 <= index < len(items):
        raise ModelError(f"{what} {index!r} does not exist")
    return items[index]


@dataclass(frozen=True)
class Sleigh:
    """Root of a parsed instruction-set description."""
    tables: Tuple[Table, ...] = ()
    token_fields: Tuple[TokenField, ...] = ()
    contexts: Tuple[Context, ...] = ()
    varnodes: Tuple[Varnode, ...] = ()
    instruction_table: int = 0

    def table(self, table_id: int) -> Table:
        return _lookup(self.tables, table_id, "table")

    def token_field(self, field_id: int) -> TokenField:
        return _lookup(self.token_fields, field_id, "token field")

    def context(self, context_id: int) -> Context:
        return _lookup(self.contexts, context_id, "context")

    def varnode(self, varnode_id: int) -> Varnode:
        return _lookup(self.varnodes, varnode_id, "varnode")

    def instruction_constructors(self) -> List[Constructor]:
        """Constructors of the root instruction table, in model order."""
        return list(self.table(self.instruction_table).constructors)
