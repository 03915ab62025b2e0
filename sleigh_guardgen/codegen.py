"""
Guard code generator for the selected instruction subset.

For each constructor emits a block of C for a hand-written
disassembler:

    // addf.s
    if ((get_reg4(inst) == (0x0))) {
        inst->id = V850_ADDF_S;
        INSTR("addf.s");
        OPERANDS("%s", R1);
        return true;
    }

The condition is the conjunction of every And block of the pattern.
Context checks and sub-patterns are not translated: they produce a
Placeholder whose text stays visible in the output so it can be
patched by hand. Or blocks contribute nothing and are reported.
"""

from __future__ import annotations
import io
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, TextIO, Tuple, Union

from .errors import GuardGenError, SelectionMismatchError
from .expression import CMP_SYMBOLS, render_expression
from .idmap import IdentifierMapper
from .model import (
    Sleigh, Constructor, Verification, AndBlock, OrBlock,
    ContextCheck, TableBuild, TokenFieldCheck, SubPattern,
    TableElement, TokenFieldElement, LiteralElement, SpaceElement,
    DisplayElement,
)
from .profiles import TargetProfile, get_profile, DEFAULT_TARGET

log = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Rendering results
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Rendered:
    """Translated condition text (empty means no contribution)."""
    text: str

@dataclass(frozen=True)
class Placeholder:
    """Condition that was recognised but not translated."""
    reason: str

    @property
    def text(self) -> str:
        return self.reason

VerificationResult = Union[Rendered, Placeholder]

CONTEXT_CHECK_PLACEHOLDER = "ignored ContextCheck"
SUBPATTERN_PLACEHOLDER = "ignored subpattern"
OR_BLOCK_PLACEHOLDER = "ignored or-block"


@dataclass
class ConstructorResult:
    mnemonic: str
    text: str
    placeholders: List[Placeholder] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.placeholders


@dataclass
class GenerationReport:
    """Outcome of a batch: emitted blocks and skipped constructors."""
    results: List[ConstructorResult] = field(default_factory=list)
    failures: List[Tuple[str, GuardGenError]] = field(default_factory=list)

    @property
    def emitted(self) -> List[str]:
        return [r.mnemonic for r in self.results]

    @property
    def incomplete(self) -> List[str]:
        return [r.mnemonic for r in self.results if not r.complete]


# ──────────────────────────────────────────────
# Selection
# ──────────────────────────────────────────────

def select_constructors(sleigh: Sleigh, selection: Iterable[str]) -> List[Constructor]:
    """Pick the instruction-table constructors named in the selection.

    Keeps model order. Raises SelectionMismatchError unless exactly one
    constructor matches each requested mnemonic.
    """
    wanted = set(selection)
    chosen = [
        c for c in sleigh.instruction_constructors()
        if c.mnemonic is not None and c.mnemonic in wanted
    ]
    counts = Counter(c.mnemonic for c in chosen)
    missing = wanted - set(counts)
    duplicated = [m for m, n in counts.items() if n > 1]
    if missing or duplicated:
        raise SelectionMismatchError(
            len(wanted), len(chosen), missing=missing, duplicated=duplicated,
        )
    return chosen


# ──────────────────────────────────────────────
# Generator
# ──────────────────────────────────────────────

class GuardCodeGenerator:
    """Emits guard code for constructors of one instruction-set model."""

    def __init__(self, sleigh: Sleigh, profile: Optional[TargetProfile] = None):
        self.sleigh = sleigh
        self.profile = profile or get_profile(DEFAULT_TARGET)
        self.ids = IdentifierMapper(self.profile.rules)

    # ── Escaping helpers ──────────────────────

    @staticmethod
    def _c_string(text: str) -> str:
        return text.replace("\\", "\\\\").replace('"', '\\"')

    @staticmethod
    def _format_literal(text: str) -> str:
        return GuardCodeGenerator._c_string(text).replace("%", "%%")

    # ── Verifications ─────────────────────────

    def render_verification(self, verif: Verification) -> VerificationResult:
        if isinstance(verif, TokenFieldCheck):
            name = self.sleigh.token_field(verif.field).name
            try:
                value = render_expression(verif.value)
            except GuardGenError as e:
                raise e.attach(subject=f"field {name}")
            return Rendered(f"{self.ids.reader(name)} {CMP_SYMBOLS[verif.op]} ({value})")

        if isinstance(verif, TableBuild):
            name = self.sleigh.table(verif.table).name
            if verif.verification is None:
                return Rendered(self.ids.reader(name))
            op, value_expr = verif.verification
            try:
                value = render_expression(value_expr)
            except GuardGenError as e:
                raise e.attach(subject=f"table {name}")
            return Rendered(f"{self.ids.accessor(name)} {CMP_SYMBOLS[op]} ({value})")

        if isinstance(verif, ContextCheck):
            return Placeholder(CONTEXT_CHECK_PLACEHOLDER)

        if isinstance(verif, SubPattern):
            return Placeholder(SUBPATTERN_PLACEHOLDER)

        raise GuardGenError(f"unknown verification {verif!r}")

    def render_block(self, block: AndBlock,
                     placeholders: Optional[List[Placeholder]] = None) -> str:
        """Render an And block as ``(v1 && v2 ...)``, eliding empty parts.

        Returns an empty string when nothing contributes.
        """
        parts = []
        for verif in block.verifications:
            result = self.render_verification(verif)
            if isinstance(result, Placeholder) and placeholders is not None:
                placeholders.append(result)
            if result.text:
                parts.append(result.text)
        if not parts:
            return ""
        return "(" + " && ".join(parts) + ")"

    def render_condition(self, constructor: Constructor,
                         placeholders: Optional[List[Placeholder]] = None) -> str:
        blocks = []
        for block in constructor.pattern.blocks:
            if isinstance(block, OrBlock):
                log.warning("%s: Or block not translated, condition is incomplete",
                            constructor.mnemonic)
                if placeholders is not None:
                    placeholders.append(Placeholder(OR_BLOCK_PLACEHOLDER))
                continue
            text = self.render_block(block, placeholders)
            if text:
                blocks.append(text)
        if not blocks:
            return "true"
        return " && ".join(blocks)

    # ── Operand directive ─────────────────────

    def operand_pair(self, ele: DisplayElement) -> Tuple[str, str]:
        if isinstance(ele, TableElement):
            name = self.sleigh.table(ele.table).name
            return self.ids.formatter(name), self.ids.accessor(name)
        if isinstance(ele, TokenFieldElement):
            name = self.sleigh.token_field(ele.field).name
            return self.ids.formatter(name), self.ids.accessor(name)
        if isinstance(ele, LiteralElement):
            return self._format_literal(ele.text), ""
        if isinstance(ele, SpaceElement):
            return " ", ""
        log.debug("unanticipated display element %r", ele)
        return self._format_literal(repr(ele)), ""

    def render_operands(self, constructor: Constructor) -> Optional[str]:
        """Build the OPERANDS directive; None if nothing follows the mnemonic."""
        elements = constructor.display.elements[1:]
        if not elements:
            return None
        fmt = ""
        args: List[str] = []
        for ele in elements:
            spec, arg = self.operand_pair(ele)
            fmt += spec
            if arg:
                args.append(arg)
        if args:
            return f'OPERANDS("{fmt}", {", ".join(args)});'
        return f'OPERANDS("{fmt}");'

    # ── Constructors ──────────────────────────

    def instruction_id(self, mnemonic: str) -> str:
        return self.profile.id_prefix + mnemonic.upper().replace(".", "_")

    def generate_constructor(self, constructor: Constructor) -> ConstructorResult:
        mnemonic = constructor.mnemonic
        if mnemonic is None:
            raise GuardGenError("constructor has no mnemonic")
        placeholders: List[Placeholder] = []
        try:
            cond = self.render_condition(constructor, placeholders)
            operands = self.render_operands(constructor)
        except GuardGenError as e:
            raise e.attach(mnemonic=mnemonic)

        lines = [
            f"// {mnemonic}",
            f"if ({cond}) {{",
            f"\tinst->id = {self.instruction_id(mnemonic)};",
            f'\tINSTR("{self._c_string(mnemonic)}");',
        ]
        if operands is not None:
            lines.append(f"\t{operands}")
        lines.append("\treturn true;")
        lines.append("}")

        # Or blocks were already reported by render_condition
        for ph in placeholders:
            if ph.reason != OR_BLOCK_PLACEHOLDER:
                log.warning("%s: %s", mnemonic, ph.reason)
        log.debug("generated %s", mnemonic)
        return ConstructorResult(mnemonic, "\n".join(lines) + "\n", placeholders)

    def generate(self, constructors: Sequence[Constructor], sink: TextIO,
                 keep_going: bool = False) -> GenerationReport:
        """Write guard code for each constructor to the sink.

        A constructor is rendered completely before it is written. With
        keep_going, a constructor that fails is logged and skipped;
        otherwise the error propagates.
        """
        report = GenerationReport()
        for constructor in constructors:
            try:
                result = self.generate_constructor(constructor)
            except GuardGenError as e:
                if not keep_going:
                    raise
                log.error("skipping %s: %s", constructor.mnemonic, e)
                report.failures.append((constructor.mnemonic or "?", e))
                continue
            sink.write(result.text)
            report.results.append(result)
        if self.profile.epilogue:
            sink.write(self.profile.epilogue)
        log.info("emitted %d constructors (%d incomplete, %d skipped)",
                 len(report.results), len(report.incomplete), len(report.failures))
        return report


def generate_source(sleigh: Sleigh, profile: Optional[TargetProfile] = None,
                    selection: Optional[Iterable[str]] = None,
                    keep_going: bool = False) -> str:
    """Select constructors and return the generated guard code as text."""
    gen = GuardCodeGenerator(sleigh, profile)
    if selection is None:
        selection = gen.profile.selection
    chosen = select_constructors(sleigh, selection)
    out = io.StringIO()
    gen.generate(chosen, out, keep_going=keep_going)
    return out.getvalue()
