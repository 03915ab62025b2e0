"""
Load an instruction-set model from its JSON dump.

The description language is parsed elsewhere; this module only turns
the serialized object model back into model dataclasses. Layout:

    {
      "instruction_table": 0,
      "tables": [{"name": "instruction", "constructors": [...]}, ...],
      "token_fields": [{"name": "reg4", "token": "instr", "bits": [27, 31]}],
      "contexts": [{"name": "..."}],
      "varnodes": [{"name": "..."}]
    }

    constructor: {"mnemonic": "addf.s", "pattern": [block...],
                  "display": [element...]}
    block:       {"kind": "and", "verifications": [...], "token_fields": [...]}
                 {"kind": "or", "branches": [[verification...], ...]}
    verification kinds: token_field_check, table_build, context_check,
                        sub_pattern
    expression elements: {"kind": "integer", "value": -10},
                         {"kind": "op", "op": "sub"},
                         {"kind": "unary", "op": "complement"}, ...
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from .errors import ModelError
from .model import (
    BinaryOperator, UnaryOperator, CmpOp,
    IntegerValue, ContextRead, TokenFieldRead, InstStart, InstNext, LocalRead,
    ValueElement, OpElement, UnaryElement, ConstraintValue,
    ContextCheck, TableBuild, TokenFieldCheck, SubPattern,
    AndBlock, OrBlock, Pattern,
    MnemonicElement, LiteralElement, SpaceElement, TableElement,
    TokenFieldElement, VarnodeElement, ContextElement, InstStartElement,
    InstNextElement, DisassemblyElement, Display,
    Constructor, Table, TokenField, Context, Varnode, Sleigh,
)

log = logging.getLogger(__name__)


def _enum(enum_cls, value: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ModelError(f"unknown {enum_cls.__name__} {value!r}") from None


def _kind(obj: Dict[str, Any], what: str) -> str:
    try:
        return obj["kind"]
    except (KeyError, TypeError):
        raise ModelError(f"{what} without 'kind': {obj!r}") from None


# ── Expressions ──────────────────────────────

_VALUE_KINDS = {
    "integer": lambda o: IntegerValue(int(o["value"])),
    "context": lambda o: ContextRead(o["id"]),
    "token_field": lambda o: TokenFieldRead(o["id"]),
    "inst_start": lambda o: InstStart(),
    "inst_next": lambda o: InstNext(),
    "local": lambda o: LocalRead(o["id"]),
}


def _element(obj: Dict[str, Any]):
    kind = _kind(obj, "expression element")
    if kind == "op":
        return OpElement(_enum(BinaryOperator, obj["op"]))
    if kind == "unary":
        return UnaryElement(_enum(UnaryOperator, obj["op"]))
    if kind in _VALUE_KINDS:
        return ValueElement(_VALUE_KINDS[kind](obj))
    raise ModelError(f"unknown expression element kind {kind!r}")


def _value(items: List[Dict[str, Any]]) -> ConstraintValue:
    return ConstraintValue(tuple(_element(x) for x in items))


# ── Patterns ─────────────────────────────────

def _verification(obj: Dict[str, Any]):
    kind = _kind(obj, "verification")
    if kind == "token_field_check":
        return TokenFieldCheck(obj["field"], _enum(CmpOp, obj["op"]), _value(obj["value"]))
    if kind == "table_build":
        verification = None
        if obj.get("op") is not None:
            verification = (_enum(CmpOp, obj["op"]), _value(obj["value"]))
        return TableBuild(obj["table"], verification)
    if kind == "context_check":
        return ContextCheck(obj["context"], _enum(CmpOp, obj["op"]), _value(obj["value"]))
    if kind == "sub_pattern":
        return SubPattern(_pattern(obj["pattern"]))
    raise ModelError(f"unknown verification kind {kind!r}")


def _block(obj: Dict[str, Any]):
    kind = _kind(obj, "block")
    if kind == "and":
        return AndBlock(
            tuple(_verification(v) for v in obj.get("verifications", [])),
            tuple(obj.get("token_fields", [])),
        )
    if kind == "or":
        return OrBlock(tuple(
            tuple(_verification(v) for v in branch)
            for branch in obj.get("branches", [])
        ))
    raise ModelError(f"unknown block kind {kind!r}")


def _pattern(items: List[Dict[str, Any]]) -> Pattern:
    return Pattern(tuple(_block(b) for b in items))


# ── Display ──────────────────────────────────

_DISPLAY_KINDS = {
    "mnemonic": lambda o: MnemonicElement(),
    "literal": lambda o: LiteralElement(o["text"]),
    "space": lambda o: SpaceElement(),
    "table": lambda o: TableElement(o["table"]),
    "token_field": lambda o: TokenFieldElement(o["field"]),
    "varnode": lambda o: VarnodeElement(o["varnode"]),
    "context": lambda o: ContextElement(o["context"]),
    "inst_start": lambda o: InstStartElement(),
    "inst_next": lambda o: InstNextElement(),
    "disassembly": lambda o: DisassemblyElement(o["variable"]),
}


def _display_element(obj: Dict[str, Any]):
    kind = _kind(obj, "display element")
    if kind not in _DISPLAY_KINDS:
        raise ModelError(f"unknown display element kind {kind!r}")
    return _DISPLAY_KINDS[kind](obj)


def _constructor(obj: Dict[str, Any]) -> Constructor:
    return Constructor(
        pattern=_pattern(obj.get("pattern", [])),
        display=Display(
            mnemonic=obj.get("mnemonic"),
            elements=tuple(_display_element(e) for e in obj.get("display", [])),
        ),
    )


# ── Reference checks ─────────────────────────

def _check_value(sleigh: Sleigh, value: ConstraintValue) -> None:
    for ele in value.elements:
        if not isinstance(ele, ValueElement):
            continue
        if isinstance(ele.value, ContextRead):
            sleigh.context(ele.value.context)
        elif isinstance(ele.value, TokenFieldRead):
            sleigh.token_field(ele.value.field)


def _check_verification(sleigh: Sleigh, verif) -> None:
    if isinstance(verif, TokenFieldCheck):
        sleigh.token_field(verif.field)
        _check_value(sleigh, verif.value)
    elif isinstance(verif, TableBuild):
        sleigh.table(verif.table)
        if verif.verification is not None:
            _check_value(sleigh, verif.verification[1])
    elif isinstance(verif, ContextCheck):
        sleigh.context(verif.context)
        _check_value(sleigh, verif.value)
    elif isinstance(verif, SubPattern):
        _check_pattern(sleigh, verif.pattern)


def _check_pattern(sleigh: Sleigh, pattern: Pattern) -> None:
    for block in pattern.blocks:
        if isinstance(block, AndBlock):
            for verif in block.verifications:
                _check_verification(sleigh, verif)
            for field_id in block.token_fields:
                sleigh.token_field(field_id)
        else:
            for branch in block.branches:
                for verif in branch:
                    _check_verification(sleigh, verif)


def _check_display(sleigh: Sleigh, display: Display) -> None:
    for ele in display.elements:
        if isinstance(ele, TableElement):
            sleigh.table(ele.table)
        elif isinstance(ele, TokenFieldElement):
            sleigh.token_field(ele.field)
        elif isinstance(ele, ContextElement):
            sleigh.context(ele.context)
        elif isinstance(ele, VarnodeElement):
            sleigh.varnode(ele.varnode)


def check_references(sleigh: Sleigh) -> None:
    """Raise ModelError for any table, field, context or varnode id that
    does not resolve."""
    for table in sleigh.tables:
        for c in table.constructors:
            try:
                _check_pattern(sleigh, c.pattern)
                _check_display(sleigh, c.display)
            except ModelError as e:
                raise e.attach(mnemonic=c.mnemonic, subject=f"table {table.name}")


# ── Root ─────────────────────────────────────

def load_model(data: Dict[str, Any]) -> Sleigh:
    """Build a Sleigh model from already-decoded JSON data."""
    try:
        sleigh = Sleigh(
            tables=tuple(
                Table(t["name"], tuple(_constructor(c) for c in t.get("constructors", [])))
                for t in data["tables"]
            ),
            token_fields=tuple(
                TokenField(f["name"], f.get("token"),
                           tuple(f["bits"]) if f.get("bits") else None)
                for f in data.get("token_fields", [])
            ),
            contexts=tuple(Context(c["name"]) for c in data.get("contexts", [])),
            varnodes=tuple(Varnode(v["name"]) for v in data.get("varnodes", [])),
            instruction_table=data.get("instruction_table", 0),
        )
    except KeyError as e:
        raise ModelError(f"missing key {e}") from None

    if not 0 <= sleigh.instruction_table < len(sleigh.tables):
        raise ModelError(f"instruction table {sleigh.instruction_table} does not exist")
    check_references(sleigh)
    log.debug("loaded %d tables, %d token fields",
              len(sleigh.tables), len(sleigh.token_fields))
    return sleigh


def load_model_file(path: Union[str, Path]) -> Sleigh:
    """Read a JSON model dump from disk."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ModelError(f"{path}: invalid JSON: {e}") from None
    log.info("Model: %s", path)
    return load_model(data)
