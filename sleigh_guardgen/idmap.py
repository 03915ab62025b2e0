"""
Identifier mapping from description-level names to target C expressions.

Each rule is a (pattern, accessor, reader, formatter) entry. The
pattern is matched against the start of the field or table name and
the first matching rule wins. A rule without a builder for one of the
tables leaves the name unchanged there.

  - accessor:  how the symbol is named in a condition or argument
  - reader:    how the symbol is read from the raw instruction word
  - formatter: printf-style specifier used in the operand directive

The rule tables are per-ISA configuration; swap them to target a
different naming convention.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

Builder = Callable[[re.Match], str]

DEFAULT_FORMAT = "%s"


@dataclass(frozen=True)
class IdentifierRule:
    pattern: re.Pattern
    accessor: Optional[Builder] = None
    reader: Optional[Builder] = None
    formatter: str = DEFAULT_FORMAT

    @classmethod
    def make(cls, regex: str, accessor=None, reader=None,
             formatter: str = DEFAULT_FORMAT) -> IdentifierRule:
        """Build a rule; builders may be constant strings."""
        return cls(re.compile(regex), _builder(accessor), _builder(reader), formatter)


def _builder(spec) -> Optional[Builder]:
    if spec is None or callable(spec):
        return spec
    return lambda m, text=spec: text


def _slice(m: re.Match) -> str:
    return f"slice(inst->d, {m.group(1)}, {m.group(2)})"


# ──────────────────────────────────────────────
# V850 naming convention
# ──────────────────────────────────────────────

V850_RULES: List[IdentifierRule] = [
    # opcode bit ranges: op<hi><lo>
    IdentifierRule.make(r"op(\w{2})(\w{2})",
                        accessor=lambda m: f"OP({m.group(1)}, {m.group(2)})",
                        formatter="%x"),
    # register classes keyed by bit offsets
    IdentifierRule.make(r"R0004", accessor="R1", reader="get_reg1(inst)"),
    IdentifierRule.make(r"R1115", accessor="R2", reader="get_reg2(inst)"),
    IdentifierRule.make(r"R2731", accessor="R3", reader="get_reg3(inst)"),
    # condition bits and condition codes
    IdentifierRule.make(r"fcbit(\w{2})(\w{2})",
                        accessor=_slice, reader=_slice, formatter="%d"),
    IdentifierRule.make(r"fcond(\w{2})(\w{2})",
                        accessor=lambda m: f"conds[{_slice(m)}]",
                        reader=_slice),
    IdentifierRule.make(r"reg4$", accessor="R4", reader="get_reg4(inst)"),
]


class IdentifierMapper:
    """Applies an ordered rule table to field and table names."""

    def __init__(self, rules: Sequence[IdentifierRule] = ()):
        self.rules = tuple(rules)

    def match(self, name: str):
        for rule in self.rules:
            m = rule.pattern.match(name)
            if m:
                return rule, m
        return None, None

    def accessor(self, name: str) -> str:
        rule, m = self.match(name)
        if rule is None or rule.accessor is None:
            return name
        return rule.accessor(m)

    def reader(self, name: str) -> str:
        rule, m = self.match(name)
        if rule is None or rule.reader is None:
            return name
        return rule.reader(m)

    def formatter(self, name: str) -> str:
        rule, _ = self.match(name)
        if rule is None:
            return DEFAULT_FORMAT
        return rule.formatter
