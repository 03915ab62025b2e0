"""
Tests for identifier mapping rules (V850 naming convention).
"""

import re

from sleigh_guardgen.idmap import IdentifierMapper, IdentifierRule, V850_RULES


def _mapper() -> IdentifierMapper:
    return IdentifierMapper(V850_RULES)


class TestV850Rules:
    def test_opcode_range(self):
        m = _mapper()
        assert m.accessor("op0510") == "OP(05, 10)"
        assert m.reader("op0510") == "op0510"
        assert m.formatter("op0510") == "%x"

    def test_register_classes(self):
        m = _mapper()
        assert m.accessor("R0004") == "R1"
        assert m.accessor("R1115") == "R2"
        assert m.accessor("R2731_f") == "R3"
        assert m.reader("R0004") == "get_reg1(inst)"
        assert m.reader("R1115") == "get_reg2(inst)"
        assert m.reader("R2731") == "get_reg3(inst)"
        assert m.formatter("R0004") == "%s"

    def test_unknown_register_offset_is_identity(self):
        m = _mapper()
        assert m.accessor("R1620") == "R1620"
        assert m.reader("R1620") == "R1620"
        assert m.formatter("R1620") == "%s"

    def test_condition_bits(self):
        m = _mapper()
        assert m.accessor("fcbit1719") == "slice(inst->d, 17, 19)"
        assert m.reader("fcbit1719") == "slice(inst->d, 17, 19)"
        assert m.formatter("fcbit1719") == "%d"

    def test_condition_codes(self):
        m = _mapper()
        assert m.accessor("fcond0003") == "conds[slice(inst->d, 00, 03)]"
        assert m.reader("fcond0003") == "slice(inst->d, 00, 03)"
        assert m.formatter("fcond0003") == "%s"

    def test_reg4(self):
        m = _mapper()
        assert m.accessor("reg4") == "R4"
        assert m.reader("reg4") == "get_reg4(inst)"
        assert m.accessor("reg4x") == "reg4x"

    def test_unknown_names_fall_back(self):
        m = _mapper()
        for name in ("imm5", "disp16", "op", "fcbit"):
            assert m.accessor(name) == name
            assert m.reader(name) == name
            assert m.formatter(name) == "%s"

    def test_deterministic(self):
        m = _mapper()
        first = [(m.accessor(n), m.reader(n), m.formatter(n))
                 for n in ("op0510", "R0004", "fcond0003", "reg4", "imm5")]
        for _ in range(3):
            again = [(m.accessor(n), m.reader(n), m.formatter(n))
                     for n in ("op0510", "R0004", "fcond0003", "reg4", "imm5")]
            assert again == first


class TestCustomRules:
    def test_first_match_wins(self):
        m = IdentifierMapper([
            IdentifierRule.make(r"imm", accessor="IMM_A", formatter="%d"),
            IdentifierRule.make(r"imm5", accessor="IMM_B"),
        ])
        assert m.accessor("imm5") == "IMM_A"
        assert m.formatter("imm5") == "%d"

    def test_callable_builder(self):
        rule = IdentifierRule.make(r"disp(\d+)",
                                   accessor=lambda mt: f"sext(inst, {mt.group(1)})")
        m = IdentifierMapper([rule])
        assert m.accessor("disp16") == "sext(inst, 16)"
        assert m.reader("disp16") == "disp16"
        assert isinstance(rule.pattern, re.Pattern)

    def test_empty_rule_table_is_identity(self):
        m = IdentifierMapper()
        assert m.accessor("R0004") == "R0004"
        assert m.formatter("op0510") == "%s"
