"""
Tests for the guardgen command line front end.
"""

import os

import pytest
from guardgen import main, read_selection_file

DATA = os.path.join(os.path.dirname(__file__), "data", "v850_subset.json")


class TestCli:
    def test_select_to_stdout(self, capsys):
        rc = main([DATA, "--select", "addf.s", "--select", "cmpf.s"])
        out = capsys.readouterr().out
        assert rc == 0
        assert out.startswith("// addf.s\nif ((get_reg4(inst) == (0x0))) {\n")
        assert "if ((op0510 == (0x3f) && R2 != ((0x4) - (0x1)))) {" in out
        assert '\tOPERANDS(" %d,%s", slice(inst->d, 17, 19), R1);' in out
        assert out.rstrip().endswith("return true;")

    def test_output_file(self, tmp_path):
        target = tmp_path / "fpu.inc"
        rc = main([DATA, "--select", "cmovf.s", "-o", str(target)])
        text = target.read_text(encoding="utf-8")
        assert rc == 0
        assert "if ((ignored ContextCheck && get_reg1(inst))) {" in text
        assert "OPERANDS" not in text

    def test_default_selection_mismatch(self, capsys):
        # the subset model lacks most of the profile's 73 mnemonics
        rc = main([DATA])
        captured = capsys.readouterr()
        assert rc == 1
        assert captured.out == ""

    def test_missing_mnemonic_no_output(self, capsys):
        rc = main([DATA, "--select", "addf.s", "--select", "divf.d"])
        assert rc == 1
        assert capsys.readouterr().out == ""

    def test_unsupported_value_aborts(self, capsys):
        rc = main([DATA, "--select", "jr"])
        assert rc == 1

    def test_failed_batch_leaves_no_file(self, tmp_path, capsys):
        target = tmp_path / "fpu.inc"
        rc = main([DATA, "--select", "addf.s", "--select", "jr", "-o", str(target)])
        assert rc == 1
        assert not target.exists()
        assert capsys.readouterr().out == ""

    def test_keep_going(self, capsys):
        rc = main([DATA, "--select", "jr", "--select", "addf.s", "--keep-going"])
        out = capsys.readouterr().out
        assert rc == 1
        assert "// addf.s" in out
        assert "// jr" not in out

    def test_or_block_emits_unconditional(self, capsys):
        rc = main([DATA, "--select", "trfsr"])
        out = capsys.readouterr().out
        assert rc == 0
        assert "if (true) {" in out

    def test_select_file(self, tmp_path, capsys):
        sel = tmp_path / "sel.txt"
        sel.write_text("# fpu\naddf.s\n\ncmovf.s  # context\n", encoding="utf-8")
        assert read_selection_file(str(sel)) == ["addf.s", "cmovf.s"]
        rc = main([DATA, "--select-file", str(sel)])
        out = capsys.readouterr().out
        assert rc == 0
        assert out.index("// addf.s") < out.index("// cmovf.s")

    def test_missing_model(self, tmp_path):
        assert main([str(tmp_path / "nope.json"), "--select", "addf.s"]) == 1

    def test_list_targets(self, capsys):
        assert main(["--list-targets"]) == 0
        out = capsys.readouterr().out
        assert "v850_fpu" in out
        assert "73 mnemonics" in out

    def test_dump_model(self, capsys):
        assert main([DATA, "--select", "addf.s", "--dump-model"]) == 0
        out = capsys.readouterr().out
        assert "Constructor:" in out
        assert "TokenFieldCheck:" in out

    def test_model_required(self):
        with pytest.raises(SystemExit):
            main([])

    def test_log_file(self, tmp_path, capsys):
        log_path = tmp_path / "logs" / "run.log"
        rc = main([DATA, "--select", "cmovf.s", "--log-file", str(log_path)])
        assert rc == 0
        assert "ignored ContextCheck" in log_path.read_text(encoding="utf-8")
