"""
Command line and REPL tests
"""

import pytest

from interpreter import create_interpreter
from main import main, handle_line, script_lines


class TestCommandLine:

  def test_expression(self, capsys):
    main(["-e", "Add['2, '1]"])
    assert capsys.readouterr().out.strip() == "Succ[Succ[Succ[Zero]]]"

  def test_reduce_flag(self, capsys):
    main(["--reduce", "-e", "Bind[x, x]['1]"])
    assert capsys.readouterr().out.strip() == "Bind[x, x][Succ[Zero]]"

  def test_parse_error_exits(self, capsys):
    with pytest.raises(SystemExit) as exit_info:
      main(["-e", "'x"])
    assert exit_info.value.code == 1
    assert "Invalid Peano number" in capsys.readouterr().out

  def test_runtime_error_exits(self, capsys):
    with pytest.raises(SystemExit) as exit_info:
      main(["-e", "Foo"])
    assert exit_info.value.code == 1
    assert "Error: Undefined symbol: Foo" in capsys.readouterr().out

  def test_script(self, tmp_path, capsys):
    script = tmp_path / "demo.cell"
    script.write_text("# demo\nAdd['1, '1]\n\nNot[True]  # negate\n", encoding="utf-8")
    main([str(script)])
    assert capsys.readouterr().out.splitlines() == ["=> Succ[Succ[Zero]]", "=> False"]

  def test_script_runtime_error(self, tmp_path, capsys):
    script = tmp_path / "broken.cell"
    script.write_text("Zero\nFoo\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exit_info:
      main([str(script)])
    assert exit_info.value.code == 1
    assert f"Runtime error at {script}:2: Undefined symbol: Foo" in capsys.readouterr().out

  def test_script_with_workers(self, tmp_path, capsys):
    script = tmp_path / "batch.cell"
    script.write_text("'1\n'2\n'3\n", encoding="utf-8")
    main(["--workers", "2", str(script)])
    assert capsys.readouterr().out.splitlines() == [
        "=> Succ[Zero]", "=> Succ[Succ[Zero]]", "=> Succ[Succ[Succ[Zero]]]"
    ]

  def test_parse_only(self, tmp_path, capsys):
    script = tmp_path / "tree.cell"
    script.write_text("Succ[Zero]\n", encoding="utf-8")
    main(["--parse", str(script)])
    out = capsys.readouterr().out
    assert "Parsed 1 expressions:" in out
    assert "operator: SymbolRef('Succ')" in out

  def test_missing_script(self, tmp_path):
    with pytest.raises(SystemExit):
      main([str(tmp_path / "nope.cell")])

  def test_max_depth_flag(self, capsys):
    with pytest.raises(SystemExit):
      main(["--max-depth", "1", "-e", "Succ[Succ[Zero]]"])
    assert "Maximum evaluation depth" in capsys.readouterr().out

  def test_parse_flag_with_expression(self, capsys):
    main(["--parse", "-e", "Add['1, '2]"])
    assert capsys.readouterr().out.splitlines() == [
        "Application",
        "  operator: SymbolRef('Add')",
        "  operand 0: NaturalNumber(1)",
        "  operand 1: NaturalNumber(2)",
    ]

  def test_parse_flag_does_not_evaluate(self, capsys):
    main(["--parse", "-e", "Foo"])
    assert capsys.readouterr().out.strip() == "SymbolRef('Foo')"

  def test_debug_flag_traces(self, capsys):
    main(["--debug", "-e", "Succ[Zero]"])
    out = capsys.readouterr().out
    assert "Evaluating: Succ[Zero]" in out
    assert out.splitlines()[-1] == "Succ[Zero]"

  def test_invalid_workers(self):
    with pytest.raises(SystemExit):
      main(["--workers", "0", "-e", "Zero"])


class TestRepl:

  @pytest.fixture
  def repl_interpreter(self):
    return create_interpreter()

  def test_plain_line(self, repl_interpreter):
    assert handle_line("Succ[Zero]", repl_interpreter) == "=> Succ[Zero]"

  def test_reduce_mode_line(self, repl_interpreter):
    assert handle_line("Bind[x, x]['1]", repl_interpreter, True) == "=> Bind[x, x][Succ[Zero]]"

  def test_reduce_command(self, repl_interpreter):
    assert handle_line(":reduce Reduce['1]", repl_interpreter) == "=> Reduce[Succ[Zero]]"

  def test_parse_command(self, repl_interpreter):
    assert handle_line(":parse f[x]", repl_interpreter).splitlines() == [
        "Application",
        "  operator: SymbolRef('f')",
        "  operand 0: SymbolRef('x')",
    ]

  def test_parse_only_mode(self, repl_interpreter):
    assert handle_line("Succ['1]", repl_interpreter, parse_only=True).splitlines() == [
        "Application",
        "  operator: SymbolRef('Succ')",
        "  operand 0: NaturalNumber(1)",
    ]

  def test_env_command(self, repl_interpreter):
    output = handle_line(":env", repl_interpreter).splitlines()
    assert output[0] == "Root environment:"
    assert "  Zero = Zero" in output
    assert "  Add = Add" in output
    assert "  True = True" in output

  def test_help_command(self, repl_interpreter, capsys):
    assert handle_line(":help", repl_interpreter) is None
    assert "REPL Commands:" in capsys.readouterr().out


def test_script_lines():
  assert script_lines("a\n  # skip\n\nb # tail\n") == ["a", "b"]
