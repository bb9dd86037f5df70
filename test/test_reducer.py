"""
Reduction tests
Only primitive applications are normalized; everything else stays residual
"""

import pytest
from error_handling import UndefinedSymbolError, ArityError
from expressions import (
  NaturalNumber, SymbolRef, Application, BindForm, RecurseForm, SpecialForm,
  TRUE, render
)


class TestPrimitiveReduction:

  def test_add(self, run_reduce):
    assert run_reduce("Add['2, '3]") == NaturalNumber(5)

  def test_booleans(self, run_reduce):
    assert run_reduce("And[True, Not[False]]") == TRUE

  def test_values_are_unchanged(self, run_reduce):
    assert run_reduce("'4") == NaturalNumber(4)
    assert run_reduce("True") == TRUE


class TestResiduals:

  def test_bind_application_left_alone(self, run_reduce):
    result = run_reduce("Bind[x, x]['1]")
    assert isinstance(result, Application)
    assert result.operator == BindForm(("x",), SymbolRef("x"))
    assert result.operands == (NaturalNumber(1),)
    assert render(result) == "Bind[x, x][Succ[Zero]]"

  def test_operands_still_reduced(self, run_reduce):
    assert render(run_reduce("Bind[x, x][Add['1, '1]]")) == "Bind[x, x][Succ[Succ[Zero]]]"

  def test_recurse_left_alone(self, run_reduce):
    result = run_reduce("Recurse[k, Succ[Self], Zero]['2]")
    assert isinstance(result.operator, RecurseForm)
    assert render(result) == "Recurse[k, Succ[Self], Zero][Succ[Succ[Zero]]]"

  def test_evaluate_form_left_alone(self, run_reduce):
    result = run_reduce("Evaluate[Add['1, '1]]")
    assert result == Application(SpecialForm.EVALUATE, (NaturalNumber(2),))
    assert render(result) == "Evaluate[Succ[Succ[Zero]]]"

  def test_reduce_form_left_alone(self, run_reduce):
    assert render(run_reduce("Reduce['1]")) == "Reduce[Succ[Zero]]"

  def test_form_bodies_are_not_resolved(self, run_reduce):
    """Construction quotes the body, so unknown names inside are fine"""
    assert render(run_reduce("Bind[x, Foo]")) == "Bind[x, Foo]"

  def test_construction_errors_still_raised(self, run_reduce):
    with pytest.raises(ArityError):
      run_reduce("Bind[x]")


class TestReductionErrors:

  def test_undefined_symbol(self, run_reduce):
    with pytest.raises(UndefinedSymbolError):
      run_reduce("Add[Foo, '1]")


class TestReductionProperties:

  @pytest.mark.parametrize("text", [
      "Add['1, '2]",
      "Bind[x, x]['1]",
      "Add[True, '1]",
      "Evaluate[Succ['1]]",
  ])
  def test_idempotent(self, interpreter, text):
    once = interpreter.reduce(interpreter.parse(text))
    assert interpreter.reduce(once) == once

  def test_reduce_agrees_with_evaluate_on_primitives(self, interpreter):
    for text in ["Add[Succ['1], '2]", "LessThan['1, '2]", "Or[False, True]"]:
      expr = interpreter.parse(text)
      assert interpreter.reduce(expr) == interpreter.evaluate(expr)
