"""
Cell Interpreter
Two rewrite strategies over the same terms: full evaluation and
primitive-only reduction
"""

from typing import Dict, List, Optional, Sequence

from environment import Environment
from error_handling import CellTypeError, RecursionLimitError
from expressions import (
  NaturalNumber, BooleanValue, SymbolRef, Application, BindForm, RecurseForm,
  SpecialForm, PrimitiveFunction, Expression, ZERO, TRUE, FALSE, render
)
from parsing import CellParser, create_parser
from stdlib import BUILTIN_FUNCTIONS, apply_primitive
from utilities import (
  arity_error,
  type_mismatch_error,
  require_operand_count,
  symbol_name,
  residual,
  recursion_headroom
)


SELF_NAME = "Self"
DEFAULT_MAX_DEPTH = 200
# Host frames one level of application nesting may take (bind, recurse, operands)
EVAL_FRAMES_PER_LEVEL = 8
MODES = ("evaluate", "reduce")

# Names every root environment starts with
BOOTSTRAP_CATALOG = (
    "Zero", "True", "False", "And", "Or", "Not", "Equal", "Succ", "Add",
    "LessThan", "Evaluate", "Reduce", "Bind", "Recurse",
)


# ============================================================================
# EXECUTION CONTEXT
# ============================================================================

def make_execution_context(debug: bool = False, max_depth: int = DEFAULT_MAX_DEPTH) -> Dict:
  """Create the per-call context carrying the debug flag and nesting depth"""
  return {
      'debug': debug,
      'max_depth': max_depth,
      'depth': 0
  }


def trace(context: Dict, verb: str, expr: Expression) -> None:
  if context['debug']:
    print(f"{'  ' * context['depth']}{verb}: {render(expr)}")


def enter_application(context: Dict) -> None:
  """Count one more level of application nesting, or fail past the ceiling"""
  if context['depth'] >= context['max_depth']:
    raise RecursionLimitError(
        f"Maximum evaluation depth of {context['max_depth']} exceeded")
  context['depth'] += 1


def leave_application(context: Dict) -> None:
  context['depth'] -= 1


# ============================================================================
# SPECIAL FORM CONSTRUCTION
# ============================================================================

def construct_bind(operands: Sequence[Expression]) -> BindForm:
  """Bind[p1, ..., pn, body] with unevaluated operands"""
  if len(operands) < 2:
    raise arity_error("Bind", "at least 2", len(operands))
  params = tuple(
      symbol_name("Bind", f"parameter {i + 1}", param)
      for i, param in enumerate(operands[:-1])
  )
  return BindForm(params, operands[-1])


def construct_recurse(operands: Sequence[Expression]) -> RecurseForm:
  """Recurse[variable, recursiveCase, baseCase] with unevaluated operands"""
  require_operand_count("Recurse", operands, 3)
  variable = symbol_name("Recurse", "its induction variable", operands[0])
  return RecurseForm(variable, operands[1], operands[2])


def construct_form(operator: SpecialForm, operands: Sequence[Expression]) -> Expression:
  if operator is SpecialForm.BIND:
    return construct_bind(operands)
  return construct_recurse(operands)


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def evaluate(expr: Expression, env: Environment, context: Optional[Dict] = None) -> Expression:
  """
  Fully evaluate an expression against env.
  Performs binding, structural recursion and the Evaluate/Reduce forms.
  """
  if context is None:
    context = make_execution_context()

  trace(context, "Evaluating", expr)

  if isinstance(expr, (NaturalNumber, BooleanValue)):
    return expr
  elif isinstance(expr, SymbolRef):
    return env.lookup(expr.name)
  elif isinstance(expr, Application):
    return eval_application(expr, env, context)
  elif isinstance(expr, (BindForm, RecurseForm, SpecialForm, PrimitiveFunction)):
    return expr
  raise CellTypeError(f"Cannot evaluate {expr!r}")


def eval_application(expr: Application, env: Environment, context: Dict) -> Expression:
  """Evaluate operator then operands left to right, then dispatch"""
  enter_application(context)
  try:
    operator = evaluate(expr.operator, env, context)

    # Bind and Recurse quote their operands
    if operator is SpecialForm.BIND or operator is SpecialForm.RECURSE:
      return construct_form(operator, expr.operands)

    operands = [evaluate(operand, env, context) for operand in expr.operands]

    if operator is SpecialForm.EVALUATE:
      require_operand_count("Evaluate", operands, 1)
      return evaluate(operands[0], env, context)
    elif operator is SpecialForm.REDUCE:
      require_operand_count("Reduce", operands, 1)
      return reduce(operands[0], env, context)
    elif isinstance(operator, BindForm):
      return apply_bind(operator, operands, env, context)
    elif isinstance(operator, RecurseForm):
      return apply_recurse(operator, operands, env, context)
    elif isinstance(operator, PrimitiveFunction):
      return apply_primitive(operator, operands)
    return residual(operator, operands)
  finally:
    leave_application(context)


def apply_bind(form: BindForm, operands: List[Expression], env: Environment, context: Dict) -> Expression:
  """Bind parameters in a fresh child of the calling environment"""
  if len(operands) != len(form.params):
    raise arity_error("Bind", len(form.params), len(operands))

  call_env = env.extend()
  for name, value in zip(form.params, operands):
    call_env.define(name, value)

  return evaluate(form.body, call_env, context)


def apply_recurse(form: RecurseForm, operands: List[Expression], env: Environment, context: Dict) -> Expression:
  """
  Structural recursion on a natural n:
    rec(0) = baseCase
    rec(k) = recursiveCase with variable = k-1 and Self = rec(k-1)
  Runs bottom-up as a loop, one fresh child of env per step.
  """
  require_operand_count("Recurse", operands, 1)
  argument = operands[0]
  if not isinstance(argument, NaturalNumber):
    raise type_mismatch_error("Recurse", "its operand", "a natural number", argument)

  result = evaluate(form.base_case, env, context)
  for k in range(1, argument.value + 1):
    step_env = env.extend()
    step_env.define(form.variable, NaturalNumber(k - 1))
    step_env.define(SELF_NAME, result)
    result = evaluate(form.recursive_case, step_env, context)

  return result


# ============================================================================
# REDUCTION FUNCTIONS
# ============================================================================

def reduce(expr: Expression, env: Environment, context: Optional[Dict] = None) -> Expression:
  """
  Normalize only primitive applications; bindings, recursion and the
  Evaluate/Reduce forms stay as residual terms.
  """
  if context is None:
    context = make_execution_context()

  trace(context, "Reducing", expr)

  if isinstance(expr, (NaturalNumber, BooleanValue)):
    return expr
  elif isinstance(expr, SymbolRef):
    return env.lookup(expr.name)
  elif isinstance(expr, Application):
    return reduce_application(expr, env, context)
  elif isinstance(expr, (BindForm, RecurseForm, SpecialForm, PrimitiveFunction)):
    return expr
  raise CellTypeError(f"Cannot reduce {expr!r}")


def reduce_application(expr: Application, env: Environment, context: Dict) -> Expression:
  enter_application(context)
  try:
    operator = reduce(expr.operator, env, context)

    # Building a form is not applying it
    if operator is SpecialForm.BIND or operator is SpecialForm.RECURSE:
      return construct_form(operator, expr.operands)

    operands = [reduce(operand, env, context) for operand in expr.operands]

    if isinstance(operator, PrimitiveFunction):
      return apply_primitive(operator, operands)
    return residual(operator, operands)
  finally:
    leave_application(context)


# ============================================================================
# BOOTSTRAP
# ============================================================================

def create_root_environment() -> Environment:
  """Create a root environment holding the primitives and special forms"""
  env = Environment.root()

  env.define("Zero", ZERO)
  env.define("True", TRUE)
  env.define("False", FALSE)

  for name, primitive in BUILTIN_FUNCTIONS.items():
    env.define(name, primitive)

  for form in SpecialForm:
    env.define(form.value, form)

  return env


# ============================================================================
# INTERPRETER
# ============================================================================

class CellInterpreter:
  """Owns one root environment and runs both semantics against it"""

  def __init__(self, debug: bool = False, max_depth: int = DEFAULT_MAX_DEPTH,
               parser: Optional[CellParser] = None):
    self.debug = debug
    self.max_depth = max_depth
    self.parser = parser if parser is not None else create_parser()
    self.global_env = create_root_environment()

  def new_context(self) -> Dict:
    return make_execution_context(self.debug, self.max_depth)

  def parse(self, text: str) -> Expression:
    return self.parser.parse_expression(text)

  def evaluate(self, expr: Expression, env: Optional[Environment] = None) -> Expression:
    return self._run_strategy(evaluate, expr, env)

  def reduce(self, expr: Expression, env: Optional[Environment] = None) -> Expression:
    return self._run_strategy(reduce, expr, env)

  def render(self, expr: Expression) -> str:
    return render(expr)

  def run(self, text: str, mode: str = "evaluate") -> str:
    """Parse, evaluate or reduce, and render one line of Cell"""
    if mode not in MODES:
      raise ValueError(f"Unknown mode '{mode}', expected one of {', '.join(MODES)}")
    expr = self.parse(text)
    result = self.evaluate(expr) if mode == "evaluate" else self.reduce(expr)
    return render(result)

  def _run_strategy(self, strategy, expr: Expression, env: Optional[Environment]) -> Expression:
    scope = env if env is not None else self.global_env
    try:
      with recursion_headroom(self.max_depth * EVAL_FRAMES_PER_LEVEL):
        return strategy(expr, scope, self.new_context())
    except RecursionError as e:
      raise RecursionLimitError("Maximum evaluation depth exceeded (host stack exhausted)") from e


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, max_depth: int = DEFAULT_MAX_DEPTH) -> CellInterpreter:
  """Factory function returning an interpreter"""
  return CellInterpreter(debug=debug, max_depth=max_depth)


def create_debug_interpreter(max_depth: int = DEFAULT_MAX_DEPTH) -> CellInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, max_depth=max_depth)
