"""
Cell Standard Library
Primitive operators over booleans and naturals
"""

from typing import Dict, Callable, List, Sequence

from error_handling import CellRuntimeError
from expressions import (
  NaturalNumber, BooleanValue, PrimitiveFunction, Expression,
  VALUE_KINDS, make_boolean
)
from utilities import concrete_op, residual


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def make_builtin_function(name: str, native: Callable) -> PrimitiveFunction:
  """Wrap a native operator as a first-class primitive"""
  return PrimitiveFunction(name, native)


def apply_primitive(primitive: PrimitiveFunction, operands: Sequence[Expression]) -> Expression:
  """Invoke a primitive; operands it cannot handle yield a residual term"""
  result = primitive.native(*operands)
  if result is None:
    return residual(primitive, operands)
  return result


# ============================================================================
# BOOLEAN FUNCTIONS
# ============================================================================

cell_and = concrete_op(
  [BooleanValue, BooleanValue],
  lambda a, b: make_boolean(a.value and b.value)
)

cell_or = concrete_op(
  [BooleanValue, BooleanValue],
  lambda a, b: make_boolean(a.value or b.value)
)

cell_not = concrete_op([BooleanValue], lambda a: make_boolean(not a.value))


# ============================================================================
# COMPARISON FUNCTIONS
# ============================================================================

# Compares whole nodes, so Equal['1, True] is False rather than 1 == True
cell_equal = concrete_op(
  [VALUE_KINDS, VALUE_KINDS],
  lambda a, b: make_boolean(a == b)
)

cell_less_than = concrete_op(
  [NaturalNumber, NaturalNumber],
  lambda a, b: make_boolean(a.value < b.value)
)


# ============================================================================
# ARITHMETIC FUNCTIONS
# ============================================================================

cell_succ = concrete_op([NaturalNumber], lambda n: NaturalNumber(n.value + 1))

cell_add = concrete_op(
  [NaturalNumber, NaturalNumber],
  lambda a, b: NaturalNumber(a.value + b.value)
)


# Built-in function registry
BUILTIN_FUNCTIONS: Dict[str, PrimitiveFunction] = {
    # Boolean logic
    "And": make_builtin_function("And", cell_and),
    "Or": make_builtin_function("Or", cell_or),
    "Not": make_builtin_function("Not", cell_not),

    # Comparison
    "Equal": make_builtin_function("Equal", cell_equal),
    "LessThan": make_builtin_function("LessThan", cell_less_than),

    # Arithmetic
    "Succ": make_builtin_function("Succ", cell_succ),
    "Add": make_builtin_function("Add", cell_add),
}


def get_builtin_function(name: str) -> PrimitiveFunction:
  """Get a built-in function by name"""
  if name in BUILTIN_FUNCTIONS:
    return BUILTIN_FUNCTIONS[name]
  else:
    raise CellRuntimeError(f"Unknown built-in function: {name}")


def list_builtin_functions() -> List[str]:
  """List all available built-in functions"""
  return list(BUILTIN_FUNCTIONS.keys())
