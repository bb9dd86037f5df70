"""
Utilities module for the Cell interpreter
Error factories, the primitive-operator factories used by stdlib, and
host stack headroom for deeply nested terms
"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence, Tuple, Type, Union
import sys
import threading

from error_handling import ArityError, CellTypeError
from expressions import Application, SymbolRef, Expression, render, describe_kind


KindSpec = Union[Type, Tuple[Type, ...]]


# ==================== ERROR FACTORIES ====================

def arity_error(form_name: str, expected: Union[int, str], got: int) -> ArityError:
  """
  Generate arity error

  Args:
    form_name: Name of the form being applied
    expected: Expected operand count (or a description such as "at least 2")
    got: Actual operand count

  Returns:
    ArityError with formatted message
  """
  plural = "" if expected == 1 else "s"
  return ArityError(f"{form_name} takes {expected} operand{plural}, got {got}")


def type_mismatch_error(form_name: str, position: str, expected: str, got: Expression) -> CellTypeError:
  """
  Generate type mismatch error

  Args:
    form_name: Name of the form being applied
    position: Which operand was wrong (e.g. "operand 1")
    expected: Expected kind name
    got: The offending expression

  Returns:
    CellTypeError with formatted message
  """
  return CellTypeError(
    f"{form_name} expects {expected} for {position}, got {describe_kind(got)} {render(got)}"
  )


# ==================== VALIDATION UTILITIES ====================

def require_operand_count(form_name: str, operands: Sequence[Expression], expected: int) -> None:
  """Raise ArityError unless exactly `expected` operands were supplied"""
  if len(operands) != expected:
    raise arity_error(form_name, expected, len(operands))


def symbol_name(form_name: str, position: str, expr: Expression) -> str:
  """Name of a symbol operand, used where a form expects a binder"""
  if not isinstance(expr, SymbolRef):
    raise type_mismatch_error(form_name, position, "a symbol", expr)
  return expr.name


def has_kinds(operands: Sequence[Expression], kinds: Sequence[KindSpec]) -> bool:
  """True when operands match kinds one-to-one"""
  if len(operands) != len(kinds):
    return False
  return all(isinstance(operand, kind) for operand, kind in zip(operands, kinds))


# ==================== PRIMITIVE FACTORIES ====================

def concrete_op(
  kinds: Sequence[KindSpec],
  compute: Callable[..., Expression]
) -> Callable[..., Optional[Expression]]:
  """
  Factory for primitive natives with a concrete/residual split

  Args:
    kinds: Expected kind (or tuple of kinds) for each operand
    compute: Builds the concrete result from the operand expressions

  Returns:
    Native taking any number of operands; it returns None when the operands
    are not concrete enough, which the caller turns into a residual term

  Examples:
    succ = concrete_op([NaturalNumber], lambda n: NaturalNumber(n.value + 1))
    succ(NaturalNumber(1)) -> NaturalNumber(2)
    succ(TRUE) -> None
  """
  def native(*operands: Expression) -> Optional[Expression]:
    if not has_kinds(operands, kinds):
      return None
    return compute(*operands)

  return native


def residual(operator: Expression, operands: Sequence[Expression]) -> Application:
  """A stuck application kept as an inert term"""
  return Application(operator, tuple(operands))


# ==================== HOST STACK ====================

HOST_FRAME_CAP = 20000

_headroom_lock = threading.Lock()
_headroom_users = 0
_base_recursion_limit = None


@contextmanager
def recursion_headroom(frames: int) -> Iterator[None]:
  """
  Raise the interpreter's recursion limit by `frames` (capped at
  HOST_FRAME_CAP) for the duration of the block

  The limit is process-wide, so concurrent users share one raised limit
  and the original is restored when the last of them leaves.
  """
  global _headroom_users, _base_recursion_limit
  frames = min(max(frames, 0), HOST_FRAME_CAP)

  with _headroom_lock:
    if _headroom_users == 0:
      _base_recursion_limit = sys.getrecursionlimit()
    _headroom_users += 1
    wanted = _base_recursion_limit + frames
    if wanted > sys.getrecursionlimit():
      sys.setrecursionlimit(wanted)

  try:
    yield
  finally:
    with _headroom_lock:
      _headroom_users -= 1
      if _headroom_users == 0:
        sys.setrecursionlimit(_base_recursion_limit)
        _base_recursion_limit = None
