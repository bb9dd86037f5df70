"""
Cell expression model
Immutable term nodes shared by the parser, the evaluator and the reducer
"""

from typing import Any, Callable, List, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

from error_handling import InvalidConstructionError


# ============================================================================
# VALUE NODES
# ============================================================================

@dataclass(frozen=True)
class NaturalNumber:
    """Peano natural number, stored as a plain non-negative int"""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidConstructionError(f"Natural numbers must be integers, got {self.value!r}")
        if self.value < 0:
            raise InvalidConstructionError("Natural numbers must be non-negative")


@dataclass(frozen=True)
class BooleanValue:
    value: bool


@dataclass(frozen=True)
class SymbolRef:
    """Unresolved name, looked up against an Environment"""
    name: str


# ============================================================================
# TERM NODES
# ============================================================================

@dataclass(frozen=True)
class Application:
    """Operator applied to a fixed tuple of operands"""
    operator: Any
    operands: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'operands', tuple(self.operands))


@dataclass(frozen=True)
class BindForm:
    """Lambda-like abstraction; free names resolve at the call site"""
    params: Tuple[str, ...]
    body: Any

    def __post_init__(self):
        object.__setattr__(self, 'params', tuple(self.params))


@dataclass(frozen=True)
class RecurseForm:
    """Structural recursion over one natural number argument"""
    variable: str
    recursive_case: Any
    base_case: Any


class SpecialForm(Enum):
    """Operators whose dispatch is built into the evaluator"""
    EVALUATE = "Evaluate"
    REDUCE = "Reduce"
    BIND = "Bind"
    RECURSE = "Recurse"


@dataclass(frozen=True, eq=False)
class PrimitiveFunction:
    """Native operator, only reachable through environment lookup"""
    name: str
    native: Callable = field(repr=False)


Expression = Union[
    NaturalNumber, BooleanValue, SymbolRef, Application,
    BindForm, RecurseForm, SpecialForm, PrimitiveFunction
]

# Kinds the Equal primitive can compare
VALUE_KINDS = (NaturalNumber, BooleanValue)

ZERO = NaturalNumber(0)
TRUE = BooleanValue(True)
FALSE = BooleanValue(False)


def make_boolean(value: bool) -> BooleanValue:
    return TRUE if value else FALSE


# ============================================================================
# RENDERING
# ============================================================================

def render(expr: Expression) -> str:
    """Render an expression back into Cell's canonical text form"""
    if isinstance(expr, NaturalNumber):
        # Built flat so large numbers do not recurse
        return "Succ[" * expr.value + "Zero" + "]" * expr.value
    elif isinstance(expr, BooleanValue):
        return "True" if expr.value else "False"
    elif isinstance(expr, SymbolRef):
        return expr.name
    elif isinstance(expr, Application):
        operands = ", ".join(render(operand) for operand in expr.operands)
        return f"{render(expr.operator)}[{operands}]"
    elif isinstance(expr, BindForm):
        parts = list(expr.params) + [render(expr.body)]
        return f"Bind[{', '.join(parts)}]"
    elif isinstance(expr, RecurseForm):
        return f"Recurse[{expr.variable}, {render(expr.recursive_case)}, {render(expr.base_case)}]"
    elif isinstance(expr, SpecialForm):
        return expr.value
    elif isinstance(expr, PrimitiveFunction):
        return expr.name
    raise TypeError(f"Not a Cell expression: {expr!r}")


def describe_kind(expr: Expression) -> str:
    """Short kind name used in error messages and tree dumps"""
    if isinstance(expr, SpecialForm):
        return "SpecialForm"
    return type(expr).__name__


def sub_expressions(expr: Expression) -> List[Tuple[Optional[str], Expression]]:
    """Direct children of a node, labelled for tree dumps"""
    if isinstance(expr, Application):
        children = [("operator", expr.operator)]
        children.extend((f"operand {i}", operand) for i, operand in enumerate(expr.operands))
        return children
    elif isinstance(expr, BindForm):
        return [("body", expr.body)]
    elif isinstance(expr, RecurseForm):
        return [("recursive case", expr.recursive_case), ("base case", expr.base_case)]
    return []
