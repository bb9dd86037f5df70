"""
Cell runtime environments
A chain of scopes; child scopes are created per binding and then dropped
"""

from typing import Dict, List, Optional

from error_handling import UndefinedSymbolError


class Environment:
  """One scope in a singly linked scope chain"""

  def __init__(self, parent: Optional['Environment'] = None):
    self.parent = parent
    self.bindings: Dict[str, object] = {}

  @classmethod
  def root(cls) -> 'Environment':
    """Create an empty top-level scope"""
    return cls()

  def extend(self) -> 'Environment':
    """Create a child scope whose parent is this one"""
    return Environment(self)

  def define(self, name: str, value) -> None:
    """Bind name in this scope only, replacing any local binding"""
    self.bindings[name] = value

  def lookup(self, name: str):
    """Nearest binding of name, walking outward through the parents"""
    scope = self
    while scope is not None:
      if name in scope.bindings:
        return scope.bindings[name]
      scope = scope.parent
    raise UndefinedSymbolError(name)

  def is_defined(self, name: str) -> bool:
    scope = self
    while scope is not None:
      if name in scope.bindings:
        return True
      scope = scope.parent
    return False

  def local_names(self) -> List[str]:
    return sorted(self.bindings)

  def __repr__(self) -> str:
    depth = 0
    scope = self.parent
    while scope is not None:
      depth += 1
      scope = scope.parent
    return f"<Environment depth={depth} names={self.local_names()}>"
