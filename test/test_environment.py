"""
Environment tests: scope chains, shadowing and lookup failures
"""

import pytest
from environment import Environment
from error_handling import UndefinedSymbolError
from expressions import NaturalNumber, TRUE


class TestEnvironment:

  @pytest.fixture
  def root(self):
    env = Environment.root()
    env.define("x", NaturalNumber(1))
    return env

  def test_define_and_lookup(self, root):
    assert root.lookup("x") == NaturalNumber(1)

  def test_child_sees_parent(self, root):
    child = root.extend()
    assert child.parent is root
    assert child.lookup("x") == NaturalNumber(1)

  def test_shadowing(self, root):
    child = root.extend()
    child.define("x", TRUE)
    assert child.lookup("x") == TRUE
    assert root.lookup("x") == NaturalNumber(1)

  def test_child_defines_do_not_leak(self, root):
    child = root.extend()
    child.define("y", NaturalNumber(2))
    assert not root.is_defined("y")
    assert root.local_names() == ["x"]

  def test_last_define_wins(self, root):
    root.define("x", NaturalNumber(7))
    assert root.lookup("x") == NaturalNumber(7)

  def test_undefined_symbol(self, root):
    with pytest.raises(UndefinedSymbolError) as err:
      root.extend().lookup("Foo")
    assert err.value.name == "Foo"
    assert "Foo" in err.value.message

  def test_is_defined_walks_parents(self, root):
    grandchild = root.extend().extend()
    assert grandchild.is_defined("x")
    assert not grandchild.is_defined("z")

  def test_local_names_sorted(self):
    env = Environment.root()
    env.define("b", TRUE)
    env.define("a", TRUE)
    assert env.local_names() == ["a", "b"]

  def test_deep_chain_lookup(self, root):
    env = root
    for _ in range(5000):
      env = env.extend()
    assert env.lookup("x") == NaturalNumber(1)
