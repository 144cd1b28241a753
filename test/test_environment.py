"""
Environment tests for mypython
Scope arena handles, lookup through parents and nearest-scope definition
"""

import pytest

from ast_nodes import FunctionDecl, IntegerLiteral, ReturnStatement
from environment import Environment, ScopeArena
from error_handling import MyPythonNameError


def make_function(name, *params):
  return FunctionDecl(name, params, ReturnStatement(IntegerLiteral(1)))


class TestScopeArena:
  """Test handle allocation and release"""

  def test_allocate_returns_handles(self):
    arena = ScopeArena()
    root = arena.allocate()
    child = arena.allocate(root)
    assert arena.scope(child).parent == root
    assert len(arena) == 2

  def test_release_trailing_scope(self):
    arena = ScopeArena()
    root = arena.allocate()
    child = arena.allocate(root)
    arena.release(child)
    assert len(arena) == 1
    # the freed slot is reused by the next allocation
    assert arena.allocate(root) == child

  def test_stale_handle(self):
    arena = ScopeArena()
    root = arena.allocate()
    child = arena.allocate(root)
    arena.release(child)
    with pytest.raises(ValueError, match="Stale scope handle"):
      arena.scope(child)

  def test_allocate_with_unknown_parent(self):
    with pytest.raises(ValueError):
      ScopeArena().allocate(3)

  def test_chain_walks_outward(self):
    arena = ScopeArena()
    root = arena.allocate()
    middle = arena.allocate(root)
    leaf = arena.allocate(middle)
    assert [s.parent for s in arena.chain(leaf)] == [middle, root, None]


class TestVariables:
  """Test variable definition and lookup"""

  @pytest.fixture
  def env(self):
    return Environment.create_global()

  def test_define_and_get(self, env):
    env.define("x", 5)
    assert env.get("x") == 5
    assert env.has("x")

  def test_overwrite_in_same_scope(self, env):
    env.define("x", 1)
    env.define("x", 2)
    assert env.get("x") == 2

  def test_child_sees_parent(self, env):
    env.define("x", 1)
    assert env.child().get("x") == 1

  def test_shadowing(self, env):
    env.define("x", 1)
    inner = env.child()
    inner.define("x", 2)
    assert inner.get("x") == 2
    inner.release()
    assert env.get("x") == 1

  def test_define_writes_nearest_scope_only(self, env):
    env.define("x", 1)
    inner = env.child()
    inner.define("x", 99)
    assert env.variables() == {"x": 1}
    assert inner.variables() == {"x": 99}

  def test_parent_does_not_see_child(self, env):
    env.child().define("y", 3)
    assert not env.has("y")

  def test_undefined_variable(self, env):
    with pytest.raises(MyPythonNameError) as exc_info:
      env.child().get("missing")
    assert exc_info.value.message == "Variable 'missing' is not defined"

  def test_parent_property(self, env):
    assert env.parent is None
    inner = env.child()
    assert inner.parent == env


class TestFunctions:
  """Test function registration and lookup"""

  @pytest.fixture
  def env(self):
    return Environment.create_global()

  def test_define_and_lookup(self, env):
    add = make_function("add", "a", "b")
    env.define_function(add)
    assert env.child().get_function("add") is add

  def test_functions_and_variables_are_separate(self, env):
    env.define("f", 10)
    with pytest.raises(MyPythonNameError, match="Function 'f' is not defined"):
      env.get_function("f")

  def test_released_scope_functions_disappear(self, env):
    inner = env.child()
    inner.define_function(make_function("g"))
    inner.release()
    with pytest.raises(MyPythonNameError):
      env.get_function("g")

  def test_snapshot(self, env):
    env.define("x", 4)
    env.define_function(make_function("b"))
    env.define_function(make_function("a"))
    assert env.snapshot() == {'bindings': {"x": 4}, 'functions': ["a", "b"]}
