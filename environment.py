"""
mypython Environment
Scope records live in an arena and refer to their parent by handle, never by ownership.
An Environment is a (arena, handle) pair passed through every evaluation call.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from ast_nodes import FunctionDecl
from utilities import undefined_function_error, undefined_variable_error


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class Scope:
  """One lexical scope: variables, functions and the handle of the enclosing scope"""
  bindings: Dict[str, int] = field(default_factory=dict)
  functions: Dict[str, FunctionDecl] = field(default_factory=dict)
  parent: Optional[int] = None


class ScopeArena:
  """Owns every scope of one program run; scopes are released in frame order"""

  def __init__(self):
    self._scopes: List[Optional[Scope]] = []

  def allocate(self, parent: Optional[int] = None) -> int:
    """Create a scope and return its handle"""
    if parent is not None:
      self.scope(parent)
    self._scopes.append(Scope(parent=parent))
    return len(self._scopes) - 1

  def release(self, handle: int) -> None:
    """Drop a scope when the frame that created it returns"""
    self.scope(handle)
    self._scopes[handle] = None
    while self._scopes and self._scopes[-1] is None:
      self._scopes.pop()

  def scope(self, handle: int) -> Scope:
    if not 0 <= handle < len(self._scopes) or self._scopes[handle] is None:
      raise ValueError(f"Stale scope handle: {handle}")
    return self._scopes[handle]

  def chain(self, handle: int) -> Iterator[Scope]:
    """Walk from a scope outward through its parents"""
    current: Optional[int] = handle
    while current is not None:
      scope = self.scope(current)
      yield scope
      current = scope.parent

  def __len__(self) -> int:
    return sum(1 for s in self._scopes if s is not None)


# ============================================================================
# ENVIRONMENT HANDLE
# ============================================================================

@dataclass(frozen=True)
class Environment:
  arena: ScopeArena
  handle: int

  @classmethod
  def create_global(cls) -> 'Environment':
    """Fresh arena holding only the global scope"""
    arena = ScopeArena()
    return cls(arena, arena.allocate())

  @property
  def parent(self) -> Optional['Environment']:
    parent = self.arena.scope(self.handle).parent
    return None if parent is None else Environment(self.arena, parent)

  def child(self) -> 'Environment':
    """New scope whose parent is this one"""
    return Environment(self.arena, self.arena.allocate(self.handle))

  def release(self) -> None:
    self.arena.release(self.handle)

  # Variables

  def define(self, name: str, value: int) -> None:
    """Define or overwrite a variable in this scope only"""
    self.arena.scope(self.handle).bindings[name] = value

  def get(self, name: str, span: Optional[Any] = None) -> int:
    """Look up a variable through the parent chain"""
    for scope in self.arena.chain(self.handle):
      if name in scope.bindings:
        return scope.bindings[name]
    raise undefined_variable_error(name, span)

  def has(self, name: str) -> bool:
    return any(name in scope.bindings for scope in self.arena.chain(self.handle))

  # Functions

  def define_function(self, function: FunctionDecl) -> None:
    self.arena.scope(self.handle).functions[function.name] = function

  def get_function(self, name: str, span: Optional[Any] = None) -> FunctionDecl:
    """Look up a function declaration through the parent chain"""
    for scope in self.arena.chain(self.handle):
      if name in scope.functions:
        return scope.functions[name]
    raise undefined_function_error(name, span)

  # Inspection

  def variables(self) -> Dict[str, int]:
    """Copy of the variables bound directly in this scope"""
    return dict(self.arena.scope(self.handle).bindings)

  def function_names(self) -> List[str]:
    return sorted(self.arena.scope(self.handle).functions)

  def snapshot(self) -> Dict[str, Any]:
    return {
        'bindings': self.variables(),
        'functions': self.function_names()
    }
