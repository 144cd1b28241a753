"""
mypython Interpreter
Tree-walking evaluator: expressions evaluate to integers, statements report a Completion.
Return values travel as Completion results, never as exceptions; only fatal errors raise.
"""

import sys
from dataclasses import dataclass
from typing import Optional, Sequence, TextIO

from ast_nodes import (
  Assign,
  AssignStatement,
  BinaryOp,
  Block,
  Call,
  Expr,
  ExpressionStatement,
  FunctionDecl,
  IfStatement,
  IntegerLiteral,
  PrintStatement,
  ReturnStatement,
  Stmt,
  StringLiteral,
  VariableRef,
)
from environment import Environment
from error_handling import MyPythonRuntimeError
from lexing import tokenize
from parsing import parse
from stdlib import BUILTIN_OPERATORS, mp_print
from utilities import arity_error, unsupported_operator_error


# ============================================================================
# CONTROL TRANSFER
# ============================================================================

@dataclass(frozen=True)
class Completion:
  """Outcome of executing a statement: fell off the end, or returning a value"""
  returning: bool = False
  value: int = 0


NORMAL = Completion()


def make_return(value: int) -> Completion:
  return Completion(returning=True, value=value)


# ============================================================================
# INTERPRETER
# ============================================================================

class Interpreter:
  """Executes programs; holds no program state between interpret calls"""

  def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None, debug: bool = False):
    self.out = out
    self.err = err
    self.debug = debug

  @property
  def stdout(self) -> TextIO:
    return self.out if self.out is not None else sys.stdout

  @property
  def stderr(self) -> TextIO:
    return self.err if self.err is not None else sys.stderr

  def _trace(self, message: str) -> None:
    if self.debug:
      print(message, file=self.stderr)

  def interpret(self, root: Stmt, env: Optional[Environment] = None) -> Environment:
    """
    Execute a program against a global environment and return it.
    A fresh global environment is built unless one is passed in (interactive sessions).
    The program block runs directly in the global scope.
    """
    global_env = env if env is not None else Environment.create_global()
    if isinstance(root, Block):
      self._execute_statements(root.statements, global_env)
    else:
      self.execute_statement(root, global_env)
    return global_env

  # ---------- EXPRESSIONS ----------

  def evaluate_expr(self, expr: Expr, env: Environment) -> int:
    """Evaluate an expression to an integer"""
    if isinstance(expr, IntegerLiteral):
      return expr.value
    elif isinstance(expr, StringLiteral):
      # Strings only have a value of their own inside print
      return 0
    elif isinstance(expr, VariableRef):
      return env.get(expr.name, expr.span)
    elif isinstance(expr, Assign):
      value = self.evaluate_expr(expr.value, env)
      env.define(expr.name, value)
      return value
    elif isinstance(expr, BinaryOp):
      return self._evaluate_binary(expr, env)
    elif isinstance(expr, Call):
      arguments = [self.evaluate_expr(arg, env) for arg in expr.arguments]
      return self.call_function(expr.name, arguments, env, expr.span)
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")

  def _evaluate_binary(self, expr: BinaryOp, env: Environment) -> int:
    left = self.evaluate_expr(expr.left, env)
    right = self.evaluate_expr(expr.right, env)

    op_func = BUILTIN_OPERATORS.get(expr.op)
    if op_func is None:
      raise unsupported_operator_error(getattr(expr.op, 'name', str(expr.op)), expr.span)

    try:
      return op_func(left, right)
    except MyPythonRuntimeError as e:
      raise e.located(expr.span)

  def call_function(self, name: str, arguments: Sequence[int], env: Environment, span=None) -> int:
    """
    Call a function looked up through the caller's scope chain.
    The body runs in a new scope whose parent is the caller's scope.
    """
    function = env.get_function(name, span)
    if len(arguments) != len(function.parameters):
      raise arity_error(name, len(function.parameters), len(arguments), span)

    self._trace(f"Calling: {name}({', '.join(str(a) for a in arguments)})")
    call_env = env.child()
    try:
      for param, value in zip(function.parameters, arguments):
        call_env.define(param, value)
      completion = self.execute_statement(function.body, call_env)
    finally:
      call_env.release()

    result = completion.value if completion.returning else 0
    self._trace(f"Function returned: {name} -> {result}")
    return result

  # ---------- STATEMENTS ----------

  def execute_statement(self, stmt: Stmt, env: Environment) -> Completion:
    """Execute a statement and report whether it completed or is returning"""
    self._trace(f"Executing: {type(stmt).__name__}")

    if isinstance(stmt, ExpressionStatement):
      self.evaluate_expr(stmt.expression, env)
      return NORMAL
    elif isinstance(stmt, PrintStatement):
      self._execute_print(stmt, env)
      return NORMAL
    elif isinstance(stmt, AssignStatement):
      env.define(stmt.name, self.evaluate_expr(stmt.value, env))
      return NORMAL
    elif isinstance(stmt, IfStatement):
      if self.evaluate_expr(stmt.condition, env) != 0:
        return self.execute_statement(stmt.then_branch, env)
      elif stmt.else_branch is not None:
        return self.execute_statement(stmt.else_branch, env)
      return NORMAL
    elif isinstance(stmt, Block):
      return self.execute_block(stmt.statements, env)
    elif isinstance(stmt, FunctionDecl):
      env.define_function(stmt)
      return NORMAL
    elif isinstance(stmt, ReturnStatement):
      value = self.evaluate_expr(stmt.value, env) if stmt.value is not None else 0
      return make_return(value)
    raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

  def execute_block(self, statements: Sequence[Stmt], env: Environment) -> Completion:
    """Execute statements in a new child scope, forwarding any return unchanged"""
    scope = env.child()
    try:
      return self._execute_statements(statements, scope)
    finally:
      scope.release()

  def _execute_statements(self, statements: Sequence[Stmt], env: Environment) -> Completion:
    for stmt in statements:
      completion = self.execute_statement(stmt, env)
      if completion.returning:
        return completion
    return NORMAL

  def _execute_print(self, stmt: PrintStatement, env: Environment) -> None:
    values = []
    for expr in stmt.expressions:
      if isinstance(expr, StringLiteral):
        values.append(expr.value)
      else:
        values.append(self.evaluate_expr(expr, env))
    mp_print(values, self.stdout)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> Interpreter:
  """Factory function returning an interpreter"""
  return Interpreter(out=out, err=err, debug=debug)


def create_debug_interpreter(out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, out=out, err=err)


def run_source(source: str, filename: str = "<input>", out: Optional[TextIO] = None,
               debug: bool = False) -> Environment:
  """Lex, parse and interpret source text; returns the final global environment"""
  program = parse(tokenize(source, filename, debug), debug)
  return create_interpreter(debug=debug, out=out).interpret(program)
