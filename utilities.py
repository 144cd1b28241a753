"""
Utilities module for the mypython interpreter
Contains common error builders and operator factories shared by the runtime
"""

from typing import Callable, Optional, Any

from error_handling import (
  MyPythonArityError,
  MyPythonNameError,
  MyPythonOperatorError,
)


# ==================== ERROR MESSAGE BUILDERS ====================

def undefined_variable_error(name: str, span: Optional[Any] = None) -> MyPythonNameError:
  """
  Generate undefined variable error

  Args:
    name: Variable name
    span: Source span of the reference

  Returns:
    MyPythonNameError with formatted message
  """
  return MyPythonNameError(f"Variable '{name}' is not defined", span)


def undefined_function_error(name: str, span: Optional[Any] = None) -> MyPythonNameError:
  """
  Generate undefined function error

  Args:
    name: Function name
    span: Source span of the call

  Returns:
    MyPythonNameError with formatted message
  """
  return MyPythonNameError(f"Function '{name}' is not defined", span)


def arity_error(func_name: str, expected: int, got: int, span: Optional[Any] = None) -> MyPythonArityError:
  """
  Generate arity mismatch error

  Args:
    func_name: Function name
    expected: Expected number of arguments
    got: Actual number of arguments
    span: Source span of the call

  Returns:
    MyPythonArityError with formatted message
  """
  return MyPythonArityError(
    f"Incorrect number of arguments provided to function '{func_name}': expected {expected}, got {got}",
    span
  )


def unsupported_operator_error(op_name: str, span: Optional[Any] = None) -> MyPythonOperatorError:
  """
  Generate unsupported operator error

  Args:
    op_name: Operator token kind name
    span: Source span of the operation

  Returns:
    MyPythonOperatorError with formatted message
  """
  return MyPythonOperatorError(f"Unsupported binary operator: {op_name}", span)


# ==================== BINARY OPERATION FACTORIES ====================

def binary_comparison_op(op: Callable[[int, int], bool]) -> Callable[[int, int], int]:
  """
  Factory for binary comparison operations over integers

  Args:
    op: Python operator function (e.g., operator.lt)

  Returns:
    Function that performs the comparison and yields 1 or 0

  Examples:
    mp_lt = binary_comparison_op(operator.lt)
    mp_lt(1, 2) -> 1
  """
  def comparison(x: int, y: int) -> int:
    return 1 if op(x, y) else 0

  return comparison
