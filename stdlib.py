"""
mypython Standard Library
Integer operators and print formatting used by the interpreter
"""

from typing import Callable, Dict, List, TextIO, Union
import operator

from error_handling import MyPythonArithmeticError
from lexing import TokenKind
from utilities import binary_comparison_op


# ============================================================================
# ARITHMETIC
# ============================================================================

def mp_div(x: int, y: int) -> int:
  """Integer division rounding toward negative infinity, so -7 / 2 is -4"""
  if y == 0:
    raise MyPythonArithmeticError("Division by zero")
  return x // y


# ============================================================================
# OPERATOR TABLE
# ============================================================================

BUILTIN_OPERATORS: Dict[TokenKind, Callable[[int, int], int]] = {
    TokenKind.PLUS: operator.add,
    TokenKind.MINUS: operator.sub,
    TokenKind.STAR: operator.mul,
    TokenKind.SLASH: mp_div,
    TokenKind.EQUAL: binary_comparison_op(operator.eq),
    TokenKind.NOT_EQUAL: binary_comparison_op(operator.ne),
    TokenKind.LESS: binary_comparison_op(operator.lt),
    TokenKind.LESS_EQUAL: binary_comparison_op(operator.le),
    TokenKind.GREATER: binary_comparison_op(operator.gt),
    TokenKind.GREATER_EQUAL: binary_comparison_op(operator.ge),
}


# ============================================================================
# PRINT FUNCTIONS
# ============================================================================

def mp_show(value: Union[int, str]) -> str:
  """Text of a printed value; strings print raw, integers in decimal"""
  if isinstance(value, str):
    return value
  return str(value)


def mp_print(values: List[Union[int, str]], out: TextIO) -> None:
  """Print values separated by single spaces and end the line"""
  out.write(' '.join(mp_show(v) for v in values) + '\n')
