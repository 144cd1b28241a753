"""
Error handling for the mypython interpreter
Exception classes for every stage plus pure functions that render them with source context
"""

from typing import Any, Dict, List, Optional

from termcolor import colored


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_error_report(
    kind: str,
    message: str,
    line: int,
    column: int,
    expected: Optional[str] = None,
    got: Optional[str] = None,
    context: Optional[str] = None
) -> Dict:
    """Create an immutable error report structure"""
    return {
        'kind': kind,
        'message': message,
        'line': line,
        'column': column,
        'expected': expected,
        'got': got,
        'context': context
    }


def format_error_report(report: Dict, color: bool = False) -> str:
    """Format an error report as a string"""
    header = f"{report['kind']} error at line {report['line']}, column {report['column']}:"
    if color:
        header = colored(header, "red", attrs=["bold"])

    error_msg = f"{header}\n  {report['message']}\n"

    if report['expected']:
        error_msg += f"  Expected: {report['expected']}\n"

    if report['got']:
        error_msg += f"  Got: {report['got']}\n"

    if report['context']:
        error_msg += f"{report['context']}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get numbered source lines around the error with a caret under the offending column"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        context_parts.append(f"{i+1:4d}: {lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^")

    return '\n'.join(context_parts)


def format_error(error: 'MyPythonError', source_text: Optional[str] = None, color: bool = False) -> str:
    """Render any mypython error, with source context when its span and the source are known"""
    if isinstance(error, MyPythonSyntaxErrors):
        return ''.join(format_error(e, source_text, color) for e in error.errors)

    span = error.span
    if span is None:
        text = f"{error.kind} error: {error.message}"
        return (colored(text, "red", attrs=["bold"]) if color else text) + "\n"

    context = None
    if source_text is not None and span.start_line <= len(source_text.split('\n')):
        context = get_context_lines(source_text, span.start_line, span.start_col)

    report = make_error_report(
        kind=error.kind,
        message=error.message,
        line=span.start_line,
        column=span.start_col,
        expected=getattr(error, 'expected', None),
        got=getattr(error, 'got', None),
        context=context
    )
    return format_error_report(report, color)


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class MyPythonError(Exception):
    """Base class of every error the language reports"""
    kind = "Internal"

    def __init__(self, message: str, span: Optional[Any] = None):
        self.message = message
        self.span = span
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.span:
            return f"{self.kind} error at {self.span}: {self.message}"
        return f"{self.kind} error: {self.message}"

    def located(self, span: Optional[Any]) -> 'MyPythonError':
        """Attach a source span if the raiser did not know one"""
        if self.span is None and span is not None:
            self.span = span
            self.args = (self._format_error(),)
        return self


class MyPythonLexError(MyPythonError):
    """Tokenization error, e.g. an unterminated string literal"""
    kind = "Lexical"


class MyPythonParseError(MyPythonError):
    """Unexpected token during parsing"""
    kind = "Syntax"

    def __init__(self, message: str, token: Optional[Any] = None,
                 expected: Optional[str] = None, got: Optional[str] = None):
        self.token = token
        self.expected = expected
        self.got = got
        super().__init__(message, token.span if token is not None else None)


class MyPythonSyntaxErrors(MyPythonError):
    """Several syntax errors collected by a recovering parse"""
    kind = "Syntax"

    def __init__(self, errors: List[MyPythonParseError]):
        self.errors = list(errors)
        first_span = self.errors[0].span if self.errors else None
        super().__init__(f"{len(self.errors)} syntax error(s)", first_span)


class MyPythonRuntimeError(MyPythonError):
    """Error raised while evaluating a program"""
    kind = "Runtime"


class MyPythonNameError(MyPythonRuntimeError):
    """Undefined variable or function"""
    kind = "Name"


class MyPythonArityError(MyPythonRuntimeError):
    """Function called with the wrong number of arguments"""
    kind = "Arity"


class MyPythonArithmeticError(MyPythonRuntimeError):
    """Division by zero"""
    kind = "Arithmetic"


class MyPythonOperatorError(MyPythonRuntimeError):
    """Operator reached evaluation without an evaluation rule"""
    kind = "Operator"
