"""
mypython AST
Two closed families of immutable nodes: expressions evaluate to integers, statements execute for effect.
Consumers match on the node classes exhaustively and treat anything else as an internal error.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from lexing import SourceSpan, TokenKind


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class IntegerLiteral:
    value: int
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class StringLiteral:
    value: str
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class VariableRef:
    name: str
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Assign:
    """Assignment used as an expression; its value is the assigned value"""
    name: str
    value: 'Expr'
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOp:
    left: 'Expr'
    op: TokenKind
    right: 'Expr'
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Call:
    name: str
    arguments: Tuple['Expr', ...]
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


Expr = Union[IntegerLiteral, StringLiteral, VariableRef, Assign, BinaryOp, Call]


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class ExpressionStatement:
    expression: Expr
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class PrintStatement:
    expressions: Tuple[Expr, ...]
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class AssignStatement:
    name: str
    value: Expr
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class IfStatement:
    condition: Expr
    then_branch: 'Stmt'
    else_branch: Optional['Stmt'] = None
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Block:
    """Ordered statements; executing a block introduces a new scope"""
    statements: Tuple['Stmt', ...]
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class FunctionDecl:
    """Registered by reference in the declaring scope, never mutated"""
    name: str
    parameters: Tuple[str, ...]
    body: 'Stmt'
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ReturnStatement:
    value: Optional[Expr] = None
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


Stmt = Union[ExpressionStatement, PrintStatement, AssignStatement, IfStatement, Block, FunctionDecl, ReturnStatement]
