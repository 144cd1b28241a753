"""
mypython Parser
Recursive-descent parser with one token of lookahead building the AST from a token stream
"""

import sys
from dataclasses import fields, is_dataclass
from typing import Any, Dict, List, Optional, Tuple

from ast_nodes import (
    Assign, AssignStatement, BinaryOp, Block, Call, Expr, ExpressionStatement, FunctionDecl, IfStatement,
    IntegerLiteral, PrintStatement, ReturnStatement, Stmt, StringLiteral, VariableRef,
)
from error_handling import MyPythonParseError, MyPythonSyntaxErrors
from lexing import Token, TokenKind, tokenize


COMPARISON_OPERATORS = (
    TokenKind.LESS, TokenKind.LESS_EQUAL, TokenKind.GREATER, TokenKind.GREATER_EQUAL,
    TokenKind.EQUAL, TokenKind.NOT_EQUAL,
)

TERM_OPERATORS = (TokenKind.PLUS, TokenKind.MINUS)

FACTOR_OPERATORS = (TokenKind.STAR, TokenKind.SLASH)

EXPRESSION_STARTS = (
    TokenKind.INTEGER, TokenKind.STRING, TokenKind.IDENTIFIER, TokenKind.LPAREN,
    TokenKind.MINUS, TokenKind.PLUS,
)


class Parser:
    """mypython parser; a program is one top-level block"""

    def __init__(self, tokens: List[Token], debug: bool = False):
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].kind != TokenKind.EOF:
            self.tokens.append(Token(TokenKind.EOF, ""))
        self.current = 0
        self.debug = debug
        self.function_depth = 0
        self.paren_depth = 0
        self.errors: List[MyPythonParseError] = []
        self._statement_start: Optional[Token] = None

    # ---------- TOP LEVEL ----------

    def parse(self) -> Block:
        """Parse the whole token stream, failing on the first syntax error"""
        start = self.peek()
        statements = []
        while not self.is_at_end():
            statements.append(self.statement())
        return Block(tuple(statements), start.span)

    def parse_with_recovery(self) -> Tuple[Block, List[MyPythonParseError]]:
        """Parse the whole token stream, synchronizing at statement boundaries after each error"""
        start = self.peek()
        statements = []
        while not self.is_at_end():
            self._statement_start = self.peek()
            try:
                statements.append(self.statement())
            except MyPythonParseError as e:
                self.errors.append(e)
                self.synchronize()
        return Block(tuple(statements), start.span), list(self.errors)

    def synchronize(self) -> None:
        """Discard tokens until a statement boundary: after ';' or at a line that is not indented
        past the statement that failed"""
        self.paren_depth = 0
        self.function_depth = 0
        anchor = self._statement_start
        min_col = anchor.span.start_col if anchor is not None and anchor.span is not None else 1

        while not self.is_at_end():
            tok = self.peek()
            if tok is not anchor:
                if self.previous().kind == TokenKind.SEMICOLON:
                    return
                if not self._continues_line() and tok.span is not None and tok.span.start_col <= min_col:
                    return
            self.advance()

    # ---------- PRIMITIVES ----------

    def is_at_end(self) -> bool:
        return self.peek().kind == TokenKind.EOF

    def peek(self) -> Token:
        return self.tokens[self.current]

    def peek_next(self) -> Token:
        return self.tokens[min(self.current + 1, len(self.tokens) - 1)]

    def previous(self) -> Token:
        return self.tokens[self.current - 1]

    def advance(self) -> Token:
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def check(self, kind: TokenKind) -> bool:
        return self.peek().kind == kind

    def match(self, *kinds: TokenKind) -> bool:
        for kind in kinds:
            if self.check(kind):
                self.advance()
                return True
        return False

    def consume(self, kind: TokenKind, message: str) -> Token:
        if self.check(kind):
            return self.advance()
        raise self.error(self.peek(), message, expected=kind.name)

    def error(self, token: Token, message: str, expected: Optional[str] = None) -> MyPythonParseError:
        if token.kind == TokenKind.EOF:
            got = "end of file"
        else:
            got = f"{token.kind.name} '{token.lexeme}'"
        if expected:
            message = f"{message}: expected {expected}, found {got}"
        return MyPythonParseError(message, token, expected, got)

    def _continues_line(self) -> bool:
        """Whether the next token continues the line of the previous one (always true inside parentheses)"""
        if self.paren_depth > 0 or self.current == 0:
            return True
        prev, tok = self.previous(), self.peek()
        if prev.span is None or tok.span is None or tok.kind == TokenKind.EOF:
            return True
        return tok.span.start_line == prev.span.end_line

    def _indented_past(self, header: Token) -> bool:
        tok = self.peek()
        if tok.span is None or header.span is None:
            return False
        return tok.span.start_col > header.span.start_col

    def _starts_expression(self) -> bool:
        return self.peek().kind in EXPRESSION_STARTS

    # ---------- STATEMENTS ----------

    def statement(self) -> Stmt:
        if self.debug:
            print(f"Parsing statement at {self.peek().span}: {self.peek()}", file=sys.stderr)

        if self.match(TokenKind.PRINT):
            stmt = self.print_statement()
        elif self.match(TokenKind.IF):
            stmt = self.if_statement()
        elif self.match(TokenKind.DEF):
            stmt = self.function_declaration()
        elif self.match(TokenKind.RETURN):
            stmt = self.return_statement()
        elif self.check(TokenKind.IDENTIFIER) and self.peek_next().kind == TokenKind.ASSIGN:
            stmt = self.assignment_statement()
        else:
            stmt = self.expression_statement()

        # optional terminator
        self.match(TokenKind.SEMICOLON)
        return stmt

    def print_statement(self) -> PrintStatement:
        keyword = self.previous()
        expressions = []
        if self._starts_expression() and self._continues_line():
            expressions.append(self.expression())
            while self.match(TokenKind.COMMA):
                expressions.append(self.expression())
        return PrintStatement(tuple(expressions), keyword.span)

    def if_statement(self) -> IfStatement:
        keyword = self.previous()
        condition = self.expression()
        self.match(TokenKind.COLON)
        then_branch = self.body(keyword)

        else_branch = None
        if self.check(TokenKind.ELSE) and self._else_belongs_to(keyword):
            else_keyword = self.advance()
            self.match(TokenKind.COLON)
            else_branch = self.body(else_keyword)

        return IfStatement(condition, then_branch, else_branch, keyword.span)

    def _else_belongs_to(self, keyword: Token) -> bool:
        # a dangling 'else' on its own line pairs with the 'if' in the same column
        if self._continues_line():
            return True
        tok = self.peek()
        return tok.span is not None and keyword.span is not None and tok.span.start_col == keyword.span.start_col

    def function_declaration(self) -> FunctionDecl:
        keyword = self.previous()
        name = self.consume(TokenKind.IDENTIFIER, "Expected function name after 'def'")
        self.consume(TokenKind.LPAREN, "Expected '(' after function name")

        parameters: List[str] = []
        if not self.check(TokenKind.RPAREN):
            while True:
                param = self.consume(TokenKind.IDENTIFIER, "Expected parameter name")
                if param.lexeme in parameters:
                    raise self.error(param, f"Duplicate parameter '{param.lexeme}' in function '{name.lexeme}'")
                parameters.append(param.lexeme)
                if not self.match(TokenKind.COMMA):
                    break
        self.consume(TokenKind.RPAREN, "Expected ')' after parameters")
        self.consume(TokenKind.COLON, "Expected ':' before function body")

        self.function_depth += 1
        try:
            body = self.body(keyword)
        finally:
            self.function_depth -= 1

        return FunctionDecl(name.lexeme, tuple(parameters), body, keyword.span)

    def return_statement(self) -> ReturnStatement:
        keyword = self.previous()
        if self.function_depth == 0:
            raise self.error(keyword, "'return' outside function")

        value = None
        if self._starts_expression() and self._continues_line():
            value = self.expression()
        return ReturnStatement(value, keyword.span)

    def assignment_statement(self) -> AssignStatement:
        name = self.advance()
        self.advance()  # '='
        value = self.expression()
        return AssignStatement(name.lexeme, value, name.span)

    def expression_statement(self) -> ExpressionStatement:
        start = self.peek()
        expr = self.expression()
        return ExpressionStatement(expr, start.span)

    def body(self, header: Token) -> Stmt:
        """Statement body of a header: a single statement on the same line, or an indented block"""
        if self.is_at_end():
            raise self.error(self.peek(), f"Expected a body after '{header.lexeme}'", expected="statement")
        if self._continues_line():
            return self.statement()
        return self.block(header)

    def block(self, header: Token) -> Block:
        start = self.peek()
        statements = []
        while not self.is_at_end() and self._indented_past(header):
            statements.append(self.statement())
        if not statements:
            raise self.error(start, f"Expected an indented block after '{header.lexeme}'")
        return Block(tuple(statements), start.span)

    # ---------- EXPRESSIONS ----------

    def expression(self) -> Expr:
        if self.check(TokenKind.IDENTIFIER) and self.peek_next().kind == TokenKind.ASSIGN:
            name = self.advance()
            self.advance()  # '='
            value = self.expression()
            return Assign(name.lexeme, value, name.span)

        expr = self.comparison()
        if self.check(TokenKind.ASSIGN) and self._continues_line():
            raise self.error(self.peek(), "Invalid assignment target")
        return expr

    def comparison(self) -> Expr:
        expr = self.term()
        while self._continues_line() and self.match(*COMPARISON_OPERATORS):
            op = self.previous()
            right = self.term()
            expr = BinaryOp(expr, op.kind, right, op.span)
        return expr

    def term(self) -> Expr:
        expr = self.factor()
        while self._continues_line() and self.match(*TERM_OPERATORS):
            op = self.previous()
            right = self.factor()
            expr = BinaryOp(expr, op.kind, right, op.span)
        return expr

    def factor(self) -> Expr:
        expr = self.unary()
        while self._continues_line() and self.match(*FACTOR_OPERATORS):
            op = self.previous()
            right = self.unary()
            expr = BinaryOp(expr, op.kind, right, op.span)
        return expr

    def unary(self) -> Expr:
        if self.match(TokenKind.MINUS, TokenKind.PLUS):
            op = self.previous()
            operand = self.unary()
            if op.kind == TokenKind.PLUS:
                return operand
            if isinstance(operand, IntegerLiteral):
                return IntegerLiteral(-operand.value, op.span)
            return BinaryOp(IntegerLiteral(0, op.span), TokenKind.MINUS, operand, op.span)
        return self.primary()

    def primary(self) -> Expr:
        if self.match(TokenKind.INTEGER):
            tok = self.previous()
            return IntegerLiteral(int(tok.lexeme), tok.span)

        if self.match(TokenKind.STRING):
            tok = self.previous()
            return StringLiteral(tok.lexeme, tok.span)

        if self.match(TokenKind.IDENTIFIER):
            name = self.previous()
            if self.check(TokenKind.LPAREN) and self._continues_line():
                return self.finish_call(name)
            return VariableRef(name.lexeme, name.span)

        if self.match(TokenKind.LPAREN):
            self.paren_depth += 1
            try:
                expr = self.expression()
                self.consume(TokenKind.RPAREN, "Expected ')' after expression")
            finally:
                self.paren_depth -= 1
            return expr

        tok = self.peek()
        if tok.kind == TokenKind.UNKNOWN:
            raise self.error(tok, f"Unexpected character '{tok.lexeme}'")
        raise self.error(tok, "Expected expression", expected="expression")

    def finish_call(self, name: Token) -> Call:
        self.consume(TokenKind.LPAREN, "Expected '(' after function name")
        self.paren_depth += 1
        arguments = []
        try:
            if not self.check(TokenKind.RPAREN):
                arguments.append(self.expression())
                while self.match(TokenKind.COMMA):
                    arguments.append(self.expression())
            self.consume(TokenKind.RPAREN, "Expected ')' after arguments")
        finally:
            self.paren_depth -= 1
        return Call(name.lexeme, tuple(arguments), name.span)


# Factory functions for creating parsers
def create_parser(tokens: List[Token], debug: bool = False) -> Parser:
    """Create a mypython parser"""
    return Parser(tokens, debug=debug)


def create_debug_parser(tokens: List[Token]) -> Parser:
    """Create a mypython parser with debug enabled"""
    return Parser(tokens, debug=True)


def parse(tokens: List[Token], debug: bool = False) -> Block:
    """Parse a token stream into the program block"""
    return Parser(tokens, debug=debug).parse()


def parse_source(source: str, filename: str = "<input>", debug: bool = False) -> Block:
    """Tokenize and parse mypython source code"""
    return parse(tokenize(source, filename, debug), debug)


def check_source(source: str, filename: str = "<input>") -> Block:
    """Parse with recovery and raise every syntax error found at once"""
    program, errors = Parser(tokenize(source, filename)).parse_with_recovery()
    if errors:
        raise MyPythonSyntaxErrors(errors)
    return program


# Utility functions for working with the AST
def _node_children(node: Any) -> List[Any]:
    children = []
    for f in fields(node):
        value = getattr(node, f.name)
        if is_dataclass(value):
            children.append(value)
        elif isinstance(value, tuple):
            children.extend(v for v in value if is_dataclass(v))
    return children


def _node_label(node: Any) -> str:
    details = []
    for f in fields(node):
        value = getattr(node, f.name)
        if f.name == 'span' or is_dataclass(value) or value is None:
            continue
        if isinstance(value, tuple):
            if value and all(isinstance(v, str) for v in value):
                details.append(f"{f.name}={list(value)!r}")
            continue
        details.append(repr(value.name) if isinstance(value, TokenKind) else repr(value))
    label = type(node).__name__
    if details:
        label += f"({', '.join(details)})"
    return label


def pretty_print_ast(node: Any, indent: int = 0) -> str:
    """Pretty print an AST node for debugging"""
    result = "  " * indent + _node_label(node) + "\n"
    for child in _node_children(node):
        result += pretty_print_ast(child, indent + 1)
    return result


def ast_to_dict(node: Any) -> Dict[str, Any]:
    """Convert an AST to a dictionary representation"""
    result: Dict[str, Any] = {"type": type(node).__name__}
    for f in fields(node):
        value = getattr(node, f.name)
        if f.name == 'span':
            continue
        if is_dataclass(value):
            result[f.name] = ast_to_dict(value)
        elif isinstance(value, tuple):
            result[f.name] = [ast_to_dict(v) if is_dataclass(v) else v for v in value]
        elif isinstance(value, TokenKind):
            result[f.name] = value.name
        else:
            result[f.name] = value
    return result
