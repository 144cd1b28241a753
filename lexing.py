"""
mypython Lexer
Single left-to-right pass over the source producing tokens with source spans
"""

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pyparsing import col, lineno

from error_handling import MyPythonLexError


@dataclass(frozen=True)
class SourceSpan:
    """Source location information, 1-based lines and columns, end column exclusive"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


class TokenKind(Enum):
    INTEGER = "INTEGER"
    STRING = "STRING"
    IDENTIFIER = "IDENTIFIER"
    # Keywords
    PRINT = "PRINT"
    IF = "IF"
    ELSE = "ELSE"
    DEF = "DEF"
    RETURN = "RETURN"
    # Operators
    PLUS = "PLUS"
    MINUS = "MINUS"
    STAR = "STAR"
    SLASH = "SLASH"
    ASSIGN = "ASSIGN"
    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    LESS = "LESS"
    LESS_EQUAL = "LESS_EQUAL"
    GREATER = "GREATER"
    GREATER_EQUAL = "GREATER_EQUAL"
    # Punctuation
    COMMA = "COMMA"
    COLON = "COLON"
    SEMICOLON = "SEMICOLON"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    EOF = "EOF"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class Token:
    """mypython token; the span is carried along but ignored by equality"""
    kind: TokenKind
    lexeme: str
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.kind.name}({self.lexeme!r})"


KEYWORDS = {
    'print': TokenKind.PRINT,
    'if': TokenKind.IF,
    'else': TokenKind.ELSE,
    'def': TokenKind.DEF,
    'return': TokenKind.RETURN,
}

SINGLE_CHAR_TOKENS = {
    '+': TokenKind.PLUS,
    '-': TokenKind.MINUS,
    '*': TokenKind.STAR,
    '/': TokenKind.SLASH,
    '(': TokenKind.LPAREN,
    ')': TokenKind.RPAREN,
    ',': TokenKind.COMMA,
    ':': TokenKind.COLON,
    ';': TokenKind.SEMICOLON,
}

# first character -> (kind on its own, kind when followed by '=')
COMPOSED_OPERATORS = {
    '=': (TokenKind.ASSIGN, TokenKind.EQUAL),
    '!': (TokenKind.UNKNOWN, TokenKind.NOT_EQUAL),
    '<': (TokenKind.LESS, TokenKind.LESS_EQUAL),
    '>': (TokenKind.GREATER, TokenKind.GREATER_EQUAL),
}

ESCAPE_MAP = {
    'n': '\n', 't': '\t', 'r': '\r', '\\': '\\', '"': '"', '0': '\0'
}

REVERSE_ESCAPE_MAP = {value: key for key, value in ESCAPE_MAP.items()}


def _is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def _is_identifier_start(c: str) -> bool:
    return c.isalpha() or c == '_'


def _is_identifier_char(c: str) -> bool:
    return _is_identifier_start(c) or _is_digit(c)


class MyPythonTokenizer:
    """mypython tokenizer; one instance can tokenize any number of sources"""

    def __init__(self, filename: str = "<input>", debug: bool = False):
        self.filename = filename
        self.debug = debug
        self.source = ""
        self.tokens: List[Token] = []
        self.start = 0
        self.current = 0

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize source text, always terminated by an EOF token"""
        self.source = text
        self.tokens = []
        self.start = 0
        self.current = 0

        while not self._is_at_end():
            # We are at the beginning of the next lexeme
            self.start = self.current
            self._scan_token()

        self.start = self.current
        self._add_token(TokenKind.EOF, "")

        if self.debug:
            print(f"Tokenized {len(self.tokens)} tokens", file=sys.stderr)
        return self.tokens

    # ------------------------------------------------------------------
    # Character primitives
    # ------------------------------------------------------------------

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def _peek(self) -> str:
        if self._is_at_end():
            return ''
        return self.source[self.current]

    def _span(self, start: int, end: int) -> SourceSpan:
        return SourceSpan(
            self.filename,
            lineno(start, self.source), col(start, self.source),
            lineno(end, self.source), col(end, self.source),
            self.source[start:end]
        )

    def _add_token(self, kind: TokenKind, lexeme: str) -> None:
        self.tokens.append(Token(kind, lexeme, self._span(self.start, self.current)))

    # ------------------------------------------------------------------
    # Scanners
    # ------------------------------------------------------------------

    def _scan_token(self) -> None:
        c = self._advance()

        if c in SINGLE_CHAR_TOKENS:
            self._add_token(SINGLE_CHAR_TOKENS[c], c)
        elif c in COMPOSED_OPERATORS:
            self._scan_operator(c)
        elif c == '"':
            self._scan_string()
        elif c == '#':
            # Comment runs to end of line
            while self._peek() not in ('\n', ''):
                self._advance()
        elif _is_digit(c):
            self._scan_number()
        elif _is_identifier_start(c):
            self._scan_identifier()
        elif not c.isspace():
            self._add_token(TokenKind.UNKNOWN, c)

    def _scan_operator(self, c: str) -> None:
        single, composed = COMPOSED_OPERATORS[c]
        if self._peek() == '=':
            self._advance()
            self._add_token(composed, c + '=')
        else:
            self._add_token(single, c)

    def _scan_number(self) -> None:
        while _is_digit(self._peek()):
            self._advance()

        # Numbers cannot be glued to letters: the whole run becomes an identifier
        if _is_identifier_start(self._peek()):
            self._scan_identifier()
            return

        self._add_token(TokenKind.INTEGER, self.source[self.start:self.current])

    def _scan_identifier(self) -> None:
        while _is_identifier_char(self._peek()):
            self._advance()

        text = self.source[self.start:self.current]
        self._add_token(KEYWORDS.get(text, TokenKind.IDENTIFIER), text)

    def _scan_string(self) -> None:
        chars = []
        while self._peek() != '"':
            if self._is_at_end():
                raise MyPythonLexError("Unterminated string", self._span(self.start, self.start + 1))
            c = self._advance()
            if c == '\\':
                if self._is_at_end():
                    raise MyPythonLexError("Unterminated string", self._span(self.start, self.start + 1))
                escaped = self._advance()
                chars.append(ESCAPE_MAP.get(escaped, escaped))
            else:
                chars.append(c)

        # The closing quote
        self._advance()
        self._add_token(TokenKind.STRING, ''.join(chars))


# ============================================================================
# MODULE FUNCTIONS
# ============================================================================

def create_tokenizer(filename: str = "<input>", debug: bool = False) -> MyPythonTokenizer:
    """Create a mypython tokenizer"""
    return MyPythonTokenizer(filename, debug)


def tokenize(source: str, filename: str = "<input>", debug: bool = False) -> List[Token]:
    """Tokenize mypython source code"""
    return MyPythonTokenizer(filename, debug).tokenize(source)


def render_lexeme(token: Token) -> str:
    """Source text that scans back to the same token"""
    if token.kind == TokenKind.STRING:
        escaped = ''.join('\\' + REVERSE_ESCAPE_MAP[c] if c in REVERSE_ESCAPE_MAP else c for c in token.lexeme)
        return f'"{escaped}"'
    return token.lexeme


def reconstruct_source(tokens: List[Token]) -> str:
    """Join the lexemes of a token stream with single spaces"""
    return ' '.join(render_lexeme(t) for t in tokens if t.kind != TokenKind.EOF)


def format_tokens(tokens: List[Token]) -> str:
    """One token per line with its location, for --tokens output"""
    lines = []
    for token in tokens:
        location = f"{token.span.start_line}:{token.span.start_col}" if token.span else "?"
        lines.append(f"{location:>8}  {token.kind.name:<14} {token.lexeme!r}")
    return '\n'.join(lines)
