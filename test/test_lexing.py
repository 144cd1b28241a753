"""
Lexer tests for mypython
Token kinds, spans, literals and the lexeme round trip
"""

import pytest

from error_handling import MyPythonLexError
from lexing import (
  MyPythonTokenizer,
  Token,
  TokenKind,
  create_tokenizer,
  format_tokens,
  reconstruct_source,
  tokenize,
)


def kinds(source):
  return [t.kind for t in tokenize(source)]


class TestTokenKinds:
  """Test classification of lexemes"""

  def test_assignment(self):
    assert kinds("x = 42") == [TokenKind.IDENTIFIER, TokenKind.ASSIGN, TokenKind.INTEGER, TokenKind.EOF]

  def test_keywords(self):
    assert kinds("print if else def return") == [
      TokenKind.PRINT, TokenKind.IF, TokenKind.ELSE, TokenKind.DEF, TokenKind.RETURN, TokenKind.EOF
    ]

  def test_keyword_prefix_is_identifier(self):
    tokens = tokenize("printer iffy")
    assert tokens[0] == Token(TokenKind.IDENTIFIER, "printer")
    assert tokens[1] == Token(TokenKind.IDENTIFIER, "iffy")

  def test_composed_operators(self):
    assert kinds("== != <= >= < > =") == [
      TokenKind.EQUAL, TokenKind.NOT_EQUAL, TokenKind.LESS_EQUAL, TokenKind.GREATER_EQUAL,
      TokenKind.LESS, TokenKind.GREATER, TokenKind.ASSIGN, TokenKind.EOF
    ]

  def test_adjacent_operators_without_spaces(self):
    assert kinds("a<=-1") == [
      TokenKind.IDENTIFIER, TokenKind.LESS_EQUAL, TokenKind.MINUS, TokenKind.INTEGER, TokenKind.EOF
    ]

  def test_punctuation(self):
    assert kinds("( ) , : ; + - * /") == [
      TokenKind.LPAREN, TokenKind.RPAREN, TokenKind.COMMA, TokenKind.COLON, TokenKind.SEMICOLON,
      TokenKind.PLUS, TokenKind.MINUS, TokenKind.STAR, TokenKind.SLASH, TokenKind.EOF
    ]

  def test_lone_bang_is_unknown(self):
    tokens = tokenize("!x")
    assert tokens[0] == Token(TokenKind.UNKNOWN, "!")
    assert tokens[1] == Token(TokenKind.IDENTIFIER, "x")

  def test_unrecognised_character_is_unknown(self):
    assert tokenize("@")[0] == Token(TokenKind.UNKNOWN, "@")

  def test_underscore_identifiers(self):
    assert tokenize("_tmp1")[0] == Token(TokenKind.IDENTIFIER, "_tmp1")

  def test_digits_glued_to_letters_form_identifier(self):
    assert tokenize("12abc")[0] == Token(TokenKind.IDENTIFIER, "12abc")

  def test_integer_lexeme(self):
    assert tokenize("007")[0] == Token(TokenKind.INTEGER, "007")

  def test_comments_are_skipped(self):
    assert kinds("x # the rest is ignored = 1\ny") == [
      TokenKind.IDENTIFIER, TokenKind.IDENTIFIER, TokenKind.EOF
    ]

  def test_empty_source_has_only_eof(self):
    assert tokenize("") == [Token(TokenKind.EOF, "")]
    assert tokenize("   \n\t  ") == [Token(TokenKind.EOF, "")]


class TestStrings:
  """Test string literal scanning"""

  def test_plain_string(self):
    assert tokenize('"hello world"')[0] == Token(TokenKind.STRING, "hello world")

  def test_escapes_are_decoded(self):
    token = tokenize(r'"a\nb\t\"q\"\\"')[0]
    assert token.lexeme == 'a\nb\t"q"\\'

  def test_unknown_escape_stands_for_itself(self):
    assert tokenize(r'"\q"')[0].lexeme == "q"

  def test_unterminated_string(self):
    with pytest.raises(MyPythonLexError) as exc_info:
      tokenize('x = "abc')
    error = exc_info.value
    assert error.message == "Unterminated string"
    assert error.span.start_line == 1
    assert error.span.start_col == 5

  def test_unterminated_string_after_escape(self):
    with pytest.raises(MyPythonLexError):
      tokenize('"abc\\')


class TestSpans:
  """Test source locations attached to tokens"""

  def test_line_and_column(self):
    tokens = tokenize("x = 1\n  y")
    x, y = tokens[0], tokens[3]
    assert (x.span.start_line, x.span.start_col, x.span.end_col) == (1, 1, 2)
    assert (y.span.start_line, y.span.start_col) == (2, 3)

  def test_span_text_and_filename(self):
    token = tokenize("foo + 1", filename="prog.mpy")[0]
    assert token.span.text == "foo"
    assert str(token.span) == "prog.mpy:1:1-4"

  def test_spans_do_not_affect_equality(self):
    assert tokenize("x") == tokenize("\n\n     x")

  def test_eof_is_located_at_end(self):
    eof = tokenize("a\nb")[-1]
    assert eof.kind == TokenKind.EOF
    assert eof.span.start_line == 2


class TestRoundTrip:
  """Re-tokenizing the reconstructed lexemes yields an equal token stream"""

  @pytest.mark.parametrize("source", [
    "x = 1 + 2 * 3",
    "if a <= b: print a else: print b",
    'print "say \\"hi\\"\\n", x',
    "def add(a, b): return a + b",
    "f(1, (2 - 3) / 4) != 0; y = -5",
  ])
  def test_reconstruct_then_tokenize(self, source):
    tokens = tokenize(source)
    assert tokenize(reconstruct_source(tokens)) == tokens


class TestTokenizerObject:
  """Test the tokenizer class and its helpers"""

  def test_tokenizer_is_reusable(self):
    tokenizer = create_tokenizer()
    assert isinstance(tokenizer, MyPythonTokenizer)
    first = tokenizer.tokenize("a")
    second = tokenizer.tokenize("b c")
    assert len(first) == 2
    assert len(second) == 3

  def test_debug_reports_token_count(self, capsys):
    tokenize("x = 1", debug=True)
    assert "Tokenized 4 tokens" in capsys.readouterr().err

  def test_format_tokens(self):
    text = format_tokens(tokenize("print 1"))
    lines = text.split('\n')
    assert len(lines) == 3
    assert "1:1" in lines[0] and "PRINT" in lines[0]
    assert "INTEGER" in lines[1] and "'1'" in lines[1]
    assert "EOF" in lines[2]
