"""
mypython - Main Entry Point
Hands a source file to the lexer, parser and interpreter, or runs an interactive session
"""

import argparse
import os
import sys
from typing import Callable, List, Optional, TextIO

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from termcolor import colored

from ast_nodes import AssignStatement, ExpressionStatement, FunctionDecl
from environment import Environment
from error_handling import MyPythonError, format_error
from interpreter import Interpreter, create_debug_interpreter, create_interpreter
from lexing import KEYWORDS, format_tokens, tokenize
from parsing import check_source, parse, pretty_print_ast


VERSION = "mypython 0.1.0"

HISTORY_FILE = os.path.expanduser("~/.mypython_history")


class UsageArgumentParser(argparse.ArgumentParser):
  """Argument parser that reports usage errors with exit status 1"""

  def error(self, message: str) -> None:
    self.print_usage(sys.stderr)
    self.exit(1, f"{self.prog}: error: {message}\n")


class TeeStream:
  """Duplicates program output to the console and a log file"""

  def __init__(self, primary: TextIO, secondary: TextIO):
    self.primary = primary
    self.secondary = secondary

  def write(self, text: str) -> int:
    self.primary.write(text)
    self.secondary.write(text)
    return len(text)

  def flush(self) -> None:
    self.primary.flush()
    self.secondary.flush()


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = UsageArgumentParser(
      prog='mypython',
      description='mypython - a minimal integer-oriented, Python-flavored interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.mpy             # Run a script
  %(prog)s -i                     # Interactive mode
  %(prog)s --tokens script.mpy    # Show the token stream
  %(prog)s --parse script.mpy     # Parse file and show the AST
  %(prog)s --check script.mpy     # Report every syntax error
  %(prog)s --tee run.log script.mpy  # Also copy program output to run.log
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='mypython script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Tokenize file and show tokens (for debugging)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show AST (for debugging)'
  )

  parser.add_argument(
      '--check',
      action='store_true',
      help='Parse file with error recovery and report all syntax errors'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--tee',
      metavar='PATH',
      help='Duplicate program output into a log file'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def _use_color() -> bool:
  return sys.stderr.isatty()


def report_error(error: MyPythonError, source: Optional[str] = None) -> None:
  """Print a language error with source context to stderr"""
  print(format_error(error, source, color=_use_color()), file=sys.stderr, end='')


def report_recursion_error() -> None:
  message = "Runtime error: maximum recursion depth exceeded"
  if _use_color():
    message = colored(message, "red", attrs=["bold"])
  print(message, file=sys.stderr)


def load_script(script_path: str) -> str:
  """Read a script file, exiting with status 1 if it cannot be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
  except OSError as e:
    print(f"Error: Could not open file '{script_path}': {e.strerror}", file=sys.stderr)
  sys.exit(1)


def tokenize_file(script_path: str, debug: bool = False) -> None:
  """Tokenize a script file and show the tokens"""
  source = load_script(script_path)
  try:
    tokens = tokenize(source, script_path, debug)
  except MyPythonError as e:
    report_error(e, source)
    sys.exit(1)
  print(format_tokens(tokens))


def parse_file(script_path: str, debug: bool = False) -> None:
  """Parse a script file and show the AST"""
  source = load_script(script_path)
  try:
    program = parse(tokenize(source, script_path, debug), debug)
  except MyPythonError as e:
    report_error(e, source)
    sys.exit(1)
  print(pretty_print_ast(program), end='')


def check_file(script_path: str) -> None:
  """Parse a script file with recovery and report every syntax error"""
  source = load_script(script_path)
  try:
    program = check_source(source, script_path)
  except MyPythonError as e:
    report_error(e, source)
    sys.exit(1)
  print(f"{script_path}: OK ({len(program.statements)} top-level statements)")


def run_script_file(script_path: str, debug: bool = False, tee: Optional[str] = None) -> None:
  """Run a script file with full interpretation"""
  source = load_script(script_path)
  log_file = None
  try:
    out: TextIO = sys.stdout
    if tee:
      log_file = open(tee, 'w', encoding='utf-8')
      out = TeeStream(sys.stdout, log_file)

    interpreter = create_debug_interpreter(out=out) if debug else create_interpreter(out=out)

    tokens = tokenize(source, script_path, debug)
    program = parse(tokens, debug)
    final_env = interpreter.interpret(program)

    if debug:
      print(f"Final environment: {final_env.snapshot()}", file=sys.stderr)

  except OSError as e:
    print(f"Error: Could not open log file '{tee}': {e.strerror}", file=sys.stderr)
    sys.exit(1)
  except MyPythonError as e:
    sys.stdout.flush()
    report_error(e, source)
    sys.exit(1)
  except RecursionError:
    sys.stdout.flush()
    report_recursion_error()
    sys.exit(1)
  finally:
    if log_file is not None:
      log_file.close()


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  try:
    readline.read_history_file(HISTORY_FILE)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = sorted(KEYWORDS) + [":env", ":tokens", ":parse", ":help", "exit"]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, HISTORY_FILE)


def read_continuation(first_line: str, input_func: Callable[[str], str]) -> str:
  """Collect the indented lines of a block header until an empty line"""
  lines = [first_line]
  while True:
    line = input_func("...       ")
    if not line.strip():
      break
    lines.append(line)
  return '\n'.join(lines)


def execute_interactive(source: str, interpreter: Interpreter, session_env: Environment) -> None:
  """Run one interactive input in the persistent session scope"""
  program = parse(tokenize(source, "<stdin>", interpreter.debug), interpreter.debug)

  for stmt in program.statements:
    if isinstance(stmt, ExpressionStatement):
      value = interpreter.evaluate_expr(stmt.expression, session_env)
      print(f"=> {value}")
      continue

    interpreter.execute_statement(stmt, session_env)
    if isinstance(stmt, AssignStatement):
      print(f"Bound: {stmt.name} = {session_env.get(stmt.name)}")
    elif isinstance(stmt, FunctionDecl):
      print(f"Defined function: {stmt.name}")


def print_repl_help() -> None:
  print("REPL Commands:")
  print("  :tokens <src>     - Show the token stream")
  print("  :parse <src>      - Show the parsed AST")
  print("  :env              - Show current environment")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  x = 5                     - Assignment")
  print("  print \"x is\", x           - Print values")
  print("  if x > 3: print x         - Conditional (else optional)")
  print("  def add(a, b):            - Function definition, indented body,")
  print("      return a + b            finish with an empty line")
  print("  add(1, 2)                 - Function call")


def run_interactive_mode(debug: bool = False, input_func: Optional[Callable[[str], str]] = None) -> None:
  """Run mypython in interactive mode with one persistent global scope"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  if input_func is None:
    setup_readline()
    input_func = input

  interpreter = create_debug_interpreter() if debug else create_interpreter()
  session_env = Environment.create_global()

  while True:
    code = ""
    try:
      code = input_func("mypython> ")
      stripped = code.strip()

      if stripped in ("exit", "exit()", "quit"):
        break

      if not stripped:
        continue

      if stripped == ":help":
        print_repl_help()
        continue

      if stripped == ":env":
        print("Current environment:")
        bindings = session_env.variables()
        functions = session_env.function_names()
        if not bindings and not functions:
          print("  (no user-defined bindings)")
        for name, value in bindings.items():
          print(f"  {name} = {value}")
        for name in functions:
          print(f"  def {name}")
        continue

      if stripped.startswith(":tokens "):
        code = stripped[len(":tokens "):]
        print(format_tokens(tokenize(code, "<stdin>")))
        continue

      if stripped.startswith(":parse "):
        code = stripped[len(":parse "):]
        print(pretty_print_ast(parse(tokenize(code, "<stdin>"))), end='')
        continue

      if stripped.endswith(':'):
        code = read_continuation(code, input_func)

      execute_interactive(code, interpreter, session_env)

    except MyPythonError as e:
      report_error(e, code)
    except RecursionError:
      report_recursion_error()
    except KeyboardInterrupt:
      print("\nGoodbye!")
      break
    except EOFError:
      print("\nGoodbye!")
      break


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for mypython"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.interactive:
    run_interactive_mode(debug=args.debug)
    return

  if not args.script:
    arg_parser.print_usage(sys.stderr)
    print(f"{arg_parser.prog}: error: a script path is required (or -i for interactive mode)", file=sys.stderr)
    sys.exit(1)

  if args.tokens:
    tokenize_file(args.script, debug=args.debug)
  elif args.parse:
    parse_file(args.script, debug=args.debug)
  elif args.check:
    check_file(args.script)
  else:
    run_script_file(args.script, debug=args.debug, tee=args.tee)


if __name__ == "__main__":
  main()
