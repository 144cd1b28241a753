"""
Test configuration for mypython tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import create_interpreter
from lexing import tokenize
from parsing import parse


@pytest.fixture
def samples_dir():
  """Directory holding the sample programs and their expected output"""
  return project_root / "samples"


@pytest.fixture
def run():
  """Run source text and return (stdout text, final global environment)"""
  def _run(source):
    out = io.StringIO()
    env = create_interpreter(out=out).interpret(parse(tokenize(source)))
    return out.getvalue(), env
  return _run
