"""
Integration tests for mypython using the sample programs
Each samples/<name>.mpy is run and compared against samples/<name>.out
"""

import io
from pathlib import Path

import pytest

from error_handling import format_error, MyPythonError
from interpreter import run_source
from parsing import check_source


SAMPLES = sorted((Path(__file__).parent.parent / "samples").glob("*.mpy"))


class TestSamplePrograms:
  """Run every sample through the full pipeline"""

  def test_samples_present(self, samples_dir):
    assert (samples_dir / "arith.mpy").exists()
    assert len(SAMPLES) >= 3

  @pytest.mark.parametrize("sample", SAMPLES, ids=lambda p: p.stem)
  def test_sample_output(self, sample):
    source = sample.read_text(encoding='utf-8')
    expected = sample.with_suffix(".out").read_text(encoding='utf-8')

    out = io.StringIO()
    try:
      run_source(source, str(sample), out=out)
    except MyPythonError as e:
      pytest.fail(f"Failed to run {sample.name}:\n{format_error(e, source)}")

    assert out.getvalue() == expected

  @pytest.mark.parametrize("sample", SAMPLES, ids=lambda p: p.stem)
  def test_sample_checks_clean(self, sample):
    check_source(sample.read_text(encoding='utf-8'), str(sample))


class TestErrorReports:
  """Test rendered error reports for whole programs"""

  def test_syntax_error_report(self):
    source = "x = 1\ny = )"
    with pytest.raises(MyPythonError) as exc_info:
      run_source(source)
    text = format_error(exc_info.value, source)
    assert text.startswith("Syntax error at line 2, column 5:\n")
    assert "  Expected: expression\n" in text
    assert "  Got: RPAREN ')'\n" in text
    assert "   2: y = )" in text
    assert "\n          ^" in text

  def test_runtime_error_report(self):
    source = "print 1\nprint 1 / 0"
    out = io.StringIO()
    with pytest.raises(MyPythonError) as exc_info:
      run_source(source, out=out)
    assert out.getvalue() == "1\n"
    text = format_error(exc_info.value, source)
    assert text.startswith("Arithmetic error at line 2, column 9:\n  Division by zero\n")
