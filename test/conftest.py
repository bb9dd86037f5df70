"""
Test configuration for Cell tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import create_interpreter


@pytest.fixture
def interpreter():
  """Provide a fresh interpreter (and root environment) for each test"""
  return create_interpreter()


@pytest.fixture
def run(interpreter):
  """Parse and fully evaluate one line of Cell"""
  def run_text(text):
    return interpreter.evaluate(interpreter.parse(text))
  return run_text


@pytest.fixture
def run_reduce(interpreter):
  """Parse and reduce one line of Cell"""
  def reduce_text(text):
    return interpreter.reduce(interpreter.parse(text))
  return reduce_text
