"""
Test configuration and fixtures for the Alice test suite.
"""
import io
import sys
import pytest
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from alicelang.config import AliceConfig
from alicelang.parser import parse_program
from alicelang.runtime import Runtime


@pytest.fixture(scope="session")
def examples_dir() -> Path:
    """Return the path to the example programs."""
    return Path(__file__).resolve().parents[1] / "examples"


@pytest.fixture
def sample_program() -> str:
    """Return a small program touching phrases, blocks and words."""
    return """
    let greeting: string = "hi"
    fun twice: int -> int { 2 * }
    { greeting println }
    21 twice() println
    """


@pytest.fixture
def parser_func():
    """Return the parse function."""
    return parse_program


@pytest.fixture
def runtime() -> Runtime:
    """Return a runtime writing to an in-memory buffer."""
    return Runtime(AliceConfig(), stdout=io.StringIO(), stdin=io.StringIO())


@pytest.fixture
def run_alice():
    """Run source text and return everything it printed."""
    def _run(src: str, stdin: str = "", **config) -> str:
        out = io.StringIO()
        rt = Runtime(AliceConfig(**config), stdout=out, stdin=io.StringIO(stdin))
        rt.run_source(src)
        return out.getvalue()
    return _run
