from __future__ import annotations
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .ast import Loc


class AliceError(Exception):
    def __init__(self, message: str, loc: Optional["Loc"] = None):
        super().__init__(message)
        self.message = message
        self.loc = loc

    @property
    def line(self) -> int:
        return self.loc.line if self.loc else 0

    @property
    def column(self) -> int:
        return self.loc.column if self.loc else 0

    def __str__(self) -> str:
        if self.loc is not None and self.loc.line:
            return f"{self.loc}: {self.message}"
        return self.message

class ParseError(AliceError):
    def __init__(self, message: str, loc: Optional["Loc"] = None, incomplete: bool = False):
        super().__init__(message, loc)
        # input ended inside an unfinished construct
        self.incomplete = incomplete

class TypeCheckError(AliceError):
    pass

class AliceRuntimeError(AliceError):
    pass

class ConfigError(AliceError):
    """Raised when settings fail validation."""
    pass


class ProgramExit(Exception):
    """Raised by `exit` and `okexit` to terminate the running program."""

    def __init__(self, code: int = 0):
        super().__init__(f"program exited with code {code}")
        self.code = code
