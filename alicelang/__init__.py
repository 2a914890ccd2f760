from .config import AliceConfig
from .errors import AliceError, AliceRuntimeError, ConfigError, ParseError, ProgramExit, TypeCheckError
from .parser import parse, parse_program
from .repl import Repl
from .runtime import Runtime
from .type_check import TypeChecker

__all__ = [
    "AliceConfig",
    "AliceError",
    "AliceRuntimeError",
    "ConfigError",
    "ParseError",
    "ProgramExit",
    "Repl",
    "Runtime",
    "TypeCheckError",
    "TypeChecker",
    "parse",
    "parse_program",
]
