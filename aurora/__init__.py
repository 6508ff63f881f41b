# Aurora language package
# This package provides a scanner, parser and tree-walking interpreter for
# the Aurora scripting language.
from .config import Config, LogLevel
from .errors import AuroraError, LexicalError, ParseError, AuroraRuntimeError
from .interpreter import Interpreter, run_program, run_source, run_file
from .parser import parse_program
from .scanner import scan

__all__ = [
    'Config',
    'LogLevel',
    'AuroraError',
    'LexicalError',
    'ParseError',
    'AuroraRuntimeError',
    'Interpreter',
    'run_program',
    'run_source',
    'run_file',
    'parse_program',
    'scan',
]
