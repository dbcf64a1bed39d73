# Lox language package
# This package provides a parser, a static resolver and a tree-walking
# interpreter for the Lox language.
from .errors import LoxRuntimeError, LoxSyntaxError
from .interpreter import Interpreter, RunStatus, run_program, run_source
from .parser import parse_program
from .resolver import Resolver

__all__ = [
    'Interpreter',
    'LoxRuntimeError',
    'LoxSyntaxError',
    'Resolver',
    'RunStatus',
    'parse_program',
    'run_program',
    'run_source',
]
