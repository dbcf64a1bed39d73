from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from lox.tokens import Token


# Static (resolver) error kinds
READ_IN_INITIALIZER = 'ReadInInitializer'
DUPLICATE_LOCAL = 'DuplicateLocal'
RETURN_OUTSIDE_FUNCTION = 'ReturnOutsideFunction'
RETURN_VALUE_FROM_INIT = 'ReturnValueFromInit'
THIS_OUTSIDE_CLASS = 'ThisOutsideClass'
SUPER_OUTSIDE_CLASS = 'SuperOutsideClass'
SUPER_WITHOUT_SUPERCLASS = 'SuperWithoutSuperclass'
SELF_INHERITANCE = 'SelfInheritance'

# Parser error kinds
SYNTAX_ERROR = 'SyntaxError'
INVALID_ASSIGNMENT_TARGET = 'InvalidAssignmentTarget'

# Runtime error kinds
UNDEFINED_VARIABLE = 'UndefinedVariable'
UNDEFINED_PROPERTY = 'UndefinedProperty'
NOT_CALLABLE = 'NotCallable'
ARITY = 'Arity'
INHERITANCE_TYPE_ERROR = 'InheritanceTypeError'
TYPE_MISMATCH = 'TypeMismatch'


@dataclass
class Diagnostic:
    """A reported problem: its kind, a message and the offending token.

    `token` is None only for syntax errors at the end of input.
    """
    kind: str
    message: str
    token: Optional[Token]
    line: int = 0

    def __post_init__(self):
        if self.token is not None and not self.line:
            self.line = self.token.line

    def report(self) -> str:
        """Format as a compile-time error: `[line N] Error at 'x': message`.

        Scanner errors carry an `ERROR` token and name no location.
        """
        if self.token is None or self.token.kind == '$END':
            where = ' at end'
        elif self.token.kind == 'ERROR':
            where = ''
        else:
            where = f" at '{self.token.lexeme}'"
        return f"[line {self.line}] Error{where}: {self.message}"

    def report_runtime(self) -> str:
        return f"{self.message}\n[line {self.line}]"


class LoxSyntaxError(Exception):
    """Raised by the parser for source text that does not form a program."""
    def __init__(self, err: Diagnostic):
        super().__init__(err.report())
        self.err = err


class LoxRuntimeError(Exception):
    """Exception type used to propagate Lox runtime errors."""
    def __init__(self, token: Token, kind: str, message: str):
        super().__init__(f"{kind}: {message}")
        self.err = Diagnostic(kind, message, token)

    @property
    def token(self) -> Token:
        return self.err.token


class ReturnSignal(Exception):
    """Internal exception to handle return statements in functions."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value
