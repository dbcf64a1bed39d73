from typing import Any, Dict, Optional

from lox.errors import LoxRuntimeError, UNDEFINED_VARIABLE
from lox.tokens import Token


class Environment:
    """Represents a scope environment mapping identifiers to values.

    Frames link to their enclosing frame and form a tree: closures created
    in the same scope share the prefix of the chain above them.
    """
    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing = enclosing
        self.values: Dict[str, Any] = {}

    def define(self, name: str, value: Any):
        # redefinition in the same frame simply replaces the old binding
        self.values[name] = value

    def get(self, name: Token) -> Any:
        if name.lexeme in self.values:
            return self.values[name.lexeme]
        if self.enclosing is not None:
            return self.enclosing.get(name)
        raise LoxRuntimeError(name, UNDEFINED_VARIABLE, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Any):
        if name.lexeme in self.values:
            self.values[name.lexeme] = value
            return
        if self.enclosing is not None:
            self.enclosing.assign(name, value)
            return
        raise LoxRuntimeError(name, UNDEFINED_VARIABLE, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int) -> 'Environment':
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Any:
        # The resolver guarantees the binding exists; a KeyError here is a bug.
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Any):
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self) -> str:
        names = ', '.join(self.values)
        if self.enclosing is None:
            return f"<globals {names}>"
        return f"<env {names}> -> {self.enclosing!r}"
