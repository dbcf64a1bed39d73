"""Runtime values for Lox.

Lox values map onto Python values where they can: `nil` is `None`,
booleans are `bool`, numbers are `float` and strings are `str`. The
remaining values are defined here:

* `LoxCallable` is the protocol for anything a call expression can
  invoke: user functions, classes (which construct instances) and native
  functions supplied by the host.
* `LoxFunction` is a user function or method together with the
  environment it closes over.
* `LoxClass` and `LoxInstance` implement classes with single
  inheritance, bound methods and dynamically created fields.

The module also holds the helpers that define truthiness, equality and
the printed form of values.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .ast import Function
from .environment import Environment
from .errors import LoxRuntimeError, ReturnSignal, UNDEFINED_PROPERTY
from .tokens import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


class LoxCallable(ABC):
    """Anything that can be invoked by a call expression.

    The interpreter checks the argument count against `arity()` before
    calling, so implementations may assume they receive exactly that many
    arguments.
    """

    @abstractmethod
    def arity(self) -> int:
        ...

    @abstractmethod
    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        ...


class LoxFunction(LoxCallable):
    """A user-defined Lox function or method."""

    def __init__(self, declaration: Function, closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        # each call gets its own environment
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.lexeme, arg)
        try:
            interpreter.execute_block(self.declaration.body, env)
        except ReturnSignal as r:
            if self.is_initializer:
                return self.closure.get_at(0, 'this')
            return r.value
        if self.is_initializer:
            return self.closure.get_at(0, 'this')
        return None

    def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
        """Return a copy of this method whose closure binds `this`."""
        env = Environment(self.closure)
        env.define('this', instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def __str__(self) -> str:
        return f"<fn {self.name}>"

    __repr__ = __str__


class LoxClass(LoxCallable):
    """A Lox class. Calling it constructs a new instance."""

    def __init__(self, name: str, superclass: Optional['LoxClass'], methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        """Look up an unbound method, searching superclasses in order."""
        if name in self.methods:
            return self.methods[name]
        if self.superclass is not None:
            return self.superclass.find_method(name)
        return None

    def arity(self) -> int:
        initializer = self.find_method('init')
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method('init')
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<class {self.name}>"


class LoxInstance:
    """An instance of a Lox class with its own field table."""

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError(name, UNDEFINED_PROPERTY, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any):
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"

    __repr__ = __str__


def is_truthy(value: Any) -> bool:
    """Only `nil` and `false` are false."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # bool is a subclass of int in Python, and True == 1.0 there; Lox
    # never considers values of different types equal.
    if type(a) is not type(b):
        return False
    return a == b


def format_number(value: float) -> str:
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    text = repr(value)
    if text.endswith('.0'):
        text = text[:-2]
    return text


def stringify(value: Any) -> str:
    """Convert a Lox value to its printed representation."""
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    return str(value)


def type_name(value: Any) -> str:
    """Return the Lox type name of a runtime value (used in debug traces)."""
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, LoxClass):
        return 'class'
    if isinstance(value, LoxInstance):
        return 'instance'
    if isinstance(value, LoxCallable):
        return 'function'
    return type(value).__name__
