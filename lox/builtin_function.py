import time
from dataclasses import dataclass
from typing import Any, Callable, List

from lox.environment import Environment
from lox.types import LoxCallable


@dataclass
class NativeFunction(LoxCallable):
    """A function implemented by the host and exposed as a Lox global."""
    name: str
    param_count: int
    fn: Callable[[List[Any]], Any]

    def arity(self) -> int:
        return self.param_count

    def call(self, interpreter, arguments: List[Any]) -> Any:
        return self.fn(arguments)

    def __str__(self) -> str:
        return "<native fn>"

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


def std_clock(args: List[Any]) -> float:
    return time.time()


def populate_globals(env: Environment) -> Environment:
    env.define('clock', NativeFunction('clock', 0, std_clock))
    return env
