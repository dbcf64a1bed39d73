"""Interpreter for Lox.

This module holds the tree-walking evaluator and the small driver
around it. A program goes through three stages:

1. `parse_program` turns the source into a list of statements;
2. the `Resolver` annotates local variable references with their scope
   distance, storing them in `Interpreter.locals`, and reports static
   errors through `Interpreter.error`;
3. if no errors were reported, `Interpreter.interpret` executes the
   statements.

`run_source` runs all three stages against an interpreter and reports
errors on stderr. The same interpreter can be fed more source later, as
the interactive prompt does, and keeps its globals between runs.
"""

from __future__ import annotations

import math
import sys
from enum import Enum
from typing import Any, Dict, List

from .ast import (
    Expr, Stmt, Literal, Variable, Assign, Unary, Binary, Logical,
    Grouping, Call, Get, Set, This, Super,
    Expression, Print, Var, Block, If, While, Function, Return, Class,
)
from .builtin_function import populate_globals
from .environment import Environment
from .errors import (
    Diagnostic, LoxRuntimeError, LoxSyntaxError, ReturnSignal,
    ARITY, INHERITANCE_TYPE_ERROR, NOT_CALLABLE, TYPE_MISMATCH, UNDEFINED_PROPERTY,
)
from .parser import parse_program
from .resolver import Resolver
from .tokens import Token
from .types import (
    LoxCallable, LoxClass, LoxFunction, LoxInstance,
    is_equal, is_truthy, stringify, type_name,
)


class RunStatus(Enum):
    OK = 'ok'
    STATIC_ERROR = 'static'
    RUNTIME_ERROR = 'runtime'


class Interpreter:
    """Core interpreter that executes a resolved Lox AST."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.globals = populate_globals(Environment())
        self.environment = self.globals
        self.locals: Dict[Expr, int] = {}
        self.static_errors: List[Diagnostic] = []
        self.runtime_errors: List[Diagnostic] = []
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Resolver interface

    def resolve(self, expr: Expr, depth: int):
        self.locals[expr] = depth
        if self.debug_level >= 2:
            name = getattr(expr, 'name', None) or getattr(expr, 'keyword', None)
            self.debug(f"resolve {name.lexeme if name else expr!r} at line {name.line if name else '?'} -> depth {depth}")

    def error(self, token: Token, message: str, kind: str):
        err = Diagnostic(kind, message, token)
        self.static_errors.append(err)
        self.debug(f"static error {kind}: {err.report()}")

    @property
    def had_error(self) -> bool:
        return bool(self.static_errors)

    # Public API

    def interpret(self, statements: List[Stmt]) -> bool:
        """Execute statements; return False if a runtime error stopped them."""
        if self.had_error:
            raise RuntimeError('refusing to run a program with static errors')
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as ex:
            self.runtime_errors.append(ex.err)
            self.debug(f"runtime error {ex.err.kind}: {ex.err.message} [line {ex.err.line}]")
            return False
        return True

    def execute_block(self, statements: List[Stmt], env: Environment):
        previous = self.environment
        try:
            self.environment = env
            for stmt in statements:
                self.execute(stmt)
        finally:
            self.environment = previous

    def execute(self, node: Stmt):
        if isinstance(node, Expression):
            self.evaluate(node.expression)
            return
        if isinstance(node, Print):
            value = self.evaluate(node.expression)
            print(stringify(value))
            return
        if isinstance(node, Var):
            value = self.evaluate(node.initializer) if node.initializer is not None else None
            self.environment.define(node.name.lexeme, value)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name.lexeme}: {type_name(value)} = {stringify(value)}")
            return
        if isinstance(node, Block):
            self.execute_block(node.statements, Environment(self.environment))
            return
        if isinstance(node, If):
            cond = self.evaluate(node.condition)
            truthy = is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {stringify(cond)} -> {truthy}")
            if truthy:
                self.execute(node.then_branch)
            elif node.else_branch is not None:
                self.execute(node.else_branch)
            return
        if isinstance(node, While):
            while is_truthy(self.evaluate(node.condition)):
                self.execute(node.body)
            return
        if isinstance(node, Function):
            function = LoxFunction(node, self.environment, False)
            self.environment.define(node.name.lexeme, function)
            if self.debug_level >= 2:
                self.debug(f"define function {node.name.lexeme}")
            return
        if isinstance(node, Return):
            value = self.evaluate(node.value) if node.value is not None else None
            raise ReturnSignal(value)
        if isinstance(node, Class):
            self.execute_class(node)
            return
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def execute_class(self, node: Class):
        superclass = None
        if node.superclass is not None:
            superclass = self.evaluate(node.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(node.superclass.name, INHERITANCE_TYPE_ERROR, 'Superclass must be a class.')

        # Declared first so that methods can refer to the class by name.
        self.environment.define(node.name.lexeme, None)

        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define('super', superclass)

        methods: Dict[str, LoxFunction] = {}
        for method in node.methods:
            is_init = method.name.lexeme == 'init'
            methods[method.name.lexeme] = LoxFunction(method, self.environment, is_init)

        klass = LoxClass(node.name.lexeme, superclass, methods)

        if superclass is not None:
            self.environment = self.environment.enclosing

        self.environment.assign(node.name, klass)
        if self.debug_level >= 2:
            parent = f" < {superclass.name}" if superclass is not None else ''
            self.debug(f"define class {klass.name}{parent} with methods {', '.join(methods)}")

    def evaluate(self, node: Expr) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Grouping):
            return self.evaluate(node.expression)
        if isinstance(node, Variable):
            return self.look_up_variable(node.name, node)
        if isinstance(node, Assign):
            value = self.evaluate(node.value)
            distance = self.locals.get(node)
            if distance is not None:
                self.environment.assign_at(distance, node.name, value)
            else:
                self.globals.assign(node.name, value)
            return value
        if isinstance(node, Unary):
            right = self.evaluate(node.right)
            if node.operator.kind == 'MINUS':
                self.check_number_operand(node.operator, right)
                return -right
            if node.operator.kind == 'BANG':
                return not is_truthy(right)
            raise NotImplementedError(f"unary operator {node.operator.lexeme}")
        if isinstance(node, Binary):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            return self.apply_binary_op(node.operator, left, right)
        if isinstance(node, Logical):
            left = self.evaluate(node.left)
            if node.operator.kind == 'OR':
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(node.right)
        if isinstance(node, Call):
            callee = self.evaluate(node.callee)
            arguments = [self.evaluate(arg) for arg in node.arguments]
            return self.call_function(callee, arguments, node.paren)
        if isinstance(node, Get):
            obj = self.evaluate(node.object)
            if isinstance(obj, LoxInstance):
                return obj.get(node.name)
            raise LoxRuntimeError(node.name, TYPE_MISMATCH, 'Only instances have properties.')
        if isinstance(node, Set):
            obj = self.evaluate(node.object)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(node.name, TYPE_MISMATCH, 'Only instances have fields.')
            value = self.evaluate(node.value)
            obj.set(node.name, value)
            return value
        if isinstance(node, This):
            return self.look_up_variable(node.keyword, node)
        if isinstance(node, Super):
            distance = self.locals[node]
            superclass: LoxClass = self.environment.get_at(distance, 'super')
            # "this" lives in the scope just inside the one holding "super"
            instance = self.environment.get_at(distance - 1, 'this')
            method = superclass.find_method(node.method.lexeme)
            if method is None:
                raise LoxRuntimeError(node.method, UNDEFINED_PROPERTY,
                                      f"Undefined property '{node.method.lexeme}'.")
            return method.bind(instance)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def look_up_variable(self, name: Token, expr: Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def call_function(self, callee: Any, arguments: List[Any], paren: Token) -> Any:
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(paren, NOT_CALLABLE, 'Can only call functions and classes.')
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(paren, ARITY,
                                  f"Expected {callee.arity()} arguments but got {len(arguments)}.")
        if self.debug_level >= 3:
            self.debug(f"call {callee!r} with ({', '.join(stringify(a) for a in arguments)})")
        result = callee.call(self, arguments)
        if self.debug_level >= 3:
            self.debug(f"return from {callee!r}: {stringify(result)}")
        return result

    def check_number_operand(self, operator: Token, operand: Any):
        if isinstance(operand, float):
            return
        raise LoxRuntimeError(operator, TYPE_MISMATCH, 'Operand must be a number.')

    def check_number_operands(self, operator: Token, a: Any, b: Any):
        if isinstance(a, float) and isinstance(b, float):
            return
        raise LoxRuntimeError(operator, TYPE_MISMATCH, 'Operands must be numbers.')

    def apply_binary_op(self, operator: Token, a: Any, b: Any) -> Any:
        op = operator.kind
        if op == 'EQUAL_EQUAL':
            return is_equal(a, b)
        if op == 'BANG_EQUAL':
            return not is_equal(a, b)
        if op == 'PLUS':
            if isinstance(a, float) and isinstance(b, float):
                return a + b
            if isinstance(a, str) and isinstance(b, str):
                return a + b
            raise LoxRuntimeError(operator, TYPE_MISMATCH, 'Operands must be two numbers or two strings.')
        self.check_number_operands(operator, a, b)
        if op == 'MINUS':
            return a - b
        if op == 'STAR':
            return a * b
        if op == 'SLASH':
            return divide(a, b)
        if op == 'GREATER':
            return a > b
        if op == 'GREATER_EQUAL':
            return a >= b
        if op == 'LESS':
            return a < b
        if op == 'LESS_EQUAL':
            return a <= b
        raise NotImplementedError(f"binary operator {operator.lexeme}")


def divide(a: float, b: float) -> float:
    """IEEE-754 division: dividing by zero gives an infinity or NaN."""
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


def run_source(source: str, interpreter: Interpreter) -> RunStatus:
    """Parse, resolve and run `source`, reporting errors on stderr."""
    interpreter.static_errors.clear()
    try:
        statements = parse_program(source)
    except LoxSyntaxError as ex:
        interpreter.static_errors.append(ex.err)
        interpreter.debug(f"syntax error: {ex.err.report()}")
        print(ex.err.report(), file=sys.stderr)
        return RunStatus.STATIC_ERROR

    Resolver(interpreter).resolve(statements)
    if interpreter.had_error:
        for err in interpreter.static_errors:
            print(err.report(), file=sys.stderr)
        return RunStatus.STATIC_ERROR

    if interpreter.debug_level >= 1:
        interpreter.debug(f"run {len(statements)} statement(s)")
    if not interpreter.interpret(statements):
        print(interpreter.runtime_errors[-1].report_runtime(), file=sys.stderr)
        return RunStatus.RUNTIME_ERROR
    if interpreter.debug_level >= 1:
        interpreter.debug('run finished')
    return RunStatus.OK


def run_program(source: str, debug_level: int = 0) -> Interpreter:
    """Convenience function to run a Lox program on a fresh interpreter."""
    interpreter = Interpreter(debug_level=debug_level)
    try:
        run_source(source, interpreter)
    finally:
        interpreter.close()
    return interpreter
