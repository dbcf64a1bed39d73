"""Static resolution pass for Lox.

The resolver walks the AST once, before anything runs, and does two
things:

1. For every reference to a local variable (including `this` and
   `super`) it tells the interpreter how many scopes lie between the
   reference and the binding. References it cannot find in any scope are
   left unannotated and are looked up in the globals at runtime.

2. It reports structural errors that can be found without running the
   program: reading a local in its own initializer, declaring the same
   local twice in one scope, `return` outside a function, returning a
   value from an initializer, `this` or `super` outside a class, `super`
   in a class without a superclass, and a class inheriting from itself.

Errors do not stop the walk, so one pass can report several. The caller
must not run the program if any were reported.

Each scope maps a name to False while the name is declared but its
initializer has not been resolved yet, and to True once it is defined.
The global scope is not on the stack, which makes it permissive:
`var a = a;` and redeclaration are fine at the top level.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Union

from . import errors
from .ast import (
    Expr, Stmt, Literal, Variable, Assign, Unary, Binary, Logical,
    Grouping, Call, Get, Set, This, Super,
    Expression, Print, Var, Block, If, While, Function, Return, Class,
)
from .tokens import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


class FunctionType(Enum):
    NONE = 'none'
    FUNCTION = 'function'
    INITIALIZER = 'initializer'
    METHOD = 'method'


class ClassType(Enum):
    NONE = 'none'
    CLASS = 'class'
    SUBCLASS = 'subclass'


class Resolver:
    """Annotates local variable references with their scope distance."""

    def __init__(self, interpreter: 'Interpreter'):
        self.interpreter = interpreter
        self.scopes: List[Dict[str, bool]] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, node: Union[Stmt, Expr, List[Stmt]]):
        if isinstance(node, list):
            for stmt in node:
                self.resolve_stmt(stmt)
        elif isinstance(node, Stmt):
            self.resolve_stmt(node)
        else:
            self.resolve_expr(node)

    # Scopes

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name: Token):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, 'Already variable with this name in this scope.', errors.DUPLICATE_LOCAL)
        scope[name.lexeme] = False

    def define(self, name: Token):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: Expr, name: Token):
        for i in range(len(self.scopes) - 1, -1, -1):
            if name.lexeme in self.scopes[i]:
                self.interpreter.resolve(expr, len(self.scopes) - 1 - i)
                return
        # not found: global

    def error(self, token: Token, message: str, kind: str):
        self.interpreter.error(token, message, kind)

    # Statements

    def resolve_stmt(self, stmt: Stmt):
        if isinstance(stmt, Block):
            self.begin_scope()
            self.resolve(stmt.statements)
            self.end_scope()
        elif isinstance(stmt, Var):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.resolve_expr(stmt.initializer)
            self.define(stmt.name)
        elif isinstance(stmt, Function):
            # defined before the body so the function can call itself
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt, FunctionType.FUNCTION)
        elif isinstance(stmt, Class):
            self.resolve_class(stmt)
        elif isinstance(stmt, Expression):
            self.resolve_expr(stmt.expression)
        elif isinstance(stmt, If):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, Print):
            self.resolve_expr(stmt.expression)
        elif isinstance(stmt, Return):
            if self.current_function == FunctionType.NONE:
                self.error(stmt.keyword, "Can't return from top-level code.", errors.RETURN_OUTSIDE_FUNCTION)
            if stmt.value is not None:
                if self.current_function == FunctionType.INITIALIZER:
                    self.error(stmt.keyword, "Can't return a value from an initializer.",
                               errors.RETURN_VALUE_FROM_INIT)
                self.resolve_expr(stmt.value)
        elif isinstance(stmt, While):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.body)
        else:
            raise NotImplementedError(f"resolve: unexpected node type {type(stmt)}")

    def resolve_function(self, function: Function, kind: FunctionType):
        enclosing_function = self.current_function
        self.current_function = kind
        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        self.resolve(function.body)
        self.end_scope()
        self.current_function = enclosing_function

    def resolve_class(self, stmt: Class):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None and stmt.name.lexeme == stmt.superclass.name.lexeme:
            self.error(stmt.superclass.name, "A class can't inherit from itself.", errors.SELF_INHERITANCE)

        if stmt.superclass is not None:
            self.current_class = ClassType.SUBCLASS
            self.resolve_expr(stmt.superclass)
            self.begin_scope()
            self.scopes[-1]['super'] = True

        self.begin_scope()
        self.scopes[-1]['this'] = True

        for method in stmt.methods:
            kind = FunctionType.METHOD
            if method.name.lexeme == 'init':
                kind = FunctionType.INITIALIZER
            self.resolve_function(method, kind)

        self.end_scope()
        if stmt.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    # Expressions

    def resolve_expr(self, expr: Expr):
        if isinstance(expr, Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.error(expr.name, "Can't read local variable in its own initializer.",
                           errors.READ_IN_INITIALIZER)
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, (Binary, Logical)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
        elif isinstance(expr, Call):
            self.resolve_expr(expr.callee)
            for argument in expr.arguments:
                self.resolve_expr(argument)
        elif isinstance(expr, Get):
            self.resolve_expr(expr.object)
        elif isinstance(expr, Set):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.object)
        elif isinstance(expr, Grouping):
            self.resolve_expr(expr.expression)
        elif isinstance(expr, Unary):
            self.resolve_expr(expr.right)
        elif isinstance(expr, Literal):
            pass
        elif isinstance(expr, This):
            if self.current_class == ClassType.NONE:
                self.error(expr.keyword, "Can't use 'this' outside of a class.", errors.THIS_OUTSIDE_CLASS)
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, Super):
            if self.current_class == ClassType.NONE:
                self.error(expr.keyword, "Can't use 'super' outside of a class.", errors.SUPER_OUTSIDE_CLASS)
            elif self.current_class != ClassType.SUBCLASS:
                self.error(expr.keyword, "Can't use 'super' in a class with no superclass.",
                           errors.SUPER_WITHOUT_SUPERCLASS)
            self.resolve_local(expr, expr.keyword)
        else:
            raise NotImplementedError(f"resolve: unexpected node type {type(expr)}")
